"""Кастомные исключения приложения."""


class AppException(Exception):
    """Базовое исключение приложения."""
    pass


class ValidationError(AppException):
    """Ошибка валидации данных."""
    pass


class DatabaseError(AppException):
    """Ошибка работы с базой данных."""
    pass


class DoesntExistException(AppException):
    """Исключение о том, что сущность не существует."""

    def __init__(self, detail: str = "Entity doesn't exist") -> None:
        """Инициализация исключения."""
        super().__init__(detail)
        self.detail = detail


class ProductNotFoundError(DoesntExistException):
    """Товар не найден."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Товар с ID {product_id} не найден")
        self.product_id = product_id


class CustomerNotFoundError(DoesntExistException):
    """Клиент не найден."""

    def __init__(self, customer_id: int) -> None:
        super().__init__(f"Клиент с ID {customer_id} не найден")
        self.customer_id = customer_id


class PromotionNotFoundError(DoesntExistException):
    """Акция не найдена."""

    def __init__(self, promotion_id: int) -> None:
        super().__init__(f"Акция с ID {promotion_id} не найдена")
        self.promotion_id = promotion_id


class PriceRuleNotFoundError(DoesntExistException):
    """Ценовое правило не найдено."""

    def __init__(self, rule_id: int) -> None:
        super().__init__(f"Ценовое правило с ID {rule_id} не найдено")
        self.rule_id = rule_id
