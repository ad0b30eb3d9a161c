"""Структуры данных для приложения."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Тело ответа с ошибкой."""

    detail: str
    type: str


class HealthResponse(BaseModel):
    """Ответ проверки работоспособности."""

    message: str = "API is running"
