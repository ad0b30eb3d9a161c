"""Конфигурация приложения."""

from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Настройки приложения."""

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "pharma_pricing"
    db_user: str = "pricing_user"
    db_password: str = "pricing_password"

    # API
    api_prefix: str = "/api/v1"
    allowed_hosts: str = "*"

    # Pricing
    tier_a_discount_percent: Decimal = Decimal("15")
    tier_b_discount_percent: Decimal = Decimal("10")
    tier_c_discount_percent: Decimal = Decimal("5")
    max_hierarchy_depth: int = 5
    auto_apply_promotions: bool = True

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }


_settings = Settings()


def get_settings() -> Settings:
    """Получение настроек."""
    return _settings


def get_db_url() -> str:
    """Получение URL базы данных."""
    return f"postgresql+asyncpg://{_settings.db_user}:{_settings.db_password}@{_settings.db_host}:{_settings.db_port}/{_settings.db_name}"


def get_allowed_hosts() -> List[str]:
    """Получение разрешенных хостов."""
    if _settings.allowed_hosts == "*":
        return ["*"]
    return [host.strip() for host in _settings.allowed_hosts.split(",")]


def get_api_prefix() -> str:
    """Получение префикса API."""
    return _settings.api_prefix


def get_max_hierarchy_depth() -> int:
    """Получение максимальной глубины цепочки родительских клиентов."""
    return _settings.max_hierarchy_depth


def get_auto_apply_promotions() -> bool:
    """Получение флага автоматического применения акций без кода."""
    return _settings.auto_apply_promotions


def get_log_level() -> str:
    """Получение уровня логирования."""
    return _settings.log_level
