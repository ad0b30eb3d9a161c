"""Базовые классы и функции для работы с ORM."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from base.config import get_db_url, get_log_level

Base = declarative_base()

# SQL в лог только при отладке
engine = create_async_engine(
    get_db_url(),
    echo=get_log_level().upper() == "DEBUG",
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Получение фабрики сессий."""
    return async_session


async def init_db() -> None:
    """Создание таблиц каталога, ценовых правил и акций."""
    import catalog.adapters.orm  # noqa: F401
    import pricing.adapters.orm  # noqa: F401
    import promotions.adapters.orm  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
