"""Зависимости для FastAPI приложения."""

from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from base.orm import get_session_factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """Сессия базы данных на время запроса.

    Незафиксированные изменения откатываются при ошибке базы.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except SQLAlchemyError:
            await session.rollback()
            raise
