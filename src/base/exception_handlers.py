"""Обработчики исключений для FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .data_structures import ErrorResponse
from .exceptions import (
    AppException,
    DatabaseError,
    DoesntExistException,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Обработчик выбирается по MRO исключения, поэтому AppException ловит остальное
EXCEPTION_RESPONSES: dict[type[AppException], tuple[int, str]] = {
    AppException: (500, "app_error"),
    ValidationError: (400, "validation_error"),
    DatabaseError: (500, "database_error"),
    DoesntExistException: (404, "not_found_error"),
}


def error_response(status_code: int, exc: Exception, error_type: str) -> JSONResponse:
    """JSON ответ с описанием ошибки."""
    body = ErrorResponse(detail=str(exc), type=error_type)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _make_handler(status_code: int, error_type: str):
    async def handler(request: Request, exc: AppException) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return error_response(status_code, exc, error_type)

    return handler


def add_exception_handlers(app: FastAPI) -> None:
    """Добавление обработчиков исключений в приложение."""
    for exc_class, (status_code, error_type) in EXCEPTION_RESPONSES.items():
        app.add_exception_handler(exc_class, _make_handler(status_code, error_type))
