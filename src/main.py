"""Основной модуль FastAPI приложения."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from base.config import get_allowed_hosts, get_api_prefix, get_log_level
from base.data_structures import HealthResponse
from base.exception_handlers import add_exception_handlers
from base.orm import init_db
from pricing.entrypoints.api.endpoints import router as pricing_router
from promotions.entrypoints.api.endpoints import router as promotions_router

# Настройка логирования
logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения."""
    await init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Pharma Pricing API",
    description="API расчета цен и акций для B2B заказов",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_hosts(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

api_prefix = get_api_prefix()
app.include_router(pricing_router, prefix=f"{api_prefix}/pricing", tags=["pricing"])
app.include_router(
    promotions_router, prefix=f"{api_prefix}/promotions", tags=["promotions"]
)


@app.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Проверка работоспособности API."""
    return HealthResponse()
