import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import health, users
from .config import settings
from .db.base import Base
from .db.session import engine
from .exceptions import POSError
from .logging_config import setup_logging
from restaurant_pos.api.routes.customers import router as customers_router
from restaurant_pos.api.routes.inventory import router as inventory_router
from restaurant_pos.api.routes.menu import router as menu_router
from restaurant_pos.api.routes.orders import router as orders_router
from restaurant_pos.api.routes.recipes import router as recipes_router
from restaurant_pos.api.routes.settings import router as settings_router
from restaurant_pos.api.routes.tables import router as tables_router
from restaurant_pos import models  # noqa: F401  регистрирует модели в Base.metadata

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # в разработке создаём таблицы сами, в проде - миграции Alembic
    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created (development mode)")
    logger.info("Application started")
    yield
    await engine.dispose()
    logger.info("Application stopped")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)


@app.exception_handler(POSError)
async def pos_error_handler(request: Request, exc: POSError):
    # title/detail - то, что клиент показывает во всплывающем уведомлении
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("%s %s database error: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"title": "Database error", "detail": str(exc)},
    )


# Подключаем роуты
app.include_router(health.router)
app.include_router(users.router)
app.include_router(menu_router)
app.include_router(tables_router)
app.include_router(orders_router)
app.include_router(customers_router)
app.include_router(inventory_router)
app.include_router(recipes_router)
app.include_router(settings_router)
