# src/services/background_check/app.py
"""
FastAPI приложение для Background Check Service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from src.common.constants import TypeMsg
from src.common.logger import log_info, log_warning
from src.config import settings
from src.services.background_check.routes import error_response, router
from src.shared.models.common import HealthStatus

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Жизненный цикл приложения."""
    await log_info("Background Check Service запускается...", type_msg=TypeMsg.INFO)

    from src.services.background_check.dependencies import close_dependencies, init_dependencies
    await init_dependencies()

    yield

    await close_dependencies()
    await log_info("Background Check Service остановлен", type_msg=TypeMsg.INFO)


# =============================================================================
# ПРИЛОЖЕНИЕ
# =============================================================================

def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        use_lifespan: Подключать ли БД, RabbitMQ и провайдер идентификации при старте
    """
    application = FastAPI(
        title="Background Check Service",
        description="Проверка биографии водителей перед допуском к заказам",
        version=settings.system.VERSION,
        lifespan=lifespan if use_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @application.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        await log_warning(f"Некорректный запрос {request.url.path}: {exc.errors()}")
        return error_response(f"Invalid request: {exc.errors()[0].get('msg', 'validation error')}")

    @application.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check() -> HealthStatus:
        """Проверка здоровья сервиса."""
        from src.services.background_check.dependencies import get_db, get_event_bus

        deps = {}

        db = get_db()
        deps["postgres"] = "healthy" if db is not None and await db.health_check() else "unhealthy"

        if settings.rabbitmq.RABBITMQ_ENABLED:
            event_bus = get_event_bus()
            deps["rabbitmq"] = (
                "healthy" if event_bus is not None and await event_bus.health_check() else "unhealthy"
            )

        overall = "healthy" if all(v == "healthy" for v in deps.values()) else "degraded"

        return HealthStatus(
            service="background_check",
            status=overall,
            version=settings.system.VERSION,
            dependencies=deps,
        )

    application.include_router(router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.services.background_check.app:app",
        host=settings.deployment.BACKGROUND_CHECK_HOST,
        port=settings.deployment.BACKGROUND_CHECK_PORT,
    )
