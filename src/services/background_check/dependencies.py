# src/services/background_check/dependencies.py
"""
Зависимости для Background Check Service.
Инициализация и управление ресурсами.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import TypeMsg
from src.common.logger import log_info, log_warning
from src.core.onboarding.authorization import AuthorizationGate
from src.core.onboarding.repository import ApplicationRepository
from src.core.onboarding.service import BackgroundCheckWorkflow
from src.core.onboarding.verification import BackgroundCheckSimulator
from src.infra.database import DatabaseManager, close_db, init_db
from src.infra.event_bus import EventBus, close_event_bus, init_event_bus
from src.infra.identity import IdentityProvider

# Глобальные экземпляры ресурсов
_db: Optional[DatabaseManager] = None
_event_bus: Optional[EventBus] = None
_identity_provider: Optional[IdentityProvider] = None

# Сервисы
_gate: Optional[AuthorizationGate] = None
_workflow: Optional[BackgroundCheckWorkflow] = None


async def init_dependencies() -> None:
    """Инициализация всех зависимостей сервиса."""
    global _db, _event_bus, _identity_provider, _gate, _workflow

    from src.config import settings

    # Инфраструктура
    _db = await init_db()

    if settings.rabbitmq.RABBITMQ_ENABLED:
        try:
            _event_bus = await init_event_bus()
        except Exception as e:
            # Без брокера сервис работает, события не публикуются
            await log_warning(f"RabbitMQ недоступен, события отключены: {e}")
            _event_bus = None

    _identity_provider = IdentityProvider(
        user_endpoint=settings.auth.user_endpoint,
        anon_key=settings.auth.ANON_KEY,
        timeout=settings.auth.AUTH_TIMEOUT,
    )

    # Сервисы
    repository = ApplicationRepository(_db)
    simulator = BackgroundCheckSimulator(
        latency_seconds=settings.verification.SIMULATED_LATENCY_SECONDS,
        min_experience_years=settings.verification.MIN_DRIVING_EXPERIENCE_YEARS,
        vendor_api_key=settings.verification.VENDOR_API_KEY,
    )
    _gate = AuthorizationGate(_identity_provider, repository)
    _workflow = BackgroundCheckWorkflow(
        repository=repository,
        simulator=simulator,
        event_bus=_event_bus,
        check_timeout=settings.verification.CHECK_TIMEOUT_SECONDS,
        optimistic_locking=settings.verification.OPTIMISTIC_LOCKING,
    )

    await log_info("Background Check Service инициализирован", type_msg=TypeMsg.INFO)


async def close_dependencies() -> None:
    """Закрытие всех ресурсов."""
    global _db, _event_bus, _identity_provider, _gate, _workflow

    if _identity_provider is not None:
        await _identity_provider.close()
        _identity_provider = None

    if _event_bus is not None:
        await close_event_bus()
        _event_bus = None

    if _db is not None:
        await close_db()
        _db = None

    _gate = None
    _workflow = None
    await log_info("Ресурсы Background Check Service освобождены", type_msg=TypeMsg.DEBUG)


def get_db() -> Optional[DatabaseManager]:
    """Менеджер БД (None до инициализации)."""
    return _db


def get_event_bus() -> Optional[EventBus]:
    """Шина событий (None если RabbitMQ отключён или недоступен)."""
    return _event_bus


def get_gate() -> AuthorizationGate:
    """Ворота авторизации."""
    if _gate is None:
        raise RuntimeError("AuthorizationGate не инициализирован")
    return _gate


def get_workflow() -> BackgroundCheckWorkflow:
    """Сервис проверки биографии."""
    if _workflow is None:
        raise RuntimeError("BackgroundCheckWorkflow не инициализирован")
    return _workflow
