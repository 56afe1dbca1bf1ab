# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("ANON_KEY", "test_anon_key")
os.environ.setdefault("SERVICE_ROLE_KEY", "test_service_key")
os.environ.setdefault("VENDOR_API_KEY", "test_vendor_key")

from src.common.constants import ApplicationStatus, UserRole
from src.core.onboarding.authorization import AdminContext
from src.core.onboarding.models import DriverApplication, Profile
from src.core.onboarding.repository import ApplicationRepository
from src.infra.identity import UserIdentity


ADMIN_USER_ID = UUID("00000000-0000-0000-0000-00000000a001")
ADMIN_PROFILE_ID = UUID("00000000-0000-0000-0000-00000000b001")
DRIVER_USER_ID = UUID("00000000-0000-0000-0000-00000000a002")
DRIVER_PROFILE_ID = UUID("00000000-0000-0000-0000-00000000b002")
APPLICATION_ID = UUID("00000000-0000-0000-0000-00000000c001")


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок плоского config.json для тестов."""
    return {
        "PROJECT_NAME": "driver_onboarding_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "BACKGROUND_CHECK_HOST": "127.0.0.1",
        "BACKGROUND_CHECK_PORT": 9092,
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "DB_HOST": "db.local",
        "DB_PORT": 5433,
        "DB_NAME": "onboarding_test",
        "DB_USER": "tester",
        "RABBITMQ_ENABLED": False,
        "RABBITMQ_EXCHANGE": "test.events",
        "AUTH_URL": "http://auth.local/",
        "AUTH_TIMEOUT": 5.0,
        "SIMULATED_LATENCY_SECONDS": 0,
        "CHECK_TIMEOUT_SECONDS": 2.0,
        "MIN_DRIVING_EXPERIENCE_YEARS": 3,
        "OPTIMISTIC_LOCKING": True,
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок DatabaseManager."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок EventBus."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=True)
    return event_bus


# =============================================================================
# ФИКСТУРЫ ДОМЕНА
# =============================================================================

@pytest.fixture
def admin_profile() -> Profile:
    """Профиль администратора."""
    return Profile(
        id=ADMIN_PROFILE_ID,
        user_id=ADMIN_USER_ID,
        email="admin@example.com",
        full_name="Admin User",
        role=UserRole.ADMIN,
    )


@pytest.fixture
def admin_context(admin_profile: Profile) -> AdminContext:
    """Контекст проверенного администратора."""
    return AdminContext(
        identity=UserIdentity(id=str(ADMIN_USER_ID), email="admin@example.com"),
        profile=admin_profile,
    )


@pytest.fixture
def driver_profile() -> Profile:
    """Профиль водителя с ролью rider (до одобрения)."""
    return Profile(
        id=DRIVER_PROFILE_ID,
        user_id=DRIVER_USER_ID,
        email="driver@example.com",
        full_name="Test Driver",
        phone="+10000000000",
        role=UserRole.RIDER,
    )


@pytest.fixture
def sample_application(driver_profile: Profile) -> DriverApplication:
    """Заявка с чистыми фактами: без судимости, стаж 3 года, без нарушений."""
    return DriverApplication(
        id=APPLICATION_ID,
        driver_id=DRIVER_PROFILE_ID,
        status=ApplicationStatus.DOCUMENTS_SUBMITTED,
        has_criminal_record=False,
        driving_experience_years=3,
        previous_violations=None,
        created_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        driver=driver_profile,
    )


@pytest.fixture
def mock_repository(sample_application: DriverApplication, admin_profile: Profile) -> MagicMock:
    """Мок ApplicationRepository."""
    repo = MagicMock(spec=ApplicationRepository)
    repo.get_by_id = AsyncMock(return_value=sample_application)
    repo.update = AsyncMock(return_value=None)
    repo.get_profile_by_user_id = AsyncMock(return_value=admin_profile)
    repo.update_profile_role = AsyncMock(return_value=None)
    repo.list_recent = AsyncMock(return_value=[sample_application])
    repo.count_by_status = AsyncMock()
    return repo
