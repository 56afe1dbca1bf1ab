# src/core/onboarding/service.py
"""
Сервис проверки биографии водителей.
Координирует действия над заявкой, смену роли и публикацию событий.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, assert_never

from src.common.constants import (
    DEFAULT_APPLICATIONS_LIMIT,
    MAX_APPLICATIONS_LIMIT,
    REJECTION_REASON_BACKGROUND_CHECK,
    ApplicationStatus,
    TypeMsg,
    UserRole,
)
from src.common.logger import log_error, log_info, log_warning
from src.core.onboarding.actions import CheckStatus, Complete, Initiate, ReviewAction
from src.core.onboarding.authorization import AdminContext
from src.core.onboarding.errors import InvalidInput, NotFound, UpstreamFailure
from src.core.onboarding.models import (
    ApplicationStats,
    DriverApplication,
    Profile,
    ReviewOutcome,
    SecondaryEffect,
    VerificationReport,
)
from src.core.onboarding.repository import ApplicationRepository
from src.core.onboarding.verification import BackgroundCheckSimulator
from src.infra.event_bus import EventBus
from src.shared.events import ApplicationReviewStarted, ApplicationStatusChanged, UserRoleChanged
from src.shared.events.base import DomainEvent

# Имя побочного действия смены роли в ReviewOutcome.secondary
ROLE_PROMOTION = "driver_role_promotion"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackgroundCheckWorkflow:
    """
    Процесс проверки биографии.

    Действия:
        initiate: заявка переходит в background_check_in_progress
        check_status: чтение текущего статуса
        complete: проверка и финальный статус approved/rejected,
            при одобрении водителю выдаётся роль driver

    Основной переход (статус заявки) либо записан целиком, либо не записан.
    Смена роли выполняется после него и при сбое не откатывает переход.
    """

    def __init__(
        self,
        repository: ApplicationRepository,
        simulator: BackgroundCheckSimulator,
        event_bus: Optional[EventBus] = None,
        check_timeout: float = 30.0,
        optimistic_locking: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            repository: Репозиторий заявок
            simulator: Провайдер проверки биографии
            event_bus: Шина событий (без неё события не публикуются)
            check_timeout: Таймаут проверки (секунды)
            optimistic_locking: Обновлять заявку только если она не менялась с момента чтения
            clock: Источник текущего времени
        """
        self._repository = repository
        self._simulator = simulator
        self._event_bus = event_bus
        self._check_timeout = check_timeout
        self._optimistic_locking = optimistic_locking
        self._clock = clock

    # =========================================================================
    # ДЕЙСТВИЯ НАД ЗАЯВКОЙ
    # =========================================================================

    async def execute(self, action: ReviewAction, context: AdminContext) -> ReviewOutcome:
        """
        Выполняет действие над заявкой от имени администратора.

        Raises:
            NotFound: Заявка не найдена
            UpstreamFailure: Сбой хранилища или проверки, переход не записан
            ConflictRetry: Заявка изменена параллельно
        """
        application = await self._load(action)

        match action:
            case Initiate():
                return await self._initiate(application, context)
            case CheckStatus():
                return self._check_status(application)
            case Complete():
                return await self._complete(application, context)
            case _:
                assert_never(action)

    async def _load(self, action: ReviewAction) -> DriverApplication:
        application = await self._repository.get_by_id(action.application_id)
        if application is None:
            await log_warning(
                f"Заявка не найдена: {action.application_id}",
                extra={"action": action.name, "application_id": str(action.application_id), "step": "load"},
            )
            raise NotFound(f"Application not found: {action.application_id}")
        return application

    def _expected_version(self, application: DriverApplication) -> Optional[datetime]:
        return application.updated_at if self._optimistic_locking else None

    async def _initiate(self, application: DriverApplication, context: AdminContext) -> ReviewOutcome:
        status = ApplicationStatus.BACKGROUND_CHECK_IN_PROGRESS

        await self._repository.update(
            application.id,
            {
                "status": status,
                "reviewed_at": self._clock(),
                "reviewed_by": context.reviewer_id,
            },
            expected_updated_at=self._expected_version(application),
        )

        await log_info(
            f"Проверка биографии запущена: заявка {application.id}",
            type_msg=TypeMsg.INFO,
            extra={"action": Initiate.name, "application_id": str(application.id), "step": "transition"},
        )

        await self._publish(
            ApplicationReviewStarted(
                application_id=str(application.id),
                reviewed_by=str(context.reviewer_id),
            )
        )

        return ReviewOutcome(message="Background check initiated", status=status)

    @staticmethod
    def _check_status(application: DriverApplication) -> ReviewOutcome:
        return ReviewOutcome(message="Background check in progress", status=application.status)

    async def _complete(self, application: DriverApplication, context: AdminContext) -> ReviewOutcome:
        report = await self._run_check(application)

        if report.passed:
            status = ApplicationStatus.APPROVED
            rejection_reason = None
        else:
            status = ApplicationStatus.REJECTED
            rejection_reason = REJECTION_REASON_BACKGROUND_CHECK

        await self._repository.update(
            application.id,
            {
                "status": status,
                "rejection_reason": rejection_reason,
                "reviewed_at": self._clock(),
                "reviewed_by": context.reviewer_id,
            },
            expected_updated_at=self._expected_version(application),
        )

        await log_info(
            f"Проверка биографии завершена: заявка {application.id} -> {status}",
            type_msg=TypeMsg.INFO,
            extra={
                "action": Complete.name,
                "application_id": str(application.id),
                "step": "transition",
                "report_id": report.report_id,
            },
        )

        await self._publish(
            ApplicationStatusChanged(
                application_id=str(application.id),
                driver_id=str(application.driver_id),
                status=status.value,
                rejection_reason=rejection_reason,
                reviewed_by=str(context.reviewer_id),
                report_id=report.report_id,
            )
        )

        secondary: list[SecondaryEffect] = []
        if report.passed and application.driver is not None:
            secondary.append(await self._promote_to_driver(application, application.driver, context))

        return ReviewOutcome(
            message="Background check passed" if report.passed else "Background check failed",
            status=status,
            report=report,
            secondary=secondary,
        )

    async def _run_check(self, application: DriverApplication) -> VerificationReport:
        try:
            return await asyncio.wait_for(
                self._simulator.run(application),
                timeout=self._check_timeout,
            )
        except asyncio.TimeoutError:
            await log_error(
                f"Таймаут проверки биографии: заявка {application.id}",
                extra={"action": Complete.name, "application_id": str(application.id), "step": "verification"},
            )
            raise UpstreamFailure(
                f"Background check timed out after {self._check_timeout:g}s"
            ) from None

    async def _promote_to_driver(
        self,
        application: DriverApplication,
        driver: Profile,
        context: AdminContext,
    ) -> SecondaryEffect:
        """Выдаёт водителю роль driver. Ошибка возвращается, а не пробрасывается."""
        try:
            await self._repository.update_profile_role(driver.id, UserRole.DRIVER)
        except UpstreamFailure as e:
            await log_warning(
                f"Не удалось выдать роль driver профилю {driver.id}: {e.message}",
                extra={
                    "action": Complete.name,
                    "application_id": str(application.id),
                    "step": "role_promotion",
                    "profile_id": str(driver.id),
                },
            )
            return SecondaryEffect(name=ROLE_PROMOTION, succeeded=False, error=e.message)

        await self._publish(
            UserRoleChanged(
                profile_id=str(driver.id),
                role=UserRole.DRIVER.value,
                changed_by=str(context.reviewer_id),
            )
        )
        return SecondaryEffect(name=ROLE_PROMOTION, succeeded=True)

    async def _publish(self, event: DomainEvent) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.publish(event)

    # =========================================================================
    # ЧТЕНИЕ ДЛЯ АДМИНИСТРАТОРА
    # =========================================================================

    async def list_applications(self, limit: int = DEFAULT_APPLICATIONS_LIMIT) -> list[DriverApplication]:
        """
        Последние заявки, новые первыми.

        Raises:
            InvalidInput: limit вне диапазона 1..MAX_APPLICATIONS_LIMIT
        """
        if not 1 <= limit <= MAX_APPLICATIONS_LIMIT:
            raise InvalidInput(f"limit must be between 1 and {MAX_APPLICATIONS_LIMIT}")
        return await self._repository.list_recent(limit)

    async def application_stats(self) -> ApplicationStats:
        """Количество заявок по статусам."""
        return await self._repository.count_by_status()
