# src/shared/events/onboarding_events.py
"""
События домена подключения водителей.
"""

from __future__ import annotations

from typing import Literal

from src.shared.events.base import DomainEvent


class ApplicationReviewStarted(DomainEvent):
    """Событие: администратор запустил проверку биографии."""

    event_type: Literal["driver_application.review_started"] = "driver_application.review_started"

    application_id: str
    reviewed_by: str


class ApplicationStatusChanged(DomainEvent):
    """Событие: проверка завершена, заявка одобрена или отклонена."""

    event_type: Literal["driver_application.status_changed"] = "driver_application.status_changed"

    application_id: str
    driver_id: str
    status: str
    rejection_reason: str | None = None
    reviewed_by: str
    report_id: str | None = None


class UserRoleChanged(DomainEvent):
    """Событие: роль пользователя изменена."""

    event_type: Literal["user.role_changed"] = "user.role_changed"

    profile_id: str
    role: str
    changed_by: str | None = None
