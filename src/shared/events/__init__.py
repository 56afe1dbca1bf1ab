# src/shared/events/__init__.py
"""
Схемы событий для RabbitMQ.

Все события содержат event_id для дедупликации на стороне подписчиков.
"""

from src.shared.events.base import DomainEvent, EventMetadata
from src.shared.events.onboarding_events import (
    ApplicationReviewStarted,
    ApplicationStatusChanged,
    UserRoleChanged,
)

__all__ = [
    "DomainEvent",
    "EventMetadata",
    "ApplicationReviewStarted",
    "ApplicationStatusChanged",
    "UserRoleChanged",
]
