# src/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: PostgreSQL, RabbitMQ, провайдер идентификации.
"""

from src.infra.database import DatabaseManager, get_db
from src.infra.event_bus import EventBus, get_event_bus
from src.infra.identity import IdentityProvider, UserIdentity, AuthError

__all__ = [
    "DatabaseManager",
    "get_db",
    "EventBus",
    "get_event_bus",
    "IdentityProvider",
    "UserIdentity",
    "AuthError",
]
