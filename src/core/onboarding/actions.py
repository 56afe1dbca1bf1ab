# src/core/onboarding/actions.py
"""
Действия над заявкой в виде закрытого набора вариантов.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union
from uuid import UUID

from src.core.onboarding.errors import InvalidInput, UnknownAction


@dataclass(frozen=True)
class Initiate:
    """Запустить проверку биографии."""
    application_id: UUID
    name: ClassVar[str] = "initiate"


@dataclass(frozen=True)
class CheckStatus:
    """Прочитать текущий статус заявки."""
    application_id: UUID
    name: ClassVar[str] = "check_status"


@dataclass(frozen=True)
class Complete:
    """Выполнить проверку и записать итоговый статус."""
    application_id: UUID
    name: ClassVar[str] = "complete"


ReviewAction = Union[Initiate, CheckStatus, Complete]

ACTIONS: dict[str, type[ReviewAction]] = {
    cls.name: cls for cls in (Initiate, CheckStatus, Complete)
}


def parse_application_id(value: object) -> UUID:
    """
    Преобразует applicationId из запроса в UUID.

    Raises:
        InvalidInput: Пустое или некорректное значение
    """
    if value is None or value == "":
        raise InvalidInput("Application ID is required")
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidInput(f"Invalid application ID: {value}") from None


def parse_action(action: object, application_id: UUID) -> ReviewAction:
    """
    Строит вариант действия по имени.

    Raises:
        InvalidInput: Действие не передано
        UnknownAction: Имя не входит в ACTIONS
    """
    if action is None or action == "":
        raise InvalidInput("Action is required")

    action_cls = ACTIONS.get(action) if isinstance(action, str) else None
    if action_cls is None:
        raise UnknownAction(f"Unknown action: {action}")
    return action_cls(application_id)
