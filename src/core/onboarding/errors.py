# src/core/onboarding/errors.py
"""
Ошибки процесса проверки водителей.

Все ошибки прерывают действие и отдаются клиенту единым ответом 400.
Сбой смены роли ошибкой не является: он возвращается как SecondaryEffect.
"""

from __future__ import annotations


class OnboardingError(Exception):
    """Базовая ошибка. kind, стабильное имя вида ошибки для логов."""

    kind: str = "OnboardingError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(OnboardingError):
    """Нет токена, токен некорректен или отклонён провайдером."""
    kind = "Unauthenticated"


class Forbidden(OnboardingError):
    """Пользователь не является администратором."""
    kind = "Forbidden"


class NotFound(OnboardingError):
    """Заявка не найдена."""
    kind = "NotFound"


class InvalidInput(OnboardingError):
    """Некорректное тело запроса."""
    kind = "InvalidInput"


class UnknownAction(OnboardingError):
    """Действие не входит в initiate / check_status / complete."""
    kind = "UnknownAction"


class UpstreamFailure(OnboardingError):
    """Сбой хранилища или внешней проверки. Переход не записан."""
    kind = "UpstreamFailure"


class ConflictRetry(OnboardingError):
    """Заявка изменена параллельно (optimistic locking), запрос можно повторить."""
    kind = "ConflictRetry"
