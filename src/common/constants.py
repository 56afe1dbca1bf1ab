# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей платформы."""
    RIDER = "rider"
    DRIVER = "driver"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


class ApplicationStatus(str, Enum):
    """Статусы заявки водителя."""
    PENDING = "pending"
    DOCUMENTS_SUBMITTED = "documents_submitted"
    # Устаревшие статусы, встречаются в старых записях
    BACKGROUND_CHECK_INITIATED = "background_check_initiated"
    BACKGROUND_CHECK_COMPLETE = "background_check_complete"
    BACKGROUND_CHECK_IN_PROGRESS = "background_check_in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value

    @property
    def is_awaiting_review(self) -> bool:
        """Ожидает ли заявка рассмотрения администратором."""
        return self in (ApplicationStatus.PENDING, ApplicationStatus.DOCUMENTS_SUBMITTED)


# Причина отказа при непройденной проверке
REJECTION_REASON_BACKGROUND_CHECK = "Failed background check"

# Количество заявок в списке администратора по умолчанию
DEFAULT_APPLICATIONS_LIMIT = 20
MAX_APPLICATIONS_LIMIT = 100
