# src/core/onboarding/models.py
"""
Модели данных подключения водителей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import ApplicationStatus, UserRole


class Profile(BaseModel):
    """Профиль аккаунта платформы."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="ID профиля")
    user_id: UUID = Field(..., description="ID пользователя у провайдера идентификации")
    email: str = Field(..., description="Контактный email")
    full_name: Optional[str] = Field(None, description="Отображаемое имя")
    phone: Optional[str] = Field(None, description="Телефон")
    role: UserRole = Field(UserRole.RIDER, description="Роль пользователя")
    rating: Optional[float] = Field(5.0, description="Средний рейтинг")
    total_ratings: Optional[int] = Field(0, description="Количество оценок")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class DriverApplication(BaseModel):
    """Заявка водителя на подключение."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="ID заявки")
    driver_id: UUID = Field(..., description="ID профиля водителя (FK profiles.id)")
    status: ApplicationStatus = Field(ApplicationStatus.PENDING, description="Статус заявки")

    # Заявленные водителем факты, используются при проверке
    has_criminal_record: bool = Field(False, description="Есть ли судимость")
    driving_experience_years: int = Field(..., ge=0, description="Стаж вождения (лет)")
    previous_violations: Optional[str] = Field(None, description="Нарушения ПДД (если есть)")

    # Результат рассмотрения
    rejection_reason: Optional[str] = Field(None, description="Причина отказа")
    reviewed_at: Optional[datetime] = Field(None, description="Время рассмотрения")
    reviewed_by: Optional[UUID] = Field(None, description="ID профиля администратора")

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    driver: Optional[Profile] = Field(None, description="Профиль водителя (join)")


class VerificationCheck(BaseModel):
    """Результат отдельной проверки."""

    passed: bool
    details: str


class VerificationReport(BaseModel):
    """
    Отчёт о проверке биографии.
    В БД не хранится, возвращается только в ответе на complete.
    """

    passed: bool
    checks: dict[str, VerificationCheck]
    report_id: str
    completed_at: datetime

    def check(self, name: str) -> VerificationCheck:
        return self.checks[name]


class SecondaryEffect(BaseModel):
    """Исход побочного действия после основного перехода (например, смена роли)."""

    name: str
    succeeded: bool
    error: Optional[str] = None


class ReviewOutcome(BaseModel):
    """
    Результат действия над заявкой.

    Основной переход (статус заявки) уже записан, если outcome получен.
    secondary описывает best-effort действия, их сбой не откатывает переход.
    """

    message: str
    status: ApplicationStatus
    report: Optional[VerificationReport] = None
    secondary: list[SecondaryEffect] = Field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        """Сообщения о неудавшихся побочных действиях."""
        return [
            f"{effect.name} failed: {effect.error}"
            for effect in self.secondary
            if not effect.succeeded
        ]


class ApplicationStats(BaseModel):
    """Статистика заявок для панели администратора."""

    total: int = 0
    pending: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
