# src/core/onboarding/repository.py
"""
Репозиторий заявок водителей и профилей.
Реализует паттерн Repository для абстракции доступа к данным.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import UUID

import asyncpg

from src.common.constants import ApplicationStatus, TypeMsg, UserRole
from src.common.logger import log_error, log_info
from src.core.onboarding.errors import ConflictRetry, NotFound, UpstreamFailure
from src.core.onboarding.models import ApplicationStats, DriverApplication, Profile
from src.infra.database import CONNECTION_ERRORS, DatabaseManager

# Колонки заявки, которые разрешено менять процессу проверки
UPDATABLE_COLUMNS = frozenset({"status", "rejection_reason", "reviewed_by", "reviewed_at"})

# Ошибки хранилища, которые превращаются в UpstreamFailure
STORAGE_ERRORS: tuple[type[BaseException], ...] = (asyncpg.PostgresError, *CONNECTION_ERRORS)

_APPLICATION_COLUMNS = """
    a.id, a.driver_id, a.status, a.has_criminal_record, a.driving_experience_years,
    a.previous_violations, a.rejection_reason, a.reviewed_by, a.reviewed_at,
    a.created_at, a.updated_at,
    p.id AS p_id, p.user_id AS p_user_id, p.email AS p_email, p.full_name AS p_full_name,
    p.phone AS p_phone, p.role AS p_role, p.rating AS p_rating,
    p.total_ratings AS p_total_ratings, p.created_at AS p_created_at,
    p.updated_at AS p_updated_at
"""


class ApplicationRepository:
    """Репозиторий заявок водителей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    # =========================================================================
    # Заявки
    # =========================================================================

    async def get_by_id(self, application_id: UUID) -> Optional[DriverApplication]:
        """
        Получает заявку вместе с профилем водителя.

        Returns:
            Заявка или None, если не найдена

        Raises:
            UpstreamFailure: Ошибка хранилища
        """
        try:
            row = await self._db.fetchrow(
                f"""
                SELECT {_APPLICATION_COLUMNS}
                FROM driver_applications a
                LEFT JOIN profiles p ON p.id = a.driver_id
                WHERE a.id = $1
                """,
                application_id,
            )
        except STORAGE_ERRORS as e:
            await log_error(f"Ошибка получения заявки {application_id}: {e}")
            raise UpstreamFailure(f"Application not found: {e}") from e

        if row is None:
            return None
        return _row_to_application(row)

    async def update(
        self,
        application_id: UUID,
        fields: Mapping[str, Any],
        expected_updated_at: Optional[datetime] = None,
    ) -> None:
        """
        Обновляет поля заявки. updated_at выставляется автоматически.

        Args:
            application_id: ID заявки
            fields: Новые значения (только из UPDATABLE_COLUMNS)
            expected_updated_at: Если задано, запись обновится только если
                её updated_at не изменился с момента чтения

        Raises:
            ValueError: Передана недопустимая колонка
            ConflictRetry: Заявка изменена параллельно
            NotFound: Заявка исчезла между чтением и записью
            UpstreamFailure: Ошибка хранилища
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Недопустимые поля для обновления: {sorted(unknown)}")

        assignments = []
        args: list[Any] = [application_id]
        for column, value in fields.items():
            args.append(_to_db_value(value))
            assignments.append(f"{column} = ${len(args)}")
        assignments.append("updated_at = NOW()")

        query = f"UPDATE driver_applications SET {', '.join(assignments)} WHERE id = $1"
        if expected_updated_at is not None:
            args.append(expected_updated_at)
            query += f" AND updated_at = ${len(args)}"

        try:
            result = await self._db.execute(query, *args)
        except STORAGE_ERRORS as e:
            await log_error(f"Ошибка обновления заявки {application_id}: {e}")
            raise UpstreamFailure(f"Failed to update application: {e}") from e

        if _affected_rows(result) == 0:
            if expected_updated_at is not None:
                raise ConflictRetry(
                    f"Application {application_id} was modified concurrently, retry the request"
                )
            raise NotFound(f"Application not found: {application_id}")

        await log_info(
            f"Заявка {application_id} обновлена: {', '.join(fields)}",
            type_msg=TypeMsg.DEBUG,
        )

    async def list_recent(self, limit: int) -> list[DriverApplication]:
        """Возвращает последние заявки (новые первыми) с профилями водителей."""
        try:
            rows = await self._db.fetch(
                f"""
                SELECT {_APPLICATION_COLUMNS}
                FROM driver_applications a
                LEFT JOIN profiles p ON p.id = a.driver_id
                ORDER BY a.created_at DESC
                LIMIT $1
                """,
                limit,
            )
        except STORAGE_ERRORS as e:
            await log_error(f"Ошибка получения списка заявок: {e}")
            raise UpstreamFailure(f"Failed to list applications: {e}") from e

        return [_row_to_application(row) for row in rows]

    async def count_by_status(self) -> ApplicationStats:
        """Считает заявки по статусам."""
        try:
            rows = await self._db.fetch(
                """
                SELECT status, COUNT(*) AS count
                FROM driver_applications
                GROUP BY status
                """
            )
        except STORAGE_ERRORS as e:
            await log_error(f"Ошибка подсчёта заявок: {e}")
            raise UpstreamFailure(f"Failed to count applications: {e}") from e

        by_status = {row["status"]: int(row["count"]) for row in rows}
        pending = sum(
            count for status, count in by_status.items()
            if ApplicationStatus(status).is_awaiting_review
        )
        return ApplicationStats(
            total=sum(by_status.values()),
            pending=pending,
            by_status=by_status,
        )

    # =========================================================================
    # Профили
    # =========================================================================

    async def get_profile_by_user_id(self, user_id: UUID | str) -> Optional[Profile]:
        """
        Получает профиль по ID пользователя провайдера идентификации.
        Роль читается из БД при каждом вызове.

        Raises:
            UpstreamFailure: Ошибка хранилища
        """
        try:
            row = await self._db.fetchrow(
                """
                SELECT id, user_id, email, full_name, phone, role, rating,
                       total_ratings, created_at, updated_at
                FROM profiles
                WHERE user_id = $1
                """,
                UUID(str(user_id)),
            )
        except ValueError:
            return None
        except STORAGE_ERRORS as e:
            await log_error(f"Ошибка получения профиля {user_id}: {e}")
            raise UpstreamFailure(f"Failed to load profile: {e}") from e

        if row is None:
            return None
        return _row_to_profile(row)

    async def update_profile_role(self, profile_id: UUID, role: UserRole) -> None:
        """
        Меняет роль профиля.

        Raises:
            UpstreamFailure: Ошибка хранилища или профиль не найден
        """
        try:
            result = await self._db.execute(
                "UPDATE profiles SET role = $2, updated_at = NOW() WHERE id = $1",
                profile_id,
                role.value,
            )
        except STORAGE_ERRORS as e:
            await log_error(f"Ошибка смены роли профиля {profile_id}: {e}")
            raise UpstreamFailure(f"Failed to update role: {e}") from e

        if _affected_rows(result) == 0:
            raise UpstreamFailure(f"Profile not found: {profile_id}")

        await log_info(f"Роль профиля {profile_id} изменена на {role}", type_msg=TypeMsg.DEBUG)


# =============================================================================
# Преобразование строк
# =============================================================================

def _row_to_profile(row: Mapping[str, Any], prefix: str = "") -> Profile:
    return Profile(
        id=row[f"{prefix}id"],
        user_id=row[f"{prefix}user_id"],
        email=row[f"{prefix}email"],
        full_name=row[f"{prefix}full_name"],
        phone=row[f"{prefix}phone"],
        role=UserRole(row[f"{prefix}role"]),
        rating=row[f"{prefix}rating"],
        total_ratings=row[f"{prefix}total_ratings"],
        created_at=row[f"{prefix}created_at"],
        updated_at=row[f"{prefix}updated_at"],
    )


def _row_to_application(row: Mapping[str, Any]) -> DriverApplication:
    driver = _row_to_profile(row, prefix="p_") if row["p_id"] is not None else None
    return DriverApplication(
        id=row["id"],
        driver_id=row["driver_id"],
        status=ApplicationStatus(row["status"]),
        has_criminal_record=row["has_criminal_record"],
        driving_experience_years=row["driving_experience_years"],
        previous_violations=row["previous_violations"],
        rejection_reason=row["rejection_reason"],
        reviewed_by=row["reviewed_by"],
        reviewed_at=row["reviewed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        driver=driver,
    )


def _to_db_value(value: Any) -> Any:
    if isinstance(value, (ApplicationStatus, UserRole)):
        return value.value
    return value


def _affected_rows(status: str) -> int:
    """Количество строк из статуса asyncpg, например "UPDATE 1" -> 1."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
