# src/core/onboarding/authorization.py
"""
Проверка доступа к действиям над заявками.
Каждый запрос проходит аутентификацию и проверку роли admin.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.common.logger import log_warning
from src.core.onboarding.errors import Forbidden, Unauthenticated
from src.core.onboarding.models import Profile
from src.core.onboarding.repository import ApplicationRepository
from src.infra.identity import AuthError, IdentityProvider, UserIdentity

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class AdminContext:
    """Проверенный администратор, выполняющий действие."""

    identity: UserIdentity
    profile: Profile

    @property
    def reviewer_id(self):
        """ID профиля, записываемый в reviewed_by."""
        return self.profile.id


class AuthorizationGate:
    """
    Ворота авторизации.

    Роль читается из БД при каждом запросе, без кэша:
    снятие прав администратора действует немедленно.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        repository: ApplicationRepository,
    ) -> None:
        self._identity_provider = identity_provider
        self._repository = repository

    @staticmethod
    def extract_token(authorization: str | None) -> str:
        """
        Достаёт токен из заголовка "Bearer <token>".

        Raises:
            Unauthenticated: Заголовок отсутствует или имеет другой формат
        """
        if not authorization:
            raise Unauthenticated("Authorization header is missing")

        if not authorization.lower().startswith(BEARER_PREFIX):
            raise Unauthenticated("Authentication error: invalid authorization scheme")

        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise Unauthenticated("User not authenticated")
        return token

    async def authenticate(self, authorization: str | None) -> UserIdentity:
        """
        Определяет пользователя по заголовку Authorization.

        Raises:
            Unauthenticated: Токен отсутствует или отклонён
        """
        token = self.extract_token(authorization)
        try:
            return await self._identity_provider.resolve_user(token)
        except AuthError as e:
            raise Unauthenticated(str(e)) from e

    async def require_admin(self, identity: UserIdentity) -> Profile:
        """
        Проверяет, что у пользователя роль admin.

        Raises:
            Forbidden: Профиль не найден или роль не admin
        """
        profile = await self._repository.get_profile_by_user_id(identity.id)
        if profile is None or not profile.is_admin:
            await log_warning(
                f"Отказано в доступе пользователю {identity.id}",
                extra={"user_id": identity.id, "role": str(profile.role) if profile else None},
            )
            raise Forbidden("Only admins can perform background checks")
        return profile

    async def authorize(self, authorization: str | None) -> AdminContext:
        """Аутентификация и проверка роли admin."""
        identity = await self.authenticate(authorization)
        profile = await self.require_admin(identity)
        return AdminContext(identity=identity, profile=profile)
