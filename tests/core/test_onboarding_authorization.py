# tests/core/test_onboarding_authorization.py
"""
Тесты для ворот авторизации.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.common.constants import UserRole
from src.core.onboarding.authorization import AuthorizationGate
from src.core.onboarding.errors import Forbidden, Unauthenticated
from src.core.onboarding.models import Profile
from src.infra.identity import AuthError, IdentityProvider, UserIdentity


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(id="00000000-0000-0000-0000-00000000a001", email="admin@example.com")


@pytest.fixture
def mock_identity_provider(identity: UserIdentity) -> MagicMock:
    provider = MagicMock(spec=IdentityProvider)
    provider.resolve_user = AsyncMock(return_value=identity)
    return provider


@pytest.fixture
def gate(mock_identity_provider: MagicMock, mock_repository: MagicMock) -> AuthorizationGate:
    return AuthorizationGate(mock_identity_provider, mock_repository)


class TestExtractToken:
    def test_bearer_token(self) -> None:
        assert AuthorizationGate.extract_token("Bearer abc.def") == "abc.def"

    def test_scheme_is_case_insensitive(self) -> None:
        assert AuthorizationGate.extract_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, ""])
    def test_missing_header(self, header: str | None) -> None:
        with pytest.raises(Unauthenticated, match="Authorization header is missing"):
            AuthorizationGate.extract_token(header)

    def test_wrong_scheme(self) -> None:
        with pytest.raises(Unauthenticated):
            AuthorizationGate.extract_token("Basic dXNlcjpwYXNz")

    def test_empty_token(self) -> None:
        with pytest.raises(Unauthenticated, match="User not authenticated"):
            AuthorizationGate.extract_token("Bearer   ")


class TestAuthorizationGate:
    @pytest.mark.asyncio
    async def test_authorize_admin(
        self,
        gate: AuthorizationGate,
        mock_identity_provider: MagicMock,
        mock_repository: MagicMock,
        admin_profile: Profile,
        identity: UserIdentity,
    ) -> None:
        context = await gate.authorize("Bearer token-1")

        assert context.profile == admin_profile
        assert context.identity == identity
        assert context.reviewer_id == admin_profile.id
        mock_identity_provider.resolve_user.assert_awaited_once_with("token-1")
        mock_repository.get_profile_by_user_id.assert_awaited_once_with(identity.id)

    @pytest.mark.asyncio
    async def test_rejected_token(
        self,
        gate: AuthorizationGate,
        mock_identity_provider: MagicMock,
        mock_repository: MagicMock,
    ) -> None:
        mock_identity_provider.resolve_user.side_effect = AuthError("Authentication error: invalid JWT")

        with pytest.raises(Unauthenticated, match="invalid JWT"):
            await gate.authorize("Bearer expired")

        mock_repository.get_profile_by_user_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(
        self,
        gate: AuthorizationGate,
        mock_repository: MagicMock,
        admin_profile: Profile,
    ) -> None:
        mock_repository.get_profile_by_user_id.return_value = admin_profile.model_copy(
            update={"role": UserRole.DRIVER}
        )

        with pytest.raises(Forbidden, match="Only admins can perform background checks"):
            await gate.authorize("Bearer token")

    @pytest.mark.asyncio
    async def test_missing_profile_forbidden(
        self,
        gate: AuthorizationGate,
        mock_repository: MagicMock,
    ) -> None:
        mock_repository.get_profile_by_user_id.return_value = None

        with pytest.raises(Forbidden):
            await gate.authorize("Bearer token")

    @pytest.mark.asyncio
    async def test_role_is_read_on_every_call(
        self,
        gate: AuthorizationGate,
        mock_repository: MagicMock,
        admin_profile: Profile,
    ) -> None:
        """Снятие роли admin действует на следующий же запрос."""
        await gate.authorize("Bearer token")

        mock_repository.get_profile_by_user_id.return_value = admin_profile.model_copy(
            update={"role": UserRole.RIDER}
        )
        with pytest.raises(Forbidden):
            await gate.authorize("Bearer token")

        assert mock_repository.get_profile_by_user_id.await_count == 2
