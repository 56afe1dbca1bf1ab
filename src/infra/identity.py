# src/infra/identity.py
"""
Клиент провайдера идентификации.
Проверяет bearer-токен пользователя через GET /auth/v1/user.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ValidationError

from src.common.logger import log_debug, log_warning


class UserIdentity(BaseModel):
    """Пользователь, которому принадлежит токен."""
    id: str
    email: str | None = None


class AuthError(Exception):
    """Токен отсутствует, невалиден или отклонён провайдером."""
    pass


class IdentityProvider:
    """
    HTTP клиент к серверу авторизации.

    Публичный (anon) ключ передаётся в заголовке apikey,
    пользовательский токен в Authorization.
    """

    def __init__(
        self,
        user_endpoint: str,
        anon_key: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._user_endpoint = user_endpoint
        self._anon_key = anon_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def resolve_user(self, token: str) -> UserIdentity:
        """
        Возвращает пользователя по токену.

        Raises:
            AuthError: Токен пустой, отклонён или провайдер недоступен
        """
        if not token:
            raise AuthError("User not authenticated")

        try:
            response = await self._client.get(
                self._user_endpoint,
                headers={
                    "Authorization": f"Bearer {token}",
                    "apikey": self._anon_key,
                },
            )
        except httpx.HTTPError as e:
            await log_warning(f"Провайдер идентификации недоступен: {e}")
            raise AuthError(f"Authentication error: {e}") from e

        if response.status_code != 200:
            message = _extract_error_message(response)
            await log_debug(f"Токен отклонён провайдером: {response.status_code} {message}")
            raise AuthError(f"Authentication error: {message}")

        try:
            identity = UserIdentity.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthError("User not authenticated") from e

        return identity

    async def close(self) -> None:
        """Закрывает HTTP клиент, если он создан провайдером."""
        if self._owns_client:
            await self._client.aclose()


def _extract_error_message(response: httpx.Response) -> str:
    """Достаёт текст ошибки из ответа провайдера."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(data, dict):
        for key in ("msg", "message", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    return f"HTTP {response.status_code}"
