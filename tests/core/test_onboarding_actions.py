# tests/core/test_onboarding_actions.py
"""
Тесты для разбора действий над заявкой.
"""

from __future__ import annotations

from uuid import UUID

import pytest

from src.core.onboarding.actions import (
    CheckStatus,
    Complete,
    Initiate,
    parse_action,
    parse_application_id,
)
from src.core.onboarding.errors import InvalidInput, UnknownAction

APP_ID = UUID("11111111-2222-3333-4444-555555555555")


class TestParseAction:
    @pytest.mark.parametrize(
        "name, expected",
        [("initiate", Initiate), ("check_status", CheckStatus), ("complete", Complete)],
    )
    def test_known_actions(self, name: str, expected: type) -> None:
        action = parse_action(name, APP_ID)

        assert isinstance(action, expected)
        assert action.application_id == APP_ID
        assert action.name == name

    @pytest.mark.parametrize("name", ["finalize", "INITIATE", "approve", 42])
    def test_unknown_action(self, name: object) -> None:
        with pytest.raises(UnknownAction, match=f"Unknown action: {name}"):
            parse_action(name, APP_ID)

    @pytest.mark.parametrize("name", [None, ""])
    def test_missing_action(self, name: object) -> None:
        with pytest.raises(InvalidInput):
            parse_action(name, APP_ID)


class TestParseApplicationId:
    def test_valid(self) -> None:
        assert parse_application_id(str(APP_ID)) == APP_ID

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, value: object) -> None:
        with pytest.raises(InvalidInput, match="Application ID is required"):
            parse_application_id(value)

    def test_malformed(self) -> None:
        with pytest.raises(InvalidInput, match="Invalid application ID"):
            parse_application_id("not-a-uuid")
