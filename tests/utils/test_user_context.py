"""Tests for utils/user_context.py - Caller identity propagation via contextvars."""

import pytest

from auth.types import TokenClaims
from utils.user_context import (
    get_current_claims,
    get_current_user_id,
    set_current_claims,
    clear_current_claims,
)


def _claims(user_id: int = 1, email: str = "foo@bar.com") -> TokenClaims:
    return TokenClaims(sub=str(user_id), email=email, iss="tallii", iat=1000, exp=2000)


class TestGetCurrentClaims:
    """Tests for get_current_claims()."""

    def test_raises_without_set(self):
        """Must raise RuntimeError when no caller is set."""
        with pytest.raises(RuntimeError, match="No authenticated caller"):
            get_current_claims()

    def test_user_id_raises_without_set(self):
        with pytest.raises(RuntimeError):
            get_current_user_id()


class TestSetAndClear:
    """Tests for set_current_claims() and clear_current_claims()."""

    def test_set_then_get_returns_claims(self):
        claims = _claims()
        set_current_claims(claims)
        assert get_current_claims() is claims

    def test_user_id_is_integer(self):
        """sub is carried as a string but the shortcut yields the int id."""
        set_current_claims(_claims(user_id=42))
        assert get_current_user_id() == 42

    def test_clear_then_get_raises(self):
        set_current_claims(_claims())
        clear_current_claims()
        with pytest.raises(RuntimeError):
            get_current_claims()
