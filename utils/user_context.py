"""Propagate the authenticated caller's token claims using contextvars."""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auth.types import TokenClaims

_current_claims: ContextVar[TokenClaims | None] = ContextVar("current_claims", default=None)


def get_current_claims() -> TokenClaims:
    """
    Get the decoded token claims of the current request.

    Raises RuntimeError if no claims are set.
    This is fail-fast behavior - if you're in a code path that
    requires an authenticated caller and there isn't one, that's a bug.
    """
    claims = _current_claims.get()
    if claims is None:
        raise RuntimeError(
            "No authenticated caller. This usually means you're calling "
            "protected code outside of a bearer-authenticated request."
        )
    return claims


def get_current_user_id() -> int:
    """Shortcut for the authenticated caller's user id."""
    return get_current_claims().user_id


def set_current_claims(claims: TokenClaims) -> None:
    """
    Set the current caller's claims.

    Called by the bearer middleware after validating the token.
    """
    _current_claims.set(claims)


def clear_current_claims() -> None:
    """
    Clear caller context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_claims.set(None)
