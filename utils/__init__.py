"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, to_epoch_seconds
from utils.user_context import (
    get_current_claims,
    get_current_user_id,
    set_current_claims,
    clear_current_claims,
)
