"""Audit trail for identity events.

Rows in security_events are only ever inserted. Passwords and tokens never
reach this table; callers describe failures through a short reason in
details instead.
"""

import json
import logging
from enum import Enum
from typing import Any

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    """What happened. Stored as the event_type column."""

    USER_CREATED = "user_created"
    SIGNUP_FAILED = "signup_failed"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"


def _storable(text: str | None) -> str | None:
    # Postgres text columns cannot hold NUL
    if text is None:
        return None
    return text.replace("\x00", "")


class SecurityLogger:
    """Appends rows to the security_events table."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        user_id: int | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> int:
        """Append one event; returns its row id."""
        record = {
            "event_type": event.value,
            "email": _storable(email),
            "user_id": user_id,
            "ip_address": ip_address,
            "user_agent": _storable(user_agent),
            "details": json.dumps(details) if details else None,
            "created_at": now_utc(),
        }
        columns = ", ".join(record)
        placeholders = ", ".join(f"%({name})s" for name in record)

        rows = self._db.execute_returning(
            f"INSERT INTO security_events ({columns}) VALUES ({placeholders}) RETURNING id",
            record,
        )
        event_id = rows[0]["id"]
        logger.info(f"Security event {event_id}: {event.value} (user_id={user_id})")
        return event_id
