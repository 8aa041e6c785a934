"""Invitation key registry.

A key has no "used" flag. It is consumed the moment a user row references
it, so availability is derived from the keys and users tables together.
That check is only a pre-filter: the unique index on users.key_id is what
actually stops a key from being redeemed twice.
"""

from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from auth.types import InvitationKey


class InvitationKeyRegistry:
    """Lookups and administrative issuance for invitation keys."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def exists(self, key_id: UUID) -> bool:
        """True iff a key row with this id exists."""
        found = self._db.execute_scalar(
            "SELECT EXISTS (SELECT 1 FROM keys WHERE id = %s)",
            (key_id,),
        )
        return bool(found)

    def is_available(self, key_id: UUID) -> bool:
        """True iff the key exists and no user references it."""
        available = self._db.execute_scalar(
            """SELECT EXISTS (SELECT 1 FROM keys WHERE id = %s)
                      AND NOT EXISTS (SELECT 1 FROM users WHERE key_id = %s)""",
            (key_id, key_id),
        )
        return bool(available)

    def issue(self, count: int = 1) -> list[InvitationKey]:
        """Mint fresh random keys. Administrative use only.

        Raises:
            ValueError: count is not positive.
        """
        if count < 1:
            raise ValueError("count must be at least 1")

        rows = self._db.execute_many_returning(
            "INSERT INTO keys (id) VALUES (%s) RETURNING id",
            [(uuid4(),) for _ in range(count)],
        )
        return [InvitationKey(id=row["id"]) for row in rows]
