"""
Mint invitation keys directly in Postgres.

Usage:
  users-issue-keys [--count 5]

Prints one key per line. Keys are the only way to register, so hand them
out deliberately.
"""

import argparse
import logging
import sys

from auth.keys import InvitationKeyRegistry
from clients import environment
from clients.environment import ConfigurationError
from clients.postgres_client import PostgresClient

logger = logging.getLogger(__name__)


def issue_keys(registry: InvitationKeyRegistry, count: int) -> list[str]:
    return [str(key.id) for key in registry.issue(count)]


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Issue single-use invitation keys")
    ap.add_argument("--count", type=int, default=1, help="How many keys to mint (default: 1)")
    args = ap.parse_args(argv)

    if args.count < 1:
        ap.error("--count must be at least 1")

    try:
        database_url = environment.get_database_url()
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 1

    postgres = PostgresClient(database_url, min_connections=1, max_connections=2)
    try:
        for key in issue_keys(InvitationKeyRegistry(postgres), args.count):
            print(key)
    finally:
        postgres.close()

    logger.info(f"Issued {args.count} invitation key(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
