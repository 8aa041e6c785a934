"""
PostgreSQL access over a shared psycopg2 ThreadedConnectionPool.

One statement, one borrowed connection, one transaction. The connection goes
back to the pool however the statement ends; on failure it is rolled back
first so the next borrower never inherits an aborted transaction.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Sequence, Tuple, TypeVar
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None
T = TypeVar("T")


def _adapt(value: Any) -> Any:
    """UUIDs go over the wire as text; containers are adapted recursively."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple)):
        return type(value)(_adapt(v) for v in value)
    if isinstance(value, dict):
        return {k: _adapt(v) for k, v in value.items()}
    return value


def _all_rows(cur) -> List[Dict[str, Any]]:
    return [dict(row) for row in cur.fetchall()] if cur.description else []


def _first_value(cur) -> Any:
    row = cur.fetchone()
    return row[0] if row else None


class PostgresClient:
    """
    Thread-safe query helper. Pools are shared per database URL.

    Usage:
        db = PostgresClient(database_url)
        users = db.execute("SELECT id, email FROM users ORDER BY id")
        taken = db.execute_scalar("SELECT EXISTS (SELECT 1 FROM users WHERE key_id = %s)", (key_id,))

    psycopg2.Error (UniqueViolation, ForeignKeyViolation, ...) and
    psycopg2.pool.PoolError reach the caller untouched.
    """

    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        """This URL's pool, opened on first use."""
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                self._pools[self._database_url] = pool
                logger.info(
                    "Opened connection pool (min=%d, max=%d)",
                    self._min_connections,
                    self._max_connections,
                )
            return pool

    @contextmanager
    def get_connection(self):
        """Borrow a connection for the duration of the block.

        Raises:
            psycopg2.pool.PoolError: Pool exhausted or closed.
        """
        pool = self._pool()
        conn = pool.getconn()
        try:
            yield conn
        except Exception:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def _run(self, query: str, params: Params, fetch: Callable[[Any], T], as_dicts: bool = True) -> T:
        cursor_factory = psycopg2.extras.RealDictCursor if as_dicts else None
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                cur.execute(query, _adapt(params))
                result = fetch(cur)
            conn.commit()
            return result

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Rows as dicts; [] for statements that return nothing."""
        return self._run(query, params, _all_rows)

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """First column of the first row, or None."""
        return self._run(query, params, _first_value, as_dicts=False)

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """INSERT/UPDATE ... RETURNING, committed before the rows are handed back."""
        return self._run(query, params, _all_rows)

    def execute_many_returning(self, query: str, params_seq: Sequence[Tuple]) -> List[Dict[str, Any]]:
        """Same RETURNING statement once per params tuple, all in one transaction."""
        rows: List[Dict[str, Any]] = []
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                for params in params_seq:
                    cur.execute(query, _adapt(params))
                    rows.extend(dict(row) for row in cur.fetchall())
            conn.commit()
        return rows

    def close(self) -> None:
        with self._pools_lock:
            pool = self._pools.pop(self._database_url, None)
            if pool is not None:
                pool.closeall()

    @classmethod
    def close_all_pools(cls) -> None:
        """Close every pool opened in this process (shutdown hook)."""
        with cls._pools_lock:
            for pool in cls._pools.values():
                pool.closeall()
            cls._pools.clear()
