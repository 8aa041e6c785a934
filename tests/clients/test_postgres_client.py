"""Tests for PostgresClient - pooled PostgreSQL access."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import psycopg2
import pytest

from clients.postgres_client import PostgresClient, _adapt

DSN = "postgresql://test@localhost/unit"


@pytest.fixture
def fake_pool(monkeypatch):
    """Replace the pool factory with a mock; isolate the class-level registry."""
    monkeypatch.setattr(PostgresClient, "_pools", {})

    conn = MagicMock()
    conn.closed = 0
    cur = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur

    pool = MagicMock()
    pool.getconn.return_value = conn

    with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool", return_value=pool) as factory:
        yield factory, pool, conn, cur


class TestPoolLifecycle:
    """Pool creation and teardown."""

    def test_pool_shared_per_url(self, fake_pool):
        """Two clients on the same URL reuse one pool."""
        factory, _, _, _ = fake_pool
        PostgresClient(DSN)
        PostgresClient(DSN)
        assert factory.call_count == 1

    def test_pool_sizes_passed_through(self, fake_pool):
        factory, _, _, _ = fake_pool
        PostgresClient(DSN, min_connections=1, max_connections=5)
        kwargs = factory.call_args.kwargs
        assert kwargs["minconn"] == 1
        assert kwargs["maxconn"] == 5
        assert kwargs["dsn"] == DSN

    def test_close_removes_pool(self, fake_pool):
        _, pool, _, _ = fake_pool
        client = PostgresClient(DSN)
        client.close()
        pool.closeall.assert_called_once()
        assert DSN not in PostgresClient._pools

    def test_close_all_pools(self, fake_pool):
        _, pool, _, _ = fake_pool
        PostgresClient(DSN)
        PostgresClient.close_all_pools()
        pool.closeall.assert_called_once()
        assert PostgresClient._pools == {}


class TestConnectionHandling:
    """Borrowed connections always go back to the pool."""

    def test_returns_connection_on_success(self, fake_pool):
        _, pool, conn, cur = fake_pool
        cur.description = [("n",)]
        cur.fetchall.return_value = [{"n": 1}]

        PostgresClient(DSN).execute("SELECT 1 AS n")

        conn.commit.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_rolls_back_and_returns_on_error(self, fake_pool):
        """A failed statement is rolled back before the connection is reused."""
        _, pool, conn, cur = fake_pool
        cur.execute.side_effect = psycopg2.Error("boom")

        with pytest.raises(psycopg2.Error):
            PostgresClient(DSN).execute("SELECT broken")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_skips_rollback_on_closed_connection(self, fake_pool):
        _, pool, conn, cur = fake_pool
        conn.closed = 1
        cur.execute.side_effect = psycopg2.OperationalError("server closed the connection")

        with pytest.raises(psycopg2.OperationalError):
            PostgresClient(DSN).execute_scalar("SELECT 1")

        conn.rollback.assert_not_called()
        pool.putconn.assert_called_once_with(conn)


class TestParamConversion:
    """UUID parameters are sent as strings."""

    def test_uuid_converted(self, fake_pool):
        _, _, _, cur = fake_pool
        cur.fetchone.return_value = (True,)
        key = uuid4()

        PostgresClient(DSN).execute_scalar("SELECT EXISTS (SELECT 1 FROM keys WHERE id = %s)", (key,))

        cur.execute.assert_called_once_with(
            "SELECT EXISTS (SELECT 1 FROM keys WHERE id = %s)", (str(key),)
        )

    def test_nested_values_converted(self):
        key = uuid4()
        assert _adapt({"ids": [key], "n": 3}) == {"ids": [str(key)], "n": 3}

    def test_none_passes_through(self):
        assert _adapt(None) is None


class TestExecuteManyReturning:
    """Batch RETURNING statements commit once."""

    def test_collects_rows_in_one_transaction(self, fake_pool):
        _, pool, conn, cur = fake_pool
        first, second = uuid4(), uuid4()
        cur.fetchall.side_effect = [[{"id": first}], [{"id": second}]]

        rows = PostgresClient(DSN).execute_many_returning(
            "INSERT INTO keys (id) VALUES (%s) RETURNING id", [(first,), (second,)]
        )

        assert rows == [{"id": first}, {"id": second}]
        assert cur.execute.call_count == 2
        conn.commit.assert_called_once()
        pool.getconn.assert_called_once()


class TestLiveQueries:
    """Query execution against a real database."""

    def test_execute_returns_list_of_dicts(self, db):
        assert db.execute("SELECT 1 as num, 'hello' as word") == [{"num": 1, "word": "hello"}]

    def test_execute_empty_returns_empty_list(self, db):
        """No matching rows returns [], not None."""
        assert db.execute("SELECT 1 WHERE false") == []

    def test_execute_single_no_rows_returns_none(self, db):
        assert db.execute_single("SELECT 1 WHERE false") is None

    def test_execute_scalar_returns_value(self, db):
        assert db.execute_scalar("SELECT 'test'") == "test"

    def test_failed_statement_does_not_poison_pool(self, db):
        """After an error the next statement on the pool still works."""
        with pytest.raises(psycopg2.Error):
            db.execute("SELECT * FROM no_such_table")
        assert db.execute_scalar("SELECT 1") == 1
