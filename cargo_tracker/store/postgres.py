"""
PostgreSQL-backed cargo store.

Documents are kept as JSONB, one row per record, keyed by collection path
and id so several applications can share one table.
"""

import uuid
from contextlib import contextmanager

import psycopg
from psycopg.types.json import Jsonb

from cargo_tracker.observability.logger import get_logger
from cargo_tracker.store.base import CargoStore, RawDocument
from cargo_tracker.store.connection import DatabaseConnectionPool
from cargo_tracker.store.errors import RecordNotFoundError, StoreError, StoreUnavailableError

logger = get_logger(__name__)

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS cargo_item (
        collection_path TEXT NOT NULL,
        id TEXT NOT NULL,
        data JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ,
        PRIMARY KEY (collection_path, id)
    )
"""


@contextmanager
def _translate_errors(operation: str):
    """Re-raise psycopg failures as store errors."""
    try:
        yield
    except psycopg.OperationalError as e:
        raise StoreUnavailableError(
            f"Store unavailable during {operation}: {e}",
            user_message=f"The cargo database is unavailable ({e}).",
        ) from e
    except psycopg.Error as e:
        raise StoreError(f"Store failure during {operation}: {e}") from e


class PostgresCargoStore(CargoStore):
    """
    Cargo store over a PostgreSQL table.

    Subscribers are refreshed after writes made through this instance;
    writes by other processes show up on their next snapshot.
    """

    def __init__(self, pool: DatabaseConnectionPool, collection_path: str):
        """
        Initialize the store.

        Args:
            pool: Open database connection pool
            collection_path: Collection whose documents this store manages
        """
        super().__init__(collection_path)
        self.pool = pool

    def ensure_schema(self) -> None:
        """Create the cargo_item table if it does not exist."""
        with _translate_errors("ensure_schema"):
            self.pool.execute_command(CREATE_TABLE_SQL)
        logger.info("Cargo table ready", extra={"collection": self.collection_path})

    def snapshot(self) -> list[RawDocument]:
        query = """
            SELECT id, data
            FROM cargo_item
            WHERE collection_path = %s
            ORDER BY created_at, id
        """
        with _translate_errors("snapshot"):
            rows = self.pool.execute_query(query, (self.collection_path,))
        return [{"id": row["id"], **row["data"]} for row in rows]

    def _create(self, document: RawDocument) -> str:
        record_id = uuid.uuid4().hex
        command = """
            INSERT INTO cargo_item (collection_path, id, data)
            VALUES (%s, %s, %s)
        """
        with _translate_errors("create"):
            self.pool.execute_command(command, (self.collection_path, record_id, Jsonb(document)))
        return record_id

    def _update(self, record_id: str, document: RawDocument) -> None:
        command = """
            UPDATE cargo_item
            SET data = %s, updated_at = NOW()
            WHERE collection_path = %s AND id = %s
        """
        with _translate_errors("update"):
            rowcount = self.pool.execute_command(command, (Jsonb(document), self.collection_path, record_id))
        if rowcount == 0:
            raise RecordNotFoundError(record_id)

    def _delete(self, record_id: str) -> None:
        command = "DELETE FROM cargo_item WHERE collection_path = %s AND id = %s"
        with _translate_errors("delete"):
            rowcount = self.pool.execute_command(command, (self.collection_path, record_id))
        if rowcount == 0:
            raise RecordNotFoundError(record_id)
