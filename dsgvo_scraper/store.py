"""PostgreSQL storage for incidents and raw list payloads."""

import logging
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json

from .errors import ConflictError, StorageError
from .models import IncidentRecord

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "postgres://postgres@localhost:5432/dsgvo"
SCHEMA_FILE = Path(__file__).parent / "schema.sql"
REQUIRED_TABLES = ("incidents", "incident_history")

INSERT_INCIDENT_SQL = """
    INSERT INTO incidents (
        incident_id, org_publish_date, modified_date, published, publish_date,
        affected_obj, affected_type, country, details_text, tags, href,
        "references", incident_text
    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s)
"""


def connect(database_url: str = DEFAULT_DATABASE_URL) -> "psycopg2.extensions.connection":
    """Open a connection to the database."""
    logger.debug("Using database url: %s", database_url)
    try:
        return psycopg2.connect(database_url)
    except psycopg2.Error as e:
        raise StorageError(f"Failed to connect to database: {e}") from e


class IncidentStore:
    """Wraps one psycopg2 connection; one statement or transaction at a time."""

    def __init__(self, conn: "psycopg2.extensions.connection"):
        self.conn = conn

    @contextmanager
    def _cursor(self, action: str):
        """Cursor inside a transaction that commits on success and rolls back on error."""
        try:
            with self.conn:
                with self.conn.cursor() as cur:
                    yield cur
        except pg_errors.UniqueViolation:
            raise
        except psycopg2.Error as e:
            raise StorageError(f"Failed to {action}: {e}") from e

    def tables_exist(self) -> bool:
        """Check that both required tables are present in the public schema."""
        with self._cursor("verify tables") as cur:
            cur.execute(
                """
                SELECT table_name FROM information_schema.tables
                WHERE table_schema = 'public' AND table_name IN %s
                """,
                (REQUIRED_TABLES,),
            )
            tables = {row[0] for row in cur.fetchall()}
        logger.debug(
            "Found %d tables in database: %s, expected: %s",
            len(tables), sorted(tables), ", ".join(REQUIRED_TABLES),
        )
        return tables == set(REQUIRED_TABLES)

    def get_persisted_ids(self) -> set[int]:
        """Return every incident_id currently stored."""
        with self._cursor("fetch existing incident ids") as cur:
            cur.execute("SELECT incident_id FROM incidents")
            ids = {row[0] for row in cur.fetchall()}
        logger.debug("Found %d existing incident ids", len(ids))
        return ids

    def archive_raw_list(self, payload: str) -> None:
        """Append a raw list payload to incident_history."""
        logger.debug("Storing raw incident history (%d bytes)", len(payload))
        with self._cursor("store raw response") as cur:
            cur.execute("INSERT INTO incident_history (content) VALUES (%s::jsonb)", (payload,))

    def insert_incident(self, record: IncidentRecord) -> None:
        """Insert one incident row atomically.

        Raises ConflictError if the id is already stored.
        """
        try:
            with self._cursor(f"store incident {record.incident_id}") as cur:
                cur.execute(
                    INSERT_INCIDENT_SQL,
                    (
                        record.incident_id,
                        record.org_publish_date,
                        record.modified_date,
                        record.published,
                        record.publish_date,
                        record.affected_obj,
                        record.affected_type,
                        record.country,
                        record.details_text,
                        record.tags,
                        record.href,
                        Json(record.references),
                        record.incident_text,
                    ),
                )
        except pg_errors.UniqueViolation as e:
            raise ConflictError(record.incident_id) from e
        logger.info("Successfully stored incident %d", record.incident_id)

    def apply_schema(self, schema_path: Path = SCHEMA_FILE) -> None:
        """Create the tables from schema.sql if they do not exist yet."""
        sql = schema_path.read_text(encoding="utf-8")
        with self._cursor("create tables") as cur:
            cur.execute(sql)
        logger.info("Applied schema from %s", schema_path)

    def close(self) -> None:
        self.conn.close()
