"""
Storage for scraped jobs and the filter catalogs (job types, locations,
categories).

The crawler only depends on the JobStore protocol. PostgresJobStore is the
psycopg2 implementation; every call runs in its own transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

import psycopg2
from psycopg2.extras import RealDictCursor, execute_values
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.errors import PersistenceFailed
from crawler.models import FilterKind, FilterOption, JobRecord

logger = logging.getLogger(__name__)

# Filter kind -> table. Table names are never taken from user input.
FILTER_TABLES: Dict[FilterKind, str] = {
    FilterKind.TYPE: "job_types",
    FilterKind.LOCATION: "locations",
    FilterKind.CATEGORY: "categories",
}

JOB_COLUMNS = (
    "id", "external_id", "title", "company", "company_img_url",
    "type", "location", "category", "type_id", "location_id", "category_id",
    "published_at", "deadline_at",
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS job_types (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    value INTEGER NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS locations (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    value INTEGER NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    value INTEGER NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS jobs (
    id UUID PRIMARY KEY,
    external_id BIGINT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    company TEXT NOT NULL DEFAULT '',
    company_img_url TEXT NOT NULL DEFAULT '',
    type TEXT NOT NULL,
    location TEXT NOT NULL,
    category TEXT NOT NULL,
    type_id INTEGER REFERENCES job_types(id),
    location_id INTEGER REFERENCES locations(id),
    category_id INTEGER REFERENCES categories(id),
    published_at TIMESTAMP NOT NULL,
    deadline_at TIMESTAMP NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMP NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS jobs_deadline_at_idx ON jobs (deadline_at);
"""


@dataclass
class UpsertCounts:
    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated


class JobStore(Protocol):
    def upsert_jobs_by_external_id(self, records: List[JobRecord]) -> UpsertCounts: ...

    def list_all_jobs(self) -> List[JobRecord]: ...

    def count_jobs(self) -> int: ...

    def delete_all_jobs(self) -> int: ...

    def delete_jobs_with_deadline_before(self, now: datetime) -> int: ...

    def list_filter_options(self, kind: FilterKind) -> List[FilterOption]: ...

    def seed_filter_options(self, kind: FilterKind, options: Iterable[FilterOption]) -> int: ...


def _row_to_job(row: Dict) -> JobRecord:
    return JobRecord(
        id=str(row["id"]),
        external_id=int(row["external_id"]),
        title=row["title"],
        company=row["company"],
        company_img_url=row["company_img_url"],
        type=row["type"],
        location=row["location"],
        category=row["category"],
        type_id=row.get("type_id"),
        location_id=row.get("location_id"),
        category_id=row.get("category_id"),
        published_at=row["published_at"],
        deadline_at=row["deadline_at"],
    )


class PostgresJobStore:
    """JobStore backed by PostgreSQL via psycopg2"""

    def __init__(self, db_url: Optional[str] = None, conn_params: Optional[Dict] = None,
                 connect_timeout: int = 10):
        if not db_url and not conn_params:
            raise ValueError("PostgresJobStore needs a db_url or conn_params")
        self.db_url = db_url
        self.conn_params = conn_params
        self.connect_timeout = connect_timeout

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(psycopg2.OperationalError),
        reraise=True,
    )
    def _get_db_conn(self):
        """Get database connection, retrying transient connection errors"""
        if self.conn_params:
            return psycopg2.connect(**self.conn_params, connect_timeout=self.connect_timeout)
        return psycopg2.connect(self.db_url, connect_timeout=self.connect_timeout)

    def _connect(self, operation: str):
        try:
            return self._get_db_conn()
        except psycopg2.Error as e:
            logger.error(f"[job_store] Database connection failed ({operation}): {e}")
            raise PersistenceFailed(operation, e) from e

    def _run(self, operation: str, work, cursor_factory=None):
        """Run `work(cursor)` in one transaction, wrapping errors as PersistenceFailed"""
        conn = self._connect(operation)
        try:
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                result = work(cur)
            conn.commit()
            return result
        except Exception as e:
            conn.rollback()
            logger.error(f"[job_store] Failed to {operation}: {e}")
            raise PersistenceFailed(operation, e) from e
        finally:
            conn.close()

    def ensure_schema(self):
        self._run("create schema", lambda cur: cur.execute(SCHEMA_SQL))
        logger.info("[job_store] Schema ensured")

    def upsert_jobs_by_external_id(self, records: List[JobRecord]) -> UpsertCounts:
        """
        Insert new jobs and update existing ones in place, keyed by
        external_id. The surrogate id of an existing row is kept.
        """
        if not records:
            return UpsertCounts()

        logger.info(f"[job_store] Saving {len(records)} jobs to database")
        # One statement cannot touch the same conflict key twice; first record wins
        unique: Dict[int, JobRecord] = {}
        for record in records:
            unique.setdefault(record.external_id, record)
        rows = [tuple(getattr(record, column) for column in JOB_COLUMNS) for record in unique.values()]
        update_columns = [c for c in JOB_COLUMNS if c not in ("id", "external_id")]
        sql = f"""
            INSERT INTO jobs ({", ".join(JOB_COLUMNS)})
            VALUES %s
            ON CONFLICT (external_id) DO UPDATE SET
                {", ".join(f"{c} = EXCLUDED.{c}" for c in update_columns)},
                updated_at = NOW()
            RETURNING (xmax = 0) AS inserted
        """

        def work(cur):
            flags = execute_values(cur, sql, rows, page_size=500, fetch=True)
            inserted = sum(1 for (flag,) in flags if flag)
            return UpsertCounts(inserted=inserted, updated=len(flags) - inserted)

        counts = self._run("save scraped jobs", work)
        logger.info(
            f"[job_store] Successfully saved jobs to database: total={len(records)} "
            f"inserted={counts.inserted} updated={counts.updated}"
        )
        return counts

    def list_all_jobs(self) -> List[JobRecord]:
        def work(cur):
            cur.execute(f"SELECT {', '.join(JOB_COLUMNS)} FROM jobs ORDER BY created_at DESC")
            return [_row_to_job(dict(row)) for row in cur.fetchall()]

        jobs = self._run("fetch scraped jobs", work, cursor_factory=RealDictCursor)
        logger.debug(f"[job_store] Retrieved {len(jobs)} jobs from database")
        return jobs

    def count_jobs(self) -> int:
        def work(cur):
            cur.execute("SELECT COUNT(*) FROM jobs")
            return cur.fetchone()[0]

        return self._run("get jobs count", work)

    def delete_all_jobs(self) -> int:
        logger.warning("[job_store] Deleting all scraped jobs from database")

        def work(cur):
            cur.execute("DELETE FROM jobs")
            return cur.rowcount

        deleted = self._run("delete scraped jobs", work)
        logger.info(f"[job_store] Deleted {deleted} jobs from database")
        return deleted

    def delete_jobs_with_deadline_before(self, now: datetime) -> int:
        def work(cur):
            cur.execute("DELETE FROM jobs WHERE deadline_at < %s", (now,))
            return cur.rowcount

        deleted = self._run("delete expired jobs", work)
        logger.info(f"[job_store] Deleted {deleted} expired jobs (deadline before {now.isoformat()})")
        return deleted

    def list_filter_options(self, kind: FilterKind) -> List[FilterOption]:
        table = FILTER_TABLES[FilterKind(kind)]

        def work(cur):
            cur.execute(f"SELECT id, name, value FROM {table} ORDER BY id ASC")
            return [FilterOption(id=row[0], name=row[1], value=row[2]) for row in cur.fetchall()]

        options = self._run(f"fetch {table}", work)
        logger.debug(f"[job_store] Retrieved {len(options)} rows from {table}")
        return options

    def seed_filter_options(self, kind: FilterKind, options: Iterable[FilterOption]) -> int:
        """Bulk insert filter options, skipping ones that already exist"""
        table = FILTER_TABLES[FilterKind(kind)]
        rows = [(o.id, o.name, o.value) for o in options]
        if not rows:
            return 0

        def work(cur):
            created = execute_values(
                cur,
                f"INSERT INTO {table} (id, name, value) VALUES %s ON CONFLICT DO NOTHING RETURNING id",
                rows,
                fetch=True,
            )
            return len(created)

        created = self._run(f"seed {table}", work)
        logger.info(f"[job_store] Seeded {table}: created={created} skipped={len(rows) - created}")
        return created
