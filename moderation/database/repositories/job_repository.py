from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from moderation.database.connection import get_connection
from moderation.queue.base import BaseJobStore
from moderation.queue.models import JobStatus, ModerationJob, QueueStats

SCHEMA = """
CREATE TABLE IF NOT EXISTS moderation_queue (
    id BIGSERIAL PRIMARY KEY,
    document_id TEXT NOT NULL,
    file_path TEXT NOT NULL,
    file_type TEXT NOT NULL,
    metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
    status TEXT NOT NULL DEFAULT 'queued',
    attempt INTEGER NOT NULL DEFAULT 0,
    last_error TEXT,
    enqueued_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    available_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    locked_at TIMESTAMPTZ,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS moderation_queue_active_document
    ON moderation_queue (document_id)
    WHERE status IN ('queued', 'retry_wait', 'in_progress');
CREATE INDEX IF NOT EXISTS moderation_queue_claimable
    ON moderation_queue (available_at)
    WHERE status IN ('queued', 'retry_wait');
"""

STALE_CLAIM_ERROR = "Worker stopped responding while processing the job"

_COLUMNS = """
    id, document_id, file_path, file_type, metadata, status, attempt,
    last_error, enqueued_at, available_at
"""


class JobRepository(BaseJobStore):
    """PostgreSQL-backed job store on the moderation_queue table.

    Dedup relies on a partial unique index over active statuses. Claiming
    uses SELECT FOR UPDATE SKIP LOCKED. Jobs left in_progress longer than
    stale_after_seconds (a crashed worker) become claimable again with the
    lost attempt counted, so a document that keeps killing its worker still
    runs out of attempts.
    """

    def __init__(self, stale_after_seconds: float) -> None:
        self._stale_after_seconds = stale_after_seconds

    def init(self) -> None:
        """Create the moderation_queue table and indexes if missing."""
        with get_connection() as conn:
            conn.execute(SCHEMA)
            conn.commit()

    def enqueue(self, job: ModerationJob) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO moderation_queue
                        (document_id, file_path, file_type, metadata, status, attempt)
                    VALUES (%s, %s, %s, %s, 'queued', 0)
                    ON CONFLICT (document_id)
                        WHERE status IN ('queued', 'retry_wait', 'in_progress')
                        DO NOTHING
                    """,
                    (job.document_id, job.file_path, job.file_type, Jsonb(job.metadata)),
                )
                inserted = cur.rowcount == 1
            conn.commit()
        return inserted

    def claim_next(self) -> ModerationJob | None:
        """Claim the next available job using SELECT FOR UPDATE SKIP LOCKED."""
        with get_connection() as conn:
            return self._claim_next(conn)

    def _claim_next(self, conn: psycopg.Connection[Any]) -> ModerationJob | None:
        """Claim a job. A reclaimed stale job is charged the attempt its lost worker made."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id
                FROM moderation_queue
                WHERE (status IN ('queued', 'retry_wait') AND available_at <= NOW())
                   OR (status = 'in_progress'
                       AND locked_at < NOW() - make_interval(secs => %s))
                ORDER BY available_at, enqueued_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._stale_after_seconds,),
            )
            row = cur.fetchone()
            if row is None:
                conn.commit()
                return None

            cur.execute(
                f"""
                UPDATE moderation_queue
                SET attempt = CASE WHEN status = 'in_progress'
                                   THEN attempt + 1 ELSE attempt END,
                    last_error = CASE WHEN status = 'in_progress'
                                      THEN %s ELSE last_error END,
                    status = 'in_progress', locked_at = NOW(), updated_at = NOW()
                WHERE id = %s
                RETURNING {_COLUMNS}
                """,
                (STALE_CLAIM_ERROR, row["id"]),
            )
            claimed = cur.fetchone()
        conn.commit()
        return self._to_job(claimed) if claimed is not None else None

    def mark_completed(self, job: ModerationJob) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE moderation_queue
                SET status = 'completed', locked_at = NULL, updated_at = NOW()
                WHERE id = %s AND status = 'in_progress'
                """,
                (job.id,),
            )
            conn.commit()

    def schedule_retry(self, job: ModerationJob, error: str, delay_seconds: float) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE moderation_queue
                SET status = 'retry_wait', attempt = %s, last_error = %s,
                    available_at = NOW() + make_interval(secs => %s),
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s AND status = 'in_progress'
                """,
                (job.attempt + 1, error, delay_seconds, job.id),
            )
            conn.commit()

    def mark_dead(self, job: ModerationJob, error: str) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE moderation_queue
                SET status = 'dead', attempt = %s, last_error = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s AND status = 'in_progress'
                """,
                (job.attempt + 1, error, job.id),
            )
            conn.commit()

    def cancel(self, document_id: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE moderation_queue
                    SET status = 'cancelled', updated_at = NOW()
                    WHERE document_id = %s AND status IN ('queued', 'retry_wait')
                    """,
                    (document_id,),
                )
                cancelled = cur.rowcount > 0
            conn.commit()
        return cancelled

    def stats(self) -> QueueStats:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT status, COUNT(*) FROM moderation_queue GROUP BY status")
                counts = {status: int(n) for status, n in cur.fetchall()}
        return QueueStats(**{s.value: counts.get(s.value, 0) for s in JobStatus})

    def list_dead(self, limit: int = 100) -> list[ModerationJob]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM moderation_queue
                    WHERE status = 'dead'
                    ORDER BY updated_at DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = cur.fetchall()
        return [self._to_job(row) for row in rows]

    def find_by_id(self, job_id: int) -> ModerationJob | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM moderation_queue WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        return self._to_job(row) if row is not None else None

    @staticmethod
    def _to_job(row: dict[str, Any]) -> ModerationJob:
        return ModerationJob(
            id=row["id"],
            document_id=row["document_id"],
            file_path=row["file_path"],
            file_type=row["file_type"],
            metadata=dict(row["metadata"] or {}),
            status=JobStatus(row["status"]),
            attempt=row["attempt"],
            last_error=row["last_error"],
            enqueued_at=row["enqueued_at"],
            available_at=row["available_at"],
        )
