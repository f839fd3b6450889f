from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import psycopg
import pytest

from moderation.database.repositories.job_repository import STALE_CLAIM_ERROR, JobRepository
from moderation.policy import DecisionThresholds
from moderation.queue.models import JobStatus, ModerationJob
from moderation.queue.retry import RetryPolicy
from moderation.worker.job_runner import JobRunner


def _make_job(document_id: str) -> ModerationJob:
    return ModerationJob(
        document_id=document_id,
        file_path=f"/uploads/{document_id}.pdf",
        file_type="pdf",
        metadata={"title": "Notes"},
    )


def _claim(repo: JobRepository, document_id: str) -> ModerationJob:
    """Claim jobs until the one for document_id comes up (other tests may share the table)."""
    for _ in range(50):
        job = repo.claim_next()
        if job is None:
            break
        if job.document_id == document_id:
            return job
        repo.schedule_retry(job, "skipped by test", delay_seconds=0)
    raise AssertionError(f"job for {document_id} was not claimable")


def _status(db_conn: psycopg.Connection[Any], job_id: int | None) -> tuple[str, int, str | None]:
    with db_conn.cursor() as cur:
        cur.execute(
            "SELECT status, attempt, last_error FROM moderation_queue WHERE id = %s",
            (job_id,),
        )
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    return row[0], row[1], row[2]


@pytest.mark.integration
class TestJobRepositoryEnqueue:
    def test_enqueue_deduplicates_active_jobs(
        self, db_conn: psycopg.Connection[Any], new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()

        assert repo.enqueue(_make_job(document_id)) is True
        assert repo.enqueue(_make_job(document_id)) is False

        with db_conn.cursor() as cur:
            cur.execute(
                "SELECT COUNT(*) FROM moderation_queue WHERE document_id = %s",
                (document_id,),
            )
            row = cur.fetchone()
        db_conn.commit()
        assert row is not None
        assert row[0] == 1

    def test_enqueue_allowed_again_after_completion(
        self, integration_pool: None, new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))
        repo.mark_completed(_claim(repo, document_id))

        assert repo.enqueue(_make_job(document_id)) is True


@pytest.mark.integration
class TestJobRepositoryClaim:
    def test_claim_marks_in_progress(
        self, db_conn: psycopg.Connection[Any], new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))

        job = _claim(repo, document_id)

        assert job.status is JobStatus.IN_PROGRESS
        assert job.metadata == {"title": "Notes"}
        assert _status(db_conn, job.id)[0] == "in_progress"

    def test_stale_in_progress_job_is_reclaimed(
        self, db_conn: psycopg.Connection[Any], new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))
        job = _claim(repo, document_id)
        with db_conn.cursor() as cur:
            cur.execute(
                "UPDATE moderation_queue SET locked_at = NOW() - INTERVAL '1 hour' WHERE id = %s",
                (job.id,),
            )
        db_conn.commit()

        reclaimed = _claim(repo, document_id)

        assert reclaimed.id == job.id
        assert reclaimed.attempt == 1
        assert reclaimed.last_error == STALE_CLAIM_ERROR
        assert _status(db_conn, job.id) == ("in_progress", 1, STALE_CLAIM_ERROR)

    def test_job_that_keeps_losing_its_worker_goes_to_review(
        self, db_conn: psycopg.Connection[Any], new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))
        job = _claim(repo, document_id)
        with db_conn.cursor() as cur:
            cur.execute(
                """
                UPDATE moderation_queue
                SET attempt = 2, locked_at = NOW() - INTERVAL '1 hour'
                WHERE id = %s
                """,
                (job.id,),
            )
        db_conn.commit()
        reclaimed = _claim(repo, document_id)
        mock_analyzer = MagicMock()
        mock_callbacks = MagicMock()
        runner = JobRunner(
            analyzer=mock_analyzer,
            job_store=repo,
            callbacks=mock_callbacks,
            thresholds=DecisionThresholds(),
            retry_policy=RetryPolicy(max_attempts=3),
            timeout_seconds=5,
        )

        runner.run(reclaimed)

        mock_analyzer.analyze.assert_not_called()
        mock_callbacks.on_dead.assert_called_once_with(document_id, STALE_CLAIM_ERROR)
        assert _status(db_conn, job.id)[0] == "dead"


@pytest.mark.integration
class TestJobRepositoryFailures:
    def test_schedule_retry_records_attempt(
        self, db_conn: psycopg.Connection[Any], new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))
        job = _claim(repo, document_id)

        repo.schedule_retry(job, "transient", delay_seconds=3600)

        assert _status(db_conn, job.id) == ("retry_wait", 1, "transient")
        assert repo.cancel(document_id) is True

    def test_mark_dead_lists_job(
        self, integration_pool: None, new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))
        job = _claim(repo, document_id)

        repo.mark_dead(job, "permanent")

        dead = [j for j in repo.list_dead() if j.document_id == document_id]
        assert len(dead) == 1
        assert dead[0].status is JobStatus.DEAD
        assert dead[0].last_error == "permanent"
        assert repo.stats().dead >= 1

    def test_cannot_cancel_in_progress_job(
        self, integration_pool: None, new_document_id: Callable[[], str]
    ) -> None:
        repo = JobRepository(stale_after_seconds=60)
        document_id = new_document_id()
        repo.enqueue(_make_job(document_id))
        job = _claim(repo, document_id)

        assert repo.cancel(document_id) is False
        found = repo.find_by_id(job.id or 0)
        assert found is not None
        assert found.status is JobStatus.IN_PROGRESS
