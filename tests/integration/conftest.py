import os
import uuid
from collections.abc import Callable, Generator
from typing import Any

import psycopg
import pytest

from moderation.config.settings import Settings
from moderation.database.connection import close_pool, get_connection, init_pool
from moderation.database.repositories.job_repository import JobRepository

# Minimal copies of the backend-owned tables the decision sink writes to.
BACKEND_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    document_id TEXT PRIMARY KEY,
    title TEXT,
    status TEXT NOT NULL DEFAULT 'pending'
);
CREATE TABLE IF NOT EXISTS moderation_jobs (
    document_id TEXT PRIMARY KEY REFERENCES documents (document_id) ON DELETE CASCADE,
    moderation_status TEXT NOT NULL DEFAULT 'pending',
    moderation_score DOUBLE PRECISION,
    moderation_flags JSONB,
    extracted_text_preview TEXT,
    model_version TEXT,
    error_message TEXT,
    retry_count INTEGER NOT NULL DEFAULT 0,
    completed_at TIMESTAMPTZ
);
"""


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "sharebuddy_test")
    return Settings(worker_pool_size=2, db_connect_timeout_seconds=3)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
    except Exception as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        JobRepository(stale_after_seconds=60).init()
        with get_connection() as conn:
            conn.execute(BACKEND_SCHEMA)
            conn.commit()
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Collects document IDs whose queue and backend rows are deleted after the test."""
    document_ids: list[str] = []
    yield document_ids
    if not document_ids:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "DELETE FROM moderation_queue WHERE document_id = ANY(%s)", (document_ids,)
            )
            cur.execute("DELETE FROM documents WHERE document_id = ANY(%s)", (document_ids,))
        conn.commit()


@pytest.fixture
def new_document_id(integration_cleanup: list[str]) -> Callable[[], str]:
    def _new() -> str:
        document_id = f"test-{uuid.uuid4()}"
        integration_cleanup.append(document_id)
        return document_id

    return _new


@pytest.fixture
def seed_document(
    db_conn: psycopg.Connection[Any],
    new_document_id: Callable[[], str],
) -> str:
    document_id = new_document_id()
    with db_conn.cursor() as cur:
        cur.execute(
            "INSERT INTO documents (document_id, title) VALUES (%s, %s)",
            (document_id, "Linear algebra notes"),
        )
        cur.execute("INSERT INTO moderation_jobs (document_id) VALUES (%s)", (document_id,))
    db_conn.commit()
    return document_id
