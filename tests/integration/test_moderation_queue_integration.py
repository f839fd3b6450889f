import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import psycopg
import pytest

from moderation.config.settings import Settings
from moderation.queue.moderation_queue import build_queue


def _document_status(db_conn: psycopg.Connection[Any], document_id: str) -> str:
    with db_conn.cursor() as cur:
        cur.execute("SELECT status FROM documents WHERE document_id = %s", (document_id,))
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    return row[0]


def _wait_for_status(
    db_conn: psycopg.Connection[Any], document_id: str, timeout: float = 10.0
) -> str:
    deadline = time.monotonic() + timeout
    status = _document_status(db_conn, document_id)
    while status == "pending" and time.monotonic() < deadline:
        time.sleep(0.05)
        status = _document_status(db_conn, document_id)
    return status


@pytest.mark.integration
class TestModerationQueueIntegration:
    def test_document_moderated_end_to_end(
        self,
        test_settings: Settings,
        db_conn: psycopg.Connection[Any],
        seed_document: str,
        write_file: Callable[[str, bytes | str], Path],
    ) -> None:
        path = write_file("notes.txt", "Lecture notes covering eigenvalues and eigenvectors.")
        settings = test_settings.model_copy(
            update={
                "queue_backend": "postgres",
                "decision_sink": "database",
                "job_poll_interval_seconds": 0.05,
            }
        )
        queue = build_queue(settings)
        queue.init()
        try:
            assert queue.enqueue(seed_document, str(path), {"file_type": "txt"}) is True
            status = _wait_for_status(db_conn, seed_document)
        finally:
            queue.close()

        assert status == "approved"

    def test_spam_document_rejected(
        self,
        test_settings: Settings,
        db_conn: psycopg.Connection[Any],
        seed_document: str,
        write_file: Callable[[str, bytes | str], Path],
    ) -> None:
        path = write_file("spam.txt", "buy cheap essays now")
        settings = test_settings.model_copy(update={"job_poll_interval_seconds": 0.05})
        queue = build_queue(settings)
        queue.init()
        try:
            queue.enqueue(seed_document, str(path), {"file_type": "txt"})
            status = _wait_for_status(db_conn, seed_document)
        finally:
            queue.close()

        assert status == "rejected"
