from psycopg.types.json import Jsonb

from moderation.analysis.models import AnalysisResult
from moderation.database.connection import get_connection
from moderation.policy import ModerationDecision


class DocumentNotFoundError(Exception):
    """Raised when a document cannot be found in the database."""


class DocumentsRepository:
    """Moderation columns of the backend's documents and moderation_jobs tables."""

    def record_decision(
        self,
        document_id: str,
        decision: ModerationDecision,
        result: AnalysisResult,
    ) -> None:
        """Persist the analysis result and set the document status from the decision.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE moderation_jobs
                    SET moderation_status = 'completed',
                        moderation_score = %s,
                        moderation_flags = %s,
                        extracted_text_preview = %s,
                        model_version = %s,
                        completed_at = CURRENT_TIMESTAMP
                    WHERE document_id = %s
                    """,
                    (
                        result.score,
                        Jsonb(result.flags),
                        result.excerpt_preview,
                        result.model_version,
                        document_id,
                    ),
                )
                cur.execute(
                    """
                    UPDATE documents
                    SET status = %s
                    WHERE document_id = %s
                    """,
                    (decision.value, document_id),
                )
                if cur.rowcount == 0:
                    conn.rollback()
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def mark_for_review(self, document_id: str, error: str) -> None:
        """Record a failed moderation and queue the document for a human moderator.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE moderation_jobs
                    SET moderation_status = 'failed',
                        error_message = %s,
                        completed_at = CURRENT_TIMESTAMP,
                        retry_count = retry_count + 1
                    WHERE document_id = %s
                    """,
                    (error, document_id),
                )
                cur.execute(
                    """
                    UPDATE documents
                    SET status = %s
                    WHERE document_id = %s
                    """,
                    (ModerationDecision.NEEDS_REVIEW.value, document_id),
                )
                if cur.rowcount == 0:
                    conn.rollback()
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()
