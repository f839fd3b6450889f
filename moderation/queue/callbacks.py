from abc import ABC, abstractmethod

import httpx

from moderation.analysis.models import AnalysisResult
from moderation.database.repositories.documents_repository import DocumentsRepository
from moderation.exceptions import CallbackError
from moderation.logging.logger import Log
from moderation.policy import ModerationDecision


class ModerationCallbacks(ABC):
    """Outbound interface to the document store and notification collaborators."""

    @abstractmethod
    def on_decision(
        self,
        document_id: str,
        decision: ModerationDecision,
        result: AnalysisResult,
    ) -> None:
        """Called once per completed job."""

    @abstractmethod
    def on_dead(self, document_id: str, last_error: str) -> None:
        """Called once when a job exhausts its retries."""

    def close(self) -> None:
        """Release resources held by the sink."""


class LoggingCallbacks(ModerationCallbacks):
    """Logs decisions only. For local development."""

    def on_decision(
        self,
        document_id: str,
        decision: ModerationDecision,
        result: AnalysisResult,
    ) -> None:
        Log.info(
            f"Decision for document {document_id}: {decision.value} "
            f"(score={result.score:.3f}, model={result.model_version})"
        )

    def on_dead(self, document_id: str, last_error: str) -> None:
        Log.warning(f"Document {document_id} needs manual review: {last_error}")


class DatabaseCallbacks(ModerationCallbacks):
    """Writes decisions straight to the documents database."""

    def __init__(self, doc_repo: DocumentsRepository) -> None:
        self._doc_repo = doc_repo

    def on_decision(
        self,
        document_id: str,
        decision: ModerationDecision,
        result: AnalysisResult,
    ) -> None:
        try:
            self._doc_repo.record_decision(document_id, decision, result)
        except Exception as exc:
            raise CallbackError(f"Cannot record decision for {document_id}: {exc}") from exc

    def on_dead(self, document_id: str, last_error: str) -> None:
        try:
            self._doc_repo.mark_for_review(document_id, last_error)
        except Exception as exc:
            raise CallbackError(f"Cannot flag {document_id} for review: {exc}") from exc


class WebhookCallbacks(ModerationCallbacks):
    """Posts results to the backend moderation webhook."""

    SECRET_HEADER = "X-Webhook-Secret"

    def __init__(
        self,
        *,
        url: str,
        secret: str,
        timeout_seconds: int,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            headers={self.SECRET_HEADER: secret},
        )

    def on_decision(
        self,
        document_id: str,
        decision: ModerationDecision,
        result: AnalysisResult,
    ) -> None:
        self._post(
            {
                "document_id": document_id,
                "moderation_status": "completed",
                "decision": decision.value,
                "moderation_score": result.score,
                "moderation_flags": result.flags,
                "extracted_text_preview": result.excerpt_preview,
                "model_version": result.model_version,
            }
        )

    def on_dead(self, document_id: str, last_error: str) -> None:
        self._post(
            {
                "document_id": document_id,
                "moderation_status": "failed",
                "decision": ModerationDecision.NEEDS_REVIEW.value,
                "error_message": last_error,
            }
        )

    def close(self) -> None:
        self._client.close()

    def _post(self, payload: dict[str, object]) -> None:
        try:
            response = self._client.post(self._url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise CallbackError(f"Moderation webhook failed: {exc}") from exc
