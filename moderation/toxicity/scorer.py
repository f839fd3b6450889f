from moderation.logging.logger import Log
from moderation.policy import (
    DISABLED_MODEL_VERSION,
    ERROR_MODEL_VERSION,
    FusionPolicy,
    clamp_score,
)
from moderation.rules.models import FlagValue
from moderation.toxicity.handle import HandleState, ModelHandle
from moderation.toxicity.models import CategoryPrediction, ToxicityResult


class ToxicityScorer:
    """Wraps a toxicity classifier and never raises to its caller.

    With no handle the scorer runs in disabled mode. Load failures and
    inference errors both degrade to a neutral error result.
    """

    def __init__(
        self,
        handle: ModelHandle | None,
        policy: FusionPolicy,
        max_input_chars: int = 512,
    ) -> None:
        self._handle = handle
        self._policy = policy
        self._max_input_chars = max_input_chars

    @property
    def enabled(self) -> bool:
        return self._handle is not None

    def analyze_toxicity(self, text: str) -> ToxicityResult:
        if self._handle is None:
            Log.debug("AI toxicity detection disabled - using rule-based analysis only")
            return ToxicityResult(
                score=self._policy.disabled_score,
                flags={},
                model_version=DISABLED_MODEL_VERSION,
            )

        snapshot = self._handle.get()
        if snapshot.state is not HandleState.READY or snapshot.classifier is None:
            return self._error_result(snapshot.error or "toxicity model unavailable")

        truncated = text[: self._max_input_chars]
        try:
            predictions = snapshot.classifier.classify(truncated)
        except Exception as exc:
            Log.error(f"Toxicity analysis error: {exc}")
            return self._error_result(str(exc))

        return self._aggregate(predictions, snapshot.classifier.version)

    def reload(self) -> bool:
        """Retry loading the model. Returns True if it is now available."""
        if self._handle is None:
            return False
        return self._handle.reload().state is HandleState.READY

    def _aggregate(
        self, predictions: list[CategoryPrediction], version: str
    ) -> ToxicityResult:
        flags: dict[str, FlagValue] = {}
        matched: list[float] = []
        for prediction in predictions:
            label = prediction.label.lower().replace(" ", "_")
            flags[label] = prediction.match
            if prediction.match:
                matched.append(prediction.toxic_probability)

        score = 1.0
        if matched:
            avg_toxicity = sum(matched) / len(matched)
            score = 1.0 - avg_toxicity * self._policy.damping
        return ToxicityResult(
            score=clamp_score(score),
            flags=flags,
            model_version=version,
        )

    def _error_result(self, message: str) -> ToxicityResult:
        return ToxicityResult(
            score=self._policy.error_score,
            flags={"error": True, "message": message},
            model_version=ERROR_MODEL_VERSION,
        )
