from typing import Any

from moderation.exceptions import ModelLoadError, ToxicityError
from moderation.toxicity.base import BaseToxicityClassifier
from moderation.toxicity.models import CategoryPrediction


class TransformersToxicityClassifier(BaseToxicityClassifier):
    """Multi-label toxicity classifier on a Hugging Face text-classification model.

    Each model label is a category; a category matches when its sigmoid
    probability reaches the configured threshold.
    """

    def __init__(self, pipeline: Any, model_name: str, threshold: float) -> None:
        self._pipeline = pipeline
        self._model_name = model_name
        self._threshold = threshold

    @classmethod
    def load(cls, model_name: str, threshold: float) -> "TransformersToxicityClassifier":
        """Download (or read from cache) and initialise the model. Slow."""
        try:
            from transformers import pipeline
        except ImportError as exc:
            raise ModelLoadError(
                "toxicity_provider=transformers requires the 'ml' extra "
                "(pip install 'document-moderation-worker[ml]')"
            ) from exc
        try:
            classifier = pipeline("text-classification", model=model_name, top_k=None)
        except Exception as exc:
            raise ModelLoadError(f"Cannot load model '{model_name}': {exc}") from exc
        return cls(classifier, model_name, threshold)

    @property
    def version(self) -> str:
        return f"hf-{self._model_name.rsplit('/', 1)[-1]}"

    def classify(self, text: str) -> list[CategoryPrediction]:
        try:
            outputs = self._pipeline([text], truncation=True, function_to_apply="sigmoid")
        except Exception as exc:
            raise ToxicityError(f"Model inference failed: {exc}") from exc

        labels = outputs[0] if outputs else []
        return [
            CategoryPrediction(
                label=str(item["label"]),
                match=float(item["score"]) >= self._threshold,
                toxic_probability=float(item["score"]),
            )
            for item in sorted(labels, key=lambda item: str(item["label"]))
        ]
