from abc import ABC, abstractmethod

from moderation.toxicity.models import CategoryPrediction


class BaseToxicityClassifier(ABC):
    """Contract for all toxicity classifier adapters."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Label identifying the model, recorded in AnalysisResult.model_version."""

    @abstractmethod
    def classify(self, text: str) -> list[CategoryPrediction]:
        """Classify text into per-category predictions.

        Args:
            text: Text already truncated to the model's input limit.

        Returns:
            One CategoryPrediction per category the model reports.

        Raises:
            ToxicityError: on any failure.
        """
