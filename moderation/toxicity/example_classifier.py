"""Example toxicity classifier.

Use this module as a reference when implementing new classifier adapters.
Implement BaseToxicityClassifier and register the provider in ToxicityScorerFactory.
"""

from typing import ClassVar

from moderation.toxicity.base import BaseToxicityClassifier
from moderation.toxicity.models import CategoryPrediction


class ExampleToxicityClassifier(BaseToxicityClassifier):
    """Reports every category as clean. No model, no network calls."""

    LABELS: ClassVar[tuple[str, ...]] = (
        "identity_attack",
        "insult",
        "obscene",
        "severe_toxicity",
        "sexual_explicit",
        "threat",
        "toxicity",
    )

    @property
    def version(self) -> str:
        return "example-v1"

    def classify(self, text: str) -> list[CategoryPrediction]:
        _ = text
        return [
            CategoryPrediction(label=label, match=False, toxic_probability=0.0)
            for label in self.LABELS
        ]
