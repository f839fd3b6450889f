from dataclasses import dataclass, field

from moderation.rules.models import FlagValue


@dataclass(frozen=True)
class CategoryPrediction:
    """Classifier output for one toxicity category."""

    label: str
    match: bool
    toxic_probability: float


@dataclass(frozen=True)
class ToxicityResult:
    """Output of the toxicity scorer. Score is a safety score, 1.0 = clean."""

    score: float
    flags: dict[str, FlagValue] = field(default_factory=dict)
    model_version: str = "disabled"
