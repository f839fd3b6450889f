from dataclasses import dataclass, field

from moderation.rules.models import FlagValue


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis attempt for a document."""

    score: float
    flags: dict[str, FlagValue] = field(default_factory=dict)
    extracted_text_length: int = 0
    model_version: str = "rule-based-v1"
    rule_based_rejection: bool = False
    excerpt_preview: str = ""
