from dataclasses import dataclass, field

FlagValue = bool | float | str | None


@dataclass(frozen=True)
class RuleCheckResult:
    """Output of the rule-based filter."""

    score: float  # confidence of safety, 1.0 = no concerns
    flags: dict[str, FlagValue] = field(default_factory=dict)
    should_reject: bool = False
