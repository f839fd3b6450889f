from dataclasses import dataclass

from moderation.policy import (
    DISABLED_MODEL_VERSION,
    ERROR_MODEL_VERSION,
    RULES_MODEL_VERSION,
    RULES_SUFFIX,
    FusionPolicy,
    clamp_score,
)
from moderation.rules.models import FlagValue, RuleCheckResult
from moderation.toxicity.models import ToxicityResult


@dataclass(frozen=True)
class FusedScore:
    score: float
    model_version: str
    flags: dict[str, FlagValue]
    ai_enabled: bool


class ScoreFusion:
    """Combines the rule score with the toxicity score under a FusionPolicy."""

    def __init__(self, policy: FusionPolicy) -> None:
        self._policy = policy

    @staticmethod
    def ai_enabled(toxicity: ToxicityResult | None) -> bool:
        if toxicity is None:
            return False
        return toxicity.model_version not in (DISABLED_MODEL_VERSION, ERROR_MODEL_VERSION)

    def fuse(self, rules: RuleCheckResult, toxicity: ToxicityResult | None) -> FusedScore:
        """Weighted combination when the model is healthy, rule score otherwise.

        toxicity is None when the scorer was skipped (near-empty excerpt).
        """
        ai_enabled = self.ai_enabled(toxicity)
        if ai_enabled and toxicity is not None:
            weighted = toxicity.score * self._policy.ai_weight + rules.score * self._policy.rule_weight
            # Rounded like rule scores so 1.0 and 1.0 fuse to exactly 1.0.
            score = round(weighted, 6)
            model_version = f"{toxicity.model_version}+{RULES_SUFFIX}"
        else:
            score = rules.score
            model_version = RULES_MODEL_VERSION

        flags: dict[str, FlagValue] = dict(rules.flags)
        if toxicity is not None:
            flags.update(toxicity.flags)
        flags["ai_score"] = toxicity.score if ai_enabled and toxicity is not None else None
        flags["rule_score"] = rules.score
        flags["ai_enabled"] = ai_enabled
        return FusedScore(
            score=clamp_score(score),
            model_version=model_version,
            flags=flags,
            ai_enabled=ai_enabled,
        )
