"""Score-fusion and decision policy.

All tunable constants of the scoring path live here so the policy can be
audited and tested without a classifier or a queue.
"""

from dataclasses import dataclass
from enum import Enum

from moderation.config.settings import Settings

RULES_MODEL_VERSION = "rule-based-v1"
RULES_SUFFIX = "rules-v1"
DISABLED_MODEL_VERSION = "disabled"
ERROR_MODEL_VERSION = "error"


class ModerationDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVIEW = "needs_review"


@dataclass(frozen=True)
class FusionPolicy:
    """Weights and sentinel scores used when combining rule and AI scores.

    ai_weight / rule_weight: contribution of each score when the model is healthy.
    damping: caps how far a single toxic category can push the AI score down.
    disabled_score / error_score: neutral AI scores for the two degraded modes;
        they differ so operators can tell "never attempted" from "failed".
    """

    ai_weight: float = 0.7
    rule_weight: float = 0.3
    damping: float = 0.8
    disabled_score: float = 0.8
    error_score: float = 0.7

    @classmethod
    def from_settings(cls, settings: Settings) -> "FusionPolicy":
        return cls(
            ai_weight=settings.fusion_ai_weight,
            rule_weight=settings.fusion_rule_weight,
            damping=settings.toxicity_damping,
            disabled_score=settings.toxicity_disabled_score,
            error_score=settings.toxicity_error_score,
        )


@dataclass(frozen=True)
class DecisionThresholds:
    approve_threshold: float = 0.7
    reject_threshold: float = 0.4

    @classmethod
    def from_settings(cls, settings: Settings) -> "DecisionThresholds":
        return cls(
            approve_threshold=settings.approve_threshold,
            reject_threshold=settings.reject_threshold,
        )

    def decide(self, score: float) -> ModerationDecision:
        """Map a safety score to a decision; the band between thresholds goes to review."""
        if score >= self.approve_threshold:
            return ModerationDecision.APPROVED
        if score <= self.reject_threshold:
            return ModerationDecision.REJECTED
        return ModerationDecision.NEEDS_REVIEW


def clamp_score(score: float) -> float:
    """Clamp into [0, 1]; NaN is treated as the most conservative score."""
    if score != score:
        return 0.0
    return max(0.0, min(1.0, score))
