import math

import pytest

from moderation.analysis.fusion import ScoreFusion
from moderation.config.settings import Settings
from moderation.policy import (
    DecisionThresholds,
    FusionPolicy,
    ModerationDecision,
    clamp_score,
)
from moderation.rules.models import RuleCheckResult
from moderation.toxicity.models import ToxicityResult

FUSION = ScoreFusion(FusionPolicy())


class TestDecisionThresholds:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (1.0, ModerationDecision.APPROVED),
            (0.7, ModerationDecision.APPROVED),
            (0.69, ModerationDecision.NEEDS_REVIEW),
            (0.41, ModerationDecision.NEEDS_REVIEW),
            (0.4, ModerationDecision.REJECTED),
            (0.0, ModerationDecision.REJECTED),
        ],
    )
    def test_default_bands(self, score: float, expected: ModerationDecision) -> None:
        assert DecisionThresholds().decide(score) is expected

    def test_from_settings(self) -> None:
        thresholds = DecisionThresholds.from_settings(
            Settings(approve_threshold=0.9, reject_threshold=0.2)
        )
        assert thresholds.decide(0.85) is ModerationDecision.NEEDS_REVIEW
        assert thresholds.decide(0.2) is ModerationDecision.REJECTED


class TestClampScore:
    def test_clamps_out_of_range(self) -> None:
        assert clamp_score(1.5) == 1.0
        assert clamp_score(-0.2) == 0.0

    def test_nan_is_most_conservative(self) -> None:
        assert clamp_score(math.nan) == 0.0


class TestScoreFusion:
    def test_healthy_model_uses_weighted_sum(self) -> None:
        fused = FUSION.fuse(
            RuleCheckResult(score=0.5),
            ToxicityResult(score=0.9, flags={"insult": False}, model_version="hf-toxic-bert"),
        )
        assert fused.score == pytest.approx(0.9 * 0.7 + 0.5 * 0.3)
        assert fused.model_version == "hf-toxic-bert+rules-v1"
        assert fused.ai_enabled is True
        assert fused.flags["ai_score"] == 0.9
        assert fused.flags["rule_score"] == 0.5
        assert fused.flags["insult"] is False

    def test_perfect_scores_fuse_to_one(self) -> None:
        fused = FUSION.fuse(
            RuleCheckResult(score=1.0),
            ToxicityResult(score=1.0, model_version="example-v1"),
        )
        assert fused.score == 1.0

    @pytest.mark.parametrize("version", ["disabled", "error"])
    def test_degraded_model_uses_rule_score(self, version: str) -> None:
        fused = FUSION.fuse(
            RuleCheckResult(score=0.6),
            ToxicityResult(score=0.8, model_version=version),
        )
        assert fused.score == 0.6
        assert fused.model_version == "rule-based-v1"
        assert fused.ai_enabled is False
        assert fused.flags["ai_score"] is None

    def test_skipped_model_uses_rule_score(self) -> None:
        fused = FUSION.fuse(RuleCheckResult(score=0.6, flags={"insufficient_text": True}), None)
        assert fused.score == 0.6
        assert fused.flags["insufficient_text"] is True
        assert fused.flags["ai_enabled"] is False

    def test_error_flags_are_kept_for_audit(self) -> None:
        fused = FUSION.fuse(
            RuleCheckResult(score=1.0),
            ToxicityResult(
                score=0.7,
                flags={"error": True, "message": "timeout"},
                model_version="error",
            ),
        )
        assert fused.flags["error"] is True
        assert fused.flags["message"] == "timeout"
