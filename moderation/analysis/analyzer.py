"""Document analyzer: extract -> rule checks -> toxicity -> fusion."""

from collections.abc import Mapping
from pathlib import Path

from moderation.analysis.fusion import ScoreFusion
from moderation.analysis.models import AnalysisResult
from moderation.config.settings import Settings
from moderation.exceptions import AnalysisFailed
from moderation.extraction.extractor import TextExtractor
from moderation.extraction.factory import TextExtractorFactory
from moderation.logging.logger import Log
from moderation.policy import RULES_MODEL_VERSION, FusionPolicy
from moderation.rules.factory import RuleFilterFactory
from moderation.rules.rule_filter import MIN_TEXT_CHARS, RuleBasedFilter
from moderation.toxicity.factory import ToxicityScorerFactory
from moderation.toxicity.models import ToxicityResult
from moderation.toxicity.scorer import ToxicityScorer

PREVIEW_CHARS = 200


class Analyzer:
    """Produces one AnalysisResult per document.

    The rule filter always runs first; a rule rejection short-circuits
    the toxicity scorer entirely. Extraction and rule errors surface as
    AnalysisFailed with the original exception chained.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        rule_filter: RuleBasedFilter,
        scorer: ToxicityScorer,
        fusion: ScoreFusion,
        max_excerpt_chars: int = 1000,
    ) -> None:
        self._extractor = extractor
        self._rule_filter = rule_filter
        self._scorer = scorer
        self._fusion = fusion
        self._max_excerpt_chars = max_excerpt_chars

    @property
    def scorer(self) -> ToxicityScorer:
        return self._scorer

    def analyze(self, file_path: str | Path, metadata: Mapping[str, object]) -> AnalysisResult:
        file_type = str(metadata.get("file_type") or "")
        try:
            Log.debug(f"Extracting text from: {file_path}")
            full_text = self._extractor.extract(file_path, file_type)
            excerpt = full_text[: self._max_excerpt_chars]

            if len(excerpt.strip()) < MIN_TEXT_CHARS:
                Log.warning(
                    f"Insufficient text extracted from {file_path}, using metadata analysis only"
                )

            rules = self._rule_filter.evaluate(excerpt, metadata)
        except Exception as exc:
            raise AnalysisFailed(f"Analysis failed: {exc}") from exc

        preview = excerpt[:PREVIEW_CHARS]
        if rules.should_reject:
            Log.info(f"Rule-based rejection for {file_path}")
            return AnalysisResult(
                score=0.0,
                flags={**rules.flags, "rule_based_rejection": True},
                extracted_text_length=len(excerpt),
                model_version=RULES_MODEL_VERSION,
                rule_based_rejection=True,
                excerpt_preview=preview,
            )

        toxicity: ToxicityResult | None = None
        if len(excerpt.strip()) >= MIN_TEXT_CHARS:
            toxicity = self._scorer.analyze_toxicity(excerpt)

        fused = self._fusion.fuse(rules, toxicity)
        if not fused.ai_enabled:
            Log.info("Using 100% rule-based scoring (AI disabled)")

        return AnalysisResult(
            score=fused.score,
            flags=fused.flags,
            extracted_text_length=len(excerpt),
            model_version=fused.model_version,
            rule_based_rejection=False,
            excerpt_preview=preview,
        )


def build_analyzer(settings: Settings) -> Analyzer:
    """Build an Analyzer with all configured adapters."""
    extractor = TextExtractorFactory.create(settings)
    rule_filter = RuleFilterFactory.create(settings, extractor.supported_types)
    scorer = ToxicityScorerFactory.create(settings)
    fusion = ScoreFusion(FusionPolicy.from_settings(settings))
    return Analyzer(
        extractor=extractor,
        rule_filter=rule_filter,
        scorer=scorer,
        fusion=fusion,
        max_excerpt_chars=settings.max_excerpt_chars,
    )
