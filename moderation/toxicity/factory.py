from collections.abc import Callable

from moderation.config.settings import Settings
from moderation.policy import FusionPolicy
from moderation.toxicity.base import BaseToxicityClassifier
from moderation.toxicity.example_classifier import ExampleToxicityClassifier
from moderation.toxicity.handle import ModelHandle
from moderation.toxicity.openai_classifier import OpenAIModerationClassifier
from moderation.toxicity.scorer import ToxicityScorer
from moderation.toxicity.transformers_classifier import TransformersToxicityClassifier


class ToxicityScorerFactory:
    """Creates the configured toxicity scorer. Nothing is loaded until first use."""

    PROVIDERS = ("disabled", "example", "openai", "transformers")

    @classmethod
    def create(cls, settings: Settings) -> ToxicityScorer:
        provider = settings.toxicity_provider.lower()
        policy = FusionPolicy.from_settings(settings)
        if provider == "disabled":
            return ToxicityScorer(handle=None, policy=policy)
        handle = ModelHandle(cls._resolve_loader(provider, settings))
        return ToxicityScorer(
            handle=handle,
            policy=policy,
            max_input_chars=settings.toxicity_max_input_chars,
        )

    @classmethod
    def _resolve_loader(
        cls, provider: str, settings: Settings
    ) -> Callable[[], BaseToxicityClassifier]:
        if provider == "example":
            return ExampleToxicityClassifier
        if provider == "openai":
            return lambda: OpenAIModerationClassifier(
                api_key=settings.toxicity_openai_api_key,
                model=settings.toxicity_openai_model_name,
                timeout_seconds=settings.toxicity_openai_timeout_seconds,
            )
        if provider == "transformers":
            return lambda: TransformersToxicityClassifier.load(
                settings.toxicity_model_name,
                settings.toxicity_threshold,
            )
        raise ValueError(
            f"Unknown toxicity provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
