import httpx
import openai

from moderation.exceptions import ModelLoadError, ToxicityError
from moderation.toxicity.base import BaseToxicityClassifier
from moderation.toxicity.models import CategoryPrediction


class OpenAIModerationClassifier(BaseToxicityClassifier):
    """Toxicity classifier built on the OpenAI moderation endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        if not api_key:
            raise ModelLoadError("toxicity_openai_api_key is required for toxicity_provider=openai")
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    @property
    def version(self) -> str:
        return f"openai-{self._model}"

    def classify(self, text: str) -> list[CategoryPrediction]:
        try:
            response = self._client.moderations.create(model=self._model, input=text)
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ToxicityError(f"Moderation provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ToxicityError(f"Moderation provider API error: {exc}") from exc

        if not response.results:
            raise ToxicityError("Moderation provider returned no results")
        result = response.results[0]
        categories = result.categories.model_dump()
        scores = result.category_scores.model_dump()

        predictions: list[CategoryPrediction] = []
        for label in sorted(categories):
            match = categories[label]
            if match is None:
                continue
            predictions.append(
                CategoryPrediction(
                    label=label,
                    match=bool(match),
                    toxic_probability=float(scores.get(label) or 0.0),
                )
            )
        return predictions
