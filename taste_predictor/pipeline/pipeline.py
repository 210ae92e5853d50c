"""Prediction and recipe request pipeline.

Unified flow for both request types: build prompt → call model → resolve reply.
The pipeline holds no per-request state; one instance serves all requests.
"""

from typing import Optional, Sequence

from taste_predictor.llm.gemini import CompletionClient
from taste_predictor.models.models import PredictionResult, RecipeResult
from taste_predictor.pipeline.fallback import FallbackProvider, RandomFallbackProvider
from taste_predictor.pipeline.resolver import resolve_prediction, resolve_recipe
from taste_predictor.prompts.prompts import build_prediction_prompt, build_recipe_prompt
from taste_predictor.utils.logger import logger


class TastePipeline:
    """Prompt builder, completion client and response resolver wired together.

    Args:
        client: Completion client used for every model call.
        fallback: Provider for substitute results. Default: RandomFallbackProvider().
    """

    def __init__(self, client: CompletionClient, fallback: Optional[FallbackProvider] = None) -> None:
        self.client = client
        self.fallback = fallback or RandomFallbackProvider()

    def build_prompts(
        self,
        ingredients: str,
        prior_prediction: Optional[str] = None,
        preferences: Optional[Sequence[str]] = None,
    ) -> dict[str, str]:
        """Render both prompts without calling the model."""
        return {
            "prediction": build_prediction_prompt(ingredients),
            "recipe": build_recipe_prompt(ingredients, prior_prediction, preferences),
        }

    async def predict(self, ingredients: str) -> PredictionResult:
        """Predict whether a dish made from `ingredients` will be enjoyed.

        Args:
            ingredients: Non-empty ingredient text (validated by the caller).

        Returns:
            PredictionResult from the model, or a fallback when the call or parse fails.
        """
        prompt = build_prediction_prompt(ingredients)
        completion = await self.client.complete(prompt)
        result = resolve_prediction(completion.text, completion.failed, fallback=self.fallback)
        logger.info(
            f"Prediction ready: {result.prediction} ({result.confidence:.2f}), "
            f"model_call={'failed' if completion.failed else 'ok'}"
        )
        return result

    async def generate_recipe(
        self,
        ingredients: str,
        prior_prediction: Optional[str] = None,
        preferences: Optional[Sequence[str]] = None,
    ) -> RecipeResult:
        """Generate a recipe for `ingredients`.

        Args:
            ingredients: Non-empty ingredient text (validated by the caller).
            prior_prediction: "like", "dislike", "unknown" or None.
            preferences: Active dietary preferences to respect.

        Returns:
            RecipeResult from the model, or a fallback when the call or parse fails.
        """
        prompt = build_recipe_prompt(ingredients, prior_prediction, preferences)
        completion = await self.client.complete(prompt)
        result = resolve_recipe(completion.text, ingredients, completion.failed, fallback=self.fallback)
        logger.info(
            f"Recipe ready: {result.name!r} with {len(result.instructions)} steps, "
            f"model_call={'failed' if completion.failed else 'ok'}"
        )
        return result
