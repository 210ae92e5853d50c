"""Resolve model replies into prediction and recipe results.

The resolver is total: whatever the model returned (valid JSON, JSON missing
required keys, prose, nothing at all because the call failed) the caller gets
back a schema-conformant result. Parse and validation failures are logged and
routed to the fallback provider instead of being raised.

Parsing follows the same lenient strategy for both result types:
1. json.loads() on the full reply
2. Regex extraction of the first {...} block (replies wrapped in code fences or prose)
3. Required key check ("prediction" / "name")
4. Pydantic validation against the result model
"""

import json
import re
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel

from taste_predictor.models.models import PredictionResult, RecipeResult
from taste_predictor.pipeline.fallback import FallbackProvider, RandomFallbackProvider
from taste_predictor.utils.logger import logger
from taste_predictor.utils.safe import safe_execute_sync


ResultT = TypeVar("ResultT", bound=BaseModel)


def parse_json_object(raw_text: Optional[str]) -> Optional[dict[str, Any]]:
    """Parse a JSON object out of a model reply.

    Args:
        raw_text: Raw reply text (may include non-JSON text around the object).

    Returns:
        The parsed dict, or None if no JSON object could be parsed.
    """
    if not raw_text or not isinstance(raw_text, str):
        return None

    def _parse_json_direct():
        return json.loads(raw_text)

    def _parse_json_regex():
        json_match = re.search(r"\{.*\}", raw_text, re.DOTALL)
        if json_match:
            return json.loads(json_match.group())
        return None

    parsed = safe_execute_sync(_parse_json_direct, "Direct JSON parse", log_level="debug")

    if not isinstance(parsed, dict):
        parsed = safe_execute_sync(_parse_json_regex, "Regex JSON extraction", log_level="debug")

    if not isinstance(parsed, dict):
        return None
    return parsed


def _parse_reply(
    raw_text: Optional[str],
    required_key: str,
    model: type[ResultT],
) -> Optional[ResultT]:
    parsed = parse_json_object(raw_text)
    if parsed is None:
        logger.warning(f"Failed to parse JSON from model reply for {model.__name__}")
        return None

    if required_key not in parsed:
        logger.warning(f"Model reply for {model.__name__} is missing required key '{required_key}'")
        return None

    return safe_execute_sync(
        lambda: model.model_validate(parsed),
        f"Validate {model.__name__} schema",
        log_level="warning",
        default_return=None,
    )


def _synthesize(make: Callable[[FallbackProvider], ResultT], provider: FallbackProvider) -> ResultT:
    result = safe_execute_sync(
        lambda: make(provider),
        "Fallback provider",
        log_level="error",
        default_return=None,
    )
    if result is None:
        result = make(RandomFallbackProvider())
    return result


def resolve_prediction(
    raw_text: Optional[str],
    transport_failed: bool,
    fallback: Optional[FallbackProvider] = None,
) -> PredictionResult:
    """Turn a model reply into a PredictionResult.

    Args:
        raw_text: Model reply text, or None when there is none.
        transport_failed: True when the model call did not complete.
        fallback: Provider for substitute values. Default: RandomFallbackProvider().

    Returns:
        The parsed prediction, or a fallback prediction on any failure.
    """
    provider = fallback or RandomFallbackProvider()

    if transport_failed:
        logger.info("Model call failed, using fallback prediction")
    else:
        result = safe_execute_sync(
            lambda: _parse_reply(raw_text, "prediction", PredictionResult),
            "Resolve prediction reply",
            log_level="warning",
            default_return=None,
        )
        if result is not None:
            logger.debug(f"Prediction resolved from model reply: {result.prediction} ({result.confidence})")
            return result
        logger.info("Model reply unusable, using fallback prediction")

    return _synthesize(lambda p: p.prediction(), provider)


def resolve_recipe(
    raw_text: Optional[str],
    ingredients: Optional[str],
    transport_failed: bool,
    fallback: Optional[FallbackProvider] = None,
) -> RecipeResult:
    """Turn a model reply into a RecipeResult.

    Args:
        raw_text: Model reply text, or None when there is none.
        ingredients: The caller's ingredient text, used to shape the fallback recipe.
        transport_failed: True when the model call did not complete.
        fallback: Provider for substitute values. Default: RandomFallbackProvider().

    Returns:
        The parsed recipe, or a fallback recipe on any failure.
    """
    provider = fallback or RandomFallbackProvider()

    if transport_failed:
        logger.info("Model call failed, using fallback recipe")
    else:
        result = safe_execute_sync(
            lambda: _parse_reply(raw_text, "name", RecipeResult),
            "Resolve recipe reply",
            log_level="warning",
            default_return=None,
        )
        if result is not None:
            logger.debug(f"Recipe resolved from model reply: {result.name}")
            return result
        logger.info("Model reply unusable, using fallback recipe")

    return _synthesize(lambda p: p.recipe(ingredients), provider)
