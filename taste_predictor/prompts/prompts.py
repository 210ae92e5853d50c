"""Prompt templates for taste prediction and recipe generation.

Each prompt embeds the caller's ingredient text verbatim together with a
literal description of the JSON object the model must reply with. The
response resolver parses replies against the same field names, so the schema
descriptions below and the models in `taste_predictor.models.models` must be
changed together; bump PROMPT_VERSION whenever either one changes.

The builders are pure string templates: no validation, no I/O. Callers reject
empty ingredient text before calling them.
"""

from typing import Optional, Sequence


PROMPT_VERSION = "2024-06-v1"

PREDICTION_SCHEMA = """{
  "prediction": "like" | "dislike",
  "confidence": number between 0 and 1,
  "suggestions": [string, ...]  (0 to 3 short improvement suggestions)
}"""

RECIPE_SCHEMA = """{
  "name": string,
  "prepTime": string (e.g. "15 minutes"),
  "cookTime": string (e.g. "25 minutes"),
  "serves": positive integer,
  "ingredients": [string, ...]  (at least one, with quantities),
  "instructions": [string, ...]  (at least one, each a single imperative step),
  "tips": [string, ...]
}"""

_PREDICTION_TEMPLATE = """Act as a food critic and taste predictor.
Based on these ingredients: {ingredients}
Will the average person enjoy a dish made with these?

Respond with ONLY a JSON object, no markdown and no other text, in exactly this shape:
{schema}

Rules:
- "prediction" must be exactly "like" or "dislike".
- "confidence" is how sure you are, from 0 to 1.
- "suggestions" holds at most 3 short, concrete ways to improve the dish."""

_RECIPE_TEMPLATE = """Act as a creative home chef.
Create a recipe using these ingredients: {ingredients}
An earlier taste prediction for these ingredients was: {prior_prediction}.
{prediction_guidance}{preference_block}
Respond with ONLY a JSON object, no markdown and no other text, in exactly this shape:
{schema}

Rules:
- Use the listed ingredients as the core of the dish; common pantry staples are allowed.
- Write every instruction as one imperative step, in cooking order.
- "serves" is a whole number of portions."""

_PREDICTION_GUIDANCE = {
    "like": "Keep the flavors that make this combination appealing.\n",
    "dislike": "Adjust the combination so that it becomes more appealing, and explain how in the tips.\n",
    "unknown": "",
}


def build_prediction_prompt(ingredients: str) -> str:
    """Build the taste prediction prompt.

    Args:
        ingredients: Free-text ingredient list, embedded verbatim.

    Returns:
        Prompt asking the model for a PredictionResult-shaped JSON object.
    """
    return _PREDICTION_TEMPLATE.format(ingredients=ingredients, schema=PREDICTION_SCHEMA)


def build_recipe_prompt(
    ingredients: str,
    prior_prediction: Optional[str] = None,
    preferences: Optional[Sequence[str]] = None,
) -> str:
    """Build the recipe generation prompt.

    Args:
        ingredients: Free-text ingredient list, embedded verbatim.
        prior_prediction: "like", "dislike" or "unknown"; None renders as "unknown".
        preferences: Active dietary preferences (e.g. ["vegetarian", "spicy"]).

    Returns:
        Prompt asking the model for a RecipeResult-shaped JSON object.
    """
    label = prior_prediction or "unknown"
    preference_block = ""
    if preferences:
        preference_block = f"The recipe must respect these dietary preferences: {', '.join(preferences)}.\n"

    return _RECIPE_TEMPLATE.format(
        ingredients=ingredients,
        prior_prediction=label,
        prediction_guidance=_PREDICTION_GUIDANCE.get(label, ""),
        preference_block=preference_block,
        schema=RECIPE_SCHEMA,
    )
