"""Fallback synthesis for failed or unparseable model replies.

When the model call fails or its reply cannot be parsed, the service still
answers with a structurally valid result. The values are randomized within
fixed policies so the demo keeps feeling "alive"; all randomness goes through
one injectable provider so tests can seed or replace it.
"""

import random
from typing import List, Optional, Protocol

from taste_predictor.models.models import PredictionResult, RecipeResult


GENERIC_MAIN_INGREDIENT = "Chef's Choice"
# Keeps the generated name within RecipeResult.name's length limit
MAX_MAIN_INGREDIENT_CHARS = 60

FALLBACK_SUGGESTIONS = (
    "Consider adding fresh herbs for better flavor balance",
    "Try adjusting the cooking time for optimal texture",
    "Balance rich ingredients with a splash of acid such as lemon juice or vinegar",
)

PANTRY_TAIL = (
    "Olive oil (2 tbsp)",
    "Salt and pepper (to taste)",
    "Garlic powder (1 tsp)",
    "Fresh herbs (for garnish)",
)

FALLBACK_INSTRUCTIONS = (
    "Prepare all ingredients by washing and chopping as needed",
    "Heat the oil in a large pan over medium heat",
    "Add the garlic powder and cook for 30 seconds until fragrant",
    "Add the main ingredients and cook until tender",
    "Season with salt, pepper, and your preferred spices",
    "Cook until the desired doneness is achieved, stirring occasionally",
    "Garnish with fresh herbs and serve immediately",
)

FALLBACK_TIPS = (
    "Taste as you go and adjust the seasoning before serving",
    "Cut ingredients to a similar size so they cook evenly",
    "Let the pan get hot before adding ingredients for better browning",
)


class FallbackProvider(Protocol):
    """Produces schema-conformant substitutes for model results."""

    def prediction(self) -> PredictionResult:
        ...

    def recipe(self, ingredients: Optional[str]) -> RecipeResult:
        ...


def split_ingredients(ingredients: Optional[str]) -> List[str]:
    """Split comma-separated ingredient text into trimmed, non-empty tokens."""
    if not ingredients:
        return []
    return [token.strip() for token in ingredients.split(",") if token.strip()]


class RandomFallbackProvider:
    """Randomized fallback values within fixed ranges.

    Args:
        rng: Random source. Pass a seeded `random.Random` for reproducible values.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def prediction(self) -> PredictionResult:
        return PredictionResult(
            prediction=self.rng.choice(("like", "dislike")),
            confidence=round(self.rng.uniform(0.6, 0.9), 2),
            suggestions=list(FALLBACK_SUGGESTIONS),
        )

    def recipe(self, ingredients: Optional[str]) -> RecipeResult:
        tokens = split_ingredients(ingredients)
        main_ingredient = tokens[0][:MAX_MAIN_INGREDIENT_CHARS] if tokens else GENERIC_MAIN_INGREDIENT

        return RecipeResult(
            name=f"AI-Generated {main_ingredient} Recipe",
            prep_time=f"{self.rng.randint(10, 20)} minutes",
            cook_time=f"{self.rng.randint(15, 35)} minutes",
            serves=self.rng.randint(2, 4),
            ingredients=[f"{token} (to taste)" for token in tokens] + list(PANTRY_TAIL),
            instructions=list(FALLBACK_INSTRUCTIONS),
            tips=list(FALLBACK_TIPS),
        )
