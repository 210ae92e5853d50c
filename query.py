#!/usr/bin/env python3
"""Ad hoc query runner for the Taste Predictor.

Run a prediction (or recipe) directly without starting the API server.

Usage:
    python query.py "tofu, chili, lime"
    python query.py --recipe "chicken, rice, soy sauce"
    python query.py --debug "tofu, chili, lime"        # Show full JSON result
    python query.py --prompt-only "tofu, chili, lime"  # Print prompts, no model call

Features:
- Same pipeline as the API (prompt builder, Gemini client, resolver)
- Always prints a result: fallbacks are used when the model is unavailable
- Debug mode to display the full JSON result
"""

import asyncio
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from taste_predictor.llm.gemini import GeminiCompletionClient
from taste_predictor.models.models import PredictionResult, RecipeResult
from taste_predictor.pipeline.pipeline import TastePipeline
from taste_predictor.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--recipe] [--debug] [--prompt-only] "<ingredients>"'


def print_prediction(result: PredictionResult) -> None:
    color = "green" if result.prediction == "like" else "red"
    console.print(
        f"[bold {color}]{result.prediction.upper()}[/bold {color}] "
        f"(confidence {result.confidence:.0%})"
    )
    for suggestion in result.suggestions:
        console.print(f"  • {suggestion}")


def print_recipe(recipe: RecipeResult) -> None:
    table = Table(show_header=False, box=None)
    table.add_row("Prep", recipe.prep_time)
    table.add_row("Cook", recipe.cook_time)
    table.add_row("Serves", str(recipe.serves))
    console.print(Panel(table, title=f"[bold]{recipe.name}[/bold]"))

    console.print("[bold]Ingredients[/bold]")
    for ingredient in recipe.ingredients:
        console.print(f"  • {ingredient}")
    console.print("[bold]Instructions[/bold]")
    for number, step in enumerate(recipe.instructions, start=1):
        console.print(f"  {number}. {step}")
    if recipe.tips:
        console.print("[bold]Tips[/bold]")
        for tip in recipe.tips:
            console.print(f"  - {tip}")


def run_query(ingredients: str, recipe: bool = False, debug: bool = False, prompt_only: bool = False) -> None:
    """Run one prediction or recipe request and print the result.

    Args:
        ingredients: Free-text ingredient list.
        recipe: If True, generate a recipe instead of a prediction.
        debug: If True, display the full JSON result.
        prompt_only: If True, print the rendered prompts and skip the model call.
    """
    try:
        client = GeminiCompletionClient()
        pipeline = TastePipeline(client)

        if prompt_only:
            for name, prompt in pipeline.build_prompts(ingredients).items():
                console.print(Panel(prompt, title=f"{name} prompt"))
            return

        if not client.configured:
            logger.warning("GEMINI_API_KEY is not set: the result will be a fallback")

        logger.info(f"Running {'recipe' if recipe else 'prediction'} for: {ingredients}")
        if recipe:
            result = asyncio.run(pipeline.generate_recipe(ingredients))
        else:
            result = asyncio.run(pipeline.predict(ingredients))

        console.print()
        if debug:
            console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print_json(data=result.model_dump(mode="json", by_alias=True))
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print()

        if recipe:
            print_recipe(result)
        else:
            print_prediction(result)

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "tofu, chili, lime"')
        print('  python query.py --recipe "chicken, rice, soy sauce"')
        print('  python query.py --prompt-only "tofu, chili, lime"')
        sys.exit(1)

    recipe_mode = False
    debug_mode = False
    prompt_only_mode = False
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--recipe":
            recipe_mode = True
        elif flag == "--debug":
            debug_mode = True
        elif flag == "--prompt-only":
            prompt_only_mode = True
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)
        argv_start += 1

    ingredients = " ".join(sys.argv[argv_start:]).strip()
    if not ingredients:
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)

    run_query(ingredients, recipe=recipe_mode, debug=debug_mode, prompt_only=prompt_only_mode)
