"""HTTP routes: auth, prediction, recipe generation, history and saved recipes.

Every route except registration and login requires a bearer token.
"""

import asyncio
from typing import List

from fastapi import APIRouter, Response, status

from taste_predictor.api.dependencies import Accounts, CurrentAccount, Pipeline
from taste_predictor.models.models import (
    AccountPublic,
    AuthResponse,
    HistoryEntry,
    HistorySummary,
    LoginRequest,
    PredictionRequest,
    PredictionResult,
    Preferences,
    RecipeRequest,
    RecipeResult,
    RegisterRequest,
    SavedRecipe,
)
from taste_predictor.utils.logger import logger
from taste_predictor.utils.safe import safe_execute_async


router = APIRouter(prefix="/api")


# ============================================================
# AUTH
# ============================================================


@router.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, accounts: Accounts) -> AuthResponse:
    account = accounts.register(payload.email, payload.password)
    return AuthResponse(token=accounts.issue_token(account), account=account.to_public())


@router.post("/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest, accounts: Accounts) -> AuthResponse:
    account, token = accounts.login(payload.email, payload.password)
    return AuthResponse(token=token, account=account.to_public())


@router.get("/me", response_model=AccountPublic)
def read_me(account: CurrentAccount) -> AccountPublic:
    return account.to_public()


@router.put("/me/preferences", response_model=Preferences)
def update_preferences(payload: Preferences, account: CurrentAccount, accounts: Accounts) -> Preferences:
    return accounts.update_preferences(account, payload).preferences


# ============================================================
# PREDICTION / RECIPE
# ============================================================


@router.post("/predict", response_model=PredictionResult)
async def predict(
    payload: PredictionRequest,
    account: CurrentAccount,
    pipeline: Pipeline,
    accounts: Accounts,
) -> PredictionResult:
    """Predict like/dislike for an ingredient list and remember it in the history.

    Always answers with a valid prediction; if the model is unavailable the
    result is a fallback. Failing to store the history entry does not fail
    the request.
    """
    result = await pipeline.predict(payload.ingredients)
    logger.info(f"Prediction ready: {result.prediction} ({result.confidence:.2f})", extra={"account_id": account.id})

    await safe_execute_async(
        asyncio.to_thread(accounts.record_prediction, account, payload.ingredients, result),
        "Record prediction history",
        log_level="error",
    )
    return result


@router.post("/generate-recipe", response_model=RecipeResult)
async def generate_recipe(payload: RecipeRequest, account: CurrentAccount, pipeline: Pipeline) -> RecipeResult:
    """Generate a recipe honoring the account's active dietary preferences."""
    preferences = account.preferences.active()
    logger.debug(f"Generating recipe (preferences: {preferences or 'none'})", extra={"account_id": account.id})
    return await pipeline.generate_recipe(payload.ingredients, payload.prior_prediction, preferences)


# ============================================================
# HISTORY
# ============================================================


@router.get("/history", response_model=List[HistoryEntry])
def list_history(account: CurrentAccount, accounts: Accounts) -> List[HistoryEntry]:
    return accounts.list_history(account)


@router.get("/history/summary", response_model=HistorySummary)
def history_summary(account: CurrentAccount, accounts: Accounts) -> HistorySummary:
    return accounts.history_summary(account)


@router.delete("/history/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_history_entry(entry_id: str, account: CurrentAccount, accounts: Accounts) -> Response:
    accounts.delete_history_entry(account, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# SAVED RECIPES
# ============================================================


@router.get("/recipes", response_model=List[SavedRecipe])
def list_saved_recipes(account: CurrentAccount) -> List[SavedRecipe]:
    return account.saved_recipes


@router.post("/recipes", response_model=SavedRecipe, status_code=status.HTTP_201_CREATED)
def save_recipe(payload: RecipeResult, account: CurrentAccount, accounts: Accounts) -> SavedRecipe:
    return accounts.save_recipe(account, payload)


@router.delete("/recipes/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_saved_recipe(recipe_id: str, account: CurrentAccount, accounts: Accounts) -> Response:
    accounts.delete_saved_recipe(account, recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
