"""Account operations used by the HTTP layer.

The prediction pipeline never touches accounts; route handlers pass its
results here to be remembered (history, saved recipes).
"""

from typing import List, Optional, Tuple

from taste_predictor.accounts.exceptions import (
    AccountError,
    EmailAlreadyRegisteredError,
    EntryNotFoundError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from taste_predictor.accounts.repository import UserRepository
from taste_predictor.accounts.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from taste_predictor.models.models import (
    EMAIL_PATTERN,
    Account,
    HistoryEntry,
    HistorySummary,
    PredictionResult,
    Preferences,
    RecipeResult,
    SavedRecipe,
    normalize_email,
)
from taste_predictor.utils.config import config
from taste_predictor.utils.logger import logger


class AccountService:
    """Registration, login, token checks and per-account records.

    Args:
        repository: Account storage.
        max_history_items: History cap per account. Default: config.MAX_HISTORY_ITEMS.
    """

    def __init__(self, repository: UserRepository, max_history_items: Optional[int] = None) -> None:
        self.repository = repository
        self.max_history_items = max_history_items or config.MAX_HISTORY_ITEMS

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def register(self, email: str, password: str) -> Account:
        """Create an account.

        Raises:
            AccountError: If the email is malformed or the password too short.
            EmailAlreadyRegisteredError: If the email is taken.
        """
        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise AccountError("email must be a valid email address")
        if len(password) < config.MIN_PASSWORD_LENGTH:
            raise AccountError(f"password must be at least {config.MIN_PASSWORD_LENGTH} characters")
        if self.repository.find_by_email(email) is not None:
            raise EmailAlreadyRegisteredError(f"Email already registered: {email}")

        account = self.repository.insert(Account(email=email, password_hash=hash_password(password)))
        logger.info("Registered account", extra={"account_id": account.id})
        return account

    def login(self, email: str, password: str) -> Tuple[Account, str]:
        """Verify credentials and issue a token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
        """
        account = self.repository.find_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentialsError("Invalid email or password")

        logger.info("Account logged in", extra={"account_id": account.id})
        return account, self.issue_token(account)

    def issue_token(self, account: Account) -> str:
        return create_access_token(account.id, account.email)

    def authenticate_token(self, token: str) -> Account:
        """Resolve a bearer token to its account.

        Raises:
            InvalidTokenError: Bad or expired token, or the account no longer exists.
        """
        claims = decode_access_token(token)
        account = self.repository.find_by_id(claims["sub"])
        if account is None:
            raise InvalidTokenError("Token refers to an unknown account")
        return account

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def update_preferences(self, account: Account, preferences: Preferences) -> Account:
        def change(current: Account) -> None:
            current.preferences = preferences

        updated = self.repository.modify(account.id, change)
        logger.info("Preferences updated", extra={"account_id": account.id})
        return updated

    # ------------------------------------------------------------------
    # Prediction history
    # ------------------------------------------------------------------

    def record_prediction(self, account: Account, ingredients: str, result: PredictionResult) -> HistoryEntry:
        """Append a prediction to the account history, dropping the oldest past the cap.

        The append runs against the stored account, not the `account` snapshot,
        so recipes or preferences saved while the model was answering survive.
        """
        entry = HistoryEntry(ingredients=ingredients, **result.model_dump())

        def change(current: Account) -> None:
            current.history = (current.history + [entry])[-self.max_history_items:]

        self.repository.modify(account.id, change)
        return entry

    def list_history(self, account: Account) -> List[HistoryEntry]:
        """History, newest first."""
        return list(reversed(account.history))

    def delete_history_entry(self, account: Account, entry_id: str) -> Account:
        def change(current: Account) -> None:
            remaining = [entry for entry in current.history if entry.id != entry_id]
            if len(remaining) == len(current.history):
                raise EntryNotFoundError(f"History entry not found: {entry_id}")
            current.history = remaining

        return self.repository.modify(account.id, change)

    def history_summary(self, account: Account) -> HistorySummary:
        history = account.history
        if not history:
            return HistorySummary()

        likes = sum(1 for entry in history if entry.prediction == "like")
        return HistorySummary(
            total=len(history),
            likes=likes,
            dislikes=len(history) - likes,
            average_confidence=round(sum(entry.confidence for entry in history) / len(history), 2),
            last_prediction_at=max(entry.timestamp for entry in history),
        )

    # ------------------------------------------------------------------
    # Saved recipes
    # ------------------------------------------------------------------

    def save_recipe(self, account: Account, recipe: RecipeResult) -> SavedRecipe:
        saved = SavedRecipe(**recipe.model_dump())

        def change(current: Account) -> None:
            current.saved_recipes = current.saved_recipes + [saved]

        self.repository.modify(account.id, change)
        logger.info(f"Saved recipe {saved.id}", extra={"account_id": account.id})
        return saved

    def delete_saved_recipe(self, account: Account, recipe_id: str) -> Account:
        def change(current: Account) -> None:
            remaining = [recipe for recipe in current.saved_recipes if recipe.id != recipe_id]
            if len(remaining) == len(current.saved_recipes):
                raise EntryNotFoundError(f"Saved recipe not found: {recipe_id}")
            current.saved_recipes = remaining

        return self.repository.modify(account.id, change)
