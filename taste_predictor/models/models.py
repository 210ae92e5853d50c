"""Data models and schemas for the taste prediction service.

Defines Pydantic models for request/response validation and domain objects.
All models use Pydantic v2 for strict validation and OpenAPI schema generation.

Field names of the prediction and recipe results are part of the prompt
contract (the model is asked to reply with exactly these keys), so multi-word
fields serialize to camelCase (`prepTime`, `cookTime`, `savedAt`, ...) while
the Python attributes stay snake_case.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from taste_predictor.utils.config import config


PredictionLabel = Literal["like", "dislike"]
PriorPrediction = Literal["like", "dislike", "unknown"]

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address (emails are case-insensitive keys)."""
    return email.strip().lower()


class CamelModel(BaseModel):
    """Base model serializing snake_case attributes as camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


# ============================================================================
# Prediction / Recipe core schemas
# ============================================================================


class PredictionRequest(BaseModel):
    """Request schema for a taste prediction.

    Whitespace is stripped before validation, so a blank ingredient list is rejected.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    ingredients: Annotated[
        str,
        Field(
            min_length=1,
            max_length=config.MAX_INGREDIENTS_CHARS,
            description="Free-text ingredient list or meal description",
        ),
    ]


MAX_SUGGESTIONS = 3


class PredictionResult(BaseModel):
    """Like/dislike judgment with confidence and up to three suggestions.

    `prediction` and `confidence` are checked strictly and never altered.
    `suggestions` is advisory, so a sloppy value is normalized instead of
    rejected: a bare string becomes a one-item list, non-string items are
    dropped and the list is cut to MAX_SUGGESTIONS.
    """

    prediction: Annotated[PredictionLabel, Field(description="Whether the average person will enjoy the dish")]
    confidence: Annotated[
        float, Field(strict=True, ge=0.0, le=1.0, description="Confidence of the prediction (0.0-1.0)")
    ]
    suggestions: Annotated[
        List[str],
        Field(default_factory=list, max_length=MAX_SUGGESTIONS, description="Improvement suggestions (0-3 items)"),
    ]

    @field_validator("suggestions", mode="before")
    @classmethod
    def normalize_suggestions(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, str)][:MAX_SUGGESTIONS]


class RecipeRequest(BaseModel):
    """Request schema for recipe generation.

    The prior prediction label is accepted as `priorPrediction` or, as the
    web frontend sends it, `prediction`.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    ingredients: Annotated[
        str,
        Field(
            min_length=1,
            max_length=config.MAX_INGREDIENTS_CHARS,
            description="Free-text ingredient list",
        ),
    ]
    prior_prediction: Annotated[
        Optional[PriorPrediction],
        Field(
            None,
            validation_alias=AliasChoices("priorPrediction", "prediction", "prior_prediction"),
            serialization_alias="priorPrediction",
            description="Label of an earlier prediction for the same ingredients",
        ),
    ]


class RecipeResult(CamelModel):
    """Structured recipe: every recipe has at least one ingredient and one step."""

    # Reply text is kept as written; models occasionally answer "prepTime": 15 instead of "15 minutes"
    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=False)

    name: Annotated[str, Field(min_length=1, max_length=200, description="Recipe name")]
    prep_time: Annotated[str, Field(description="Preparation time, e.g. '15 minutes'")]
    cook_time: Annotated[str, Field(description="Cooking time, e.g. '25 minutes'")]
    serves: Annotated[int, Field(ge=1, description="Number of servings")]
    ingredients: Annotated[List[str], Field(min_length=1, description="Ingredients with quantities")]
    instructions: Annotated[List[str], Field(min_length=1, description="Imperative cooking steps, in order")]
    tips: Annotated[List[str], Field(default_factory=list, description="Optional cooking tips")]


# ============================================================================
# Account domain objects
# ============================================================================


class Preferences(CamelModel):
    """Dietary and taste preferences stored on an account."""

    vegetarian: bool = False
    vegan: bool = False
    spicy: bool = False
    sweet: bool = False
    gluten_free: bool = False
    dairy_free: bool = False

    def active(self) -> List[str]:
        """Human-readable names of enabled preferences, in declaration order."""
        return [
            name.replace("_", "-")
            for name, enabled in self.model_dump().items()
            if enabled
        ]


class HistoryEntry(PredictionResult):
    """A prediction remembered on an account."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_id)
    ingredients: str
    timestamp: datetime = Field(default_factory=utc_now)


class SavedRecipe(RecipeResult):
    """A generated recipe the user chose to keep."""

    id: str = Field(default_factory=new_id)
    saved_at: datetime = Field(default_factory=utc_now)


class AccountPublic(CamelModel):
    """Account as exposed over the API. Never carries the password hash."""

    id: str
    email: str
    preferences: Preferences = Field(default_factory=Preferences)
    history: List[HistoryEntry] = Field(default_factory=list)
    saved_recipes: List[SavedRecipe] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Account(AccountPublic):
    """Stored account including the bcrypt password hash."""

    id: str = Field(default_factory=new_id)
    password_hash: str

    def to_public(self) -> AccountPublic:
        return AccountPublic.model_validate(self.model_dump(exclude={"password_hash"}))


class HistorySummary(CamelModel):
    """Aggregate view over an account's prediction history."""

    total: int = 0
    likes: int = 0
    dislikes: int = 0
    average_confidence: Optional[float] = None
    last_prediction_at: Optional[datetime] = None


# ============================================================================
# Auth and service schemas
# ============================================================================


class RegisterRequest(BaseModel):
    """Registration payload. Email is normalized, password length is enforced."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: Annotated[str, Field(min_length=3, max_length=254)]
    password: Annotated[str, Field(min_length=config.MIN_PASSWORD_LENGTH, max_length=128)]

    @field_validator("email")
    @classmethod
    def validate_email(cls, email: str) -> str:
        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise ValueError("email must be a valid email address")
        return email

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, password: str) -> str:
        # bcrypt only considers the first 72 bytes
        if len(password.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return password


class LoginRequest(BaseModel):
    """Login payload."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: Annotated[str, Field(min_length=1, max_length=254)]
    password: Annotated[str, Field(min_length=1, max_length=128)]


class AuthResponse(CamelModel):
    """Bearer token plus the authenticated account."""

    token: str
    token_type: str = "bearer"
    account: AccountPublic


class HealthResponse(CamelModel):
    """Service liveness and wiring information."""

    status: str = "ok"
    model: str
    storage: str
    prompt_version: str
