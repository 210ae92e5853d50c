"""FastAPI application factory for the taste prediction service.

create_app() wires the collaborators (account repository, completion client,
pipeline), registers middleware, error mapping and routes. Collaborators can
be injected, which is how the tests run the API without a model or database.
"""

import time
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taste_predictor.accounts.exceptions import (
    AccountError,
    AccountNotFoundError,
    EmailAlreadyRegisteredError,
    EntryNotFoundError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from taste_predictor.accounts.repository import UserRepository, create_repository
from taste_predictor.accounts.service import AccountService
from taste_predictor.api.routes import router
from taste_predictor.llm.gemini import GeminiCompletionClient
from taste_predictor.models.models import HealthResponse
from taste_predictor.pipeline.pipeline import TastePipeline
from taste_predictor.prompts.prompts import PROMPT_VERSION
from taste_predictor.utils.config import config
from taste_predictor.utils.logger import bind_request_id, logger


ERROR_STATUS = {
    EmailAlreadyRegisteredError: status.HTTP_409_CONFLICT,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    InvalidTokenError: status.HTTP_401_UNAUTHORIZED,
    AccountNotFoundError: status.HTTP_404_NOT_FOUND,
    EntryNotFoundError: status.HTTP_404_NOT_FOUND,
}


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


def create_app(
    repository: Optional[UserRepository] = None,
    pipeline: Optional[TastePipeline] = None,
) -> FastAPI:
    """Build the application.

    Args:
        repository: Account storage. Default: chosen from DATABASE_URL.
        pipeline: Prediction pipeline. Default: Gemini-backed pipeline from config.

    Returns:
        Configured FastAPI instance.
    """
    logger.info("=== Initializing Taste Predictor API ===")

    repository = repository or create_repository(config.DATABASE_URL)
    if pipeline is None:
        client = GeminiCompletionClient()
        if not client.configured:
            logger.warning("GEMINI_API_KEY is not set: every prediction and recipe will be a fallback")
        pipeline = TastePipeline(client)

    app = FastAPI(
        title="Taste Predictor API",
        description="Predicts whether a dish will be enjoyed and generates recipes from ingredient lists",
        version="1.0.0",
    )
    app.state.accounts = AccountService(repository)
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials="*" not in config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex[:12]
        start_time = time.perf_counter()
        with bind_request_id(request_id):
            try:
                response = await call_next(request)
            except Exception:
                logger.error(f"{request.method} {request.url.path} failed", exc_info=True)
                raise

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            response.headers["X-Request-ID"] = request_id
            logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    app.add_exception_handler(AccountError, account_error_handler)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            model=config.GEMINI_MODEL,
            storage=repository.storage_name,
            prompt_version=PROMPT_VERSION,
        )

    app.include_router(router)

    logger.info(f"✓ API configured (storage={repository.storage_name}, model={config.GEMINI_MODEL})")
    return app
