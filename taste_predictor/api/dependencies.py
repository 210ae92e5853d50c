"""FastAPI dependencies: injected collaborators and bearer-token auth."""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taste_predictor.accounts.exceptions import InvalidTokenError
from taste_predictor.accounts.service import AccountService
from taste_predictor.models.models import Account
from taste_predictor.pipeline.pipeline import TastePipeline


bearer_scheme = HTTPBearer(auto_error=False)


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def get_pipeline(request: Request) -> TastePipeline:
    return request.app.state.pipeline


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_account(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> Account:
    """Resolve the `Authorization: Bearer <token>` header to an account."""
    if credentials is None:
        raise unauthorized("Not authenticated")
    try:
        return accounts.authenticate_token(credentials.credentials)
    except InvalidTokenError as e:
        raise unauthorized(str(e)) from e


Accounts = Annotated[AccountService, Depends(get_account_service)]
Pipeline = Annotated[TastePipeline, Depends(get_pipeline)]
CurrentAccount = Annotated[Account, Depends(get_current_account)]
