"""
Auth API routes — register, login, me.

Route prefix: /api/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.dependencies import (
    get_account_service,
    get_authenticator,
    get_current_user,
    get_token_service,
)
from auth.errors import AuthError, InvalidCredentialsError
from auth.jwt import TokenService
from auth.schemas import AccountResponse, AuthResponse, LoginRequest, RegisterRequest
from auth.service import AccountService, Authenticator
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

LOGIN_FAILED_MESSAGE = InvalidCredentialsError.default_message
REGISTRATION_FAILED_MESSAGE = "Registration failed"

_ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {
        "description": "Request rejected",
        "content": {"text/plain": {"schema": {"type": "string"}}},
    },
}


def _bad_request(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status.HTTP_400_BAD_REQUEST)


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(
        token=token,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
    )


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, responses=_ERROR_RESPONSES)
async def register(
    req: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Register a new user and return a token for it."""
    try:
        user = await accounts.register_user(
            req.first_name, req.last_name, req.email, req.password
        )
    except AuthError as exc:
        logger.info("Registration rejected for %s: %s", req.email, exc.message)
        return _bad_request(exc.message)
    except SQLAlchemyError:
        logger.exception("Registration failed for %s", req.email)
        return _bad_request(REGISTRATION_FAILED_MESSAGE)

    return _auth_response(user, tokens.issue(user.email))


@router.post("/login", response_model=AuthResponse, responses=_ERROR_RESPONSES)
async def login(
    req: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
    accounts: AccountService = Depends(get_account_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Login with email + password."""
    try:
        await authenticator.authenticate(req.email, req.password)
        user = await accounts.find_by_email(req.email)
        if user is None:
            raise InvalidCredentialsError()
    except AuthError:
        logger.info("Failed login for %s", req.email)
        return _bad_request(LOGIN_FAILED_MESSAGE)
    except SQLAlchemyError:
        logger.exception("Login lookup failed for %s", req.email)
        return _bad_request(LOGIN_FAILED_MESSAGE)

    logger.info("Login: %s (%s)", user.email, user.user_id)
    return _auth_response(user, tokens.issue(user.email))


@router.get("/me", response_model=AccountResponse)
async def me(user: User = Depends(get_current_user)) -> AccountResponse:
    """Return the account behind the Bearer token."""
    return AccountResponse(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
    )
