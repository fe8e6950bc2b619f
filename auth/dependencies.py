"""
FastAPI dependencies for authentication.

Long-lived collaborators (``TokenService``, ``PasswordHasher``) are built once
in ``create_app`` and read from ``app.state``; per-request services are
assembled around the request's DB session.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import InvalidTokenError
from auth.jwt import TokenService
from auth.password import PasswordHasher
from auth.repository import UserRepository
from auth.service import AccountService, Authenticator
from database.models import User
from database.session import get_db_session

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_account_service(
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AccountService:
    return AccountService(UserRepository(session), hasher)


def get_authenticator(
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> Authenticator:
    return Authenticator(UserRepository(session), hasher)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
    accounts: AccountService = Depends(get_account_service),
) -> User:
    """
    Resolve the Bearer token to the stored user.

    Raises ``HTTPException(401)`` for a missing, invalid or expired token,
    or when the account no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    token = credentials.credentials
    try:
        claims = tokens.extract_claims(token)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc.message)
        raise _unauthorized()

    if tokens.claims_expired(claims):
        raise _unauthorized()

    user = await accounts.find_by_email(claims["sub"])
    if user is None:
        raise _unauthorized()
    return user
