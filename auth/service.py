"""
Account registration, lookup and credential checks.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.errors import DuplicateEmailError, InvalidCredentialsError
from auth.password import PasswordHasher
from auth.repository import UserRepository
from database.models import User

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, repository: UserRepository, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._hasher = hasher

    async def register_user(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
    ) -> User:
        """Store a new user; raises ``DuplicateEmailError`` if the email is taken."""
        if await self._repository.exists_by_email(email):
            raise DuplicateEmailError()

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=await self._hasher.hash(password),
        )
        user = await self._repository.save(user)
        logger.info("Registered user %s (%s)", user.email, user.user_id)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self._repository.find_by_email(email)


class Authenticator:
    """Checks an email + password pair against the stored hash."""

    def __init__(self, repository: UserRepository, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._hasher = hasher

    async def authenticate(self, email: str, password: str) -> None:
        user = await self._repository.find_by_email(email)
        if user is None:
            # Same cost as a real check so response time does not reveal the account.
            await self._hasher.burn(password)
            raise InvalidCredentialsError()
        if not await self._hasher.verify(password, user.password_hash):
            raise InvalidCredentialsError()
