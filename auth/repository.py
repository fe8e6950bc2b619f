"""
Credential store — user records keyed by email.

Any store failure rolls the session back before it propagates, so the
request's session can still be closed cleanly after the handler has
answered.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import DuplicateEmailError
from database.models import User


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists_by_email(self, email: str) -> bool:
        try:
            result = await self._session.execute(
                select(exists().where(User.email == email))
            )
        except SQLAlchemyError:
            await self._session.rollback()
            raise
        return bool(result.scalar())

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self._session.execute(
                select(User).where(User.email == email)
            )
        except SQLAlchemyError:
            await self._session.rollback()
            raise
        return result.scalar_one_or_none()

    async def save(self, user: User) -> User:
        """
        Insert ``user`` and flush so generated columns are populated.

        A unique-constraint violation (another request registered the same
        email in between) is reported as ``DuplicateEmailError``.
        """
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateEmailError() from exc
        except SQLAlchemyError:
            await self._session.rollback()
            raise
        return user
