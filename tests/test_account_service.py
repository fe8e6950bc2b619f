"""
Tests for registration, lookup and the credential check.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from auth.errors import DuplicateEmailError, InvalidCredentialsError, InvalidPasswordError
from auth.repository import UserRepository
from auth.service import AccountService, Authenticator
from database.models import User


class TestRegisterUser:
    @pytest.mark.asyncio
    async def test_stores_hashed_password(self, db_session, hasher):
        accounts = AccountService(UserRepository(db_session), hasher)
        user = await accounts.register_user("Ann", "Lee", "ann@x.com", "secret1")

        assert user.user_id is not None
        assert user.first_name == "Ann"
        assert user.last_name == "Lee"
        assert user.password_hash != "secret1"
        assert await hasher.verify("secret1", user.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_email_raises(self, db_session, hasher):
        accounts = AccountService(UserRepository(db_session), hasher)
        await accounts.register_user("Ann", "Lee", "ann@x.com", "secret1")

        with pytest.raises(DuplicateEmailError, match="Email already exists!"):
            await accounts.register_user("Other", "Person", "ann@x.com", "secret2")

    @pytest.mark.asyncio
    async def test_password_past_bcrypt_limit_rejected(self, db_session, hasher):
        accounts = AccountService(UserRepository(db_session), hasher)
        with pytest.raises(InvalidPasswordError):
            await accounts.register_user("Ann", "Lee", "ann@x.com", "x" * 73)

    @pytest.mark.asyncio
    async def test_constraint_violation_reported_as_duplicate(self, hasher):
        repo = MagicMock()
        repo.exists_by_email = AsyncMock(return_value=False)
        repo.save = AsyncMock(side_effect=DuplicateEmailError())
        accounts = AccountService(repo, hasher)

        with pytest.raises(DuplicateEmailError):
            await accounts.register_user("Ann", "Lee", "ann@x.com", "secret1")


class TestFindByEmail:
    @pytest.mark.asyncio
    async def test_returns_none_when_absent(self, db_session, hasher):
        accounts = AccountService(UserRepository(db_session), hasher)
        assert await accounts.find_by_email("nobody@x.com") is None

    @pytest.mark.asyncio
    async def test_returns_stored_user(self, db_session, hasher):
        accounts = AccountService(UserRepository(db_session), hasher)
        created = await accounts.register_user("Ann", "Lee", "ann@x.com", "secret1")

        found = await accounts.find_by_email("ann@x.com")
        assert isinstance(found, User)
        assert found.user_id == created.user_id


class TestRepository:
    @pytest.mark.asyncio
    async def test_unique_constraint_raises_duplicate(self, db_session):
        repo = UserRepository(db_session)
        await repo.save(User(first_name="A", last_name="L", email="ann@x.com", password_hash="h"))

        with pytest.raises(DuplicateEmailError):
            await repo.save(User(first_name="B", last_name="M", email="ann@x.com", password_hash="h"))

    @pytest.mark.asyncio
    async def test_exists_by_email(self, db_session):
        repo = UserRepository(db_session)
        assert await repo.exists_by_email("ann@x.com") is False
        await repo.save(User(first_name="A", last_name="L", email="ann@x.com", password_hash="h"))
        assert await repo.exists_by_email("ann@x.com") is True


class TestAuthenticator:
    @pytest.mark.asyncio
    async def test_correct_password(self, db_session, hasher):
        repo = UserRepository(db_session)
        await AccountService(repo, hasher).register_user("Ann", "Lee", "ann@x.com", "secret1")

        await Authenticator(repo, hasher).authenticate("ann@x.com", "secret1")

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session, hasher):
        repo = UserRepository(db_session)
        await AccountService(repo, hasher).register_user("Ann", "Lee", "ann@x.com", "secret1")

        with pytest.raises(InvalidCredentialsError):
            await Authenticator(repo, hasher).authenticate("ann@x.com", "wrong")

    @pytest.mark.asyncio
    async def test_unknown_email(self, db_session, hasher):
        with pytest.raises(InvalidCredentialsError):
            await Authenticator(UserRepository(db_session), hasher).authenticate(
                "nobody@x.com", "secret1"
            )


def _fail_inserts(conn, cursor, statement, parameters, context, executemany):
    if statement.lstrip().upper().startswith("INSERT"):
        raise OperationalError(statement, parameters, Exception("disk I/O error"))


class TestStoreFailure:
    @pytest.mark.asyncio
    async def test_failed_insert_leaves_session_usable(self, db_session):
        repo = UserRepository(db_session)
        engine = db_session.bind.sync_engine
        event.listen(engine, "before_cursor_execute", _fail_inserts)
        try:
            with pytest.raises(OperationalError):
                await repo.save(User(first_name="A", last_name="L", email="ann@x.com", password_hash="h"))
        finally:
            event.remove(engine, "before_cursor_execute", _fail_inserts)

        await db_session.commit()
        assert await repo.exists_by_email("ann@x.com") is False
