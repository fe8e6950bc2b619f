"""
Password hashing and verification.

Uses bcrypt with automatic salting; the work factor comes from
``Settings.bcrypt_rounds``.  bcrypt is CPU-bound, so the async methods run
it in a worker thread and keep the event loop free for other requests.
"""

from __future__ import annotations

import anyio
import bcrypt

from auth.errors import InvalidPasswordError

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # Built up front so the first unknown-email login costs one bcrypt run, not two.
        self._dummy_hash = self._hash("dummy-password")

    def _hash(self, password: str) -> str:
        encoded = password.encode()
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidPasswordError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode()

    @staticmethod
    def _verify(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except (ValueError, TypeError):
            return False

    async def hash(self, password: str) -> str:
        """Hash ``password``; raises ``InvalidPasswordError`` past 72 bytes."""
        return await anyio.to_thread.run_sync(self._hash, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time comparison against a bcrypt hash."""
        return await anyio.to_thread.run_sync(self._verify, password, password_hash)

    async def burn(self, password: str) -> None:
        """Spend one verification's worth of work when there is no hash to check."""
        await self.verify(password, self._dummy_hash)
