"""
Domain errors raised by the auth package.

Every error carries a message that is safe to show to a client.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for registration, login and token failures."""

    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEmailError(AuthError):
    default_message = "Email already exists!"


class InvalidCredentialsError(AuthError):
    default_message = "Invalid email or password"


class InvalidPasswordError(AuthError):
    default_message = "Password is too long"


class InvalidTokenError(AuthError):
    default_message = "Invalid token"
