"""
JWT token creation and verification.

Tokens are compact HS256 JWTs: ``header.claims.signature``, each segment
base64url-encoded without padding and signed with HMAC-SHA256.  Claims are
``sub`` (the user's email), ``iat`` and ``exp`` (epoch seconds with
millisecond precision, since the lifetime is configured in milliseconds).

The signing secret and lifetime come from an immutable ``Settings`` object
handed to :class:`TokenService` at startup.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import logging
import re
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from auth.errors import InvalidTokenError
from config.settings import Settings

logger = logging.getLogger(__name__)

_HEADER = {"alg": "HS256", "typ": "JWT"}

# Unpadded base64url alphabet; the decoder would otherwise skip stray characters.
_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]*\Z")


def _b64encode(raw: bytes) -> str:
    return urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return urlsafe_b64decode(segment + padding)


class TokenService:
    """Issue and verify signed, time-bounded bearer tokens."""

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._key = settings.jwt_secret.encode()
        self._lifetime_seconds = settings.jwt_expiration_ms / 1000
        self._clock = clock

    def _sign(self, signing_input: bytes) -> bytes:
        return hmac.new(self._key, signing_input, hashlib.sha256).digest()

    def issue(self, subject: str) -> str:
        """Create a signed token for ``subject`` valid for the configured lifetime."""
        now = self._clock()
        claims = {
            "sub": subject,
            "iat": round(now, 3),
            "exp": round(now + self._lifetime_seconds, 3),
        }
        header = _b64encode(json.dumps(_HEADER, separators=(",", ":")).encode())
        payload = _b64encode(json.dumps(claims, separators=(",", ":")).encode())
        signing_input = f"{header}.{payload}".encode("ascii")
        return f"{header}.{payload}.{_b64encode(self._sign(signing_input))}"

    def extract_claims(self, token: str) -> Dict[str, Any]:
        """
        Verify the signature of ``token`` and return its claims.

        Raises ``InvalidTokenError`` when the token is malformed or the
        signature does not match.  Expiry is *not* checked here.
        """
        parts = token.split(".") if isinstance(token, str) else []
        if len(parts) != 3:
            raise InvalidTokenError("Malformed token")
        if not all(_SEGMENT_RE.match(part) for part in parts):
            raise InvalidTokenError("Malformed token")
        header_b64, payload_b64, signature_b64 = parts

        try:
            signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
            header = json.loads(_b64decode(header_b64))
        except (ValueError, binascii.Error) as exc:
            raise InvalidTokenError("Malformed token") from exc

        if not isinstance(header, dict) or header.get("alg") != _HEADER["alg"]:
            raise InvalidTokenError("Unsupported token algorithm")

        # Compared as text so a non-canonical encoding of the right bytes is rejected too.
        expected = _b64encode(self._sign(signing_input))
        if not hmac.compare_digest(signature_b64, expected):
            raise InvalidTokenError("Token signature does not match")

        try:
            claims = json.loads(_b64decode(payload_b64))
        except (ValueError, binascii.Error) as exc:
            raise InvalidTokenError("Malformed token") from exc

        if (
            not isinstance(claims, dict)
            or not isinstance(claims.get("sub"), str)
            or not isinstance(claims.get("exp"), (int, float))
        ):
            raise InvalidTokenError("Token is missing required claims")
        return claims

    def extract_subject(self, token: str) -> str:
        return self.extract_claims(token)["sub"]

    def extract_expiration(self, token: str) -> datetime:
        return datetime.fromtimestamp(self.extract_claims(token)["exp"], tz=timezone.utc)

    def claims_expired(self, claims: Dict[str, Any]) -> bool:
        """True when already-verified ``claims`` are past their ``exp``."""
        return claims["exp"] < self._clock()

    def is_expired(self, token: str) -> bool:
        return self.claims_expired(self.extract_claims(token))

    def validate(self, token: str, expected_subject: str) -> bool:
        """
        True iff the signature verifies, the subject equals
        ``expected_subject`` and the token has not expired.  Never raises.
        """
        try:
            claims = self.extract_claims(token)
        except InvalidTokenError as exc:
            logger.debug("Token rejected: %s", exc.message)
            return False
        return claims["sub"] == expected_subject and not self.claims_expired(claims)
