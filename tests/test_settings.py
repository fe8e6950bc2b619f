"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from config.settings import Settings

SECRET = "env-secret-that-is-at-least-32-bytes-long"


class TestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", SECRET)
        monkeypatch.setenv("JWT_EXPIRATION_MS", "1500")

        settings = Settings(_env_file=None)
        assert settings.jwt_secret == SECRET
        assert settings.jwt_expiration_ms == 1500

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_secret="too-short", _env_file=None)

    def test_non_positive_lifetime_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_expiration_ms=0, _env_file=None)

    def test_frozen(self):
        settings = Settings(_env_file=None)
        with pytest.raises(ValidationError):
            settings.jwt_secret = SECRET
