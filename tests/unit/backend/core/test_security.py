"""
Unit Tests for Security Module.

bcrypt and JWT run for real; only the config boundary is stubbed with
real Pydantic schema objects.
"""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from jose import jwt as jose_jwt

from notegraph.backend.core.config_schema import JwtSchema
from notegraph.backend.core.exceptions import AuthenticationError
from notegraph.backend.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-testing-purposes"


@pytest.fixture
def jwt_config():
    return JwtSchema(
        algorithm="HS256",
        access_token_expire_minutes=30,
        refresh_token_expire_days=7,
        audience="notegraph-test",
    )


@pytest.fixture
def _stub_config(jwt_config):
    """Stub the config boundary so security functions can resolve settings."""
    settings = SimpleNamespace(jwt_secret=TEST_JWT_SECRET)
    app_config = SimpleNamespace(security=SimpleNamespace(jwt=jwt_config))
    with (
        patch("notegraph.backend.core.security.get_settings", return_value=settings),
        patch("notegraph.backend.core.security.get_app_config", return_value=app_config),
    ):
        yield


# =============================================================================
# Password Hashing
# =============================================================================


class TestPasswords:
    def test_hash_is_bcrypt_and_salted(self):
        first = hash_password("secret123")
        second = hash_password("secret123")

        assert first.startswith("$2")
        assert first != "secret123"
        assert first != second

    def test_verify(self):
        hashed = hash_password("pässwörd-🔑")

        assert verify_password("pässwörd-🔑", hashed) is True
        assert verify_password("password", hashed) is False


# =============================================================================
# Token Creation
# =============================================================================


@pytest.mark.usefixtures("_stub_config")
class TestCreateTokens:
    def test_access_round_trip(self):
        payload = decode_token(create_access_token({"sub": "user-42"}))

        assert payload["sub"] == "user-42"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert payload["aud"] == "notegraph-test"

    def test_refresh_round_trip(self):
        payload = decode_token(create_refresh_token({"sub": "user-42"}))

        assert payload["type"] == REFRESH_TOKEN_TYPE

    def test_refresh_expires_later_than_access(self):
        access = decode_token(create_access_token({"sub": "u"}))
        refresh = decode_token(create_refresh_token({"sub": "u"}))

        assert refresh["exp"] > access["exp"]

    def test_custom_expiration_delta(self):
        short = create_access_token({"sub": "u"}, expires_delta=timedelta(minutes=5))
        long = create_access_token({"sub": "u"}, expires_delta=timedelta(hours=24))

        assert decode_token(long)["exp"] > decode_token(short)["exp"]

    def test_does_not_mutate_input_data(self):
        data = {"sub": "user-1"}
        create_access_token(data)
        create_refresh_token(data)

        assert data == {"sub": "user-1"}


# =============================================================================
# Token Decoding - Failure Cases
# =============================================================================


@pytest.mark.usefixtures("_stub_config")
class TestDecodeToken:
    @pytest.mark.parametrize("token", ["not-a-jwt-token", ""])
    def test_garbage(self, token):
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_wrong_type_rejected(self):
        token = create_refresh_token({"sub": "user-1"})

        with pytest.raises(AuthenticationError):
            decode_token(token, expected_type=ACCESS_TOKEN_TYPE)

    def test_wrong_secret(self):
        token = jose_jwt.encode(
            {"sub": "user-1", "type": "access", "aud": "notegraph-test"},
            "completely-different-secret",
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_wrong_audience(self):
        token = jose_jwt.encode(
            {"sub": "user-1", "type": "access", "aud": "another-service"},
            TEST_JWT_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_missing_subject(self):
        token = create_access_token({"role": "admin"})

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_expired(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(AuthenticationError):
            decode_token(token)
