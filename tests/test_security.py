"""Tests for password hashing, tokens and sealed secrets."""

from datetime import timedelta

import pytest
from jose import jwt

from profman.core.errors import InvalidTokenError, TokenExpiredError
from profman.core.records import utc_now
from profman.core.security import (
    create_access_token,
    create_refresh_token,
    create_state_token,
    decode_token,
    hash_password,
    read_state_token,
    seal_secret,
    unseal_secret,
    verify_password,
)

USER = {"id": "u1", "email": "ana@university.edu", "role": "professor"}


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("Secret123")
        assert hashed != "Secret123"
        assert verify_password("Secret123", hashed)
        assert not verify_password("Secret124", hashed)

    def test_long_passwords_truncated_to_72_bytes(self):
        base = "A1b" * 30
        hashed = hash_password(base)
        assert verify_password(base[:72] + "different tail", hashed)

    def test_missing_or_malformed_hash(self):
        assert not verify_password("x", None)
        assert not verify_password("x", "not-a-bcrypt-hash")


class TestTokens:
    def test_access_token_claims(self):
        payload = decode_token(create_access_token(USER))
        assert payload["userId"] == "u1"
        assert payload["role"] == "professor"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_refresh_token_is_not_access_token(self):
        with pytest.raises(InvalidTokenError):
            decode_token(create_refresh_token(USER), expected_type="access")
        assert decode_token(create_refresh_token(USER), expected_type="refresh")["userId"] == "u1"

    def test_expired_token(self):
        past = utc_now() - timedelta(hours=1)
        token = jwt.encode(
            {**USER, "userId": "u1", "type": "access", "iat": int(past.timestamp()), "exp": int(past.timestamp())},
            "test-secret",
            algorithm="HS256",
        )
        with pytest.raises(TokenExpiredError):
            decode_token(token)

    def test_forged_token(self):
        token = jwt.encode({"userId": "u1", "type": "access"}, "other-secret", algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.token")

    def test_state_token_round_trip(self):
        assert read_state_token(create_state_token("u42")) == "u42"

    def test_access_token_rejected_as_state(self):
        with pytest.raises(InvalidTokenError):
            read_state_token(create_access_token(USER))


class TestSealedSecrets:
    def test_seal_hides_plaintext(self):
        sealed = seal_secret("refresh-token-value")
        assert "refresh-token-value" not in sealed
        assert unseal_secret(sealed) == "refresh-token-value"

    def test_tampered_value(self):
        with pytest.raises(InvalidTokenError):
            unseal_secret("definitely-not-jwe")
