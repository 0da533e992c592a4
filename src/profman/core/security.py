"""Password hashing, bearer tokens and secret sealing.

- bcrypt for password hashes (72-byte input limit)
- HS256 JWTs (python-jose) for access/refresh tokens and OAuth state
- JWE (python-jose, direct A256GCM) for secrets stored at rest
"""

from __future__ import annotations

import hashlib
from datetime import timedelta
from typing import Any, Literal

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwe, jwt
from jose.exceptions import JWEError

from profman.config.app_config import load_app_config
from profman.core.errors import InvalidTokenError, TokenExpiredError
from profman.core.records import utc_now

TokenType = Literal["access", "refresh", "drive_state"]

DRIVE_STATE_TTL = timedelta(minutes=10)


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt."""
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    if rounds is None:
        rounds = load_app_config().auth.bcrypt_rounds
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a password against a stored bcrypt hash."""
    if not password_hash:
        return False
    password_bytes = password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


# =============================================================================
# TOKENS
# =============================================================================


def _encode(claims: dict[str, Any], token_type: TokenType, ttl: timedelta) -> str:
    auth = load_app_config().auth
    now = utc_now()
    payload = {
        **claims,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, auth.jwt_secret, algorithm=auth.jwt_algorithm)


def _user_claims(user: dict[str, Any]) -> dict[str, Any]:
    return {"userId": user["id"], "email": user["email"], "role": user["role"]}


def create_access_token(user: dict[str, Any]) -> str:
    """Create a short-lived access token for a user document."""
    return _encode(_user_claims(user), "access", load_app_config().auth.access_token_ttl)


def create_refresh_token(user: dict[str, Any]) -> str:
    """Create a long-lived refresh token for a user document."""
    return _encode(_user_claims(user), "refresh", load_app_config().auth.refresh_token_ttl)


def decode_token(token: str, expected_type: TokenType = "access") -> dict[str, Any]:
    """Verify signature, expiry and token type.

    Raises:
        TokenExpiredError: If the token is past its expiry
        InvalidTokenError: If the token is malformed, forged or of another type
    """
    auth = load_app_config().auth
    try:
        payload = jwt.decode(token, auth.jwt_secret, algorithms=[auth.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except JWTError as e:
        raise InvalidTokenError() from e

    if payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")
    return payload


def create_state_token(user_id: str) -> str:
    """Signed OAuth state carrying the user id."""
    return _encode({"userId": user_id}, "drive_state", DRIVE_STATE_TTL)


def read_state_token(state: str) -> str:
    """Return the user id from a state token."""
    return decode_token(state, expected_type="drive_state")["userId"]


# =============================================================================
# SEALED SECRETS
# =============================================================================


def _sealing_key() -> bytes:
    # 32 bytes for A256GCM
    return hashlib.sha256(load_app_config().auth.jwt_secret.encode("utf-8")).digest()


def seal_secret(value: str) -> str:
    """Encrypt a secret (e.g. an OAuth refresh token) for storage."""
    sealed = jwe.encrypt(value.encode("utf-8"), _sealing_key(), algorithm="dir", encryption="A256GCM")
    return sealed.decode("utf-8") if isinstance(sealed, bytes) else sealed


def unseal_secret(sealed: str) -> str:
    """Decrypt a value produced by seal_secret.

    Raises:
        InvalidTokenError: If the value cannot be decrypted with the current key
    """
    try:
        plaintext = jwe.decrypt(sealed, _sealing_key())
    except JWEError as e:
        raise InvalidTokenError("Stored secret could not be decrypted") from e
    return plaintext.decode("utf-8")
