"""Credential and token primitives.

The service knows exactly one credential, configured as a bcrypt hash, and
issues HMAC-signed JWTs that only state "authenticated" plus the issuance
time in milliseconds. Nothing here touches the request or the store.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from itemkit.core.constants import (
    MILLISECONDS_PER_SECOND,
    TOKEN_AUTHENTICATED_CLAIM,
    TOKEN_TIMESTAMP_CLAIM,
)
from itemkit.core.exceptions import TokenExpiredError, TokenInvalidError

REQUIRED_CLAIMS = ["exp", "iat", TOKEN_AUTHENTICATED_CLAIM, TOKEN_TIMESTAMP_CLAIM]


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Verified content of an access token."""

    authenticated: bool
    issued_at_millis: int


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * MILLISECONDS_PER_SECOND)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Compare a plaintext credential against a bcrypt hash.

    ``bcrypt.checkpw`` runs in constant time with respect to the hash. A
    malformed hash counts as a mismatch.

    Args:
        plain_password: Credential submitted by the caller.
        password_hash: Configured bcrypt hash.

    Returns:
        bool: True when the credential matches.
    """
    password = plain_password.encode("utf-8")
    hashed = password_hash.encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def issue_token(
    secret: str,
    expiry_seconds: int,
    algorithm: str = "HS256",
    issued_at_millis: int | None = None,
) -> str:
    """Sign a new access token.

    Args:
        secret: HMAC signing secret.
        expiry_seconds: Lifetime of the token.
        algorithm: JWT signing algorithm.
        issued_at_millis: Issuance time, defaults to now.

    Returns:
        str: The encoded JWT.
    """
    issued_at_millis = issued_at_millis if issued_at_millis is not None else now_millis()
    issued_at = datetime.fromtimestamp(issued_at_millis / MILLISECONDS_PER_SECOND, UTC)
    payload: dict[str, Any] = {
        TOKEN_AUTHENTICATED_CLAIM: True,
        TOKEN_TIMESTAMP_CLAIM: issued_at_millis,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=expiry_seconds),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> TokenClaims:
    """Verify a token's signature and expiry and return its claims.

    Expiry is checked before any other failure so an authentic but stale
    token is always reported as expired.

    Raises:
        TokenExpiredError: The signature verifies but ``exp`` has passed.
        TokenInvalidError: The token is malformed, tampered or lacks claims.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError(cause=exc) from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError(cause=exc) from exc

    authenticated = payload[TOKEN_AUTHENTICATED_CLAIM]
    issued_at_millis = payload[TOKEN_TIMESTAMP_CLAIM]
    if authenticated is not True or not isinstance(issued_at_millis, int):
        raise TokenInvalidError(context={"reason": "unexpected claim values"})

    return TokenClaims(authenticated=True, issued_at_millis=issued_at_millis)
