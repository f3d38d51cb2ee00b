"""Unit tests for credential and token primitives."""

import bcrypt
import jwt
import pytest
import pytest_check

from itemkit.core.exceptions import TokenExpiredError, TokenInvalidError
from itemkit.core.security import (
    TokenClaims,
    decode_token,
    issue_token,
    now_millis,
    verify_password,
)

SECRET = "security-test-signing-secret-0123456789"
OTHER_SECRET = "another-signing-secret-abcdefghijklmnop"


@pytest.fixture(scope="module")
def stored_hash() -> str:
    """A cheap bcrypt hash of ``s3cret``."""
    return bcrypt.hashpw(b"s3cret", bcrypt.gensalt(rounds=4)).decode()


@pytest.mark.unit
class TestPasswords:
    """Test bcrypt credential verification."""

    def test_matching_password(self, stored_hash: str) -> None:
        """The right credential verifies."""
        assert verify_password("s3cret", stored_hash)

    def test_wrong_password(self, stored_hash: str) -> None:
        """A different credential does not verify."""
        assert not verify_password("s3cret!", stored_hash)

    def test_empty_password(self, stored_hash: str) -> None:
        """An empty credential never verifies."""
        assert not verify_password("", stored_hash)

    def test_malformed_hash_is_a_mismatch(self) -> None:
        """A hash bcrypt cannot parse counts as a mismatch."""
        assert not verify_password("s3cret", "not-a-real-bcrypt-hash")


@pytest.mark.unit
class TestTokens:
    """Test token issuance and verification."""

    def test_claims(self) -> None:
        """Issued tokens carry the authenticated flag and issuance time."""
        issued_at = now_millis()

        token = issue_token(SECRET, 3600, issued_at_millis=issued_at)
        payload = jwt.decode(token, SECRET, algorithms=["HS256"])

        with pytest_check.check:
            assert payload["authenticated"] is True
        with pytest_check.check:
            assert payload["timestamp"] == issued_at
        with pytest_check.check:
            assert payload["exp"] - payload["iat"] == 3600

    def test_decode_valid_token(self) -> None:
        """A fresh token decodes to its claims."""
        token = issue_token(SECRET, 60, issued_at_millis=now_millis())

        claims = decode_token(token, SECRET)

        assert isinstance(claims, TokenClaims)
        assert claims.authenticated is True

    def test_expired_token(self) -> None:
        """An authentic token past its horizon is reported as expired."""
        two_hours_ago = now_millis() - 2 * 3600 * 1000
        token = issue_token(SECRET, 60, issued_at_millis=two_hours_ago)

        with pytest.raises(TokenExpiredError) as exc_info:
            decode_token(token, SECRET)

        assert exc_info.value.message == "Token expired"

    def test_wrong_signature(self) -> None:
        """A token signed with another secret is invalid."""
        token = issue_token(OTHER_SECRET, 60)

        with pytest.raises(TokenInvalidError) as exc_info:
            decode_token(token, SECRET)

        assert exc_info.value.message == "Invalid token"

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token(self, token: str) -> None:
        """Structurally broken tokens are invalid."""
        with pytest.raises(TokenInvalidError):
            decode_token(token, SECRET)

    def test_missing_claims(self) -> None:
        """A correctly signed token without the expected claims is invalid."""
        token = jwt.encode({"sub": "someone"}, SECRET, algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            decode_token(token, SECRET)

    def test_unexpected_claim_values(self) -> None:
        """``authenticated`` must be literally true."""
        token = jwt.encode(
            {"authenticated": False, "timestamp": 1, "iat": 1, "exp": 4102444800},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(TokenInvalidError):
            decode_token(token, SECRET)

    def test_algorithm_is_pinned(self) -> None:
        """Tokens signed with another algorithm are rejected."""
        token = issue_token(SECRET, 60, algorithm="HS512")

        with pytest.raises(TokenInvalidError):
            decode_token(token, SECRET, algorithm="HS256")
