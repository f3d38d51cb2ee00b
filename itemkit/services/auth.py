"""Single-credential login.

There is no user table: the service compares the submitted credential with
one configured bcrypt hash and, on a match, issues a signed token that only
states "authenticated" and when it was issued.
"""

from dataclasses import dataclass

from loguru import logger

from itemkit.core.config import Settings
from itemkit.core.exceptions import InvalidCredentialsError
from itemkit.core.security import TokenClaims, decode_token, issue_token, verify_password


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """A freshly signed token and its lifetime in seconds."""

    token: str
    max_age: int


class AuthService:
    """Issues and verifies access tokens.

    Args:
        settings: Application settings holding the secret, hash and lifetime.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret.get_secret_value()
        self._password_hash = settings.password_hash.get_secret_value()
        self._algorithm = settings.auth_config.jwt_algorithm
        self._expiry_seconds = settings.auth_config.token_expiry_seconds

    def login(self, password: str) -> IssuedToken:
        """Exchange the shared credential for a token.

        Raises:
            InvalidCredentialsError: If the credential does not match.
        """
        if not verify_password(password, self._password_hash):
            logger.warning("Login rejected: credential mismatch")
            raise InvalidCredentialsError

        token = issue_token(self._secret, self._expiry_seconds, self._algorithm)
        logger.info("Login succeeded", expires_in=self._expiry_seconds)
        return IssuedToken(token=token, max_age=self._expiry_seconds)

    def verify(self, token: str) -> TokenClaims:
        """Verify a token presented on a protected request.

        Raises:
            TokenExpiredError: If the token is authentic but stale.
            TokenInvalidError: If the token does not verify.
        """
        return decode_token(token, self._secret, self._algorithm)
