"""
Signed session tokens.

Tokens are HS256 JWTs carrying the account id (sub), issue time (iat) and
expiry (exp). Nothing is stored server-side, so a token stays valid until it
expires; there is no refresh.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidSignatureError(TokenError):
    """Token signature does not match the server key."""


class TokenExpiredError(TokenError):
    """Token expiry has passed."""


class MalformedTokenError(TokenError):
    """Token cannot be decoded or is missing required claims."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies session tokens.

    Example usage:
        tokens = TokenService(secret_key, expires_in=timedelta(hours=24))
        token = tokens.issue(account_id)
        tokens.verify(token)  # -> account_id
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(hours=24),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret_key:
            raise ValueError("TokenService requires a secret key")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = expires_in
        self._clock = clock or _utcnow

    def issue(self, account_id: str) -> str:
        """Sign a token for account_id that expires after the configured window."""
        now = self._clock()
        payload = {
            "sub": str(account_id),
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Check signature and expiry and return the account id.

        Raises:
            InvalidSignatureError: Signed with a different key.
            TokenExpiredError: Past its expiry.
            MalformedTokenError: Anything else wrong with the token.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignatureError("Token signature is invalid") from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Token is malformed: {e}") from e

        return payload["sub"]
