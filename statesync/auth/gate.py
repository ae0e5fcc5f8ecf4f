"""
Access gate for protected endpoints.

Turns a bearer token into the account it belongs to. Every way the token can
be unusable (missing, bad signature, expired, malformed, account gone) is
reported with the same AuthenticationError so callers cannot probe which
accounts exist.
"""
import logging
from typing import Dict, Optional

from .tokens import TokenError, TokenService
from ..database.auth_db import CredentialStore
from ..errors import AuthenticationError, InternalError

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Please login to access this resource"
INVALID_TOKEN_MESSAGE = "Token is invalid"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class AccessGate:
    """Verifies bearer tokens and resolves the calling account."""

    def __init__(self, tokens: TokenService, credentials: CredentialStore):
        self.tokens = tokens
        self.credentials = credentials

    def authenticate(self, token: Optional[str]) -> Dict:
        """
        Resolve the account for a bearer token.

        Raises:
            AuthenticationError: Token absent/unusable or account missing.
            InternalError: Any unexpected failure while resolving.
        """
        if not token:
            raise AuthenticationError(MISSING_TOKEN_MESSAGE)

        try:
            account_id = self.tokens.verify(token)
            account = self.credentials.find_by_id(account_id)
        except TokenError as e:
            logger.debug(f"Rejected token: {e}")
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)
        except Exception as e:
            logger.error(f"Access gate failure: {e}", exc_info=True)
            raise InternalError(str(e)) from e

        if account is None:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)

        return account

    def authenticate_header(self, authorization: Optional[str]) -> Dict:
        """Same as authenticate(), starting from the raw Authorization header."""
        return self.authenticate(extract_bearer_token(authorization))
