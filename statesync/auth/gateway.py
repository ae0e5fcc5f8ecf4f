"""
Authentication workflows: signup, login, token verification and TOTP
enrollment.

AuthGateway composes the credential store, the TOTP enroller and the token
service. Expected failures are raised as ServiceError subclasses; the API
layer turns them into responses.
"""
import logging
from typing import Dict, Optional, Tuple

from .gate import AccessGate
from .mfa import TotpEnroller
from .tokens import TokenService
from ..database.auth_db import CredentialStore, hash_password, verify_password
from ..errors import AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthGateway:
    """
    Orchestrates the account credential lifecycle.

    Example usage:
        gateway = AuthGateway(credentials, TotpEnroller(), tokens)
        token = gateway.signup("a@x.com", "pw1", "Al")
        token, account = gateway.login("a@x.com", password="pw1")
    """

    def __init__(
        self,
        credentials: CredentialStore,
        enroller: TotpEnroller,
        tokens: TokenService,
    ):
        self.credentials = credentials
        self.enroller = enroller
        self.tokens = tokens
        self._gate = AccessGate(tokens, credentials)

    def signup(self, email: Optional[str], password: Optional[str], name: Optional[str] = None) -> str:
        """
        Create an account and return a session token for it.

        The account gets a TOTP secret straight away but the second factor
        stays disabled until enable_totp() succeeds, so the new session needs
        only the password.

        Raises:
            ValidationError: email or password missing.
            DuplicateEmailError: email already registered.
        """
        if not email:
            raise ValidationError("Please provide an email")
        if not password:
            raise ValidationError("Password is required")

        account = self.credentials.create(
            email=email,
            password_hash=hash_password(password),
            name=name,
            totp_secret=self.enroller.generate_secret(),
            totp_enabled=False,
        )
        logger.info(f"New user registered: {account['email']}")
        return self.tokens.issue(account["user_id"])

    def login(
        self,
        email: Optional[str],
        password: Optional[str] = None,
        totp_code: Optional[str] = None,
    ) -> Tuple[str, Dict]:
        """
        Authenticate with password, or with a TOTP code once TOTP is enabled.

        When the account has TOTP enabled and a code is supplied, the code
        alone decides the outcome and the password is not checked.

        Returns:
            (token, account) with account holding public fields only.

        Raises:
            ValidationError: email missing, or password missing on the
                             password path.
            AuthenticationError: unknown email, wrong password or bad code.
        """
        if not email:
            raise ValidationError("Please provide an email")

        account = self.credentials.find_by_email(email, include_secrets=True)
        if account is None:
            raise AuthenticationError(INVALID_CREDENTIALS)

        if account["totp_enabled"] and totp_code:
            if not self.enroller.verify_code(account["totp_secret"], totp_code):
                raise AuthenticationError("Invalid TOTP code")
        else:
            if not password:
                raise ValidationError("Password is required")
            if not verify_password(password, account["password_hash"]):
                raise AuthenticationError(INVALID_CREDENTIALS)

        # Drop sensitive fields before handing the account back
        account.pop("password_hash", None)
        account.pop("totp_secret", None)

        logger.info(f"User logged in: {account['email']}")
        return self.tokens.issue(account["user_id"]), account

    def verify_token(self, token: Optional[str]) -> Dict:
        """
        Resolve a session token to its account.

        Raises:
            AuthenticationError: for any unusable token or missing account.
        """
        return self._gate.authenticate(token)

    def enable_totp(self, account_id: str, code: Optional[str]) -> None:
        """
        Activate the second factor after checking one code.

        Raises:
            ValidationError: code does not match the stored secret.
            NotFoundError: account does not exist.
        """
        account = self.credentials.find_by_id(account_id, include_secrets=True)
        if account is None:
            raise NotFoundError("User not found")

        if not self.enroller.verify_code(account["totp_secret"], code):
            raise ValidationError("Invalid TOTP code")

        self.credentials.activate_totp(account_id)
        logger.info(f"TOTP enabled for user: {account['email']}")

    def generate_totp(self, account_id: str) -> str:
        """
        Return the account's TOTP secret, creating one if none is stored.

        Raises:
            NotFoundError: account does not exist.
        """
        account = self.credentials.find_by_id(account_id, include_secrets=True)
        if account is None:
            raise NotFoundError("User not found")

        if account["totp_secret"]:
            return account["totp_secret"]

        secret = self.credentials.assign_totp_secret_if_absent(
            account_id, self.enroller.generate_secret()
        )
        if secret is None:
            raise NotFoundError("User not found")
        return secret
