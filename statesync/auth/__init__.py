"""
Authentication and authorization for statesync.

This package provides:
- User authentication (password + optional TOTP)
- Signed session tokens
- The bearer-token access gate
"""
from .mfa import (
    TotpEnroller,
    generate_totp_secret,
    get_totp_provisioning_uri,
    verify_totp,
    generate_qr_code_base64,
)
from .tokens import (
    TokenService,
    TokenError,
    InvalidSignatureError,
    TokenExpiredError,
    MalformedTokenError,
)
from .gate import AccessGate, extract_bearer_token
from .gateway import AuthGateway

__all__ = [
    "TotpEnroller",
    "generate_totp_secret",
    "get_totp_provisioning_uri",
    "verify_totp",
    "generate_qr_code_base64",
    "TokenService",
    "TokenError",
    "InvalidSignatureError",
    "TokenExpiredError",
    "MalformedTokenError",
    "AccessGate",
    "extract_bearer_token",
    "AuthGateway",
]
