"""
Authentication Endpoints.

Provides signup, login, token verification and TOTP enrollment.
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, status

from ..models import (
    SignupRequest,
    SignupResponse,
    LoginRequest,
    LoginResponse,
    UserProfile,
    VerifyResponse,
    VerifiedUser,
    EnableTotpRequest,
    MessageResponse,
    TotpSecretResponse,
    ErrorResponse,
)
from ..deps import get_gateway, get_current_account, get_bearer_token
from ...auth.gateway import AuthGateway
from ...database.auth_db import public_profile

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])
totp_router = APIRouter(prefix="/api", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or user already exists"},
    },
)
def signup(
    payload: SignupRequest,
    gateway: AuthGateway = Depends(get_gateway),
):
    """
    Register a new account.

    Returns a session token for immediate use. TOTP is not required until it
    has been enabled.
    """
    token = gateway.signup(payload.email, payload.password, payload.name)
    return SignupResponse(token=token)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email or password missing"},
        401: {"model": ErrorResponse, "description": "Invalid credentials or TOTP code"},
    },
)
def login(
    credentials: LoginRequest,
    gateway: AuthGateway = Depends(get_gateway),
):
    """
    Authenticate and return a session token plus the public profile.

    If TOTP is enabled, a valid `totp` code may be sent instead of the
    password.
    """
    totp_code: Optional[str] = None if credentials.totp is None else str(credentials.totp)
    token, account = gateway.login(credentials.email, credentials.password, totp_code)
    return LoginResponse(user=UserProfile(**public_profile(account)), token=token)


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
    },
)
def verify(
    token: Optional[str] = Depends(get_bearer_token),
    gateway: AuthGateway = Depends(get_gateway),
):
    """
    Check a session token and return the identity behind it.
    """
    account = gateway.verify_token(token)
    return VerifyResponse(
        user=VerifiedUser(
            id=account["user_id"],
            email=account["email"],
            totp_enabled=account["totp_enabled"],
        )
    )


@router.post(
    "/enable-totp",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid TOTP code"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
    },
)
def enable_totp(
    request: EnableTotpRequest,
    account: Dict = Depends(get_current_account),
    gateway: AuthGateway = Depends(get_gateway),
):
    """
    Activate TOTP for the current account.

    Requires one valid code generated from the secret returned by
    /api/generate-totp. There is no way to turn TOTP off again.
    """
    code = None if request.totp is None else str(request.totp)
    gateway.enable_totp(account["user_id"], code)
    return MessageResponse(message="TOTP enabled successfully")


# ============================================
# TOTP Enrollment
# ============================================

@totp_router.get(
    "/generate-totp",
    response_model=TotpSecretResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Authentication required"},
    },
)
def generate_totp(
    account: Dict = Depends(get_current_account),
    gateway: AuthGateway = Depends(get_gateway),
):
    """
    Return the TOTP secret for the current account.

    Creates one if the account has none yet; repeated calls return the same
    secret. Also returns a provisioning URI and QR code for authenticator apps.
    """
    secret = gateway.generate_totp(account["user_id"])
    enroller = gateway.enroller
    return TotpSecretResponse(
        secret=secret,
        provisioning_uri=enroller.provisioning_uri(secret, account["email"]),
        qr_code=enroller.qr_code(secret, account["email"]),
    )
