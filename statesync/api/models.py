"""
Pydantic Models for the statesync API.

Request and response models for all API endpoints. Wire keys that clients
already use in camelCase (totpEnabled, lastUpdated, ...) are field aliases;
models that carry them also accept the Python field names.
"""
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ============================================
# Authentication Models
# ============================================

class SignupRequest(BaseModel):
    """
    Account creation request.

    A TOTP secret is generated for the account but stays inactive until
    /auth/enable-totp is called with a valid code.
    """
    email: Optional[EmailStr] = Field(None, description="Valid email address")
    password: Optional[str] = Field(None, description="Account password")
    name: Optional[str] = Field(None, description="Display name")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "a@x.com",
                "password": "pw1",
                "name": "Al"
            }
        }
    )


class LoginRequest(BaseModel):
    """
    Login request.

    Provide a password, or a TOTP code once TOTP is enabled. A valid TOTP
    code on a TOTP-enabled account is accepted without a password.
    """
    email: Optional[str] = Field(None, description="Registered email address")
    password: Optional[str] = Field(None, description="Account password")
    totp: Optional[Union[str, int]] = Field(None, description="6-digit TOTP code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "a@x.com",
                "password": "pw1"
            }
        }
    )


class EnableTotpRequest(BaseModel):
    """TOTP activation request."""
    totp: Optional[Union[str, int]] = Field(None, description="Current code from the authenticator app")


class UserProfile(BaseModel):
    """Public account profile."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    name: Optional[str] = None
    totp_enabled: bool = Field(..., alias="totpEnabled")


class VerifiedUser(BaseModel):
    """Identity returned by /auth/verify."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    totp_enabled: bool = Field(..., alias="totpEnabled")


class SignupResponse(BaseModel):
    success: bool = True
    token: str


class LoginResponse(BaseModel):
    success: bool = True
    user: UserProfile
    token: str


class VerifyResponse(BaseModel):
    success: bool = True
    user: VerifiedUser


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class TotpSecretResponse(BaseModel):
    """TOTP enrollment material for an authenticator app."""
    model_config = ConfigDict(populate_by_name=True)

    secret: str
    provisioning_uri: str = Field(..., alias="provisioningUri")
    qr_code: str = Field(..., alias="qrCode", description="data:image/png;base64 QR code")


# ============================================
# State Models
# ============================================

class SyncStateRequest(BaseModel):
    """
    State upload. The state value is stored as-is and replaces whatever was
    stored before.
    """
    state: Any = Field(None, description="Arbitrary JSON value")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"state": {"x": 1}}
        }
    )


class StateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    state: Any
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")


# ============================================
# Error / Health Models
# ============================================

class ErrorResponse(BaseModel):
    """Body of every failed request."""
    success: bool = False
    error: str
    message: str
    code: str


class HealthStatus(BaseModel):
    status: str
    version: str
    services: Dict[str, str]
    timestamp: datetime
