"""
FastAPI Dependencies for the statesync API.

Provides:
- Access to the per-process Database handle and services on app.state
- Store and gateway construction per request
- Authentication dependency (bearer token -> account)
"""
import logging
from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..auth.gate import AccessGate
from ..auth.gateway import AuthGateway
from ..auth.mfa import TotpEnroller
from ..auth.tokens import TokenService
from ..database.auth_db import CredentialStore
from ..database.connection import Database
from ..database.state_db import StateStore

logger = logging.getLogger(__name__)

# Security scheme; missing credentials are handled by the access gate
security = HTTPBearer(auto_error=False)


# ============================================
# Process-wide handles
# ============================================

def get_database(request: Request) -> Database:
    """Database handle opened by the application lifespan."""
    return request.app.state.database


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_enroller(request: Request) -> TotpEnroller:
    return request.app.state.enroller


# ============================================
# Stores and services
# ============================================

def get_credential_store(db: Database = Depends(get_database)) -> CredentialStore:
    return CredentialStore(db)


def get_state_store(db: Database = Depends(get_database)) -> StateStore:
    return StateStore(db)


def get_gateway(
    credentials: CredentialStore = Depends(get_credential_store),
    enroller: TotpEnroller = Depends(get_enroller),
    tokens: TokenService = Depends(get_token_service),
) -> AuthGateway:
    return AuthGateway(credentials, enroller, tokens)


def get_access_gate(
    tokens: TokenService = Depends(get_token_service),
    credentials: CredentialStore = Depends(get_credential_store),
) -> AccessGate:
    return AccessGate(tokens, credentials)


# ============================================
# Authentication Dependencies
# ============================================

def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Raw bearer token from the Authorization header, if any."""
    if credentials is None:
        return None
    return credentials.credentials


def get_current_account(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    gate: AccessGate = Depends(get_access_gate),
) -> Dict:
    """
    Validate the bearer token and return the calling account.

    The account is also attached to request.state.account.

    Raises:
        AuthenticationError: If the token is missing, invalid, expired, or
                             the account no longer exists.
    """
    account = gate.authenticate(token)
    request.state.account = account
    return account
