"""
API Routes for statesync.
"""
from .auth import router as auth_router, totp_router
from .state import router as state_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "totp_router",
    "state_router",
    "health_router",
]
