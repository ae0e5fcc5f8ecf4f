"""
statesync REST API.

FastAPI-based REST API for authentication and state synchronisation.
"""
from .main import app, create_app

__all__ = ["app", "create_app"]
