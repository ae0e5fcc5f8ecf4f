"""
Database layer for statesync.

This package provides:
- connection: the Database handle (engine, sessions, schema)
- auth_db: CredentialStore for user accounts
- state_db: StateStore for per-user state documents
"""
from .connection import Database
from .auth_db import CredentialStore, hash_password, verify_password, public_profile
from .state_db import StateStore

__all__ = [
    "Database",
    "CredentialStore",
    "StateStore",
    "hash_password",
    "verify_password",
    "public_profile",
]
