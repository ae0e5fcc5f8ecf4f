"""
statesync - session credentials and per-user state synchronisation.

This package provides password + optional TOTP authentication, signed
session tokens, and a last-write-wins store for one opaque JSON state
document per user.
"""

__version__ = "0.1.0"
