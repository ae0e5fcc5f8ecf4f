"""
Credential store for user accounts.

This module provides account operations for:
- Account creation (signup)
- Lookup by email or id, with sensitive fields only on request
- TOTP secret assignment and activation

Accounts are returned as plain dicts. password_hash and totp_secret are only
included when include_secrets=True is passed; callers building responses
should use public_profile().
"""
import uuid
import logging
from typing import Optional, Dict
from datetime import datetime, timezone

import bcrypt
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from .connection import Database
from ..errors import DuplicateEmailError

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "user_id, correlation_id, email, name, totp_enabled, created_at"
_SECRET_COLUMNS = _PUBLIC_COLUMNS + ", password_hash, totp_secret"


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively and without surrounding whitespace."""
    return email.strip().lower()


def _row_to_account(row) -> Dict:
    account = {
        "user_id": str(row.user_id),
        "correlation_id": str(row.correlation_id),
        "email": row.email,
        "name": row.name,
        "totp_enabled": bool(row.totp_enabled),
        "created_at": row.created_at,
    }
    mapping = row._mapping
    if "password_hash" in mapping:
        account["password_hash"] = mapping["password_hash"]
        account["totp_secret"] = mapping["totp_secret"]
    return account


class CredentialStore:
    """
    Durable record of user accounts.

    Example usage:
        store = CredentialStore(db)

        account = store.create("user@example.org", hash_password("pw"))
        same = store.find_by_email("USER@example.org")
        with_hash = store.find_by_id(account["user_id"], include_secrets=True)
    """

    def __init__(self, db: Database):
        self.db = db

    def create(
        self,
        email: str,
        password_hash: str,
        name: Optional[str] = None,
        totp_secret: Optional[str] = None,
        totp_enabled: bool = False,
    ) -> Dict:
        """
        Create a new account.

        Args:
            email: User's email address.
            password_hash: Bcrypt-hashed password.
            name: Optional display name.
            totp_secret: Optional base32 TOTP secret (not yet activated).
            totp_enabled: Whether the second factor starts active.

        Returns:
            The created account (public fields only).

        Raises:
            DuplicateEmailError: If email already exists.
        """
        if totp_enabled and not totp_secret:
            raise ValueError("totp_enabled requires a totp_secret")

        email = normalize_email(email)
        user_id = str(uuid.uuid4())
        correlation_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        try:
            with self.db.get_session() as session:
                existing = session.execute(
                    text("SELECT user_id FROM users WHERE email = :email"),
                    {"email": email}
                ).fetchone()

                if existing:
                    raise DuplicateEmailError("User already exists")

                session.execute(
                    text("""
                        INSERT INTO users (
                            user_id, correlation_id, email, name, password_hash,
                            totp_secret, totp_enabled, created_at, updated_at
                        ) VALUES (
                            :user_id, :correlation_id, :email, :name, :password_hash,
                            :totp_secret, :totp_enabled, :created_at, :updated_at
                        )
                    """),
                    {
                        "user_id": user_id,
                        "correlation_id": correlation_id,
                        "email": email,
                        "name": name,
                        "password_hash": password_hash,
                        "totp_secret": totp_secret,
                        "totp_enabled": totp_enabled,
                        "created_at": now,
                        "updated_at": now,
                    }
                )
        except IntegrityError:
            # Lost an insert race against another signup for the same email
            raise DuplicateEmailError("User already exists")

        logger.info(f"Created user: {email} (id={user_id})")
        return {
            "user_id": user_id,
            "correlation_id": correlation_id,
            "email": email,
            "name": name,
            "totp_enabled": totp_enabled,
            "created_at": now,
        }

    def find_by_email(self, email: str, include_secrets: bool = False) -> Optional[Dict]:
        """
        Get account by email address.

        Args:
            email: User's email address.
            include_secrets: Also return password_hash and totp_secret.

        Returns:
            Account dict or None if not found.
        """
        columns = _SECRET_COLUMNS if include_secrets else _PUBLIC_COLUMNS
        with self.db.get_session() as session:
            row = session.execute(
                text(f"SELECT {columns} FROM users WHERE email = :email"),
                {"email": normalize_email(email)}
            ).fetchone()
            return _row_to_account(row) if row else None

    def find_by_id(self, user_id: str, include_secrets: bool = False) -> Optional[Dict]:
        """
        Get account by id.

        Args:
            user_id: Account id.
            include_secrets: Also return password_hash and totp_secret.

        Returns:
            Account dict or None if not found.
        """
        columns = _SECRET_COLUMNS if include_secrets else _PUBLIC_COLUMNS
        with self.db.get_session() as session:
            row = session.execute(
                text(f"SELECT {columns} FROM users WHERE user_id = :user_id"),
                {"user_id": user_id}
            ).fetchone()
            return _row_to_account(row) if row else None

    def update_totp_secret(self, user_id: str, totp_secret: str) -> None:
        """
        Overwrite the account's TOTP secret.

        Activation state is left untouched.
        """
        with self.db.get_session() as session:
            session.execute(
                text("""
                    UPDATE users
                    SET totp_secret = :totp_secret, updated_at = :now
                    WHERE user_id = :user_id
                """),
                {
                    "user_id": user_id,
                    "totp_secret": totp_secret,
                    "now": datetime.now(timezone.utc),
                }
            )
        logger.info(f"Updated TOTP secret for user {user_id}")

    def assign_totp_secret_if_absent(self, user_id: str, totp_secret: str) -> Optional[str]:
        """
        Store a TOTP secret only if the account has none.

        The conditional UPDATE makes concurrent callers agree: whichever write
        lands first is kept and every caller gets that value back.

        Returns:
            The secret now stored for the account, or None if the account
            does not exist.
        """
        with self.db.get_session() as session:
            result = session.execute(
                text("""
                    UPDATE users
                    SET totp_secret = :totp_secret, updated_at = :now
                    WHERE user_id = :user_id AND totp_secret IS NULL
                """),
                {
                    "user_id": user_id,
                    "totp_secret": totp_secret,
                    "now": datetime.now(timezone.utc),
                }
            )
            if result.rowcount:
                logger.info(f"Assigned TOTP secret for user {user_id}")

            row = session.execute(
                text("SELECT totp_secret FROM users WHERE user_id = :user_id"),
                {"user_id": user_id}
            ).fetchone()
            return row[0] if row else None

    def activate_totp(self, user_id: str) -> None:
        """
        Turn on the second factor.

        Only accounts that already hold a secret are activated.
        """
        with self.db.get_session() as session:
            session.execute(
                text("""
                    UPDATE users
                    SET totp_enabled = :enabled, updated_at = :now
                    WHERE user_id = :user_id AND totp_secret IS NOT NULL
                """),
                {"user_id": user_id, "enabled": True, "now": datetime.now(timezone.utc)}
            )
        logger.info(f"TOTP enabled for user {user_id}")


def public_profile(account: Dict) -> Dict:
    """Outward view of an account; never includes password_hash or totp_secret."""
    return {
        "id": account["user_id"],
        "email": account["email"],
        "name": account.get("name"),
        "totp_enabled": account["totp_enabled"],
    }


# ==========================================
# Password Hashing Utilities
# ==========================================

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password.

    Returns:
        Bcrypt hash string.
    """
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        password: Plain text password to verify.
        password_hash: Stored bcrypt hash.

    Returns:
        True if password matches, False otherwise.
    """
    return bcrypt.checkpw(
        password.encode('utf-8'),
        password_hash.encode('utf-8')
    )
