"""
Tests for session tokens and the access gate.

Covers:
- Issue/verify
- Expired, wrongly signed and malformed tokens
- Bearer header parsing
- Access gate collapsing failure causes
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt
import pytest

from statesync.auth.gate import AccessGate, extract_bearer_token, INVALID_TOKEN_MESSAGE
from statesync.auth.tokens import (
    TokenService,
    TokenError,
    TokenExpiredError,
    InvalidSignatureError,
    MalformedTokenError,
)
from statesync.errors import AuthenticationError, InternalError

OTHER_SECRET = "another-signing-key-fedcba9876543210fedcba9876543210"


# ============================================
# Token Service Tests
# ============================================

class TestTokenService:

    def test_issued_token_verifies(self, token_service):
        token = token_service.issue("account-1")

        assert token_service.verify(token) == "account-1"

    def test_claims(self, token_service):
        token = token_service.issue("account-1")
        claims = jwt.decode(token, options={"verify_signature": False})

        assert claims["sub"] == "account-1"
        assert claims["exp"] - claims["iat"] == 24 * 3600

    def test_expired_token(self, token_service):
        past = TokenService(
            token_service._secret_key,
            clock=lambda: datetime.now(timezone.utc) - timedelta(days=2),
        )
        token = past.issue("account-1")

        with pytest.raises(TokenExpiredError):
            token_service.verify(token)

    def test_custom_expiry_window(self, token_service):
        short = TokenService(token_service._secret_key, expires_in=timedelta(minutes=5))
        claims = jwt.decode(short.issue("account-1"), options={"verify_signature": False})

        assert claims["exp"] - claims["iat"] == 300

    def test_wrong_signature(self, token_service):
        token = TokenService(OTHER_SECRET).issue("account-1")

        with pytest.raises(InvalidSignatureError):
            token_service.verify(token)

    @pytest.mark.parametrize("token", ["not-a-token", "a.b.c", ""])
    def test_malformed(self, token_service, token):
        with pytest.raises(MalformedTokenError):
            token_service.verify(token)

    def test_missing_subject_is_malformed(self, token_service):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"iat": now, "exp": now + timedelta(hours=1)},
            token_service._secret_key,
            algorithm="HS256",
        )

        with pytest.raises(MalformedTokenError):
            token_service.verify(token)

    def test_errors_share_base(self):
        for cls in (TokenExpiredError, InvalidSignatureError, MalformedTokenError):
            assert issubclass(cls, TokenError)

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            TokenService("")


# ============================================
# Bearer Parsing Tests
# ============================================

class TestBearerParsing:

    @pytest.mark.parametrize("header,expected", [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc", "abc"),
        ("Bearer ", None),
        ("Basic dXNlcjpwdw==", None),
        ("", None),
        (None, None),
    ])
    def test_extract(self, header, expected):
        assert extract_bearer_token(header) == expected


# ============================================
# Access Gate Tests
# ============================================

class TestAccessGate:

    def test_resolves_account(self, token_service, credential_store):
        account = credential_store.create("gate@statesync.dev", "hash")
        gate = AccessGate(token_service, credential_store)

        resolved = gate.authenticate(token_service.issue(account["user_id"]))

        assert resolved["user_id"] == account["user_id"]
        assert resolved["correlation_id"] == account["correlation_id"]
        assert "password_hash" not in resolved

    def test_resolves_from_header(self, token_service, credential_store):
        account = credential_store.create("gate@statesync.dev", "hash")
        gate = AccessGate(token_service, credential_store)

        header = f"Bearer {token_service.issue(account['user_id'])}"

        assert gate.authenticate_header(header)["user_id"] == account["user_id"]

    def test_failure_causes_are_indistinguishable(self, token_service, credential_store):
        gate = AccessGate(token_service, credential_store)
        expired = TokenService(
            token_service._secret_key,
            clock=lambda: datetime.now(timezone.utc) - timedelta(days=2),
        ).issue("whoever")

        bad_tokens = [
            TokenService(OTHER_SECRET).issue("whoever"),
            expired,
            "garbage",
            token_service.issue("account-that-does-not-exist"),
        ]
        messages = set()
        for token in bad_tokens:
            with pytest.raises(AuthenticationError) as exc_info:
                gate.authenticate(token)
            messages.add(exc_info.value.message)

        assert messages == {INVALID_TOKEN_MESSAGE}

    def test_missing_token(self, token_service, credential_store):
        gate = AccessGate(token_service, credential_store)

        with pytest.raises(AuthenticationError):
            gate.authenticate(None)

    def test_store_failure_is_internal(self, token_service):
        broken_store = MagicMock()
        broken_store.find_by_id.side_effect = RuntimeError("connection reset")
        gate = AccessGate(token_service, broken_store)

        with pytest.raises(InternalError) as exc_info:
            gate.authenticate(token_service.issue("account-1"))

        assert "connection reset" in exc_info.value.message
