"""
Tests for TOTP utilities.
"""
import base64
import time

import pyotp
import pytest

from statesync.auth.mfa import (
    TotpEnroller,
    generate_totp_secret,
    get_current_totp,
    get_totp_provisioning_uri,
    verify_totp,
)


class TestTotp:

    def test_secret_is_base32(self):
        secret = generate_totp_secret()

        assert len(secret) == 32
        base64.b32decode(secret)

    def test_secrets_are_random(self):
        assert generate_totp_secret() != generate_totp_secret()

    def test_current_code_verifies(self):
        secret = generate_totp_secret()

        assert verify_totp(secret, get_current_totp(secret))

    def test_adjacent_window_accepted(self):
        secret = generate_totp_secret()
        previous = pyotp.TOTP(secret).at(time.time() - 30)

        assert verify_totp(secret, previous)

    def test_code_with_spaces(self):
        secret = generate_totp_secret()
        code = get_current_totp(secret)

        assert verify_totp(secret, f"{code[:3]} {code[3:]}")

    def test_wrong_code(self, wrong_totp_code):
        secret = generate_totp_secret()

        assert not verify_totp(secret, wrong_totp_code(secret))

    @pytest.mark.parametrize("code", [None, "", "12345", "1234567", "abcdef"])
    def test_invalid_shapes(self, code):
        assert not verify_totp(generate_totp_secret(), code)

    def test_missing_secret(self):
        assert not verify_totp(None, "123456")

    def test_provisioning_uri(self):
        uri = get_totp_provisioning_uri("JBSWY3DPEHPK3PXP", "a@x.com", issuer="statesync")

        assert uri.startswith("otpauth://totp/")
        assert "secret=JBSWY3DPEHPK3PXP" in uri
        assert "issuer=statesync" in uri


class TestTotpEnroller:

    def test_generate_and_verify(self, enroller):
        secret = enroller.generate_secret()

        assert enroller.verify_code(secret, get_current_totp(secret))

    def test_integer_code(self, enroller):
        secret = enroller.generate_secret()
        code = get_current_totp(secret)
        if code.startswith("0"):
            pytest.skip("leading zero is lost when the code is an integer")

        assert enroller.verify_code(secret, int(code))

    def test_qr_code_is_png_data_uri(self, enroller):
        qr = enroller.qr_code(enroller.generate_secret(), "a@x.com")

        assert qr.startswith("data:image/png;base64,")
        png = base64.b64decode(qr.split(",", 1)[1])
        assert png[:8] == b"\x89PNG\r\n\x1a\n"

    def test_issuer_in_uri(self, enroller):
        uri = enroller.provisioning_uri("JBSWY3DPEHPK3PXP", "a@x.com")

        assert "issuer=statesync-test" in uri
