"""
TOTP second-factor utilities for statesync.

Implements TOTP (Time-based One-Time Password) using RFC 6238 via pyotp.
Compatible with Google Authenticator, Authy, and other TOTP apps.
"""
import base64
import io

import pyotp
import qrcode


def generate_totp_secret() -> str:
    """
    Generate a new TOTP secret for enrollment.

    Returns:
        Base32-encoded secret (32 characters).
    """
    return pyotp.random_base32()


def get_totp_provisioning_uri(secret: str, email: str, issuer: str = "statesync") -> str:
    """
    Generate a provisioning URI for TOTP apps.

    This URI can be encoded as a QR code for easy scanning.

    Args:
        secret: Base32-encoded TOTP secret.
        email: User's email address (displayed in authenticator app).
        issuer: Application name (displayed in authenticator app).

    Returns:
        otpauth:// URI string.
    """
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=issuer)


def generate_qr_code_base64(uri: str) -> str:
    """
    Generate a base64-encoded PNG QR code for the provisioning URI.

    Returns:
        Data URI ready to embed in an <img> tag.
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    b64 = base64.b64encode(buffer.getvalue()).decode('utf-8')
    return f"data:image/png;base64,{b64}"


def verify_totp(secret: str, code: str, window: int = 1) -> bool:
    """
    Verify a TOTP code against the secret.

    Args:
        secret: Base32-encoded TOTP secret.
        code: 6-digit code entered by user.
        window: Number of 30-second windows to allow (default 1 = +-30s).

    Returns:
        True if code is valid, False otherwise.
    """
    if not secret or not code:
        return False

    # Clean the code (remove spaces, only digits)
    code = ''.join(filter(str.isdigit, str(code)))

    if len(code) != 6:
        return False

    return pyotp.TOTP(secret).verify(code, valid_window=window)


def get_current_totp(secret: str) -> str:
    """Get the current TOTP code (for testing/debugging)."""
    return pyotp.TOTP(secret).now()


class TotpEnroller:
    """
    Secret generation and code checks for the second factor.

    The enroller never touches storage; callers persist the secrets it
    produces.
    """

    def __init__(self, issuer: str = "statesync", valid_window: int = 1):
        self.issuer = issuer
        self.valid_window = valid_window

    def generate_secret(self) -> str:
        return generate_totp_secret()

    def verify_code(self, secret: str, code) -> bool:
        return verify_totp(secret, code, window=self.valid_window)

    def provisioning_uri(self, secret: str, email: str) -> str:
        return get_totp_provisioning_uri(secret, email, issuer=self.issuer)

    def qr_code(self, secret: str, email: str) -> str:
        return generate_qr_code_base64(self.provisioning_uri(secret, email))
