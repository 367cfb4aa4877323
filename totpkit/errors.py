"""
errors.py — exception types raised by totpkit.

Every error the library raises derives from TOTPError. Validation and decode
errors are also ValueErrors so callers that already catch ValueError (the way
plain Base32 helpers fail) keep working.

Wrapped errors read "context: cause" and keep the original on __cause__.
"""


class TOTPError(Exception):
    """Base class for all totpkit errors."""


class ValidationError(TOTPError, ValueError):
    """Missing or unsupported configuration, malformed URI/PEM structure."""


class DecodeError(TOTPError, ValueError):
    """Bad Base32/Base62/Base64 input or bad percent-encoding."""


class DerivationError(TOTPError):
    """ECDH curve mismatch or a KDF that cannot produce the requested length."""


class GenerationError(TOTPError):
    """Key generation failed in the OTP primitive or during derivation."""


class EncodingError(TOTPError):
    """PEM, QR code or PNG output could not be produced."""


def wrap(exc_type, context: str, err: BaseException) -> TOTPError:
    """
    Build exc_type("context: err") for use with `raise ... from err`.

    Example:
        raise wrap(GenerationError, "failed to generate key", e) from e
    """
    return exc_type(f"{context}: {err}")
