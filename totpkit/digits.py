"""
digits.py — passcode length.

Six and eight are the lengths authenticator apps understand. Other counts can
be carried (e.g. parsed verbatim from a URI) but compute as six.
"""

from .utils import str_to_uint

DIGITS_SIX = 6
DIGITS_EIGHT = 8


class Digits(int):
    """Unsigned number of digits in a passcode."""

    @classmethod
    def from_int(cls, digits: int) -> "Digits":
        """Negative values fall back to six digits."""
        if digits < 0:
            return cls(DIGITS_SIX)
        return cls(digits)

    @classmethod
    def from_str(cls, digits: str) -> "Digits":
        """Decimal string; anything unparseable or above 32 bits becomes 0."""
        return cls(str_to_uint(digits))

    def otp_digits(self) -> int:
        """Digit count handed to the OTP primitive (6 unless exactly 8)."""
        if self == DIGITS_EIGHT:
            return DIGITS_EIGHT
        return DIGITS_SIX

    def __str__(self) -> str:
        return "%d" % self

    def __repr__(self) -> str:
        return f"Digits({int(self)})"
