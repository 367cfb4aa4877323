"""
otp_core.py — the HMAC-OTP primitive and the clock used by Key.

Key never does HMAC arithmetic itself. It assembles the parameters
(UTC time, period, skew, digits, algorithm, Base32 secret) and hands them to
an OTP backend; the default one is built on pyotp:

    counter  = floor(unix_time / period)
    passcode = Truncate(HMAC-<algo>(secret, counter)) mod 10^digits

Validation checks the 2*skew+1 counters centred on `counter`.

Both collaborators are plain objects passed to Key, so tests can swap in a
frozen clock or a failing backend without patching module globals:

    key = Key(secret, options, clock=FrozenClock(...), backend=MyBackend())

Security note:
    Keep secrets out of logs. Nothing in this module logs a secret or a code.
"""

import base64
import logging
import os
from datetime import datetime, timezone

import pyotp

from .algorithm import Algorithm
from .digits import Digits
from .errors import ValidationError

logger = logging.getLogger(__name__)

# Authenticator apps treat a missing or zero period as the RFC default.
DEFAULT_TIME_STEP = 30


# --- Clock --------------------------------------------------------------------
class SystemClock:
    """Wall-clock time, always UTC-aware."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def to_utc(t) -> datetime:
    """
    Normalize a datetime or a Unix timestamp to an aware UTC datetime.

    Naive datetimes are taken to be UTC already.
    """
    if isinstance(t, datetime):
        if t.tzinfo is None:
            return t.replace(tzinfo=timezone.utc)
        return t.astimezone(timezone.utc)
    return datetime.fromtimestamp(int(t), tz=timezone.utc)


# --- OTP backend ----------------------------------------------------------------
class OTPBackend:
    """
    TOTP primitive backed by pyotp.

    generate()      -> random Base32 secret (no padding)
    generate_code() -> passcode string
    validate()      -> bool, within ±skew periods
    """

    def generate(self, issuer: str, account_name: str, period: int, secret_size: int,
                 digits: Digits, algorithm: Algorithm, seed: bytes = b"") -> str:
        """
        Create a new secret and return it Base32-encoded without padding.

        - secret_size bytes come from os.urandom (CSPRNG); a non-empty seed is
          used verbatim instead.
        - Issuer and account name are required, as for any provisioning URI.

        Raises:
            ValidationError: missing issuer/account name, or secret_size < 1
        """
        if not issuer:
            raise ValidationError("issuer must be set")
        if not account_name:
            raise ValidationError("account name must be set")

        if seed:
            raw = bytes(seed)
        else:
            if secret_size <= 0:
                raise ValidationError(f"secret size must be positive, got {secret_size}")
            raw = os.urandom(secret_size)

        b32 = base64.b32encode(raw).decode("ascii").rstrip("=")
        logger.debug("generated %d-byte secret for %s:%s (period=%s, digits=%s, algorithm=%s)",
                     len(raw), issuer, account_name, period, digits, algorithm)
        return b32

    def generate_code(self, secret_b32: str, for_time: datetime, period: int, skew: int,
                      digits: Digits, algorithm: Algorithm) -> str:
        """
        Passcode for the counter containing for_time.

        Raises:
            ValidationError: unsupported algorithm, or a digest pyotp refuses
                (MD5 is shorter than the 18 bytes it requires)
            ValueError: bad Base32 secret
        """
        return self._totp(secret_b32, period, digits, algorithm).at(to_utc(for_time))

    def validate(self, passcode: str, secret_b32: str, for_time: datetime, period: int,
                 skew: int, digits: Digits, algorithm: Algorithm) -> bool:
        """
        True if passcode matches any counter in [counter-skew, counter+skew].

        A passcode that is not a string, or has the wrong length, is never
        valid.

        Raises:
            ValueError: same cases as generate_code()
        """
        otp = self._totp(secret_b32, period, digits, algorithm)
        if not isinstance(passcode, str):
            return False
        passcode = passcode.strip()
        if len(passcode) != otp.digits:
            return False
        return otp.verify(passcode, for_time=to_utc(for_time), valid_window=int(skew))

    @staticmethod
    def _totp(secret_b32: str, period: int, digits: Digits, algorithm: Algorithm) -> pyotp.TOTP:
        digest = Algorithm(algorithm).otp_algorithm()
        if digest is None:
            raise ValidationError(f"unsupported algorithm: {algorithm}")
        if not period:
            period = DEFAULT_TIME_STEP
        try:
            return pyotp.TOTP(
                secret_b32,
                digits=Digits(digits).otp_digits(),
                digest=digest,
                interval=int(period),
            )
        except ValueError as e:
            raise ValidationError(f"unsupported algorithm for passcode computation: {algorithm}") from e
