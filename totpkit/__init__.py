"""
totpkit package
===============

TOTP (RFC 6238) key management: generate, encode, validate and transport the
shared secrets used for second-factor authentication.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- TOTP = HOTP with counter = floor(unix_time / period)
  code = Truncate(HMAC-<algo>(secret, counter)) mod 10^digits
- Validation accepts counter-skew .. counter+skew, so a code made at t is
  valid at t' when |floor(t'/P) - floor(t/P)| <= skew.
- Defaults: SHA1, 30 s, 6 digits, skew 1, 128-byte secret.

──────────────────────────────────────────────
Quick start
──────────────────────────────────────────────
>>> from totpkit import generate_key
>>> key = generate_key("Example.com", "alice@example.com")
>>> code = key.pass_code()
>>> key.validate(code)
True

Store and restore:
    pem_text = key.pem()
    key = gen_key_from_pem(pem_text)

Provision an authenticator app:
    uri = key.uri()
    png = key.qr_code(FixLevel.FIX_LEVEL_15).png(256, 256)

Shared secret between two parties (ECDH):
    key = generate_key("Example.com", "alice@example.com",
                       with_ecdh(alice_priv, bob_pub, "example.com alice bob TOTP v1"))
"""

from .algorithm import Algorithm
from .digits import DIGITS_EIGHT, DIGITS_SIX, Digits
from .errors import (
    DecodeError,
    DerivationError,
    EncodingError,
    GenerationError,
    TOTPError,
    ValidationError,
)
from .fix_level import FIX_LEVEL_DEFAULT, FixLevel
from .kdf import default_kdf
from .key import (
    BLOCK_TYPE_TOTP,
    Key,
    gen_key_from_pem,
    gen_key_from_uri,
    generate_key,
    generate_key_custom,
    generate_key_pem,
    generate_key_uri,
    validate,
)
from .options import (
    Options,
    new_options,
    with_algorithm,
    with_digits,
    with_ecdh,
    with_ecdh_kdf,
    with_period,
    with_secret_query_first,
    with_secret_size,
    with_skew,
)
from .otp_core import OTPBackend, SystemClock
from .qr import QRCode
from .secret import Secret
from .uri import URI
from .utils import str_to_uint

__version__ = "1.0.0"

__all__ = [
    "Algorithm",
    "BLOCK_TYPE_TOTP",
    "DIGITS_EIGHT",
    "DIGITS_SIX",
    "DecodeError",
    "DerivationError",
    "Digits",
    "EncodingError",
    "FIX_LEVEL_DEFAULT",
    "FixLevel",
    "GenerationError",
    "Key",
    "OTPBackend",
    "Options",
    "QRCode",
    "Secret",
    "SystemClock",
    "TOTPError",
    "URI",
    "ValidationError",
    "default_kdf",
    "gen_key_from_pem",
    "gen_key_from_uri",
    "generate_key",
    "generate_key_custom",
    "generate_key_pem",
    "generate_key_uri",
    "new_options",
    "str_to_uint",
    "validate",
    "with_algorithm",
    "with_digits",
    "with_ecdh",
    "with_ecdh_kdf",
    "with_period",
    "with_secret_query_first",
    "with_secret_size",
    "with_skew",
]
