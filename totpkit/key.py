"""
key.py — Key, the secret plus its options, and the ways to create one.

Create:
    key = generate_key("Example.com", "alice@example.com")                 # random secret
    key = generate_key("Example.com", "alice@example.com",
                       with_ecdh(my_priv, peer_pub, "example.com TOTP v1"))  # ECDH-derived
    key = gen_key_from_uri("otpauth://totp/...")                            # from a QR/URI
    key = gen_key_from_pem(open("secret.pem").read())                       # from storage

Use:
    code = key.pass_code()
    ok = key.validate(code)
    text = key.pem()        # persist
    uri = key.uri()         # provision into an authenticator app
    qr = key.qr_code(FixLevel.FIX_LEVEL_15).png(256, 256)

Recovery from a backup may overwrite key.secret or fields of key.options
directly. Keep options.secret_size equal to len(key.secret) when doing so, and
do not mutate a Key while another thread validates with it.
"""

import logging
import warnings
from datetime import datetime

from .algorithm import Algorithm
from .digits import Digits
from .errors import (
    DecodeError,
    DerivationError,
    EncodingError,
    GenerationError,
    TOTPError,
    ValidationError,
    wrap,
)
from .fix_level import FIX_LEVEL_DEFAULT, FixLevel
from .kdf import default_kdf, ecdh_shared_secret
from .options import Option, Options, apply_options, new_options
from .otp_core import OTPBackend, SystemClock, to_utc
from .pem import PEMCodec, iter_blocks
from .qr import QRCode
from .secret import Secret
from .uri import URI, build_uri
from .utils import str_to_uint

logger = logging.getLogger(__name__)

# Type of a PEM encoded data block.
BLOCK_TYPE_TOTP = "TOTP SECRET KEY"

# PEM header names
HEADER_ACCOUNT_NAME = "Account Name"
HEADER_ALGORITHM = "Algorithm"
HEADER_DIGITS = "Digits"
HEADER_ISSUER = "Issuer"
HEADER_PERIOD = "Period"
HEADER_SECRET_SIZE = "Secret Size"
HEADER_SKEW = "Skew"


class Key:
    """
    A TOTP secret and the options it is used with.

    clock, backend and pem_codec default to the system clock, the pyotp
    backend and the built-in PEM encoder.
    """

    def __init__(self, secret: Secret, options: Options, *, clock=None,
                 backend: OTPBackend = None, pem_codec: PEMCodec = None) -> None:
        self.secret = secret
        self.options = options
        self.clock = clock or SystemClock()
        self.backend = backend or OTPBackend()
        self.pem_codec = pem_codec or PEMCodec()

    def __repr__(self) -> str:
        return (f"Key(issuer={self.options.issuer!r}, account_name={self.options.account_name!r}, "
                f"algorithm={str(self.options.algorithm)!r}, digits={int(self.options.digits)}, "
                f"period={self.options.period})")

    # --- Passcodes ------------------------------------------------------------
    def pass_code(self) -> str:
        """6 or 8 digit passcode for the current time, e.g. "123456"."""
        return self.pass_code_custom(self.clock.now())

    def pass_code_custom(self, t) -> str:
        """
        Passcode for time t (datetime or Unix timestamp).

        Raises:
            ValidationError: the algorithm is not supported, or the OTP
                primitive can not compute passcodes with it (MD5)
            ValueError: the OTP primitive rejected the parameters
        """
        opts = self.options
        self._require_supported_algorithm()
        return self.backend.generate_code(
            self.secret.base32(), to_utc(t), opts.period, opts.skew, opts.digits, opts.algorithm,
        )

    def validate(self, passcode: str) -> bool:
        """True if passcode is valid now, within ±skew periods."""
        return self.validate_custom(passcode, self.clock.now())

    def validate_custom(self, passcode: str, t) -> bool:
        """
        True if passcode is valid at time t, within ±skew periods.

        A wrong, expired or malformed passcode is False, as is any failure
        inside the OTP primitive. Nothing is raised.
        """
        opts = self.options
        if not Algorithm(opts.algorithm).is_supported():
            logger.debug("validation refused: unsupported algorithm %s", opts.algorithm)
            return False
        try:
            ok = self.backend.validate(
                passcode, self.secret.base32(), to_utc(t),
                opts.period, opts.skew, opts.digits, opts.algorithm,
            )
        except (ValueError, TypeError, AttributeError, TOTPError) as e:
            logger.debug("validation failed in OTP backend: %s", e)
            return False
        logger.debug("passcode validation for %s:%s -> %s", opts.issuer, opts.account_name, ok)
        return bool(ok)

    # --- Serialization -----------------------------------------------------------
    def pem(self) -> str:
        """
        The key as a "TOTP SECRET KEY" PEM block.

        Raises:
            EncodingError: the encoder failed or returned nothing
        """
        opts = self.options
        headers = {
            HEADER_ACCOUNT_NAME: opts.account_name,
            HEADER_ALGORITHM: str(opts.algorithm),
            HEADER_DIGITS: str(Digits(opts.digits)),
            HEADER_ISSUER: opts.issuer,
            HEADER_PERIOD: "%d" % opts.period,
            HEADER_SECRET_SIZE: "%d" % opts.secret_size,
            HEADER_SKEW: "%d" % opts.skew,
        }
        try:
            out = self.pem_codec.encode(BLOCK_TYPE_TOTP, headers, self.secret.to_bytes())
        except EncodingError as e:
            raise wrap(EncodingError, "failed to encode key to PEM", e) from e
        if not out:
            raise EncodingError("failed to encode key to PEM")
        return out

    def uri(self) -> str:
        """
        The key as an otpauth URI.

        Rebuilt from the current secret and options every time; the URI a key
        was parsed from is not kept.
        """
        opts = self.options
        params = {
            "issuer": opts.issuer,
            "algorithm": str(opts.algorithm),
            "digits": str(Digits(opts.digits)),
            "secret": self.secret.base32(),
            "period": "%d" % opts.period,
        }
        return str(build_uri(opts.issuer, opts.account_name, params, opts.secret_query_first))

    def qr_code(self, fix_level=FIX_LEVEL_DEFAULT) -> QRCode:
        """
        A QR code request for this key's URI.

        Raises:
            ValidationError: fix_level is not one of the four FixLevel values
        """
        if not FixLevel.is_valid(fix_level):
            raise ValidationError(f"unsupported fix level: {fix_level}")
        return QRCode(uri=URI(self.uri()), level=FixLevel(fix_level))

    # --- Internal -----------------------------------------------------------------
    def _require_supported_algorithm(self) -> None:
        if not Algorithm(self.options.algorithm).is_supported():
            raise ValidationError(f"unsupported algorithm: {self.options.algorithm}")


# --- Constructors -----------------------------------------------------------------
def generate_key(issuer: str, account_name: str, *options: Option) -> Key:
    """
    New Key with default options, then the given option functions applied.

    Defaults: SHA1, 30 second period, 128 byte secret, 6 digits, skew 1.

    Raises:
        ValidationError: empty issuer/account name, or an option rejected
        GenerationError: secret generation or ECDH derivation failed
    """
    try:
        opts = new_options(issuer, account_name)
    except ValidationError as e:
        raise wrap(ValidationError, "failed to create options during key generation", e) from e

    try:
        apply_options(opts, *options)
    except ValidationError as e:
        raise wrap(ValidationError, "failed to apply custom options", e) from e

    return generate_key_custom(opts)


def generate_key_custom(options: Options, *, backend: OTPBackend = None, clock=None) -> Key:
    """
    New Key from fully specified options (set_default() is NOT applied).

    With ECDH options the secret is derived from the shared secret,
    otherwise the OTP backend generates secret_size random bytes.

    Raises:
        GenerationError: see generate_key()
    """
    backend = backend or OTPBackend()

    if options.uses_ecdh():
        secret = _derive_ecdh_secret(options)
    else:
        try:
            b32 = backend.generate(
                options.issuer, options.account_name, options.period,
                options.secret_size, options.digits, options.algorithm,
            )
        except (ValueError, TOTPError) as e:
            raise wrap(GenerationError, "failed to generate key", e) from e

        # re-decode to catch a backend that hands back something other than
        # unpadded Base32
        try:
            secret = Secret.from_base32(b32)
        except DecodeError as e:
            raise wrap(GenerationError, "failed to create secret", e) from e

    logger.debug("generated key for %s:%s (%d-byte secret, ecdh=%s)",
                 options.issuer, options.account_name, len(secret), options.uses_ecdh())
    return Key(secret, options, backend=backend, clock=clock)


def _derive_ecdh_secret(options: Options) -> Secret:
    try:
        shared = ecdh_shared_secret(options.ecdh_private_key, options.ecdh_public_key)
    except (DerivationError, ValueError, TypeError) as e:
        raise wrap(GenerationError, "failed to generate ECDH shared secret", e) from e

    kdf = options.kdf or default_kdf
    out_len = options.secret_size
    try:
        derived = kdf(shared, options.ecdh_context.encode("utf-8"), out_len)
        if len(derived) != out_len:
            raise DerivationError(f"invalid output length: got {len(derived)} bytes, want {out_len}")
    except (DerivationError, ValueError) as e:
        raise wrap(GenerationError, "failed to derive key from ECDH shared secret", e) from e

    return Secret(derived)


def gen_key_from_pem(pem_key: str) -> Key:
    """
    Key from the first "TOTP SECRET KEY" block in pem_key.

    Blocks of other types (a public key, a certificate) are skipped. Numeric
    headers that do not parse become 0.

    Raises:
        ValidationError: no TOTP block found
    """
    for block in iter_blocks(pem_key):
        if block.type != BLOCK_TYPE_TOTP:
            logger.debug("skipping PEM block of type %r", block.type)
            continue

        headers = block.headers
        options = Options(
            issuer=headers.get(HEADER_ISSUER, ""),
            account_name=headers.get(HEADER_ACCOUNT_NAME, ""),
            algorithm=Algorithm(headers.get(HEADER_ALGORITHM, "")),
            period=str_to_uint(headers.get(HEADER_PERIOD, "")),
            secret_size=str_to_uint(headers.get(HEADER_SECRET_SIZE, "")),
            skew=str_to_uint(headers.get(HEADER_SKEW, "")),
            digits=Digits.from_str(headers.get(HEADER_DIGITS, "")),
        )
        logger.debug("loaded key for %s:%s from PEM", options.issuer, options.account_name)
        return Key(Secret(block.data), options)

    raise ValidationError("failed to decode PEM block containing TOTP secret key")


def gen_key_from_uri(uri: str) -> Key:
    """
    Key from an otpauth URI that passes URI.check().

    Options not carried by the URI (skew) take their defaults; secret_size is
    the length of the decoded secret.

    Raises:
        ValidationError: the URI failed check()
        GenerationError: see generate_key()
    """
    obj = URI(uri)
    try:
        obj.check()
    except ValidationError as e:
        raise wrap(ValidationError, "failed to create URI object from the given URI", e) from e

    try:
        opts = new_options(obj.issuer(), obj.account_name())
    except ValidationError as e:
        raise wrap(GenerationError, "failed to generate key", e) from e

    secret = obj.secret()
    opts.secret_size = len(secret)
    opts.period = obj.period()
    opts.algorithm = Algorithm(obj.algorithm())
    opts.digits = Digits(obj.digits())

    logger.debug("loaded key for %s:%s from URI", opts.issuer, opts.account_name)
    return Key(secret, opts)


def validate(passcode: str, secret_b32: str, options: Options, t: datetime = None) -> bool:
    """
    Validate passcode against a raw Base32 secret without building a Key first.

    Returns False (never raises) on a bad secret or any primitive failure.
    """
    try:
        secret = Secret.from_base32(secret_b32)
    except DecodeError:
        return False
    key = Key(secret, options)
    return key.validate_custom(passcode, t if t is not None else key.clock.now())


# --- Deprecated names -----------------------------------------------------------------
def generate_key_pem(pem_key: str) -> Key:
    """Deprecated: use gen_key_from_pem()."""
    warnings.warn("generate_key_pem() is deprecated, use gen_key_from_pem()",
                  DeprecationWarning, stacklevel=2)
    return gen_key_from_pem(pem_key)


def generate_key_uri(uri: str) -> Key:
    """Deprecated: use gen_key_from_uri()."""
    warnings.warn("generate_key_uri() is deprecated, use gen_key_from_uri()",
                  DeprecationWarning, stacklevel=2)
    return gen_key_from_uri(uri)
