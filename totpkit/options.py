"""
options.py — configuration of a TOTP key.

Options is a plain mutable record. Two ways to fill it:

1. Construct it and call set_default() to fill the zero fields:

    opts = Options(issuer="Example.com", account_name="alice@example.com")
    opts.set_default()

2. new_options() + option functions, which validate as they are applied:

    opts = new_options("Example.com", "alice@example.com")
    for apply in (with_algorithm(Algorithm("SHA256")), with_digits(Digits(8))):
        apply(opts)

generate_key() does (2) for you.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .algorithm import Algorithm
from .digits import Digits
from .errors import ValidationError
from .kdf import KDF

logger = logging.getLogger(__name__)

# --- Defaults ---------------------------------------------------------------
OPTION_ALGORITHM_DEFAULT = Algorithm("SHA1")  # most authenticator apps only speak SHA1
OPTION_PERIOD_DEFAULT = 30  # seconds, RFC 6238
OPTION_SECRET_SIZE_DEFAULT = 128  # bytes
OPTION_SKEW_DEFAULT = 1  # ± periods
OPTION_DIGITS_DEFAULT = Digits(6)

ERR_NIL_OPTIONS = "options is nil"


@dataclass
class Options:
    """
    Settings stored alongside a Secret in a Key.

    Fields:
        issuer: name of the issuer (organization, company, domain)
        account_name: name of the secret owner (e.g. email address)
        algorithm: HMAC hash (default SHA1)
        period: seconds a passcode is valid for (default 30)
        secret_size: size of the generated secret in bytes (default 128)
        skew: periods tolerated either side of "now" on validation (default 1)
        digits: passcode length, 6 or 8 (default 6)
        secret_query_first: put `secret=` first in the URI query (default True)

    The ecdh_* fields and kdf are set by with_ecdh()/with_ecdh_kdf(); when a
    private key is present the secret is derived instead of random.
    """

    issuer: str = ""
    account_name: str = ""
    algorithm: Algorithm = Algorithm("")
    period: int = 0
    secret_size: int = 0
    skew: int = 0
    digits: Digits = Digits(0)
    secret_query_first: bool = True
    ecdh_private_key: Any = None
    ecdh_public_key: Any = None
    ecdh_context: str = ""
    kdf: Optional[KDF] = None

    def set_default(self) -> None:
        """Set the zero-valued fields to their defaults. Others are left alone."""
        if not self.algorithm:
            self.algorithm = OPTION_ALGORITHM_DEFAULT
        if self.period == 0:
            self.period = OPTION_PERIOD_DEFAULT
        if self.secret_size == 0:
            self.secret_size = OPTION_SECRET_SIZE_DEFAULT
        if self.digits == 0:
            self.digits = OPTION_DIGITS_DEFAULT
        if self.skew == 0:
            self.skew = OPTION_SKEW_DEFAULT

    def uses_ecdh(self) -> bool:
        return self.ecdh_private_key is not None


def new_options(issuer: str, account_name: str) -> Options:
    """Options with defaults applied. Issuer and account name are required."""
    if not issuer or not account_name:
        raise ValidationError("issuer and accountName are required")

    opts = Options(issuer=issuer, account_name=account_name)
    opts.set_default()
    return opts


# --- Option functions -------------------------------------------------------
# Each returns a callable that mutates an Options in place and raises
# ValidationError on a None target or an invalid argument.
Option = Callable[[Options], None]


def _require(opts: Optional[Options]) -> None:
    if opts is None:
        raise ValidationError(ERR_NIL_OPTIONS)


def with_algorithm(algo: Algorithm) -> Option:
    """HMAC algorithm to use (default SHA1)."""
    def apply(opts: Options) -> None:
        _require(opts)
        algo_obj = Algorithm(algo)
        if not algo_obj.is_supported():
            raise ValidationError(f"unsupported algorithm: {algo_obj}")
        opts.algorithm = algo_obj
    return apply


def with_digits(digits: int) -> Option:
    """Passcode length, 6 or 8 (default 6)."""
    def apply(opts: Options) -> None:
        _require(opts)
        opts.digits = Digits(digits)
    return apply


def with_period(period: int) -> Option:
    """Seconds a passcode is valid for (default 30)."""
    def apply(opts: Options) -> None:
        _require(opts)
        opts.period = period
    return apply


def with_secret_size(size: int) -> Option:
    """Size of the generated secret in bytes (default 128)."""
    def apply(opts: Options) -> None:
        _require(opts)
        opts.secret_size = size
    return apply


def with_skew(skew: int) -> Option:
    """
    Periods before or after the current time to accept.

    1 (the default) accepts one period either side. 0 gives no tolerance at
    all, which fails often with short periods. Values above 1 are sketchy.
    """
    def apply(opts: Options) -> None:
        _require(opts)
        opts.skew = skew
    return apply


def with_secret_query_first(choice: bool) -> Option:
    """
    True (default): "?secret=...&algorithm=..." with the rest sorted.
    False: every parameter sorted, "?algorithm=...&secret=...".
    """
    def apply(opts: Options) -> None:
        _require(opts)
        opts.secret_query_first = bool(choice)
    return apply


def with_ecdh(local_key, remote_key, context: str) -> Option:
    """
    Derive the secret from an ECDH shared secret instead of random bytes.

    Both keys must be on the same curve. context must be the same string on
    both sides; it separates this use of the shared secret from any other.
    The derivation itself runs when the Key is generated.
    """
    def apply(opts: Options) -> None:
        _require(opts)
        if local_key is None or remote_key is None:
            raise ValidationError("ECDH private key and peer public key are required")
        if not context:
            raise ValidationError("ECDH context is required")
        opts.ecdh_private_key = local_key
        opts.ecdh_public_key = remote_key
        opts.ecdh_context = context
    return apply


def with_ecdh_kdf(user_kdf: KDF) -> Option:
    """
    Custom KDF for the ECDH path: f(secret, ctx, out_len) -> out_len bytes.

    It must be deterministic and use ctx as a salt-like input.
    """
    def apply(opts: Options) -> None:
        _require(opts)
        if not callable(user_kdf):
            raise ValidationError("KDF must be callable")
        opts.kdf = user_kdf
    return apply


def apply_options(opts: Options, *options: Option) -> Options:
    for option in options:
        option(opts)
    logger.debug("applied %d option(s) to %s:%s", len(options), opts.issuer, opts.account_name)
    return opts
