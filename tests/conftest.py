"""Shared fixtures: a frozen clock, the RFC 6238 sample key and ECDH key pairs."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, x448, x25519

from totpkit.key import Key
from totpkit.options import Options
from totpkit.secret import Secret

# ---------------------------------------------------------------------------
# RFC 6238 Appendix B test key: ASCII "12345678901234567890" (20 bytes)
# base32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
# ---------------------------------------------------------------------------
RFC_SECRET = b"12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"

ISSUER = "Example.com"
ACCOUNT = "alice@example.com"

# 1700000000 is 20 s into its 30 s period
FROZEN_TS = 1700000000


class FrozenClock:
    """Clock that always returns the same instant."""

    def __init__(self, ts: int = FROZEN_TS) -> None:
        self.ts = ts

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.ts, tz=timezone.utc)


def make_options(**overrides) -> Options:
    opts = Options(issuer=ISSUER, account_name=ACCOUNT, secret_size=len(RFC_SECRET))
    opts.set_default()
    for name, value in overrides.items():
        setattr(opts, name, value)
    return opts


def make_keypair(curve: str):
    """(private, public) for "X25519", "X448" or a NIST curve name."""
    if curve == "X25519":
        priv = x25519.X25519PrivateKey.generate()
    elif curve == "X448":
        priv = x448.X448PrivateKey.generate()
    elif curve == "P-256":
        priv = ec.generate_private_key(ec.SECP256R1())
    elif curve == "P-384":
        priv = ec.generate_private_key(ec.SECP384R1())
    else:
        raise ValueError(curve)
    return priv, priv.public_key()


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def rfc_key(frozen_clock) -> Key:
    """SHA1 / 30 s / 6 digits / skew 1 key over the RFC secret."""
    return Key(Secret(RFC_SECRET), make_options(), clock=frozen_clock)


@pytest.fixture(params=["X25519", "X448", "P-256", "P-384"])
def ecdh_pairs(request):
    """Two key pairs on the same curve: ((privA, pubA), (privB, pubB))."""
    return make_keypair(request.param), make_keypair(request.param)
