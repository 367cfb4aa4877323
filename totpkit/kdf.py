"""
kdf.py — derive a TOTP secret from an ECDH key agreement.

Two parties holding (privA, pubB) and (privB, pubA) on the same curve compute
the same shared secret, then stretch it with a KDF keyed by a common context
string. Same curve + same context + same Options => same passcodes.

Supported keys (from the `cryptography` package):
- X25519 / X448
- NIST and other EC curves (ec.EllipticCurvePrivateKey / PublicKey)

Context recommendation:
    "[issuer] [sorted account names] [purpose] [version]"
    e.g. "example.com alice@example.com bob@example.com TOTP secret v1"
"""

from typing import Callable

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, x448, x25519
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .errors import DerivationError

# KDF signature: (shared_secret, context, out_len) -> exactly out_len bytes
KDF = Callable[[bytes, bytes, int], bytes]

HKDF_HASH = hashes.SHA256
HKDF_MAX_LENGTH = 255 * HKDF_HASH.digest_size


def default_kdf(secret: bytes, ctx: bytes, out_len: int) -> bytes:
    """
    HKDF-SHA256 (RFC 5869) with ctx as the `info` parameter.

    Arguments:
        secret: input key material (the ECDH shared secret)
        ctx: domain-separation context agreed by both parties
        out_len: number of bytes to return, 1..8160

    Raises:
        DerivationError: out_len is 0 or beyond what HKDF-SHA256 can expand
    """
    if out_len <= 0 or out_len > HKDF_MAX_LENGTH:
        raise DerivationError(f"invalid output length: {out_len} (must be 1..{HKDF_MAX_LENGTH})")

    hkdf = HKDF(algorithm=HKDF_HASH(), length=out_len, salt=None, info=ctx)
    return hkdf.derive(secret)


def curve_name(key) -> str:
    """Name of the curve an ECDH key lives on."""
    if isinstance(key, (x25519.X25519PrivateKey, x25519.X25519PublicKey)):
        return "X25519"
    if isinstance(key, (x448.X448PrivateKey, x448.X448PublicKey)):
        return "X448"
    if isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        return key.curve.name
    raise DerivationError(f"unsupported ECDH key type: {type(key).__name__}")


def ecdh_shared_secret(private_key, public_key) -> bytes:
    """
    Compute the ECDH shared secret between a local private key and a peer key.

    Raises:
        DerivationError: the keys are on different curves, or not ECDH keys
    """
    local, peer = curve_name(private_key), curve_name(public_key)
    if local != peer:
        raise DerivationError(
            f"private key and public key curves do not match ({local} vs {peer})"
        )

    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        return private_key.exchange(ec.ECDH(), public_key)
    return private_key.exchange(public_key)
