"""
secret.py — the shared HMAC key material and its transport encodings.

Encodings:
- Base32, no padding (RFC 4648). Used inside otpauth URIs and the default str().
- Base62 (0-9a-zA-Z). Goes through an arbitrary-precision integer, so leading
  0x00 bytes are NOT preserved: Secret(b"\\x00\\x01").base62() decodes back to
  b"\\x01".
- Base64, standard alphabet with padding. Used for the PEM body.
"""

import base64
import binascii

from .errors import DecodeError, wrap

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE62_INDEX = {c: i for i, c in enumerate(BASE62_ALPHABET)}
_BASE32_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")


class Secret:
    """Immutable byte string holding a TOTP secret."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes = b"") -> None:
        object.__setattr__(self, "_raw", bytes(raw))

    def __setattr__(self, name, value):
        raise AttributeError("Secret is immutable")

    # --- Constructors -------------------------------------------------------
    @classmethod
    def from_base32(cls, text: str) -> "Secret":
        """Decode an unpadded, upper-case Base32 string."""
        try:
            return cls(_b32decode_nopad(text))
        except (binascii.Error, ValueError) as e:
            raise wrap(DecodeError, "failed to decode base32 string", e) from e

    @classmethod
    def from_base62(cls, text: str) -> "Secret":
        """Decode a Base62 string. An empty or out-of-alphabet string fails."""
        if not text:
            raise DecodeError("failed to decode base62 string: empty input")
        value = 0
        for char in text:
            digit = _BASE62_INDEX.get(char)
            if digit is None:
                raise DecodeError(f"failed to decode base62 string: invalid character {char!r}")
            value = value * 62 + digit
        return cls(value.to_bytes((value.bit_length() + 7) // 8, "big"))

    @classmethod
    def from_base64(cls, text: str) -> "Secret":
        """Decode a standard, padded Base64 string."""
        try:
            return cls(base64.b64decode(text, validate=True))
        except (binascii.Error, ValueError) as e:
            raise wrap(DecodeError, "failed to decode base64 string", e) from e

    # --- Encoders -----------------------------------------------------------
    def base32(self) -> str:
        return base64.b32encode(self._raw).decode("ascii").rstrip("=")

    def base62(self) -> str:
        value = int.from_bytes(self._raw, "big")
        if value == 0:
            return "0"
        digits = []
        while value:
            value, rem = divmod(value, 62)
            digits.append(BASE62_ALPHABET[rem])
        return "".join(reversed(digits))

    def base64(self) -> str:
        return base64.b64encode(self._raw).decode("ascii")

    def to_bytes(self) -> bytes:
        return self._raw

    # --- Dunder -------------------------------------------------------------
    def __bytes__(self) -> bytes:
        return self._raw

    def __len__(self) -> int:
        return len(self._raw)

    def __bool__(self) -> bool:
        return bool(self._raw)

    def __eq__(self, other) -> bool:
        if isinstance(other, Secret):
            return self._raw == other._raw
        if isinstance(other, (bytes, bytearray)):
            return self._raw == bytes(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self.base32()

    def __repr__(self) -> str:
        # never print key material
        return f"Secret(<{len(self._raw)} bytes>)"


def _b32decode_nopad(text: str) -> bytes:
    # b32decode wants padding; the otpauth form never carries it.
    if any(c not in _BASE32_ALPHABET for c in text):
        raise ValueError("illegal base32 data")
    if len(text) % 8 in (1, 3, 6):
        raise ValueError(f"illegal base32 data length {len(text)}")
    padded = text + "=" * (-len(text) % 8)
    return base64.b32decode(padded)
