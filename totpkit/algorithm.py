"""
algorithm.py — HMAC hash choices for passcode computation.

Algorithm is a str subclass holding an upper-case tag. Any string can be
wrapped (e.g. one read from a PEM header), but only MD5, SHA1, SHA256 and
SHA512 are supported; the rest map to the UNSUPPORTED sentinel and must be
rejected before computing a passcode.
"""

import hashlib

from .errors import ValidationError

MD5 = "MD5"
SHA1 = "SHA1"
SHA256 = "SHA256"
SHA512 = "SHA512"

# Numeric IDs, stable for storage and interop with other OTP libraries.
ALGORITHM_IDS = {SHA1: 0, SHA256: 1, SHA512: 2, MD5: 3}
UNSUPPORTED_ID = -1

_HASHES = {
    MD5: hashlib.md5,
    SHA1: hashlib.sha1,
    SHA256: hashlib.sha256,
    SHA512: hashlib.sha512,
}


class Algorithm(str):
    """Upper-case HMAC algorithm tag."""

    @classmethod
    def from_str(cls, algo: str) -> "Algorithm":
        """Case-insensitive constructor. Unknown names raise ValidationError."""
        upper = algo.upper()
        if upper not in _HASHES:
            raise ValidationError("unsupported algorithm. it should be MD5, SHA1, SHA256 or SHA512")
        return cls(upper)

    @classmethod
    def from_id(cls, algo_id: int) -> "Algorithm":
        for name, ident in ALGORITHM_IDS.items():
            if ident == algo_id:
                return cls(name)
        raise ValidationError("invalid algorithm ID. it should be 0, 1, 2 or 3")

    def id(self) -> int:
        """Numeric ID, or UNSUPPORTED_ID (-1) for an unsupported tag."""
        return ALGORITHM_IDS.get(str.__str__(self), UNSUPPORTED_ID)

    def is_supported(self) -> bool:
        return str.__str__(self) in _HASHES

    def otp_algorithm(self):
        """The hashlib constructor for this tag, or None when unsupported."""
        return _HASHES.get(str.__str__(self))

    def __str__(self) -> str:
        return self.upper()
