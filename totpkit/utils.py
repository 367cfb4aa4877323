"""Small parsing helpers shared by the URI, PEM and Digits code."""

import re
from urllib.parse import unquote

UINT32_MAX = 2**32 - 1

_DECIMAL = re.compile(r"[0-9]+")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def str_to_uint(number: str) -> int:
    """
    Convert a decimal string to an unsigned int.

    Returns 0 if the string is not a plain decimal number or does not fit in
    32 bits. Signs, spaces and underscores are rejected, unlike int().
    """
    if not isinstance(number, str) or not _DECIMAL.fullmatch(number):
        return 0
    value = int(number)
    if value > UINT32_MAX:
        return 0
    return value


def strict_unquote(text: str) -> str:
    """
    Percent-decode text, raising ValueError on a malformed escape.

    urllib's unquote() passes "%zz" through untouched; otpauth labels with a
    broken escape must be treated as unparseable instead.
    """
    if _BAD_ESCAPE.search(text):
        raise ValueError(f"invalid URL escape in {text!r}")
    return unquote(text, errors="strict")
