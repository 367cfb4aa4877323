"""
pem.py — PEM text armor with RFC 1421-style headers.

Layout (RFC 7468 armor, RFC 1421 headers):

    -----BEGIN TOTP SECRET KEY-----
    Account Name: alice@example.com
    Algorithm: SHA1
    ...
    <blank line>
    <base64 body, 64 columns>
    -----END TOTP SECRET KEY-----

Headers are written sorted by key. On decode, header lines are read until the
first line without a colon; key and value are stripped. A block whose body is
not valid Base64 is skipped and scanning resumes after its BEGIN line.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from .errors import EncodingError

LINE_LENGTH = 64

_BLOCK = re.compile(
    r"^-----BEGIN (?P<type>[^\r\n]*?)-----[ \t]*\r?\n"
    r"(?P<body>.*?)"
    r"^-----END (?P=type)-----[ \t]*(?:\r?\n|\Z)",
    re.MULTILINE | re.DOTALL,
)
_BEGIN = re.compile(r"^-----BEGIN [^\r\n]*?-----", re.MULTILINE)


@dataclass
class PEMBlock:
    type: str
    headers: Dict[str, str] = field(default_factory=dict)
    data: bytes = b""


def encode(block_type: str, headers: Dict[str, str], data: bytes) -> str:
    """
    Armor data as a PEM block.

    Raises:
        EncodingError: a header key contains ':' or a line break
    """
    for key, value in headers.items():
        if ":" in key or "\n" in key or "\n" in str(value):
            raise EncodingError(f"invalid PEM header {key!r}")

    lines = [f"-----BEGIN {block_type}-----"]
    if headers:
        # Proc-Type must come first when present
        keys = sorted(headers, key=lambda k: (k != "Proc-Type", k))
        lines.extend(f"{k}: {headers[k]}" for k in keys)
        lines.append("")

    body = base64.b64encode(data).decode("ascii")
    lines.extend(body[i:i + LINE_LENGTH] for i in range(0, len(body), LINE_LENGTH))
    lines.append(f"-----END {block_type}-----")
    return "\n".join(lines) + "\n"


def decode(text: str) -> Tuple[Optional[PEMBlock], str]:
    """
    Find the next PEM block in text.

    Returns:
        (block, rest) — rest is the text after the block. (None, text) when
        no well-formed block remains.
    """
    pos = 0
    while True:
        match = _BLOCK.search(text, pos)
        if match is None:
            return None, text

        block = _parse_body(match.group("type"), match.group("body"))
        if block is not None:
            return block, text[match.end():]

        # malformed body: resume after this BEGIN line
        begin = _BEGIN.search(text, match.start())
        pos = begin.end() if begin else match.end()


def iter_blocks(text: str) -> Iterator[PEMBlock]:
    """Yield every well-formed block in order."""
    while True:
        block, text = decode(text)
        if block is None:
            return
        yield block


def _parse_body(block_type: str, body: str) -> Optional[PEMBlock]:
    lines = body.splitlines()
    headers: Dict[str, str] = {}
    idx = 0
    for idx, line in enumerate(lines):
        if ":" not in line:
            break
        key, _, value = line.partition(":")
        headers[key.strip()] = value.strip()
    else:
        idx = len(lines)

    payload = "".join("".join(lines[idx:]).split())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    return PEMBlock(type=block_type, headers=headers, data=data)


class PEMCodec:
    """Default PEM encoder injected into Key; swap it out in tests."""

    def encode(self, block_type: str, headers: Dict[str, str], data: bytes) -> str:
        return encode(block_type, headers, data)
