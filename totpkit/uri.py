"""
uri.py — the otpauth key URI ("Google Authenticator" format).

    otpauth://totp/Example.com:alice@example.com?secret=JBSWY3DPEHPK3PXP&algorithm=SHA1&digits=6&issuer=Example.com&period=30
    ─────────┬───┬───────────┬─────────────────┬──────────────────────────────────────────────────────────────
             │   │           │                 └── query: secret (Base32), algorithm, digits, issuer, period
             │   │           └── account name
             │   └── issuer in the label
             └── type (totp or hotp)

URI is a str. Every accessor parses the string again and returns a zero value
("", 0 or None) when the URI is malformed; only check() reports what is wrong.
Store the results if you need them more than once.

See: https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

from typing import Dict, List, Optional
from urllib.parse import SplitResult, quote, urlsplit

from .algorithm import Algorithm
from .errors import DecodeError, ValidationError
from .secret import Secret
from .utils import str_to_uint, strict_unquote

SCHEME = "otpauth"
TYPE_TOTP = "totp"
TYPE_HOTP = "hotp"

# RFC 4226 §4: the shared secret MUST be at least 128 bits.
MIN_SECRET_BYTES = 16

# sub-delims and ':' '@' stay literal in the label path (RFC 3986 pchar)
LABEL_SAFE = "/:@$&+,;="


class URI(str):
    """otpauth URI string with tolerant accessors."""

    # --- Parsing --------------------------------------------------------------
    def _parsed(self) -> Optional[SplitResult]:
        text = str.__str__(self)
        if any(ord(c) < 0x20 or ord(c) == 0x7F for c in text):
            return None
        try:
            parts = urlsplit(text)
            strict_unquote(parts.path)
        except ValueError:
            return None
        return parts

    def _query(self) -> Dict[str, List[str]]:
        parts = self._parsed()
        if parts is None:
            return {}
        return parse_query(parts.query)

    def _get(self, key: str) -> str:
        values = self._query().get(key)
        return values[0] if values else ""

    # --- Accessors --------------------------------------------------------------
    def scheme(self) -> str:
        parts = self._parsed()
        return parts.scheme if parts else ""

    def host(self) -> str:
        """The OTP type as written in the host position; `totp` is valid."""
        parts = self._parsed()
        return parts.netloc if parts else ""

    def otp_type(self) -> str:
        """`totp`, `hotp`, or "" for anything else."""
        host = self.host().lower()
        return host if host in (TYPE_TOTP, TYPE_HOTP) else ""

    def path(self) -> str:
        """Percent-decoded URL path, including the leading slash."""
        parts = self._parsed()
        if parts is None:
            return ""
        try:
            return strict_unquote(parts.path)
        except ValueError:
            return ""

    def label(self) -> str:
        """The label: path without its leading slash."""
        path = self.path()
        return path[1:] if path.startswith("/") else path

    def issuer_from_path(self) -> str:
        """Label text before the first colon; "" without a colon."""
        issuer, sep, _ = self.label().partition(":")
        return issuer if sep else ""

    def issuer(self) -> str:
        """
        The issuer, only when the label and the `issuer` parameter agree.

        Both must be present and identical; otherwise "". A URI whose visible
        label names one issuer and whose parameter names another is not
        trusted.
        """
        from_path = self.issuer_from_path()
        from_query = self._get("issuer")
        if from_path and from_query and from_path == from_query:
            return from_query
        return ""

    def account_name(self) -> str:
        """Label text after the first colon, or the whole label without one."""
        label = self.label()
        _, sep, account = label.partition(":")
        return account if sep else label

    def secret(self) -> Optional[Secret]:
        """The Base32 `secret` parameter decoded, or None if absent/invalid."""
        value = self._get("secret")
        if not value:
            return None
        try:
            secret = Secret.from_base32(value)
        except DecodeError:
            return None
        return secret if secret else None

    def algorithm(self) -> str:
        return self._get("algorithm")

    def digits(self) -> int:
        """`digits` parameter; 0 when missing, non-numeric or >= 2**32."""
        return str_to_uint(self._get("digits"))

    def period(self) -> int:
        """`period` parameter; 0 when missing, non-numeric or >= 2**32."""
        return str_to_uint(self._get("period"))

    def parameters(self, secret_first: bool = True) -> str:
        """
        Re-render the query string.

        secret_first=True puts `secret` first and sorts the rest; False sorts
        everything. Spaces become %20, never '+'.
        """
        return encode_query(self._query(), secret_first)

    # --- Validation ---------------------------------------------------------------
    def check(self) -> None:
        """
        Raise ValidationError describing the first problem found, else None.

        Checks, in order: scheme, host, issuer, account name, secret,
        algorithm, digits, period, supported algorithm, secret length.
        """
        if self.scheme() != SCHEME:
            raise ValidationError("invalid scheme. it always should be `otpauth`")
        if self.host() != TYPE_TOTP:
            raise ValidationError("invalid host. it always should be `totp`")
        if not self.issuer():
            raise ValidationError("missing issuer or issuer is not set correctly")
        if not self.account_name():
            raise ValidationError("missing account name")

        secret = self.secret()
        if secret is None:
            raise ValidationError("missing secret")
        if not self.algorithm():
            raise ValidationError("missing algorithm")
        if self.digits() == 0:
            raise ValidationError("missing digits or zero digits set")
        if self.period() == 0:
            raise ValidationError("missing period or zero period set")

        algo = Algorithm(self.algorithm())
        if not algo.is_supported():
            raise ValidationError(f"unsupported algorithm: {algo}")

        if len(secret) < MIN_SECRET_BYTES:
            raise ValidationError(f"secret is too short. it should be at least {MIN_SECRET_BYTES} bytes")

    def is_valid(self) -> bool:
        try:
            self.check()
        except ValidationError:
            return False
        return True


# --- Query helpers -------------------------------------------------------------------
def parse_query(query: str) -> Dict[str, List[str]]:
    """
    Parse a query string into key -> [values], keeping blank values.

    '+' means space. Pairs with a malformed escape are dropped, the rest kept.
    """
    result: Dict[str, List[str]] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        try:
            key = strict_unquote(key.replace("+", " "))
            value = strict_unquote(value.replace("+", " "))
        except ValueError:
            continue
        result.setdefault(key, []).append(value)
    return result


def encode_query(values: Dict[str, List[str]], secret_first: bool = True) -> str:
    """Encode key -> [values] sorted by key, optionally with `secret` first."""
    keys = sorted(values)
    if secret_first and "secret" in values:
        keys.remove("secret")
        keys.insert(0, "secret")

    return "&".join(
        f"{quote(key, safe='')}={quote(value, safe='')}"
        for key in keys
        for value in values[key]
    )


def build_uri(issuer: str, account_name: str, params: Dict[str, str], secret_first: bool = True) -> "URI":
    """otpauth://totp/<issuer>:<account_name>?<params>"""
    label = quote(f"/{issuer}:{account_name}", safe=LABEL_SAFE)
    query = encode_query({k: [v] for k, v in params.items()}, secret_first)
    return URI(f"{SCHEME}://{TYPE_TOTP}{label}?{query}")
