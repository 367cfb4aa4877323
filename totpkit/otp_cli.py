#!/usr/bin/env python3
"""
otp_cli.py — small CLI around totpkit, keeping one key in a PEM file.

Subcommands:
- init     : generate a key, save it as PEM (owner-only permissions), print the URI
- passcode : print the current passcode (--watch to refresh every second)
- verify   : check a passcode against the stored key
- uri      : print the otpauth URI of the stored key
- qr       : write the key's QR code as a PNG image
- import   : read an otpauth URI (e.g. from another app's export) and save it as PEM

Usage examples:
  # 1) Create a key and a QR code to scan with an authenticator app
  totpkit init --issuer Example.com --account alice@example.com --qr qr-code.png

  # 2) Show the passcode in real time
  totpkit passcode --watch

  # 3) Check what the user typed
  totpkit verify --code 123456

Security note:
  The PEM file holds the raw secret. Keep it private; do not sync it publicly.
"""

import argparse
import logging
import os
import shutil
import sys
import time

from .errors import TOTPError
from .fix_level import FIX_LEVEL_DEFAULT, FixLevel
from .key import Key, gen_key_from_pem, gen_key_from_uri, generate_key
from .options import (
    OPTION_ALGORITHM_DEFAULT,
    OPTION_DIGITS_DEFAULT,
    OPTION_PERIOD_DEFAULT,
    OPTION_SECRET_SIZE_DEFAULT,
    OPTION_SKEW_DEFAULT,
    with_algorithm,
    with_digits,
    with_period,
    with_secret_size,
    with_skew,
)

logger = logging.getLogger(__name__)

PEM_FILE = "totp_secret.pem"
QR_FILE = "qr-code.png"
QR_SIZE = 256
FILE_PERM = 0o600

FIX_LEVELS = {
    "7": FixLevel.FIX_LEVEL_7,
    "15": FixLevel.FIX_LEVEL_15,
    "25": FixLevel.FIX_LEVEL_25,
    "30": FixLevel.FIX_LEVEL_30,
}


# --- File helpers ---
def write_private(path: str, data: bytes) -> None:
    """Write data readable by the owner only, keeping a .bak of any old file."""
    if os.path.exists(path):
        logger.debug("%s exists, keeping a backup at %s.bak", path, path)
        shutil.copy2(path, path + ".bak")

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_PERM)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    os.chmod(path, FILE_PERM)
    logger.debug("wrote %s", path)


def load_key(path: str) -> Key:
    with open(path, "r", encoding="utf-8") as f:
        return gen_key_from_pem(f.read())


def save_qr(key: Key, path: str, size: int, level: FixLevel) -> None:
    png = key.qr_code(level).png(size, size)
    write_private(path, png)


# --- CLI command handlers ---
def cmd_help(args):
    print("No command specified. Use -h for help.")
    return 0


def cmd_init(args):
    key = generate_key(
        args.issuer, args.account,
        with_algorithm(args.algorithm.upper()),
        with_digits(args.digits),
        with_period(args.period),
        with_secret_size(args.secret_size),
        with_skew(args.skew),
    )
    write_private(args.file, key.pem().encode("ascii"))
    print(f"[*] Key saved to {args.file}")

    if args.qr:
        save_qr(key, args.qr, args.size, FIX_LEVELS[args.fix_level])
        print(f"[*] QR code saved to {args.qr}")

    print("[*] otpauth URI (import into authenticator apps):")
    print("    " + key.uri())
    return 0


def cmd_passcode(args):
    key = load_key(args.file)
    if not args.watch:
        print(key.pass_code())
        return 0

    period = key.options.period
    print("Press Ctrl+C to quit. Generating passcodes in real time...\n")
    last_code = None
    try:
        while True:
            code = key.pass_code()
            remaining = period - int(time.time()) % period
            if code != last_code:
                print(f"TOTP: {code}  (valid ~{remaining:2d}s)")
                last_code = code
            else:
                print(f".. {remaining:2d}s left", end="\r", flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")
    return 0


def cmd_verify(args):
    key = load_key(args.file)
    if key.validate(args.code):
        print("[+] Passcode is VALID")
        return 0
    print("[-] Passcode is INVALID")
    return 1


def cmd_uri(args):
    key = load_key(args.file)
    print(key.uri())
    return 0


def cmd_qr(args):
    key = load_key(args.file)
    save_qr(key, args.out, args.size, FIX_LEVELS[args.fix_level])
    print(f"[*] QR code saved to {args.out}")
    return 0


def cmd_import(args):
    key = gen_key_from_uri(args.uri)
    write_private(args.file, key.pem().encode("ascii"))
    print(f"[*] Key for {key.options.issuer}:{key.options.account_name} saved to {args.file}")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="totpkit", description="TOTP key generator/validator backed by a PEM file.")
    p.add_argument("--verbose", action="store_true", help="Verbose (debug) logging")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help)

    # init
    pi = sub.add_parser("init", help="Generate a key and save it as PEM")
    pi.add_argument("--issuer", required=True, help="Issuer label (service name)")
    pi.add_argument("--account", required=True, help="Account name (e.g. email address)")
    pi.add_argument("--algorithm", default=str(OPTION_ALGORITHM_DEFAULT), help="MD5, SHA1, SHA256 or SHA512")
    pi.add_argument("--digits", type=int, default=int(OPTION_DIGITS_DEFAULT), choices=(6, 8))
    pi.add_argument("--period", type=int, default=OPTION_PERIOD_DEFAULT, help="TOTP time step (seconds)")
    pi.add_argument("--skew", type=int, default=OPTION_SKEW_DEFAULT, help="Allowed +/- periods on verify")
    pi.add_argument("--secret-size", type=int, default=OPTION_SECRET_SIZE_DEFAULT, help="Secret size (bytes)")
    pi.add_argument("--file", default=PEM_FILE, help="PEM file to write")
    pi.add_argument("--qr", help="Also write the QR code PNG to this path")
    pi.add_argument("--size", type=int, default=QR_SIZE, help="QR image width/height (pixels)")
    pi.add_argument("--fix-level", choices=sorted(FIX_LEVELS), default=str(FIX_LEVEL_DEFAULT.percent))
    pi.set_defaults(func=cmd_init)

    # passcode
    pp = sub.add_parser("passcode", help="Print the current passcode")
    pp.add_argument("--file", default=PEM_FILE)
    pp.add_argument("--watch", action="store_true", help="Keep printing in real time")
    pp.set_defaults(func=cmd_passcode)

    # verify
    pv = sub.add_parser("verify", help="Verify a passcode")
    pv.add_argument("--file", default=PEM_FILE)
    pv.add_argument("--code", required=True, help="Passcode to verify")
    pv.set_defaults(func=cmd_verify)

    # uri
    pu = sub.add_parser("uri", help="Print the otpauth URI")
    pu.add_argument("--file", default=PEM_FILE)
    pu.set_defaults(func=cmd_uri)

    # qr
    pq = sub.add_parser("qr", help="Write the QR code PNG")
    pq.add_argument("--file", default=PEM_FILE)
    pq.add_argument("--out", default=QR_FILE)
    pq.add_argument("--size", type=int, default=QR_SIZE)
    pq.add_argument("--fix-level", choices=sorted(FIX_LEVELS), default=str(FIX_LEVEL_DEFAULT.percent))
    pq.set_defaults(func=cmd_qr)

    # import
    pm = sub.add_parser("import", help="Save an otpauth URI as PEM")
    pm.add_argument("--uri", required=True)
    pm.add_argument("--file", default=PEM_FILE)
    pm.set_defaults(func=cmd_import)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[+] %(name)s: %(message)s")

    try:
        return args.func(args)
    except (TOTPError, OSError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
