"""Tests for totpkit.otp_cli — the argparse front end, driven through main(argv)."""

from __future__ import annotations

import os
import stat

import pytest

from totpkit.key import gen_key_from_pem
from totpkit.otp_cli import PEM_FILE, build_parser, main

from .conftest import ACCOUNT, ISSUER, RFC_SECRET, RFC_SECRET_B32

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

IMPORT_URI = (
    f"otpauth://totp/{ISSUER}:{ACCOUNT}"
    f"?secret={RFC_SECRET_B32}&algorithm=SHA1&digits=6&issuer={ISSUER}&period=30"
)


@pytest.fixture
def pem_path(tmp_path) -> str:
    return str(tmp_path / "secret.pem")


@pytest.fixture
def initialized(pem_path) -> str:
    assert main(["init", "--issuer", ISSUER, "--account", ACCOUNT, "--file", pem_path]) == 0
    return pem_path


def read_key(path: str):
    with open(path, encoding="utf-8") as f:
        return gen_key_from_pem(f.read())


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args(["passcode"])
        assert args.file == PEM_FILE
        assert args.watch is False

    def test_no_command(self, capsys) -> None:
        assert main([]) == 0
        assert "No command specified" in capsys.readouterr().out

    def test_unknown_digits_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["init", "--issuer", ISSUER, "--account", ACCOUNT, "--digits", "7"])


class TestInit:
    def test_writes_pem_and_prints_uri(self, pem_path, capsys) -> None:
        assert main(["init", "--issuer", ISSUER, "--account", ACCOUNT, "--file", pem_path]) == 0
        out = capsys.readouterr().out
        key = read_key(pem_path)
        assert key.options.issuer == ISSUER
        assert key.options.account_name == ACCOUNT
        assert len(key.secret) == 128
        assert key.uri() in out

    @pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
    def test_pem_is_owner_only(self, initialized) -> None:
        assert stat.S_IMODE(os.stat(initialized).st_mode) == 0o600

    def test_custom_options(self, pem_path) -> None:
        assert main([
            "init", "--issuer", ISSUER, "--account", ACCOUNT, "--file", pem_path,
            "--algorithm", "sha256", "--digits", "8", "--period", "60", "--skew", "0", "--secret-size", "32",
        ]) == 0
        opts = read_key(pem_path).options
        assert (opts.algorithm, opts.digits, opts.period, opts.skew, opts.secret_size) == ("SHA256", 8, 60, 0, 32)

    def test_existing_file_is_backed_up(self, initialized) -> None:
        first = read_key(initialized).secret
        assert main(["init", "--issuer", ISSUER, "--account", ACCOUNT, "--file", initialized]) == 0
        assert read_key(initialized + ".bak").secret == first
        assert read_key(initialized).secret != first

    def test_with_qr(self, pem_path, tmp_path) -> None:
        qr_path = str(tmp_path / "qr.png")
        assert main([
            "init", "--issuer", ISSUER, "--account", ACCOUNT, "--file", pem_path,
            "--qr", qr_path, "--size", "200", "--fix-level", "30",
        ]) == 0
        with open(qr_path, "rb") as f:
            assert f.read().startswith(PNG_MAGIC)

    def test_bad_algorithm(self, pem_path, capsys) -> None:
        assert main(["init", "--issuer", ISSUER, "--account", ACCOUNT, "--file", pem_path,
                     "--algorithm", "SHA3"]) == 1
        assert "[!] failed to apply custom options: unsupported algorithm: SHA3" in capsys.readouterr().err
        assert not os.path.exists(pem_path)


class TestKeyCommands:
    def test_passcode(self, initialized, capsys) -> None:
        capsys.readouterr()
        assert main(["passcode", "--file", initialized]) == 0
        code = capsys.readouterr().out.strip()
        assert len(code) == 6
        assert read_key(initialized).validate(code)

    def test_verify_valid(self, initialized, capsys) -> None:
        code = read_key(initialized).pass_code()
        assert main(["verify", "--file", initialized, "--code", code]) == 0
        assert "VALID" in capsys.readouterr().out

    def test_verify_invalid(self, initialized, capsys) -> None:
        assert main(["verify", "--file", initialized, "--code", "12"]) == 1
        assert "INVALID" in capsys.readouterr().out

    def test_uri(self, initialized, capsys) -> None:
        capsys.readouterr()
        assert main(["uri", "--file", initialized]) == 0
        assert capsys.readouterr().out.strip() == read_key(initialized).uri()

    def test_qr(self, initialized, tmp_path) -> None:
        out = str(tmp_path / "code.png")
        assert main(["qr", "--file", initialized, "--out", out, "--size", "128"]) == 0
        with open(out, "rb") as f:
            assert f.read().startswith(PNG_MAGIC)

    def test_qr_too_small(self, initialized, tmp_path, capsys) -> None:
        out = str(tmp_path / "code.png")
        assert main(["qr", "--file", initialized, "--out", out, "--size", "8"]) == 1
        assert "failed to scale QR code" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys) -> None:
        assert main(["uri", "--file", str(tmp_path / "missing.pem")]) == 1
        assert capsys.readouterr().err.startswith("[!]")


class TestImport:
    def test_import(self, pem_path, capsys) -> None:
        assert main(["import", "--uri", IMPORT_URI, "--file", pem_path]) == 0
        assert pem_path in capsys.readouterr().out
        key = read_key(pem_path)
        assert key.secret == RFC_SECRET
        assert key.options.secret_size == len(RFC_SECRET)
        assert key.uri() == IMPORT_URI

    def test_import_rejects_bad_uri(self, pem_path, capsys) -> None:
        bad = IMPORT_URI.replace(f"issuer={ISSUER}", "issuer=Evil.com")
        assert main(["import", "--uri", bad, "--file", pem_path]) == 1
        err = capsys.readouterr().err
        assert "failed to create URI object from the given URI" in err
        assert not os.path.exists(pem_path)
