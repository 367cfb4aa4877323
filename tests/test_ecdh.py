"""Tests for ECDH-derived secrets (totpkit.kdf and the with_ecdh() generation path)."""

from __future__ import annotations

import hashlib

import pytest

from totpkit.errors import DerivationError, GenerationError
from totpkit.kdf import HKDF_MAX_LENGTH, curve_name, default_kdf, ecdh_shared_secret
from totpkit.key import gen_key_from_pem, generate_key
from totpkit.options import with_ecdh, with_ecdh_kdf, with_secret_size

from .conftest import ACCOUNT, FROZEN_TS, ISSUER, make_keypair

CONTEXT = "example.com alice@example.com bob@example.com TOTP secret v1"


def shake_kdf(secret: bytes, ctx: bytes, out_len: int) -> bytes:
    return hashlib.shake_256(ctx + secret).digest(out_len)


# ===================================================================
# 1. default_kdf()
# ===================================================================


class TestDefaultKDF:
    def test_output_length(self) -> None:
        for n in (1, 16, 32, 128, HKDF_MAX_LENGTH):
            assert len(default_kdf(b"shared", b"ctx", n)) == n

    def test_deterministic(self) -> None:
        assert default_kdf(b"shared", b"ctx", 32) == default_kdf(b"shared", b"ctx", 32)

    def test_context_separates_outputs(self) -> None:
        assert default_kdf(b"shared", b"ctx A", 32) != default_kdf(b"shared", b"ctx B", 32)

    def test_secret_changes_output(self) -> None:
        assert default_kdf(b"shared 1", b"ctx", 32) != default_kdf(b"shared 2", b"ctx", 32)

    @pytest.mark.parametrize("out_len", [0, -1, HKDF_MAX_LENGTH + 1])
    def test_invalid_length(self, out_len: int) -> None:
        with pytest.raises(DerivationError, match="invalid output length"):
            default_kdf(b"shared", b"ctx", out_len)


# ===================================================================
# 2. Shared secret
# ===================================================================


class TestSharedSecret:
    def test_both_sides_agree(self, ecdh_pairs) -> None:
        (priv_a, pub_a), (priv_b, pub_b) = ecdh_pairs
        assert ecdh_shared_secret(priv_a, pub_b) == ecdh_shared_secret(priv_b, pub_a)

    @pytest.mark.parametrize("curve, expected", [
        ("X25519", "X25519"), ("X448", "X448"), ("P-256", "secp256r1"), ("P-384", "secp384r1"),
    ])
    def test_curve_name(self, curve: str, expected: str) -> None:
        priv, pub = make_keypair(curve)
        assert curve_name(priv) == expected
        assert curve_name(pub) == expected

    def test_curve_name_rejects_other_keys(self) -> None:
        with pytest.raises(DerivationError, match="unsupported ECDH key type"):
            curve_name(b"not a key")

    @pytest.mark.parametrize("local, remote, names", [
        ("X25519", "P-256", "X25519 vs secp256r1"),
        ("P-256", "P-384", "secp256r1 vs secp384r1"),
        ("X448", "X25519", "X448 vs X25519"),
    ])
    def test_curve_mismatch(self, local: str, remote: str, names: str) -> None:
        priv, _ = make_keypair(local)
        _, pub = make_keypair(remote)
        with pytest.raises(DerivationError) as excinfo:
            ecdh_shared_secret(priv, pub)
        assert str(excinfo.value) == f"private key and public key curves do not match ({names})"


# ===================================================================
# 3. Key generation with ECDH
# ===================================================================


class TestECDHKey:
    def test_both_parties_get_the_same_passcodes(self, ecdh_pairs) -> None:
        (priv_a, pub_a), (priv_b, pub_b) = ecdh_pairs
        key_a = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT))
        key_b = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_b, pub_a, CONTEXT))

        assert key_a.secret == key_b.secret
        assert len(key_a.secret) == 128
        assert key_a.pass_code_custom(FROZEN_TS) == key_b.pass_code_custom(FROZEN_TS)
        assert key_b.validate_custom(key_a.pass_code_custom(FROZEN_TS), FROZEN_TS)

    def test_secret_is_the_kdf_output(self) -> None:
        (priv_a, _), (_, pub_b) = make_keypair("X25519"), make_keypair("X25519")
        key = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT), with_secret_size(32))
        expected = default_kdf(ecdh_shared_secret(priv_a, pub_b), CONTEXT.encode(), 32)
        assert key.secret == expected

    def test_context_changes_the_secret(self) -> None:
        (priv_a, _), (_, pub_b) = make_keypair("P-256"), make_keypair("P-256")
        key_1 = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT + " #1"))
        key_2 = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT + " #2"))
        assert key_1.secret != key_2.secret

    def test_curve_mismatch_fails_generation(self) -> None:
        priv, _ = make_keypair("X25519")
        _, pub = make_keypair("P-256")
        with pytest.raises(GenerationError) as excinfo:
            generate_key(ISSUER, ACCOUNT, with_ecdh(priv, pub, CONTEXT))
        assert str(excinfo.value) == (
            "failed to generate ECDH shared secret: "
            "private key and public key curves do not match (X25519 vs secp256r1)"
        )
        assert isinstance(excinfo.value.__cause__, DerivationError)

    def test_zero_secret_size_fails_in_kdf(self) -> None:
        (priv_a, _), (_, pub_b) = make_keypair("X25519"), make_keypair("X25519")
        with pytest.raises(GenerationError, match="failed to derive key from ECDH shared secret: invalid output length"):
            generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT), with_secret_size(0))

    def test_custom_kdf(self, ecdh_pairs) -> None:
        (priv_a, pub_a), (priv_b, pub_b) = ecdh_pairs
        key_a = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT), with_ecdh_kdf(shake_kdf))
        key_b = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_b, pub_a, CONTEXT), with_ecdh_kdf(shake_kdf))

        shared = ecdh_shared_secret(priv_a, pub_b)
        assert key_a.secret == shake_kdf(shared, CONTEXT.encode(), 128)
        assert key_a.secret == key_b.secret

    def test_custom_kdf_with_wrong_length(self) -> None:
        (priv_a, _), (_, pub_b) = make_keypair("X25519"), make_keypair("X25519")
        short_kdf = lambda secret, ctx, out_len: b"\x01" * (out_len - 1)  # noqa: E731
        with pytest.raises(GenerationError, match="invalid output length: got 127 bytes, want 128"):
            generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT), with_ecdh_kdf(short_kdf))

    def test_custom_kdf_error_is_wrapped(self) -> None:
        def failing_kdf(secret: bytes, ctx: bytes, out_len: int) -> bytes:
            raise DerivationError("hardware token unavailable")

        (priv_a, _), (_, pub_b) = make_keypair("X25519"), make_keypair("X25519")
        with pytest.raises(GenerationError) as excinfo:
            generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT), with_ecdh_kdf(failing_kdf))
        assert str(excinfo.value) == "failed to derive key from ECDH shared secret: hardware token unavailable"

    def test_ecdh_key_round_trips_through_pem(self) -> None:
        (priv_a, _), (_, pub_b) = make_keypair("X25519"), make_keypair("X25519")
        key = generate_key(ISSUER, ACCOUNT, with_ecdh(priv_a, pub_b, CONTEXT))
        assert gen_key_from_pem(key.pem()).secret == key.secret
