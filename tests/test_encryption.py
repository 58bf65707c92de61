"""Tests for key derivation and the per-field envelope cipher.

Covers: derive_key, WalletKey, FieldCipher (round-trip, IV uniqueness,
wire format, tamper detection, wrong key, malformed envelopes).
"""

import hashlib
import hmac

import pytest

from secure_wallet.vault.encryption import (
    Envelope,
    FieldCipher,
    WalletKey,
    build_identity_secret,
    derive_key,
    generate_random_string,
    looks_like_envelope,
)
from secure_wallet.vault.exceptions import (
    CipherInvariantError,
    ErrorKind,
    FormatError,
    IntegrityError,
    VaultLockedError,
)


def _flip_hex(text: str, index: int) -> str:
    """Change one hex character to a different hex character."""
    replacement = "0" if text[index] != "0" else "1"
    return text[:index] + replacement + text[index + 1:]


# ── Key Derivation ──────────────────────────────────────────────────


class TestDeriveKey:

    def test_deterministic(self):
        assert derive_key("a@b.c:1", "salt") == derive_key("a@b.c:1", "salt")

    def test_different_identity_different_key(self):
        assert derive_key("a@b.c:1", "salt") != derive_key("a@b.c:2", "salt")

    def test_different_salt_different_key(self):
        assert derive_key("a@b.c:1", "salt-one") != derive_key("a@b.c:1", "salt-two")

    def test_key_is_256_bits(self):
        assert len(derive_key("id", "salt").material) == 32

    def test_matches_pbkdf2_sha256(self):
        expected = hashlib.pbkdf2_hmac("sha256", b"id", b"salt", 10_000, dklen=32)
        assert derive_key("id", "salt").material == expected

    def test_empty_identity_is_permitted(self):
        assert derive_key("", "salt") == derive_key("", "salt")

    def test_rejects_low_iteration_count(self):
        with pytest.raises(ValueError):
            derive_key("id", "salt", iterations=1_000)

    def test_build_identity_secret(self):
        assert build_identity_secret("me@example.com", "uid-1") == "me@example.com:uid-1"


class TestWalletKey:

    def test_repr_hides_material(self, key):
        assert key.material.hex() not in repr(key)
        assert repr(key) == "<WalletKey active>"

    def test_wipe_blocks_use(self, key):
        key.wipe()
        assert key.is_wiped
        with pytest.raises(VaultLockedError):
            _ = key.material

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            WalletKey(b"short")

    def test_not_hashable(self, key):
        with pytest.raises(TypeError):
            hash(key)


# ── FieldCipher ─────────────────────────────────────────────────────


class TestFieldCipher:

    @pytest.mark.parametrize("plaintext", [
        "4111111111111111",
        "x",
        "correct horse battery staple",
        "pässwörd ✓ 密码",
        "a" * 16,   # exactly one block
        "b" * 1000,
        "colons:inside:the:value",
    ])
    def test_roundtrip(self, key, plaintext):
        assert FieldCipher.decrypt(FieldCipher.encrypt(plaintext, key), key) == plaintext

    def test_empty_plaintext_is_noop(self, key):
        assert FieldCipher.encrypt("", key) == ""
        assert FieldCipher.decrypt("", key) == ""

    def test_iv_unique_per_call(self, key):
        first = Envelope.parse(FieldCipher.encrypt("same", key))
        second = Envelope.parse(FieldCipher.encrypt("same", key))
        assert first.iv != second.iv
        assert first.ciphertext != second.ciphertext
        assert first.mac != second.mac

    def test_wire_format(self, key):
        envelope = FieldCipher.encrypt("secret", key)
        mac, iv, ciphertext = envelope.split(":")
        assert len(mac) == 64
        assert len(iv) == 32
        assert len(ciphertext) == 32  # one padded AES block
        int(mac, 16), int(iv, 16), int(ciphertext, 16)

    def test_mac_covers_textual_iv_and_ciphertext(self, key):
        mac, iv, ciphertext = FieldCipher.encrypt("secret", key).split(":")
        expected = hmac.new(key.material, f"{iv}:{ciphertext}".encode(), hashlib.sha256).hexdigest()
        assert mac == expected

    def test_tampered_iv_rejected(self, key):
        envelope = Envelope.parse(FieldCipher.encrypt("secret value", key))
        for i in range(len(envelope.iv)):
            tampered = Envelope(envelope.mac, _flip_hex(envelope.iv, i), envelope.ciphertext)
            with pytest.raises(IntegrityError):
                FieldCipher.decrypt(tampered.serialize(), key)

    def test_tampered_ciphertext_rejected(self, key):
        envelope = Envelope.parse(FieldCipher.encrypt("secret value", key))
        for i in range(len(envelope.ciphertext)):
            tampered = Envelope(envelope.mac, envelope.iv, _flip_hex(envelope.ciphertext, i))
            with pytest.raises(IntegrityError):
                FieldCipher.decrypt(tampered.serialize(), key)

    def test_non_hex_tamper_is_integrity_error(self, key):
        envelope = Envelope.parse(FieldCipher.encrypt("secret", key))
        tampered = Envelope(envelope.mac, "zz" + envelope.iv[2:], envelope.ciphertext)
        with pytest.raises(IntegrityError):
            FieldCipher.decrypt(tampered.serialize(), key)

    def test_tampered_mac_rejected(self, key):
        envelope = Envelope.parse(FieldCipher.encrypt("secret", key))
        tampered = Envelope(_flip_hex(envelope.mac, 0), envelope.iv, envelope.ciphertext)
        with pytest.raises(IntegrityError):
            FieldCipher.decrypt(tampered.serialize(), key)

    def test_wrong_key_rejected(self, key, other_key):
        envelope = FieldCipher.encrypt("secret", key)
        with pytest.raises(IntegrityError) as exc_info:
            FieldCipher.decrypt(envelope, other_key)
        assert exc_info.value.kind is ErrorKind.INTEGRITY

    def test_integrity_error_message_is_uniform(self, key, other_key):
        envelope = Envelope.parse(FieldCipher.encrypt("secret", key))
        messages = set()
        for bad in (
            Envelope(envelope.mac, _flip_hex(envelope.iv, 0), envelope.ciphertext).serialize(),
            Envelope(envelope.mac, envelope.iv, _flip_hex(envelope.ciphertext, 0)).serialize(),
            Envelope(_flip_hex(envelope.mac, 0), envelope.iv, envelope.ciphertext).serialize(),
        ):
            with pytest.raises(IntegrityError) as exc_info:
                FieldCipher.decrypt(bad, key)
            messages.add(str(exc_info.value))
        assert len(messages) == 1

    @pytest.mark.parametrize("malformed", [
        "no-separators",
        "only:two",
        "one:two:three:four",
        "::::",
    ])
    def test_wrong_segment_count_is_format_error(self, key, malformed):
        with pytest.raises(FormatError) as exc_info:
            FieldCipher.decrypt(malformed, key)
        assert exc_info.value.kind is ErrorKind.FORMAT

    def test_authenticated_garbage_is_invariant_violation(self, key):
        iv, ciphertext = "not-hex", "00" * 16
        mac = hmac.new(key.material, f"{iv}:{ciphertext}".encode(), hashlib.sha256).hexdigest()
        with pytest.raises(CipherInvariantError):
            FieldCipher.decrypt(f"{mac}:{iv}:{ciphertext}", key)

    def test_invariant_error_is_not_a_vault_error(self):
        from secure_wallet.vault.exceptions import VaultError

        assert not issubclass(CipherInvariantError, VaultError)


class TestHelpers:

    def test_looks_like_envelope(self, key):
        assert looks_like_envelope(FieldCipher.encrypt("x", key))
        assert not looks_like_envelope("plain text")
        assert not looks_like_envelope(None)

    def test_envelope_parse_serialize(self):
        env = Envelope.parse("aa:bb:cc")
        assert (env.mac, env.iv, env.ciphertext) == ("aa", "bb", "cc")
        assert env.serialize() == "aa:bb:cc"

    def test_generate_random_string(self):
        token = generate_random_string()
        assert len(token) == 64
        assert token != generate_random_string()

    @pytest.mark.parametrize("value", [
        "06:00:00",
        "a:b:c",
        "f" * 64 + ":" + "0" * 32 + ":",
        "f" * 64 + ":" + "0" * 31 + ":" + "0" * 32,
        "f" * 64 + ":" + "0" * 32 + ":" + "0" * 30,
        "F" * 64 + ":" + "0" * 32 + ":" + "0" * 32,
    ])
    def test_colon_text_is_not_an_envelope(self, value):
        assert not looks_like_envelope(value)
