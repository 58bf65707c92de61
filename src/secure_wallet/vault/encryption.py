# Wallet - Encryption Service
#
# Identity secret + app salt → 256-bit key (PBKDF2-HMAC-SHA256)
# Field encryption: AES-256-CBC, PKCS#7, Encrypt-then-MAC (HMAC-SHA256)
#
# Envelope wire format (one encrypted field value):
#
#     <hmac_hex>:<iv_hex>:<ciphertext_hex>
#     hmac_hex = HMAC-SHA256(key, iv_hex + ":" + ciphertext_hex)
#
# The MAC covers the textual "iv:ciphertext" segment, colon included, and
# is checked before any AES work. Stored data depends on this layout.

import hmac
import hashlib
import logging
import os
import re
import secrets
from dataclasses import dataclass
from typing import Any

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import CipherInvariantError, FormatError, IntegrityError, VaultLockedError

logger = logging.getLogger(__name__)

KEY_LENGTH = 32        # 256 bits for AES-256
IV_LENGTH = 16         # AES block size
MIN_ITERATIONS = 10_000
SEPARATOR = ":"

_ENVELOPE_RE = re.compile(r"[0-9a-f]{64}:[0-9a-f]{32}:(?:[0-9a-f]{32})+")


class WalletKey:
    """
    In-memory 256-bit wallet key.

    Never persisted and never printed. ``wipe()`` zeroes the buffer; a
    wiped key refuses further use.
    """

    __slots__ = ("_material",)

    def __init__(self, material: bytes):
        if len(material) != KEY_LENGTH:
            raise ValueError(f"Wallet key must be {KEY_LENGTH} bytes; got {len(material)}")
        self._material = bytearray(material)

    @property
    def material(self) -> bytes:
        if not any(self._material):
            raise VaultLockedError("Wallet key has been wiped")
        return bytes(self._material)

    @property
    def is_wiped(self) -> bool:
        return not any(self._material)

    def wipe(self) -> None:
        for i in range(len(self._material)):
            self._material[i] = 0

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, WalletKey):
            return NotImplemented
        return hmac.compare_digest(bytes(self._material), bytes(other._material))

    __hash__ = None

    def __repr__(self) -> str:
        state = "wiped" if self.is_wiped else "active"
        return f"<WalletKey {state}>"


def build_identity_secret(user_email: str, user_id: str) -> str:
    """Compose the per-user identity material fed to the KDF."""
    return f"{user_email}:{user_id}"


def derive_key(identity_secret: str, salt: str, iterations: int = MIN_ITERATIONS) -> WalletKey:
    """
    Derive the wallet key from an identity secret using PBKDF2.

    Deterministic: the same user re-derives the same key on any device,
    so the key itself is never stored.

    Args:
        identity_secret: Low-entropy user identity (may be empty)
        salt: Application-wide salt
        iterations: PBKDF2 iterations (at least 10,000)

    Returns:
        256-bit WalletKey
    """
    if iterations < MIN_ITERATIONS:
        raise ValueError(f"PBKDF2 needs at least {MIN_ITERATIONS} iterations; got {iterations}")
    if not identity_secret:
        logger.warning("Deriving wallet key from an empty identity secret")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=iterations,
        backend=default_backend(),
    )
    return WalletKey(kdf.derive(identity_secret.encode("utf-8")))


@dataclass(frozen=True)
class Envelope:
    """Parsed form of one encrypted field value (all segments hex text)."""
    mac: str
    iv: str
    ciphertext: str

    @property
    def signed_part(self) -> str:
        return f"{self.iv}{SEPARATOR}{self.ciphertext}"

    def serialize(self) -> str:
        return f"{self.mac}{SEPARATOR}{self.signed_part}"

    @classmethod
    def parse(cls, text: str) -> "Envelope":
        """Split serialized text into its three segments.

        Raises:
            FormatError: If the text is not exactly three colon-separated parts.
        """
        parts = text.split(SEPARATOR)
        if len(parts) != 3:
            raise FormatError("Invalid encrypted data format")
        return cls(mac=parts[0], iv=parts[1], ciphertext=parts[2])


def looks_like_envelope(value: Any) -> bool:
    """True when a stored value has the exact shape FieldCipher.encrypt produces.

    Hex MAC (64 chars), hex IV (32 chars), hex ciphertext of whole AES
    blocks. Plain text that merely contains two colons ("06:00:00") does
    not qualify.
    """
    return isinstance(value, str) and _ENVELOPE_RE.fullmatch(value) is not None


def generate_random_string(length: int = 32) -> str:
    """Hex string built from ``length`` random bytes."""
    return secrets.token_hex(length)


class FieldCipher:
    """
    Encrypts and decrypts single field values.

    Flow:
    1. Fresh random 16-byte IV per call (never reused)
    2. AES-256-CBC with PKCS#7 padding
    3. HMAC-SHA256 over "iv_hex:ciphertext_hex" with the same key
    4. Decrypt verifies the MAC in constant time before touching AES
    """

    @staticmethod
    def _mac(key: WalletKey, signed_part: str) -> str:
        return hmac.new(key.material, signed_part.encode("utf-8"), hashlib.sha256).hexdigest()

    @staticmethod
    def encrypt(plaintext: str, key: WalletKey) -> str:
        """
        Encrypt one value into a serialized envelope.

        Empty input returns "" (the "field not set" sentinel).
        """
        if not plaintext:
            return ""

        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(
            algorithms.AES(key.material), modes.CBC(iv), backend=default_backend()
        ).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        iv_hex = iv.hex()
        ct_hex = ciphertext.hex()
        mac = FieldCipher._mac(key, f"{iv_hex}{SEPARATOR}{ct_hex}")
        return Envelope(mac=mac, iv=iv_hex, ciphertext=ct_hex).serialize()

    @staticmethod
    def decrypt(envelope: str, key: WalletKey) -> str:
        """
        Verify and decrypt a serialized envelope.

        Raises:
            FormatError: Not three colon-separated segments
            IntegrityError: MAC mismatch (tampering, wrong key, corruption)
            CipherInvariantError: MAC verified but decryption failed
        """
        if not envelope:
            return ""

        parsed = Envelope.parse(envelope)
        expected = FieldCipher._mac(key, parsed.signed_part)
        if not secrets.compare_digest(expected.encode("utf-8"), parsed.mac.encode("utf-8")):
            raise IntegrityError()

        try:
            iv = bytes.fromhex(parsed.iv)
            ciphertext = bytes.fromhex(parsed.ciphertext)
            decryptor = Cipher(
                algorithms.AES(key.material), modes.CBC(iv), backend=default_backend()
            ).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise CipherInvariantError(f"Authenticated envelope failed to decrypt: {type(e).__name__}") from e
