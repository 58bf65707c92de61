# Vault Module - Encrypted wallet items
#
# Identity → key (PBKDF2), per-field AES-256-CBC + HMAC-SHA256 envelopes,
# schema-driven selection of sensitive fields, duplicate-safe item store.

from .backends import InMemoryBackend, RecordBackend, SQLiteRecordBackend
from .categories import (
    BUILTIN_CATEGORIES,
    CategoryRegistry,
    CategorySchema,
    FieldSpec,
    FieldType,
    Provenance,
)
from .category_store import CategoryStore
from .codec import DECRYPTION_FAILED, RecordCodec
from .encryption import Envelope, FieldCipher, WalletKey, build_identity_secret, derive_key
from .exceptions import (
    CipherInvariantError,
    DuplicateIdError,
    DuplicateRecordError,
    ErrorKind,
    FormatError,
    IntegrityError,
    NotFoundError,
    SchemaError,
    VaultError,
    VaultLockedError,
)
from .models import Record
from .password_health import PasswordHealthReport, password_health
from .record_store import IDENTITY_RULES, IdentityRule, RecordStore
from .session import WalletSession

__all__ = [
    # Keys & cipher
    "WalletKey",
    "derive_key",
    "build_identity_secret",
    "Envelope",
    "FieldCipher",
    # Records
    "Record",
    "RecordCodec",
    "DECRYPTION_FAILED",
    "RecordStore",
    "IdentityRule",
    "IDENTITY_RULES",
    "WalletSession",
    "password_health",
    "PasswordHealthReport",
    # Categories
    "FieldType",
    "FieldSpec",
    "CategorySchema",
    "Provenance",
    "BUILTIN_CATEGORIES",
    "CategoryRegistry",
    "CategoryStore",
    # Backends
    "RecordBackend",
    "InMemoryBackend",
    "SQLiteRecordBackend",
    # Errors
    "ErrorKind",
    "VaultError",
    "FormatError",
    "IntegrityError",
    "SchemaError",
    "DuplicateRecordError",
    "DuplicateIdError",
    "NotFoundError",
    "VaultLockedError",
    "CipherInvariantError",
]
