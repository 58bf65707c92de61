"""
Wallet exception classes.

Every expected failure carries an ``ErrorKind`` so callers branch on
``exc.kind`` rather than on message text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of wallet failure kinds."""
    FORMAT = "format"                      # malformed envelope
    INTEGRITY = "integrity"                # MAC mismatch
    SCHEMA = "schema"                      # unknown category / invalid fields
    DUPLICATE_RECORD = "duplicate_record"  # identity collision on create
    DUPLICATE_ID = "duplicate_id"          # category id collision
    NOT_FOUND = "not_found"                # missing record or category
    VAULT_LOCKED = "vault_locked"          # no key in the session


class VaultError(Exception):
    """Base exception for wallet operations"""
    kind: ErrorKind

    def __init__(self, message: str = ""):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__


class FormatError(VaultError):
    """Encrypted value is not a valid envelope"""
    kind = ErrorKind.FORMAT


class IntegrityError(VaultError):
    """Data integrity check failed"""
    kind = ErrorKind.INTEGRITY


class SchemaError(VaultError):
    """Record does not match its category schema"""
    kind = ErrorKind.SCHEMA


class DuplicateRecordError(VaultError):
    """This item already exists in your wallet"""
    kind = ErrorKind.DUPLICATE_RECORD

    def __init__(self, message: str = "", existing_id: str = "", matched_on: tuple = ()):
        super().__init__(message)
        self.existing_id = existing_id
        self.matched_on = matched_on


class DuplicateIdError(VaultError):
    """Category ID already exists"""
    kind = ErrorKind.DUPLICATE_ID


class NotFoundError(VaultError):
    """Requested item does not exist"""
    kind = ErrorKind.NOT_FOUND


class VaultLockedError(VaultError):
    """Wallet is locked. Unlock it first."""
    kind = ErrorKind.VAULT_LOCKED


class CipherInvariantError(RuntimeError):
    """Raised when a MAC-verified envelope fails to decrypt.

    Not a VaultError: this signals a bug in the cipher, not bad input.
    """
