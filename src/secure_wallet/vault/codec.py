# Wallet - Record Codec
#
# Applies FieldCipher to the sensitive fields of a record and leaves every
# other field untouched. Which fields are sensitive comes from the category
# schema, so a new category gets correct encryption without changes here.
#
# Opening never aborts on a bad field: the field is replaced by
# DECRYPTION_FAILED and the error is reported alongside the result, so one
# corrupted value cannot make a whole record (or the whole wallet) unreadable.

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .categories import value_to_text
from .encryption import FieldCipher, WalletKey
from .exceptions import FormatError, VaultError
from .models import Record

logger = logging.getLogger(__name__)

DECRYPTION_FAILED = "[Decryption Failed]"


class RecordCodec:
    """Seals and opens the sensitive fields of wallet records."""

    def __init__(self, cipher: Optional[FieldCipher] = None):
        self.cipher = cipher or FieldCipher()

    def seal_fields(
        self,
        fields: Mapping[str, Any],
        sensitive_names: Iterable[str],
        key: WalletKey,
    ) -> Dict[str, Any]:
        """
        Encrypt the named fields that are present and non-empty.

        Absent or empty sensitive fields stay absent/empty (no envelope).
        """
        sealed = dict(fields)
        for name in sensitive_names:
            value = sealed.get(name)
            if value is None or value == "":
                continue
            sealed[name] = self.cipher.encrypt(value_to_text(value), key)
        return sealed

    def open_fields(
        self,
        fields: Mapping[str, Any],
        sensitive_names: Iterable[str],
        key: WalletKey,
    ) -> Tuple[Dict[str, Any], Dict[str, VaultError]]:
        """
        Decrypt the named fields.

        Returns:
            (opened fields, {field name: error}); failed fields hold
            DECRYPTION_FAILED in the opened map
        """
        opened = dict(fields)
        errors: Dict[str, VaultError] = {}
        for name in sensitive_names:
            value = opened.get(name)
            if value is None or value == "":
                continue
            try:
                if not isinstance(value, str):
                    raise FormatError(f"Stored value is {type(value).__name__}, not an envelope")
                opened[name] = self.cipher.decrypt(value, key)
            except VaultError as e:
                logger.warning("Failed to decrypt field %s: %s", name, e.kind.value)
                opened[name] = DECRYPTION_FAILED
                errors[name] = e
        return opened, errors

    def seal_record(self, record: Record, sensitive_names: Iterable[str], key: WalletKey) -> Record:
        return record.with_fields(self.seal_fields(record.fields, sensitive_names, key))

    def open_record(
        self, record: Record, sensitive_names: Iterable[str], key: WalletKey
    ) -> Tuple[Record, Dict[str, VaultError]]:
        opened, errors = self.open_fields(record.fields, sensitive_names, key)
        return record.with_fields(opened), errors
