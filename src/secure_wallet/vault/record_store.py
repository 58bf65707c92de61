# Wallet - Record Store
#
# Create / update / delete / list for wallet items against an injected
# persistence backend:
#
#   create:  schema → validate → duplicate scan → seal → backend.insert
#   update:  schema → validate → seal whole field set → backend.replace
#   delete:  backend.delete
#   list:    backend.list → open each record (bad fields degrade, never abort)
#
# The store keeps no state of its own between calls. Audit writes are
# best-effort and never fail the operation they describe.
#
# The duplicate scan decrypts every record of the category and holds no
# lock across check-then-insert: two concurrent creates of the same item
# can both succeed unless the backend enforces uniqueness itself.

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.audit_log import AuditLogger, EventSeverity, EventType, record_safely
from .backends import RecordBackend
from .categories import CategoryRegistry, CategorySchema, value_to_text
from .codec import RecordCodec
from .encryption import WalletKey, looks_like_envelope
from .exceptions import DuplicateRecordError, NotFoundError, VaultError
from .models import Record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityRule:
    """Fields that, all set and all equal, make two records the same item.

    ``category`` limits the rule to one category; None applies everywhere.
    """
    fields: Tuple[str, ...]
    category: Optional[str] = None

    def applies_to(self, category: str) -> bool:
        return self.category is None or self.category == category

    def matches(self, candidate: Mapping[str, str], existing: Mapping[str, Any]) -> bool:
        for name in self.fields:
            value = candidate.get(name)
            if not value:
                return False
            if value_to_text(existing.get(name)) != value:
                return False
        return True


# Checked in order; the first matching rule wins.
IDENTITY_RULES: Tuple[IdentityRule, ...] = (
    IdentityRule(("cardNumber",)),
    IdentityRule(("docNumber",)),
    IdentityRule(("accountNumber",)),
    IdentityRule(("regNumber",)),
    IdentityRule(("username", "serviceName")),
    IdentityRule(("licenseKey",)),
    IdentityRule(("title",), category="notes"),
)


class RecordStore:
    """
    Encrypted wallet item management for one user scope.

    Usage::

        store = RecordStore(registry, SQLiteRecordBackend(), user_scope=uid)
        item_id = store.create(Record("passwords", {...}), session.key)
        items = store.list(session.key)
    """

    def __init__(
        self,
        registry: CategoryRegistry,
        backend: RecordBackend,
        user_scope: str,
        audit: Optional[AuditLogger] = None,
        codec: Optional[RecordCodec] = None,
        identity_rules: Tuple[IdentityRule, ...] = IDENTITY_RULES,
    ):
        self.registry = registry
        self.backend = backend
        self.user_scope = user_scope
        self.audit = audit
        self.codec = codec or RecordCodec()
        self.identity_rules = identity_rules

    # ── Write path ───────────────────────────────────────────────────

    def create(self, record: Record, key: WalletKey) -> str:
        """
        Seal and store a new item.

        Returns:
            The id assigned by the backend

        Raises:
            SchemaError: unknown category or fields not matching the schema
            DuplicateRecordError: an existing item has the same identity
        """
        schema = self.registry.require(record.category)
        schema.validate(record.fields)
        fields = schema.to_storage(record.fields)

        match = self._find_duplicate(schema, fields, key)
        if match is not None:
            existing_id, rule = match
            self._audit(
                EventType.ITEM_DUPLICATE_REJECTED,
                existing_id,
                schema.id,
                severity=EventSeverity.INVESTIGATE,
                details={"matched_on": list(rule.fields)},
            )
            raise DuplicateRecordError(
                "This item already exists in your wallet.",
                existing_id=existing_id,
                matched_on=rule.fields,
            )

        sealed = self.codec.seal_fields(fields, schema.sensitive_field_names, key)
        stored = self.backend.insert(self.user_scope, self._to_store(record, sealed))

        logger.info("Created wallet item %s (%s)", stored.id, schema.id)
        self._audit(EventType.ITEM_CREATED, stored.id, schema.id)
        return stored.id

    def update(self, record_id: str, record: Record, key: WalletKey) -> Record:
        """
        Replace an item's full field set, re-sealing every sensitive field.

        Returns:
            The plaintext record as stored (with refreshed updated_at)

        Raises:
            SchemaError: unknown category or fields not matching the schema
            NotFoundError: no item with this id
        """
        schema = self.registry.require(record.category)
        schema.validate(record.fields)
        fields = schema.to_storage(record.fields)

        sealed = self.codec.seal_fields(fields, schema.sensitive_field_names, key)
        stored = self.backend.replace(self.user_scope, record_id, self._to_store(record, sealed))
        if stored is None:
            raise NotFoundError(f"No wallet item with id {record_id}")

        self._audit(EventType.ITEM_UPDATED, record_id, schema.id)
        return stored.with_fields(schema.from_storage(fields))

    def delete(self, record_id: str) -> None:
        """
        Raises:
            NotFoundError: no item with this id
        """
        if not self.backend.delete(self.user_scope, record_id):
            raise NotFoundError(f"No wallet item with id {record_id}")
        self._audit(EventType.ITEM_DELETED, record_id, None)

    def toggle_favorite(self, record_id: str) -> bool:
        """Flip an item's favorite flag; returns the new value."""
        stored = self.backend.get(self.user_scope, record_id)
        if stored is None:
            raise NotFoundError(f"No wallet item with id {record_id}")
        stored.is_favorite = not stored.is_favorite
        self.backend.replace(self.user_scope, record_id, stored)
        return stored.is_favorite

    # ── Read path ────────────────────────────────────────────────────

    def get(self, record_id: str, key: WalletKey) -> Record:
        """
        Raises:
            NotFoundError: no item with this id
        """
        stored = self.backend.get(self.user_scope, record_id)
        if stored is None:
            raise NotFoundError(f"No wallet item with id {record_id}")
        record, errors = self._open(stored, key)
        self._audit(EventType.ITEM_VIEWED, record_id, stored.category)
        if errors:
            self._report_decrypt_failures(record_id, stored.category, errors)
        return record

    def list(self, key: WalletKey) -> List[Record]:
        """All items, newest first. Undecryptable fields read DECRYPTION_FAILED."""
        return self.list_with_errors(key)[0]

    def list_with_errors(
        self, key: WalletKey
    ) -> Tuple[List[Record], Dict[str, Dict[str, VaultError]]]:
        """
        All items plus per-item field errors.

        Returns:
            (records, {record_id: {field name: error}})
        """
        records: List[Record] = []
        failures: Dict[str, Dict[str, VaultError]] = {}
        for stored in self.backend.list(self.user_scope):
            record, errors = self._open(stored, key)
            records.append(record)
            if errors:
                failures[stored.id] = errors
                self._report_decrypt_failures(stored.id, stored.category, errors)
        return records, failures

    # ── Internals ────────────────────────────────────────────────────

    def _open(self, stored: Record, key: WalletKey) -> Tuple[Record, Dict[str, VaultError]]:
        schema = self.registry.resolve(stored.category)
        if schema is None:
            # Category was removed: open only values shaped like real envelopes.
            sensitive = {n for n, v in stored.fields.items() if looks_like_envelope(v)}
            logger.warning("Wallet item %s has unknown category %r", stored.id, stored.category)
            return self.codec.open_record(stored, sensitive, key)

        record, errors = self.codec.open_record(stored, schema.sensitive_field_names, key)
        typed = schema.from_storage({n: v for n, v in record.fields.items() if n not in errors})
        typed.update({n: record.fields[n] for n in errors})
        return record.with_fields(typed), errors

    def _find_duplicate(
        self, schema: CategorySchema, fields: Mapping[str, str], key: WalletKey
    ) -> Optional[Tuple[str, IdentityRule]]:
        rules = [r for r in self.identity_rules if r.applies_to(schema.id)]
        if not rules:
            return None
        for stored in self.backend.list_by_category(self.user_scope, schema.id):
            existing, _ = self.codec.open_fields(stored.fields, schema.sensitive_field_names, key)
            for rule in rules:
                if rule.matches(fields, existing):
                    return stored.id, rule
        return None

    @staticmethod
    def _to_store(record: Record, sealed: Dict[str, Any]) -> Record:
        return Record(
            category=record.category,
            fields=sealed,
            tags=set(record.tags),
            is_favorite=record.is_favorite,
        )

    def _report_decrypt_failures(self, record_id: str, category: str, errors: Dict[str, VaultError]):
        self._audit(
            EventType.ITEM_DECRYPT_FAILED,
            record_id,
            category,
            severity=EventSeverity.ALERT,
            details={"fields": {name: e.kind.value for name, e in errors.items()}},
        )

    def _audit(self, event_type: EventType, item_id: Optional[str], category: Optional[str], **kwargs):
        record_safely(
            self.audit,
            event_type,
            item_id=item_id,
            category=category,
            user_scope=self.user_scope,
            **kwargs,
        )

