# Wallet - Category Schemas
#
# A category describes one kind of wallet item (payment card, password,
# identity document, ...) as an ordered list of typed fields. Fields marked
# `sensitive` are the ones RecordCodec encrypts; everything else is stored
# in the clear.
#
# Two provenances share one id namespace:
#   - built-in: shipped below, fixed at import, never mutated
#   - custom:   registered at runtime, persisted through a CategoryStore
#
# Field names are the record keys on disk. Renaming a field in a schema
# orphans that field in every record written before the rename.

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .exceptions import DuplicateIdError, NotFoundError, SchemaError

if TYPE_CHECKING:
    from .category_store import CategoryStore

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    """Value type of a schema field."""
    TEXT = "text"
    PASSWORD = "password"
    DATE = "date"
    LONG_TEXT = "textarea"
    URL = "url"
    TEL = "tel"
    BOOLEAN = "checkbox"


TEXT_TYPES = frozenset({
    FieldType.TEXT, FieldType.PASSWORD, FieldType.LONG_TEXT, FieldType.URL, FieldType.TEL,
})


class Provenance(str, Enum):
    BUILTIN = "builtin"
    CUSTOM = "custom"


def value_to_text(value: Any) -> str:
    """Storage text for a field value (dates as ISO, bools as true/false)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


@dataclass(frozen=True)
class FieldSpec:
    """One typed field of a category."""
    name: str
    label: str
    value_type: FieldType = FieldType.TEXT
    required: bool = False
    sensitive: bool = False

    def check(self, value: Any) -> None:
        """Raise SchemaError if ``value`` does not fit this field's type."""
        if _is_empty(value):
            if self.required:
                raise SchemaError(f"Field '{self.name}' is required")
            return

        if self.value_type in TEXT_TYPES:
            ok = isinstance(value, str)
        elif self.value_type is FieldType.DATE:
            # datetime is a date subclass but its ISO text does not read back as a date
            ok = (isinstance(value, date) and not isinstance(value, datetime)) or (
                isinstance(value, str) and _parse_date(value) is not None
            )
        else:
            ok = isinstance(value, bool) or value in ("true", "false")

        if not ok:
            raise SchemaError(
                f"Field '{self.name}' expects {self.value_type.name.lower()}, got {type(value).__name__}"
            )

    def from_text(self, text: str) -> Any:
        """Typed value for stored text; unparseable text is returned as-is."""
        if text == "":
            return text
        if self.value_type is FieldType.DATE:
            parsed = _parse_date(text)
            return parsed if parsed is not None else text
        if self.value_type is FieldType.BOOLEAN and text in ("true", "false"):
            return text == "true"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "type": self.value_type.value,
            "required": self.required,
            "sensitive": self.sensitive,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldSpec":
        if not isinstance(data, Mapping):
            raise SchemaError("Field definition must be an object")
        try:
            value_type = FieldType(data.get("type", FieldType.TEXT.value))
        except ValueError:
            raise SchemaError(f"Unknown field type {data.get('type')!r}")
        name = data.get("name")
        if not name:
            raise SchemaError("Field definition needs a name")
        return cls(
            name=name,
            label=data.get("label") or name,
            value_type=value_type,
            required=bool(data.get("required", False)),
            sensitive=bool(data.get("sensitive", False)),
        )


def _parse_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class CategorySchema:
    """A category id, its label and its ordered field list."""
    id: str
    label: str
    fields: Tuple[FieldSpec, ...]
    provenance: Provenance = Provenance.CUSTOM

    def __post_init__(self):
        if not self.id or not self.label:
            raise SchemaError("Invalid category data")
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise SchemaError(f"Category '{self.id}' declares a field name twice")

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def sensitive_field_names(self) -> FrozenSet[str]:
        return frozenset(f.name for f in self.fields if f.sensitive)

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def validate(self, values: Mapping[str, Any]) -> None:
        """
        Check a record's field map against this schema.

        Raises:
            SchemaError: unknown field, missing required field, or a
                value of the wrong type
        """
        unknown = sorted(set(values) - set(self.field_names))
        if unknown:
            raise SchemaError(f"Unknown fields for category '{self.id}': {', '.join(unknown)}")
        for spec in self.fields:
            spec.check(values.get(spec.name))

    def to_storage(self, values: Mapping[str, Any]) -> Dict[str, str]:
        """Field map with every value converted to storage text."""
        return {name: value_to_text(value) for name, value in values.items()}

    def from_storage(self, values: Mapping[str, str]) -> Dict[str, Any]:
        """Typed field map from storage text. Unknown fields pass through."""
        typed: Dict[str, Any] = {}
        for name, text in values.items():
            spec = self.field(name)
            typed[name] = spec.from_text(text) if spec is not None and isinstance(text, str) else text
        return typed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], provenance: Provenance = Provenance.CUSTOM) -> "CategorySchema":
        if not isinstance(data, Mapping):
            raise SchemaError("Category definition must be an object")
        fields = data.get("fields", [])
        if not isinstance(fields, list):
            raise SchemaError("Category 'fields' must be a list")
        return cls(
            id=data.get("id", ""),
            label=data.get("label", ""),
            fields=tuple(FieldSpec.from_dict(f) for f in fields),
            provenance=provenance,
        )


def _builtin(category_id: str, label: str, *fields: FieldSpec) -> CategorySchema:
    return CategorySchema(id=category_id, label=label, fields=fields, provenance=Provenance.BUILTIN)


_T, _P, _D, _L, _U, _TEL = (
    FieldType.TEXT, FieldType.PASSWORD, FieldType.DATE, FieldType.LONG_TEXT, FieldType.URL, FieldType.TEL,
)

BUILTIN_CATEGORIES: Tuple[CategorySchema, ...] = (
    _builtin(
        "payment_cards", "Payment Cards",
        FieldSpec("cardName", "Card Name", _T, required=True),
        FieldSpec("cardNumber", "Card Number", _T, required=True, sensitive=True),
        FieldSpec("cardHolder", "Card Holder Name", _T, required=True),
        FieldSpec("expiryDate", "Expiry Date", _T, required=True),  # MM/YY
        FieldSpec("cvv", "CVV", _P, required=True, sensitive=True),
        FieldSpec("pin", "PIN", _P, sensitive=True),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "identity_docs", "Identity Documents",
        FieldSpec("docName", "Document Name", _T, required=True),
        FieldSpec("docNumber", "Document Number", _T, required=True, sensitive=True),
        FieldSpec("fullName", "Full Name", _T, required=True),
        FieldSpec("issueDate", "Issue Date", _D),
        FieldSpec("expiryDate", "Expiry Date", _D),
        FieldSpec("issuingAuthority", "Issuing Authority", _T),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "passwords", "Passwords & Logins",
        FieldSpec("serviceName", "Service Name", _T, required=True),
        FieldSpec("website", "Website URL", _U),
        FieldSpec("username", "Username/Email", _T, required=True),
        FieldSpec("password", "Password", _P, required=True, sensitive=True),
        FieldSpec("securityQuestion", "Security Question", _T),
        FieldSpec("securityAnswer", "Security Answer", _P, sensitive=True),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "notes", "Notes & Documents",
        FieldSpec("title", "Title", _T, required=True),
        FieldSpec("content", "Content", _L, required=True, sensitive=True),
    ),
    _builtin(
        "health_info", "Health Information",
        FieldSpec("infoType", "Information Type", _T, required=True),
        FieldSpec("policyNumber", "Policy/ID Number", _T, sensitive=True),
        FieldSpec("provider", "Provider Name", _T),
        FieldSpec("contactNumber", "Contact Number", _TEL),
        FieldSpec("validUntil", "Valid Until", _D),
        FieldSpec("notes", "Notes", _L, sensitive=True),
    ),
    _builtin(
        "memberships", "Memberships & Loyalty",
        FieldSpec("programName", "Program Name", _T, required=True),
        FieldSpec("membershipId", "Membership ID", _T, required=True, sensitive=True),
        FieldSpec("memberName", "Member Name", _T),
        FieldSpec("validFrom", "Valid From", _D),
        FieldSpec("validUntil", "Valid Until", _D),
        FieldSpec("benefits", "Benefits", _L),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "vehicle", "Vehicle & Transport",
        FieldSpec("vehicleType", "Vehicle Type", _T, required=True),
        FieldSpec("regNumber", "Registration Number", _T, required=True, sensitive=True),
        FieldSpec("model", "Make & Model", _T),
        FieldSpec("licenseNumber", "License Number", _T, sensitive=True),
        FieldSpec("insurancePolicy", "Insurance Policy", _T, sensitive=True),
        FieldSpec("expiryDate", "Expiry Date", _D),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "education", "Education & Certificates",
        FieldSpec("institution", "Institution Name", _T, required=True),
        FieldSpec("degree", "Degree / Certificate", _T, required=True),
        FieldSpec("year", "Year of Passing", _T),
        FieldSpec("certificateNumber", "Certificate / Roll No.", _T, sensitive=True),
        FieldSpec("percentage", "Grade / Percentage", _T),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "bank_accounts", "Bank Accounts",
        FieldSpec("bankName", "Bank Name", _T, required=True),
        FieldSpec("accountType", "Account Type", _T, required=True),
        FieldSpec("accountNumber", "Account Number", _T, required=True, sensitive=True),
        FieldSpec("routingNumber", "Routing Number", _T, sensitive=True),
        FieldSpec("accountHolder", "Account Holder", _T),
        FieldSpec("branch", "Branch", _T),
        FieldSpec("notes", "Notes", _L),
    ),
    _builtin(
        "software_licenses", "Software Licenses",
        FieldSpec("softwareName", "Software Name", _T, required=True),
        FieldSpec("licenseKey", "License Key", _T, required=True, sensitive=True),
        FieldSpec("purchaseDate", "Purchase Date", _D),
        FieldSpec("expiryDate", "Expiry Date", _D),
        FieldSpec("purchasedFrom", "Purchased From", _T),
        FieldSpec("version", "Version", _T),
        FieldSpec("notes", "Notes", _L),
    ),
)


class CategoryRegistry:
    """
    Lookup of built-in + custom categories.

    Thread-safe. Built-ins are fixed; custom categories are appended by
    ``register`` and, when a store is attached, persisted there too.

    Usage::

        registry = CategoryRegistry.load(CategoryStore("data/custom_categories.db"))
        registry.sensitive_field_names("payment_cards")
        # frozenset({'cardNumber', 'cvv', 'pin'})
    """

    def __init__(
        self,
        custom: Iterable[CategorySchema] = (),
        store: Optional["CategoryStore"] = None,
        builtins: Iterable[CategorySchema] = BUILTIN_CATEGORIES,
    ):
        self._lock = threading.Lock()
        self._store = store
        self._builtins: Dict[str, CategorySchema] = {c.id: c for c in builtins}
        self._custom: Dict[str, CategorySchema] = {}
        for schema in custom:
            if schema.id in self._builtins or schema.id in self._custom:
                logger.warning("Ignoring stored custom category with colliding id %r", schema.id)
                continue
            self._custom[schema.id] = schema

    @classmethod
    def load(cls, store: "CategoryStore") -> "CategoryRegistry":
        """Registry with the store's custom categories merged over the built-ins."""
        return cls(custom=store.load_all(), store=store)

    def resolve(self, category_id: str) -> Optional[CategorySchema]:
        with self._lock:
            return self._builtins.get(category_id) or self._custom.get(category_id)

    def require(self, category_id: str) -> CategorySchema:
        """Like resolve(), but raises SchemaError for unknown ids."""
        schema = self.resolve(category_id)
        if schema is None:
            raise SchemaError(f"Unknown category '{category_id}'")
        return schema

    def register(self, schema: CategorySchema) -> CategorySchema:
        """
        Add a custom category.

        Raises:
            DuplicateIdError: id already used by a built-in or custom category
        """
        custom = CategorySchema(schema.id, schema.label, schema.fields, Provenance.CUSTOM)
        with self._lock:
            if custom.id in self._builtins or custom.id in self._custom:
                raise DuplicateIdError(f"Category ID already exists: {custom.id}")
            if self._store is not None:
                self._store.append(custom)
            self._custom[custom.id] = custom
        logger.info("Registered custom category %s (%d fields)", custom.id, len(custom.fields))
        return custom

    def unregister(self, category_id: str) -> None:
        """
        Remove a custom category.

        Raises:
            SchemaError: the id names a built-in category
            NotFoundError: no custom category has this id
        """
        with self._lock:
            if category_id in self._builtins:
                raise SchemaError(f"Built-in category '{category_id}' cannot be removed")
            if category_id not in self._custom:
                raise NotFoundError(f"No custom category '{category_id}'")
            if self._store is not None:
                self._store.remove(category_id)
            del self._custom[category_id]

    def all_categories(self) -> List[CategorySchema]:
        """Built-ins first (in shipped order), then custom in registration order."""
        with self._lock:
            return list(self._builtins.values()) + list(self._custom.values())

    def custom_categories(self) -> List[CategorySchema]:
        with self._lock:
            return list(self._custom.values())

    def sensitive_field_names(self, category_id: str) -> FrozenSet[str]:
        """Names of fields to encrypt; empty for unknown categories."""
        schema = self.resolve(category_id)
        return schema.sensitive_field_names if schema else frozenset()

    def field_names(self, category_id: str) -> Tuple[str, ...]:
        schema = self.resolve(category_id)
        return schema.field_names if schema else ()

