# Wallet item model
#
# A Record held by the application is plaintext. The same shape travels to
# the persistence backend with its sensitive field values replaced by
# serialized envelopes; control attributes (category, tags, favorite flag,
# timestamps) are never encrypted.

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Set


@dataclass
class Record:
    """One wallet item."""
    category: str
    fields: Dict[str, Any] = field(default_factory=dict)
    tags: Set[str] = field(default_factory=set)
    is_favorite: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def with_fields(self, fields: Dict[str, Any]) -> "Record":
        """Copy of this record carrying a different field map."""
        return replace(self, fields=dict(fields), tags=set(self.tags))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "fields": dict(self.fields),
            "tags": sorted(self.tags),
            "isFavorite": self.is_favorite,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        created = data.get("createdAt")
        updated = data.get("updatedAt")
        return cls(
            id=data.get("id"),
            category=data["category"],
            fields=dict(data.get("fields") or {}),
            tags=set(data.get("tags") or ()),
            is_favorite=bool(data.get("isFavorite", False)),
            created_at=datetime.fromisoformat(created) if created else None,
            updated_at=datetime.fromisoformat(updated) if updated else None,
        )
