# Wallet persistence backends
#
# RecordStore never talks to storage directly; it hands sealed records to a
# RecordBackend keyed by (user_scope, id). A backend assigns ids and
# timestamps, and stores field values as the strings it is given (sensitive
# ones are already envelopes by the time they arrive here).
#
# Neither backend makes RecordStore's duplicate check atomic with the
# insert that follows it.

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from itertools import count
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from ..core.db import open_db, prepare_path
from .models import Record

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecordBackend(ABC):
    """Storage collaborator for sealed wallet records."""

    @abstractmethod
    def insert(self, user_scope: str, record: Record) -> Record:
        """Store a new record; returns it with id and timestamps assigned."""

    @abstractmethod
    def replace(self, user_scope: str, record_id: str, record: Record) -> Optional[Record]:
        """Full replace by id. Returns None if the id does not exist."""

    @abstractmethod
    def delete(self, user_scope: str, record_id: str) -> bool:
        """Delete by id. Returns True if a record was removed."""

    @abstractmethod
    def get(self, user_scope: str, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    def list(self, user_scope: str) -> List[Record]:
        """All records in the scope, newest first."""

    def list_by_category(self, user_scope: str, category: str) -> List[Record]:
        return [r for r in self.list(user_scope) if r.category == category]


class InMemoryBackend(RecordBackend):
    """Process-local backend (tests, demos, ephemeral sessions)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[str, Dict[str, Tuple[int, Record]]] = {}
        self._seq = count()

    def insert(self, user_scope: str, record: Record) -> Record:
        now = _now()
        stored = replace(record, id=str(uuid4()), created_at=now, updated_at=now,
                         fields=dict(record.fields), tags=set(record.tags))
        with self._lock:
            self._items.setdefault(user_scope, {})[stored.id] = (next(self._seq), stored)
        return replace(stored, fields=dict(stored.fields), tags=set(stored.tags))

    def replace(self, user_scope: str, record_id: str, record: Record) -> Optional[Record]:
        with self._lock:
            scope = self._items.get(user_scope, {})
            if record_id not in scope:
                return None
            seq, existing = scope[record_id]
            stored = replace(record, id=record_id, created_at=existing.created_at, updated_at=_now(),
                             fields=dict(record.fields), tags=set(record.tags))
            scope[record_id] = (seq, stored)
        return replace(stored, fields=dict(stored.fields), tags=set(stored.tags))

    def delete(self, user_scope: str, record_id: str) -> bool:
        with self._lock:
            return self._items.get(user_scope, {}).pop(record_id, None) is not None

    def get(self, user_scope: str, record_id: str) -> Optional[Record]:
        with self._lock:
            entry = self._items.get(user_scope, {}).get(record_id)
        if entry is None:
            return None
        stored = entry[1]
        return replace(stored, fields=dict(stored.fields), tags=set(stored.tags))

    def list(self, user_scope: str) -> List[Record]:
        with self._lock:
            entries = list(self._items.get(user_scope, {}).values())
        entries.sort(key=lambda e: (e[1].created_at, e[0]), reverse=True)
        return [replace(r, fields=dict(r.fields), tags=set(r.tags)) for _, r in entries]


class SQLiteRecordBackend(RecordBackend):
    """SQLite-backed wallet item storage.

    Thread-safe. Field maps and tags are stored as JSON text; only
    envelopes and non-sensitive values ever reach the file.

    Args:
        db_path: Path to SQLite file. Defaults to data/wallet_items.db.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = prepare_path(db_path or Path("data/wallet_items.db"))
        self._lock = threading.Lock()
        self._init_database()

    def _init_database(self):
        with open_db(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS wallet_items (
                    id TEXT PRIMARY KEY,
                    user_scope TEXT NOT NULL,
                    category TEXT NOT NULL,
                    fields TEXT NOT NULL DEFAULT '{}',
                    tags TEXT NOT NULL DEFAULT '[]',
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_wallet_items_scope_category
                ON wallet_items(user_scope, category)
            """)

    @staticmethod
    def _row_to_record(row) -> Record:
        return Record(
            id=row["id"],
            category=row["category"],
            fields=json.loads(row["fields"]),
            tags=set(json.loads(row["tags"])),
            is_favorite=bool(row["is_favorite"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def insert(self, user_scope: str, record: Record) -> Record:
        record_id = str(uuid4())
        now = _now()
        with self._lock, open_db(self.db_path) as conn:
            conn.execute(
                """INSERT INTO wallet_items
                   (id, user_scope, category, fields, tags, is_favorite, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record_id,
                    user_scope,
                    record.category,
                    json.dumps(record.fields),
                    json.dumps(sorted(record.tags)),
                    int(record.is_favorite),
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
        return replace(record, id=record_id, created_at=now, updated_at=now)

    def replace(self, user_scope: str, record_id: str, record: Record) -> Optional[Record]:
        now = _now()
        with self._lock, open_db(self.db_path) as conn:
            cur = conn.execute(
                """UPDATE wallet_items
                   SET category = ?, fields = ?, tags = ?, is_favorite = ?, updated_at = ?
                   WHERE user_scope = ? AND id = ?""",
                (
                    record.category,
                    json.dumps(record.fields),
                    json.dumps(sorted(record.tags)),
                    int(record.is_favorite),
                    now.isoformat(),
                    user_scope,
                    record_id,
                ),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM wallet_items WHERE user_scope = ? AND id = ?",
                (user_scope, record_id),
            ).fetchone()
        return self._row_to_record(row)

    def delete(self, user_scope: str, record_id: str) -> bool:
        with self._lock, open_db(self.db_path) as conn:
            cur = conn.execute(
                "DELETE FROM wallet_items WHERE user_scope = ? AND id = ?",
                (user_scope, record_id),
            )
            return cur.rowcount > 0

    def get(self, user_scope: str, record_id: str) -> Optional[Record]:
        with open_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM wallet_items WHERE user_scope = ? AND id = ?",
                (user_scope, record_id),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def list(self, user_scope: str) -> List[Record]:
        with open_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM wallet_items WHERE user_scope = ? ORDER BY created_at DESC, rowid DESC",
                (user_scope,),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_by_category(self, user_scope: str, category: str) -> List[Record]:
        with open_db(self.db_path) as conn:
            rows = conn.execute(
                """SELECT * FROM wallet_items WHERE user_scope = ? AND category = ?
                   ORDER BY created_at DESC, rowid DESC""",
                (user_scope, category),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]
