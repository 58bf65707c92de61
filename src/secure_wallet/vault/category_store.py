# Custom Category Store
# SQLite-backed, append-only list of user-defined category schemas.
# Loaded once at startup and merged with the built-ins by CategoryRegistry.
#
# Each row holds one schema definition as JSON. Schemas are never edited
# in place; removal deletes the row.

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..core.db import open_db, prepare_path
from .categories import CategorySchema, Provenance
from .exceptions import SchemaError

logger = logging.getLogger(__name__)


class CategoryStore:
    """Persistence for custom category definitions.

    Args:
        db_path: Path to SQLite file. Defaults to data/custom_categories.db.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = prepare_path(db_path or Path("data/custom_categories.db"))
        self._lock = threading.Lock()
        self._init_database()

    def _init_database(self):
        with open_db(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS custom_categories (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    category_id TEXT NOT NULL UNIQUE,
                    definition TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

    def append(self, schema: CategorySchema) -> None:
        """Persist a new custom category definition."""
        now = datetime.now(timezone.utc).isoformat()
        with self._lock, open_db(self.db_path) as conn:
            conn.execute(
                "INSERT INTO custom_categories (category_id, definition, created_at) VALUES (?, ?, ?)",
                (schema.id, json.dumps(schema.to_dict()), now),
            )

    def remove(self, category_id: str) -> bool:
        """Delete a definition. Returns True if it existed."""
        with self._lock, open_db(self.db_path) as conn:
            cur = conn.execute(
                "DELETE FROM custom_categories WHERE category_id = ?", (category_id,)
            )
            return cur.rowcount > 0

    def load_all(self) -> List[CategorySchema]:
        """All stored definitions in registration order.

        Rows that no longer parse are skipped with a warning so one bad
        definition does not hide the rest.
        """
        with open_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT category_id, definition FROM custom_categories ORDER BY seq"
            ).fetchall()

        schemas = []
        for row in rows:
            try:
                schemas.append(CategorySchema.from_dict(json.loads(row["definition"]), Provenance.CUSTOM))
            except (json.JSONDecodeError, SchemaError) as e:
                logger.warning("Skipping unreadable custom category %r: %s", row["category_id"], e)
        return schemas
