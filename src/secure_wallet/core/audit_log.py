# Wallet - Audit Trail
#
# Append-only audit logging for wallet activity (unlock/lock, item
# create/update/delete/view, category changes). One JSON line per event,
# rendered by structlog into a daily file under the audit directory.
#
# Audit writes are a side channel: `record_safely()` swallows and logs any
# failure so that the operation being audited always completes.
# Event details must never carry plaintext field values or key material.

import hashlib
import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

import structlog

logger = logging.getLogger(__name__)

AUDIT_LOGGER_NAME = "secure_wallet.audit"
AUDIT_EVENT = "wallet_event"


class EventType(str, Enum):
    """Kinds of auditable wallet activity."""
    # Session
    WALLET_UNLOCKED = "wallet.unlocked"
    WALLET_LOCKED = "wallet.locked"

    # Items
    ITEM_CREATED = "item.created"
    ITEM_UPDATED = "item.updated"
    ITEM_DELETED = "item.deleted"
    ITEM_VIEWED = "item.viewed"
    ITEM_DUPLICATE_REJECTED = "item.duplicate_rejected"
    ITEM_DECRYPT_FAILED = "item.decrypt_failed"

    # Categories
    CATEGORY_REGISTERED = "category.registered"
    CATEGORY_DELETED = "category.deleted"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: normal activity
    - INVESTIGATE: something unusual the user may want to look at
    - ALERT: integrity failure (tampering, wrong key, corruption)
    - CRITICAL: the wallet could not complete an operation
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for wallet events.

    Features:
    - Structured JSON lines (structlog)
    - Automatic event ID and timestamp
    - Per-user scope on every event
    - Query support over the written files
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        # One stdlib logger per audit directory; instances never share handlers
        digest = hashlib.sha256(str(self.log_dir.resolve()).encode("utf-8")).hexdigest()[:12]
        self.logger_name = f"{AUDIT_LOGGER_NAME}.{digest}"

        self._setup_file_handler()
        self.logger = structlog.get_logger(self.logger_name)

    def _setup_file_handler(self):
        """Point this directory's logger at today's file, replacing its older handlers."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        audit_logger = logging.getLogger(self.logger_name)
        for handler in list(audit_logger.handlers):
            audit_logger.removeHandler(handler)
            handler.close()

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))

        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        audit_logger.propagate = False

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        user_scope: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Append one audit event.

        Args:
            event_type: Type of event
            severity: Severity level
            message: Human-readable description (no secrets)
            user_scope: Owner of the wallet the event belongs to
            details: Extra non-sensitive details (ids, category, field names)

        Returns:
            str: Event ID (UUID)
        """
        event_id = str(uuid4())
        self.logger.info(
            AUDIT_EVENT,
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            user_scope=user_scope,
            details=details or {},
            occurred_at=datetime.now(timezone.utc).isoformat(),
            context=self._get_default_context(),
        )
        return event_id

    def log_item_event(
        self,
        event_type: EventType,
        item_id: Optional[str],
        category: Optional[str],
        user_scope: Optional[str] = None,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Log an event about a single wallet item."""
        event_details = dict(details or {})
        event_details["item_id"] = item_id
        event_details["category"] = category
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Item: {event_type.value} ({category})",
            user_scope=user_scope,
            details=event_details,
        )

    def _get_default_context(self) -> Dict[str, Any]:
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }

    def query_events(
        self,
        event_types: Optional[Iterable[EventType]] = None,
        user_scope: Optional[str] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        """
        Read back audit events, newest first.

        Args:
            event_types: Only return these event types
            user_scope: Only return events for this wallet owner
            limit: Maximum number of events to return
        """
        wanted = {t.value for t in event_types} if event_types else None

        for handler in logging.getLogger(self.logger_name).handlers:
            handler.flush()

        events: List[Dict[str, Any]] = []
        for log_file in sorted(self.log_dir.glob("audit_*.log")):
            with open(log_file, encoding="utf-8") as fh:
                for line in fh:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entry = json.loads(line)
                    except json.JSONDecodeError:
                        logger.warning("Skipping unreadable audit line in %s", log_file.name)
                        continue
                    if entry.get("event") != AUDIT_EVENT:
                        continue
                    if wanted is not None and entry.get("event_type") not in wanted:
                        continue
                    if user_scope is not None and entry.get("user_scope") != user_scope:
                        continue
                    events.append(entry)

        # ties on occurred_at stay newest-first
        events.reverse()
        events.sort(key=lambda e: e.get("occurred_at", ""), reverse=True)
        return events[:limit]


def record_safely(audit: Optional[AuditLogger], event_type: EventType, **kwargs) -> Optional[str]:
    """Write an item audit event without ever failing the caller.

    Returns the event ID, or None when there is no logger or the write failed.
    """
    if audit is None:
        return None
    try:
        return audit.log_item_event(event_type, **kwargs)
    except Exception:
        logger.exception("Audit write failed for %s", event_type.value)
        return None


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        from ..config import load_settings

        _audit_logger = AuditLogger(log_dir=load_settings().audit_dir)
    return _audit_logger


def set_audit_logger(instance: Optional[AuditLogger]) -> None:
    """Replace the singleton (for testing)."""
    global _audit_logger
    _audit_logger = instance
