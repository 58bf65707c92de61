# SecureWallet - Main Package
#
# Client-side secrets wallet core: schema-typed items whose sensitive
# fields are encrypted per field before they reach any storage backend.

__version__ = "0.1.0"
__author__ = "SecureWallet Team"
__description__ = "Encrypted record core for a client-side secrets wallet"

from .core import EventSeverity, EventType, get_audit_logger
from .vault import CategoryRegistry, Record, RecordStore, WalletSession

__all__ = [
    "__version__",
    "CategoryRegistry",
    "Record",
    "RecordStore",
    "WalletSession",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
