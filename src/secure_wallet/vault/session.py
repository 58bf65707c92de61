# Wallet - Session
#
# Owns the wallet key for one authenticated session. The key is derived on
# unlock, handed out through `key`, and wiped on lock. Nothing here is
# persisted: the same user re-derives the same key on the next unlock.

import logging
from typing import Optional

from ..config import WalletSettings, load_settings
from ..core.audit_log import AuditLogger, EventSeverity, EventType
from .encryption import WalletKey, build_identity_secret, derive_key
from .exceptions import VaultLockedError

logger = logging.getLogger(__name__)


class WalletSession:
    """
    In-memory key holder for one user.

    Usage::

        with WalletSession(settings).unlock(email, uid) as session:
            store.create(record, session.key)
        # key wiped here
    """

    def __init__(self, settings: Optional[WalletSettings] = None, audit: Optional[AuditLogger] = None):
        self.settings = settings or load_settings()
        self.audit = audit
        self.user_scope: Optional[str] = None
        self._key: Optional[WalletKey] = None

    @property
    def is_unlocked(self) -> bool:
        return self._key is not None

    @property
    def key(self) -> WalletKey:
        if self._key is None:
            raise VaultLockedError()
        return self._key

    def unlock(self, user_email: str, user_id: str) -> "WalletSession":
        """Derive the key for this user. Re-unlocking replaces the old key."""
        if self._key is not None:
            self.lock()
        identity = build_identity_secret(user_email, user_id)
        self._key = derive_key(identity, self.settings.salt, self.settings.kdf_iterations)
        self.user_scope = user_id
        self._log(EventType.WALLET_UNLOCKED, "Wallet unlocked")
        return self

    def lock(self) -> None:
        """Wipe the key. Safe to call when already locked."""
        if self._key is None:
            return
        self._key.wipe()
        self._key = None
        self._log(EventType.WALLET_LOCKED, "Wallet locked")
        self.user_scope = None

    def __enter__(self) -> "WalletSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.lock()
        return False

    def _log(self, event_type: EventType, message: str):
        if self.audit is None:
            return
        try:
            self.audit.log_event(event_type, EventSeverity.INFO, message, user_scope=self.user_scope)
        except Exception:
            logger.exception("Audit write failed for %s", event_type.value)
