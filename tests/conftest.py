"""
Shared pytest fixtures for the SecureWallet test suite.

Autouse fixtures below isolate tests from live application data:
  - Working directory -> temp directory (no stray .env, data/ or audit_logs/)
  - SECURE_WALLET_* environment variables cleared
  - Audit logger singleton -> temp directory
"""

import pytest


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Run every test from an empty temp directory with default settings."""
    for name in (
        "SECURE_WALLET_SALT",
        "SECURE_WALLET_KDF_ITERATIONS",
        "SECURE_WALLET_DATA_DIR",
        "SECURE_WALLET_AUDIT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test."""
    import secure_wallet.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod.set_audit_logger(audit_mod.AuditLogger(log_dir=tmp_path / "audit_logs"))

    yield

    audit_mod.set_audit_logger(old_logger)


@pytest.fixture
def key():
    from secure_wallet.vault.encryption import derive_key

    return derive_key("alice@example.com:uid-alice", "test-salt")


@pytest.fixture
def other_key():
    from secure_wallet.vault.encryption import derive_key

    return derive_key("mallory@example.com:uid-mallory", "test-salt")


@pytest.fixture
def registry():
    from secure_wallet.vault.categories import CategoryRegistry

    return CategoryRegistry()


@pytest.fixture
def audit(tmp_path):
    from secure_wallet.core.audit_log import AuditLogger

    return AuditLogger(log_dir=tmp_path / "store_audit")
