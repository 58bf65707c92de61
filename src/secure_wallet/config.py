# Wallet configuration
#
# Settings come from the process environment, optionally seeded from a
# `.env` file in the working directory (python-dotenv). Values already set
# in the environment win over the file.
#
#   SECURE_WALLET_SALT            application-wide KDF salt
#   SECURE_WALLET_KDF_ITERATIONS  PBKDF2 iterations (>= 10000)
#   SECURE_WALLET_DATA_DIR        where SQLite stores live
#   SECURE_WALLET_AUDIT_DIR       where audit logs are written

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_SALT = "default-salt-change-this"
DEFAULT_KDF_ITERATIONS = 10_000
MIN_KDF_ITERATIONS = 10_000


@dataclass(frozen=True)
class WalletSettings:
    """Resolved runtime settings."""
    salt: str = DEFAULT_SALT
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS
    data_dir: Path = Path("data")
    audit_dir: Path = Path("audit_logs")

    @property
    def records_db(self) -> Path:
        return self.data_dir / "wallet_items.db"

    @property
    def categories_db(self) -> Path:
        return self.data_dir / "custom_categories.db"


def load_settings(env_file: Optional[str] = None) -> WalletSettings:
    """Build WalletSettings from `.env` + environment.

    Raises:
        ValueError: If SECURE_WALLET_KDF_ITERATIONS is not an integer
            or is below the PBKDF2 floor.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True), override=False)

    salt = os.environ.get("SECURE_WALLET_SALT", DEFAULT_SALT)
    if salt == DEFAULT_SALT:
        logger.warning("SECURE_WALLET_SALT not set; using the built-in default salt")

    raw_iterations = os.environ.get("SECURE_WALLET_KDF_ITERATIONS", str(DEFAULT_KDF_ITERATIONS))
    try:
        iterations = int(raw_iterations)
    except ValueError:
        raise ValueError(f"SECURE_WALLET_KDF_ITERATIONS must be an integer, got {raw_iterations!r}")
    if iterations < MIN_KDF_ITERATIONS:
        raise ValueError(
            f"SECURE_WALLET_KDF_ITERATIONS must be at least {MIN_KDF_ITERATIONS}; got {iterations}"
        )

    return WalletSettings(
        salt=salt,
        kdf_iterations=iterations,
        data_dir=Path(os.environ.get("SECURE_WALLET_DATA_DIR", "data")),
        audit_dir=Path(os.environ.get("SECURE_WALLET_AUDIT_DIR", "audit_logs")),
    )
