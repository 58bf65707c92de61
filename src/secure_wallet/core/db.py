# Core Module - Shared SQLite access for wallet stores
#
# The record backend and the custom category store both open their
# databases through `open_db()`. Each call yields a fresh WAL-mode
# connection (rows as sqlite3.Row), commits on clean exit, rolls back on
# error and always closes. Ciphertext only ever reaches these tables;
# plaintext never does.

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union


def prepare_path(db_path: Union[str, Path]) -> Path:
    """Normalise a database path and make sure its directory exists."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@contextmanager
def open_db(db_path: Union[str, Path], timeout: float = 10.0) -> Iterator[sqlite3.Connection]:
    """Yield a transactional SQLite connection for one unit of work.

    Args:
        db_path: Path to the database file.
        timeout: Seconds to wait on a locked database.
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={int(timeout * 1000)}")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
