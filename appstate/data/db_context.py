"""
Identity-backed database context (SQLite).

Holds the registered users only; the per-user UI state lives in JSON records,
not here. Schema is created on first use, there are no migrations.
"""
from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from appstate.infra.exceptions import StateStoreError, ValidationError
from appstate.infra.logging import get_logger

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    email         TEXT NOT NULL UNIQUE COLLATE NOCASE,
    display_name  TEXT NOT NULL DEFAULT '',
    created_at    TEXT NOT NULL
)
"""


@dataclass(frozen=True)
class ApplicationUser:
    id: int
    email: str
    display_name: str
    created_at: str

    @property
    def user_name(self) -> str:
        """Identity name used for state keys (the email)."""
        return self.email


class ApplicationDbContext:
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        # Streamlit reruns scripts on different threads
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.execute(_SCHEMA)

    def __enter__(self) -> "ApplicationDbContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> ApplicationUser:
        return ApplicationUser(
            id=int(row["id"]),
            email=str(row["email"]),
            display_name=str(row["display_name"] or ""),
            created_at=str(row["created_at"]),
        )

    def add_user(self, email: str, display_name: str = "") -> ApplicationUser:
        email = (email or "").strip()
        if not email or "@" not in email:
            raise ValidationError("a user needs an email address", field="email", value=email)
        created_at = datetime.now().isoformat(timespec="seconds")
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    "INSERT INTO users (email, display_name, created_at) VALUES (?, ?, ?)",
                    (email, display_name.strip(), created_at),
                )
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"user already exists: {email}", field="email", value=email) from e
        except sqlite3.Error as e:
            raise StateStoreError(f"add_user failed: {e}", operation="add_user") from e
        logger.info(f"registered user {email}")
        return ApplicationUser(id=int(cur.lastrowid), email=email,
                               display_name=display_name.strip(), created_at=created_at)

    def find_by_email(self, email: str) -> Optional[ApplicationUser]:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, email, display_name, created_at FROM users WHERE email = ?",
                ((email or "").strip(),),
            ).fetchone()
        return self._row_to_user(row) if row else None

    def list_users(self) -> List[ApplicationUser]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT id, email, display_name, created_at FROM users ORDER BY email"
            ).fetchall()
        return [self._row_to_user(r) for r in rows]

    def remove_user(self, email: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM users WHERE email = ?", ((email or "").strip(),))
        return cur.rowcount > 0
