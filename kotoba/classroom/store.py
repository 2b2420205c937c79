"""
Progress stores - Durable load/save for the UserProgress aggregate.

The engine only needs two operations:
- load() -> UserProgress | None  (None when nothing usable is stored)
- save(UserProgress)

Missing or corrupt state is logged and reported as None so the caller can
fall back to the default progress; it is never raised to the learner.
Payloads are the camelCase JSON documents of UserProgress with ISO-8601
timestamps.
"""

import logging
import os
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from kotoba.config import DEFAULT_PROGRESS_DB
from kotoba.schemas import UserProgress


logger = logging.getLogger(__name__)


class ProgressStore(Protocol):
    def load(self) -> Optional[UserProgress]: ...

    def save(self, progress: UserProgress) -> None: ...


def dump_progress(progress: UserProgress) -> str:
    return progress.model_dump_json(by_alias=True)


def parse_progress(payload: str | bytes, source: str) -> Optional[UserProgress]:
    """Parse a stored payload, returning None (and logging) if it is unusable."""
    try:
        return UserProgress.model_validate_json(payload)
    except ValidationError as e:
        logger.warning(f"Discarding corrupt progress from {source}: {e.error_count()} errors")
        return None


class MemoryProgressStore:
    """
    In-process store holding the serialized payload.

    Serializing on save keeps the same round-trip behavior as the durable
    stores, so tests see exactly what would be persisted.
    """

    def __init__(self, payload: Optional[str] = None):
        self.payload = payload
        self.save_count = 0

    def load(self) -> Optional[UserProgress]:
        if self.payload is None:
            return None
        return parse_progress(self.payload, "memory")

    def save(self, progress: UserProgress) -> None:
        self.payload = dump_progress(progress)
        self.save_count += 1


class JSONFileProgressStore:
    """Store progress as a single JSON file, replaced atomically on save."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[UserProgress]:
        if not self.path.exists():
            return None
        try:
            payload = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read progress file {self.path}: {e}")
            return None
        return parse_progress(payload, str(self.path))

    def save(self, progress: UserProgress) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(dump_progress(progress), encoding="utf-8")
        os.replace(tmp_path, self.path)


class SQLiteProgressStore:
    """
    Store progress in SQLite, one JSON document per student.

    Progress is stored separately from content (the word catalog) so that:
    - The catalog can be updated without losing progress
    - Progress is user-specific, content is shared
    """

    def __init__(self, db_path: Optional[Path] = None, student_id: str = "default"):
        """
        Initialize progress store.

        Args:
            db_path: Path to progress.db (default: ~/.kotoba/progress.db)
            student_id: Student identifier for multi-user support
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.student_id = student_id
        self._ensure_database()

    def _ensure_database(self):
        """
        Create database and tables if they don't exist.

        An unreadable database file is logged and left alone; load() then
        reports nothing stored.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS user_progress (
                    student_id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                );
            """)
            conn.commit()
        except sqlite3.DatabaseError as e:
            logger.warning(f"Progress database {self.db_path} is unusable: {e}")
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def load(self) -> Optional[UserProgress]:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT payload FROM user_progress WHERE student_id = ?",
                (self.student_id,)
            )
            row = cursor.fetchone()
        except sqlite3.DatabaseError as e:
            logger.warning(f"Could not read progress for {self.student_id}: {e}")
            return None
        finally:
            conn.close()

        if not row:
            return None
        return parse_progress(row["payload"], f"{self.db_path}:{self.student_id}")

    def save(self, progress: UserProgress) -> None:
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            payload = dump_progress(progress)
            conn.execute(
                """INSERT INTO user_progress (student_id, payload, saved_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(student_id) DO UPDATE SET
                     payload = ?,
                     saved_at = ?""",
                (self.student_id, payload, now, payload, now)
            )
            conn.commit()
        finally:
            conn.close()

    def get_saved_at(self) -> Optional[datetime]:
        """When progress was last saved, or None if never."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT saved_at FROM user_progress WHERE student_id = ?",
                (self.student_id,)
            )
            row = cursor.fetchone()
            return datetime.fromisoformat(row["saved_at"]) if row else None
        finally:
            conn.close()

    def reset(self):
        """Delete stored progress for the current student."""
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM user_progress WHERE student_id = ?",
                (self.student_id,)
            )
            conn.commit()
        finally:
            conn.close()
