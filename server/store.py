import sqlite3
import threading
from datetime import datetime, timezone
from typing import List, Optional

from server.errors import StoreError
from server.models import CountRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # stored text sorts chronologically only when every row shares one offset
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------- SQLite storage ----------
class SqliteThripsStore:
    """Thrips counts in one SQLite table, one connection per operation."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def get_conn(self) -> sqlite3.Connection:
        # check_same_thread=False allows FastAPI threads to use the connection safely
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        try:
            conn = self.get_conn()
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS thrips (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        created_at TEXT NOT NULL,
                        tea INTEGER NOT NULL CHECK (tea >= 0),
                        other INTEGER NOT NULL CHECK (other >= 0)
                    );
                """)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreError(f"could not initialise {self.db_path}: {exc}") from exc

    def insert(self, tea: int, other: int, created_at: Optional[datetime] = None) -> CountRecord:
        created_at = as_utc(created_at or utcnow())
        try:
            conn = self.get_conn()
            try:
                # the connection context manager commits or rolls back the single insert
                with conn:
                    cur = conn.execute(
                        "INSERT INTO thrips(created_at, tea, other) VALUES (?, ?, ?);",
                        (created_at.isoformat(), tea, other),
                    )
                    row_id = cur.lastrowid
            finally:
                conn.close()
        except (sqlite3.Error, OverflowError) as exc:
            raise StoreError(str(exc)) from exc

        return CountRecord(id=row_id, created_at=created_at, tea=tea, other=other)

    def fetch_all(self) -> List[CountRecord]:
        try:
            conn = self.get_conn()
            try:
                rows = conn.execute("""
                    SELECT id, created_at, tea, other
                    FROM thrips
                    ORDER BY created_at ASC, id ASC;
                """).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

        return [
            CountRecord(id=r["id"], created_at=r["created_at"], tea=int(r["tea"]), other=int(r["other"]))
            for r in rows
        ]

    def describe(self) -> str:
        return self.db_path


# ---------- In-memory storage (demo / tests) ----------
class InMemoryThripsStore:
    def __init__(self):
        self._rows: List[CountRecord] = []
        self._lock = threading.Lock()

    def init_db(self) -> None:
        return None

    def insert(self, tea: int, other: int, created_at: Optional[datetime] = None) -> CountRecord:
        with self._lock:
            record = CountRecord(
                id=len(self._rows) + 1,
                created_at=as_utc(created_at or utcnow()),
                tea=tea,
                other=other,
            )
            self._rows.append(record)
        return record

    def fetch_all(self) -> List[CountRecord]:
        with self._lock:
            rows = list(self._rows)
        return sorted(rows, key=lambda r: (str(r.created_at), r.id))

    def describe(self) -> str:
        return ":memory:"
