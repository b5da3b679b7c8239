"""Persistent audit backend on SQLite — survives process restarts.

Usage:
    store = AuditStore(SqliteBackend("~/.secret-sanitizer/audit.db"))
"""

from __future__ import annotations
import json
import sqlite3
from pathlib import Path

from .audit import AuditRecord

_SCHEMA = """
CREATE TABLE IF NOT EXISTS audit_records (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL,
    created_at REAL NOT NULL,
    total INTEGER NOT NULL,
    severity_counts TEXT NOT NULL,
    kind_counts TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_audit_session
    ON audit_records(session_id, created_at);
"""


class SqliteBackend:
    """AuditBackend that writes every record straight to SQLite."""

    __slots__ = ("_db",)

    def __init__(self, db_path: str | Path = "audit.db") -> None:
        db_path = Path(db_path).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._db.executescript(_SCHEMA)

    def load(self) -> list[AuditRecord]:
        rows = self._db.execute(
            "SELECT id, session_id, created_at, total, severity_counts, kind_counts "
            "FROM audit_records ORDER BY created_at",
        ).fetchall()
        return [
            AuditRecord(
                id=rid,
                session_id=sid,
                created_at=created,
                total=total,
                severity_counts=json.loads(sev),
                kind_counts=json.loads(kinds),
            )
            for rid, sid, created, total, sev, kinds in rows
        ]

    def save(self, record: AuditRecord) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO audit_records "
            "(id, session_id, created_at, total, severity_counts, kind_counts) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.session_id,
                record.created_at,
                record.total,
                json.dumps(record.severity_counts),
                json.dumps(record.kind_counts),
            ),
        )
        self._db.commit()

    def delete_session(self, session_id: str) -> None:
        self._db.execute("DELETE FROM audit_records WHERE session_id = ?", (session_id,))
        self._db.commit()

    def delete_before(self, cutoff: float) -> int:
        cur = self._db.execute("DELETE FROM audit_records WHERE created_at < ?", (cutoff,))
        self._db.commit()
        return cur.rowcount

    def close(self) -> None:
        self._db.close()
