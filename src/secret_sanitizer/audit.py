"""Audit store — per-session record of what the sanitizer redacted.

Records carry counts only (by severity and by kind), never the secret text.

The store owns an in-memory map and talks to persistence only through an
AuditBackend:

    store = AuditStore(SqliteBackend("~/.secret-sanitizer/audit.db"))
    store.record("sess123", result)     # written through immediately
    store.records("sess123")            # newest first
"""

from __future__ import annotations
import logging
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Protocol

from .report import severity_counts
from .types import SanitizationResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 30 * 24 * 3600  # seconds


@dataclass(frozen=True, slots=True)
class AuditRecord:
    id: str
    session_id: str
    created_at: float                                   # unix time
    total: int
    severity_counts: dict[str, int] = field(default_factory=dict)
    kind_counts: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_result(cls, session_id: str, result: SanitizationResult) -> "AuditRecord":
        return cls(
            id=f"audit_{uuid.uuid4().hex[:12]}",
            session_id=session_id,
            created_at=time.time(),
            total=len(result.matches),
            severity_counts=severity_counts(result.matches),
            kind_counts=dict(Counter(m.kind.value for m in result.matches)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "created_at": self.created_at,
            "total": self.total,
            "severity_counts": dict(self.severity_counts),
            "kind_counts": dict(self.kind_counts),
        }


class AuditBackend(Protocol):
    """Persistence adapter for AuditStore."""

    def load(self) -> list[AuditRecord]: ...
    def save(self, record: AuditRecord) -> None: ...
    def delete_session(self, session_id: str) -> None: ...
    def delete_before(self, cutoff: float) -> int: ...
    def close(self) -> None: ...


class MemoryBackend:
    """No persistence — records live as long as the store."""

    def load(self) -> list[AuditRecord]:
        return []

    def save(self, record: AuditRecord) -> None:
        pass

    def delete_session(self, session_id: str) -> None:
        pass

    def delete_before(self, cutoff: float) -> int:
        return 0

    def close(self) -> None:
        pass


class AuditStore:
    """Session → audit records, loaded once and flushed on every write."""

    __slots__ = ("_backend", "_sessions")

    def __init__(self, backend: AuditBackend | None = None) -> None:
        self._backend: AuditBackend = backend or MemoryBackend()
        self._sessions: dict[str, list[AuditRecord]] = {}
        for rec in self._backend.load():
            self._sessions.setdefault(rec.session_id, []).append(rec)

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def record(self, session_id: str, result: SanitizationResult) -> AuditRecord:
        rec = AuditRecord.from_result(session_id, result)
        self._backend.save(rec)
        self._sessions.setdefault(session_id, []).append(rec)
        return rec

    def records(self, session_id: str) -> list[AuditRecord]:
        """Records for a session, newest first."""
        return sorted(self._sessions.get(session_id, []), key=lambda r: r.created_at, reverse=True)

    def latest(self, session_id: str) -> AuditRecord | None:
        recs = self.records(session_id)
        return recs[0] if recs else None

    def summary(self, session_id: str) -> dict[str, int]:
        """Total matches per severity across a session."""
        totals: Counter[str] = Counter()
        for rec in self._sessions.get(session_id, []):
            totals.update(rec.severity_counts)
        return dict(totals)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def sessions(self) -> list[str]:
        return sorted(self._sessions)

    def clear(self, session_id: str) -> None:
        self._backend.delete_session(session_id)
        self._sessions.pop(session_id, None)

    def cleanup(self, max_age: float = DEFAULT_MAX_AGE, *, now: float | None = None) -> int:
        """Drop records older than max_age seconds.  Returns how many were removed."""
        cutoff = (now if now is not None else time.time()) - max_age
        self._backend.delete_before(cutoff)
        removed = 0
        for sid in list(self._sessions):
            fresh = [r for r in self._sessions[sid] if r.created_at >= cutoff]
            removed += len(self._sessions[sid]) - len(fresh)
            if fresh:
                self._sessions[sid] = fresh
            else:
                del self._sessions[sid]
        if removed:
            logger.info("audit cleanup removed %d record(s)", removed)
        return removed

    def close(self) -> None:
        self._backend.close()
