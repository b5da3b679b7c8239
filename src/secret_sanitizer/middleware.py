"""OpenAI-compatible middleware — sanitizes chat messages before they leave
the process.

Usage:

    mw = SanitizeMiddleware.create()

    # Live feedback while the user types (caller debounces)
    preview = mw.check(draft)
    if preview.was_modified: ...

    # Before sending to the provider
    safe_messages = mw.pre_send(messages)

    # Single string, sanitized and asserted clean
    safe_text = mw.gate(text)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .audit import AuditStore
from .redactor import SanitizationConfig
from .sanitizer import Sanitizer
from .types import SanitizationResult


@dataclass
class SanitizeMiddleware:
    """Middleware that sits between the chat client and the LLM provider."""

    sanitizer: Sanitizer
    audit: AuditStore | None = None
    session_id: str = "default"
    last_results: list[SanitizationResult] = field(default_factory=list, repr=False)

    @classmethod
    def create(
        cls,
        *,
        config: SanitizationConfig | None = None,
        audit: AuditStore | None = None,
        session_id: str = "default",
    ) -> "SanitizeMiddleware":
        """Factory — fresh sanitizer with the given config."""
        return cls(sanitizer=Sanitizer(config), audit=audit, session_id=session_id)

    def sanitize(self, text: str) -> SanitizationResult:
        """Sanitize one string, recording an audit entry if anything was redacted."""
        result = self.sanitizer.sanitize(text)
        if self.audit is not None and result.was_modified:
            self.audit.record(self.session_id, result)
        return result

    def pre_send(self, messages: list[dict], *, content_key: str = "content") -> list[dict]:
        """Sanitize outbound messages.  Returns new dicts; originals are untouched."""
        out: list[dict] = []
        results: list[SanitizationResult] = []
        for msg in messages:
            content = msg.get(content_key)
            if isinstance(content, str) and content:
                result = self.sanitize(content)
                results.append(result)
                out.append({**msg, content_key: result.sanitized_text})
            else:
                out.append(msg)
        self.last_results = results
        return out

    def check(self, text: str) -> SanitizationResult:
        """Scan-only preview for keystroke feedback; nothing is recorded."""
        return self.sanitizer.sanitize(text)

    def gate(self, text: str) -> str:
        """Sanitize text and assert the output re-scans clean."""
        result = self.sanitize(text)
        return self.sanitizer.ensure_clean(result.sanitized_text)

    def sanitize_text(self, text: str) -> str:
        """Sanitize a single string (convenience)."""
        return self.sanitize(text).sanitized_text

    @property
    def stats(self) -> dict:
        return {
            "session_id": self.session_id,
            "messages_sanitized": sum(r.was_modified for r in self.last_results),
            "audit": self.audit.summary(self.session_id) if self.audit else {},
        }
