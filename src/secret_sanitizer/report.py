"""Result building and aggregate stats for UI badges and audit records."""

from __future__ import annotations
from collections import Counter
from typing import Any

from .types import Match, SanitizationResult, Severity

NO_SECRETS = "No secrets detected"


def log_line(match: Match) -> str:
    return f"{match.severity.value.upper()}: {match.kind.value} - {match.description}"


def summarize(original: str, sanitized: str, matches: list[Match]) -> SanitizationResult:
    """Wrap a finished redaction into a SanitizationResult."""
    if matches:
        # detection order: registry order first, then position
        detected = sorted(matches, key=lambda m: (m.order, m.start))
        lines = [log_line(m) for m in detected]
    else:
        lines = [NO_SECRETS]
    return SanitizationResult(
        original_text=original,
        sanitized_text=sanitized,
        matches=list(matches),
        log_lines=lines,
        was_modified=bool(matches),
    )


def severity_counts(matches: list[Match]) -> dict[str, int]:
    counts = Counter(m.severity for m in matches)
    return {s.value: counts.get(s, 0) for s in Severity}


def highest_severity(matches: list[Match]) -> Severity | None:
    if not matches:
        return None
    return max((m.severity for m in matches), key=lambda s: s.rank)


def stats(result: SanitizationResult) -> dict[str, Any]:
    top = highest_severity(result.matches)
    return {
        "total": len(result.matches),
        "severity_breakdown": severity_counts(result.matches),
        "by_kind": dict(Counter(m.kind.value for m in result.matches)),
        "highest_severity": top.value if top else None,
        "was_modified": result.was_modified,
        "log_lines": list(result.log_lines),
    }


def match_to_dict(match: Match, *, include_text: bool = True) -> dict[str, Any]:
    """JSON-ready view of a match (CLI and HTTP output)."""
    out: dict[str, Any] = {
        "kind": match.kind.value,
        "severity": match.severity.value,
        "description": match.description,
        "start": match.start,
        "end": match.end,
    }
    if include_text:
        out["text"] = match.text
    return out


def result_to_dict(result: SanitizationResult, *, include_original: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {
        "sanitized_text": result.sanitized_text,
        "was_modified": result.was_modified,
        "matches": [
            match_to_dict(m, include_text=include_original) for m in result.matches
        ],
        "log_lines": list(result.log_lines),
        "stats": stats(result),
    }
    if include_original:
        out["original_text"] = result.original_text
    return out
