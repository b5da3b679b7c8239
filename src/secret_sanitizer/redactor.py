"""Redactor — rebuilds text with each canonical span replaced.

Usage:
    from secret_sanitizer import Scanner, SanitizationConfig
    from secret_sanitizer.redactor import apply

    matches = Scanner().scan(text)
    safe = apply(text, matches, SanitizationConfig(redaction_mode="tagged_label"))

The rebuild is a single left-to-right pass that copies the gaps between
spans verbatim, so no offset ever shifts underneath an unprocessed span.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any

from .scanner import DEFAULT_ALLOWED_DOMAINS, ScanFilter
from .types import Kind, Match, RedactionMode, Severity

MAX_MASK_LEN = 8


@dataclass(frozen=True)
class SanitizationConfig:
    """Process-wide defaults; use with_overrides() for per-call changes."""
    redaction_mode: RedactionMode = RedactionMode.MASK
    mask_char: str = "*"
    # --- scan filter ---
    min_severity: Severity = Severity.LOW
    skip_kinds: frozenset[Kind] = field(default_factory=frozenset)
    allow_list: frozenset[str] = field(default_factory=frozenset)
    preserve_github_urls: bool = True
    allowed_domains: tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS

    def __post_init__(self) -> None:
        # accept plain strings from YAML / JSON callers
        object.__setattr__(self, "redaction_mode", RedactionMode(self.redaction_mode))
        object.__setattr__(self, "min_severity", Severity(self.min_severity))
        object.__setattr__(self, "skip_kinds", frozenset(Kind(k) for k in self.skip_kinds))
        object.__setattr__(self, "allow_list", frozenset(self.allow_list))
        object.__setattr__(self, "allowed_domains", tuple(self.allowed_domains))
        if len(self.mask_char) != 1:
            raise ValueError(f"mask_char must be a single character, got {self.mask_char!r}")

    def with_overrides(self, **changes: Any) -> "SanitizationConfig":
        return replace(self, **changes)

    @property
    def scan_filter(self) -> ScanFilter:
        return ScanFilter(
            allow_list=self.allow_list,
            skip_kinds=self.skip_kinds,
            min_severity=self.min_severity,
            preserve_github_urls=self.preserve_github_urls,
            allowed_domains=self.allowed_domains,
        )


def replacement_for(match: Match, config: SanitizationConfig) -> str:
    """Text that stands in for one matched span."""
    mode = config.redaction_mode
    if mode is RedactionMode.MASK:
        return "[" + config.mask_char * min(match.length, MAX_MASK_LEN) + "]"
    if mode is RedactionMode.STRIP:
        return ""
    if mode is RedactionMode.HASH_LABEL:
        return f"[HASHED_{match.kind.label}]"
    return f"[REDACTED_{match.kind.label}]"


def apply(text: str, matches: list[Match], config: SanitizationConfig) -> str:
    """Replace every span in a canonical match set.

    Raises ValueError if the spans are unsorted, overlapping or out of range;
    that means the caller skipped overlap resolution.
    """
    parts: list[str] = []
    cursor = 0
    for m in matches:
        if m.start < cursor or m.end > len(text):
            raise ValueError(
                f"match {m.kind.value} at [{m.start}, {m.end}) is not part of a "
                f"canonical match set for text of length {len(text)}"
            )
        parts.append(text[cursor:m.start])
        parts.append(replacement_for(m, config))
        cursor = m.end
    parts.append(text[cursor:])
    return "".join(parts)
