"""Scanner — runs every detector and resolves cross-pattern overlaps.

The output of Scanner.scan is the canonical match set: sorted by start,
no two spans overlapping.  It is the only thing the redactor consumes.

Overlap policy, in priority order:
    1. earlier start
    2. longer span
    3. higher severity
    4. earlier registration in the registry
A match is kept iff it starts at or after the end of the last kept match.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field

from .patterns import DEFAULT_REGISTRY, PatternRegistry
from .types import Kind, Match, Severity

logger = logging.getLogger(__name__)

_GITHUB_URL = re.compile(
    r"https?://github\.com/[a-zA-Z0-9_.\-]+/[a-zA-Z0-9_.\-]+", re.IGNORECASE,
)
# Dotted host names inside a match (the part after '@' in an email, etc.)
_HOST = re.compile(r"[a-z0-9\-]+(?:\.[a-z0-9\-]+)+", re.IGNORECASE)

DEFAULT_ALLOWED_DOMAINS: tuple[str, ...] = ("github.com", "gitlab.com", "bitbucket.org")


def _on_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


@dataclass(frozen=True)
class ScanFilter:
    """Which raw detections are reported at all.

    Applied before overlap resolution, so a suppressed match never hides
    a lower-priority one.
    """
    # Exact matched values that should NEVER be reported
    allow_list: frozenset[str] = field(default_factory=frozenset)
    skip_kinds: frozenset[Kind] = field(default_factory=frozenset)
    min_severity: Severity = Severity.LOW
    # Keep https://github.com/<owner>/<repo> links intact
    preserve_github_urls: bool = True
    # Low/medium matches whose host is one of these domains are ignored;
    # high and critical matches are always reported
    allowed_domains: tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS

    def preserved_spans(self, text: str) -> list[tuple[int, int]]:
        if not self.preserve_github_urls:
            return []
        return [(m.start(), m.end()) for m in _GITHUB_URL.finditer(text)]

    def on_allowed_domain(self, match: Match) -> bool:
        if not self.allowed_domains or match.severity.rank >= Severity.HIGH.rank:
            return False
        domains = [d.lower() for d in self.allowed_domains]
        hosts = [h.lower() for h in _HOST.findall(match.text)]
        return any(_on_domain(h, d) for h in hosts for d in domains)

    def accepts(self, match: Match, preserved: list[tuple[int, int]]) -> bool:
        if match.kind in self.skip_kinds:
            return False
        if match.severity.rank < self.min_severity.rank:
            return False
        if match.text in self.allow_list:
            return False
        if self.on_allowed_domain(match):
            return False
        if any(match.start < e and match.end > s for s, e in preserved):
            return False
        return True


NO_FILTER = ScanFilter(preserve_github_urls=False, allowed_domains=())


def priority_key(match: Match) -> tuple[int, int, int, int]:
    """Sort key implementing the overlap policy (smaller sorts first)."""
    return (match.start, -match.length, -match.severity.rank, match.order)


def resolve_overlaps(matches: list[Match]) -> list[Match]:
    """Reduce raw matches to a sorted, non-overlapping canonical set."""
    kept: list[Match] = []
    last_end = 0
    for m in sorted(matches, key=priority_key):
        if not kept or m.start >= last_end:
            kept.append(m)
            last_end = m.end
    return kept


class Scanner:
    """Finds secrets in text.  Stateless; one instance can serve every thread."""

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        scan_filter: ScanFilter | None = None,
    ) -> None:
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self.scan_filter = scan_filter if scan_filter is not None else ScanFilter()

    def find_all(self, text: str) -> list[Match]:
        """Every accepted detection, in detection order (pattern, then position).

        Overlaps are NOT resolved here; use scan() for anything you redact.
        """
        if not text:
            return []
        preserved = self.scan_filter.preserved_spans(text)
        raw: list[Match] = []
        for order, spec in enumerate(self.registry):
            for m in spec.matcher.finditer(text):
                match = Match(
                    kind=spec.kind,
                    severity=spec.severity,
                    description=spec.description,
                    text=m.group(),
                    start=m.start(),
                    end=m.end(),
                    order=order,
                )
                if self.scan_filter.accepts(match, preserved):
                    raw.append(match)
        return raw

    def scan(self, text: str) -> list[Match]:
        """Return the canonical match set for text."""
        raw = self.find_all(text)
        canonical = resolve_overlaps(raw)
        logger.debug(
            "scanned %d chars: %d raw detections, %d kept",
            len(text), len(raw), len(canonical),
        )
        return canonical
