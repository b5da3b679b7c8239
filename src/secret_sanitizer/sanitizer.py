"""Sanitizer — the main API: scan, redact, summarize, validate.

Usage:
    from secret_sanitizer import Sanitizer

    sanitizer = Sanitizer()          # reusable, thread-safe
    result = sanitizer.sanitize("key: sk-...")
    print(result.sanitized_text)     # "key: [********]"

    # Per-call override without touching the shared instance
    sanitizer.sanitize(text, config=sanitizer.config.with_overrides(redaction_mode="strip"))

    # "Scan before send" gate
    sanitizer.ensure_clean(outgoing)   # raises SecretsDetectedError
"""

from __future__ import annotations
import logging
from typing import Any

from . import report
from .patterns import DEFAULT_REGISTRY, PatternRegistry
from .redactor import SanitizationConfig, apply
from .scanner import Scanner
from .types import Match, SanitizationResult, ValidationResult

logger = logging.getLogger(__name__)


class SecretsDetectedError(RuntimeError):
    """Text that must be clean still contains detectable secrets."""

    def __init__(self, residual: list[Match]) -> None:
        self.residual = residual
        kinds = sorted({m.kind.value for m in residual})
        super().__init__(f"{len(residual)} secret(s) still present: {', '.join(kinds)}")


class Sanitizer:
    """Secret scanner + redactor over a shared, immutable pattern registry."""

    def __init__(
        self,
        config: SanitizationConfig | None = None,
        registry: PatternRegistry | None = None,
    ) -> None:
        self.config = config or SanitizationConfig()
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self._scanner = self._scanner_for(self.config)

    def _scanner_for(self, config: SanitizationConfig) -> Scanner:
        return Scanner(self.registry, config.scan_filter)

    def _resolve(self, config: SanitizationConfig | None) -> tuple[SanitizationConfig, Scanner]:
        if config is None or config == self.config:
            return self.config, self._scanner
        return config, self._scanner_for(config)

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def scan(self, text: str, *, config: SanitizationConfig | None = None) -> list[Match]:
        """Canonical (sorted, non-overlapping) matches in text."""
        _, scanner = self._resolve(config)
        return scanner.scan(text)

    def sanitize(self, text: str, *, config: SanitizationConfig | None = None) -> SanitizationResult:
        """Scan, redact and summarize text in one call."""
        cfg, scanner = self._resolve(config)
        matches = scanner.scan(text)
        sanitized = apply(text, matches, cfg) if matches else text
        return report.summarize(text, sanitized, matches)

    def validate(self, text: str, *, config: SanitizationConfig | None = None) -> ValidationResult:
        """Re-scan text that is expected to be clean."""
        residual = self.scan(text, config=config)
        return ValidationResult(ok=not residual, residual=residual)

    def ensure_clean(self, text: str, *, config: SanitizationConfig | None = None) -> str:
        """Return text unchanged if it validates clean, else raise."""
        result = self.validate(text, config=config)
        if not result.ok:
            logger.warning(
                "blocked outbound text: %s",
                ", ".join(report.log_line(m) for m in result.residual),
            )
            raise SecretsDetectedError(result.residual)
        return text

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @staticmethod
    def stats(result: SanitizationResult) -> dict[str, Any]:
        return report.stats(result)
