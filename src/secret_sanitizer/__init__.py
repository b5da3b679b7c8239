"""Secret Sanitizer — fast secret/PII detection and redaction for LLM-bound text."""

from .sanitizer import Sanitizer, SecretsDetectedError
from .scanner import Scanner, ScanFilter, resolve_overlaps
from .redactor import SanitizationConfig, apply
from .patterns import DEFAULT_REGISTRY, PatternError, PatternRegistry, PatternSpec
from .report import stats, summarize
from .middleware import SanitizeMiddleware
from .audit import AuditStore, MemoryBackend
from .audit_sqlite import SqliteBackend
from .config import create_middleware, create_sanitizer, load_config, load_from_yaml
from .types import (
    Kind, Match, RedactionMode, SanitizationResult, Severity, ValidationResult,
)

__all__ = [
    "Sanitizer", "SecretsDetectedError",
    "Scanner", "ScanFilter", "resolve_overlaps",
    "SanitizationConfig", "apply",
    "DEFAULT_REGISTRY", "PatternError", "PatternRegistry", "PatternSpec",
    "stats", "summarize",
    "SanitizeMiddleware",
    "AuditStore", "MemoryBackend", "SqliteBackend",
    "create_middleware", "create_sanitizer", "load_config", "load_from_yaml",
    "Kind", "Match", "RedactionMode", "SanitizationResult", "Severity", "ValidationResult",
]
__version__ = "0.1.0"
