"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Fixed per-detector severity.  Ordered low < medium < high < critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Kind(str, Enum):
    """Category of sensitive data a detector recognizes."""
    API_KEY = "api_key"
    OPENAI_KEY = "openai_key"
    GITHUB_TOKEN = "github_token"
    PASSWORD = "password"
    JWT_TOKEN = "jwt_token"
    BEARER_TOKEN = "bearer_token"
    DATABASE_URL = "database_url"
    CREDIT_CARD = "credit_card"
    SSN = "ssn"
    EMAIL = "email"
    PHONE = "phone"
    IP_ADDRESS = "ip_address"
    FILE_PATH = "file_path"
    CLOUD_ACCESS_KEY = "cloud_access_key"
    PRIVATE_KEY_BLOCK = "private_key_block"

    @property
    def label(self) -> str:
        return self.value.upper()


class RedactionMode(str, Enum):
    MASK = "mask"                  # [********]
    STRIP = "strip"                # removed entirely
    HASH_LABEL = "hash_label"      # [HASHED_<KIND>]
    TAGGED_LABEL = "tagged_label"  # [REDACTED_<KIND>]


@dataclass(frozen=True, slots=True)
class Match:
    """A single detected secret span: text[start:end] == match.text."""
    kind: Kind
    severity: Severity
    description: str
    text: str
    start: int
    end: int
    order: int = 0         # registration index of the producing pattern

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(slots=True)
class SanitizationResult:
    """Result of sanitizing one piece of text."""
    original_text: str
    sanitized_text: str
    matches: list[Match] = field(default_factory=list)   # canonical, by start
    log_lines: list[str] = field(default_factory=list)
    was_modified: bool = False


@dataclass(slots=True)
class ValidationResult:
    """Outcome of re-scanning text that is expected to be clean."""
    ok: bool
    residual: list[Match] = field(default_factory=list)
