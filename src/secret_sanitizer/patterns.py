"""Pattern registry — the fixed, ordered set of secret detectors.

Every pattern is compiled once, at import time, case-insensitively.  A
malformed entry raises PatternError while the module loads, so it can
never surface during a scan.

Registration order matters: it is the last tie-break when two detectors
fire on the same span with the same length and severity (see scanner).
Several detectors (ip_address, file_path, phone) are deliberately broad;
callers filter that noise by severity instead of the registry rejecting it.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from re import _parser
from typing import Iterable, Iterator

from .types import Kind, Severity


class PatternError(ValueError):
    """A detector definition is invalid (bad syntax, zero-width, duplicate kind)."""


@dataclass(frozen=True, slots=True)
class PatternSpec:
    """A named detector: compiled matcher plus static metadata."""
    kind: Kind
    matcher: re.Pattern
    severity: Severity
    description: str

    def __post_init__(self) -> None:
        # lookarounds and anchors can match empty text in context
        min_width, _ = _parser.parse(self.matcher.pattern, self.matcher.flags).getwidth()
        if min_width == 0:
            raise PatternError(
                f"pattern for {self.kind.value!r} can match the empty string"
            )


def compile_spec(
    kind: Kind | str,
    regex: str,
    severity: Severity | str,
    description: str,
) -> PatternSpec:
    """Compile a detector, turning regex syntax errors into PatternError."""
    try:
        matcher = re.compile(regex, re.IGNORECASE)
    except re.error as e:
        raise PatternError(f"invalid pattern for {kind!s}: {e}") from e
    return PatternSpec(
        kind=Kind(kind),
        matcher=matcher,
        severity=Severity(severity),
        description=description,
    )


class PatternRegistry:
    """Immutable, ordered collection of PatternSpecs with unique kinds.

    Safe to share between threads: nothing mutates it after construction.
    """

    __slots__ = ("_specs", "_by_kind")

    def __init__(self, specs: Iterable[PatternSpec]) -> None:
        self._specs: tuple[PatternSpec, ...] = tuple(specs)
        self._by_kind: dict[Kind, PatternSpec] = {}
        for spec in self._specs:
            if spec.kind in self._by_kind:
                raise PatternError(f"duplicate detector for kind {spec.kind.value!r}")
            self._by_kind[spec.kind] = spec

    def __iter__(self) -> Iterator[PatternSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, kind: object) -> bool:
        return kind in self._by_kind

    def get(self, kind: Kind | str) -> PatternSpec:
        return self._by_kind[Kind(kind)]

    @property
    def kinds(self) -> list[Kind]:
        return [s.kind for s in self._specs]

    def describe(self) -> list[dict[str, str]]:
        """Plain-dict view of the registry (for the CLI and HTTP sidecar)."""
        return [
            {
                "kind": s.kind.value,
                "severity": s.severity.value,
                "description": s.description,
                "pattern": s.matcher.pattern,
            }
            for s in self._specs
        ]


_PEM_HEADER = r"-----BEGIN\s+(?:[A-Z0-9]+\s+)*PRIVATE\s+KEY-----"
_OPENAI_KEY = r"\bsk-(?:proj-|svcacct-|admin-)?[a-z0-9_\-]{32,}"
_PREFIXED_KEY = r"\b(?:sk|pk|ak|rk)_(?:live_|test_)?[a-z0-9]{20,}"
_GITHUB_TOKEN = r"\bgh[pousr]_[a-z0-9]{36}\b"
_CLOUD_KEY = r"\b(?:AKIA|ASIA)[A-Z0-9]{16}\b"
_JWT = r"\beyJ[a-z0-9_\-]+\.[a-z0-9_\-]+\.[a-z0-9_\-]+"

# A broad detector must stop where one of these begins, otherwise an earlier
# low-severity match would cut the secret in two and win the overlap.
_SECRET_AHEAD = "|".join([
    _PEM_HEADER, _OPENAI_KEY, _PREFIXED_KEY, _GITHUB_TOKEN, _CLOUD_KEY, _JWT,
])


def _chars(char_class: str) -> str:
    """One character of char_class that does not start a secret."""
    return rf"(?:(?!{_SECRET_AHEAD}){char_class})"


_PATH_CHAR = _chars(r"[\w.\-@+]")
_EMAIL_ATOM = _chars(r"[a-z0-9_%+\-]") + "+"
_DOMAIN_LABEL = _chars(r"[a-z0-9\-]") + "+"
_TLD = _chars(r"[a-z]") + "{2,}"

_DEFAULT_SPECS: list[tuple[Kind, str, Severity, str]] = [
    # PEM private keys: whole block when the END line is present, header otherwise
    (Kind.PRIVATE_KEY_BLOCK,
     _PEM_HEADER
     + r"(?:(?:(?!-----BEGIN)[\s\S])*?-----END\s+(?:[A-Z0-9]+\s+)*PRIVATE\s+KEY-----)?",
     Severity.CRITICAL, "Private key detected"),

    # Connection strings with inline credentials
    (Kind.DATABASE_URL,
     r"\b(?:mongodb(?:\+srv)?|postgres(?:ql)?|mysql|rediss?|amqps?|mssql)://"
     r"[^\s:/@]*:[^\s@]+@[^\s/]+(?:/\S*)?",
     Severity.CRITICAL, "Database connection string with credentials detected"),

    (Kind.OPENAI_KEY, _OPENAI_KEY,
     Severity.CRITICAL, "OpenAI API Key detected"),

    # Stripe-style live/test keys and similar prefixed keys
    (Kind.API_KEY, _PREFIXED_KEY,
     Severity.CRITICAL, "API Key detected"),

    (Kind.GITHUB_TOKEN, _GITHUB_TOKEN,
     Severity.CRITICAL, "GitHub Personal Access Token detected"),

    (Kind.CLOUD_ACCESS_KEY, _CLOUD_KEY,
     Severity.CRITICAL, "AWS Access Key detected"),

    (Kind.JWT_TOKEN, _JWT,
     Severity.HIGH, "JWT Token detected"),

    # Generic bearer credential; loses to jwt_token on the same span
    (Kind.BEARER_TOKEN,
     r"(?<=\bbearer )[a-z0-9\-_~+/]{16,}(?:\.[a-z0-9\-_~+/]+)*=*",
     Severity.MEDIUM, "Bearer token detected"),

    (Kind.PASSWORD,
     r"(?:password|passwd|pwd|pass)\s*[:=]\s*[\"']?[^\"'\s]{8,}[\"']?",
     Severity.HIGH, "Password detected"),

    (Kind.CREDIT_CARD,
     r"\b(?:\d{4}[\-\s]?){3}\d{4}\b",
     Severity.HIGH, "Credit card number detected"),

    # Dashes either on both separators or neither
    (Kind.SSN,
     r"\b\d{3}(-?)\d{2}\1\d{4}\b",
     Severity.HIGH, "Social Security Number detected"),

    # Starts only at the beginning of a local-part run and every label is
    # dot-separated, so a long "a.a.a..." run is scanned once.
    (Kind.EMAIL,
     rf"(?<![\w.%+\-]){_EMAIL_ATOM}(?:\.{_EMAIL_ATOM})*"
     rf"@{_DOMAIN_LABEL}(?:\.{_DOMAIN_LABEL})*\.{_TLD}(?![\w\-])",
     Severity.MEDIUM, "Email address detected"),

    # US/NANP formats: (555) 123-4567, 555.123.4567, +1 555 123 4567
    (Kind.PHONE,
     r"(?<![\w+(])(?:\+?1[\-.\s]?)?(?:\(\d{3}\)|\d{3})[\-.\s]?\d{3}[\-.\s]?\d{4}\b",
     Severity.MEDIUM, "Phone number detected"),

    (Kind.IP_ADDRESS,
     r"\b(?:(?:25[0-5]|2[0-4]\d|1?\d?\d)\.){3}(?:25[0-5]|2[0-4]\d|1?\d?\d)\b",
     Severity.LOW, "IP address detected"),

    # Windows and POSIX paths; never inside URLs (a path must not follow a word char, ':' or '/')
    (Kind.FILE_PATH,
     rf"\b[a-z]:\\(?:{_PATH_CHAR}+\\)+{_PATH_CHAR}*"
     rf"|(?<![\w:/.~])~?(?:/{_PATH_CHAR}+){{2,}}/?",
     Severity.LOW, "File path detected"),
]


def build_registry(
    specs: Iterable[tuple[Kind | str, str, Severity | str, str]],
) -> PatternRegistry:
    """Compile (kind, regex, severity, description) tuples into a registry."""
    return PatternRegistry(compile_spec(*entry) for entry in specs)


DEFAULT_REGISTRY: PatternRegistry = build_registry(_DEFAULT_SPECS)
