"""YAML/dict config loader for secret-sanitizer.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    secret_sanitizer:
      enabled: true
      redaction_mode: mask      # mask | strip | hash_label | tagged_label
      mask_char: "*"
      min_severity: low
      skip_kinds:
        - file_path
      allow_list:
        - safe@example.com
      preserve_github_urls: true
      allowed_domains:
        - github.com
        - gitlab.com
      audit:
        backend: sqlite          # "memory" or "sqlite"
        path: ~/.secret-sanitizer/audit.db
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .audit import AuditStore
from .audit_sqlite import SqliteBackend
from .middleware import SanitizeMiddleware
from .redactor import SanitizationConfig
from .report import summarize
from .sanitizer import Sanitizer
from .scanner import DEFAULT_ALLOWED_DOMAINS
from .types import SanitizationResult

logger = logging.getLogger(__name__)

ENV_CONFIG = "SECRET_SANITIZER_CONFIG"
ENV_MODE = "SECRET_SANITIZER_MODE"


class _NoopMiddleware:
    """Pass-through middleware when sanitization is disabled."""
    session_id = "default"

    def pre_send(self, messages: list[dict], *, content_key: str = "content") -> list[dict]:
        return messages
    def sanitize(self, text: str) -> SanitizationResult:
        return summarize(text, text, [])
    def check(self, text: str) -> SanitizationResult:
        return summarize(text, text, [])
    def gate(self, text: str) -> str:
        return text
    def sanitize_text(self, text: str) -> str:
        return text
    @property
    def stats(self) -> dict:
        return {"session_id": self.session_id, "messages_sanitized": 0, "audit": {}}


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "secret_sanitizer" key or flat
    if "secret_sanitizer" in data:
        data = data["secret_sanitizer"] or {}

    audit = data.get("audit") or {}
    # an empty "allowed_domains:" key means the defaults; an explicit [] means none
    domains = data.get("allowed_domains")
    return {
        "enabled": data.get("enabled", True),
        "redaction_mode": data.get("redaction_mode", "mask"),
        "mask_char": data.get("mask_char", "*"),
        "min_severity": data.get("min_severity", "low"),
        "skip_kinds": set(data.get("skip_kinds") or []),
        "allow_list": set(data.get("allow_list") or []),
        "preserve_github_urls": data.get("preserve_github_urls", True),
        "allowed_domains": list(DEFAULT_ALLOWED_DOMAINS if domains is None else domains),
        "audit_backend": audit.get("backend", "memory"),
        "audit_path": audit.get("path", "audit.db"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    with open(Path(path).expanduser()) as f:
        cfg = load_config(yaml.safe_load(f))
    logger.info("loaded sanitizer config from %s (mode=%s)", path, cfg["redaction_mode"])
    return cfg


def load_settings(path: str | Path | None = None) -> dict[str, Any]:
    """Config for the CLI and sidecar: YAML file (or defaults) plus env overrides.

    path falls back to $SECRET_SANITIZER_CONFIG; $SECRET_SANITIZER_MODE
    overrides the redaction mode from the file.
    """
    path = path or os.environ.get(ENV_CONFIG, "")
    cfg = load_from_yaml(path) if path else load_config({})
    mode = os.environ.get(ENV_MODE, "")
    if mode:
        cfg["redaction_mode"] = mode
    return cfg


def to_sanitization_config(cfg: dict[str, Any]) -> SanitizationConfig:
    """Build the immutable engine config.  Bad enum values raise ValueError."""
    return SanitizationConfig(
        redaction_mode=cfg["redaction_mode"],
        mask_char=cfg["mask_char"],
        min_severity=cfg["min_severity"],
        skip_kinds=frozenset(cfg["skip_kinds"]),
        allow_list=frozenset(cfg["allow_list"]),
        preserve_github_urls=cfg["preserve_github_urls"],
        allowed_domains=tuple(cfg["allowed_domains"]),
    )


def _normalized(config: dict[str, Any]) -> dict[str, Any]:
    return load_config(config) if "audit_backend" not in config else config


def create_sanitizer(config: dict[str, Any]) -> Sanitizer:
    """Create a Sanitizer from a config dict."""
    return Sanitizer(to_sanitization_config(_normalized(config)))


def create_audit_store(config: dict[str, Any]) -> AuditStore:
    cfg = _normalized(config)
    backend = cfg["audit_backend"]
    if backend == "sqlite":
        return AuditStore(SqliteBackend(cfg["audit_path"]))
    if backend == "memory":
        return AuditStore()
    raise ValueError(f"unknown audit backend {backend!r} (expected 'memory' or 'sqlite')")


def create_middleware(
    config: dict[str, Any],
    session_id: str = "default",
) -> SanitizeMiddleware | _NoopMiddleware:
    """Create a fully configured middleware from a config dict."""
    cfg = _normalized(config)

    if not cfg["enabled"]:
        logger.info("sanitization disabled by config; outbound text passes through")
        return _NoopMiddleware()

    return SanitizeMiddleware(
        sanitizer=Sanitizer(to_sanitization_config(cfg)),
        audit=create_audit_store(cfg),
        session_id=session_id,
    )
