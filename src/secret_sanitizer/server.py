"""HTTP sidecar server for secret-sanitizer.

Runs as a lightweight stdlib HTTP server on localhost so a web backend can
call the sanitizer without spawning a subprocess per request.

Endpoints:
    POST /sanitize            — Sanitize text           {"text": ..., "mode": ...}
    POST /sanitize-messages   — Sanitize chat messages  {"messages": [...]}
    POST /scan                — Detections only         {"text": ...}
    POST /validate            — Residual check          {"text": ...}
    POST /audit               — Session audit records
    POST /clear               — Clear a session's audit records
    GET  /patterns            — Registered detectors
    GET  /sessions            — Sessions with audit records
    GET  /health              — Health check

All endpoints expect/return JSON.  Every POST body may carry "session_id".
"""

from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any

from .audit import AuditStore
from .audit_sqlite import SqliteBackend
from .config import load_settings, to_sanitization_config
from .middleware import SanitizeMiddleware
from .redactor import SanitizationConfig
from .report import match_to_dict, result_to_dict
from .sanitizer import Sanitizer

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("SECRET_SANITIZER_PORT", "18792"))
DEFAULT_DB = os.environ.get(
    "SECRET_SANITIZER_DB",
    str(Path.home() / ".secret-sanitizer" / "audit.db"),
)
# Larger inputs are rejected before scanning to bound regex time
MAX_TEXT_LEN = int(os.environ.get("SECRET_SANITIZER_MAX_TEXT", "200000"))


class BadRequest(ValueError):
    pass


@dataclass
class SidecarState:
    """Everything the handler shares across requests."""
    sanitizer: Sanitizer
    audit: AuditStore

    def config_for(self, body: dict[str, Any]) -> SanitizationConfig:
        mode = body.get("mode")
        if not mode:
            return self.sanitizer.config
        try:
            return self.sanitizer.config.with_overrides(redaction_mode=mode)
        except ValueError as e:
            raise BadRequest(str(e)) from e


def _text_field(body: dict[str, Any]) -> str:
    text = body.get("text", "")
    if not isinstance(text, str):
        raise BadRequest("'text' must be a string")
    if len(text) > MAX_TEXT_LEN:
        raise BadRequest(f"'text' exceeds {MAX_TEXT_LEN} characters")
    return text


def _messages_field(body: dict[str, Any]) -> list[dict[str, Any]]:
    messages = body.get("messages", [])
    if not isinstance(messages, list):
        raise BadRequest("'messages' must be a list")
    for i, msg in enumerate(messages):
        if not isinstance(msg, dict):
            raise BadRequest(f"messages[{i}] must be an object")
        content = msg.get("content")
        if isinstance(content, str) and len(content) > MAX_TEXT_LEN:
            raise BadRequest(f"messages[{i}].content exceeds {MAX_TEXT_LEN} characters")
    return messages


def make_handler(state: SidecarState) -> type[BaseHTTPRequestHandler]:
    """Bind a request handler class to one SidecarState."""

    class SanitizerHandler(BaseHTTPRequestHandler):
        """HTTP request handler for the sanitizer sidecar."""

        def _read_json(self) -> dict[str, Any]:
            length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(length).decode("utf-8")
            try:
                data = json.loads(body) if body else {}
            except json.JSONDecodeError as e:
                raise BadRequest(f"invalid JSON: {e}") from e
            if not isinstance(data, dict):
                raise BadRequest("body must be a JSON object")
            return data

        def _respond(self, status: int, data: Any) -> None:
            body = json.dumps(data, ensure_ascii=False).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug("%s - " + format, self.address_string(), *args)

        def do_GET(self) -> None:
            if self.path == "/health":
                self._respond(200, {"status": "ok", "patterns": len(state.sanitizer.registry)})
            elif self.path == "/patterns":
                self._respond(200, {"patterns": state.sanitizer.registry.describe()})
            elif self.path == "/sessions":
                self._respond(200, {"sessions": state.audit.sessions()})
            else:
                self._respond(404, {"error": "not found"})

        def do_POST(self) -> None:
            try:
                body = self._read_json()
                session_id = body.get("session_id", "default")

                if self.path == "/sanitize":
                    result = state.sanitizer.sanitize(
                        _text_field(body), config=state.config_for(body),
                    )
                    if result.was_modified:
                        state.audit.record(session_id, result)
                    self._respond(200, result_to_dict(result, include_original=False))

                elif self.path == "/sanitize-messages":
                    messages = _messages_field(body)
                    mw = SanitizeMiddleware(
                        sanitizer=Sanitizer(state.config_for(body), state.sanitizer.registry),
                        audit=state.audit,
                        session_id=session_id,
                    )
                    self._respond(200, {"messages": mw.pre_send(messages)})

                elif self.path == "/scan":
                    matches = state.sanitizer.scan(_text_field(body))
                    self._respond(200, {
                        "matches": [match_to_dict(m, include_text=False) for m in matches],
                    })

                elif self.path == "/validate":
                    result = state.sanitizer.validate(_text_field(body))
                    self._respond(200, {
                        "ok": result.ok,
                        "residual": [match_to_dict(m, include_text=False) for m in result.residual],
                    })

                elif self.path == "/audit":
                    self._respond(200, {
                        "session_id": session_id,
                        "summary": state.audit.summary(session_id),
                        "records": [r.to_dict() for r in state.audit.records(session_id)],
                    })

                elif self.path == "/clear":
                    state.audit.clear(session_id)
                    self._respond(200, {"status": "cleared", "session_id": session_id})

                else:
                    self._respond(404, {"error": "not found"})

            except BadRequest as e:
                self._respond(400, {"error": str(e)})
            except Exception as e:
                logger.exception("request to %s failed", self.path)
                self._respond(500, {"error": str(e)})

    return SanitizerHandler


def build_server(
    port: int = DEFAULT_PORT,
    db_path: str | None = DEFAULT_DB,
    config: SanitizationConfig | None = None,
) -> HTTPServer:
    """Create (but do not start) the sidecar.  db_path=None keeps audit in memory.

    Without an explicit config, settings come from $SECRET_SANITIZER_CONFIG
    and $SECRET_SANITIZER_MODE.
    """
    if config is None:
        config = to_sanitization_config(load_settings())
    audit = AuditStore(SqliteBackend(db_path)) if db_path else AuditStore()
    state = SidecarState(sanitizer=Sanitizer(config), audit=audit)
    return HTTPServer(("127.0.0.1", port), make_handler(state))


def serve(
    port: int = DEFAULT_PORT,
    db_path: str = DEFAULT_DB,
    config_path: str | None = None,
) -> None:
    """Start the secret-sanitizer HTTP sidecar."""
    config = to_sanitization_config(load_settings(config_path))
    server = build_server(port, db_path, config)
    print(f"secret-sanitizer sidecar listening on http://127.0.0.1:{port}")
    print(f"  audit db: {db_path}")
    print(f"  redaction mode: {config.redaction_mode.value}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()
    finally:
        server.server_close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="secret-sanitizer HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--db", default=DEFAULT_DB)
    parser.add_argument("--config", default="",
                        help="YAML config file (default: $SECRET_SANITIZER_CONFIG)")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    serve(port=args.port, db_path=args.db, config_path=args.config or None)
