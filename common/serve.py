"""HTTP bridge to the presentation layer: serves telemetry snapshots, accepts held keys."""

from __future__ import annotations

import copy
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, FrozenSet, Iterable
from urllib.parse import urlparse


class SharedState:
    """Thread-safe container for the latest snapshot and the held-key set."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Dict[str, Any] = {"frame": 0, "updated_at": time.time()}
        self._status_line = ""
        self._keys: FrozenSet[str] = frozenset()

    def set_snapshot(self, snapshot: Dict[str, Any], status_line: str = "") -> None:
        snapshot = copy.deepcopy(snapshot)
        snapshot.setdefault("updated_at", time.time())
        with self._lock:
            self._snapshot = snapshot
            self._status_line = status_line

    def get_snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._snapshot)

    def get_status_line(self) -> str:
        with self._lock:
            return self._status_line

    def set_input_keys(self, keys: Iterable[str]) -> None:
        normalized = frozenset(str(k).lower() for k in keys)
        with self._lock:
            self._keys = normalized

    def get_input_keys(self) -> FrozenSet[str]:
        with self._lock:
            return self._keys


def _make_handler(shared_state: SharedState):
    class TelemetryRequestHandler(BaseHTTPRequestHandler):
        server_version = "QuadraceTelemetry/1.0"

        def do_GET(self) -> None:  # noqa: N802 (method name from BaseHTTPRequestHandler)
            route = urlparse(self.path).path

            if route == "/state":
                payload = json.dumps(shared_state.get_snapshot()).encode("utf-8")
                self._send_response(200, "application/json", payload)
                return

            if route in {"/", "/status"}:
                payload = (shared_state.get_status_line() + "\n").encode("utf-8")
                self._send_response(200, "text/plain; charset=utf-8", payload)
                return

            self.send_error(404)

        def do_POST(self) -> None:  # noqa: N802
            if urlparse(self.path).path != "/input":
                self.send_error(404)
                return

            content_length = int(self.headers.get("Content-Length", "0"))
            raw = self.rfile.read(content_length) if content_length else b"{}"
            try:
                data = json.loads(raw.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                self.send_error(400, "invalid json")
                return

            keys = data.get("keys", []) if isinstance(data, dict) else None
            if not isinstance(keys, list):
                self.send_error(400, "keys must be a list")
                return

            shared_state.set_input_keys(keys)
            self._send_response(204, "application/json", b"")

        def _send_response(self, status: int, content_type: str, payload: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.send_header("Cache-Control", "no-store, no-cache, must-revalidate")
            self.end_headers()
            if payload:
                self.wfile.write(payload)

        def log_message(self, fmt: str, *args: Any) -> None:  # noqa: A003 (fmt name)
            return

    return TelemetryRequestHandler


class TelemetryServer:
    """Runs the telemetry HTTP server on a daemon thread."""

    def __init__(self, shared_state: SharedState, host: str, port: int) -> None:
        try:
            self._httpd = ThreadingHTTPServer((host, port), _make_handler(shared_state))
        except OSError as exc:
            raise RuntimeError(f"Failed to start telemetry server on {host}:{port}: {exc}") from exc
        self._httpd.daemon_threads = True
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    @property
    def address(self):
        return self._httpd.server_address

    def start(self) -> None:
        self._thread.start()

    def shutdown(self) -> None:
        if self._thread.is_alive():
            self._httpd.shutdown()
            self._thread.join(timeout=1.0)
        self._httpd.server_close()


__all__ = ["SharedState", "TelemetryServer"]
