"""Liveness and readiness reporting over HTTP."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Optional

from docmost_sync.config import format_duration

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"

HEALTH_PATHS = frozenset({"/health", "/healthz", "/ready"})


@dataclass(slots=True)
class HealthStatus:
    status: str
    sync_count: int
    is_running: bool
    uptime: str
    last_sync: Optional[str] = None
    last_error: Optional[str] = None
    next_sync: Optional[str] = None
    sync_interval: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


class HealthChecker:
    """Thread-safe record of sync outcomes.

    A failed last run reports ``degraded``; no run for more than twice the
    sync interval reports ``unhealthy``.
    """

    def __init__(
        self,
        sync_interval: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.sync_interval = sync_interval if sync_interval and sync_interval > 0 else None
        self._clock = clock
        self._lock = threading.Lock()
        self._started_at = clock()
        self._last_sync: Optional[float] = None
        self._last_error: Optional[str] = None
        self._sync_count = 0
        self._running = False

    def set_running(self, running: bool) -> None:
        with self._lock:
            self._running = running

    def update_sync_status(self, error: Optional[BaseException] = None) -> None:
        with self._lock:
            self._last_sync = self._clock()
            self._last_error = (str(error) or error.__class__.__name__) if error else None
            self._sync_count += 1

    def status(self) -> HealthStatus:
        with self._lock:
            now = self._clock()
            result = HealthStatus(
                status=HEALTHY,
                sync_count=self._sync_count,
                is_running=self._running,
                uptime=format_duration(now - self._started_at),
            )
            if self.sync_interval is not None:
                result.sync_interval = format_duration(self.sync_interval)
            if self._last_sync is None:
                return result

            result.last_sync = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self._last_sync))
            if self._last_error is not None:
                result.status = DEGRADED
                result.last_error = self._last_error
            if self.sync_interval is not None:
                remaining = self._last_sync + self.sync_interval - now
                if remaining > 0:
                    result.next_sync = format_duration(remaining)
                if now - self._last_sync > 2 * self.sync_interval:
                    result.status = UNHEALTHY
            return result


class _HealthHandler(BaseHTTPRequestHandler):
    checker: HealthChecker

    def do_GET(self) -> None:  # noqa: N802
        path = self.path.split("?", 1)[0]
        if path not in HEALTH_PATHS:
            self._send(HTTPStatus.NOT_FOUND, {"error": "not found"})
            return
        status = self.checker.status()
        code = HTTPStatus.SERVICE_UNAVAILABLE if status.status == UNHEALTHY else HTTPStatus.OK
        self._send(code, status.to_dict())

    def _send(self, code: HTTPStatus, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("health %s - %s", self.address_string(), format % args)


def parse_address(address: str) -> tuple[str, int]:
    """Parse ``host:port`` or ``:port`` (all interfaces)."""

    host, sep, port = address.rpartition(":")
    if not sep:
        host, port = "", address
    try:
        number = int(port)
    except ValueError as exc:
        raise ValueError(f"invalid listen address {address!r}") from exc
    return host or "0.0.0.0", number


class HealthServer:
    """Serve :class:`HealthChecker` status from a daemon thread."""

    def __init__(self, checker: HealthChecker, address: str = ":8080") -> None:
        self.checker = checker
        self.address = address
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> Optional[int]:
        if self._server is None:
            return None
        return self._server.server_address[1]

    def start(self) -> None:
        handler = type("HealthHandler", (_HealthHandler,), {"checker": self.checker})
        self._server = ThreadingHTTPServer(parse_address(self.address), handler)
        self._server.daemon_threads = True
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="health-server", daemon=True
        )
        self._thread.start()
        logger.info("HTTP server started on %s", self.address)

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
