"""
ticketsync Webhook Server

Architectural Intent:
- Lightweight web server built entirely on Python stdlib (http.server + asyncio).
- Receives ConnectWise and PagerDuty webhooks and hands them to the sync use cases.
- The web layer is a thin presentation adapter: parse, dispatch, map the
  SyncResult onto an HTTP status. No sync decisions are made here.

API Surface:
    GET  /                               -> plain-text liveness banner
    GET  /health                         -> JSON health check
    POST /connectwise/webhook            -> ConnectWise ticket callback
    POST /pagerduty/webhook              -> PagerDuty v3 webhook (signed)
    GET  /connectwise/sync-ticket/{id}   -> manually sync one ticket
    GET  /pagerduty/last-event           -> last PagerDuty payload received (debug)

Threading Model:
    A ThreadingHTTPServer runs in a background thread so each request gets its
    own handler thread. Handlers submit the use case coroutine to the asyncio
    event loop captured in start(), so all sync work (and the dedup guard) is
    cooperatively scheduled on that single loop.

Raw Body:
    PagerDuty signatures cover the exact request bytes. The PagerDuty handler
    reads the body once as bytes and verifies against those bytes; JSON
    parsing happens separately and never feeds back into verification.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Coroutine, Optional

from ticketsync.application.dtos.webhook_dtos import (
    IncidentWebhookEvent,
    SyncOutcome,
    SyncResult,
    TicketWebhookEvent,
)
from ticketsync.composition_root import TicketSyncContainer
from ticketsync.domain.services.signature_verifier import SIGNATURE_HEADER

logger = logging.getLogger(__name__)

BANNER = "ConnectWise <-> PagerDuty integration running (Webhook V3)"
REQUEST_TIMEOUT = 120.0

_SYNC_TICKET_RE = re.compile(r"^/connectwise/sync-ticket/([^/?]+)$")


# ---------------------------------------------------------------------------
# Request handler
# ---------------------------------------------------------------------------

class TicketSyncRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the webhook endpoints.

    Attributes on the *server* instance (set by TicketSyncWebApp):
        app: TicketSyncWebApp -- container, event loop, last PagerDuty event
    """

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("web: %s", format % args)

    @property
    def app(self) -> TicketSyncWebApp:
        return self.server.app  # type: ignore[attr-defined]

    # ---- routing -----------------------------------------------------------

    def do_GET(self) -> None:  # noqa: N802
        """Route GET requests."""
        if self.path == "/":
            self._send_text(BANNER)
        elif self.path == "/health":
            self._send_json({"status": "ok"})
        elif self.path == "/pagerduty/last-event":
            self._serve_last_event()
        else:
            match = _SYNC_TICKET_RE.match(self.path)
            if match:
                self._handle_manual_sync(match.group(1))
            else:
                self._send_json({"message": "not found"}, HTTPStatus.NOT_FOUND)

    def do_POST(self) -> None:  # noqa: N802
        """Route POST requests."""
        if self.path == "/connectwise/webhook":
            self._handle_connectwise()
        elif self.path == "/pagerduty/webhook":
            self._handle_pagerduty()
        else:
            self._send_json({"message": "not found"}, HTTPStatus.NOT_FOUND)

    # ---- endpoint implementations ------------------------------------------

    def _handle_connectwise(self) -> None:
        raw = self._read_body()
        try:
            body = json.loads(raw) if raw else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            self._send_json({"message": "invalid JSON body"}, HTTPStatus.BAD_REQUEST)
            return
        if not isinstance(body, dict):
            self._send_json({"message": "invalid JSON body"}, HTTPStatus.BAD_REQUEST)
            return

        logger.debug("ConnectWise webhook received: %s", body)
        event = TicketWebhookEvent.from_body(body)
        result = self.app.dispatch(
            "connectwise",
            self.app.container.ticket_to_incident.execute(event),
            {"webhook.type": event.type},
        )
        self._send_result(result)

    def _handle_pagerduty(self) -> None:
        raw = self._read_body()
        event = IncidentWebhookEvent.from_raw(raw, self.headers.get(SIGNATURE_HEADER))
        if event.payload is not None:
            self.app.last_pagerduty_event = event.payload
        result = self.app.dispatch(
            "pagerduty",
            self.app.container.incident_to_ticket.execute(event),
            {"webhook.event_type": event.event_type},
        )
        self._send_result(result)

    def _handle_manual_sync(self, raw_id: str) -> None:
        if not raw_id.isdigit():
            self._send_json({"message": "ticket id must be numeric"}, HTTPStatus.BAD_REQUEST)
            return
        result = self.app.dispatch(
            "manual",
            self.app.container.manual_sync.execute(int(raw_id)),
            {"ticket.id": raw_id},
        )
        self._send_result(result)

    def _serve_last_event(self) -> None:
        event = self.app.last_pagerduty_event
        if event is None:
            self._send_json(
                {"message": "No webhook event received yet"}, HTTPStatus.NOT_FOUND
            )
            return
        self._send_json(event)

    # ---- helpers -----------------------------------------------------------

    def _read_body(self) -> bytes:
        try:
            content_length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            content_length = 0
        return self.rfile.read(content_length) if content_length > 0 else b""

    def _send_result(self, result: SyncResult) -> None:
        self._send_json(result.to_dict(), result.http_status)

    def _send_text(self, text: str, status: HTTPStatus = HTTPStatus.OK) -> None:
        body = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, data: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        """Serialize *data* as JSON and send it as the HTTP response."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


# ---------------------------------------------------------------------------
# Web application wrapper
# ---------------------------------------------------------------------------

class TicketSyncWebApp:
    """Async-friendly webhook server.

    Usage::

        app = TicketSyncWebApp(container)
        await app.start("0.0.0.0", 3000)
        # ... later ...
        app.stop()
    """

    def __init__(self, container: TicketSyncContainer) -> None:
        self.container = container
        self.last_pagerduty_event: Optional[dict[str, Any]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._server is None:
            raise RuntimeError("Web server is not running")
        return self._server.server_address[1]

    def dispatch(
        self,
        direction: str,
        coro: Coroutine[Any, Any, SyncResult],
        attributes: Optional[dict[str, str]] = None,
    ) -> SyncResult:
        """Run a use case coroutine on the captured loop and wait for its result.

        Called from handler threads only.
        """
        if self._loop is None:
            coro.close()
            raise RuntimeError("Web server is not running")

        telemetry = self.container.telemetry
        with telemetry.span(f"ticketsync.webhook.{direction}", attributes):
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
            try:
                result = future.result(timeout=REQUEST_TIMEOUT)
            except Exception as exc:
                future.cancel()
                logger.error("%s webhook handling failed: %s", direction, exc)
                result = SyncResult(SyncOutcome.FAILED, "Internal Server Error")

        telemetry.record_outcome(direction, result)
        logger.info(
            "%s webhook -> %s (%d): %s",
            direction,
            result.outcome.value,
            result.http_status,
            result.message,
            extra={
                "ticket_id": result.ticket_id,
                "incident_id": result.incident_id,
                "outcome": result.outcome.value,
            },
        )
        return result

    async def start(self, host: str = "0.0.0.0", port: int = 3000) -> None:
        """Start the web server in a background thread.

        The current asyncio event loop is captured; every webhook's use case
        runs on it.
        """
        self._loop = asyncio.get_running_loop()
        self._server = ThreadingHTTPServer((host, port), TicketSyncRequestHandler)
        self._server.daemon_threads = True
        # Attach application state to the server so handlers can access it.
        self._server.app = self  # type: ignore[attr-defined]

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="ticketsync-web",
        )
        self._thread.start()
        logger.info("ticketsync webhook server started on http://%s:%d", host, self.port)

    def stop(self) -> None:
        """Shut down the web server gracefully."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            logger.info("ticketsync webhook server stopped")
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        self._loop = None
