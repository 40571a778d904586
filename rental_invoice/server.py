"""HTTP server entrypoints for invoice issuing."""

from __future__ import annotations

import errno
import json
import os
import sys
import threading
import traceback
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

from .config import LISTEN_BACKLOG, MAX_BODY_BYTES, MAX_INFLIGHT, QUEUE_TIMEOUT_MS
from .errors import DependencyError, InvoiceError, UnknownError, ValidationError
from .models import Tenant
from .service import InvoiceService
from .validation import decode_json_body, parse_year

STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")
FORM_PATH = os.path.join(STATIC_DIR, "index.html")

POST_PATHS = ("/api/generate-invoice", "/invoice", "/generate")
INVOICES_PATH = "/api/invoices"
HEALTH_PATHS = ("/health", "/healthz", "/ready")

DISCONNECT_ERRNOS = {
    errno.EPIPE,
    errno.ECONNRESET,
    errno.ETIMEDOUT,
}


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


def check_renderer() -> None:
    try:
        from . import rendering  # noqa: F401
    except ModuleNotFoundError as exc:
        if exc.name == "fpdf":
            raise DependencyError(
                "Missing dependency 'fpdf2'. Install project dependencies with "
                "'pip install -e .'."
            ) from exc
        raise


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{filename}"'


class InvoiceRequestHandler(BaseHTTPRequestHandler):
    server: "InvoiceHTTPServer"

    def _write_response(
        self,
        status: int,
        content_type: str,
        body: bytes,
        headers: Optional[Sequence[Tuple[str, str]]] = None,
    ) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in headers or ():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Any) -> bool:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _send_error(self, exc: InvoiceError) -> bool:
        return self._send_json(exc.status, exc.to_payload())

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(411, {"error": "Content-Length header is required.", "code": "missing_content_length"})
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(400, {"error": "Content-Length must be an integer.", "code": "invalid_content_length"})
            return None

        if content_length <= 0:
            self._send_json(400, {"error": "Request body cannot be empty.", "code": "empty_body"})
            return None

        if content_length > self.server.max_body_bytes:
            self._send_json(
                413,
                {
                    "error": f"Body exceeds {self.server.max_body_bytes} bytes.",
                    "code": "payload_too_large",
                },
            )
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def do_POST(self) -> None:
        if self.path not in POST_PATHS:
            self._send_json(404, {"error": "Unsupported endpoint.", "code": "not_found"})
            return

        body = self._read_body()
        if body is None:
            return

        try:
            payload = decode_json_body(body)
        except ValidationError as exc:
            self._send_error(exc)
            return

        acquired = self.server.inflight.acquire(timeout=self.server.queue_timeout_ms / 1000.0)
        if not acquired:
            self._send_json(
                503,
                {
                    "error": "Server is busy; retry shortly.",
                    "code": "server_busy",
                    "retry_after_ms": self.server.queue_timeout_ms,
                },
            )
            return

        try:
            issued = self.server.service.issue(payload)
        except InvoiceError as exc:
            if not isinstance(exc, ValidationError):
                traceback.print_exc(file=sys.stderr)
            self._send_error(exc)
            return
        except Exception as exc:
            traceback.print_exc(file=sys.stderr)
            self._send_error(UnknownError(str(exc) or exc.__class__.__name__))
            return
        finally:
            self.server.inflight.release()

        self._write_response(
            200,
            "application/pdf",
            issued.pdf,
            headers=[("Content-Disposition", content_disposition(issued.filename))],
        )

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        path = url.path
        if path in ("/", "/index.html"):
            self._send_form()
            return
        if path == "/api/tenants":
            self._send_json(200, [tenant.to_dict() for tenant in self.server.tenants])
            return
        if path in HEALTH_PATHS:
            self._send_json(200, {"status": "ok"})
            return
        if path == INVOICES_PATH:
            self._send_issued_invoices(parse_qs(url.query).get("year", [None])[-1])
            return
        if path.startswith(INVOICES_PATH + "/"):
            self._send_invoice(unquote(path[len(INVOICES_PATH) + 1 :]))
            return
        self._send_json(404, {"error": "Unsupported endpoint.", "code": "not_found"})

    def _send_issued_invoices(self, raw_year: Optional[str]) -> None:
        try:
            year, invoices = self.server.service.issued_invoices(parse_year(raw_year))
        except InvoiceError as exc:
            if not isinstance(exc, ValidationError):
                traceback.print_exc(file=sys.stderr)
            self._send_error(exc)
            return
        self._send_json(200, {"year": year, "invoices": [invoice.to_record() for invoice in invoices]})

    def _send_invoice(self, invoice_id: str) -> None:
        try:
            invoice = self.server.service.find_invoice(invoice_id)
        except InvoiceError as exc:
            traceback.print_exc(file=sys.stderr)
            self._send_error(exc)
            return
        if invoice is None:
            self._send_json(404, {"error": f"Invoice {invoice_id} not found.", "code": "not_found"})
            return
        self._send_json(200, invoice.to_record())

    def _send_form(self) -> None:
        with open(FORM_PATH, "rb") as handle:
            body = handle.read()
        self._write_response(200, "text/html; charset=utf-8", body)

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        return


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG

    def __init__(
        self,
        address: Tuple[str, int],
        service: InvoiceService,
        tenants: Optional[List[Tenant]] = None,
        max_inflight: int = MAX_INFLIGHT,
        queue_timeout_ms: int = QUEUE_TIMEOUT_MS,
        max_body_bytes: int = MAX_BODY_BYTES,
    ) -> None:
        self.service = service
        self.tenants: List[Tenant] = list(tenants or [])
        self.inflight = threading.BoundedSemaphore(max_inflight)
        self.queue_timeout_ms = queue_timeout_ms
        self.max_body_bytes = max_body_bytes
        super().__init__(address, InvoiceRequestHandler)


def run(
    host: str,
    port: int,
    service: InvoiceService,
    tenants: Optional[List[Tenant]] = None,
) -> None:
    check_renderer()
    server = InvoiceHTTPServer((host, port), service, tenants)
    print(f"Invoice API server listening on http://{host}:{port}")
    server.serve_forever()
