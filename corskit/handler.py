"""
http.server adapter for the CORS decision engine.

Reads Origin / Access-Control-Request-Method from the incoming request,
evaluates them against the shared CorsConfig, and writes the resulting
headers. Preflight requests are short-circuited with 405 before any
application logic runs.

Usage:
    from corskit.handler import run_server
    run_server(host="127.0.0.1", port=8080)
"""

import json
import http.server
from typing import Callable, Mapping, Optional

from corskit.config import get_settings
from corskit.cors import (
    ACCESS_CONTROL_REQUEST_METHOD,
    ORIGIN,
    CorsConfig,
    CorsDecision,
    create_cors_config,
    evaluate,
)
from corskit.logging_config import get_logger

logger = get_logger("handler")

VARY = "Vary"


def get_header(headers: Optional[Mapping], name: str) -> Optional[str]:
    """Case-insensitive header lookup. Missing or empty values give None."""
    if not headers:
        return None
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key and key.lower() == lowered:
                value = candidate
                break
    return value or None


def evaluate_request(method: str, headers: Optional[Mapping], config: CorsConfig) -> CorsDecision:
    """Evaluate a request given its method and header mapping."""
    return evaluate(
        get_header(headers, ORIGIN),
        method,
        get_header(headers, ACCESS_CONTROL_REQUEST_METHOD),
        config,
    )


class CorsHandlerMixin:
    """CORS support for BaseHTTPRequestHandler subclasses.

    Bind ``cors_config`` up front (see make_handler_class). When left as
    None the policy is rebuilt from the cached process settings per request
    and never written back onto the class.
    """

    cors_config: Optional[CorsConfig] = None

    def get_cors_config(self) -> CorsConfig:
        if self.cors_config is None:
            return create_cors_config(get_settings())
        return self.cors_config

    def cors_decision(self) -> CorsDecision:
        return evaluate_request(self.command, self.headers, self.get_cors_config())

    def send_cors_headers(self, decision: CorsDecision) -> None:
        """Insert the decision's headers, plus Vary: Origin when any were granted.

        The allowed origin is echoed per request, so shared caches must key
        on Origin.
        """
        for key, value in decision.headers.items():
            self.send_header(key, value)
        if decision.headers:
            self.send_header(VARY, ORIGIN)

    def handle_cors_preflight(self, decision: CorsDecision) -> bool:
        """Answer a preflight with 405 and the CORS headers.

        The requested method is checked against allowed_methods for a debug
        line only; the response is the same either way.

        Returns:
            True if a response was sent and the caller must stop.
        """
        if not decision.is_preflight:
            return False

        requested = get_header(self.headers, ACCESS_CONTROL_REQUEST_METHOD)
        if not self.get_cors_config().allows_method(requested):
            logger.debug(f"preflight requested method not in allowed methods: {requested}")

        self.send_response(decision.status)
        self.send_cors_headers(decision)
        self.send_header("Content-Length", "0")
        self.end_headers()
        return True


class CorsDemoHandler(CorsHandlerMixin, http.server.BaseHTTPRequestHandler):
    """Minimal handler showing the caller contract.

    GET/HEAD answer 200, plain OPTIONS answers 204, anything else 405.
    CORS headers go on every non-preflight response.
    """

    server_version = "corskit"

    # ---- helpers ----

    def _send_json(self, data, status=200, decision: Optional[CorsDecision] = None, body=True):
        payload = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.send_header("X-Content-Type-Options", "nosniff")
        if decision is not None:
            self.send_cors_headers(decision)
        self.end_headers()
        if body:
            self.wfile.write(payload)

    def _send_empty(self, status, decision: Optional[CorsDecision] = None):
        self.send_response(status)
        if decision is not None:
            self.send_cors_headers(decision)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _dispatch(self, app: Callable[[CorsDecision], None]):
        decision = self.cors_decision()
        if self.handle_cors_preflight(decision):
            return
        app(decision)

    def _method_not_allowed(self, decision: CorsDecision):
        self._send_json({"error": "method not allowed"}, 405, decision)

    def log_message(self, format, *args):
        """접근 로그를 logger로 전달"""
        logger.debug(f"{self.address_string()} {format % args}")

    # ---- HTTP methods ----

    def do_OPTIONS(self):
        self._dispatch(lambda decision: self._send_empty(204, decision))

    def do_GET(self):
        self._dispatch(lambda decision: self._send_json({"status": "ok"}, 200, decision))

    def do_HEAD(self):
        self._dispatch(lambda decision: self._send_json({"status": "ok"}, 200, decision, body=False))

    def do_POST(self):
        self._dispatch(self._method_not_allowed)

    def do_PUT(self):
        self._dispatch(self._method_not_allowed)

    def do_PATCH(self):
        self._dispatch(self._method_not_allowed)

    def do_DELETE(self):
        self._dispatch(self._method_not_allowed)


def make_handler_class(config: CorsConfig, base=CorsDemoHandler):
    """Return a handler subclass bound to the given policy."""
    return type(f"Configured{base.__name__}", (base,), {"cors_config": config})


def create_server(host: str = "127.0.0.1", port: int = 8080,
                  config: Optional[CorsConfig] = None) -> http.server.ThreadingHTTPServer:
    """Build (but do not start) a ThreadingHTTPServer serving CorsDemoHandler."""
    if config is None:
        config = create_cors_config(get_settings())
    return http.server.ThreadingHTTPServer((host, port), make_handler_class(config))


def run_server(host: str = "127.0.0.1", port: int = 8080,
               config: Optional[CorsConfig] = None) -> None:
    """데모 서버 실행 (기본 127.0.0.1 로컬 전용)"""
    server = create_server(host, port, config)
    bound_host, bound_port = server.server_address[:2]
    logger.info(f"serving on http://{bound_host}:{bound_port} with {server.RequestHandlerClass.cors_config!r}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
    finally:
        server.server_close()
