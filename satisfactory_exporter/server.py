import logging
import socket
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

from .errors import SerializationFault
from .metrics import MetricStore

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"


class MetricsHandler(BaseHTTPRequestHandler):
    server: "MetricsServer"

    def send_body(self, status: int, body: bytes, content_type: str, head_only: bool = False) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if not head_only:
            self.wfile.write(body)

    def serve_metrics(self, head_only: bool) -> None:
        if urlparse(self.path).path != METRICS_PATH:
            return self.send_body(404, b"Not Found\n", "text/plain; charset=utf-8", head_only)

        store = self.server.store
        try:
            body = store.serialize()
        except SerializationFault:
            logger.exception("failed to serialize metrics")
            return self.send_body(500, b"Internal Server Error\n", "text/plain; charset=utf-8", head_only)
        return self.send_body(200, body, store.content_type, head_only)

    def do_GET(self) -> None:
        self.serve_metrics(head_only=False)

    def do_HEAD(self) -> None:
        self.serve_metrics(head_only=True)

    def log_message(self, fmt: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), fmt % args)


class MetricsServer(ThreadingHTTPServer):
    """Serves a MetricStore on GET /metrics, one thread per connection."""

    daemon_threads = True

    def __init__(self, store: MetricStore, host: str = "127.0.0.1", port: int = 3030) -> None:
        self.store = store
        if ":" in host:
            self.address_family = socket.AF_INET6
        super().__init__((host, port), MetricsHandler)

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{port}{METRICS_PATH}"

