"""HTTP surface: root page and metrics endpoint."""

from socketserver import ThreadingMixIn
from typing import Callable, Type
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server
import socket

from prometheus_client import CollectorRegistry, make_wsgi_app

from .utils.logger import get_logger


ROOT_PAGE = """<html>
<head><title>AWS EC2 Price Exporter</title></head>
<body>
<h1>AWS EC2 Price Exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
</body>
</html>
"""


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _ThreadingWSGIServerV6(_ThreadingWSGIServer):
    address_family = socket.AF_INET6


class _QuietHandler(WSGIRequestHandler):
    """Route access logs to the application logger at DEBUG."""

    logger = get_logger("http")

    def log_message(self, format, *args):
        self.logger.debug(format % args)


def create_app(registry: CollectorRegistry, metrics_path: str = "/metrics") -> Callable:
    """
    Build the WSGI application.

    Args:
        registry: Registry holding the price exporter
        metrics_path: Path serving the exposition

    Returns:
        Callable: WSGI application
    """
    metrics_app = make_wsgi_app(registry)
    root_page = ROOT_PAGE.format(metrics_path=metrics_path).encode("utf-8")

    def app(environ, start_response):
        path = environ.get("PATH_INFO", "/") or "/"

        if path == metrics_path:
            return metrics_app(environ, start_response)

        if path == "/":
            start_response("200 OK", [
                ("Content-Type", "text/html; charset=utf-8"),
                ("Content-Length", str(len(root_page))),
            ])
            return [root_page]

        body = b"Not Found\n"
        start_response("404 Not Found", [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("Content-Length", str(len(body))),
        ])
        return [body]

    return app


def server_class_for(host: str) -> Type[WSGIServer]:
    """IPv6 hosts (unbracketed, as ExporterConfig.host returns them) need an AF_INET6 socket."""
    return _ThreadingWSGIServerV6 if ":" in host else _ThreadingWSGIServer


def make_http_server(app: Callable, host: str, port: int) -> WSGIServer:
    """Create a threaded WSGI server; call ``serve_forever`` to run it."""
    return make_server(
        host,
        port,
        app,
        server_class=server_class_for(host),
        handler_class=_QuietHandler
    )
