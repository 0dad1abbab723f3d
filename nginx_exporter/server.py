"""
Author: Ziv P.H
Date: 2026-10-18
Description:
HTTP surface of the exporter.

Serves the Prometheus registry under the configured endpoint and a small
landing page everywhere else.
"""

import logging
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import REGISTRY, CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

from nginx_exporter.config import TelemetryConfig

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Nginx Exporter</title></head>
<body>
<h1>Nginx Exporter</h1>
<p><a href="{endpoint}">Metrics</a></p>
</body>
</html>"""


class LoggingRequestHandler(WSGIRequestHandler):
    """Send access lines to the module logger instead of stderr."""

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def render_landing_page(cfg: TelemetryConfig) -> bytes:
    """Render the landing page linking to the configured metrics endpoint."""
    return LANDING_PAGE.format(endpoint=cfg.endpoint).encode("utf-8")


def create_app(cfg: TelemetryConfig, registry: CollectorRegistry = REGISTRY):
    """
    Build the WSGI application.

    Args:
        cfg (TelemetryConfig): Telemetry settings; the endpoint is read once here.
        registry (CollectorRegistry): Registry to expose.
    Returns:
        Callable: A WSGI application.
    """
    metrics_app = make_wsgi_app(registry)
    landing_page = render_landing_page(cfg)

    def app(environ, start_response):
        if environ.get("PATH_INFO", "/") == cfg.endpoint:
            return metrics_app(environ, start_response)
        start_response("200 OK", [
            ("Content-Type", "text/html; charset=utf-8"),
            ("Content-Length", str(len(landing_page))),
        ])
        return [landing_page]

    return app


def create_server(cfg: TelemetryConfig, registry: CollectorRegistry = REGISTRY) -> WSGIServer:
    """
    Bind the exporter's HTTP server.

    Raises:
        OSError: If the listen address cannot be bound.
    """
    httpd = make_server(
        cfg.address, cfg.port, create_app(cfg, registry),
        server_class=ThreadingWSGIServer,
        handler_class=LoggingRequestHandler,
    )
    logger.info("Listening on %s:%d", cfg.address, cfg.port)
    return httpd
