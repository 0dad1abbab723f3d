import logging
import threading
import time
from socketserver import ThreadingMixIn
from wsgiref.util import setup_testing_defaults

import requests
from prometheus_client import CollectorRegistry
from prometheus_client.parser import text_string_to_metric_families

from nginx_exporter.collector import StatusCollector
from nginx_exporter.config import TelemetryConfig
from nginx_exporter.server import (
    LoggingRequestHandler,
    create_app,
    create_server,
    render_landing_page,
)


class StaticFetcher:
    def fetch(self):
        return b"0,us1,10.1.0.1:80,up,8247,2,tcp,0\n"


def call(app, path):
    environ = {"PATH_INFO": path}
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


def make_app(endpoint="/metrics"):
    registry = CollectorRegistry()
    registry.register(StatusCollector("http://upstream/status", fetcher=StaticFetcher()))
    return create_app(TelemetryConfig(endpoint=endpoint), registry)


def test_landing_page_links_configured_endpoint():
    page = render_landing_page(TelemetryConfig(endpoint="/custom"))
    assert b'<a href="/custom">Metrics</a>' in page


def test_root_serves_landing_page():
    status, headers, body = call(make_app(), "/")
    assert status.startswith("200")
    assert headers["Content-Type"].startswith("text/html")
    assert b"Nginx Exporter" in body


def test_metrics_endpoint_serves_registry():
    status, _, body = call(make_app("/stats"), "/stats")
    assert status.startswith("200")
    values = {
        (s.name, tuple(sorted(s.labels.items()))): s.value
        for family in text_string_to_metric_families(body.decode("utf-8"))
        for s in family.samples
    }
    backend = (("name", "10.1.0.1:80"), ("status", "up"), ("upstream", "us1"))
    assert values[("nginx_up", ())] == 1
    assert values[("nginx_raise", backend)] == 8247
    assert values[("nginx_fail", backend)] == 2
    assert values[("nginx_exporter_scrape_errors_total", (("collector", "raise"),))] == 0


def test_default_metrics_path_not_served_when_endpoint_changes():
    _, _, body = call(make_app("/stats"), "/metrics")
    assert b"Nginx Exporter" in body


def test_server_is_threaded_and_logs_access_lines(caplog):
    cfg = TelemetryConfig.model_construct(address="127.0.0.1", port=0, endpoint="/metrics")
    registry = CollectorRegistry()
    registry.register(StatusCollector("http://upstream/status", fetcher=StaticFetcher()))
    httpd = create_server(cfg, registry)
    assert isinstance(httpd, ThreadingMixIn)
    assert httpd.RequestHandlerClass is LoggingRequestHandler

    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        with caplog.at_level(logging.DEBUG, logger="nginx_exporter.server"):
            resp = requests.get(f"http://127.0.0.1:{httpd.server_port}/", timeout=5)
            assert resp.status_code == 200
            assert "Nginx Exporter" in resp.text
            # the access line is written once the handler finishes
            deadline = time.monotonic() + 5
            while not any('"GET / HTTP/1.1" 200' in r.getMessage() for r in caplog.records):
                assert time.monotonic() < deadline
                time.sleep(0.01)
    finally:
        httpd.shutdown()
        httpd.server_close()
