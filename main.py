"""
Author: Ziv P.H
Date: 2026-10-18
Description:
Main entry point for the nginx upstream exporter.

Handles configuration loading, logging setup, collector registration and the HTTP server loop.
"""

import logging
import sys

from prometheus_client import REGISTRY

from nginx_exporter.collector import StatusCollector
from nginx_exporter.config import get_config
from nginx_exporter.server import create_server


def setup_logging(level: str):
    root = logging.getLogger()
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    # Remove default handlers
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)-5s %(name)s: %(message)s"))
    root.addHandler(ch)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def main():
    cfg = get_config()

    setup_logging(cfg.logging.level)
    logging.info("Starting Nginx Exporter, scraping %s", cfg.upstream.scrape_uri)

    collector = StatusCollector.from_config(cfg.upstream)
    REGISTRY.register(collector)

    try:
        httpd = create_server(cfg.telemetry)
    except OSError:
        logging.exception("Could not listen on %s:%d", cfg.telemetry.address, cfg.telemetry.port)
        sys.exit(1)

    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logging.info("Exporter interrupted by user, shutting down")
    finally:
        httpd.server_close()
        collector.fetcher.close()


if __name__ == '__main__':
    main()
