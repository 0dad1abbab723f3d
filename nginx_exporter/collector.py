"""
Author: Ziv P.H
Date: 2026-10-18
Description:
Prometheus collector for the upstream status page.

Every collection scrapes the upstream once, swaps in the freshly parsed
backend counters and hands a complete snapshot to the registry.
"""

import logging
import threading
from typing import Dict, List, Optional

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from nginx_exporter.config import UpstreamConfig
from nginx_exporter.exceptions import ProtocolError, ScrapeError
from nginx_exporter.fetcher import StatusFetcher
from nginx_exporter.status_parser import (
    CATEGORIES,
    BackendCounts,
    BackendKey,
    parse_document,
)

logger = logging.getLogger(__name__)

BACKEND_LABELS = ["upstream", "name", "status"]
ERROR_LABELS = ["collector"]


class StatusCollector:
    """
    Collects upstream stats from the given URI and exports them through
    prometheus_client's custom collector interface (describe/collect).
    """

    def __init__(
        self,
        uri: str,
        insecure: bool = True,
        timeout: float = 5.0,
        namespace: str = "nginx",
        fetcher: Optional[StatusFetcher] = None,
    ):
        """
        Initialize the collector with empty state and up=0.

        Args:
            uri (str): Location of the upstream status document.
            insecure (bool): Skip TLS certificate verification.
            timeout (float): Fetch timeout in seconds.
            namespace (str): Prefix for all exported metric names.
            fetcher (Optional[StatusFetcher]): Pre-built fetcher, mainly for tests.
        """
        self.uri = uri
        self.namespace = namespace
        self.fetcher = fetcher or StatusFetcher(uri, insecure=insecure, timeout=timeout)

        self._lock = threading.Lock()
        self.up = 0
        self.backends: Dict[BackendKey, BackendCounts] = {}
        self.parse_errors: Dict[str, int] = dict.fromkeys(CATEGORIES, 0)

    @classmethod
    def from_config(cls, cfg: UpstreamConfig) -> "StatusCollector":
        return cls(
            cfg.scrape_uri,
            insecure=cfg.insecure,
            timeout=cfg.timeout_seconds,
            namespace=cfg.namespace,
        )

    # metric families

    def _up_family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            f"{self.namespace}_up", "Whether the upstream status page is up."
        )

    def _raise_family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            f"{self.namespace}_raise", "Number of raise status.", labels=BACKEND_LABELS
        )

    def _fail_family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            f"{self.namespace}_fail", "Number of fail status.", labels=BACKEND_LABELS
        )

    def _errors_family(self) -> CounterMetricFamily:
        return CounterMetricFamily(
            f"{self.namespace}_exporter_scrape_errors_total",
            "Number of errors while parsing the upstream status page.",
            labels=ERROR_LABELS,
        )

    def describe(self) -> List[Metric]:
        """
        Describe all the metrics ever exported by this collector.
        Needs no scrape and no lock: the families never change.
        """
        return [
            self._up_family(),
            self._raise_family(),
            self._fail_family(),
            self._errors_family(),
        ]

    # scrape/collect

    def scrape(self) -> None:
        """
        Fetch and parse the status document once, updating state in place.

        Transport and protocol failures set up=0 and leave backends and
        parse error counters as they were. Callers must hold the lock.
        """
        try:
            body = self.fetcher.fetch()
        except ProtocolError as e:
            logger.warning("Status %s (%d): %s", e.reason, e.status_code, e.body)
            self.up = 0
            return
        except ScrapeError as e:
            logger.error("Error calling status API: %s", e)
            self.up = 0
            return

        self.up = 1
        result = parse_document(body)
        self.backends = result.backends
        for category, count in result.errors.items():
            self.parse_errors[category] += count

    def _snapshot(self) -> List[Metric]:
        up = self._up_family()
        up.add_metric([], self.up)

        raise_family = self._raise_family()
        fail_family = self._fail_family()
        for key in sorted(self.backends):
            counts = self.backends[key]
            if counts.raise_count is not None:
                raise_family.add_metric(list(key), counts.raise_count)
            if counts.fail_count is not None:
                fail_family.add_metric(list(key), counts.fail_count)

        errors = self._errors_family()
        for category in CATEGORIES:
            errors.add_metric([category], self.parse_errors[category])

        return [up, raise_family, fail_family, errors]

    def collect(self) -> List[Metric]:
        """
        Scrape the upstream and return the resulting metric families.
        Scrape and snapshot happen under one lock so concurrent requests
        each see the outcome of a single complete scrape.
        """
        with self._lock:
            self.scrape()
            return self._snapshot()
