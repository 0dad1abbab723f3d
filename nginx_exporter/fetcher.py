"""
Author: Ziv P.H
Date: 2026-10-18
Description:
HTTP fetcher for the upstream status page.

Wraps a requests session configured for the upstream (TLS verification
toggle, timeout) and classifies failures into transport and protocol errors.
"""

import logging
import time

import requests
import urllib3

from nginx_exporter.exceptions import ProtocolError, TransportError

logger = logging.getLogger(__name__)

# how much of an error body ends up in logs
MAX_DIAGNOSTIC_BODY = 256
# the deadline is checked between chunks, keep them small
CHUNK_SIZE = 512


def _truncate(text: str, limit: int = MAX_DIAGNOSTIC_BODY) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class StatusFetcher:
    """
    Fetches the raw status document with one GET per call.
    """

    def __init__(self, uri: str, insecure: bool = True, timeout: float = 5.0):
        """
        Initialize the fetcher.

        Args:
            uri (str): Location of the upstream status document.
            insecure (bool): Skip TLS certificate verification for https URIs.
            timeout (float): Seconds allowed for connect and for read.
        """
        self.uri = uri
        self.timeout = timeout
        self.session = requests.Session()
        self.session.verify = not insecure
        if insecure and uri.startswith("https://"):
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        logger.debug("StatusFetcher initialized for %s (insecure=%s)", uri, insecure)

    def fetch(self) -> bytes:
        """
        Retrieve the status document.

        Returns:
            bytes: The response body of a 2xx/3xx response.

        Raises:
            TransportError: If the upstream could not be reached, or the whole
                fetch took longer than the timeout.
            ProtocolError: If the upstream answered outside 200..399.
        """
        deadline = time.monotonic() + self.timeout
        try:
            with self.session.get(self.uri, timeout=self.timeout, stream=True) as resp:
                body = self._read_body(resp, deadline)
        except requests.RequestException as e:
            raise TransportError(f"Error calling status API {self.uri}: {e}") from e

        if not 200 <= resp.status_code < 400:
            text = body.decode("utf-8", errors="replace")
            raise ProtocolError(resp.status_code, resp.reason or "", _truncate(text))
        return body

    def _read_body(self, resp, deadline: float) -> bytes:
        # requests' timeout applies per socket read; this bounds the whole body
        chunks = []
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise TransportError(
                    f"Error calling status API {self.uri}: body not received within {self.timeout}s"
                )
            chunks.append(chunk)
        return b"".join(chunks)

    def close(self) -> None:
        self.session.close()
