"""
Author: Ziv P.H
Date: 2026-10-18
Description:
Exception classes for the exporter.

Defines the scrape failures (transport and protocol) and the per-field
record parse errors raised while reading the upstream status document.
"""


class ExporterError(Exception):
    """Base class for all exporter errors – makes catching easy."""
    pass


class ScrapeError(ExporterError):
    """The status document could not be retrieved."""
    pass


class TransportError(ScrapeError):
    """Connection, TLS or timeout failure reaching the upstream."""
    pass


class ProtocolError(ScrapeError):
    """Upstream answered with a non-success status code."""

    def __init__(self, status_code: int, reason: str, body: str):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"Status {status_code} {reason}: {body}")


class RecordParseError(ExporterError, ValueError):
    """A status record (or one of its fields) could not be parsed."""

    def __init__(self, message: str, category: str):
        self.category = category
        super().__init__(message)


class FieldCountMismatch(RecordParseError):
    """Splitting produced fewer columns than required."""
    pass


class CastError(RecordParseError):
    """Counter field is not a non-negative integer."""
    pass
