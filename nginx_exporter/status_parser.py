"""
Author: Ziv P.H
Date: 2026-10-18
Description:

Turn the upstream status document into per-backend counters.

The public surface (parse_document(body))
Internally we follow single-responsibility:
decode ➜ split lines ➜ split fields ➜ cast ➜ assemble.
Every record looks like
    index,upstream,name,status,raise,fail,protocol,extra
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Union

from nginx_exporter.exceptions import (
    CastError,
    FieldCountMismatch,
    RecordParseError,
)

logger = logging.getLogger(__name__)

DELIMITER = ","

RAISE = "raise"
FAIL = "fail"
CATEGORIES = (RAISE, FAIL)

# positions inside a record
_UPSTREAM, _NAME, _STATUS, _RAISE, _FAIL = 1, 2, 3, 4, 5
_MIN_FIELDS = _FAIL + 1


class BackendKey(NamedTuple):
    upstream: str
    name: str
    status: str


@dataclass
class BackendCounts:
    """Counters for one backend; None means not observed in this pass."""
    raise_count: Optional[int] = None
    fail_count: Optional[int] = None


@dataclass
class ParseResult:
    """Outcome of one pass over a status document."""
    backends: Dict[BackendKey, BackendCounts] = field(default_factory=dict)
    errors: Dict[str, int] = field(default_factory=lambda: dict.fromkeys(CATEGORIES, 0))

    @property
    def error_count(self) -> int:
        return sum(self.errors.values())


def _to_str(body: Union[str, bytes]) -> str:
    """Return *body* as text; undecodable bytes become U+FFFD and fail casting later."""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def _split_line(line: str) -> List[str]:
    """
    Split *line* and make sure we got at least the counter columns.
    Args:
        line (str): The record to split.
    Returns:
        List[str]: The stripped columns of the record.
    Raises:
        FieldCountMismatch: If the record is too short to hold both counters.
    """
    parts = line.split(DELIMITER)
    if len(parts) < _MIN_FIELDS:
        raise FieldCountMismatch(
            f"Expected at least {_MIN_FIELDS} fields, got {len(parts)}: '{line}'",
            category=RAISE,
        )
    return [p.strip() for p in parts]


def _to_count(value: str, category: str) -> int:
    """
    Cast *value* to a non-negative integer.
    Raises:
        CastError: If the value is not a plain run of ASCII digits.
    """
    if not (value.isascii() and value.isdigit()):
        raise CastError(f"Failed casting '{value}' → {category} count", category=category)
    try:
        return int(value)
    except (ValueError, OverflowError) as e:
        # e.g. more digits than int() is allowed to convert
        raise CastError(
            f"Failed casting {len(value)}-digit value → {category} count", category=category
        ) from e


def parse_record(line: str, result: ParseResult) -> None:
    """
    Apply one record onto *result*.

    The raise and fail columns are cast independently: a bad raise column
    still lets a good fail column through and vice versa. A zero fail count
    is treated as "no failure observed" and never stored.

    Args:
        line (str): A single non-blank record.
        result (ParseResult): The pass being assembled.
    Raises:
        FieldCountMismatch: If the record is too short; nothing is applied.
    """
    parts = _split_line(line)
    key = BackendKey(parts[_UPSTREAM], parts[_NAME], parts[_STATUS])
    counts = BackendCounts()

    try:
        counts.raise_count = _to_count(parts[_RAISE], RAISE)
    except CastError as e:
        logger.debug("Error parsing raise count: %s", e)
        result.errors[RAISE] += 1

    try:
        fail_count = _to_count(parts[_FAIL], FAIL)
        if fail_count != 0:
            counts.fail_count = fail_count
    except CastError as e:
        logger.debug("Error parsing fail count: %s", e)
        result.errors[FAIL] += 1

    if counts.raise_count is None and counts.fail_count is None:
        return
    # later records for the same backend win
    previous = result.backends.get(key)
    if previous is not None:
        if counts.raise_count is None:
            counts.raise_count = previous.raise_count
        if counts.fail_count is None:
            counts.fail_count = previous.fail_count
    result.backends[key] = counts


def parse_document(body: Union[str, bytes]) -> ParseResult:
    """
    Parse a full status document into a fresh set of backend counters.
    Args:
        body (Union[str, bytes]): The raw response body.
    Returns:
        ParseResult: Backends seen in this document plus per-category error counts.
    """
    result = ParseResult()
    # records end at "\n" only; other line breaks may appear inside labels
    for line in _to_str(body).split("\n"):
        line = line.rstrip("\r")
        if not line.strip():
            continue
        try:
            parse_record(line, result)
        except RecordParseError as e:
            logger.debug("Skipping malformed record: %s", e)
            result.errors[e.category] += 1

    if result.error_count:
        logger.warning(
            "Status document had %d unparsable field(s): %s",
            result.error_count, result.errors,
        )
    logger.debug("Parsed %d backend(s)", len(result.backends))
    return result
