"""Dataset acquisition: fetch, optional gunzip, and JSON / JSON Lines parsing.

Hides the fetch details behind a small interface:
- ``fetch_text(source)`` returns decoded text from an http(s) URL or local path
- ``parse_records(text, jsonl=...)`` turns that text into loosely typed rows
- ``load_records(source)`` chains both and normalizes into ``Record`` objects

Every failure surfaces as ``DataAcquisitionError`` so callers can keep their
current index untouched.
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote, urlsplit
import zlib

import httpx
import orjson
from pydantic import BaseModel, ConfigDict

from register_search.acquisition.normalize import normalize_records
from register_search.exceptions import DataAcquisitionError


if TYPE_CHECKING:
    from register_search.config import Settings
    from register_search.search.models import Record

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "register-search/0.1"

# Containers some exports wrap their rows in instead of a bare array.
_WRAPPER_KEYS = ("records", "data", "items")

_LINE_SPLIT = re.compile(r"\r?\n")


class DataSource(BaseModel):
    """Where a dataset lives and how it is encoded."""

    model_config = ConfigDict(frozen=True)

    url: str
    gzipped: bool = False
    jsonl: bool = False

    @property
    def is_remote(self) -> bool:
        return urlsplit(self.url).scheme in {"http", "https"}

    def local_path(self) -> Path:
        """Filesystem path for ``file://`` URLs and plain paths."""
        parts = urlsplit(self.url)
        if parts.scheme == "file":
            return Path(unquote(parts.path))
        return Path(self.url).expanduser()


async def fetch_bytes(
    source: DataSource,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: httpx.AsyncClient | None = None,
) -> bytes:
    """Fetch the raw payload for ``source``.

    Args:
        source: Dataset location
        timeout: HTTP timeout in seconds
        user_agent: User-Agent header for remote fetches
        client: Optional preconfigured client (tests inject a mock transport)

    Raises:
        DataAcquisitionError: On non-2xx responses, transport errors or unreadable files
    """
    if not source.is_remote:
        path = source.local_path()
        try:
            return path.read_bytes()
        except OSError as exc:
            raise DataAcquisitionError(f"Failed to read {path}: {exc}", source=source.url) from exc

    headers = {
        "User-Agent": user_agent,
        "Accept": "application/json, application/x-ndjson, text/plain;q=0.9, */*;q=0.8",
        "Cache-Control": "no-store",
    }

    if client is None:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True) as owned:
            return await _get(owned, source.url, headers)
    return await _get(client, source.url, headers)


async def _get(client: httpx.AsyncClient, url: str, headers: dict[str, str]) -> bytes:
    logger.info("Fetching dataset: %s", url)
    try:
        resp = await client.get(url, headers=headers)
    except httpx.HTTPError as exc:
        raise DataAcquisitionError(f"Failed to fetch {url}: {exc}", source=url) from exc

    if not resp.is_success:
        raise DataAcquisitionError(f"Failed to fetch {url}: {resp.status_code}", source=url)

    logger.debug("Dataset response: %d bytes", len(resp.content))
    return resp.content


def decode_payload(payload: bytes, *, gzipped: bool, source: str | None = None) -> str:
    """Decompress (when asked) and decode a payload as UTF-8.

    Payloads flagged as gzipped but missing the gzip magic are assumed to have
    been decompressed in transit already.
    """
    if gzipped and payload[:2] == GZIP_MAGIC:
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as exc:
            raise DataAcquisitionError(f"Failed to decompress {source or 'payload'}: {exc}", source=source) from exc
    return payload.decode("utf-8-sig", errors="replace")


async def fetch_text(
    source: DataSource,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch ``source`` and return its decoded text."""
    payload = await fetch_bytes(source, timeout=timeout, user_agent=user_agent, client=client)
    return decode_payload(payload, gzipped=source.gzipped, source=source.url)


def parse_records(text: str, *, jsonl: bool = False) -> list[Any]:
    """Parse dataset text into a list of loosely typed rows.

    JSON Lines: one value per non-blank line; a line that is not valid JSON
    becomes ``{"id": "line-<i>", "name": <line>}``.

    JSON: an array is used as-is, an object wrapping a list under ``records``,
    ``data`` or ``items`` is unwrapped, and any other value becomes a single
    row. Text that is not JSON at all is read as one name per line.
    """
    lines = [line for line in _LINE_SPLIT.split(text) if line.strip()]

    if jsonl:
        rows: list[Any] = []
        for i, line in enumerate(lines):
            try:
                rows.append(orjson.loads(line))
            except orjson.JSONDecodeError:
                rows.append({"id": f"line-{i}", "name": line})
        return rows

    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError:
        logger.warning("Dataset is not valid JSON; reading %d lines as names", len(lines))
        return [{"id": i + 1, "name": line} for i, line in enumerate(lines)]

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
    return [data]


async def load_records(
    source: DataSource,
    settings: Settings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> list[Record]:
    """Fetch, parse and normalize a dataset."""
    timeout = float(settings.http_timeout) if settings else DEFAULT_TIMEOUT
    user_agent = settings.user_agent if settings else DEFAULT_USER_AGENT

    text = await fetch_text(source, timeout=timeout, user_agent=user_agent, client=client)
    rows = parse_records(text, jsonl=source.jsonl)
    records = normalize_records(rows)
    logger.info("Loaded %d records from %s", len(records), source.url)
    return records
