"""Register search service.

Owns the "current index": an immutable ``IndexSnapshot`` pairing a record
collection with the inverted index built from it. Rebuilds construct a new
snapshot and install it with a single assignment, and every query works on the
snapshot reference it took when it started. A query running during a rebuild
therefore sees either the old snapshot or the new one, never a mix.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
import itertools
import logging
import threading

from pydantic import BaseModel, ConfigDict

from register_search.acquisition.loader import DataSource, load_records
from register_search.config import Settings
from register_search.exceptions import DataAcquisitionError
from register_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_RECORD_COUNT,
    LOAD_FAILURES,
    SEARCH_COUNT,
    SEARCH_LATENCY,
    track_latency,
)
from register_search.observability.tracing import create_span
from register_search.search.inverted_index import InvertedIndex, build_index, check_limit, resolve_query
from register_search.search.models import INDEXED_FIELDS, Record


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexSnapshot:
    """A record collection and the index built over it."""

    records: tuple[Record, ...] = ()
    index: InvertedIndex = field(default_factory=InvertedIndex)
    built_at: datetime | None = None
    generation: int = 0

    @classmethod
    def build(
        cls,
        records: Iterable[Record],
        fields: Sequence[str] = INDEXED_FIELDS,
        *,
        generation: int = 0,
    ) -> IndexSnapshot:
        frozen = tuple(records)
        return cls(
            records=frozen,
            index=build_index(frozen, fields),
            built_at=datetime.now(timezone.utc),
            generation=generation,
        )

    def __len__(self) -> int:
        return len(self.records)


class SearchStats(BaseModel):
    """Debug information for a search operation."""

    model_config = ConfigDict(frozen=True)

    query_tokens: list[str]
    total_matches: int
    returned: int
    truncated: bool
    search_time: float


class SearchResponse(BaseModel):
    """Matched records, lowest collection position first."""

    model_config = ConfigDict(frozen=True)

    records: list[Record]
    stats: SearchStats


class RegisterSearch:
    """In-memory conjunctive token search over company records.

    Simple interface: ``rebuild(records)`` or ``await load(source)`` to install
    a record set, then ``search(text)``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        fields: Sequence[str] | None = None,
        max_results: int | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.fields = tuple(fields) if fields is not None else self.settings.get_indexed_fields()
        self.max_results = check_limit(max_results if max_results is not None else self.settings.max_results)
        self._snapshot = IndexSnapshot(index=InvertedIndex(fields=self.fields))
        self._generations = itertools.count(1)
        self._install_lock = threading.Lock()

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    def rebuild(self, records: Iterable[Record], *, source: str = "memory") -> IndexSnapshot:
        """Build a new snapshot from ``records`` and install it.

        The build runs outside the lock. When rebuilds overlap, the snapshot
        started last stays installed even if an older build finishes after it.
        """
        generation = next(self._generations)
        with track_latency(INDEX_BUILD_LATENCY, source=source) as timing:
            with create_span("search.build", attributes={"register.source": source}) as span:
                snapshot = IndexSnapshot.build(records, self.fields, generation=generation)
                span.set_attribute("register.records", len(snapshot))
                span.set_attribute("register.tokens", len(snapshot.index))

        with self._install_lock:
            if generation < self._snapshot.generation:
                logger.info("Discarding stale index build %d (installed %d)", generation, self._snapshot.generation)
                return self._snapshot
            self._snapshot = snapshot
            INDEX_RECORD_COUNT.labels(source=source).set(len(snapshot))

        logger.info(
            "Installed index: %d records, %d tokens in %.3fs",
            len(snapshot),
            len(snapshot.index),
            timing.elapsed,
        )
        return snapshot

    def search(self, text: str) -> SearchResponse:
        """Resolve a free-text query against the installed snapshot.

        All tokens must match. An empty query returns every record, uncapped;
        any other query returns at most ``max_results`` records.
        """
        snapshot = self._snapshot
        with track_latency(SEARCH_LATENCY, outcome="miss") as timing:
            match = resolve_query(text, snapshot.index, self.max_results)
            records = [snapshot.records[position] for position in match.positions]
            if not match.tokens:
                timing.labels["outcome"] = "all"
            elif match.total:
                timing.labels["outcome"] = "hit"

        SEARCH_COUNT.labels(**timing.labels).inc()
        logger.debug("Query %r: %d matches, %d returned", text, match.total, len(records))

        return SearchResponse(
            records=records,
            stats=SearchStats(
                query_tokens=list(match.tokens),
                total_matches=match.total,
                returned=len(records),
                truncated=match.truncated,
                search_time=timing.elapsed,
            ),
        )

    async def load(self, source: DataSource | None = None) -> IndexSnapshot:
        """Acquire a dataset and install it.

        Raises:
            DataAcquisitionError: If the dataset cannot be loaded. The snapshot
                installed before the call stays in place.
        """
        source = source or self.settings.data_source()
        try:
            records = await load_records(source, self.settings)
        except DataAcquisitionError:
            LOAD_FAILURES.labels(source=source.url).inc()
            logger.error("Dataset load failed for %s", source.url, exc_info=True)
            raise
        return self.rebuild(records, source=source.url)
