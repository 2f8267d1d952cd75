"""Inverted index over record positions and conjunctive query resolution.

The index maps each token to the frozen set of record positions whose
indexed fields contain it. Positions, not record ids, are the keys: an index
is only meaningful together with the exact collection it was built from.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Any, TypeVar

from register_search.search.analyzers import tokenize
from register_search.search.models import INDEXED_FIELDS, Record, read_field


logger = logging.getLogger(__name__)

MAX_RESULTS = 1000

R = TypeVar("R")


@dataclass(frozen=True)
class InvertedIndex:
    """Immutable token -> positions mapping built from one record collection."""

    postings: Mapping[str, frozenset[int]] = field(default_factory=lambda: MappingProxyType({}))
    record_count: int = 0
    fields: tuple[str, ...] = INDEXED_FIELDS

    def __len__(self) -> int:
        return len(self.postings)

    def __contains__(self, token: object) -> bool:
        return token in self.postings

    def __iter__(self) -> Iterator[str]:
        return iter(self.postings)

    def positions(self, token: str) -> frozenset[int]:
        """Return the positions containing ``token`` (empty when unknown)."""
        return self.postings.get(token, frozenset())

    def vocabulary(self) -> list[str]:
        return sorted(self.postings)


def build_index(
    records: Sequence[Record | Mapping[str, Any]],
    fields: Sequence[str] = INDEXED_FIELDS,
) -> InvertedIndex:
    """Build a fresh inverted index for ``records``.

    Every record position is tokenized over ``fields``; absent fields count as
    empty text. Building never fails and the empty collection yields an empty
    index.
    """
    collected: defaultdict[str, set[int]] = defaultdict(set)
    for position, record in enumerate(records):
        for name in fields:
            for token in tokenize(read_field(record, name)):
                collected[token].add(position)

    postings = MappingProxyType({token: frozenset(found) for token, found in collected.items()})
    logger.debug("Built inverted index: %d records, %d tokens", len(records), len(postings))
    return InvertedIndex(postings=postings, record_count=len(records), fields=tuple(fields))


def match_positions(tokens: Sequence[str], index: InvertedIndex) -> list[int]:
    """Return ascending positions present in every token's posting set.

    Posting sets are intersected smallest first. Any unknown token, or an
    intersection that runs empty, ends the walk with no matches.
    """
    if not tokens:
        return []

    postings: list[frozenset[int]] = []
    for token in dict.fromkeys(tokens):
        found = index.postings.get(token)
        if not found:
            return []
        postings.append(found)

    postings.sort(key=len)
    current = set(postings[0])
    for other in postings[1:]:
        current.intersection_update(other)
        if not current:
            return []
    return sorted(current)


def check_limit(limit: int) -> int:
    """Return ``limit`` unchanged, rejecting caps below one."""
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    return limit


@dataclass(frozen=True)
class QueryMatch:
    """Outcome of resolving one query against one index.

    ``positions`` is already capped; ``total`` counts every match. For an
    empty query ``positions`` covers the whole collection and ``tokens`` is
    empty.
    """

    tokens: tuple[str, ...]
    positions: Sequence[int]
    total: int

    @property
    def truncated(self) -> bool:
        return len(self.positions) < self.total


def resolve_query(text: str, index: InvertedIndex, limit: int = MAX_RESULTS) -> QueryMatch:
    """Resolve ``text`` to record positions in ``index``.

    An empty query (no tokens after analysis) selects every position in
    order without applying ``limit``. Otherwise all tokens must match and at
    most ``limit`` positions are kept, lowest first.
    """
    check_limit(limit)
    tokens = tuple(tokenize(text))
    if not tokens:
        return QueryMatch(tokens=(), positions=range(index.record_count), total=index.record_count)
    positions = match_positions(tokens, index)
    return QueryMatch(tokens=tokens, positions=positions[:limit], total=len(positions))


def query_index(
    text: str,
    records: Sequence[R],
    index: InvertedIndex,
    limit: int = MAX_RESULTS,
) -> list[R]:
    """Resolve ``text`` against ``index`` and return the matching records.

    ``index`` must have been built from ``records``. See ``resolve_query``
    for the matching and capping rules.
    """
    match = resolve_query(text, index, limit)
    return [records[position] for position in match.positions]
