"""Unit tests for index construction and conjunctive query resolution."""

from types import MappingProxyType

import pytest

from register_search.search.analyzers import tokenize
from register_search.search.inverted_index import (
    MAX_RESULTS,
    InvertedIndex,
    build_index,
    match_positions,
    query_index,
    resolve_query,
)
from register_search.search.models import INDEXED_FIELDS, Record


pytestmark = pytest.mark.unit


class TestBuildIndex:
    """Test build_index() contents and invariants."""

    def test_empty_collection_builds_empty_index(self):
        index = build_index([])
        assert len(index) == 0
        assert index.record_count == 0
        assert index.vocabulary() == []

    def test_postings_map_tokens_to_positions(self, swiss_records):
        index = build_index(swiss_records)

        assert index.positions("alpine") == frozenset({0, 2})
        assert index.positions("zurich") == frozenset({0})
        assert index.positions("geneva") == frozenset({1})
        assert index.positions("unknown") == frozenset()
        assert index.record_count == 3

    def test_token_in_index_iff_in_indexed_field(self, typed_records):
        index = build_index(typed_records)

        for position, record in enumerate(typed_records):
            expected = {token for name in INDEXED_FIELDS for token in tokenize(record.field_text(name))}
            actual = {token for token in index if position in index.positions(token)}
            assert actual == expected

    def test_fields_outside_indexed_set_are_not_searchable(self, typed_records):
        index = build_index(typed_records)

        assert "bahnhofstrasse" not in index
        assert "che" not in index

    def test_records_missing_all_fields_are_tolerated(self):
        index = build_index([{}, {"name": None}, {"name": "Solo"}])

        assert index.record_count == 3
        assert index.vocabulary() == ["solo"]
        assert index.positions("solo") == frozenset({2})

    def test_plain_mappings_are_indexed_like_records(self, swiss_records):
        rows = [record.model_dump() for record in swiss_records]
        assert dict(build_index(rows).postings) == dict(build_index(swiss_records).postings)

    def test_custom_field_set(self, typed_records):
        index = build_index(typed_records, fields=("address",))

        assert index.fields == ("address",)
        assert index.vocabulary() == ["1", "bahnhofstrasse"]

    def test_build_is_deterministic(self, typed_records):
        assert dict(build_index(typed_records).postings) == dict(build_index(list(typed_records)).postings)

    def test_index_is_read_only(self, swiss_records):
        index = build_index(swiss_records)

        assert isinstance(index.postings, MappingProxyType)
        assert isinstance(index.positions("alpine"), frozenset)
        with pytest.raises(TypeError):
            index.postings["new"] = frozenset({0})  # type: ignore[index]


class TestQueryIndex:
    """Test query_index() semantics."""

    def test_single_token_matches_in_position_order(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("alpine", swiss_records, index) == [swiss_records[0], swiss_records[2]]

    def test_tokens_are_combined_with_and(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("alpine zurich", swiss_records, index) == [swiss_records[0]]

    def test_tokens_may_come_from_different_fields(self, typed_records):
        index = build_index(typed_records)
        assert query_index("zermatt retail", typed_records, index) == [typed_records[2]]

    def test_unknown_token_returns_nothing(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("nomatch", swiss_records, index) == []
        assert query_index("alpine nomatch", swiss_records, index) == []

    def test_empty_query_returns_everything_in_order(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("", swiss_records, index) == swiss_records

    @pytest.mark.parametrize("text", ["   ", "--", "&&& ...", "\n"])
    def test_query_without_tokens_returns_everything(self, swiss_records, text):
        index = build_index(swiss_records)
        assert query_index(text, swiss_records, index) == swiss_records

    def test_query_is_normalized_like_records(self, typed_records):
        index = build_index(typed_records)
        assert query_index("CAFÉ, lac!", typed_records, index) == [typed_records[1]]

    def test_substrings_do_not_match(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("alp", swiss_records, index) == []

    def test_repeated_tokens_behave_like_one(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("alpine alpine", swiss_records, index) == query_index("alpine", swiss_records, index)

    def test_intersection_is_subset_of_each_token(self, typed_records):
        index = build_index(typed_records)
        both = query_index("transport lac", typed_records, index)
        first = query_index("transport", typed_records, index)
        second = query_index("lac", typed_records, index)

        assert both == [typed_records[3]]
        assert all(record in first and record in second for record in both)

    def test_non_empty_query_is_capped(self):
        records = [Record(id=i, name=f"Holding {i}") for i in range(MAX_RESULTS + 250)]
        index = build_index(records)

        results = query_index("holding", records, index)
        assert len(results) == MAX_RESULTS
        assert results == records[:MAX_RESULTS]

    def test_empty_query_is_not_capped(self):
        records = [Record(id=i, name=f"Holding {i}") for i in range(MAX_RESULTS + 250)]
        index = build_index(records)

        assert len(query_index("", records, index)) == MAX_RESULTS + 250

    def test_custom_limit(self, swiss_records):
        index = build_index(swiss_records)
        assert query_index("alpine", swiss_records, index, limit=1) == [swiss_records[0]]

    @pytest.mark.parametrize("limit", [0, -1, -1000])
    def test_rejects_limit_below_one(self, swiss_records, limit):
        index = build_index(swiss_records)
        with pytest.raises(ValueError, match="limit must be >= 1"):
            query_index("alpine", swiss_records, index, limit=limit)

    def test_rejects_bad_limit_for_empty_query(self, swiss_records):
        index = build_index(swiss_records)
        with pytest.raises(ValueError):
            query_index("", swiss_records, index, limit=0)

    def test_query_does_not_mutate_index(self, swiss_records):
        index = build_index(swiss_records)
        before = dict(index.postings)
        query_index("alpine zurich", swiss_records, index)
        query_index("nomatch", swiss_records, index)
        assert dict(index.postings) == before


class TestMatchPositions:
    """Test match_positions() intersection order and short-circuiting."""

    def test_no_tokens_match_nothing(self):
        assert match_positions([], build_index([{"name": "a"}])) == []

    def test_absent_token_short_circuits_before_lookup_of_rest(self):
        class RecordingPostings(dict):
            def __init__(self, *args):
                super().__init__(*args)
                self.looked_up: list[str] = []

            def get(self, key, default=None):
                self.looked_up.append(key)
                return super().get(key, default)

        postings = RecordingPostings({"a": frozenset({0}), "b": frozenset({0})})
        index = InvertedIndex(postings=postings, record_count=1)

        assert match_positions(["a", "missing", "b"], index) == []
        assert postings.looked_up == ["a", "missing"]

    def test_returns_sorted_positions(self):
        index = InvertedIndex(
            postings={"x": frozenset({9, 3, 5, 1}), "y": frozenset({5, 1, 9, 2})},
            record_count=10,
        )
        assert match_positions(["x", "y"], index) == [1, 5, 9]

    def test_disjoint_sets_yield_empty(self):
        index = InvertedIndex(postings={"x": frozenset({1}), "y": frozenset({2})}, record_count=3)
        assert match_positions(["x", "y"], index) == []


class TestResolveQuery:
    """Test resolve_query(), the single home of the query contract."""

    def test_reports_total_beyond_cap(self):
        records = [Record(id=i, name=f"Bank {i}") for i in range(5)]
        index = build_index(records)

        match = resolve_query("bank", index, limit=2)

        assert match.tokens == ("bank",)
        assert list(match.positions) == [0, 1]
        assert match.total == 5
        assert match.truncated

    def test_empty_query_selects_everything_uncapped(self, swiss_records):
        index = build_index(swiss_records)

        match = resolve_query("  ...  ", index, limit=1)

        assert match.tokens == ()
        assert list(match.positions) == [0, 1, 2]
        assert match.total == 3
        assert not match.truncated

    def test_miss_is_not_truncated(self, swiss_records):
        match = resolve_query("nomatch", build_index(swiss_records))

        assert list(match.positions) == []
        assert match.total == 0
        assert not match.truncated
