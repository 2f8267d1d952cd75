"""Tokenizer, inverted index and query resolution for register records."""

from register_search.search.analyzers import RecordAnalyzer, Token, tokenize
from register_search.search.inverted_index import (
    MAX_RESULTS,
    InvertedIndex,
    QueryMatch,
    build_index,
    match_positions,
    query_index,
    resolve_query,
)
from register_search.search.models import INDEXED_FIELDS, Record


__all__ = [
    "INDEXED_FIELDS",
    "MAX_RESULTS",
    "InvertedIndex",
    "QueryMatch",
    "Record",
    "RecordAnalyzer",
    "Token",
    "build_index",
    "match_positions",
    "query_index",
    "resolve_query",
    "tokenize",
]
