"""In-memory token search over company register records."""

from register_search.acquisition import DataSource, load_records
from register_search.config import Settings
from register_search.exceptions import DataAcquisitionError, RegisterSearchError
from register_search.search import INDEXED_FIELDS, MAX_RESULTS, InvertedIndex, Record, build_index, query_index, tokenize
from register_search.search.engine import IndexSnapshot, RegisterSearch, SearchResponse, SearchStats


__all__ = [
    "INDEXED_FIELDS",
    "MAX_RESULTS",
    "DataAcquisitionError",
    "DataSource",
    "IndexSnapshot",
    "InvertedIndex",
    "Record",
    "RegisterSearch",
    "RegisterSearchError",
    "SearchResponse",
    "SearchStats",
    "Settings",
    "build_index",
    "load_records",
    "query_index",
    "tokenize",
]
