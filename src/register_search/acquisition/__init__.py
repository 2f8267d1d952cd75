"""Dataset acquisition and normalization."""

from register_search.acquisition.loader import (
    DataSource,
    decode_payload,
    fetch_bytes,
    fetch_text,
    load_records,
    parse_records,
)
from register_search.acquisition.normalize import FIELD_ALIASES, normalize_record, normalize_records


__all__ = [
    "FIELD_ALIASES",
    "DataSource",
    "decode_payload",
    "fetch_bytes",
    "fetch_text",
    "load_records",
    "normalize_record",
    "normalize_records",
    "parse_records",
]
