"""Map heterogeneous source rows onto the canonical ``Record`` schema."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from register_search.search.analyzers import coerce_text
from register_search.search.models import CANONICAL_FIELDS, Record


# Canonical field -> source keys tried in order; the first non-null wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "companyName", "title"),
    "city": ("city", "location", "town"),
    "type": ("type", "category", "industry"),
    "address": ("address", "addr"),
}


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _coerce_id(value: Any, position: int) -> str | int:
    if value is None:
        return position + 1
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return coerce_text(value)


def normalize_record(raw: Any, position: int) -> Record:
    """Normalize one source row found at ``position`` in the dataset."""
    if not isinstance(raw, Mapping):
        text = coerce_text(raw)
        return Record(id=position + 1, name=text or f"Company {position + 1}")

    name = _first_present(raw, FIELD_ALIASES["name"])
    return Record(
        id=_coerce_id(raw.get("id"), position),
        name=coerce_text(name) if name is not None else f"Company {position + 1}",
        city=coerce_text(_first_present(raw, FIELD_ALIASES["city"])),
        type=coerce_text(_first_present(raw, FIELD_ALIASES["type"])),
        address=coerce_text(_first_present(raw, FIELD_ALIASES["address"])),
        extra={key: value for key, value in raw.items() if key not in CANONICAL_FIELDS},
    )


def normalize_records(rows: Iterable[Any]) -> list[Record]:
    return [normalize_record(raw, position) for position, raw in enumerate(rows)]
