"""Record models for the register search core.

Records are value objects: frozen once normalized, so an index built over a
collection stays valid for as long as the collection is referenced.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from register_search.search.analyzers import coerce_text


# Fields tokenized into the inverted index, in indexing order.
INDEXED_FIELDS: tuple[str, ...] = ("name", "city", "type")

CANONICAL_FIELDS: tuple[str, ...] = ("id", "name", "city", "type", "address")


class Record(BaseModel):
    """Canonical company record.

    ``extra`` holds every attribute of the source row that is not part of the
    canonical schema. Search never looks inside it.
    """

    model_config = ConfigDict(frozen=True)

    id: str | int
    name: str
    city: str = ""
    type: str = ""
    address: str = ""
    extra: dict[str, Any] = Field(default_factory=dict)

    def field_text(self, name: str) -> str:
        """Return a field as text; absent or null values read as ``""``."""
        if name in CANONICAL_FIELDS:
            return coerce_text(getattr(self, name))
        return coerce_text(self.extra.get(name))

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a single mapping, canonical fields taking precedence."""
        payload = dict(self.extra)
        payload.update(self.model_dump(exclude={"extra"}))
        return payload


def read_field(record: Record | Mapping[str, Any], name: str) -> str:
    """Read ``name`` from a ``Record`` or a plain mapping as text."""
    if isinstance(record, Record):
        return record.field_text(name)
    if isinstance(record, Mapping):
        return coerce_text(record.get(name))
    return coerce_text(getattr(record, name, None))
