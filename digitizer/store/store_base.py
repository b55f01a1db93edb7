# digitizer/store/store_base.py
"""
Entity Store Interface

Purpose
-------
The narrow persistence contract the pipeline writes through. Each call is
independently durable; there is no multi-entity transaction, which is why a
failed run can leave a `processing` property behind.

Public API
----------
class EntityStore(Protocol):
    def create(self, kind, fields) -> str
    def update(self, kind, record_id, fields) -> None
    def filter(self, kind, criteria=None) -> list[dict]

def get_record(store, kind, record_id) -> dict | None
def matches(record, criteria) -> bool

Invariants
----------
- Records returned by `filter` always carry their "id".
- `update` merges the given fields; it never removes keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

PROPERTY = "Property"
COMPONENT = "Component"
REPORT = "Report"

KINDS = (PROPERTY, COMPONENT, REPORT)

Record = dict[str, Any]


class EntityStore(Protocol):
    def create(self, kind: str, fields: Mapping[str, Any]) -> str: ...

    def update(self, kind: str, record_id: str, fields: Mapping[str, Any]) -> None: ...

    def filter(self, kind: str, criteria: Mapping[str, Any] | None = None) -> list[Record]: ...


def matches(record: Mapping[str, Any], criteria: Mapping[str, Any] | None) -> bool:
    """Equality match on every criteria key."""
    if not criteria:
        return True
    return all(record.get(k) == v for k, v in criteria.items())


def get_record(store: EntityStore, kind: str, record_id: str) -> Record | None:
    rows = store.filter(kind, {"id": record_id})
    return rows[0] if rows else None
