# digitizer/store/memory.py
from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from digitizer.core.errors import RecordNotFoundError, StoreError

from .store_base import KINDS, EntityStore, Record, matches


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryEntityStore(EntityStore):
    """
    Process-local store. Thread-safe: component records are created
    concurrently from worker threads during the fan-out.
    """

    def __init__(self, records: Mapping[str, Mapping[str, Record]] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, Record]] = {k: {} for k in KINDS}
        for kind, rows in (records or {}).items():
            self._data.setdefault(kind, {}).update({rid: copy.deepcopy(dict(r)) for rid, r in rows.items()})

    def create(self, kind: str, fields: Mapping[str, Any]) -> str:
        rid = uuid.uuid4().hex
        ts = _now()
        row = copy.deepcopy(dict(fields))
        row.update({"id": rid, "created_date": ts, "updated_date": ts})
        with self._lock:
            table = self._table(kind)
            table[rid] = row
            try:
                self._after_write()
            except StoreError:
                del table[rid]
                raise
        return rid

    def update(self, kind: str, record_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            table = self._table(kind)
            if record_id not in table:
                raise RecordNotFoundError(f"{kind} '{record_id}' not found")
            patch = copy.deepcopy(dict(fields))
            patch.pop("id", None)
            previous = copy.deepcopy(table[record_id])
            table[record_id].update(patch)
            table[record_id]["updated_date"] = _now()
            try:
                self._after_write()
            except StoreError:
                table[record_id] = previous
                raise

    def filter(self, kind: str, criteria: Mapping[str, Any] | None = None) -> list[Record]:
        with self._lock:
            rows = list(self._table(kind).values())
            return [copy.deepcopy(r) for r in rows if matches(r, criteria)]

    def snapshot(self) -> dict[str, dict[str, Record]]:
        with self._lock:
            return copy.deepcopy(self._data)

    # ---------- internals ----------
    def _table(self, kind: str) -> dict[str, Record]:
        if kind not in self._data:
            raise StoreError(f"Unknown entity kind '{kind}'")
        return self._data[kind]

    def _after_write(self) -> None:
        """
        Hook for subclasses; called with the lock held.

        Raising StoreError rolls the in-memory change back.
        """
