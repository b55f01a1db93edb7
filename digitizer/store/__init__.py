# digitizer/store/__init__.py

from __future__ import annotations

import os

from .json_file import JsonFileEntityStore
from .memory import InMemoryEntityStore
from .rest import RestEntityStore
from .store_base import COMPONENT, PROPERTY, REPORT, EntityStore, get_record, matches


def get_store(name: str | None = None, *, path: str | None = None) -> EntityStore:
    """
    Build a store by name ("memory" | "json" | "rest"); defaults to DIGITIZER_STORE or "json".
    """
    kind = (name or os.getenv("DIGITIZER_STORE", "json")).strip().lower()
    if kind == "memory":
        return InMemoryEntityStore()
    if kind == "json":
        return JsonFileEntityStore(path or os.getenv("DIGITIZER_STORE_PATH", ".digitizer/store.json"))
    if kind == "rest":
        return RestEntityStore.from_env()
    raise ValueError(f"Unknown entity store '{kind}'; expected 'memory', 'json' or 'rest'.")


__all__ = [
    "PROPERTY",
    "COMPONENT",
    "REPORT",
    "EntityStore",
    "InMemoryEntityStore",
    "JsonFileEntityStore",
    "RestEntityStore",
    "get_record",
    "get_store",
    "matches",
]
