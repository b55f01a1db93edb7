# digitizer/store/json_file.py
"""
File-backed entity store for the CLI.

Layout: one JSON document {"Property": {id: record}, "Component": {...}, "Report": {...}}.
Every write rewrites the document through a temp file + rename, so a crash
never leaves a half-written store.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from digitizer.core.errors import StoreError

from .memory import InMemoryEntityStore


class JsonFileEntityStore(InMemoryEntityStore):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        super().__init__(self._load(self._path))

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _load(path: Path) -> dict[str, dict[str, Any]]:
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise StoreError(f"Invalid JSON in store file {path}: {e}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"Store file {path} must hold a JSON object.")
        return {k: v for k, v in raw.items() if isinstance(v, dict)}

    def _after_write(self) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StoreError(f"Could not write store file {self._path}: {e}") from e
