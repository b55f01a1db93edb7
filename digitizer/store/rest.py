# digitizer/store/rest.py
"""
HTTP-backed entity store.

Talks to an entity service exposing:
  POST   {base_url}/entities/{kind}          body=fields        -> {"id": "..."}
  PUT    {base_url}/entities/{kind}/{id}     body=partial       -> any
  GET    {base_url}/entities/{kind}?k=v...                      -> [record, ...]

Environment
-----------
DIGITIZER_STORE_URL       : required when built via get_store("rest")
DIGITIZER_STORE_TOKEN     : optional bearer token
DIGITIZER_STORE_TIMEOUT_S : default "15"
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from typing import Any

import requests

from digitizer.core.errors import RecordNotFoundError, StoreError

from .store_base import EntityStore, Record


class RestEntityStore(EntityStore):
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_s: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("RestEntityStore requires a base_url.")
        self._base = base_url.rstrip("/")
        self._timeout = timeout_s if timeout_s is not None else float(os.getenv("DIGITIZER_STORE_TIMEOUT_S", "15"))
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers.update({"Authorization": f"Bearer {token}"})

    @classmethod
    def from_env(cls) -> RestEntityStore:
        url = os.getenv("DIGITIZER_STORE_URL", "")
        if not url:
            raise RuntimeError("DIGITIZER_STORE_URL not set for RestEntityStore.")
        return cls(url, token=os.getenv("DIGITIZER_STORE_TOKEN") or None)

    def create(self, kind: str, fields: Mapping[str, Any]) -> str:
        body = self._request("POST", f"/entities/{kind}", json=dict(fields))
        rid = body.get("id") if isinstance(body, dict) else None
        if not rid:
            raise StoreError(f"Create {kind} returned no id.")
        return str(rid)

    def update(self, kind: str, record_id: str, fields: Mapping[str, Any]) -> None:
        self._request("PUT", f"/entities/{kind}/{record_id}", json=dict(fields), not_found=f"{kind} '{record_id}' not found")

    def filter(self, kind: str, criteria: Mapping[str, Any] | None = None) -> list[Record]:
        params = {k: _param(v) for k, v in (criteria or {}).items()}
        body = self._request("GET", f"/entities/{kind}", params=params)
        if not isinstance(body, list):
            raise StoreError(f"Filter {kind} returned {type(body).__name__}, expected a list.")
        return [r for r in body if isinstance(r, dict)]

    # ---------- internals ----------
    def _request(self, method: str, path: str, *, not_found: str | None = None, **kwargs: Any) -> Any:
        url = self._base + path
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 404 and not_found:
            raise RecordNotFoundError(not_found)
        if resp.status_code >= 400:
            raise StoreError(f"{method} {path} returned HTTP {resp.status_code}: {resp.text[:200]}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"{method} {path} returned invalid JSON: {e}") from e


def _param(value: Any) -> str:
    if isinstance(value, str):
        return value
    if hasattr(value, "value"):
        return str(value.value)
    return json.dumps(value)
