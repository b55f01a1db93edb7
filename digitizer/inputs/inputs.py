# digitizer/inputs/inputs.py
"""
Inputs loader for the property digitizer.

Goals
-----
- File-first request loading with validation via Pydantic.
- Accept either a bare digitization request or a structured payload that also
  carries run options (output path, store, gateway, concurrency).
- Light environment-variable overrides for CI/CLI convenience.

Supported JSON shapes
---------------------
1) Bare (root = DigitizationRequest)
   {
     "property": { "address": "...", "sqft": 1850, "lot_size": 6500, ... },
     "components": [ {"component_type": "roof", "photo_urls": [...]}, ... ],
     "market_rating": 6
   }
   `components` may also be keyed by type:
     "components": { "roof": {"photo_urls": [...]}, "hvac": {"serial_number": "XR-14"} }

2) Structured (root = AppInputs)
   {
     "request": { ... DigitizationRequest ... },
     "run": {
       "out": "property_report.md",
       "store": "json",
       "store_path": ".digitizer/store.json",
       "gateway": "mock",
       "max_concurrency": 4
     }
   }

Environment overrides (optional)
--------------------------------
- DIGITIZER_OUT             -> AppInputs.run.out
- DIGITIZER_STORE           -> AppInputs.run.store ("memory" | "json" | "rest")
- DIGITIZER_STORE_PATH      -> AppInputs.run.store_path
- DIGITIZER_GATEWAY         -> AppInputs.run.gateway ("mock" | "openai")
- DIGITIZER_MAX_CONCURRENCY -> AppInputs.run.max_concurrency (int)

Public API
----------
- class InputsLoader:
    - load(path: str | Path | None) -> AppInputs
    - load_json(text: str) -> AppInputs
    - with_overrides(cfg, **kwargs) -> AppInputs (non-destructive copies)
- function load_inputs(path: str | Path | None) -> AppInputs  (convenience)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, cast

from pydantic import BaseModel, Field, ValidationError

from digitizer.schemas.models import ComponentSubmission, PropertyInput

StoreName = Literal["memory", "json", "rest"]
GatewayName = Literal["mock", "openai"]

_STORES = ("memory", "json", "rest")
_GATEWAYS = ("mock", "openai")

# ----------------------------
# Pydantic models for structured inputs
# ----------------------------


class DigitizationRequest(BaseModel):
    """What to digitize: property attributes, component submissions, market rating."""

    property: PropertyInput
    components: list[ComponentSubmission] = Field(default_factory=list)
    market_rating: int = Field(5, ge=0, le=10, description="Owner's 0-10 local market rating (5 = neutral).")
    owner: str | None = Field(None, description="Owner identifier stored on the Property.")


class RunOptions(BaseModel):
    """Runtime options controlling where results go and which backends run."""

    out: str = Field("property_report.md", description="Path to write the Markdown report.")
    store: StoreName = Field("json", description='Entity store backend: "memory", "json" or "rest".')
    store_path: str = Field(".digitizer/store.json", description="File used by the json store.")
    gateway: GatewayName = Field("mock", description='Inference gateway: "mock" or "openai".')
    max_concurrency: int = Field(0, ge=0, description="Bound on concurrent component analyses (0 = unbounded).")


class AppInputs(BaseModel):
    """
    Full input payload.

    Attributes:
        request: The validated digitization request.
        run:     Runtime options for the current execution.
    """

    request: DigitizationRequest
    run: RunOptions = RunOptions()


# ----------------------------
# Loader
# ----------------------------


@dataclass(frozen=True)
class InputsLoader:
    """
    File-first inputs loader with light env overrides.

    Default search (when path=None):
        1) ./data/sample/request.json
        2) ./config.json
    """

    env_prefix: str = "DIGITIZER_"

    # ---------- Public API ----------

    def load(self, path: str | Path | None = None) -> AppInputs:
        p = self._resolve_path(path)
        raw = self._read_json_file(p)
        cfg = self._parse_root(self._normalize_shape(raw))
        return self._apply_env_overrides(cfg)

    def load_json(self, text: str) -> AppInputs:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError("Inputs payload must be a JSON object.")
        cfg = self._parse_root(self._normalize_shape(raw))
        return self._apply_env_overrides(cfg)

    def from_request(self, request: DigitizationRequest) -> AppInputs:
        """Wrap an in-memory request with default run options plus env overrides."""
        return self._apply_env_overrides(AppInputs(request=request))

    def with_overrides(
        self,
        cfg: AppInputs,
        *,
        out: str | None = None,
        store: str | None = None,
        store_path: str | None = None,
        gateway: str | None = None,
        max_concurrency: int | None = None,
    ) -> AppInputs:
        """
        Return a *new* AppInputs with provided non-null overrides applied to RunOptions.
        Does not mutate the original instance.
        """
        updates: dict[str, Any] = {}
        if out is not None:
            updates["out"] = out
        if store is not None:
            updates["store"] = store
        if store_path is not None:
            updates["store_path"] = store_path
        if gateway is not None:
            updates["gateway"] = gateway
        if max_concurrency is not None:
            updates["max_concurrency"] = max_concurrency

        if not updates:
            return cfg
        return self._rebuild_run(cfg, updates)

    # ---------- Internals ----------

    def _resolve_path(self, path: str | Path | None) -> Path:
        if path is not None:
            p = Path(path)
            if not p.exists():
                raise FileNotFoundError(f"Inputs file not found: {p}")
            return p

        for candidate in (Path("data/sample/request.json"), Path("config.json")):
            if candidate.exists():
                return candidate
        raise FileNotFoundError(
            "No inputs path provided and no default inputs found. Looked for ./data/sample/request.json and ./config.json."
        )

    def _read_json_file(self, p: Path) -> dict[str, Any]:
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported inputs format for {p.name}; only .json is supported.")
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {p}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Inputs file {p} must contain a JSON object.")
        return cast(dict[str, Any], data)

    def _normalize_shape(self, raw: dict[str, Any]) -> dict[str, Any]:
        """
        Accept the bare or structured shape, and type-keyed component maps.
        """
        data = dict(raw) if "request" in raw else {"request": raw}
        request = data.get("request")
        if isinstance(request, dict) and isinstance(request.get("components"), dict):
            request = dict(request)
            request["components"] = [
                dict(v or {}, component_type=k) for k, v in request["components"].items()
            ]
            data["request"] = request
        return data

    def _parse_root(self, data: dict[str, Any]) -> AppInputs:
        try:
            return AppInputs.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Inputs validation failed:\n{e}") from e

    def _apply_env_overrides(self, cfg: AppInputs) -> AppInputs:
        """
        Apply light, optional overrides from environment variables to run options.
        """
        prefix = self.env_prefix
        updates: dict[str, Any] = {}

        out = os.getenv(f"{prefix}OUT")
        if out:
            updates["out"] = out

        store = os.getenv(f"{prefix}STORE")
        if store and store.strip().lower() in _STORES:
            updates["store"] = store.strip().lower()

        store_path = os.getenv(f"{prefix}STORE_PATH")
        if store_path:
            updates["store_path"] = store_path

        gateway = os.getenv(f"{prefix}GATEWAY")
        if gateway and gateway.strip().lower() in _GATEWAYS:
            updates["gateway"] = gateway.strip().lower()

        concurrency = os.getenv(f"{prefix}MAX_CONCURRENCY")
        if concurrency:
            try:
                updates["max_concurrency"] = max(0, int(concurrency))
            except ValueError:
                # Ignore bad value; keep validated cfg.max_concurrency
                pass

        if not updates:
            return cfg
        return self._rebuild_run(cfg, updates)

    def _rebuild_run(self, cfg: AppInputs, updates: dict[str, Any]) -> AppInputs:
        try:
            run_new = RunOptions.model_validate({**cfg.run.model_dump(), **updates})
        except ValidationError as e:
            raise ValueError(f"Run option override failed:\n{e}") from e
        return cfg.model_copy(update={"run": run_new})


# ----------------------------
# Convenience function
# ----------------------------


def load_inputs(path: str | Path | None = None) -> AppInputs:
    """Convenience wrapper for one-shot callers."""
    return InputsLoader().load(path)
