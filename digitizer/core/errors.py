# digitizer/core/errors.py
"""
Typed errors for the digitization and revaluation pipelines.

Exports
-------
- DigitizerError, PropertyValidationError, InferenceError, StoreError,
  RecordNotFoundError, RevaluationPreconditionError, PipelineStageError
- classify_error(exc)
- stage_guard(stage, *, property_id=None, committed=None)
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import requests  # noqa: F401

# =========================
# Exception types
# =========================


class DigitizerError(RuntimeError):
    """Base class for pipeline failures."""


class PropertyValidationError(DigitizerError, ValueError):
    """Required property inputs are missing or unusable. Raised before any durable write."""

    def __init__(self, message: str, *, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = list(missing)


class InferenceError(DigitizerError):
    """The inference gateway failed or returned something that is not a JSON object."""


class StoreError(DigitizerError):
    """The entity store rejected or failed a create/update/filter."""


class RecordNotFoundError(StoreError):
    """An update or lookup referenced an id the store does not hold."""


class RevaluationPreconditionError(DigitizerError):
    """The property does not exist or has not completed the initial pipeline."""


class PipelineStageError(DigitizerError):
    """
    A fatal failure inside one orchestrator stage.

    The original exception is chained as ``__cause__``. ``committed`` lists the
    durable writes that happened before the failure, e.g. ``["Property:ab12"]``.
    """

    def __init__(
        self,
        stage: str,
        cause: BaseException,
        *,
        property_id: str | None = None,
        committed: Sequence[str] = (),
    ) -> None:
        self.stage = stage
        self.property_id = property_id
        self.committed = list(committed)
        where = f" (property_id={property_id})" if property_id else ""
        super().__init__(f"Stage '{stage}' failed{where}: {type(cause).__name__}: {cause}")


# =========================
# Classification helpers
# =========================


def classify_error(exc: Exception) -> DigitizerError:
    """
    Map a foreign exception onto the taxonomy.

    Heuristics:
      - DigitizerError subclasses → passed through
      - requests.* errors → StoreError (the only HTTP client here is the REST store)
      - json decode failures → InferenceError
      - openai.* errors → InferenceError
      - Fallback → DigitizerError
    """
    if isinstance(exc, DigitizerError):
        return exc

    try:
        import requests

        if isinstance(exc, requests.RequestException):
            return StoreError(str(exc))
    except ImportError:  # pragma: no cover
        pass

    if isinstance(exc, json.JSONDecodeError):
        return InferenceError(f"Malformed JSON from inference: {exc}")

    if type(exc).__module__.split(".")[0] == "openai":
        return InferenceError(f"{type(exc).__name__}: {exc}")

    return DigitizerError(f"{type(exc).__name__}: {exc}")


@contextmanager
def stage_guard(
    stage: Any,
    *,
    property_id: str | None = None,
    committed: Sequence[str] = (),
) -> Iterator[None]:
    """
    Wrap anything raised inside a fatal stage in PipelineStageError (once).

    Validation errors and errors already carrying stage context pass through.
    """
    try:
        yield
    except (PipelineStageError, PropertyValidationError, RevaluationPreconditionError):
        raise
    except Exception as exc:  # noqa: BLE001
        name = getattr(stage, "value", stage)
        raise PipelineStageError(str(name), exc, property_id=property_id, committed=committed) from exc


__all__ = [
    "DigitizerError",
    "PropertyValidationError",
    "InferenceError",
    "StoreError",
    "RecordNotFoundError",
    "RevaluationPreconditionError",
    "PipelineStageError",
    "classify_error",
    "stage_guard",
]
