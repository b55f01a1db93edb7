# digitizer/gateway/gateway_base.py
"""
Inference Gateway Interface

Purpose
-------
Define the one contract every stage needs from the knowledge-inference
service: a natural-language instruction plus a JSON schema in, a JSON object
out. The service itself is a black box; it may fail, and it may leave any
field empty.

Design
------
- Protocol `InferenceGateway` with a single `infer(...)` method.
- Public helper `infer_object(...)` normalizes failures: anything raised by a
  gateway, or a non-dict result, surfaces as `InferenceError`.
- Schemas carry a "title" so gateways (and the mock) can tell requests apart.

Public API
----------
class InferenceGateway(Protocol):
    def infer(self, prompt, schema, *, use_web_context=False, evidence=None) -> dict

def infer_object(gateway, prompt, schema, *, use_web_context=False, evidence=None) -> dict
def schema_title(schema) -> str
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from digitizer.core.errors import InferenceError, classify_error

JSONSchema = dict[str, Any]
JSONDict = dict[str, Any]


class InferenceGateway(Protocol):
    def infer(
        self,
        prompt: str,
        schema: JSONSchema,
        *,
        use_web_context: bool = False,
        evidence: Sequence[str] | None = None,
    ) -> JSONDict: ...


def schema_title(schema: JSONSchema) -> str:
    return str(schema.get("title") or "response")


def infer_object(
    gateway: InferenceGateway,
    prompt: str,
    schema: JSONSchema,
    *,
    use_web_context: bool = False,
    evidence: Sequence[str] | None = None,
) -> JSONDict:
    """
    Call the gateway and guarantee a dict result.

    Raises:
        InferenceError: the gateway raised, or returned something other than a JSON object.
    """
    try:
        out = gateway.infer(prompt, schema, use_web_context=use_web_context, evidence=list(evidence) if evidence else None)
    except InferenceError:
        raise
    except Exception as exc:  # noqa: BLE001
        err = classify_error(exc)
        if not isinstance(err, InferenceError):
            err = InferenceError(str(err))
        raise err from exc
    if not isinstance(out, dict):
        raise InferenceError(f"Gateway returned {type(out).__name__} for '{schema_title(schema)}', expected an object.")
    return out


def positive_number(value: Any) -> float | None:
    """Return value as float when it is a finite number > 0, else None."""
    if isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if f != f or f in (float("inf"), float("-inf")) or f <= 0:
        return None
    return f
