# digitizer/gateway/openai_gateway.py
"""
OpenAI Inference Gateway

Purpose
-------
Production `InferenceGateway` on the OpenAI Responses API. Each call sends the
instruction, the required output schema (as a non-strict json_schema format),
optional photo URIs as image inputs, and optionally enables web search for
location-dependent estimates.

Environment
-----------
OPENAI_API_KEY                  : required
DIGITIZER_MODEL                 : default "gpt-4o-mini"
DIGITIZER_INFERENCE_TIMEOUT_S   : default "60"
DIGITIZER_INFERENCE_MAX_RETRIES : default "0" (transport-level only)
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from collections.abc import Sequence
from typing import Any

from digitizer.core.errors import InferenceError

from .gateway_base import InferenceGateway, JSONDict, JSONSchema, schema_title
from .parsing import extract_json_object

logger = logging.getLogger(__name__)

_NAME_SAFE = re.compile(r"[^a-zA-Z0-9_-]")


class OpenAIGateway(InferenceGateway):
    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        client: Any = None,
    ) -> None:
        self._timeout_s = timeout_s if timeout_s is not None else float(os.getenv("DIGITIZER_INFERENCE_TIMEOUT_S", "60"))
        self._max_retries = max_retries if max_retries is not None else int(os.getenv("DIGITIZER_INFERENCE_MAX_RETRIES", "0"))
        self._model = model or os.getenv("DIGITIZER_MODEL", "gpt-4o-mini")

        if client is None:
            key = api_key or os.getenv("OPENAI_API_KEY")
            if not key:
                raise RuntimeError("OPENAI_API_KEY not set for OpenAIGateway.")
            try:
                from openai import OpenAI
            except ImportError as e:  # pragma: no cover
                raise RuntimeError("OpenAI SDK not available. Install `openai>=1.40`.") from e
            # retries are driven by DIGITIZER_INFERENCE_MAX_RETRIES only
            client = OpenAI(api_key=key, timeout=self._timeout_s, max_retries=0)
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def infer(
        self,
        prompt: str,
        schema: JSONSchema,
        *,
        use_web_context: bool = False,
        evidence: Sequence[str] | None = None,
    ) -> JSONDict:
        request = self._build_request(prompt, schema, use_web_context=use_web_context, evidence=evidence)
        title = schema_title(schema)

        last_err: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                resp = self._client.responses.create(**request)
                return extract_json_object(_output_text(resp))
            except Exception as e:  # noqa: BLE001
                last_err = e
                if attempt < self._max_retries:
                    logger.debug("inference retry title=%s attempt=%d error=%s", title, attempt + 1, type(e).__name__)
                    time.sleep(min(0.5 * (attempt + 1), 2.0))
        assert last_err is not None
        raise InferenceError(f"Inference '{title}' failed: {type(last_err).__name__}: {last_err}") from last_err

    def _build_request(
        self,
        prompt: str,
        schema: JSONSchema,
        *,
        use_web_context: bool,
        evidence: Sequence[str] | None,
    ) -> dict[str, Any]:
        content: list[dict[str, Any]] = [{"type": "input_text", "text": _with_output_rules(prompt, schema)}]
        for uri in evidence or []:
            content.append({"type": "input_image", "image_url": uri})

        request: dict[str, Any] = {
            "model": self._model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": _NAME_SAFE.sub("_", schema_title(schema))[:64],
                    "schema": schema,
                    "strict": False,
                }
            },
        }
        if use_web_context:
            request["tools"] = [{"type": "web_search_preview"}]
        return request


# ---------- helpers ----------
def _with_output_rules(prompt: str, schema: JSONSchema) -> str:
    return (
        f"{prompt.strip()}\n\n"
        "Return ONLY a raw JSON object (no code fences, no markdown, no prose) matching this schema. "
        "Use numbers for numeric fields; omit a field rather than guessing wildly.\n"
        f"{json.dumps(schema, separators=(',', ':'))}"
    )


def _output_text(resp: Any) -> str:
    # Prefer the SDK's convenience property if available
    txt = getattr(resp, "output_text", None)
    if isinstance(txt, str) and txt.strip():
        return txt

    chunks: list[str] = []
    for item in getattr(resp, "output", None) or []:
        for c in getattr(item, "content", None) or []:
            text = getattr(c, "text", None)
            if isinstance(text, str) and text:
                chunks.append(text)
    if chunks:
        return "\n".join(chunks)
    raise InferenceError("OpenAI response did not contain text output.")
