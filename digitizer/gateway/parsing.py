# digitizer/gateway/parsing.py
"""
Tolerant JSON extraction for model output.

Models are asked for raw JSON but still wrap it in code fences or prose now
and then. `extract_json_object` recovers the first top-level object.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def _strip_fences(text: str) -> str:
    s = text.strip().replace("\u200b", "").replace("\ufeff", "")
    if s.startswith("```"):
        s = _FENCE_OPEN.sub("", s, count=1)
        s = _FENCE_CLOSE.sub("", s, count=1)
    return s


def _first_balanced_object(s: str) -> str | None:
    """Scan for the first balanced {...} span, ignoring braces inside strings."""
    start = s.find("{")
    while start != -1:
        depth = 0
        in_str = False
        escaped = False
        for i, ch in enumerate(s[start:], start=start):
            if in_str:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_str = False
                continue
            if ch == '"':
                in_str = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return s[start : i + 1]
        start = s.find("{", start + 1)
    return None


def extract_json_object(text: Any) -> dict[str, Any]:
    """
    Parse model output into a dict.

      - Strips Markdown code fences (``` or ```json).
      - If prose surrounds the JSON, extracts the first balanced object.
      - A single-element array holding an object is unwrapped.

    Raises:
        ValueError: no JSON object could be recovered.
    """
    if not isinstance(text, str):
        raise ValueError("Model returned non-string output.")

    s = _strip_fences(text)
    loaded: Any = None
    try:
        loaded = json.loads(s)
    except json.JSONDecodeError:
        candidate = _first_balanced_object(s)
        if candidate is not None:
            try:
                loaded = json.loads(candidate)
            except json.JSONDecodeError:
                loaded = None

    if isinstance(loaded, list) and len(loaded) == 1 and isinstance(loaded[0], dict):
        loaded = loaded[0]
    if not isinstance(loaded, dict):
        raise ValueError("Expected a JSON object in model output.")
    return loaded
