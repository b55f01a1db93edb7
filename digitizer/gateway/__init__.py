# digitizer/gateway/__init__.py
"""
Inference gateway package

Re-exports the gateway contract and implementations, so callers can do:

    from digitizer.gateway import InferenceGateway, MockInferenceGateway, get_gateway
"""

from __future__ import annotations

import os

from .gateway_base import InferenceGateway, infer_object, positive_number, schema_title
from .mock_gateway import MockInferenceGateway
from .openai_gateway import OpenAIGateway
from .parsing import extract_json_object


def get_gateway(name: str | None = None) -> InferenceGateway:
    """
    Build a gateway by name ("mock" | "openai"); defaults to DIGITIZER_GATEWAY or "mock".
    """
    provider = (name or os.getenv("DIGITIZER_GATEWAY", "mock")).strip().lower()
    if provider == "mock":
        return MockInferenceGateway()
    if provider == "openai":
        return OpenAIGateway()
    raise ValueError(f"Unknown inference gateway '{provider}'; expected 'mock' or 'openai'.")


__all__ = [
    "InferenceGateway",
    "MockInferenceGateway",
    "OpenAIGateway",
    "extract_json_object",
    "get_gateway",
    "infer_object",
    "positive_number",
    "schema_title",
]
