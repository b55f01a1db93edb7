# digitizer/agents/attribute_lookup.py
"""
Address validation and property attribute lookup.

A pre-pipeline helper: validate a free-text address, then ask for public
record attributes (size, rooms, year built, type, cost basis hints) so a
caller can pre-fill a PropertyInput. The pipeline never calls this itself.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from digitizer.core.errors import InferenceError
from digitizer.gateway.gateway_base import InferenceGateway, infer_object, positive_number
from digitizer.schemas.models import PropertyInput, PropertyType, lenient_enum

logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 10

ADDRESS_SCHEMA: dict[str, Any] = {
    "title": "address_validation",
    "type": "object",
    "properties": {
        "is_valid": {"type": "boolean"},
        "formatted_address": {"type": "string"},
        "error_message": {"type": "string"},
    },
}

ATTRIBUTES_SCHEMA: dict[str, Any] = {
    "title": "property_attributes",
    "type": "object",
    "properties": {
        "sqft": {"type": "number"},
        "lot_size": {"type": "number"},
        "bedrooms": {"type": "number"},
        "bathrooms": {"type": "number"},
        "year_built": {"type": "number"},
        "property_type": {"type": "string"},
        "rebuild_cost_per_sqft": {"type": "number"},
        "land_value": {"type": "number"},
        "data_confidence": {"type": "string"},
        "data_sources": {"type": "string"},
    },
}


class PropertyAttributes(BaseModel):
    """Attributes found for an address. Any field may be missing."""

    model_config = ConfigDict(extra="ignore")

    sqft: float | None = None
    lot_size: float | None = None
    bedrooms: int | None = None
    bathrooms: float | None = None
    year_built: int | None = None
    property_type: PropertyType | None = None
    rebuild_cost_per_sqft: float | None = None
    land_value: float | None = None
    data_confidence: str | None = None
    data_sources: str | None = None

    @field_validator("sqft", "lot_size", "bathrooms", "rebuild_cost_per_sqft", "land_value", mode="before")
    @classmethod
    def _positive(cls, v: Any) -> Any:
        return positive_number(v)

    @field_validator("bedrooms", "year_built", mode="before")
    @classmethod
    def _whole(cls, v: Any) -> Any:
        n = positive_number(v)
        return None if n is None else int(n)

    @field_validator("property_type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> Any:
        return lenient_enum(PropertyType, v)

    @field_validator("data_confidence", "data_sources", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return None if v is None else str(v)


class AttributeLookup(BaseModel):
    is_valid: bool
    formatted_address: str = ""
    error_message: str = ""
    attributes: PropertyAttributes = Field(default_factory=PropertyAttributes)


def _attributes_prompt(address: str) -> str:
    return (
        f'You are a real estate data expert. For the property at "{address}", retrieve accurate property '
        "information from public records, real estate databases, and county assessor data.\n\n"
        "Include:\n"
        "- Square footage (living area)\n"
        "- Lot size\n"
        "- Number of bedrooms\n"
        "- Number of bathrooms\n"
        "- Year built\n"
        "- Property type\n"
        "- Estimated rebuild cost per square foot (based on local construction costs)\n"
        "- Estimated land value (based on comparable properties)\n\n"
        "Return realistic, data-backed values. If certain data is not available, provide reasonable "
        "estimates based on the neighborhood and property type."
    )


def lookup_property_attributes(address: str, gateway: InferenceGateway) -> AttributeLookup:
    """
    Validate `address` and look up its attributes.

    Returns:
        AttributeLookup; `is_valid=False` with an error message when the address is rejected.

    Raises:
        InferenceError: either gateway call failed or returned an unusable payload.
    """
    text = (address or "").strip()
    if len(text) < MIN_ADDRESS_LENGTH:
        return AttributeLookup(is_valid=False, formatted_address=text, error_message="Address is too short")

    validation = infer_object(
        gateway,
        f'Validate this address: "{text}". Check if it\'s a valid, complete US address format '
        "(with street, city, state, and ZIP). Return validation result.",
        ADDRESS_SCHEMA,
        use_web_context=True,
    )
    if not validation.get("is_valid"):
        message = str(validation.get("error_message") or "Invalid address format")
        logger.info("address rejected: %r (%s)", text, message)
        return AttributeLookup(is_valid=False, formatted_address=text, error_message=message)

    formatted = str(validation.get("formatted_address") or "").strip() or text
    raw = infer_object(gateway, _attributes_prompt(formatted), ATTRIBUTES_SCHEMA, use_web_context=True)
    try:
        attributes = PropertyAttributes.model_validate(raw)
    except ValidationError as e:
        raise InferenceError(f"Attribute payload did not validate: {e}") from e
    return AttributeLookup(is_valid=True, formatted_address=formatted, attributes=attributes)


def apply_lookup(prop: PropertyInput, lookup: AttributeLookup) -> PropertyInput:
    """
    Fill fields the caller left empty from a successful lookup.

    The formatted address replaces the submitted one; caller-supplied values win otherwise.
    """
    if not lookup.is_valid:
        return prop
    found = lookup.attributes
    updates: dict[str, Any] = {}
    if lookup.formatted_address:
        updates["address"] = lookup.formatted_address
    for name in ("sqft", "lot_size", "bedrooms", "bathrooms", "year_built"):
        if getattr(prop, name) is None and getattr(found, name) is not None:
            updates[name] = getattr(found, name)
    if "property_type" not in prop.model_fields_set and found.property_type is not None:
        updates["property_type"] = found.property_type
    return prop.model_copy(update=updates)
