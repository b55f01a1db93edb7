# digitizer/agents/enrichment.py
"""
Property Enrichment Stage

Purpose
-------
Resolve a property's cost basis (rebuild cost per sqft, land value) through
one inference call, falling back to numeric defaults.

Design
------
- Never raises for inference problems: a failed call keeps the seed values
  (the defaults table, or the existing cost basis during revaluation).
- Each response field overrides the seed independently, and only when it is
  a positive number.
- Condos/townhouses: an explicit land_value of 0 is accepted (shared land),
  and a resolved land value of exactly 0 becomes sqft * 50 as a
  shared-common-area proxy.

Public API
----------
enrich_cost_basis(prop, gateway, *, seed=None, additional_context=None) -> EnrichmentResult
seed_from_property(prop) -> CostBasis
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from digitizer.core.errors import InferenceError
from digitizer.gateway.gateway_base import InferenceGateway, infer_object, positive_number
from digitizer.schemas.defaults import (
    BASELINE_YEAR_BUILT,
    COST_BASIS_DEFAULTS,
    SHARED_LAND_VALUE_PER_SQFT,
)
from digitizer.schemas.models import CostBasis, Property, PropertyInput

logger = logging.getLogger(__name__)

COST_BASIS_SCHEMA: dict[str, Any] = {
    "title": "cost_basis",
    "type": "object",
    "properties": {
        "rebuild_cost_per_sqft": {"type": "number"},
        "land_value": {"type": "number"},
    },
}


@dataclass(frozen=True)
class EnrichmentResult:
    cost_basis: CostBasis
    degraded: bool = False
    defaulted_fields: tuple[str, ...] = field(default_factory=tuple)
    shared_land_proxy: bool = False


def default_cost_basis() -> CostBasis:
    return CostBasis(**COST_BASIS_DEFAULTS)


def seed_from_property(prop: Property) -> CostBasis:
    """Existing cost basis of a stored property, with defaults for empty values."""
    rebuild = positive_number(prop.rebuild_cost_per_sqft) or COST_BASIS_DEFAULTS["rebuild_cost_per_sqft"]
    land = positive_number(prop.land_value) or COST_BASIS_DEFAULTS["land_value"]
    return CostBasis(rebuild_cost_per_sqft=rebuild, land_value=land)


def build_enrichment_prompt(prop: PropertyInput | Property, *, additional_context: str | None = None) -> str:
    kind = prop.property_type.value.replace("_", " ")
    year = prop.year_built or BASELINE_YEAR_BUILT
    if additional_context is not None:
        return (
            f'For a {kind} property at "{prop.address}" with {prop.sqft:g} sqft built in {year}, '
            "provide updated realistic current rebuild cost per sqft and estimated land value "
            "considering current market conditions.\n\n"
            f"Additional Context: {additional_context.strip() or 'None'}\n\n"
            "Return only numbers."
        )
    return (
        f'For a {kind} property at "{prop.address}" with {prop.sqft:g} sqft built in {year}, '
        "provide realistic current rebuild cost per sqft and estimated land value. Return only numbers."
    )


def _is_zero(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return float(value) == 0.0
    except (TypeError, ValueError):
        return False


def enrich_cost_basis(
    prop: PropertyInput | Property,
    gateway: InferenceGateway,
    *,
    seed: CostBasis | None = None,
    additional_context: str | None = None,
) -> EnrichmentResult:
    """
    Resolve rebuild cost per sqft and land value.

    Args:
        prop: Property attributes (type, address, sqft, year built).
        gateway: Inference gateway.
        seed: Values kept when inference cannot supply a field. Defaults table if None.
        additional_context: Owner-supplied notes (revaluation).

    Returns:
        EnrichmentResult with a fully-populated CostBasis. Never raises for inference failures.
    """
    base = seed or default_cost_basis()
    rebuild = base.rebuild_cost_per_sqft
    land = base.land_value
    defaulted = ["rebuild_cost_per_sqft", "land_value"]
    degraded = False

    try:
        resp = infer_object(
            gateway,
            build_enrichment_prompt(prop, additional_context=additional_context),
            COST_BASIS_SCHEMA,
            use_web_context=True,
        )
    except InferenceError as e:
        logger.warning("enrichment failed for %r; keeping seed cost basis: %s", prop.address, e)
        resp = {}
        degraded = True

    resolved_rebuild = positive_number(resp.get("rebuild_cost_per_sqft"))
    if resolved_rebuild is not None:
        rebuild = resolved_rebuild
        defaulted.remove("rebuild_cost_per_sqft")

    resolved_land = positive_number(resp.get("land_value"))
    if resolved_land is not None:
        land = resolved_land
        defaulted.remove("land_value")
    elif prop.has_shared_land and _is_zero(resp.get("land_value")):
        land = 0.0
        defaulted.remove("land_value")

    proxy = False
    if prop.has_shared_land and land == 0:
        land = float(prop.sqft) * SHARED_LAND_VALUE_PER_SQFT
        proxy = True

    if defaulted and not degraded:
        logger.warning("enrichment left %s empty for %r; using seed values", ", ".join(defaulted), prop.address)

    return EnrichmentResult(
        cost_basis=CostBasis(rebuild_cost_per_sqft=rebuild, land_value=land),
        degraded=degraded,
        defaulted_fields=tuple(defaulted),
        shared_land_proxy=proxy,
    )
