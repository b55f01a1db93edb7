# digitizer/schemas/defaults.py
"""
Fallback values, defined once per entity kind.

Enrichment and component analysis substitute these when the inference
gateway fails or leaves a field empty. Downstream stages never special-case
"missing" numbers; they only ever see a fully-populated record.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

# Used when a property has no year_built (enrichment prompt, component installation year).
BASELINE_YEAR_BUILT = 2000

# Shared-common-area proxy for condos/townhouses whose land value resolves to zero.
SHARED_LAND_VALUE_PER_SQFT = 50.0

SHARED_LAND_PROPERTY_TYPES = frozenset({"condo", "townhouse"})

COST_BASIS_DEFAULTS: MappingProxyType[str, float] = MappingProxyType(
    {
        "rebuild_cost_per_sqft": 200.0,
        "land_value": 100_000.0,
    }
)

COMPONENT_DEFAULTS: MappingProxyType[str, Any] = MappingProxyType(
    {
        "current_condition": "good",
        "estimated_lifetime_years": 15,
        "replacement_cost": 5000.0,
        "residual_value": 2500.0,
        "maintenance_notes": "Regular maintenance recommended",
    }
)


def default_installation_year(year_built: int | None) -> int:
    """Installation year used when analysis cannot provide one."""
    return year_built or BASELINE_YEAR_BUILT
