# digitizer/tools/maintenance.py
from __future__ import annotations

import math
from dataclasses import dataclass

from digitizer.schemas.models import MaintenancePriority

# (keywords, trade) checked in order; first hit wins.
_TRADE_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("roof",), "roof"),
    (("hvac", "heating", "cooling", "air condition"), "hvac"),
    (("plumb", "pipe", "water"), "plumbing"),
    (("electric", "wiring"), "electrical"),
    (("window", "door"), "windows"),
    (("floor",), "flooring"),
    (("paint",), "painting"),
    (("appliance",), "appliances"),
    (("foundation", "structural"), "foundation"),
    (("insulation",), "insulation"),
)

_PROJECT_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("replace", "replacement"), "replace"),
    (("install",), "install"),
    (("inspect",), "inspect"),
    (("fix", "repair"), "repair"),
)

_URGENCY = {"high": "urgent", "medium": "medium", "low": "low"}


@dataclass(frozen=True)
class MaintenanceTaskDraft:
    """
    Pre-filled maintenance task derived from one maintenance priority.

    Attributes:
        project_title (str): The priority's item text.
        project_description (str): Boilerplate noting the recommended priority.
        project_type (str): replace | install | inspect | repair.
        component_type (str): Trade category inferred from the item text, else "other".
        urgency (str): urgent | medium | low.
        budget_range (str): "low-high" around the estimate (-20% / +20%), or "" when unknown.
        estimated_cost (float): Estimate from the priority, 0 when absent.
    """

    project_title: str
    project_description: str
    project_type: str
    component_type: str
    urgency: str
    budget_range: str
    estimated_cost: float


def _first_match(text: str, table: tuple[tuple[tuple[str, ...], str], ...], default: str) -> str:
    for keywords, value in table:
        if any(k in text for k in keywords):
            return value
    return default


def budget_range(estimated_cost: float | None) -> str:
    """
    Example:
        1000 -> "800-1200"
        None -> ""
    """
    if not estimated_cost or estimated_cost <= 0:
        return ""
    return f"{math.floor(estimated_cost * 0.8)}-{math.ceil(estimated_cost * 1.2)}"


def draft_maintenance_task(priority: MaintenancePriority) -> MaintenanceTaskDraft:
    """Map a maintenance priority onto a task draft. Pure; nothing is booked or stored."""
    text = priority.item.lower()
    urgency = priority.urgency.value if priority.urgency else ""
    return MaintenanceTaskDraft(
        project_title=priority.item,
        project_description=(
            f"Recommended Priority: {priority.priority or 'N/A'}\n\n"
            "This maintenance task was drafted from the property analysis. "
            "Review and add details before requesting quotes from service providers."
        ),
        project_type=_first_match(text, _PROJECT_KEYWORDS, "repair"),
        component_type=_first_match(text, _TRADE_KEYWORDS, "other"),
        urgency=_URGENCY.get(urgency, "medium"),
        budget_range=budget_range(priority.estimated_cost),
        estimated_cost=float(priority.estimated_cost or 0),
    )
