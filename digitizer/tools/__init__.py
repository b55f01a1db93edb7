# digitizer/tools/__init__.py
"""
Property digitizer — tools package

Exports only modules that live under `digitizer/tools`:
  - draft_maintenance_task, MaintenanceTaskDraft, budget_range   (from .maintenance)
"""

from __future__ import annotations

from .maintenance import MaintenanceTaskDraft, budget_range, draft_maintenance_task

__all__ = ["MaintenanceTaskDraft", "budget_range", "draft_maintenance_task"]
