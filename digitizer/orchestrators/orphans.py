# digitizer/orchestrators/orphans.py
"""
Orphan detection.

A run that fails after `creating_property` leaves its Property in
`processing` (plus any Components/Reports written before the failure).
This module only reports them; cleanup is left to the operator.
"""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass

from digitizer.schemas.models import PropertyStatus
from digitizer.store.store_base import COMPONENT, PROPERTY, REPORT, EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrphanedProperty:
    property_id: str
    address: str | None
    created_date: str | None
    component_ids: tuple[str, ...]
    report_ids: tuple[str, ...]


def _parse_ts(value: object) -> _dt.datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        ts = _dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=_dt.timezone.utc)


def find_orphaned_properties(
    store: EntityStore,
    *,
    older_than: _dt.timedelta | None = None,
    now: _dt.datetime | None = None,
) -> list[OrphanedProperty]:
    """
    List properties stuck in `processing`, with the records written for them.

    `older_than` skips properties created more recently than that (a run may
    still be in flight); records without a parseable created_date are always
    reported.
    """
    current = now or _dt.datetime.now(_dt.timezone.utc)
    orphans: list[OrphanedProperty] = []
    for record in store.filter(PROPERTY, {"status": PropertyStatus.processing.value}):
        created = _parse_ts(record.get("created_date"))
        if older_than is not None and created is not None and current - created < older_than:
            continue
        pid = str(record["id"])
        components = store.filter(COMPONENT, {"property_id": pid})
        reports = store.filter(REPORT, {"property_id": pid})
        orphans.append(
            OrphanedProperty(
                property_id=pid,
                address=record.get("address"),
                created_date=record.get("created_date"),
                component_ids=tuple(str(c["id"]) for c in components),
                report_ids=tuple(str(r["id"]) for r in reports),
            )
        )
    if orphans:
        logger.warning("found %d orphaned propert%s in processing", len(orphans), "y" if len(orphans) == 1 else "ies")
    return orphans
