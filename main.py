# main.py
"""
Entry Point — Property Digitizer

Purpose
-------
Command-line front door for the two pipelines and the orphan report:
  digitize  Load a digitization request (sample defaults or --config JSON),
            optionally pre-fill attributes from an address lookup, run the
            pipeline and write a Markdown property report.
  revalue   Revalue a completed property with new context and market rating.
  orphans   List properties left in `processing` by failed runs.

Design
------
- CLI-friendly; heavy lifting is delegated to orchestrators and agents.
- Backends (entity store, inference gateway) are configuration-driven:
  config file -> DIGITIZER_* env vars -> CLI flags.

Usage
-----
    python main.py digitize
    python main.py digitize --config data/sample/request.json --out report.md --gateway openai
    python main.py revalue <property_id> --rating 7 --context "New roof installed in 2024"
    python main.py orphans --older-than-minutes 30
"""

from __future__ import annotations

import argparse
import datetime as _dt
import sys

from digitizer.agents.attribute_lookup import apply_lookup, lookup_property_attributes
from digitizer.core.errors import DigitizerError
from digitizer.core.logsetup import configure_logging
from digitizer.gateway import get_gateway
from digitizer.inputs.inputs import DigitizationRequest, InputsLoader, RunOptions
from digitizer.orchestrators.orphans import find_orphaned_properties
from digitizer.orchestrators.pipeline import run_digitization
from digitizer.orchestrators.revaluation import run_revaluation
from digitizer.reports.generator import write_report
from digitizer.schemas.models import Component, ComponentSubmission, Property, PropertyInput, Report
from digitizer.store import COMPONENT, PROPERTY, REPORT, EntityStore, get_record, get_store


def build_sample_request() -> DigitizationRequest:
    """Return a demo request (single-family home, three components)."""
    return DigitizationRequest(
        property=PropertyInput(
            address="123 Main St, Springfield, IL 62701",
            sqft=1850,
            lot_size=6500,
            bedrooms=3,
            bathrooms=2,
            year_built=1994,
            property_type="single_family",
        ),
        components=[
            ComponentSubmission(component_type="roof", photo_urls=["https://example.com/photos/roof.jpg"]),
            ComponentSubmission(component_type="hvac", serial_number="XR14-2016-0042"),
            ComponentSubmission(component_type="windows", photo_urls=["https://example.com/photos/windows.jpg"]),
        ],
        market_rating=6,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for configurable runs."""
    p = argparse.ArgumentParser(description="Property Digitizer")
    sub = p.add_subparsers(dest="command", required=True)

    def backend_flags(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--store", type=str, default=None, choices=["memory", "json", "rest"], help="Entity store backend.")
        sp.add_argument("--store-path", type=str, default=None, help="File used by the json store.")
        sp.add_argument("--gateway", type=str, default=None, choices=["mock", "openai"], help="Inference gateway.")

    d = sub.add_parser("digitize", help="Digitize a property and write a Markdown report.")
    d.add_argument("--config", type=str, default=None, help="Path to JSON request (DigitizationRequest or AppInputs).")
    d.add_argument("--out", type=str, default=None, help="Output Markdown path (overrides config).")
    d.add_argument("--rating", type=int, default=None, help="Market rating 0-10 (overrides config).")
    d.add_argument("--owner", type=str, default=None, help="Owner identifier (overrides config).")
    d.add_argument("--max-concurrency", type=int, default=None, help="Bound on concurrent component analyses.")
    d.add_argument("--lookup", action="store_true", help="Validate the address and fill empty attributes first.")
    backend_flags(d)

    r = sub.add_parser("revalue", help="Revalue a completed property.")
    r.add_argument("property_id", type=str)
    r.add_argument("--rating", type=int, required=True, help="New market rating 0-10.")
    r.add_argument("--context", type=str, default="", help="Additional information from the owner.")
    r.add_argument("--out", type=str, default=None, help="Optional Markdown path for the updated report.")
    backend_flags(r)

    o = sub.add_parser("orphans", help="List properties stuck in processing.")
    o.add_argument("--older-than-minutes", type=float, default=None, help="Ignore properties newer than this.")
    backend_flags(o)

    return p.parse_args(argv)


def _progress(stage) -> None:
    print(f"  … {stage.value.replace('_', ' ')}")


def _resolve_run(args: argparse.Namespace, loader: InputsLoader) -> RunOptions:
    cfg = loader.from_request(build_sample_request())
    cfg = loader.with_overrides(
        cfg,
        out=getattr(args, "out", None),
        store=args.store,
        store_path=args.store_path,
        gateway=args.gateway,
    )
    return cfg.run


def load_property_bundle(store: EntityStore, property_id: str) -> tuple[Property, list[Component], list[Report]]:
    """Read a property with its components and reports from the store."""
    record = get_record(store, PROPERTY, property_id)
    if record is None:
        raise DigitizerError(f"Property {property_id!r} not found")
    components = [Component.model_validate(c) for c in store.filter(COMPONENT, {"property_id": property_id})]
    reports = [Report.model_validate(r) for r in store.filter(REPORT, {"property_id": property_id})]
    return Property.model_validate(record), components, reports


def cmd_digitize(args: argparse.Namespace) -> int:
    loader = InputsLoader()
    if args.config:
        cfg = loader.load(args.config)
    else:
        # No config file → demo request with env overrides
        cfg = loader.from_request(build_sample_request())
    cfg = loader.with_overrides(
        cfg,
        out=args.out,
        store=args.store,
        store_path=args.store_path,
        gateway=args.gateway,
        max_concurrency=args.max_concurrency,
    )
    request = cfg.request
    run = cfg.run

    gateway = get_gateway(run.gateway)
    store = get_store(run.store, path=run.store_path)

    prop = request.property
    if args.lookup:
        lookup = lookup_property_attributes(prop.address or "", gateway)
        if not lookup.is_valid:
            print(f"Address rejected: {lookup.error_message}", file=sys.stderr)
            return 2
        prop = apply_lookup(prop, lookup)
        print(f"Address validated: {lookup.formatted_address}")

    print(f"Digitizing {prop.address} ...")
    result = run_digitization(
        prop,
        request.components,
        args.rating if args.rating is not None else request.market_rating,
        gateway=gateway,
        store=store,
        owner=args.owner or request.owner,
        max_concurrency=run.max_concurrency,
        on_stage=_progress,
    )

    write_report(run.out, *load_property_bundle(store, result.property_id))
    print(f"Property id: {result.property_id}")
    print(f"Appraised value: ${result.appraised_value:,.2f}")
    if result.degraded_components:
        print(f"Components using default values: {', '.join(result.degraded_components)}")
    print(f"Report written to {run.out}")
    return 0


def cmd_revalue(args: argparse.Namespace) -> int:
    run = _resolve_run(args, InputsLoader())
    gateway = get_gateway(run.gateway)
    store = get_store(run.store, path=run.store_path)

    result = run_revaluation(
        args.property_id,
        args.context,
        args.rating,
        gateway=gateway,
        store=store,
        on_stage=_progress,
    )
    print(f"Appraised value: ${result.appraised_value:,.2f}")
    if result.change_percent is not None:
        print(f"Change: {result.change_percent:+.2f}%")
    if args.out:
        write_report(args.out, *load_property_bundle(store, result.property_id))
        print(f"Report written to {args.out}")
    return 0


def cmd_orphans(args: argparse.Namespace) -> int:
    run = _resolve_run(args, InputsLoader())
    store = get_store(run.store, path=run.store_path)
    older = _dt.timedelta(minutes=args.older_than_minutes) if args.older_than_minutes is not None else None
    orphans = find_orphaned_properties(store, older_than=older)
    if not orphans:
        print("No orphaned properties.")
        return 0
    for o in orphans:
        print(
            f"{o.property_id}  {o.address or '?'}  created={o.created_date or '?'}  "
            f"components={len(o.component_ids)}  reports={len(o.report_ids)}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)
    handlers = {"digitize": cmd_digitize, "revalue": cmd_revalue, "orphans": cmd_orphans}
    try:
        return handlers[args.command](args)
    except (DigitizerError, ValueError, FileNotFoundError) as e:
        # bad --config files and option overrides surface here too
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
