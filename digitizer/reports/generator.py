# digitizer/reports/generator.py
from __future__ import annotations

import os
from collections.abc import Sequence

from digitizer.core.valuation import ValuationBreakdown, compute_valuation
from digitizer.schemas.models import Component, InsightsBundle, Property, Report, ReportType
from digitizer.tools.maintenance import draft_maintenance_task


def _fmt_currency(x: float | None) -> str:
    """
    Format a float as USD-style currency with thousands separators.

    Example:
        123456.789 -> $123,456.79
        -2000 -> -$2,000.00
        None -> N/A
    """
    if x is None:
        return "N/A"
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.2f}"


def _fmt_pct(x: float | None) -> str:
    """
    Format a percentage value (already x100) with one decimal and an explicit sign.

    Example:
        15.0 -> +15.0%
    """
    if x is None:
        return "N/A"
    return f"{x:+.1f}%"


def _section(title: str) -> str:
    """
    Render a level-2 heading for Markdown sections.
    """
    return f"\n## {title}\n"


def _valuation(prop: Property) -> ValuationBreakdown | None:
    """Recompute the breakdown from persisted fields; None for incomplete records."""
    if prop.rebuild_cost_per_sqft is None or prop.land_value is None or prop.market_rating is None:
        return None
    return compute_valuation(
        prop.sqft,
        prop.rebuild_cost_per_sqft,
        prop.land_value,
        prop.total_asset_residual_value or 0.0,
        prop.market_rating,
    )


# -----------------------
# Sections
# -----------------------


def _render_header(prop: Property) -> str:
    kind = prop.property_type.value.replace("_", " ").title()
    body = [
        f"# Property Report – {prop.address}",
        "",
        f"- **Type:** {kind}",
        f"- **Size:** {prop.sqft:,.0f} sqft",
        f"- **Lot:** {f'{prop.lot_size:,.0f} sqft' if prop.lot_size is not None else 'N/A'}",
        f"- **Built:** {prop.year_built or 'Unknown'}",
        f"- **Bedrooms / Bathrooms:** {prop.bedrooms if prop.bedrooms is not None else 'N/A'} / "
        f"{prop.bathrooms if prop.bathrooms is not None else 'N/A'}",
        f"- **Status:** {prop.status.value}",
    ]
    return "\n".join(body) + "\n"


def _render_valuation(prop: Property) -> str:
    v = _valuation(prop)
    if v is None:
        return _section("Valuation") + "Valuation not available (digitization incomplete).\n"
    land_label = "Shared Land / Common Area" if prop.has_shared_land else "Land Value"
    lines = [
        _section("Valuation"),
        "| Item | Amount |",
        "| :--- | ---: |",
        f"| Rebuild Cost ({v.sqft:,.0f} sqft x {_fmt_currency(v.rebuild_cost_per_sqft)}) | {_fmt_currency(v.rebuild_cost)} |",
        f"| {land_label} | {_fmt_currency(v.land_value)} |",
        f"| Asset Residual Value | {_fmt_currency(v.total_asset_residual_value)} |",
        f"| Market Adjustment ({v.market_rating}/10) | {_fmt_pct(v.market_adjustment_percent)} |",
        f"| **Appraised Value** | **{_fmt_currency(v.appraised_value)}** |",
    ]
    return "\n".join(lines) + "\n"


def _render_components(components: Sequence[Component]) -> str:
    """
    Columns:
      Component | Installed | Condition | Lifetime (yrs) | Replacement | Residual
    """
    if not components:
        return _section("Components") + "No components analyzed.\n"
    header = [
        _section("Components"),
        "| Component | Installed | Condition | Lifetime (yrs) | Replacement | Residual |",
        "| :--- | ---: | :--- | ---: | ---: | ---: |",
    ]
    rows = [
        f"| {c.component_type.value} "
        f"| {c.installation_year} "
        f"| {c.current_condition.value} "
        f"| {c.estimated_lifetime_years:g} "
        f"| {_fmt_currency(c.replacement_cost)} "
        f"| {_fmt_currency(c.residual_value)} |"
        for c in sorted(components, key=lambda c: c.component_type.value)
    ]
    return "\n".join(header + rows) + "\n"


def _render_reports(reports: Sequence[Report]) -> str:
    if not reports:
        return ""
    lines = [_section("Reports")]
    for kind in (ReportType.inspection, ReportType.appraisal):
        for r in reports:
            if r.report_type is kind:
                lines.append(f"- **{kind.value.title()}:** {r.summary or 'N/A'}")
                rating = r.report_data.get("overall_rating")
                if rating:
                    lines.append(f"  - Overall rating: {rating}")
                change = r.report_data.get("change_percent")
                if isinstance(change, (int, float)):
                    lines.append(f"  - Change vs previous appraisal: {_fmt_pct(change)}")
    return "\n".join(lines) + "\n"


def _render_insights(insights: InsightsBundle | None) -> str:
    if insights is None:
        return ""
    lines = [_section("Market Insights")]
    if insights.market_trends:
        lines.append(insights.market_trends.strip())
        lines.append("")
    roi = insights.roi_projection
    if roi is not None:
        lines.append(
            f"- **ROI projection:** 1y {_fmt_pct(roi.one_year)}, 5y {_fmt_pct(roi.five_year)}, "
            f"10y {_fmt_pct(roi.ten_year)}"
        )
    if insights.value_drivers:
        lines.append(f"- **Value drivers:** {', '.join(insights.value_drivers)}")
    for risk in insights.investment_risks:
        severity = risk.severity.value if risk.severity else "n/a"
        detail = f" – {risk.description}" if risk.description else ""
        lines.append(f"- **Risk ({severity}):** {risk.risk_type or 'unspecified'}{detail}")
    return "\n".join(lines) + "\n"


def _render_maintenance(insights: InsightsBundle | None) -> str:
    """
    One drafted task per maintenance priority.

    Columns:
      Task | Project | Trade | Urgency | Estimate | Budget Range
    """
    if insights is None or not insights.maintenance_priorities:
        return ""
    lines = [
        _section("Maintenance Plan"),
        "| Task | Project | Trade | Urgency | Estimate | Budget Range |",
        "| :--- | :--- | :--- | :--- | ---: | ---: |",
    ]
    for p in insights.maintenance_priorities:
        d = draft_maintenance_task(p)
        estimate = _fmt_currency(d.estimated_cost) if d.estimated_cost else "N/A"
        lines.append(
            f"| {d.project_title or '(unnamed)'} | {d.project_type} | {d.component_type} "
            f"| {d.urgency} | {estimate} | {d.budget_range or 'N/A'} |"
        )
    return "\n".join(lines) + "\n"


# -----------------------
# Orchestration
# -----------------------


def generate_report(
    prop: Property,
    components: Sequence[Component],
    reports: Sequence[Report],
) -> str:
    """
    Generate a Markdown summary of a digitized property.

    Sections:
      - Header: address, type, size, year built, status
      - Valuation: rebuild cost, land, residual, market adjustment, appraised value
      - Components table
      - Report summaries (inspection, appraisal)
      - Market insights headlines
      - Maintenance plan drafted from the insight priorities
    """
    insights = InsightsBundle.model_validate(prop.insights) if prop.insights else None
    parts = [
        _render_header(prop),
        _render_valuation(prop),
        _render_components(components),
        _render_reports(reports),
        _render_insights(insights),
        _render_maintenance(insights),
    ]
    return "\n".join(part for part in parts if part).strip() + "\n"


def write_report(
    path: str,
    prop: Property,
    components: Sequence[Component],
    reports: Sequence[Report],
) -> None:
    """
    Convenience helper to write the generated report to disk.
    """
    md = generate_report(prop, components, reports)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(md)
