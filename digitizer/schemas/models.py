# digitizer/schemas/models.py

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =========================
# Enumerations
# =========================


class PropertyType(str, Enum):
    single_family = "single_family"
    condo = "condo"
    townhouse = "townhouse"
    multi_family = "multi_family"


class ComponentType(str, Enum):
    front = "front"
    roof = "roof"
    windows = "windows"
    porch = "porch"
    heater = "heater"
    ac = "ac"
    hvac = "hvac"
    pool = "pool"
    plumbing = "plumbing"
    electrical = "electrical"
    other = "other"


class Condition(str, Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


class PropertyStatus(str, Enum):
    processing = "processing"
    completed = "completed"


class ReportType(str, Enum):
    inspection = "inspection"
    appraisal = "appraisal"


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


def normalize_slug(value: Any) -> Any:
    """'Single Family' / 'single-family' -> 'single_family'. Non-strings pass through."""
    if isinstance(value, str):
        return "_".join(value.strip().lower().replace("-", " ").split())
    return value


def lenient_enum(enum_cls: type[Enum], value: Any) -> Any:
    """Map free-text to an enum member, or None when it does not match."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(normalize_slug(value))
    except ValueError:
        return None


def _as_text(value: Any) -> Any:
    """Inference output sometimes returns bullet lists where prose is expected."""
    if isinstance(value, list):
        return "\n".join(str(v) for v in value if v is not None)
    return value


def lenient_number(value: Any) -> float | None:
    """
    Parse inference output like 410000, "410000", "$410,000" or "6.5%" as a float.

    Anything unparseable or non-finite becomes None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").replace("$", "").rstrip("%").strip()
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if f != f or f in (float("inf"), float("-inf")):
        return None
    return f


def _dict_items(value: Any) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _str_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


# =========================
# Caller inputs
# =========================


class PropertyInput(BaseModel):
    """Raw property attributes submitted for digitization."""

    model_config = ConfigDict(extra="ignore")

    address: str | None = Field(None, description="Street address of the property.")
    sqft: float | None = Field(None, description="Living area in square feet.")
    lot_size: float | None = Field(None, description="Lot size in square feet.")
    bedrooms: int | None = Field(None, ge=0, description="Bedroom count.")
    bathrooms: float | None = Field(None, ge=0, description="Bathroom count (half baths as .5).")
    year_built: int | None = Field(None, description="Construction year, if known.")
    property_type: PropertyType = Field(PropertyType.single_family, description="Property type.")
    classification: str | None = Field(None, description="Optional zoning / use classification.")
    description: str | None = Field(None, description="Free-form owner description.")

    @field_validator("property_type", mode="before")
    @classmethod
    def _normalize_property_type(cls, v: Any) -> Any:
        if v is None or v == "":
            return PropertyType.single_family
        return normalize_slug(v)

    def validation_problems(self) -> list[str]:
        """Names of required fields that are absent or unusable."""
        problems: list[str] = []
        if not (self.address or "").strip():
            problems.append("address")
        if self.sqft is None or self.sqft <= 0:
            problems.append("sqft")
        if self.lot_size is None or self.lot_size < 0:
            problems.append("lot_size")
        return problems

    @property
    def has_shared_land(self) -> bool:
        return self.property_type in (PropertyType.condo, PropertyType.townhouse)


class ComponentSubmission(BaseModel):
    """Photos and/or serial number submitted for one building component."""

    model_config = ConfigDict(extra="ignore")

    component_type: ComponentType = Field(..., description="Component category (roof, windows, ...).")
    serial_number: str | None = Field(None, description="Serial or model number, if legible.")
    photo_urls: list[str] = Field(default_factory=list, description="Already-uploaded photo URIs.")

    @field_validator("component_type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        return normalize_slug(v)

    @property
    def has_content(self) -> bool:
        return bool(self.photo_urls) or bool((self.serial_number or "").strip())


class CostBasis(BaseModel):
    """Resolved rebuild cost and land value for a property."""

    model_config = ConfigDict(frozen=True)

    rebuild_cost_per_sqft: float = Field(..., ge=0)
    land_value: float = Field(..., ge=0)


# =========================
# Persisted entities
# =========================


class Property(BaseModel):
    """A digitized property as held by the entity store."""

    model_config = ConfigDict(extra="ignore")

    id: str
    owner: str | None = None
    address: str
    sqft: float
    lot_size: float | None = None
    bedrooms: int | None = None
    bathrooms: float | None = None
    year_built: int | None = None
    property_type: PropertyType = PropertyType.single_family
    classification: str | None = None
    description: str | None = None

    rebuild_cost_per_sqft: float | None = None
    land_value: float | None = None
    market_rating: int | None = None
    appraised_value: float | None = None
    total_asset_residual_value: float | None = None
    insights: dict[str, Any] | None = None
    status: PropertyStatus = PropertyStatus.processing

    @property
    def has_shared_land(self) -> bool:
        return self.property_type in (PropertyType.condo, PropertyType.townhouse)


class Component(BaseModel):
    """An analyzed building component. Always carries a full set of values."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    property_id: str
    component_type: ComponentType
    serial_number: str = ""
    photo_urls: list[str] = Field(default_factory=list)
    installation_year: int
    current_condition: Condition
    estimated_lifetime_years: float
    replacement_cost: float
    residual_value: float
    maintenance_notes: str

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id"})


class Report(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    property_id: str
    report_type: ReportType
    report_data: dict[str, Any] = Field(default_factory=dict)
    summary: str = ""

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id"})


# =========================
# Advisory payloads
# =========================


class RoiProjection(BaseModel):
    model_config = ConfigDict(extra="allow")

    one_year: float | None = Field(None, description="Projected 1-year ROI in percent.")
    five_year: float | None = Field(None, description="Projected 5-year ROI in percent.")
    ten_year: float | None = Field(None, description="Projected 10-year ROI in percent.")

    @field_validator("one_year", "five_year", "ten_year", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Any:
        return lenient_number(v)


class InvestmentRisk(BaseModel):
    model_config = ConfigDict(extra="allow")

    risk_type: str | None = None
    severity: Severity | None = None
    description: str | None = None

    @field_validator("risk_type", "description", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        v = _as_text(v)
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, v: Any) -> Any:
        return lenient_enum(Severity, v)


class ComparableProperty(BaseModel):
    model_config = ConfigDict(extra="allow")

    address: str | None = None
    price: float | None = None
    sqft: float | None = None
    similarity_score: float | None = Field(None, description="0-100, clamped.")

    @field_validator("address", mode="before")
    @classmethod
    def _address(cls, v: Any) -> Any:
        return None if v is None else str(v)

    @field_validator("price", "sqft", "similarity_score", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Any:
        return lenient_number(v)

    @field_validator("similarity_score")
    @classmethod
    def _clamp_score(cls, v: float | None) -> float | None:
        if v is None:
            return None
        return max(0.0, min(100.0, v))


class MaintenancePriority(BaseModel):
    model_config = ConfigDict(extra="allow")

    priority: str | None = None
    item: str = ""
    estimated_cost: float | None = None
    urgency: Severity | None = None

    @field_validator("item", mode="before")
    @classmethod
    def _item(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("estimated_cost", mode="before")
    @classmethod
    def _cost(cls, v: Any) -> Any:
        return lenient_number(v)

    @field_validator("urgency", mode="before")
    @classmethod
    def _urgency(cls, v: Any) -> Any:
        return lenient_enum(Severity, v)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority_text(cls, v: Any) -> Any:
        return None if v is None else str(v)


class InsightsBundle(BaseModel):
    """
    Structured advisory bundle produced once per pipeline run.

    Every field is optional: the gateway only guarantees basic JSON shape.
    Unknown keys are preserved so the stored payload matches what was returned.
    """

    model_config = ConfigDict(extra="allow")

    market_trends: str | None = None
    roi_projection: RoiProjection | None = None
    investment_risks: list[InvestmentRisk] = Field(default_factory=list)
    investment_opportunities: list[str] = Field(default_factory=list)
    comparable_properties: list[ComparableProperty] = Field(default_factory=list)
    value_drivers: list[str] = Field(default_factory=list)
    maintenance_priorities: list[MaintenancePriority] = Field(default_factory=list)

    @field_validator("market_trends", mode="before")
    @classmethod
    def _trends_text(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("roi_projection", mode="before")
    @classmethod
    def _roi(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None

    @field_validator("investment_risks", "comparable_properties", "maintenance_priorities", mode="before")
    @classmethod
    def _object_lists(cls, v: Any) -> list[Any]:
        return _dict_items(v)

    @field_validator("investment_opportunities", "value_drivers", mode="before")
    @classmethod
    def _string_lists(cls, v: Any) -> list[str]:
        return _str_items(v)


class InspectionNarrative(BaseModel):
    model_config = ConfigDict(extra="allow")

    executive_summary: str | None = None
    property_overview: str | None = None
    component_assessments: list[dict[str, Any]] = Field(default_factory=list)
    maintenance_recommendations: str | None = None
    overall_rating: str | None = None
    inspector_notes: str | None = None

    @field_validator(
        "executive_summary",
        "property_overview",
        "maintenance_recommendations",
        "overall_rating",
        "inspector_notes",
        mode="before",
    )
    @classmethod
    def _text(cls, v: Any) -> Any:
        v = _as_text(v)
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("component_assessments", mode="before")
    @classmethod
    def _assessments(cls, v: Any) -> list[Any]:
        return _dict_items(v)


class AppraisalNarrative(BaseModel):
    """
    Appraisal report payload. Narrative text comes from inference; the
    numeric fields are always overwritten with calculator output.
    """

    model_config = ConfigDict(extra="allow")

    valuation_methodology: str | None = None
    market_analysis: str | None = None
    comparable_properties_summary: str | None = None
    investment_potential: str | None = None
    risk_factors: str | None = None
    changes_summary: str | None = None

    appraised_value: float | None = None
    rebuild_cost: float | None = None
    land_value: float | None = None
    asset_residual_value: float | None = None
    market_adjustment_percent: float | None = None
    previous_appraised_value: float | None = None
    change_percent: float | None = None

    @field_validator(
        "valuation_methodology",
        "market_analysis",
        "comparable_properties_summary",
        "investment_potential",
        "risk_factors",
        "changes_summary",
        mode="before",
    )
    @classmethod
    def _text(cls, v: Any) -> Any:
        v = _as_text(v)
        return v if v is None or isinstance(v, str) else str(v)


# =========================
# Orchestration outputs
# =========================


class DigitizationResult(BaseModel):
    """Returned to the caller when the initial pipeline completes."""

    model_config = ConfigDict(frozen=True)

    property_id: str
    appraised_value: float
    total_asset_residual_value: float
    component_ids: list[str] = Field(default_factory=list)
    degraded_components: list[str] = Field(
        default_factory=list, description="Component types whose analysis fell back to defaults."
    )
    inspection_report_id: str
    appraisal_report_id: str


class RevaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    property_id: str
    appraised_value: float
    previous_appraised_value: float | None = None
    change_percent: float | None = None
    appraisal_report_id: str
    appraisal_report_created: bool = Field(False, description="True when no appraisal existed and one was created.")
