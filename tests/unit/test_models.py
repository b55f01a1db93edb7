# tests/unit/test_models.py
import pytest
from pydantic import ValidationError

from digitizer.schemas.models import (
    ComponentSubmission,
    ComponentType,
    Condition,
    InsightsBundle,
    PropertyInput,
    PropertyType,
    lenient_enum,
    normalize_slug,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Single Family", PropertyType.single_family),
        ("single-family", PropertyType.single_family),
        ("CONDO", PropertyType.condo),
        (None, PropertyType.single_family),
        ("", PropertyType.single_family),
    ],
)
def test_property_type_normalization(raw, expected):
    assert PropertyInput(address="1 A St", property_type=raw).property_type is expected


def test_unknown_property_type_is_rejected():
    with pytest.raises(ValidationError):
        PropertyInput(property_type="castle")


def test_validation_problems_lists_required_fields():
    assert PropertyInput().validation_problems() == ["address", "sqft", "lot_size"]
    assert PropertyInput(address="  ", sqft=0, lot_size=-1).validation_problems() == ["address", "sqft", "lot_size"]
    assert PropertyInput(address="1 A St", sqft=900, lot_size=0).validation_problems() == []


def test_shared_land_types():
    assert PropertyInput(property_type="condo").has_shared_land
    assert PropertyInput(property_type="townhouse").has_shared_land
    assert not PropertyInput(property_type="multi_family").has_shared_land


def test_submission_type_and_content():
    sub = ComponentSubmission(component_type="Roof", serial_number="  ")
    assert sub.component_type is ComponentType.roof
    assert not sub.has_content
    assert ComponentSubmission(component_type="ac", photo_urls=["u"]).has_content


def test_lenient_enum_and_slug():
    assert normalize_slug("  Very  Good ") == "very_good"
    assert normalize_slug(3) == 3
    assert lenient_enum(Condition, "Fair") is Condition.fair
    assert lenient_enum(Condition, "mint") is None
    assert lenient_enum(Condition, None) is None


def test_insights_bundle_round_trips_unknown_keys():
    bundle = InsightsBundle.model_validate({"market_trends": ["a", "b"], "neighborhood_score": 7})
    dumped = bundle.model_dump(mode="json")
    assert dumped["market_trends"] == "a\nb"
    assert dumped["neighborhood_score"] == 7
