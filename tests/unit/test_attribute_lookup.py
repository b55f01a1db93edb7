# tests/unit/test_attribute_lookup.py
"""
Address validation and attribute lookup

- Short addresses are rejected without a gateway call.
- An invalid verdict stops before the attribute call.
- A valid lookup fills only the fields the caller left empty.
"""

from digitizer.agents.attribute_lookup import apply_lookup, lookup_property_attributes
from digitizer.gateway.mock_gateway import MockInferenceGateway
from digitizer.schemas.models import PropertyInput, PropertyType


def test_short_address_rejected_without_calls(gateway):
    out = lookup_property_attributes("12 Elm", gateway)
    assert out.is_valid is False
    assert out.error_message == "Address is too short"
    assert gateway.calls == []


def test_invalid_verdict_skips_attribute_call():
    gw = MockInferenceGateway(
        responses={"address_validation": {"is_valid": False, "error_message": "Missing ZIP code"}}
    )
    out = lookup_property_attributes("123 Main St, Springfield", gw)
    assert out.is_valid is False
    assert out.error_message == "Missing ZIP code"
    assert gw.calls_for("property_attributes") == []


def test_valid_lookup_returns_attributes(gateway):
    out = lookup_property_attributes("  456 Oak Ave, Portland, OR 97201 ", gateway)
    assert out.is_valid is True
    assert out.formatted_address == "456 Oak Ave, Portland, OR 97201"
    assert out.attributes.sqft == 1850
    assert out.attributes.bedrooms == 3
    assert out.attributes.property_type is PropertyType.single_family
    assert all(c.use_web_context for c in gateway.calls)
    assert [c.title for c in gateway.calls] == ["address_validation", "property_attributes"]


def test_implausible_attribute_values_become_none():
    gw = MockInferenceGateway(
        responses={"property_attributes": {"sqft": -1, "bedrooms": "three", "property_type": "castle"}}
    )
    out = lookup_property_attributes("456 Oak Ave, Portland, OR 97201", gw)
    assert out.attributes.sqft is None
    assert out.attributes.bedrooms is None
    assert out.attributes.property_type is None


def test_apply_lookup_keeps_caller_values(gateway):
    lookup = lookup_property_attributes("456 Oak Ave, Portland, OR 97201", gateway)
    prop = PropertyInput(address="456 oak ave portland", sqft=2400, property_type="condo")
    merged = apply_lookup(prop, lookup)
    assert merged.address == "456 Oak Ave, Portland, OR 97201"
    assert merged.sqft == 2400
    assert merged.lot_size == 6500
    assert merged.year_built == 1994
    assert merged.property_type is PropertyType.condo
    assert prop.lot_size is None


def test_apply_lookup_sets_type_when_caller_omitted_it(gateway):
    lookup = lookup_property_attributes("456 Oak Ave, Portland, OR 97201", gateway)
    merged = apply_lookup(PropertyInput(address="456 Oak Ave"), lookup)
    assert merged.property_type is PropertyType.single_family
    assert merged.validation_problems() == []
