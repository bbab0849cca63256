import pytest

from app.shared.services.pricing_service import PricingCalculator


@pytest.mark.parametrize("duration,months", [
    ("6 months", 6),
    ("1 month", 1),
    ("2 years", 2),
    ("12 weeks", 12),
    ("forever", 1),
    ("0 months", 1),
    (None, 1),
])
def test_duration_months(duration, months):
    assert PricingCalculator.duration_months(duration) == months


def test_cold_storage_estimate():
    result = PricingCalculator.calculate(100, 10, "6 months", "cold_storage")
    assert result["estimated_price"] == 9000.0
    assert result["storage_type_multiplier"] == 1.5
    assert result["duration_months"] == 6


def test_default_rate_when_warehouse_has_none():
    result = PricingCalculator.calculate(10, None, "1 month", "dry_storage")
    assert result["price_per_sqft"] == 10.0
    assert result["estimated_price"] == 100.0


def test_unknown_storage_type_has_no_multiplier():
    assert PricingCalculator.storage_multiplier("outdoor") == 1.0


def test_estimate_is_rounded_to_cents():
    result = PricingCalculator.calculate(3.333, 1, "1 month", "climate_controlled")
    assert result["estimated_price"] == 4.33
