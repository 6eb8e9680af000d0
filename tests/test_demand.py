"""Tests for the water demand calculator."""

import pytest

from pump_advisor.schemas.session_schema import (
    CollectedData,
    CropCategory,
    IrrigationMethod,
    UsageType,
)
from pump_advisor.sizing.demand import calculate_water_requirements, daily_gallons


class TestLivestock:
    def test_dairy_twenty_head(self):
        data = CollectedData(usage_type=UsageType.LIVESTOCK, livestock_type="dairy", animal_count=20)
        req = calculate_water_requirements(data, peak_sun_hours=5.4)
        assert req.daily_gallons == 640
        assert req.required_gpm == pytest.approx(640 / 324)
        assert req.required_gpm == pytest.approx(1.975, abs=1e-3)

    @pytest.mark.parametrize("description,per_head", [
        ("beef cattle", 22),
        ("Horses", 13.5),
        ("goats", 4),
        ("sheep", 4),
        (None, 22),
    ])
    def test_species_rates(self, description, per_head):
        data = CollectedData(usage_type=UsageType.LIVESTOCK, livestock_type=description, animal_count=10)
        assert daily_gallons(data) == pytest.approx(per_head * 10)

    def test_missing_count_is_zero(self):
        data = CollectedData(usage_type=UsageType.LIVESTOCK, livestock_type="dairy")
        assert daily_gallons(data) == 0


class TestHousehold:
    def test_people_only(self):
        data = CollectedData(usage_type=UsageType.HOUSEHOLD, people_count=4)
        assert daily_gallons(data) == 320

    def test_fixtures(self):
        data = CollectedData(
            usage_type=UsageType.HOUSEHOLD,
            people_count=4,
            bathroom_count=2,
            fixtures_info="2 bathrooms, a kitchen and laundry",
        )
        assert daily_gallons(data) == 320 + 200 + 50 + 30

    @pytest.mark.parametrize("fixtures,garden", [
        ("a large garden", 600),
        ("medium garden", 300),
        ("small garden", 100),
        ("garden", 100),
    ])
    def test_garden_sizes(self, fixtures, garden):
        data = CollectedData(usage_type=UsageType.HOUSEHOLD, fixtures_info=fixtures)
        assert daily_gallons(data) == garden


class TestIrrigation:
    def test_method_area_and_crop(self):
        data = CollectedData(
            usage_type=UsageType.IRRIGATION,
            irrigation_area=2.0,
            irrigation_method=IrrigationMethod.DRIP,
            crop_category=CropCategory.VEGETABLES,
        )
        assert daily_gallons(data) == pytest.approx(600 * 2 * 1.2)

    def test_defaults_sprinkler_one_acre_fruits(self):
        data = CollectedData(usage_type=UsageType.IRRIGATION)
        assert daily_gallons(data) == pytest.approx(1200)

    def test_flood_lawn(self):
        data = CollectedData(
            usage_type=UsageType.IRRIGATION,
            irrigation_area=0.5,
            irrigation_method=IrrigationMethod.FLOOD,
            crop_category=CropCategory.LAWN,
        )
        assert daily_gallons(data) == pytest.approx(2400 * 0.5 * 1.5)


class TestDefaultsAndOverrides:
    def test_unknown_usage_defaults(self):
        assert daily_gallons(CollectedData()) == 500

    def test_other_usage_defaults(self):
        assert daily_gallons(CollectedData(usage_type=UsageType.OTHER)) == 500

    def test_custom_gpd_overrides_usage(self):
        data = CollectedData(
            usage_type=UsageType.LIVESTOCK, livestock_type="dairy", animal_count=20, custom_gpd=1500
        )
        assert daily_gallons(data) == 1500

    def test_zero_custom_gpd_is_respected(self):
        data = CollectedData(usage_type=UsageType.HOUSEHOLD, people_count=4, custom_gpd=0)
        assert daily_gallons(data) == 0

    def test_peak_sun_hours_defaults_from_config(self):
        req = calculate_water_requirements(CollectedData())
        assert req.peak_sun_hours == pytest.approx(5.4)
        assert req.required_gpm == pytest.approx(500 / (5.4 * 60))
