"""
Water demand calculator.

Turns the collected usage answers into a daily volume and the flow rate
needed to pump that volume during peak sun hours. Unspecified answers are
resolved to their defaults here and nowhere earlier.
"""

from typing import Optional

from pump_advisor.config import settings
from pump_advisor.conversation.extractors import classify_livestock
from pump_advisor.schemas.recommendation_schema import WaterRequirements
from pump_advisor.schemas.session_schema import (
    CollectedData,
    CropCategory,
    IrrigationMethod,
    UsageType,
)

# Summer gallons per head per day
LIVESTOCK_DAILY_GALLONS = {
    "beef": 22.0,
    "dairy": 32.0,
    "horses": 13.5,
    "goats": 4.0,
    "sheep": 4.0,
}

HOUSEHOLD_DAILY_GALLONS = {
    "person": 80.0,
    "bathroom": 100.0,
    "kitchen": 50.0,
    "laundry": 30.0,
    "garden_small": 100.0,
    "garden_medium": 300.0,
    "garden_large": 600.0,
}

# Gallons per acre per day
IRRIGATION_BASE_RATES = {
    IrrigationMethod.DRIP: 600.0,
    IrrigationMethod.SPRINKLER: 1200.0,
    IrrigationMethod.FLOOD: 2400.0,
}

CROP_MULTIPLIERS = {
    CropCategory.VEGETABLES: 1.2,
    CropCategory.FRUITS: 1.0,
    CropCategory.LAWN: 1.5,
}

DEFAULT_IRRIGATION_ACRES = 1.0
DEFAULT_DAILY_GALLONS = 500.0


def livestock_daily_gallons(data: CollectedData) -> float:
    species = classify_livestock(data.livestock_type)
    return LIVESTOCK_DAILY_GALLONS[species] * (data.animal_count or 0)


def household_daily_gallons(data: CollectedData) -> float:
    gallons = (data.people_count or 0) * HOUSEHOLD_DAILY_GALLONS["person"]
    gallons += (data.bathroom_count or 0) * HOUSEHOLD_DAILY_GALLONS["bathroom"]

    fixtures = (data.fixtures_info or "").lower()
    if "kitchen" in fixtures:
        gallons += HOUSEHOLD_DAILY_GALLONS["kitchen"]
    if "laundry" in fixtures:
        gallons += HOUSEHOLD_DAILY_GALLONS["laundry"]
    if "garden" in fixtures:
        if "large" in fixtures:
            gallons += HOUSEHOLD_DAILY_GALLONS["garden_large"]
        elif "medium" in fixtures:
            gallons += HOUSEHOLD_DAILY_GALLONS["garden_medium"]
        else:
            gallons += HOUSEHOLD_DAILY_GALLONS["garden_small"]
    return gallons


def irrigation_daily_gallons(data: CollectedData) -> float:
    base_rate = IRRIGATION_BASE_RATES.get(
        data.irrigation_method, IRRIGATION_BASE_RATES[IrrigationMethod.SPRINKLER]
    )
    multiplier = CROP_MULTIPLIERS.get(data.crop_category, 1.0)
    # An answered area of zero is kept; only an unanswered area defaults
    area = DEFAULT_IRRIGATION_ACRES if data.irrigation_area is None else data.irrigation_area
    return base_rate * area * multiplier


def daily_gallons(data: CollectedData) -> float:
    """Daily volume in gallons. A custom GPD override wins over everything."""
    if data.custom_gpd is not None:
        return data.custom_gpd
    if data.usage_type == UsageType.LIVESTOCK:
        return livestock_daily_gallons(data)
    if data.usage_type == UsageType.HOUSEHOLD:
        return household_daily_gallons(data)
    if data.usage_type == UsageType.IRRIGATION:
        return irrigation_daily_gallons(data)
    return DEFAULT_DAILY_GALLONS


def calculate_water_requirements(
    data: CollectedData,
    peak_sun_hours: Optional[float] = None,
) -> WaterRequirements:
    """
    Compute daily gallons and required GPM.

    The pump only runs during sun hours, so the full daily volume is spread
    across ``peak_sun_hours * 60`` minutes.
    """
    if peak_sun_hours is None:
        peak_sun_hours = settings.sizing.peak_sun_hours
    gallons = daily_gallons(data)
    return WaterRequirements(
        daily_gallons=gallons,
        required_gpm=gallons / (peak_sun_hours * 60),
        peak_sun_hours=peak_sun_hours,
    )
