"""
Recommendation assembly.

Runs the pure calculators in order:
1. Demand      - daily gallons and required GPM
2. Hydraulics  - total dynamic head
3. Selector    - disqualification checks, then curve-based model choice
4. Solar       - panel count and wiring for the chosen model

and packs the result, plus a plain-text data sheet the customer can copy.
"""

import logging
from typing import Iterable, Optional

from pump_advisor.schemas.pump_schema import PumpModel, PumpSelection
from pump_advisor.schemas.recommendation_schema import (
    PumpDetails,
    Recommendation,
    RecommendationResult,
    SolarConfig,
    SystemDetails,
    WaterRequirements,
)
from pump_advisor.schemas.session_schema import CollectedData, UsageType
from pump_advisor.sizing.demand import calculate_water_requirements
from pump_advisor.sizing.hydraulics import calculate_tdh
from pump_advisor.sizing.selector import check_disqualification, no_suitable_pump, select_pump
from pump_advisor.sizing.solar import calculate_solar_config, daily_pump_output
from pump_advisor.tools.pump_catalog import get_default_catalog

logger = logging.getLogger(__name__)


def compute_recommendation(
    data: CollectedData,
    catalog: Optional[Iterable[PumpModel]] = None,
    peak_sun_hours: Optional[float] = None,
) -> RecommendationResult:
    """
    Size a pump and solar array for the collected data.

    Returns a Recommendation, or a Rejection for sandy water, an undersized
    casing, or a requirement no catalog model can meet.
    """
    rejection = check_disqualification(data)
    if rejection is not None:
        logger.info("Recommendation rejected: %s", rejection.reason_code.value)
        return rejection

    water = calculate_water_requirements(data, peak_sun_hours)
    tdh = calculate_tdh(data, water.required_gpm)

    selection = select_pump(
        catalog if catalog is not None else get_default_catalog(),
        water.required_gpm,
        tdh,
    )
    if selection is None:
        logger.info(
            "No pump covers %.2f GPM at %.1f ft TDH", water.required_gpm, tdh
        )
        return no_suitable_pump()

    pump = selection.pump
    solar = calculate_solar_config(pump)
    output = daily_pump_output(pump, water.peak_sun_hours)
    system = SystemDetails(
        tdh=round(tdh, 1),
        peak_sun_hours=water.peak_sun_hours,
        panels_required=solar.panels,
        daily_output=round(output),
    )
    logger.info(
        "Recommended %s (%d stages) for %.2f GPM at %.1f ft",
        pump.model, pump.stages, water.required_gpm, tdh,
    )
    return Recommendation(
        water_requirements=water,
        pump_details=PumpDetails(
            model=pump.model,
            stages=pump.stages,
            max_flow=pump.max_flow,
            max_head=pump.max_head,
            flow_at_tdh=round(selection.flow_at_tdh, 2),
        ),
        system=system,
        solar_config=solar,
        formatted_summary=format_data_sheet(data, water, tdh, selection, solar, output),
    )


# --------------------------------------------------------------------------- #
# Data sheet
# --------------------------------------------------------------------------- #

def _feet(value: Optional[float]) -> str:
    if value is None:
        return "Not specified"
    return f"{value:g} feet"


def _usage_line(data: CollectedData) -> str:
    if data.usage_type == UsageType.LIVESTOCK:
        return f"Livestock: {data.animal_count or 0} {data.livestock_type or 'head'}"
    if data.usage_type == UsageType.HOUSEHOLD:
        return (
            f"Household: {data.people_count or 0} people, "
            f"{data.bathroom_count or 0} bathrooms"
        )
    if data.usage_type == UsageType.IRRIGATION:
        method = data.irrigation_method.value if data.irrigation_method else "sprinkler"
        area = 1.0 if data.irrigation_area is None else data.irrigation_area
        return f"Irrigation: {area:g} acres, {method} system, {data.crop_type or 'unspecified crop'}"
    return "Custom requirements"


def format_data_sheet(
    data: CollectedData,
    water: WaterRequirements,
    tdh: float,
    selection: PumpSelection,
    solar: SolarConfig,
    daily_output: float,
) -> str:
    pump = selection.pump
    drawdown = _feet(data.drawdown_level)
    if data.drawdown_level is not None and data.drawdown_estimated:
        drawdown += " (estimated)"

    lines = [
        "WATER SYSTEM SPECIFICATIONS",
        "=" * 31,
        f"Usage type: {data.usage_type.value.upper()}",
        _usage_line(data),
        "",
        "WATER REQUIREMENTS",
        "-" * 32,
        f"Daily water needed: {water.daily_gallons:.0f} gallons",
        f"Required flow rate: {water.required_gpm:.2f} GPM",
        f"Peak sun hours: {water.peak_sun_hours:g} hours",
        "",
        "WELL SPECIFICATIONS",
        "-" * 32,
        f"Well depth: {_feet(data.well_depth)}",
        f"Static water level: {_feet(data.static_water_level)}",
        f"Drawdown: {drawdown}",
        f"Elevation gain: {_feet(data.elevation_gain)}",
        f"Total Dynamic Head: {tdh:.1f} feet",
        "",
        "PUMP RECOMMENDATION",
        "=" * 32,
        f"Model: {pump.model}",
        f"Stages: {pump.stages}",
        f"Max flow capacity: {pump.max_flow:g} GPM",
        f"Max head capacity: {pump.max_head:g} feet",
        f"Flow at TDH: {selection.flow_at_tdh:.2f} GPM",
        f"Daily output: {daily_output:.0f} gallons",
        "",
        "SOLAR CONFIGURATION",
        "-" * 32,
        f"System voltage: {solar.voltage}V",
        f"Total power required: {solar.power_required} watts",
        f"Recommended panels: {solar.panels} x 100W panels ({solar.panels // 2} series pairs)",
    ]
    return "\n".join(lines)
