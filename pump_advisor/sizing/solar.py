"""Solar array sizing for the 48V pump bus."""

import math

from pump_advisor.schemas.pump_schema import PumpModel
from pump_advisor.schemas.recommendation_schema import SolarConfig

SYSTEM_VOLTAGE = 48
PANEL_WATTS = 100


def panels_needed(power_required: float) -> int:
    """Panel count for ``power_required`` watts, rounded up to an even number.

    Panels pair into 24V series strings to reach the 48V bus.
    """
    panels = math.ceil(power_required / PANEL_WATTS)
    if panels % 2:
        panels += 1
    return panels


def calculate_solar_config(pump: PumpModel) -> SolarConfig:
    power = pump.power_required
    panels = panels_needed(power)
    return SolarConfig(
        voltage=SYSTEM_VOLTAGE,
        power_required=power,
        panels=panels,
        wattage=panels * PANEL_WATTS,
        description=f"{panels} panels ({panels // 2} series pairs of 24V/100W panels)",
    )


def daily_pump_output(pump: PumpModel, peak_sun_hours: float) -> float:
    """Best-case daily gallons at nameplate max flow (not the TDH flow)."""
    return pump.max_flow * peak_sun_hours * 60
