"""Recommendation result models returned by the sizing pipeline."""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel


class RejectionReason(str, Enum):
    SANDY_WATER = "sandy_water"
    CASING_TOO_SMALL = "casing_too_small"
    NO_SUITABLE_PUMP = "no_suitable_pump"


class WaterRequirements(BaseModel):
    """Daily volume and the flow rate needed to deliver it in sun hours."""
    daily_gallons: float
    required_gpm: float
    peak_sun_hours: float


class PumpDetails(BaseModel):
    model: str
    stages: int
    max_flow: float
    max_head: float
    flow_at_tdh: float


class SystemDetails(BaseModel):
    tdh: float
    peak_sun_hours: float
    panels_required: int
    daily_output: float


class SolarConfig(BaseModel):
    """Panel array wired for the 48V pump bus."""
    voltage: int
    power_required: int
    panels: int
    wattage: int
    description: str


class Recommendation(BaseModel):
    """A valid pump and solar array recommendation."""
    is_valid: Literal[True] = True
    water_requirements: WaterRequirements
    pump_details: PumpDetails
    system: SystemDetails
    solar_config: SolarConfig
    formatted_summary: str = ""


class Rejection(BaseModel):
    """A terminal business outcome where no standard pump can be offered."""
    is_valid: Literal[False] = False
    reason_code: RejectionReason
    message: str


RecommendationResult = Union[Recommendation, Rejection]
