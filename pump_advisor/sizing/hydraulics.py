"""
Hydraulic sizing: friction loss and total dynamic head (TDH).

The friction term is a simplified proxy, not Hazen-Williams. Pump selection
is calibrated against this exact formula, so it must stay as written.
"""

from typing import Optional

from pump_advisor.schemas.session_schema import CollectedData

FRICTION_FACTOR = 0.02


def calculate_friction_loss(
    gpm: float,
    pipe_length: Optional[float],
    pipe_size: Optional[float],
) -> float:
    """Friction loss in feet: ``0.02 * (L / D) * gpm**2``.

    Zero when the pipe length or size is unknown or zero.
    """
    if not pipe_length or not pipe_size:
        return 0.0
    return FRICTION_FACTOR * (pipe_length / pipe_size) * gpm ** 2


def calculate_tdh(data: CollectedData, required_gpm: float) -> float:
    """Total dynamic head in feet. A custom head override replaces the sum."""
    if data.custom_head is not None:
        return data.custom_head
    return (
        (data.static_water_level or 0.0)
        + (data.drawdown_level or 0.0)
        + (data.elevation_gain or 0.0)
        + calculate_friction_loss(required_gpm, data.pipe_length, data.pipe_size)
    )
