from pump_advisor.sizing.demand import calculate_water_requirements
from pump_advisor.sizing.hydraulics import calculate_friction_loss, calculate_tdh
from pump_advisor.sizing.recommendation import compute_recommendation
from pump_advisor.sizing.selector import check_disqualification, select_pump
from pump_advisor.sizing.solar import calculate_solar_config, panels_needed

__all__ = [
    "calculate_water_requirements",
    "calculate_friction_loss",
    "calculate_tdh",
    "check_disqualification",
    "select_pump",
    "calculate_solar_config",
    "panels_needed",
    "compute_recommendation",
]
