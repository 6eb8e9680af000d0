"""Disqualification checks and curve-based pump selection."""

import logging
from typing import Iterable, Optional

from pump_advisor.schemas.pump_schema import PumpModel, PumpSelection
from pump_advisor.schemas.recommendation_schema import Rejection, RejectionReason
from pump_advisor.schemas.session_schema import CollectedData

logger = logging.getLogger(__name__)

MIN_CASING_INCHES = 5.0

SANDY_WATER_MESSAGE = (
    "Your water has too much sand for our solar pumps. You might want to "
    "consider contacting us directly for alternatives."
)
CASING_TOO_SMALL_MESSAGE = (
    "Our pumps require a well casing of 5 inches or larger. Your well casing "
    "is too small for our pumps. Please contact us for assistance."
)
NO_SUITABLE_PUMP_MESSAGE = (
    "Based on your requirements, we don't have a standard pump that meets "
    "your needs. Please contact us directly for a custom solution."
)


def check_disqualification(data: CollectedData) -> Optional[Rejection]:
    """Return a rejection when the well cannot take any of our pumps."""
    if data.sandy_water:
        return Rejection(reason_code=RejectionReason.SANDY_WATER, message=SANDY_WATER_MESSAGE)
    if data.well_casing_size is not None and data.well_casing_size < MIN_CASING_INCHES:
        return Rejection(
            reason_code=RejectionReason.CASING_TOO_SMALL,
            message=CASING_TOO_SMALL_MESSAGE,
        )
    return None


def no_suitable_pump() -> Rejection:
    return Rejection(
        reason_code=RejectionReason.NO_SUITABLE_PUMP,
        message=NO_SUITABLE_PUMP_MESSAGE,
    )


def select_pump(
    catalog: Iterable[PumpModel],
    required_gpm: float,
    tdh: float,
) -> Optional[PumpSelection]:
    """
    Pick the most economical pump that delivers ``required_gpm`` at ``tdh``.

    A model qualifies when its max head covers the TDH and its interpolated
    curve flow at the TDH meets the requirement. The fewest stages wins; on
    a tie the model seen first in catalog order is kept.
    """
    best: Optional[PumpSelection] = None
    for pump in catalog:
        if pump.max_head < tdh:
            continue
        flow = pump.flow_at(tdh)
        if flow < required_gpm:
            logger.debug(
                "%s rejected: %.2f GPM at %.1f ft < %.2f GPM",
                pump.model, flow, tdh, required_gpm,
            )
            continue
        if best is None or pump.stages < best.pump.stages:
            best = PumpSelection(pump=pump, flow_at_tdh=flow)
    return best
