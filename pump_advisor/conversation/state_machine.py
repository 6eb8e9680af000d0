"""
Finite state machine for the pump sizing intake conversation.

Every stage change goes through an explicit transition table. The customer's
usage type picks one of four question branches after LOCATION, the branches
reconverge at WELL_DEPTH, and SUMMARY either confirms into RECOMMENDATION or
routes the customer back to the stage they want to correct.

Usage:
    sm = ConversationStateMachine()
    sm.advance(session, "hello")
    assert session.stage == ConversationStage.USAGE_TYPE
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pump_advisor.conversation.extractors import (
    KeywordRule,
    extract_fields,
    is_affirmative,
)
from pump_advisor.schemas.session_schema import (
    CollectedData,
    ConversationStage,
    Session,
    StageEntry,
    UsageType,
)

logger = logging.getLogger(__name__)

S = ConversationStage

DRAWDOWN_ESTIMATE_FRACTION = 0.1

OVERRIDE_FIELDS = frozenset({"custom_gpd", "custom_head"})
CUSTOM_STAGES = frozenset({S.CUSTOM_FLOW, S.CUSTOM_HEAD})

# Stages before the branches reconverge; the custom override may skip
# straight to WELL_DEPTH from any of them.
PRE_HYDRAULIC_STAGES: tuple[ConversationStage, ...] = (
    S.GREETING, S.USAGE_TYPE, S.LOCATION,
    S.LIVESTOCK_TYPE, S.ANIMAL_COUNT,
    S.PEOPLE_COUNT, S.FIXTURES_COUNT,
    S.IRRIGATION_AREA, S.IRRIGATION_TYPE, S.CROP_TYPE,
    S.CUSTOM_FLOW, S.CUSTOM_HEAD,
)

REVIEW_STAGES = frozenset({S.SUMMARY, S.RECOMMENDATION})


class TransitionTrigger(str, Enum):
    """Events that cause stage transitions."""
    ANSWERED = "answered"
    BRANCH_LIVESTOCK = "branch_livestock"
    BRANCH_HOUSEHOLD = "branch_household"
    BRANCH_IRRIGATION = "branch_irrigation"
    BRANCH_CUSTOM = "branch_custom"
    DIRECT_TO_TANK = "direct_to_tank"
    CUSTOM_OVERRIDE = "custom_override"
    CONFIRMED = "confirmed"
    CORRECTION_REQUESTED = "correction_requested"
    UNRECOGNIZED = "unrecognized"


T = TransitionTrigger


@dataclass(frozen=True)
class Transition:
    """A single valid stage transition."""
    from_stage: ConversationStage
    to_stage: ConversationStage
    trigger: TransitionTrigger


@dataclass(frozen=True)
class CorrectionRoute:
    """Keyword set that sends a reviewing customer back to ``target``.

    ``usage_gate`` restricts usage-specific routes to the matching branch.
    """
    rule: KeywordRule
    target: ConversationStage
    usage_gate: Optional[frozenset[UsageType]] = None

    def applies(self, text: str, usage: UsageType) -> bool:
        if self.usage_gate is not None and usage not in self.usage_gate:
            return False
        return self.rule.matches(text)


_CUSTOM_USAGES = frozenset({UsageType.OTHER, UsageType.UNKNOWN})

# Evaluated top to bottom, first applicable route wins. Phrases that
# contain a broader keyword ("well casing" contains "well") come first.
CORRECTION_ROUTES: tuple[CorrectionRoute, ...] = (
    CorrectionRoute(KeywordRule(("location",), None), S.LOCATION),
    CorrectionRoute(KeywordRule(("livestock", "animal"), None), S.LIVESTOCK_TYPE,
                    frozenset({UsageType.LIVESTOCK})),
    CorrectionRoute(KeywordRule(("people", "house"), None), S.PEOPLE_COUNT,
                    frozenset({UsageType.HOUSEHOLD})),
    CorrectionRoute(KeywordRule(("irrigation", "crop"), None), S.IRRIGATION_AREA,
                    frozenset({UsageType.IRRIGATION})),
    CorrectionRoute(KeywordRule(("flow", "gpd", "gallons"), None), S.CUSTOM_FLOW,
                    _CUSTOM_USAGES),
    CorrectionRoute(KeywordRule(("head", "tdh"), None), S.CUSTOM_HEAD, _CUSTOM_USAGES),
    CorrectionRoute(KeywordRule(("casing",), None), S.WELL_CASING),
    CorrectionRoute(KeywordRule(("static",), None), S.STATIC_WATER),
    CorrectionRoute(KeywordRule(("drawdown",), None), S.DRAWDOWN),
    CorrectionRoute(KeywordRule(("well",), None), S.WELL_DEPTH),
    CorrectionRoute(KeywordRule(("elevation",), None), S.ELEVATION),
    CorrectionRoute(KeywordRule(("pipe",), None), S.PIPE_INFO),
    CorrectionRoute(KeywordRule(("tank",), None), S.STORAGE_TANK),
    CorrectionRoute(KeywordRule(("quality", "sand"), None), S.WATER_QUALITY),
)


def route_correction(text: str, usage: UsageType) -> Optional[ConversationStage]:
    """Map a correction request to the stage that should be asked again."""
    for route in CORRECTION_ROUTES:
        if route.applies(text, usage):
            return route.target
    return None


_BRANCHES: dict[UsageType, tuple[ConversationStage, TransitionTrigger]] = {
    UsageType.LIVESTOCK: (S.LIVESTOCK_TYPE, T.BRANCH_LIVESTOCK),
    UsageType.HOUSEHOLD: (S.PEOPLE_COUNT, T.BRANCH_HOUSEHOLD),
    UsageType.IRRIGATION: (S.IRRIGATION_AREA, T.BRANCH_IRRIGATION),
}

# Single-successor stages advanced by an answer.
_NEXT_STAGE: dict[ConversationStage, ConversationStage] = {
    S.GREETING: S.USAGE_TYPE,
    S.USAGE_TYPE: S.LOCATION,
    S.LIVESTOCK_TYPE: S.ANIMAL_COUNT,
    S.ANIMAL_COUNT: S.WELL_DEPTH,
    S.PEOPLE_COUNT: S.FIXTURES_COUNT,
    S.FIXTURES_COUNT: S.WELL_DEPTH,
    S.IRRIGATION_AREA: S.IRRIGATION_TYPE,
    S.IRRIGATION_TYPE: S.CROP_TYPE,
    S.CROP_TYPE: S.WELL_DEPTH,
    S.CUSTOM_FLOW: S.CUSTOM_HEAD,
    S.CUSTOM_HEAD: S.WELL_DEPTH,
    S.WELL_DEPTH: S.STATIC_WATER,
    S.STATIC_WATER: S.DRAWDOWN,
    S.DRAWDOWN: S.ELEVATION,
    S.ELEVATION: S.PIPE_INFO,
    S.PIPE_INFO: S.STORAGE_TANK,
    S.STORAGE_TANK: S.WATER_QUALITY,
    S.WATER_QUALITY: S.WELL_CASING,
    S.WELL_CASING: S.SUMMARY,
}


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current stage."""


class ConversationStateMachine:
    """
    Deterministic stage machine driving the intake conversation.

    ``advance`` is the only entry point. It extracts fields from the reply,
    merges them into the session's collected data and moves the session to
    its next stage. Most stages move on whether or not extraction found a
    value; only SUMMARY and RECOMMENDATION wait for a recognizable reply.
    """

    TRANSITIONS: list[Transition] = (
        [Transition(src, dst, T.ANSWERED) for src, dst in _NEXT_STAGE.items()]
        + [
            # --- Usage branches ---
            Transition(S.LOCATION, S.LIVESTOCK_TYPE, T.BRANCH_LIVESTOCK),
            Transition(S.LOCATION, S.PEOPLE_COUNT, T.BRANCH_HOUSEHOLD),
            Transition(S.LOCATION, S.IRRIGATION_AREA, T.BRANCH_IRRIGATION),
            Transition(S.LOCATION, S.CUSTOM_FLOW, T.BRANCH_CUSTOM),

            # --- Pumping straight into a stock tank skips pipe and storage ---
            Transition(S.ELEVATION, S.WATER_QUALITY, T.DIRECT_TO_TANK),

            # --- Review ---
            Transition(S.SUMMARY, S.RECOMMENDATION, T.CONFIRMED),
            Transition(S.SUMMARY, S.SUMMARY, T.UNRECOGNIZED),
            Transition(S.RECOMMENDATION, S.RECOMMENDATION, T.UNRECOGNIZED),
        ]
        + [Transition(src, S.WELL_DEPTH, T.CUSTOM_OVERRIDE) for src in PRE_HYDRAULIC_STAGES]
        + [Transition(src, route.target, T.CORRECTION_REQUESTED)
           for src in (S.SUMMARY, S.RECOMMENDATION) for route in CORRECTION_ROUTES]
    )

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    def advance(self, session: Session, text: str) -> None:
        """Apply one customer reply to ``session`` in place."""
        stage = session.stage
        if stage in REVIEW_STAGES:
            self._review(session, text)
            return

        self._apply_fields(session, stage, extract_fields(stage, text))

        data = session.data
        if stage in PRE_HYDRAULIC_STAGES and data.has_custom_override():
            data.usage_type = UsageType.OTHER
            self.transition(session, T.CUSTOM_OVERRIDE, S.WELL_DEPTH)
            return

        if stage == S.LOCATION:
            target, trigger = _BRANCHES.get(data.usage_type, (S.CUSTOM_FLOW, T.BRANCH_CUSTOM))
            self.transition(session, trigger, target)
        elif stage == S.ELEVATION and data.direct_to_stock_tank:
            self.transition(session, T.DIRECT_TO_TANK, S.WATER_QUALITY)
        else:
            self.transition(session, T.ANSWERED, _NEXT_STAGE[stage])

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def transition(
        self,
        session: Session,
        trigger: TransitionTrigger,
        target: Optional[ConversationStage] = None,
    ) -> ConversationStage:
        """
        Move ``session`` along a defined edge.

        Raises:
            InvalidTransitionError: If no edge matches the current stage,
                trigger and (when given) target.
        """
        current = session.stage
        for t in self.TRANSITIONS:
            if t.from_stage != current or t.trigger != trigger:
                continue
            if target is not None and t.to_stage != target:
                continue

            session.stage = t.to_stage
            session.stage_history.append(StageEntry(t.to_stage, self._clock()))
            logger.debug(
                "Stage transition: %s -> %s (trigger: %s)",
                current.value, t.to_stage.value, trigger.value,
            )
            return session.stage

        valid = [f"{t.trigger.value}->{t.to_stage.value}" for t in self.get_valid_transitions(current)]
        raise InvalidTransitionError(
            f"No valid transition from '{current.value}' with trigger "
            f"'{trigger.value}'. Valid transitions: {valid}"
        )

    def get_valid_transitions(self, stage: ConversationStage) -> list[Transition]:
        """Return all transitions leaving ``stage``."""
        return [t for t in self.TRANSITIONS if t.from_stage == stage]

    def get_valid_targets(self, stage: ConversationStage) -> set[ConversationStage]:
        return {t.to_stage for t in self.get_valid_transitions(stage)}

    @staticmethod
    def get_state_trace(session: Session) -> list[str]:
        """Return ordered list of stage names visited."""
        return [entry.stage.value for entry in session.stage_history]

    @staticmethod
    def is_terminal(session: Session) -> bool:
        return session.stage == S.RECOMMENDATION

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _apply_fields(self, session: Session, stage: ConversationStage, fields: dict) -> None:
        data = session.data
        for name, value in fields.items():
            # An override volunteered mid-conversation never replaces one
            # already given; the custom stages ask for it and may.
            if (name in OVERRIDE_FIELDS and stage not in CUSTOM_STAGES
                    and getattr(data, name) is not None):
                continue
            setattr(data, name, value)

        if stage == S.DRAWDOWN:
            if data.drawdown_level is None:
                data.drawdown_level = (data.static_water_level or 0.0) * DRAWDOWN_ESTIMATE_FRACTION
                data.drawdown_estimated = True
            else:
                data.drawdown_estimated = False

    def _review(self, session: Session, text: str) -> None:
        if session.stage == S.SUMMARY and is_affirmative(text):
            self.transition(session, T.CONFIRMED, S.RECOMMENDATION)
            return

        target = route_correction(text, session.data.usage_type)
        if target is None:
            self.transition(session, T.UNRECOGNIZED, session.stage)
            return

        if session.stage == S.RECOMMENDATION:
            session.data.recommendation = None
        logger.info("Customer correcting '%s'", target.value)
        self.transition(session, T.CORRECTION_REQUESTED, target)


def _fmt(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "not specified"
    text = f"{value:g}"
    return f"{text} {unit}".strip()


def build_summary(data: CollectedData) -> str:
    """Read-back text listing everything collected, for the SUMMARY stage."""
    lines = [f"  Usage: {data.usage_type.value}"]
    if data.location:
        lines.append(f"  Location: {data.location}")

    if data.usage_type == UsageType.LIVESTOCK:
        lines.append(f"  Livestock: {_fmt(data.animal_count)} x {data.livestock_type or 'not specified'}")
    elif data.usage_type == UsageType.HOUSEHOLD:
        lines.append(
            f"  Household: {_fmt(data.people_count)} people, "
            f"{_fmt(data.bathroom_count)} bathrooms"
        )
    elif data.usage_type == UsageType.IRRIGATION:
        method = data.irrigation_method.value if data.irrigation_method else "not specified"
        lines.append(
            f"  Irrigation: {_fmt(data.irrigation_area, 'acres')}, {method}, "
            f"{data.crop_type or 'crop not specified'}"
        )
    if data.custom_gpd is not None:
        lines.append(f"  Daily water: {_fmt(data.custom_gpd, 'gallons/day')}")
    if data.custom_head is not None:
        lines.append(f"  Total head: {_fmt(data.custom_head, 'feet')}")

    drawdown = _fmt(data.drawdown_level, "feet")
    if data.drawdown_estimated:
        drawdown += " (estimated)"
    lines.extend([
        f"  Well depth: {_fmt(data.well_depth, 'feet')}",
        f"  Static water level: {_fmt(data.static_water_level, 'feet')}",
        f"  Drawdown: {drawdown}",
        f"  Elevation gain: {_fmt(data.elevation_gain, 'feet')}",
    ])
    if data.direct_to_stock_tank:
        lines.append("  Piping: directly to stock tank")
    else:
        lines.append(
            f"  Pipe: {_fmt(data.pipe_length, 'feet')} of {_fmt(data.pipe_size, 'inch')}"
        )
        if data.has_storage_tank is not None:
            lines.append(f"  Storage tank: {'yes' if data.has_storage_tank else 'no'}")
    if data.sandy_water is not None:
        lines.append(f"  Sandy water: {'yes' if data.sandy_water else 'no'}")
    lines.append(f"  Well casing: {_fmt(data.well_casing_size, 'inch')}")
    return "Here's what I have:\n" + "\n".join(lines)
