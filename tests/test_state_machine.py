"""Tests for the conversation stage machine."""

import pytest

from pump_advisor.conversation.state_machine import (
    ConversationStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
    build_summary,
    route_correction,
)
from pump_advisor.schemas.recommendation_schema import Rejection, RejectionReason
from pump_advisor.schemas.session_schema import ConversationStage, UsageType
from tests.conftest import make_session, play

S = ConversationStage

LIVESTOCK_PATH = (
    "hi", "cattle", "Amarillo, TX", "dairy", "20",
    "250", "80", "not sure", "15", "400 feet of 1 inch pipe",
    "yes", "no sand", "6 inch",
)


class TestInitialStage:
    def test_starts_in_greeting(self):
        assert make_session().stage == S.GREETING

    def test_initial_history_has_one_entry(self):
        assert len(make_session().stage_history) == 1

    def test_not_terminal_at_start(self, state_machine):
        assert not state_machine.is_terminal(make_session())


class TestDefaultProgression:
    def test_greeting_moves_to_usage_type(self, state_machine):
        session = play(state_machine, make_session(), "hello")
        assert session.stage == S.USAGE_TYPE

    def test_usage_in_greeting_is_kept(self, state_machine):
        session = play(state_machine, make_session(), "hi, I water horses")
        assert session.data.usage_type == UsageType.LIVESTOCK
        assert session.stage == S.USAGE_TYPE

    def test_usage_type_always_moves_to_location(self, state_machine):
        session = play(state_machine, make_session(S.USAGE_TYPE), "hmm, not sure")
        assert session.stage == S.LOCATION
        assert session.data.usage_type == UsageType.UNKNOWN

    def test_unanswered_stage_still_advances(self, state_machine):
        session = play(state_machine, make_session(S.WELL_DEPTH), "no idea")
        assert session.stage == S.STATIC_WATER
        assert session.data.well_depth is None

    def test_full_livestock_path(self, state_machine):
        session = play(state_machine, make_session(), *LIVESTOCK_PATH)
        assert session.stage == S.SUMMARY
        assert state_machine.get_state_trace(session) == [
            "greeting", "usage_type", "location", "livestock_type", "animal_count",
            "well_depth", "static_water", "drawdown", "elevation", "pipe_info",
            "storage_tank", "water_quality", "well_casing", "summary",
        ]
        data = session.data
        assert data.location == "Amarillo, TX"
        assert data.animal_count == 20
        assert data.pipe_length == 400.0
        assert data.pipe_size == 1.0
        assert data.has_storage_tank is True
        assert data.sandy_water is False
        assert data.well_casing_size == 6.0

    def test_history_uses_injected_clock(self, state_machine, clock):
        session = make_session()
        clock.advance(minutes=5)
        play(state_machine, session, "hello")
        assert session.stage_history[-1].entered_at == clock()


class TestBranching:
    @pytest.mark.parametrize("usage,target", [
        (UsageType.LIVESTOCK, S.LIVESTOCK_TYPE),
        (UsageType.HOUSEHOLD, S.PEOPLE_COUNT),
        (UsageType.IRRIGATION, S.IRRIGATION_AREA),
        (UsageType.OTHER, S.CUSTOM_FLOW),
        (UsageType.UNKNOWN, S.CUSTOM_FLOW),
    ])
    def test_location_branches_by_usage(self, state_machine, usage, target):
        session = make_session(S.LOCATION, usage_type=usage)
        play(state_machine, session, "Tucson, Arizona")
        assert session.stage == target

    def test_household_branch_reconverges(self, state_machine):
        session = make_session(S.PEOPLE_COUNT, usage_type=UsageType.HOUSEHOLD)
        play(state_machine, session, "four", "2 bathrooms and a kitchen")
        assert session.stage == S.WELL_DEPTH
        assert session.data.people_count == 4
        assert session.data.bathroom_count == 2

    def test_irrigation_branch_reconverges(self, state_machine):
        session = make_session(S.IRRIGATION_AREA, usage_type=UsageType.IRRIGATION)
        play(state_machine, session, "2 acres", "drip", "vegetables")
        assert session.stage == S.WELL_DEPTH

    def test_direct_to_tank_skips_pipe_and_storage(self, state_machine):
        session = play(state_machine, make_session(S.ELEVATION), "straight to the stock tank")
        assert session.stage == S.WATER_QUALITY
        assert session.data.direct_to_stock_tank is True

    def test_elevation_without_tank_goes_to_pipe(self, state_machine):
        session = play(state_machine, make_session(S.ELEVATION), "20 feet uphill")
        assert session.stage == S.PIPE_INFO
        assert session.data.elevation_gain == 20.0


class TestCustomOverride:
    def test_both_overrides_at_usage_type_jump_to_well_depth(self, state_machine):
        session = play(
            state_machine, make_session(S.USAGE_TYPE), "I need 1500 gpd at 90 ft of head"
        )
        assert session.stage == S.WELL_DEPTH
        assert session.data.usage_type == UsageType.OTHER
        assert session.data.custom_gpd == 1500.0
        assert session.data.custom_head == 90.0

    def test_override_forces_other_usage(self, state_machine):
        session = make_session(S.LIVESTOCK_TYPE, usage_type=UsageType.LIVESTOCK)
        play(state_machine, session, "beef, we need 900 gallons per day at a TDH of 60")
        assert session.stage == S.WELL_DEPTH
        assert session.data.usage_type == UsageType.OTHER

    def test_single_override_does_not_jump(self, state_machine):
        session = play(state_machine, make_session(S.USAGE_TYPE), "livestock, 1000 gpd")
        assert session.stage == S.LOCATION
        assert session.data.custom_gpd == 1000.0

    def test_custom_stages_collect_overrides(self, state_machine):
        session = make_session(S.CUSTOM_FLOW, usage_type=UsageType.OTHER)
        play(state_machine, session, "800")
        assert session.stage == S.CUSTOM_HEAD
        play(state_machine, session, "120 feet")
        assert session.stage == S.WELL_DEPTH
        assert session.data.custom_gpd == 800.0
        assert session.data.custom_head == 120.0

    def test_override_does_not_loop_after_well_depth(self, state_machine):
        session = make_session(S.WELL_DEPTH, custom_gpd=800.0, custom_head=120.0)
        play(state_machine, session, "250")
        assert session.stage == S.STATIC_WATER

    def test_volunteered_override_does_not_replace_existing(self, state_machine):
        session = make_session(S.LOCATION, custom_gpd=1000.0)
        play(state_machine, session, "Tucson, we'd want 2000 gpd")
        assert session.data.custom_gpd == 1000.0

    def test_custom_stage_replaces_existing(self, state_machine):
        session = make_session(S.CUSTOM_FLOW, custom_gpd=1000.0)
        play(state_machine, session, "2000 gpd")
        assert session.data.custom_gpd == 2000.0

    def test_depth_answer_is_not_a_head_override(self, state_machine):
        session = play(state_machine, make_session(S.WELL_DEPTH), "250 feet")
        assert session.data.well_depth == 250.0
        assert session.data.custom_head is None

    def test_location_altitude_is_not_a_head_override(self, state_machine):
        session = make_session(S.LOCATION, usage_type=UsageType.LIVESTOCK)
        play(state_machine, session, "Amarillo TX, we're at 3600 feet")
        assert session.stage == S.LIVESTOCK_TYPE
        assert session.data.custom_head is None


class TestDrawdown:
    def test_estimated_from_static_level(self, state_machine):
        session = make_session(S.DRAWDOWN, static_water_level=100.0)
        play(state_machine, session, "not sure")
        assert session.data.drawdown_level == pytest.approx(10.0)
        assert session.data.drawdown_estimated is True

    def test_measured_drawdown(self, state_machine):
        session = make_session(S.DRAWDOWN, static_water_level=100.0)
        play(state_machine, session, "15 feet")
        assert session.data.drawdown_level == 15.0
        assert session.data.drawdown_estimated is False

    def test_zero_drawdown_is_not_estimated(self, state_machine):
        session = make_session(S.DRAWDOWN, static_water_level=100.0)
        play(state_machine, session, "0")
        assert session.data.drawdown_level == 0.0
        assert session.data.drawdown_estimated is False


class TestSummaryReview:
    def test_affirmative_confirms(self, state_machine):
        session = play(state_machine, make_session(S.SUMMARY), "yes, looks good")
        assert session.stage == S.RECOMMENDATION
        assert state_machine.is_terminal(session)

    def test_incorrect_is_not_confirmation(self, state_machine):
        session = play(state_machine, make_session(S.SUMMARY), "incorrect")
        assert session.stage == S.SUMMARY

    def test_unrecognized_stays(self, state_machine):
        session = play(state_machine, make_session(S.SUMMARY), "hmm")
        assert session.stage == S.SUMMARY

    @pytest.mark.parametrize("text,target", [
        ("the location is wrong", S.LOCATION),
        ("fix the well casing", S.WELL_CASING),
        ("static level should be 90", S.STATIC_WATER),
        ("the drawdown is off", S.DRAWDOWN),
        ("well depth is off", S.WELL_DEPTH),
        ("elevation changed", S.ELEVATION),
        ("pipe is longer", S.PIPE_INFO),
        ("we have a tank now", S.STORAGE_TANK),
        ("there is some sand", S.WATER_QUALITY),
    ])
    def test_correction_routes(self, state_machine, text, target):
        session = make_session(S.SUMMARY, usage_type=UsageType.LIVESTOCK)
        play(state_machine, session, text)
        assert session.stage == target

    def test_usage_specific_route_is_gated(self):
        assert route_correction("animal count", UsageType.LIVESTOCK) == S.LIVESTOCK_TYPE
        assert route_correction("animal count", UsageType.HOUSEHOLD) is None
        assert route_correction("the people count", UsageType.HOUSEHOLD) == S.PEOPLE_COUNT
        assert route_correction("crop type", UsageType.IRRIGATION) == S.IRRIGATION_AREA

    def test_gated_route_falls_through_to_next_match(self):
        assert route_correction("house well depth", UsageType.LIVESTOCK) == S.WELL_DEPTH

    def test_first_match_wins_on_overlap(self):
        assert route_correction("the well pipe", UsageType.LIVESTOCK) == S.WELL_DEPTH

    def test_custom_usage_routes(self):
        assert route_correction("the flow is wrong", UsageType.OTHER) == S.CUSTOM_FLOW
        assert route_correction("the head is wrong", UsageType.OTHER) == S.CUSTOM_HEAD

    def test_corrected_stage_reasks_then_returns_to_summary(self, state_machine):
        session = make_session(S.SUMMARY, well_casing_size=4.0)
        play(state_machine, session, "the casing is wrong", "6 inch")
        assert session.stage == S.SUMMARY
        assert session.data.well_casing_size == 6.0

    def test_pipe_correction_keeps_unrepeated_size(self, state_machine):
        session = make_session(S.SUMMARY, pipe_length=400.0, pipe_size=1.25)
        play(state_machine, session, "the pipe is wrong", "it's 600 feet")
        assert session.stage == S.STORAGE_TANK
        assert session.data.pipe_length == 600.0
        assert session.data.pipe_size == 1.25

    def test_casing_correction_without_a_size_keeps_earlier_casing(self, state_machine):
        session = make_session(S.SUMMARY, well_casing_size=4.0)
        play(state_machine, session, "the casing is wrong", "let me go measure it")
        assert session.stage == S.SUMMARY
        assert session.data.well_casing_size == 4.0


class TestMalformedMeasurements:
    def test_zero_denominator_pipe_size(self, state_machine):
        session = make_session(S.PIPE_INFO)
        play(state_machine, session, "300 feet of 1 1/0 inch pipe")
        assert session.stage == S.STORAGE_TANK
        assert session.data.pipe_length == 300.0
        assert session.data.pipe_size is None

    def test_zero_denominator_casing(self, state_machine):
        session = make_session(S.WELL_CASING)
        play(state_machine, session, 'it is 3/0" I think')
        assert session.stage == S.SUMMARY


class TestRecommendationReview:
    def _rejected(self):
        return Rejection(reason_code=RejectionReason.SANDY_WATER, message="sand")

    def test_unrecognized_keeps_recommendation(self, state_machine):
        session = make_session(S.RECOMMENDATION, recommendation=self._rejected())
        play(state_machine, session, "thanks!")
        assert session.stage == S.RECOMMENDATION
        assert session.data.recommendation is not None

    def test_affirmative_is_a_self_loop(self, state_machine):
        session = make_session(S.RECOMMENDATION, recommendation=self._rejected())
        play(state_machine, session, "yes")
        assert session.stage == S.RECOMMENDATION

    def test_correction_clears_recommendation(self, state_machine):
        session = make_session(S.RECOMMENDATION, recommendation=self._rejected())
        play(state_machine, session, "actually there is no sand")
        assert session.stage == S.WATER_QUALITY
        assert session.data.recommendation is None


class TestTransitionTable:
    def test_invalid_trigger_raises(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="No valid transition"):
            state_machine.transition(make_session(), TransitionTrigger.CONFIRMED)

    def test_location_targets(self, state_machine):
        assert state_machine.get_valid_targets(S.LOCATION) == {
            S.LIVESTOCK_TYPE, S.PEOPLE_COUNT, S.IRRIGATION_AREA, S.CUSTOM_FLOW, S.WELL_DEPTH,
        }

    def test_every_stage_has_an_exit(self, state_machine):
        for stage in ConversationStage:
            assert state_machine.get_valid_transitions(stage), stage

    def test_every_stage_is_reachable(self, state_machine):
        seen = {S.GREETING}
        frontier = [S.GREETING]
        while frontier:
            stage = frontier.pop()
            for target in state_machine.get_valid_targets(stage):
                if target not in seen:
                    seen.add(target)
                    frontier.append(target)
        assert seen == set(ConversationStage)

    def test_hydraulic_stages_cannot_jump_back(self, state_machine):
        assert state_machine.get_valid_targets(S.WELL_DEPTH) == {S.STATIC_WATER}


class TestBuildSummary:
    def test_lists_collected_values(self):
        session = make_session(
            usage_type=UsageType.LIVESTOCK, location="Amarillo, TX",
            livestock_type="dairy", animal_count=20, static_water_level=80.0,
            drawdown_level=8.0, drawdown_estimated=True, well_casing_size=6.0,
        )
        summary = build_summary(session.data)
        assert summary.startswith("Here's what I have:")
        assert "Location: Amarillo, TX" in summary
        assert "20 x dairy" in summary
        assert "8 feet (estimated)" in summary
        assert "Well casing: 6 inch" in summary

    def test_unanswered_values(self):
        summary = build_summary(make_session().data)
        assert "Well depth: not specified" in summary

    def test_direct_to_tank(self):
        summary = build_summary(make_session(direct_to_stock_tank=True).data)
        assert "directly to stock tank" in summary
