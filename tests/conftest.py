"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from pump_advisor.advisor import PumpAdvisor
from pump_advisor.conversation.guardrails import GuardrailPipeline
from pump_advisor.conversation.session_store import SessionStore
from pump_advisor.conversation.state_machine import ConversationStateMachine
from pump_advisor.schemas.pump_schema import CurvePoint, PumpModel
from pump_advisor.schemas.session_schema import (
    CollectedData,
    ConversationStage,
    Session,
    UsageType,
)
from pump_advisor.tools.pump_catalog import PumpCatalog, load_catalog
from pump_advisor.tools.reply_generator import TemplateReplyGenerator

START = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for deterministic expiry tests."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeFactLookup:
    """Records queries and answers from a canned mapping of query prefixes."""

    def __init__(self, answers: Optional[dict[str, str]] = None) -> None:
        self.answers = answers or {}
        self.queries: list[str] = []

    def lookup_fact(self, query: str) -> Optional[str]:
        self.queries.append(query)
        for prefix, answer in self.answers.items():
            if query.startswith(prefix):
                return answer
        return None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state_machine(clock):
    return ConversationStateMachine(clock=clock)


@pytest.fixture
def guardrail_pipeline():
    return GuardrailPipeline(max_length=2000)


@pytest.fixture
def session_store(clock):
    return SessionStore(ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def catalog():
    return load_catalog(allow_degraded=False)


@pytest.fixture
def fact_lookup():
    return FakeFactLookup()


@pytest.fixture
def advisor(session_store, state_machine, fact_lookup, catalog, guardrail_pipeline):
    return PumpAdvisor(
        store=session_store,
        machine=state_machine,
        fact_lookup=fact_lookup,
        reply_generator=TemplateReplyGenerator(),
        catalog=catalog,
        guardrails=guardrail_pipeline,
        peak_sun_hours=5.4,
    )


def make_session(
    stage: ConversationStage = ConversationStage.GREETING,
    session_id: str = "TEST-001",
    **data_fields,
) -> Session:
    """Helper to create a Session at a given stage with pre-filled data."""
    session = Session(session_id=session_id, created_at=START, last_accessed=START, stage=stage)
    for name, value in data_fields.items():
        setattr(session.data, name, value)
    return session


def make_data(**fields) -> CollectedData:
    """Helper to create CollectedData with sensible hydraulic defaults."""
    defaults = dict(
        usage_type=UsageType.LIVESTOCK,
        livestock_type="beef cattle",
        animal_count=20,
        well_depth=200.0,
        static_water_level=50.0,
        drawdown_level=5.0,
        elevation_gain=10.0,
        sandy_water=False,
        well_casing_size=6.0,
    )
    defaults.update(fields)
    return CollectedData(**defaults)


def make_pump(
    model: str = "TEST",
    stages: int = 1,
    max_flow: float = 5.0,
    max_head: float = 120.0,
    curve: Optional[list[tuple[float, float]]] = None,
) -> PumpModel:
    """Helper to create a PumpModel from (head, flow) pairs."""
    return PumpModel(
        model=model,
        stages=stages,
        max_flow=max_flow,
        max_head=max_head,
        curve=[CurvePoint(head=h, flow=f) for h, f in (curve or [])],
    )


def make_catalog(*pumps: PumpModel) -> PumpCatalog:
    return PumpCatalog(models=list(pumps), source="test")


def play(machine: ConversationStateMachine, session: Session, *replies: str) -> Session:
    """Feed replies through the state machine in order."""
    for reply in replies:
        machine.advance(session, reply)
    return session
