"""
Chat turn orchestration.

One call to ``PumpAdvisor.handle_turn`` processes one customer message:

1. Validate the request (nothing is created or mutated on failure)
2. Record the message and advance the stage machine
3. Run fact lookups: solar data and a one-time local fact right after the
   location is given, general pump info for off-script questions
4. Compute the recommendation on reaching the final stage
5. Generate and record the assistant reply

The recommendation is computed before the reply so the reply can present it.
"""

import logging
from typing import Optional

from pump_advisor.config import settings
from pump_advisor.conversation.guardrails import GuardrailPipeline
from pump_advisor.conversation.session_store import SessionStore
from pump_advisor.conversation.state_machine import ConversationStateMachine, build_summary
from pump_advisor.logging_context import set_session_id
from pump_advisor.prompts.prompt_templates import build_additional_info, build_fact_instruction
from pump_advisor.schemas.conversation_schema import ChatReply, Role, SessionSnapshot
from pump_advisor.schemas.session_schema import ConversationStage, Session
from pump_advisor.sizing.recommendation import compute_recommendation
from pump_advisor.tools.fact_lookup import (
    FactLookup,
    GoogleSearchFactLookup,
    NullFactLookup,
    local_fact_query,
    pump_info_query,
    solar_insolation_query,
)
from pump_advisor.tools.pump_catalog import PumpCatalog, get_default_catalog
from pump_advisor.tools.reply_generator import (
    OpenAIReplyGenerator,
    ReplyContext,
    ReplyGenerator,
    TemplateReplyGenerator,
)

logger = logging.getLogger(__name__)


class PumpAdvisor:
    """Owns the collaborators for a chat deployment and runs turns through them."""

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        machine: Optional[ConversationStateMachine] = None,
        fact_lookup: Optional[FactLookup] = None,
        reply_generator: Optional[ReplyGenerator] = None,
        catalog: Optional[PumpCatalog] = None,
        guardrails: Optional[GuardrailPipeline] = None,
        peak_sun_hours: Optional[float] = None,
    ) -> None:
        # SessionStore and PumpCatalog define __len__, so an empty one is falsy.
        self.store = store if store is not None else SessionStore()
        self.machine = machine or ConversationStateMachine(clock=self.store.now)
        self.fact_lookup = fact_lookup or NullFactLookup()
        self.reply_generator = reply_generator or TemplateReplyGenerator()
        self.catalog = catalog if catalog is not None else get_default_catalog()
        self.guardrails = guardrails or GuardrailPipeline()
        self.peak_sun_hours = (
            peak_sun_hours if peak_sun_hours is not None else settings.sizing.peak_sun_hours
        )
        if self.catalog.degraded:
            logger.error("Advisor running on a DEGRADED pump catalog")

    def handle_turn(self, session_id: str, message: str) -> ChatReply:
        """
        Process one customer message and return the assistant's reply.

        Raises:
            MalformedRequestError: Missing session ID or empty/oversized message.
            ReplyGenerationError: Reply generation failed after retries. The
                customer message stays recorded and the stage stays advanced.
        """
        self.guardrails.validate_request(session_id, message)
        set_session_id(session_id)

        session = self.store.get_or_create(session_id)
        session.add_message(Role.USER, message)

        previous_stage = session.stage
        self.machine.advance(session, message)
        logger.info("Turn processed: %s -> %s", previous_stage.value, session.stage.value)

        additional_info, fact_instruction = self._lookup_facts(session, previous_stage, message)

        data = session.data
        if session.stage == ConversationStage.RECOMMENDATION and data.recommendation is None:
            data.recommendation = compute_recommendation(data, self.catalog, self.peak_sun_hours)

        context = ReplyContext(
            stage=session.stage,
            usage_type=data.usage_type.value,
            collected=data.to_dict(),
            additional_info=additional_info,
            fact_instruction=fact_instruction,
            summary=build_summary(data) if session.stage == ConversationStage.SUMMARY else "",
            recommendation=data.recommendation,
        )
        reply = self.reply_generator.generate_reply(context, session.messages)
        session.add_message(Role.ASSISTANT, reply)

        recommendation = None
        if session.stage == ConversationStage.RECOMMENDATION and data.recommendation is not None:
            recommendation = data.recommendation.model_dump(mode="json")
        return ChatReply(
            session_id=session_id,
            message=reply,
            stage=session.stage.value,
            recommendation=recommendation,
        )

    def _lookup_facts(
        self,
        session: Session,
        previous_stage: ConversationStage,
        message: str,
    ) -> tuple[str, str]:
        location = session.data.location
        solar_data = local_fact = pump_info = None
        fact_instruction = ""

        if previous_stage == ConversationStage.LOCATION and location:
            solar_data = self.fact_lookup.lookup_fact(solar_insolation_query(location))
            if not session.has_shared_local_fact:
                local_fact = self.fact_lookup.lookup_fact(local_fact_query(location))
                if local_fact:
                    session.has_shared_local_fact = True
                    fact_instruction = build_fact_instruction(location)

        if not self.guardrails.is_intake_answer(message):
            pump_info = self.fact_lookup.lookup_fact(pump_info_query(message))

        return build_additional_info(location, solar_data, local_fact, pump_info), fact_instruction

    def snapshot(self, session_id: str) -> Optional[SessionSnapshot]:
        """Diagnostic view of a session, or None if it does not exist."""
        session = self.store.get(session_id)
        if session is None:
            return None
        return SessionSnapshot(
            session_id=session.session_id,
            stage=session.stage.value,
            data=session.data.to_dict(),
            message_count=len(session.messages),
            stage_trace=self.machine.get_state_trace(session),
        )


def build_default_advisor(store: Optional[SessionStore] = None) -> PumpAdvisor:
    """Advisor wired from settings: OpenAI and Google search when keys are set,
    offline template replies and no lookups otherwise."""
    if settings.model.api_key:
        reply_generator: ReplyGenerator = OpenAIReplyGenerator()
    else:
        logger.warning("OPENAI_API_KEY not set, using template replies")
        reply_generator = TemplateReplyGenerator()

    lookup: FactLookup = GoogleSearchFactLookup()
    if not lookup.configured:
        lookup = NullFactLookup()

    return PumpAdvisor(store=store, fact_lookup=lookup, reply_generator=reply_generator)
