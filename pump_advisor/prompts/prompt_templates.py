"""Per-turn prompt construction from conversation state."""

import json
from typing import Optional

from pump_advisor.schemas.recommendation_schema import RecommendationResult
from pump_advisor.schemas.session_schema import ConversationStage

S = ConversationStage

# What the assistant should ask once the conversation is in each stage
STAGE_QUESTIONS: dict[ConversationStage, str] = {
    S.GREETING: "Hi! I can help you size a solar water pump. What will the water be used for?",
    S.USAGE_TYPE: "What will the water be used for: livestock, household, irrigation, or something else?",
    S.LOCATION: "What city and state is the well in?",
    S.LIVESTOCK_TYPE: "What kind of livestock are you watering?",
    S.ANIMAL_COUNT: "How many head do you have?",
    S.PEOPLE_COUNT: "How many people live in the household?",
    S.FIXTURES_COUNT: "How many bathrooms, and do you have a kitchen, laundry, or garden to water?",
    S.IRRIGATION_AREA: "How many acres do you want to irrigate?",
    S.IRRIGATION_TYPE: "Is that drip, sprinkler, or flood irrigation?",
    S.CROP_TYPE: "What are you growing?",
    S.CUSTOM_FLOW: "How many gallons per day do you need?",
    S.CUSTOM_HEAD: "What total dynamic head, in feet, does the pump need to lift against?",
    S.WELL_DEPTH: "How deep is the well, in feet?",
    S.STATIC_WATER: "What is the static water level, in feet below the surface?",
    S.DRAWDOWN: "Do you know the drawdown level? If not, I can estimate it.",
    S.ELEVATION: "How much elevation gain is there from the well to where the water goes? Or does it go directly to a stock tank?",
    S.PIPE_INFO: "How long is the pipe run, and what size pipe is it?",
    S.STORAGE_TANK: "Do you have a storage tank?",
    S.WATER_QUALITY: "Is there any sand or sediment in the water?",
    S.WELL_CASING: "What is the well casing size, in inches?",
    S.SUMMARY: "Does everything look right? Say yes to get your recommendation, or tell me what to change.",
    S.RECOMMENDATION: "Let me know if you'd like to change anything.",
}


def build_state_context(stage: ConversationStage, usage_type: str, collected: dict) -> str:
    """Describe the current stage and collected data for the model."""
    return (
        f"Current conversation stage: {stage.value}.\n"
        f"Water usage type: {usage_type}.\n"
        f"User data collected so far: {json.dumps(collected, sort_keys=True)}\n"
        f"Next question to ask: {STAGE_QUESTIONS[stage]}"
    )


def build_fact_instruction(location: str) -> str:
    return (
        f"The user is from {location}. Share the interesting local fact "
        "provided in the additional information in a natural way."
    )


def build_additional_info(
    location: Optional[str] = None,
    solar_data: Optional[str] = None,
    local_fact: Optional[str] = None,
    pump_info: Optional[str] = None,
) -> str:
    """Join lookup results into one block; empty when nothing was found."""
    parts: list[str] = []
    if solar_data:
        parts.append(f"Solar insolation data for {location}: {solar_data}")
    if local_fact:
        parts.append(f"Interesting local fact about {location}: {local_fact}")
    if pump_info:
        parts.append(f"Additional information: {pump_info}")
    return "\n".join(parts)


def build_recommendation_prompt(result: RecommendationResult) -> str:
    """Tell the model exactly what to present at the recommendation stage."""
    if not result.is_valid:
        return (
            "No standard pump can be recommended. Explain this to the customer:\n"
            f"{result.message}"
        )
    pump = result.pump_details
    return (
        f"Recommend the {pump.model} ({pump.stages} stages) with "
        f"{result.solar_config.description}. Include this specification sheet "
        f"verbatim:\n{result.formatted_summary}"
    )
