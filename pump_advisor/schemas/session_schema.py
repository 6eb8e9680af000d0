"""Per-session conversation state: stages, collected data, and the session record."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from pump_advisor.schemas.conversation_schema import ChatMessage, Role
from pump_advisor.schemas.recommendation_schema import RecommendationResult


class ConversationStage(str, Enum):
    """All stages of the intake conversation."""
    GREETING = "greeting"
    USAGE_TYPE = "usage_type"
    LOCATION = "location"

    LIVESTOCK_TYPE = "livestock_type"
    ANIMAL_COUNT = "animal_count"

    PEOPLE_COUNT = "people_count"
    FIXTURES_COUNT = "fixtures_count"

    IRRIGATION_AREA = "irrigation_area"
    IRRIGATION_TYPE = "irrigation_type"
    CROP_TYPE = "crop_type"

    CUSTOM_FLOW = "custom_flow"
    CUSTOM_HEAD = "custom_head"

    WELL_DEPTH = "well_depth"
    STATIC_WATER = "static_water"
    DRAWDOWN = "drawdown"
    ELEVATION = "elevation"
    PIPE_INFO = "pipe_info"
    STORAGE_TANK = "storage_tank"
    WATER_QUALITY = "water_quality"
    WELL_CASING = "well_casing"
    SUMMARY = "summary"
    RECOMMENDATION = "recommendation"


class UsageType(str, Enum):
    UNKNOWN = "unknown"
    LIVESTOCK = "livestock"
    HOUSEHOLD = "household"
    IRRIGATION = "irrigation"
    OTHER = "other"


class IrrigationMethod(str, Enum):
    DRIP = "drip"
    SPRINKLER = "sprinkler"
    FLOOD = "flood"


class CropCategory(str, Enum):
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    LAWN = "lawn"


@dataclass
class CollectedData:
    """
    Structured intake data accumulated over the conversation.

    ``None`` means the customer has not given a value. The sizing
    calculators resolve unspecified values to their defaults, which keeps
    "explicitly zero" distinguishable from "never answered".
    """
    usage_type: UsageType = UsageType.UNKNOWN
    location: Optional[str] = None

    livestock_type: Optional[str] = None
    animal_count: Optional[int] = None

    people_count: Optional[int] = None
    bathroom_count: Optional[int] = None
    fixtures_info: Optional[str] = None

    irrigation_area: Optional[float] = None
    irrigation_method: Optional[IrrigationMethod] = None
    crop_type: Optional[str] = None
    crop_category: Optional[CropCategory] = None

    well_depth: Optional[float] = None
    static_water_level: Optional[float] = None
    drawdown_level: Optional[float] = None
    drawdown_estimated: bool = False
    elevation_gain: Optional[float] = None
    direct_to_stock_tank: bool = False
    pipe_length: Optional[float] = None
    pipe_size: Optional[float] = None
    has_storage_tank: Optional[bool] = None
    sandy_water: Optional[bool] = None
    well_casing_size: Optional[float] = None

    custom_gpd: Optional[float] = None
    custom_head: Optional[float] = None

    recommendation: Optional[RecommendationResult] = None

    def has_custom_override(self) -> bool:
        """True when both the flow and head overrides are known."""
        return self.custom_gpd is not None and self.custom_head is not None

    def to_dict(self) -> dict:
        """Export the answered fields (skipping unspecified and the recommendation)."""
        exported = {}
        for name, value in vars(self).items():
            if name == "recommendation" or value is None:
                continue
            exported[name] = value.value if isinstance(value, Enum) else value
        return exported


@dataclass
class StageEntry:
    """Recorded history entry for a stage visit."""
    stage: ConversationStage
    entered_at: datetime


@dataclass
class Session:
    """
    One customer conversation.

    Owned by the session store; mutated only while a turn for this session
    is being processed.
    """
    session_id: str
    created_at: datetime
    last_accessed: datetime
    stage: ConversationStage = ConversationStage.GREETING
    data: CollectedData = field(default_factory=CollectedData)
    messages: list[ChatMessage] = field(default_factory=list)
    stage_history: list[StageEntry] = field(default_factory=list)
    has_shared_local_fact: bool = False

    def __post_init__(self) -> None:
        if not self.stage_history:
            self.stage_history.append(StageEntry(self.stage, self.created_at))

    def add_message(self, role: Role, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))
