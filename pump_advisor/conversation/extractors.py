"""
Field extraction from free-text customer replies.

Every extractor is a pure function of the message text: no session access,
no side effects, and a miss returns None (or the rule table's default)
instead of raising. Keyword classification runs through ordered rule tables
where the first matching rule wins, so each table can be tested on its own.

Usage:
    fields = extract_fields(ConversationStage.WELL_DEPTH, "about 220 feet")
    # {"well_depth": 220.0}
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from pump_advisor.schemas.session_schema import (
    ConversationStage,
    CropCategory,
    IrrigationMethod,
    UsageType,
)
from pump_advisor.utils import first_integer, first_number, normalize_message

logger = logging.getLogger(__name__)

_NUM = r"(\d+(?:\.\d+)?)"

GPD_PATTERN = re.compile(
    _NUM + r"\s*(?:gpd\b|gal(?:lons?)?\s*(?:per|a|/)\s*day\b|gal(?:lons?)?\s+daily\b)",
    re.IGNORECASE,
)

# "150 ft of head", "150 feet lift", "150 tdh", "150 total dynamic head",
# or "TDH of 150"
HEAD_PATTERN = re.compile(
    _NUM + r"\s*(?:ft|feet|foot)\.?\s*(?:of\s+)?(?:total\s+(?:dynamic\s+)?)?(?:head|lift|tdh)\b"
    r"|" + _NUM + r"\s*(?:total\s+(?:dynamic\s+)?head|tdh)\b"
    r"|(?:tdh|total\s+(?:dynamic\s+)?head)\s*(?:of|is|=|:)?\s*" + _NUM,
    re.IGNORECASE,
)

BARE_FEET_PATTERN = re.compile(_NUM + r"\s*(?:ft|feet|foot)\b", re.IGNORECASE)
ACRE_PATTERN = re.compile(_NUM + r"\s*(?:acres?|ac)\b", re.IGNORECASE)
BATHROOM_PATTERN = re.compile(r"(\d+)\s*(?:full\s+|half\s+)?bath", re.IGNORECASE)
INCH_PATTERN = re.compile(
    r"(?:(\d+)[\s-]+(\d+)/(\d+)|(\d+)/(\d+)|(\d+(?:\.\d+)?))\s*(?:inches|inch|in\b|\"|”)",
    re.IGNORECASE,
)

AFFIRMATIVE_PATTERN = re.compile(
    r"\b(?:yes|yep|yeah|yup|correct|right)\b|\blooks?\s+(?:good|great|fine)\b|\ball\s+good\b",
    re.IGNORECASE,
)
NEGATION_PATTERN = re.compile(r"\bnot\b|\bwrong\b|n't\b", re.IGNORECASE)

WORD_NUMBERS: dict[str, int] = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "fifteen": 15, "twenty": 20,
    "thirty": 30, "forty": 40, "fifty": 50,
    "a dozen": 12, "a couple": 2,
}
TENS_WORDS = ("twenty", "thirty", "forty", "fifty")
UNIT_WORDS = ("one", "two", "three", "four", "five", "six", "seven", "eight", "nine")

# "twenty one", "forty-five"
COMPOUND_NUMBER_PATTERN = re.compile(
    rf"\b({'|'.join(TENS_WORDS)})[\s-]+({'|'.join(UNIT_WORDS)})\b", re.IGNORECASE
)
# Longest alternatives first so "a dozen" wins over any shorter overlap.
WORD_NUMBER_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(WORD_NUMBERS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class KeywordRule:
    """Maps any of ``keywords`` (case-insensitive) to ``value``."""
    keywords: tuple[str, ...]
    value: Any
    whole_word: bool = False

    def matches(self, text: str) -> bool:
        lower = normalize_message(text)
        if self.whole_word:
            return any(re.search(rf"\b{re.escape(k)}\b", lower) for k in self.keywords)
        return any(k in lower for k in self.keywords)


def classify(text: str, rules: Sequence[KeywordRule], default: Any = None) -> Any:
    """Return the value of the first rule matching ``text``, else ``default``."""
    for rule in rules:
        if rule.matches(text):
            return rule.value
    return default


USAGE_TYPE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("livestock", "cattle", "cow", "horse", "sheep", "goat"), UsageType.LIVESTOCK),
    KeywordRule(("house", "home", "domestic", "drinking", "shower", "toilet"),
                UsageType.HOUSEHOLD),
    KeywordRule(("irrigation", "crop", "garden", "farm", "field", "acre"), UsageType.IRRIGATION),
    KeywordRule(("something else", "pond", "fountain", "wildlife", "commercial", "other"),
                UsageType.OTHER, whole_word=True),
)

LIVESTOCK_SPECIES_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("dairy",), "dairy"),
    KeywordRule(("horse",), "horses"),
    KeywordRule(("goat",), "goats"),
    KeywordRule(("sheep",), "sheep"),
)

IRRIGATION_METHOD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("drip",), IrrigationMethod.DRIP),
    KeywordRule(("sprinkl",), IrrigationMethod.SPRINKLER),
    KeywordRule(("flood",), IrrigationMethod.FLOOD),
)

CROP_CATEGORY_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("veget",), CropCategory.VEGETABLES),
    KeywordRule(("fruit",), CropCategory.FRUITS),
    KeywordRule(("lawn", "grass"), CropCategory.LAWN),
)

DIRECT_TO_TANK_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("stock tank", "directly", "direct to"), True),
)

STORAGE_TANK_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("no", "none", "nope", "without", "don't", "do not"), False, whole_word=True),
)

SANDY_WATER_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("no sand", "not sandy", "sand free", "sand-free", "no sediment",
                 "without sand"), False),
    KeywordRule(("sand", "sediment"), True),
)


def extract_usage_type(text: str) -> UsageType:
    return classify(text, USAGE_TYPE_RULES, UsageType.UNKNOWN)


def classify_livestock(text: Optional[str]) -> str:
    """Resolve a free-text livestock description to a species key (default beef)."""
    return classify(text or "", LIVESTOCK_SPECIES_RULES, "beef")


def extract_irrigation_method(text: str) -> Optional[IrrigationMethod]:
    return classify(text, IRRIGATION_METHOD_RULES)


def extract_crop_category(text: str) -> Optional[CropCategory]:
    return classify(text, CROP_CATEGORY_RULES)


def extract_direct_to_tank(text: str) -> bool:
    return classify(text, DIRECT_TO_TANK_RULES, False)


def extract_has_storage_tank(text: str) -> bool:
    return classify(text, STORAGE_TANK_RULES, True)


def extract_sandy_water(text: str) -> bool:
    return classify(text, SANDY_WATER_RULES, False)


def is_affirmative(text: str) -> bool:
    """True for a plain confirmation ("yes", "looks good"), False if negated."""
    if NEGATION_PATTERN.search(text):
        return False
    return AFFIRMATIVE_PATTERN.search(text) is not None


def _first_group(match: Optional[re.Match]) -> Optional[float]:
    if match is None:
        return None
    for group in match.groups():
        if group is not None:
            return float(group)
    return None


def extract_custom_gpd(text: str) -> Optional[float]:
    """Flow override such as "1200 gpd" or "800 gallons per day"."""
    return _first_group(GPD_PATTERN.search(text))


def extract_custom_head(text: str, allow_bare_feet: bool = False) -> Optional[float]:
    """Head override such as "150 ft of head" or "TDH of 150".

    With ``allow_bare_feet`` a plain "150 feet" also counts, which is only
    safe where no depth or level question is pending.
    """
    value = _first_group(HEAD_PATTERN.search(text))
    if value is None and allow_bare_feet:
        value = _first_group(BARE_FEET_PATTERN.search(text))
    return value


def extract_count(text: str) -> Optional[int]:
    """First integer in the text, accepting small number words ("two")."""
    value = first_integer(text)
    if value is not None:
        return value
    text = normalize_message(text)
    compound = COMPOUND_NUMBER_PATTERN.search(text)
    if compound:
        return WORD_NUMBERS[compound.group(1)] + WORD_NUMBERS[compound.group(2)]
    match = WORD_NUMBER_PATTERN.search(text)
    return WORD_NUMBERS[match.group(1)] if match else None


def extract_bathroom_count(text: str) -> Optional[int]:
    match = BATHROOM_PATTERN.search(text)
    return int(match.group(1)) if match else None


def extract_acres(text: str) -> Optional[float]:
    """Acreage such as "2.5 acres"; a bare number is taken as acres."""
    match = ACRE_PATTERN.search(text)
    if match:
        return float(match.group(1))
    return first_number(text)


def extract_feet(text: str) -> Optional[float]:
    """First number followed by a feet unit."""
    return _first_group(BARE_FEET_PATTERN.search(text))


def _fraction(num: str, den: str) -> Optional[float]:
    return int(num) / int(den) if int(den) != 0 else None


def extract_inches(text: str) -> Optional[float]:
    """First number followed by an inch unit; handles "1 1/4 inch" and '3/4"'.

    A fraction with a zero denominator ("1 1/0 inch") is not a size.
    """
    match = INCH_PATTERN.search(text)
    if match is None:
        return None
    whole, num, den, frac_num, frac_den, plain = match.groups()
    if whole is not None:
        fraction = _fraction(num, den)
        return int(whole) + fraction if fraction is not None else None
    if frac_num is not None:
        return _fraction(frac_num, frac_den)
    return float(plain)


# --------------------------------------------------------------------- #
# Stage extractors
# --------------------------------------------------------------------- #

# Stages whose answers are not measured in feet, so "150 feet" can only
# mean the customer's total head. LOCATION is left out: a location answer
# may carry an altitude ("we're at 3600 feet").
OPEN_ENDED_STAGES: frozenset[ConversationStage] = frozenset({
    ConversationStage.GREETING,
    ConversationStage.USAGE_TYPE,
    ConversationStage.CUSTOM_FLOW,
})


def _usage(text: str) -> dict[str, Any]:
    usage = extract_usage_type(text)
    return {"usage_type": usage} if usage != UsageType.UNKNOWN else {}


def _custom_flow(text: str) -> dict[str, Any]:
    gpd = extract_custom_gpd(text)
    if gpd is None:
        gpd = first_number(text)
    return {"custom_gpd": gpd} if gpd is not None else {}


def _custom_head(text: str) -> dict[str, Any]:
    head = extract_custom_head(text, allow_bare_feet=True)
    if head is None:
        head = first_number(text)
    return {"custom_head": head} if head is not None else {}


def _present(**fields: Any) -> dict[str, Any]:
    """Drop missed fields so a re-asked stage keeps the earlier answer."""
    return {name: value for name, value in fields.items() if value is not None}


def _casing(text: str) -> dict[str, Any]:
    size = extract_inches(text)
    if size is None:
        size = first_number(text)
    return _present(well_casing_size=size)


_STAGE_EXTRACTORS: dict[ConversationStage, Callable[[str], dict[str, Any]]] = {
    ConversationStage.GREETING: _usage,
    ConversationStage.USAGE_TYPE: _usage,
    ConversationStage.LOCATION: lambda t: {"location": t.strip()},
    ConversationStage.LIVESTOCK_TYPE: lambda t: {"livestock_type": t.strip()},
    ConversationStage.ANIMAL_COUNT: lambda t: {"animal_count": extract_count(t)},
    ConversationStage.PEOPLE_COUNT: lambda t: {"people_count": extract_count(t)},
    ConversationStage.FIXTURES_COUNT: lambda t: {
        "fixtures_info": t.strip(),
        "bathroom_count": extract_bathroom_count(t),
    },
    ConversationStage.IRRIGATION_AREA: lambda t: {"irrigation_area": extract_acres(t)},
    ConversationStage.IRRIGATION_TYPE: lambda t: {
        "irrigation_method": extract_irrigation_method(t),
    },
    ConversationStage.CROP_TYPE: lambda t: {
        "crop_type": t.strip(),
        "crop_category": extract_crop_category(t),
    },
    ConversationStage.CUSTOM_FLOW: _custom_flow,
    ConversationStage.CUSTOM_HEAD: _custom_head,
    ConversationStage.WELL_DEPTH: lambda t: {"well_depth": first_number(t)},
    ConversationStage.STATIC_WATER: lambda t: {"static_water_level": first_number(t)},
    ConversationStage.DRAWDOWN: lambda t: {"drawdown_level": first_number(t)},
    ConversationStage.ELEVATION: lambda t: {
        "elevation_gain": first_number(t),
        "direct_to_stock_tank": extract_direct_to_tank(t),
    },
    ConversationStage.PIPE_INFO: lambda t: _present(
        pipe_length=extract_feet(t),
        pipe_size=extract_inches(t),
    ),
    ConversationStage.STORAGE_TANK: lambda t: {"has_storage_tank": extract_has_storage_tank(t)},
    ConversationStage.WATER_QUALITY: lambda t: {"sandy_water": extract_sandy_water(t)},
    ConversationStage.WELL_CASING: _casing,
}


def extract_overrides(stage: ConversationStage, text: str) -> dict[str, Any]:
    """Scan any message for explicit flow and head overrides."""
    found: dict[str, Any] = {}
    gpd = extract_custom_gpd(text)
    if gpd is not None:
        found["custom_gpd"] = gpd
    head = extract_custom_head(text, allow_bare_feet=stage in OPEN_ENDED_STAGES)
    if head is not None:
        found["custom_head"] = head
    return found


def extract_fields(stage: ConversationStage, text: str) -> dict[str, Any]:
    """
    Extract the partial CollectedData update for one reply.

    Returns the override scan merged with the stage's own fields. Stage
    fields whose pattern missed are present with value None, except pipe
    and casing fields, which are omitted so a correction that misses
    keeps the earlier measurement.
    """
    fields = extract_overrides(stage, text)
    handler = _STAGE_EXTRACTORS.get(stage)
    if handler is not None:
        fields.update(handler(text))
    misses = [name for name, value in fields.items() if value is None]
    if misses:
        logger.debug("Extraction miss at %s: %s", stage.value, misses)
    return fields
