"""
Centralized configuration with environment variable overrides.

Business details, model settings, search credentials, session lifetimes and
sizing constants are all configurable here. Nothing is hardcoded in the
conversation or sizing logic.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from pump_advisor.logging_context import LOG_FORMAT, install_session_filter

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = str(Path(__file__).parent / "data" / "pump_catalog.csv")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag such as 1/0, true/false, yes/no."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BusinessConfig:
    """Business-specific settings loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Prairie Sun Pumps")
    contact_line: str = os.getenv("CONTACT_LINE", "1-800-555-0142")


@dataclass(frozen=True)
class ModelConfig:
    """Text generation settings."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.7")
    llm_max_attempts: int = _safe_int("LLM_MAX_ATTEMPTS", "3")
    llm_timeout_sec: float = _safe_float("LLM_TIMEOUT", "30.0")
    api_key: str = os.getenv("OPENAI_API_KEY", "")


@dataclass(frozen=True)
class SearchConfig:
    """Fact lookup (Google Custom Search) settings."""

    api_key: str = os.getenv("GOOGLE_API_KEY", "")
    engine_id: str = os.getenv("GOOGLE_CSE_ID", "")
    timeout_sec: float = _safe_float("SEARCH_TIMEOUT", "5.0")
    result_limit: int = _safe_int("SEARCH_RESULT_LIMIT", "2")


@dataclass(frozen=True)
class SessionConfig:
    """Session lifetime and inbound message limits."""

    ttl_hours: float = _safe_float("SESSION_TTL_HOURS", "24")
    sweep_interval_minutes: float = _safe_float("SESSION_SWEEP_MINUTES", "60")
    max_message_length: int = _safe_int("MAX_MESSAGE_LENGTH", "2000")


@dataclass(frozen=True)
class SizingConfig:
    """Sizing inputs and pump catalog source."""

    peak_sun_hours: float = _safe_float("PEAK_SUN_HOURS", "5.4")
    catalog_path: str = os.getenv("PUMP_CATALOG_PATH", DEFAULT_CATALOG_PATH)
    allow_degraded_catalog: bool = _safe_bool("ALLOW_DEGRADED_CATALOG", "false")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    sizing: SizingConfig = field(default_factory=SizingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.llm_max_attempts < 1:
        raise ValueError(
            f"LLM_MAX_ATTEMPTS must be >= 1, got {config.model.llm_max_attempts}"
        )
    if config.model.llm_timeout_sec <= 0:
        raise ValueError(f"LLM_TIMEOUT must be > 0, got {config.model.llm_timeout_sec}")
    if config.search.timeout_sec <= 0:
        raise ValueError(f"SEARCH_TIMEOUT must be > 0, got {config.search.timeout_sec}")
    if config.search.result_limit < 1:
        raise ValueError(
            f"SEARCH_RESULT_LIMIT must be >= 1, got {config.search.result_limit}"
        )
    if config.session.ttl_hours <= 0:
        raise ValueError(f"SESSION_TTL_HOURS must be > 0, got {config.session.ttl_hours}")
    if config.session.sweep_interval_minutes <= 0:
        raise ValueError(
            "SESSION_SWEEP_MINUTES must be > 0, "
            f"got {config.session.sweep_interval_minutes}"
        )
    if config.session.max_message_length < 1:
        raise ValueError(
            f"MAX_MESSAGE_LENGTH must be >= 1, got {config.session.max_message_length}"
        )
    if config.sizing.peak_sun_hours <= 0:
        raise ValueError(
            f"PEAK_SUN_HOURS must be > 0, got {config.sizing.peak_sun_hours}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_session_filter()
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
