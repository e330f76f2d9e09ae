"""
Centralized configuration with environment variable overrides.

Slot granularity, gap thresholds, horizons and search limits are all
configurable here. Core functions accept explicit overrides and fall
back to these values when the caller passes ``None``.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SlotConfig:
    """Slot generation parameters."""

    granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "15")
    min_usable_gap_minutes: int = _safe_int("MIN_USABLE_GAP_MINUTES", "30")
    # Applied to legacy booking rows stored without a duration
    default_booking_duration: int = _safe_int("DEFAULT_BOOKING_DURATION", "30")


@dataclass(frozen=True)
class PolicyConfig:
    """Business policy fallbacks used when a business leaves a field unset."""

    default_horizon_days: int = _safe_int("DEFAULT_HORIZON_DAYS", "90")
    default_cancellation_hours: int = _safe_int("DEFAULT_CANCELLATION_HOURS", "24")


@dataclass(frozen=True)
class AlternativesConfig:
    """Limits for the alternative-slot search."""

    search_days: int = _safe_int("ALTERNATIVE_SEARCH_DAYS", "14")
    max_dates: int = _safe_int("ALTERNATIVE_MAX_DATES", "3")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    slots: SlotConfig = field(default_factory=SlotConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    alternatives: AlternativesConfig = field(default_factory=AlternativesConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.slots.granularity_minutes < 1:
        raise ValueError(
            f"SLOT_GRANULARITY_MINUTES must be >= 1, got {config.slots.granularity_minutes}"
        )
    if config.slots.min_usable_gap_minutes < 0:
        raise ValueError(
            f"MIN_USABLE_GAP_MINUTES must be >= 0, got {config.slots.min_usable_gap_minutes}"
        )
    if config.slots.default_booking_duration < 1:
        raise ValueError(
            "DEFAULT_BOOKING_DURATION must be >= 1, "
            f"got {config.slots.default_booking_duration}"
        )
    if config.policy.default_horizon_days < 1:
        raise ValueError(
            f"DEFAULT_HORIZON_DAYS must be >= 1, got {config.policy.default_horizon_days}"
        )
    if config.policy.default_cancellation_hours < 0:
        raise ValueError(
            "DEFAULT_CANCELLATION_HOURS must be >= 0, "
            f"got {config.policy.default_cancellation_hours}"
        )
    if config.alternatives.search_days < 1:
        raise ValueError(
            f"ALTERNATIVE_SEARCH_DAYS must be >= 1, got {config.alternatives.search_days}"
        )
    if config.alternatives.max_dates < 1:
        raise ValueError(
            f"ALTERNATIVE_MAX_DATES must be >= 1, got {config.alternatives.max_dates}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded for '%s' (granularity=%dm, min_gap=%dm)",
        config.app_name,
        config.slots.granularity_minutes,
        config.slots.min_usable_gap_minutes,
    )
    return config


# Singleton instance
settings = load_config()
