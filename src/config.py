"""
Centralized configuration with environment variable overrides.

Scheduling defaults, pricing display settings and logging are configurable
here. The pricing and availability engines take these values as arguments
and never read the environment themselves.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


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
class SchedulingConfig:
    """Slot grid and booking-rule defaults for shops that have not set their own."""

    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "15")
    default_min_notice_minutes: int = _safe_int("DEFAULT_MIN_NOTICE_MINUTES", "60")
    default_max_horizon_days: int = _safe_int("DEFAULT_MAX_HORIZON_DAYS", "28")
    shop_timezone: str = os.getenv("SHOP_TIMEZONE", "Europe/Paris")


@dataclass(frozen=True)
class PricingConfig:
    """Display settings for quotes."""

    currency: str = os.getenv("CURRENCY", "EUR")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "detailing-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    scheduling = config.scheduling
    if scheduling.slot_granularity_minutes < 1:
        raise ValueError(
            f"SLOT_GRANULARITY_MINUTES must be >= 1, got {scheduling.slot_granularity_minutes}"
        )
    if scheduling.slot_granularity_minutes > 24 * 60:
        raise ValueError(
            "SLOT_GRANULARITY_MINUTES must not exceed one day, "
            f"got {scheduling.slot_granularity_minutes}"
        )
    if scheduling.default_min_notice_minutes < 0:
        raise ValueError(
            "DEFAULT_MIN_NOTICE_MINUTES must be >= 0, "
            f"got {scheduling.default_min_notice_minutes}"
        )
    if scheduling.default_max_horizon_days < 1:
        raise ValueError(
            f"DEFAULT_MAX_HORIZON_DAYS must be >= 1, got {scheduling.default_max_horizon_days}"
        )
    if not scheduling.shop_timezone.strip():
        raise ValueError("SHOP_TIMEZONE must not be empty")

    currency = config.pricing.currency
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"CURRENCY must be a 3-letter code, got {currency!r}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
