"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    database_url: str
    log_level: str

    # Catalog settings
    catalog_path: str | None
    default_region: str

    # Feed settings
    feed_queue_size: int
    feed_refill_threshold: int
    feed_history_window: int
    feed_use_candidate_store: bool

    # Taste profile settings
    profile_decay_factor: float

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./swipefeed.db")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        catalog_path = os.getenv("CATALOG_PATH") or None
        default_region = os.getenv("DEFAULT_REGION", "US").upper()

        feed_queue_size = _env_int("FEED_QUEUE_SIZE", 40)
        feed_refill_threshold = _env_int("FEED_REFILL_THRESHOLD", 15)
        feed_history_window = _env_int("FEED_HISTORY_WINDOW", 100)
        feed_use_candidate_store = _env_bool("FEED_USE_CANDIDATE_STORE", True)

        if feed_queue_size < 1:
            raise ConfigurationError("FEED_QUEUE_SIZE must be at least 1")
        if not 0 <= feed_refill_threshold < feed_queue_size:
            raise ConfigurationError(
                "FEED_REFILL_THRESHOLD must be between 0 and FEED_QUEUE_SIZE - 1, "
                f"got: {feed_refill_threshold}"
            )
        if feed_history_window < 1:
            raise ConfigurationError("FEED_HISTORY_WINDOW must be at least 1")

        profile_decay_factor = _env_float("PROFILE_DECAY_FACTOR", 0.95)
        if not 0.0 < profile_decay_factor <= 1.0:
            raise ConfigurationError(
                f"PROFILE_DECAY_FACTOR must be in (0, 1], got: {profile_decay_factor}"
            )

        return cls(
            database_url=database_url,
            log_level=log_level,
            catalog_path=catalog_path,
            default_region=default_region,
            feed_queue_size=feed_queue_size,
            feed_refill_threshold=feed_refill_threshold,
            feed_history_window=feed_history_window,
            feed_use_candidate_store=feed_use_candidate_store,
            profile_decay_factor=profile_decay_factor,
        )


config = Config.from_env()
