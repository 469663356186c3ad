"""Core module containing the feed engine and domain types."""

from swipefeed.core.anti_repeat import HistoryWindow
from swipefeed.core.candidate_store import BUCKET_DISTRIBUTION, BUCKET_THRESHOLDS, CandidateStore
from swipefeed.core.contracts import (
    CandidateBucket,
    CatalogProvider,
    Era,
    FeedBucket,
    FeedConfigurationError,
    FeedItem,
    FeedStats,
    InvalidProfileError,
    Mood,
    MoodFilter,
    Movie,
    SwipeAction,
    TasteProfile,
    UnknownRegionError,
    validate_profile,
)
from swipefeed.core.diversity import DiversityRules, passes_diversity_check
from swipefeed.core.feed_engine import FeedEngine, FeedSettings, create_feed_engine
from swipefeed.core.learning import (
    create_default_profile,
    decay_taste_profile,
    reset_taste_profile,
    update_taste_profile,
)
from swipefeed.core.rationale import generate_reason
from swipefeed.core.scoring import get_bucket_ratios, score_movie, select_bucket

__all__ = [
    # Contracts/Types
    "CandidateBucket",
    "CatalogProvider",
    "Era",
    "FeedBucket",
    "FeedItem",
    "FeedStats",
    "Mood",
    "MoodFilter",
    "Movie",
    "SwipeAction",
    "TasteProfile",
    "validate_profile",
    # Errors
    "FeedConfigurationError",
    "InvalidProfileError",
    "UnknownRegionError",
    # Learning
    "create_default_profile",
    "decay_taste_profile",
    "reset_taste_profile",
    "update_taste_profile",
    # Scoring
    "score_movie",
    "get_bucket_ratios",
    "select_bucket",
    # Diversity / anti-repeat
    "DiversityRules",
    "passes_diversity_check",
    "HistoryWindow",
    # Rationale
    "generate_reason",
    # Feed
    "BUCKET_DISTRIBUTION",
    "BUCKET_THRESHOLDS",
    "CandidateStore",
    "FeedEngine",
    "FeedSettings",
    "create_feed_engine",
]
