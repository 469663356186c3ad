"""Storage module for taste profiles and swipe outcomes."""

from swipefeed.storage.db import Base, close_engine, get_engine, get_session_factory, init_db
from swipefeed.storage.models import Swipe, UserProfile
from swipefeed.storage.repo_profiles import ProfilesRepo
from swipefeed.storage.repo_swipes import SwipeSets, SwipesRepo

__all__ = [
    # Database
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "close_engine",
    # Models
    "UserProfile",
    "Swipe",
    # Repositories
    "ProfilesRepo",
    "SwipesRepo",
    "SwipeSets",
]
