"""Diversity constraints over recently served movies."""

from dataclasses import dataclass
from typing import Sequence

from swipefeed.core.contracts import Movie


@dataclass(frozen=True)
class DiversityRules:
    """Caps on similar items inside the trailing window."""

    max_same_genre: int = 3
    max_same_director: int = 2
    max_same_era: int = 4
    window: int = 5
    min_history: int = 3


DEFAULT_DIVERSITY_RULES = DiversityRules()


def passes_diversity_check(
    movie: Movie,
    recent: Sequence[Movie],
    rules: DiversityRules = DEFAULT_DIVERSITY_RULES,
) -> bool:
    """Check whether serving a movie keeps the recent run varied.

    A candidate is rejected when the last ``rules.window`` served movies
    already contain its primary genre, primary director or era as many
    times as the matching cap. Fields the candidate lacks never reject it.

    Args:
        movie: Candidate movie
        recent: Served movies, oldest first
        rules: Diversity caps

    Returns:
        True if the candidate may be served
    """
    if len(recent) < rules.min_history:
        return True

    window = recent[-rules.window:]

    genre = movie.primary_genre
    if genre is not None:
        if sum(1 for m in window if genre in m.genres) >= rules.max_same_genre:
            return False

    director = movie.primary_director
    if director is not None:
        if sum(1 for m in window if director in m.directors) >= rules.max_same_director:
            return False

    if movie.era:
        if sum(1 for m in window if m.era == movie.era) >= rules.max_same_era:
            return False

    return True
