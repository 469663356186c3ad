"""Movie builders shared by the test suite."""

import random

from swipefeed.core.contracts import Movie

GENRES = ["drama", "comedy", "action", "thriller", "romance", "scifi", "horror", "animation"]
MOODS = ["calm", "fun", "intense"]
ERAS = ["classic", "modern", "recent"]


def make_movie(movie_id: str, **overrides) -> Movie:
    """Build a movie with sensible defaults."""
    fields = {
        "id": movie_id,
        "title": f"Movie {movie_id}",
        "year": 2020,
        "runtime": 110,
        "genres": ("drama",),
        "moods": ("calm",),
        "era": "recent",
        "popularity": 60.0,
        "rating_avg": 7.0,
        "rating_count": 1500,
    }
    fields.update(overrides)
    return Movie(**fields)


def make_catalog_movies(count: int, seed: int = 0) -> list[Movie]:
    """Random but reproducible catalog with genre/director/era variety."""
    rng = random.Random(seed)
    movies = []
    for i in range(count):
        genres = tuple(rng.sample(GENRES, rng.randint(1, 3)))
        movies.append(
            Movie(
                id=f"m{i}",
                title=f"Movie {i}",
                year=rng.randint(1950, 2024),
                runtime=rng.randint(80, 180),
                genres=genres,
                moods=tuple(rng.sample(MOODS, rng.randint(1, 2))),
                era=rng.choice(ERAS),
                popularity=rng.uniform(10, 100),
                rating_avg=round(rng.uniform(4.5, 9.0), 1),
                rating_count=rng.randint(20, 20000),
                directors=(f"director-{rng.randint(0, 24)}",),
                cast=tuple(f"actor-{rng.randint(0, 60)}" for _ in range(3)),
            )
        )
    return movies
