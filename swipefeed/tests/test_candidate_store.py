"""Tests for the quality-bucket candidate store."""

import random
from collections import Counter
from datetime import date, timedelta

import pytest

from swipefeed.core.candidate_store import (
    BUCKET_DISTRIBUTION,
    BUCKET_THRESHOLDS,
    CandidateStore,
    passes_threshold,
)
from swipefeed.core.contracts import CandidateBucket, TasteProfile
from swipefeed.core.learning import create_default_profile
from swipefeed.tests.factories import make_catalog_movies, make_movie

TODAY = date(2026, 1, 1)


def _store(movies, profile=None, seed=0, **kwargs):
    return CandidateStore(
        movies,
        profile or create_default_profile(),
        rng=random.Random(seed),
        today=TODAY,
        **kwargs,
    )


def _bucket_ids(store, bucket):
    return [c.movie.id for c in store.buckets[bucket]]


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


def test_strong_recent_movie_enters_every_bucket():
    """Test a well-rated new release qualifies everywhere."""
    movie = make_movie(
        "gem",
        rating_avg=8.2,
        rating_count=2500,
        popularity=70.0,
        release_date=TODAY - timedelta(days=30),
    )
    store = _store([movie])

    for bucket in CandidateBucket:
        assert _bucket_ids(store, bucket) == ["gem"]


def test_weak_movie_enters_no_bucket():
    """Test low rating and few votes fail every threshold."""
    store = _store([make_movie("weak", rating_avg=4.0, rating_count=30)])

    assert store.total_count() == 0
    assert not store.has_content()


def test_missing_popularity_and_date_fail_their_filters():
    """Test missing data fails filters that need it."""
    movie = make_movie("x", popularity=None, release_date=None, rating_avg=7.0, rating_count=800)

    assert not passes_threshold(movie, BUCKET_THRESHOLDS[CandidateBucket.TRENDING], TODAY)
    assert not passes_threshold(movie, BUCKET_THRESHOLDS[CandidateBucket.NEW_NOTEWORTHY], TODAY)
    assert passes_threshold(movie, BUCKET_THRESHOLDS[CandidateBucket.PERSONALIZED], TODAY)


def test_hidden_gems_cap_vote_count():
    """Test widely seen movies are not hidden gems."""
    famous = make_movie("famous", rating_avg=8.5, rating_count=50000)
    obscure = make_movie("obscure", rating_avg=8.5, rating_count=400)
    store = _store([famous, obscure])

    assert _bucket_ids(store, CandidateBucket.HIDDEN_GEMS) == ["obscure"]
    assert "famous" in _bucket_ids(store, CandidateBucket.TOP_RATED)


def test_old_release_is_not_new():
    movie = make_movie("old", rating_avg=7.0, rating_count=500, release_date=TODAY - timedelta(days=800))

    assert not passes_threshold(movie, BUCKET_THRESHOLDS[CandidateBucket.NEW_NOTEWORTHY], TODAY)


def test_seen_ids_are_excluded():
    """Test already swiped movies never enter a bucket."""
    movies = [make_movie("a"), make_movie("b")]
    store = _store(movies, seen_ids={"a"})

    assert _bucket_ids(store, CandidateBucket.PERSONALIZED) == ["b"]


def test_buckets_sorted_by_bucket_score():
    """Test trending order follows popularity."""
    movies = [
        make_movie("low", popularity=45.0),
        make_movie("high", popularity=95.0),
        make_movie("mid", popularity=70.0),
    ]
    store = _store(movies)

    assert _bucket_ids(store, CandidateBucket.TRENDING) == ["high", "mid", "low"]


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_distribution_sums_to_one():
    assert sum(BUCKET_DISTRIBUTION.values()) == pytest.approx(1.0)


def test_select_bucket_follows_distribution():
    """Test draw frequencies approximate the configured shares."""
    store = _store([])
    draws = Counter(store.select_bucket() for _ in range(20000))

    for bucket, share in BUCKET_DISTRIBUTION.items():
        assert draws[bucket] / 20000 == pytest.approx(share, abs=0.02)


def test_get_next_serves_each_movie_once_before_repeating():
    """Test session history prevents repeats until the store runs dry."""
    movies = make_catalog_movies(12, seed=5)
    store = _store(movies)
    eligible = {c.movie.id for candidates in store.buckets.values() for c in candidates}

    served = [store.get_next().movie.id for _ in range(len(eligible))]

    assert len(set(served)) == len(eligible)
    assert store.get_next() is not None


def test_get_next_on_empty_store():
    assert _store([]).get_next() is None


def test_session_history_is_bounded():
    """Test session history keeps the newest hundred IDs."""
    store = _store(make_catalog_movies(150, seed=2))
    for _ in range(130):
        store.get_next()

    assert len(store.session_history) <= 100


def test_fallback_serves_unshown_when_diversity_blocks():
    """Test a single-genre store keeps serving fresh movies."""
    dramas = [make_movie(f"d{i}", genres=("drama",), era=None, popularity=90.0 - i) for i in range(6)]
    store = _store(dramas, seed=3)

    served = [store.get_next().movie.id for _ in range(6)]

    assert sorted(served) == sorted(m.id for m in dramas)


def test_rejected_offers_stay_available():
    """Test movies the caller rejects are not marked as shown."""
    store = _store(make_catalog_movies(40, seed=2))
    target = store.buckets[CandidateBucket.PERSONALIZED][-1].movie.id

    assert store.get_next(accept=lambda movie: movie.id == target).movie.id == target
    assert store.session_history == [target]

    assert store.get_next(accept=lambda movie: False) is None
    assert store.session_history == [target]

    served = store.get_next()
    assert served.movie.id != target
    assert store.session_history == [target, served.movie.id]


# ---------------------------------------------------------------------------
# Swipes and profile updates
# ---------------------------------------------------------------------------


def test_record_swipe_removes_from_all_buckets():
    """Test a swiped movie leaves every bucket."""
    movie = make_movie(
        "gem", rating_avg=8.2, rating_count=2500, popularity=70.0, release_date=TODAY
    )
    store = _store([movie, make_movie("other")])

    store.record_swipe("gem", "like")

    for bucket in CandidateBucket:
        assert "gem" not in _bucket_ids(store, bucket)
    assert "gem" in store.seen_ids


def test_record_swipe_rejects_unknown_action():
    with pytest.raises(ValueError):
        _store([make_movie("a")]).record_swipe("a", "meh")


def test_update_taste_profile_resorts_personalized_only():
    """Test personalized order follows the new profile."""
    drama = make_movie("drama", genres=("drama",), popularity=50.0)
    comedy = make_movie("comedy", genres=("comedy",), popularity=50.0)
    store = _store([drama, comedy])
    trending_before = _bucket_ids(store, CandidateBucket.TRENDING)

    store.update_taste_profile(TasteProfile(genres={"comedy": 0.9, "drama": -0.5}))
    assert _bucket_ids(store, CandidateBucket.PERSONALIZED) == ["comedy", "drama"]

    store.update_taste_profile(TasteProfile(genres={"comedy": -0.5, "drama": 0.9}))
    assert _bucket_ids(store, CandidateBucket.PERSONALIZED) == ["drama", "comedy"]
    assert _bucket_ids(store, CandidateBucket.TRENDING) == trending_before


def test_get_stats():
    """Test bucket sizes and counters."""
    store = _store([make_movie("a"), make_movie("b")], seen_ids={"z"})
    store.get_next()
    stats = store.get_stats()

    assert stats["personalized"] == 2
    assert stats["session_history"] == 1
    assert stats["seen"] == 1
