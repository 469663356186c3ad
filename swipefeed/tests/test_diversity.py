"""Tests for diversity caps and the history window."""

import pytest

from swipefeed.core.anti_repeat import HistoryWindow, is_item_allowed
from swipefeed.core.diversity import DiversityRules, passes_diversity_check
from swipefeed.tests.factories import make_movie


def _run(*specs):
    """Build served movies from (genre, director, era) tuples."""
    return [
        make_movie(f"r{i}", genres=(genre,), directors=(director,) if director else (), era=era)
        for i, (genre, director, era) in enumerate(specs)
    ]


# ---------------------------------------------------------------------------
# passes_diversity_check
# ---------------------------------------------------------------------------


def test_short_history_always_passes():
    """Test nothing is rejected before three movies were served."""
    recent = _run(("drama", "Lee", "recent"), ("drama", "Lee", "recent"))
    candidate = make_movie("c", genres=("drama",), directors=("Lee",), era="recent")

    assert passes_diversity_check(candidate, recent)


def test_genre_cap():
    """Test a fourth drama in five is rejected."""
    recent = _run(
        ("drama", "A", "classic"),
        ("comedy", "B", "modern"),
        ("drama", "C", "recent"),
        ("action", "D", "classic"),
        ("drama", "E", "modern"),
    )

    assert not passes_diversity_check(make_movie("c", genres=("drama",), era="recent"), recent)
    assert passes_diversity_check(make_movie("c", genres=("comedy",), era="recent"), recent)


def test_genre_cap_counts_secondary_genres_in_window():
    """Test served movies count when they carry the genre at any position."""
    recent = [
        make_movie("a", genres=("comedy", "drama"), era="classic"),
        make_movie("b", genres=("action", "drama"), era="modern"),
        make_movie("c", genres=("drama",), era="recent"),
    ]

    assert not passes_diversity_check(make_movie("x", genres=("drama",), era="classic"), recent)


def test_director_cap():
    """Test a third film by one director in five is rejected."""
    recent = _run(
        ("drama", "Varda", "classic"),
        ("comedy", "B", "modern"),
        ("action", "Varda", "recent"),
    )

    candidate = make_movie("c", genres=("horror",), directors=("Varda",), era="modern")
    assert not passes_diversity_check(candidate, recent)


def test_era_cap():
    """Test a fifth recent film in five is rejected."""
    recent = _run(
        ("drama", "A", "recent"),
        ("comedy", "B", "recent"),
        ("action", "C", "recent"),
        ("horror", "D", "recent"),
        ("romance", "E", "classic"),
    )

    assert not passes_diversity_check(make_movie("c", genres=("scifi",), era="recent"), recent)
    assert passes_diversity_check(make_movie("c", genres=("scifi",), era="modern"), recent)


def test_only_last_five_count():
    """Test older served movies fall out of the window."""
    recent = _run(
        ("drama", None, "classic"),
        ("drama", None, "classic"),
        ("drama", None, "classic"),
        ("comedy", None, "modern"),
        ("action", None, "recent"),
        ("horror", None, "modern"),
        ("romance", None, "recent"),
        ("scifi", None, "modern"),
    )

    assert passes_diversity_check(make_movie("c", genres=("drama",), era="classic"), recent)


def test_missing_fields_never_reject():
    """Test a movie without genre, director or era always passes."""
    recent = _run(*[("drama", "Lee", "recent")] * 5)
    bare = make_movie("c", genres=(), directors=(), era=None)

    assert passes_diversity_check(bare, recent)


def test_custom_rules():
    """Test tighter caps."""
    rules = DiversityRules(max_same_genre=1, min_history=1)
    recent = _run(("drama", None, "classic"))

    assert not passes_diversity_check(make_movie("c", genres=("drama",), era="modern"), recent, rules)


# ---------------------------------------------------------------------------
# HistoryWindow
# ---------------------------------------------------------------------------


def test_history_window_evicts_oldest():
    """Test FIFO eviction beyond capacity."""
    history = HistoryWindow(capacity=3)
    for item_id in ("a", "b", "c"):
        assert history.add(item_id) is None

    assert history.add("d") == "a"
    assert "a" not in history
    assert list(history) == ["b", "c", "d"]
    assert len(history) == 3


def test_history_window_readd_moves_to_end():
    """Test re-adding an ID refreshes its position."""
    history = HistoryWindow(capacity=3)
    for item_id in ("a", "b", "c"):
        history.add(item_id)

    history.add("a")
    assert history.add("d") == "b"
    assert history.recent(2) == ["a", "d"]


def test_history_window_clear():
    history = HistoryWindow(capacity=5)
    history.add("a")
    history.clear()

    assert len(history) == 0
    assert history.recent(3) == []


def test_history_window_rejects_zero_capacity():
    with pytest.raises(ValueError):
        HistoryWindow(capacity=0)


def test_is_item_allowed():
    """Test level 0 exclusion rules."""
    history = HistoryWindow(capacity=10)
    history.add("seen")

    assert is_item_allowed("fresh", history, {"liked"}, {"passed"})
    assert not is_item_allowed("seen", history, set(), set())
    assert not is_item_allowed("liked", history, {"liked"}, set())
    assert not is_item_allowed("passed", history, set(), {"passed"})
