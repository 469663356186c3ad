"""Human-readable reasons attached to feed items."""

from swipefeed.core.contracts import CandidateBucket, FeedBucket, Movie, TasteProfile

BUCKET_REASONS: dict[FeedBucket | CandidateBucket, str] = {
    FeedBucket.EXPLOIT: "Matches your taste",
    FeedBucket.EXPLORE: "Something different",
    FeedBucket.WILDCARD: "Wildcard pick",
    CandidateBucket.TRENDING: "Trending now",
    CandidateBucket.TOP_RATED: "Top rated",
    CandidateBucket.POPULAR: "Popular right now",
    CandidateBucket.NEW_NOTEWORTHY: "New and noteworthy",
    CandidateBucket.HIDDEN_GEMS: "Hidden gem",
    CandidateBucket.PERSONALIZED: "Picked for you",
}

# Minimum genre weight before we name it in the reason
GENRE_MENTION_THRESHOLD = 0.3


def _top_matching_genre(movie: Movie, profile: TasteProfile) -> str | None:
    best: str | None = None
    best_weight = GENRE_MENTION_THRESHOLD
    for genre in movie.genres:
        weight = profile.affinity("genres", genre)
        if weight >= best_weight:
            best, best_weight = genre, weight
    return best


def generate_reason(
    bucket: FeedBucket | CandidateBucket,
    movie: Movie,
    profile: TasteProfile,
    fallback_level: int = 0,
) -> str:
    """Build the reason string for a feed item.

    Args:
        bucket: Bucket the movie was drawn from
        movie: Selected movie
        profile: Profile used for scoring
        fallback_level: Fallback level of the refill that produced it

    Returns:
        Short reason string
    """
    if fallback_level > 0:
        return f"Fallback L{fallback_level}"

    if bucket in (FeedBucket.EXPLOIT, CandidateBucket.PERSONALIZED):
        genre = _top_matching_genre(movie, profile)
        if genre:
            return f"Because you like {genre}"

    return BUCKET_REASONS.get(bucket, "")
