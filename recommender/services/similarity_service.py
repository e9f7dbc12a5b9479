"""
Content similarity between books.

The score is a weighted blend of four signals that sum to 1.0: same author,
genre overlap, rating closeness and popularity closeness. All functions work
on the plain feature mappings produced by `book_features`, so they can be
exercised without a database.
"""
import math

from .candidates import CONTENT_BASED, ScoredCandidate

WEIGHTS = {
    "author": 0.40,
    "genres": 0.35,
    "rating": 0.15,
    "popularity": 0.10,
}

MAX_RATING = 5.0
POPULARITY_LOG_BASE = 1000
DEFAULT_THRESHOLD = 0.30


def _popularity(views):
    return math.log(views + 1) / math.log(POPULARITY_LOG_BASE)


def _genre_overlap(genres_a, genres_b):
    largest = max(len(genres_a), len(genres_b))
    if largest == 0:
        return 0.0, 0
    shared = len(genres_a & genres_b)
    return shared / largest, shared


def calculate_content_similarity(book_a, book_b):
    """Symmetric similarity in [0, 1] between two books' features."""
    score = 0.0

    if book_a["author"] == book_b["author"]:
        score += WEIGHTS["author"]

    overlap, _ = _genre_overlap(book_a["genres"], book_b["genres"])
    score += overlap * WEIGHTS["genres"]

    rating_diff = abs(book_a["rating"] - book_b["rating"])
    score += max(0.0, 1 - rating_diff / MAX_RATING) * WEIGHTS["rating"]

    popularity_diff = abs(_popularity(book_a["views"]) - _popularity(book_b["views"]))
    score += max(0.0, 1 - popularity_diff) * WEIGHTS["popularity"]

    return min(score, 1.0)


def get_similarity_reasons(book_a, book_b):
    """Human-readable reasons, strongest first."""
    reasons = []

    if book_a["author"] == book_b["author"]:
        reasons.append("same author")

    _, shared = _genre_overlap(book_a["genres"], book_b["genres"])
    if shared:
        reasons.append(f"{shared} shared genre{'s' if shared != 1 else ''}")

    if abs(book_a["rating"] - book_b["rating"]) < 1:
        reasons.append("similar rating")

    return reasons or ["similar content"]


def top_similar_books(target, candidates, limit, threshold=DEFAULT_THRESHOLD):
    """
    Rank `candidates` by similarity to `target`.

    `target` is a feature mapping and `candidates` an iterable of
    (book, features) pairs. Scores at or below `threshold` are dropped; ties
    keep the order of `candidates`.
    """
    if limit <= 0:
        return []

    scored = []
    for book, features in candidates:
        if features["id"] == target["id"]:
            continue
        score = calculate_content_similarity(target, features)
        if score > threshold:
            reason = get_similarity_reasons(target, features)[0]
            scored.append(ScoredCandidate(book, score, reason, CONTENT_BASED, features))

    scored.sort(key=lambda c: c.score, reverse=True)
    return scored[:limit]
