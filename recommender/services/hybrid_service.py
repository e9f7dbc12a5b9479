"""
Blending candidates from several sources into one ranked list.

Sources get a fixed share of the requested limit, duplicates are collapsed
(first occurrence wins) and, for hybrid lists, a diversity pass demotes
authors and genres that dominate the candidate set.
"""
import math
from collections import Counter

from .candidates import POPULARITY, ScoredCandidate

POPULARITY_SCORE = 0.70
POPULARITY_REASON = "popular and highly rated"

MIN_AUTHOR_PENALTY = 0.5
AUTHOR_PENALTY_STEP = 0.1
MIN_GENRE_PENALTY = 0.7
GENRE_PENALTY_STEP = 0.05


def allocate_quotas(limit, quotas):
    """Split `limit` between sources by share, rounding each share down."""
    # limit * share is not exact in floating point
    return {source: int(math.floor(limit * share + 1e-9)) for source, share in quotas.items()}


def dedupe_candidates(candidates):
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.book_id in seen:
            continue
        seen.add(candidate.book_id)
        unique.append(candidate)
    return unique


def compose_personalized(collaborative, preference, limit):
    """Collaborative results first so they win ties, then best score first."""
    merged = dedupe_candidates(list(collaborative) + list(preference))
    merged.sort(key=lambda c: c.score, reverse=True)
    return merged[:limit]


def diversification_penalty(features, author_counts, genre_counts):
    author_count = author_counts.get(features["author"], 0)
    author_penalty = max(MIN_AUTHOR_PENALTY, 1 - author_count * AUTHOR_PENALTY_STEP)

    genres = features["genres"]
    mean_genre_count = sum(genre_counts.get(g, 0) for g in genres) / len(genres) if genres else 0
    genre_penalty = max(MIN_GENRE_PENALTY, 1 - mean_genre_count * GENRE_PENALTY_STEP)

    return author_penalty * genre_penalty


def diversify_candidates(candidates, limit):
    """
    Dedupe, then rescale each score by how crowded its author and genres are
    within the candidate set. Over-represented books sink but are never
    removed outright.
    """
    unique = dedupe_candidates(candidates)

    author_counts = Counter(c.features["author"] for c in unique)
    genre_counts = Counter(g for c in unique for g in c.features["genres"])

    adjusted = [
        c.with_score(c.score * diversification_penalty(c.features, author_counts, genre_counts)) for c in unique
    ]
    adjusted.sort(key=lambda c: c.score, reverse=True)
    return adjusted[:limit]


def popularity_candidates(catalog, limit, rng):
    """
    A random pick of `limit` books from the top 2 x `limit` most popular.
    The shuffle keeps repeated calls from always surfacing the same titles.
    """
    if limit <= 0:
        return []

    popular = catalog.most_popular(limit * 2)
    rng.shuffle(popular)
    return [
        ScoredCandidate.for_book(book, POPULARITY_SCORE, POPULARITY_REASON, POPULARITY) for book in popular[:limit]
    ]
