"""
User-user collaborative filtering over the interaction log.

Similar users are found with the Jaccard index of the books each user viewed
or rated; their high ratings are then aggregated, weighted by how similar
each rater is to the target.
"""
import logging

from ..models import UserInteraction
from .candidates import COLLABORATIVE, ScoredCandidate

logger = logging.getLogger(__name__)

SIMILARITY_KINDS = (UserInteraction.VIEW, UserInteraction.RATING)
MAX_RATING = 5

POPULAR_FALLBACK_SCORE = 0.80
POPULAR_FALLBACK_REASON = "popular across all users"
SIMILAR_READERS_REASON = "readers with similar taste rated this highly"


def calculate_jaccard_similarity(items_a, items_b):
    """|a ∩ b| / |a ∪ b|; two empty sets are not similar."""
    union = items_a | items_b
    if not union:
        return 0.0
    return len(items_a & items_b) / len(union)


def rank_similar_users(target_items, item_sets_by_user, min_similarity=0.10, top_n=20):
    """
    Return [(user_id, similarity)] above `min_similarity`, most similar
    first, at most `top_n` long.
    """
    similar = []
    for user_id, items in item_sets_by_user.items():
        similarity = calculate_jaccard_similarity(target_items, items)
        if similarity > min_similarity:
            similar.append((user_id, similarity))

    similar.sort(key=lambda pair: pair[1], reverse=True)
    return similar[:top_n]


def aggregate_similar_user_ratings(similar_users, ratings, excluded_book_ids, limit):
    """
    Score books rated by similar users.

    Each book's score is sum(rating * rater similarity) / number of ratings,
    scaled by the maximum rating so it lands in [0, 1]. Books in
    `excluded_book_ids` are skipped. Returns [(book_id, score)] best first.
    """
    if limit <= 0:
        return []

    similarity_by_user = dict(similar_users)
    weighted_totals = {}
    rating_counts = {}

    for user_id, book_id, rating in ratings:
        similarity = similarity_by_user.get(user_id)
        if similarity is None or book_id in excluded_book_ids:
            continue
        weighted_totals[book_id] = weighted_totals.get(book_id, 0.0) + rating * similarity
        rating_counts[book_id] = rating_counts.get(book_id, 0) + 1

    aggregated = [
        (book_id, min(total / rating_counts[book_id] / MAX_RATING, 1.0))
        for book_id, total in weighted_totals.items()
    ]
    aggregated.sort(key=lambda pair: pair[1], reverse=True)
    return aggregated[:limit]


class CollaborativeFilter:
    """Collaborative candidates for one user, backed by the catalog and interaction log."""

    def __init__(self, catalog, interactions, min_similarity=0.10, max_similar_users=20, min_positive_rating=4):
        self.catalog = catalog
        self.interactions = interactions
        self.min_similarity = min_similarity
        self.max_similar_users = max_similar_users
        self.min_positive_rating = min_positive_rating

    def similar_users(self, user_id, target_book_ids):
        item_sets = self.interactions.co_interaction_item_sets(user_id, target_book_ids, SIMILARITY_KINDS)
        return rank_similar_users(
            set(target_book_ids),
            item_sets,
            min_similarity=self.min_similarity,
            top_n=self.max_similar_users,
        )

    def candidates(self, user_id, limit):
        if limit <= 0:
            return []

        user_interactions = self.interactions.find_by_user(user_id)

        if not user_interactions:
            logger.debug(f"User {user_id} has no interactions, using popular books")
            return [
                ScoredCandidate.for_book(book, POPULAR_FALLBACK_SCORE, POPULAR_FALLBACK_REASON, COLLABORATIVE)
                for book in self.catalog.most_popular(limit)
            ]

        interacted_ids = {i.book_id for i in user_interactions}
        similarity_ids = {i.book_id for i in user_interactions if i.interaction_type in SIMILARITY_KINDS}

        similar_users = self.similar_users(user_id, similarity_ids)
        logger.debug(f"User {user_id}: {len(similar_users)} similar users found")
        if not similar_users:
            return []

        ratings = self.interactions.ratings_by_users(
            [other_id for other_id, _ in similar_users], self.min_positive_rating
        )
        aggregated = aggregate_similar_user_ratings(similar_users, ratings, interacted_ids, limit)
        if not aggregated:
            return []

        books_by_id = {book.id: book for book in self.catalog.find_many([book_id for book_id, _ in aggregated])}
        return [
            ScoredCandidate.for_book(books_by_id[book_id], score, SIMILAR_READERS_REASON, COLLABORATIVE)
            for book_id, score in aggregated
            if book_id in books_by_id
        ]
