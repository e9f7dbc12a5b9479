import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import InvalidInputError, NotFoundError
from ..models import UserInteraction
from .repositories import CatalogReader, InteractionLog, UserStore
from .recommendation_service import parse_id

logger = logging.getLogger(__name__)

INTERACTION_TYPES = {choice for choice, _ in UserInteraction.INTERACTION_TYPES}


def _validate(interaction_type, rating_value, time_on_page, session_id):
    if interaction_type not in INTERACTION_TYPES:
        raise InvalidInputError(f"Unknown interaction type: {interaction_type!r}")
    if not session_id:
        raise InvalidInputError("session_id is required")

    if interaction_type == UserInteraction.RATING:
        if isinstance(rating_value, bool) or not isinstance(rating_value, int) or not 1 <= rating_value <= 5:
            raise InvalidInputError("rating_value must be an integer between 1 and 5 for rating interactions")

    if interaction_type == UserInteraction.VIEW:
        if isinstance(time_on_page, bool) or not isinstance(time_on_page, int) or time_on_page < 0:
            raise InvalidInputError("time_on_page must be a non-negative integer for view interactions")


def record_interaction(
    user_id,
    book_id,
    interaction_type,
    rating_value=None,
    time_on_page=None,
    session_id=None,
    catalog=None,
    interactions=None,
    users=None,
):
    """
    Append an interaction to the log and fold it into the book's metrics.

    A view bumps the book's view count; a rating updates its average rating
    and rating count. Fields that don't apply to the interaction type are
    dropped.
    """
    catalog = catalog or CatalogReader()
    interactions = interactions or InteractionLog()
    users = users or UserStore()

    user_id = parse_id(user_id, "user id")
    book_id = parse_id(book_id, "book id")
    _validate(interaction_type, rating_value, time_on_page, session_id)

    if not users.exists(user_id):
        raise NotFoundError(f"User {user_id} not found")
    if catalog.find_by_id(book_id) is None:
        raise NotFoundError(f"Book {book_id} not found")

    is_rating = interaction_type == UserInteraction.RATING
    is_view = interaction_type == UserInteraction.VIEW
    is_wishlist = interaction_type == UserInteraction.WISHLIST

    try:
        with transaction.atomic():
            interaction = interactions.record(
                user_id=user_id,
                book_id=book_id,
                interaction_type=interaction_type,
                rating_value=rating_value if is_rating else None,
                time_on_page=time_on_page if is_view else None,
                session_id=session_id,
            )
            catalog.update_metrics(
                book_id,
                view_delta=1 if is_view else 0,
                wishlist_delta=1 if is_wishlist else 0,
                rating_value=rating_value if is_rating else None,
            )
    except ValidationError as e:
        raise InvalidInputError(f"Invalid interaction: {'; '.join(e.messages)}") from e

    logger.info(f"Recorded {interaction_type} of book {book_id} by user {user_id}")
    return interaction


def get_book_interaction_stats(book_id, interactions=None):
    """Counts per interaction type for a book, plus its mean rating rounded to one decimal."""
    interactions = interactions or InteractionLog()
    book_id = parse_id(book_id, "book id")

    counts, ratings = interactions.stats_for_item(book_id)
    average = round(sum(ratings) / len(ratings), 1) if ratings else 0.0

    return {
        "total_views": counts.get(UserInteraction.VIEW, 0),
        "total_ratings": counts.get(UserInteraction.RATING, 0),
        "total_wishlists": counts.get(UserInteraction.WISHLIST, 0),
        "total_interactions": sum(counts.values()),
        "average_rating": average,
    }
