"""
Data access used by the recommendation engine.

Each class wraps one store behind a small interface so the engine can be
built with fakes in tests. The default implementations use the Django ORM.
"""
import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.db.models import Count, F, Max, Q
from django.utils import timezone

from ..models import Book, Recommendation, ReaderProfile, UserInteraction

logger = logging.getLogger(__name__)


def _books():
    return Book.objects.select_related("author").prefetch_related("genres")


class CatalogReader:
    """Read access to the book catalog, plus metric updates from interactions."""

    def find_by_id(self, book_id):
        return _books().filter(pk=book_id).first()

    def find_many(self, book_ids):
        return list(_books().filter(pk__in=book_ids))

    def all(self, exclude_id=None):
        books = _books().order_by("id")
        if exclude_id is not None:
            books = books.exclude(pk=exclude_id)
        return list(books)

    def most_popular(self, limit):
        if limit <= 0:
            return []
        return list(_books().order_by("-average_rating", "-view_count", "-rating_count", "id")[:limit])

    def matching_preferences(self, genres, authors, limit):
        conditions = Q()
        if genres:
            conditions |= Q(genres__name__in=genres)
        if authors:
            conditions |= Q(author__name__in=authors)
        if not conditions or limit <= 0:
            return []

        # distinct() because a book can match several favourite genres
        return list(
            _books().filter(conditions).distinct().order_by("-average_rating", "-view_count", "id")[:limit]
        )

    def update_metrics(self, book_id, view_delta=0, wishlist_delta=0, rating_value=None):
        if view_delta:
            Book.objects.filter(pk=book_id).update(view_count=F("view_count") + view_delta)
        if wishlist_delta:
            Book.objects.filter(pk=book_id).update(wishlist_count=F("wishlist_count") + wishlist_delta)

        if rating_value is not None:
            with transaction.atomic():
                book = Book.objects.select_for_update().get(pk=book_id)
                total = book.average_rating * book.rating_count + rating_value
                book.rating_count += 1
                book.average_rating = round(total / book.rating_count, 1)
                book.save(update_fields=["average_rating", "rating_count", "updated_at"])


class InteractionLog:
    """Read/append access to the user interaction log."""

    def find_by_user(self, user_id, kinds=None):
        interactions = UserInteraction.objects.filter(user_id=user_id)
        if kinds:
            interactions = interactions.filter(interaction_type__in=kinds)
        return list(interactions.order_by("-timestamp", "-id"))

    def find_by_item(self, book_id, kinds=None):
        interactions = UserInteraction.objects.filter(book_id=book_id)
        if kinds:
            interactions = interactions.filter(interaction_type__in=kinds)
        return list(interactions.order_by("-timestamp", "-id"))

    def distinct_user_ids(self, limit=None):
        """Users with at least one interaction, most recently active first."""
        users = (
            UserInteraction.objects.values("user_id")
            .annotate(last_seen=Max("timestamp"))
            .order_by("-last_seen", "user_id")
            .values_list("user_id", flat=True)
        )
        if limit is not None:
            users = users[:limit]
        return list(users)

    def co_interaction_item_sets(self, user_id, book_ids, kinds):
        """
        Map every other user who touched one of `book_ids` to the set of books
        they interacted with. Users sharing no book are left out since their
        overlap with the target is empty.
        """
        if not book_ids:
            return {}

        other_users = (
            UserInteraction.objects.filter(book_id__in=book_ids, interaction_type__in=kinds)
            .exclude(user_id=user_id)
            .values_list("user_id", flat=True)
            .distinct()
        )
        rows = UserInteraction.objects.filter(
            user_id__in=list(other_users), interaction_type__in=kinds
        ).values_list("user_id", "book_id")

        item_sets = {}
        for other_id, book_id in rows:
            item_sets.setdefault(other_id, set()).add(book_id)
        return item_sets

    def ratings_by_users(self, user_ids, min_rating):
        """(user_id, book_id, rating_value) for rating events at or above `min_rating`."""
        if not user_ids:
            return []
        return list(
            UserInteraction.objects.filter(
                user_id__in=user_ids,
                interaction_type=UserInteraction.RATING,
                rating_value__gte=min_rating,
            )
            .order_by("id")
            .values_list("user_id", "book_id", "rating_value")
        )

    def stats_for_item(self, book_id):
        counts = dict(
            UserInteraction.objects.filter(book_id=book_id)
            .values("interaction_type")
            .annotate(total=Count("id"))
            .values_list("interaction_type", "total")
        )
        ratings = list(
            UserInteraction.objects.filter(book_id=book_id, interaction_type=UserInteraction.RATING)
            .values_list("rating_value", flat=True)
        )
        return counts, ratings

    def record(self, **fields):
        interaction = UserInteraction(**fields)
        interaction.full_clean()
        interaction.save()
        return interaction


class UserStore:
    """Existence checks and declared preferences for users."""

    def exists(self, user_id):
        return User.objects.filter(pk=user_id).exists()

    def find_preferences(self, user_id):
        if not self.exists(user_id):
            return None
        profile, _ = ReaderProfile.objects.get_or_create(user_id=user_id)
        return {
            "favorite_genres": list(profile.favorite_genres or []),
            "favorite_authors": list(profile.favorite_authors or []),
        }


class RecommendationStore:
    """
    Precomputed recommendation lists keyed by (kind, source_id).

    Entries past their expiry are never returned; `purge_expired` removes them.
    """

    def get(self, kind, source_id):
        return Recommendation.objects.filter(
            kind=kind, source_id=str(source_id), expires_at__gt=timezone.now()
        ).first()

    def upsert(self, kind, source_id, entries, calculated_at, expires_at):
        if not entries:
            raise ValueError("A cached recommendation list must not be empty")

        recommendation, _ = Recommendation.objects.update_or_create(
            kind=kind,
            source_id=str(source_id),
            defaults={
                "recommended_books": entries,
                "calculated_at": calculated_at,
                "expires_at": expires_at,
            },
        )
        return recommendation

    def delete(self, kind, source_id):
        deleted, _ = Recommendation.objects.filter(kind=kind, source_id=str(source_id)).delete()
        return deleted

    def purge_expired(self):
        deleted, _ = Recommendation.objects.filter(expires_at__lte=timezone.now()).delete()
        if deleted:
            logger.info(f"Purged {deleted} expired recommendation lists")
        return deleted
