"""
Recommendation orchestration.

`RecommendationEngine` wires the scorers in this package to the catalog,
interaction log, user store and recommendation cache. Content-based and
collaborative lists are served from the cache when a fresh entry exists and
computed live otherwise; personalized and hybrid lists are always computed
live. `generate_recommendations` is the batch job that refreshes the cache.
"""
import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor

from django.db import close_old_connections
from django.utils import timezone

from ..analytics.events import (
    track_batch_regeneration_completed,
    track_recommendation_error,
    track_recommendations_generated,
)
from ..config import EngineConfig
from ..exceptions import ComputationError, InvalidInputError, NotFoundError, RecommendationError
from .candidates import COLLABORATIVE, CONTENT_BASED, POPULARITY, PREFERENCE, ScoredCandidate, book_features
from .collaborative_service import SIMILARITY_KINDS, CollaborativeFilter
from .hybrid_service import allocate_quotas, compose_personalized, diversify_candidates, popularity_candidates
from .preference_service import PreferenceMatcher
from .repositories import CatalogReader, InteractionLog, RecommendationStore, UserStore
from .similarity_service import top_similar_books

logger = logging.getLogger(__name__)

WRITTEN = "written"
SKIPPED = "skipped"
FAILED = "failed"


def parse_id(value, label="id"):
    """Coerce a book or user id to a positive int, or raise InvalidInputError."""
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {label}: {value!r}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid {label}: {value!r}") from None
    if parsed <= 0:
        raise InvalidInputError(f"Invalid {label}: {value!r}")
    return parsed


def _check_limit(limit):
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidInputError(f"limit must be a positive integer, got {limit!r}")
    return limit


class RecommendationEngine:
    """
    Serves and precomputes ranked book recommendations.

    Every collaborator can be swapped out at construction, which is how the
    tests run the engine without a database.
    """

    def __init__(self, config=None, catalog=None, interactions=None, users=None, store=None, rng=None):
        self.config = config if config is not None else EngineConfig.from_settings()
        self.catalog = catalog if catalog is not None else CatalogReader()
        self.interactions = interactions if interactions is not None else InteractionLog()
        self.users = users if users is not None else UserStore()
        self.store = store if store is not None else RecommendationStore()
        self.rng = rng if rng is not None else random.Random()

        self.collaborative = CollaborativeFilter(
            self.catalog,
            self.interactions,
            min_similarity=self.config.collaborative_similarity_threshold,
            max_similar_users=self.config.max_similar_users,
            min_positive_rating=self.config.min_positive_rating,
        )
        self.preferences = PreferenceMatcher(self.catalog, self.users)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get_content_based_recommendations(self, book_id, limit=10):
        book_id = parse_id(book_id, "book id")
        limit = _check_limit(limit)

        target = self.catalog.find_by_id(book_id)
        if target is None:
            raise NotFoundError(f"Book {book_id} not found")

        cached = self._from_cache(CONTENT_BASED, book_id, limit)
        if cached is not None:
            track_recommendations_generated(CONTENT_BASED, book_id, len(cached), cached=True)
            return cached

        recommendations = self._live(
            CONTENT_BASED, book_id, lambda: self._similar_books(book_features(target), limit)
        )
        track_recommendations_generated(CONTENT_BASED, book_id, len(recommendations), cached=False)
        return recommendations

    def get_collaborative_recommendations(self, user_id, limit=10):
        user_id = parse_id(user_id, "user id")
        limit = _check_limit(limit)
        self._require_user(user_id)

        recommendations, cached = self._collaborative_candidates(user_id, limit)
        track_recommendations_generated(COLLABORATIVE, user_id, len(recommendations), cached=cached)
        return recommendations

    def get_recommendations_for_user(self, user_id, limit=10):
        """Collaborative and preference candidates merged by score."""
        user_id = parse_id(user_id, "user id")
        limit = _check_limit(limit)
        self._require_user(user_id)

        quotas = allocate_quotas(limit, self.config.personalized_quotas)

        def compute():
            collaborative = self.collaborative.candidates(user_id, quotas.get(COLLABORATIVE, 0))
            preference = self.preferences.candidates(user_id, quotas.get(PREFERENCE, 0))
            return compose_personalized(collaborative, preference, limit)

        recommendations = self._live("personalized", user_id, compute)
        track_recommendations_generated("personalized", user_id, len(recommendations), cached=False)
        return recommendations

    def get_hybrid_recommendations(self, user_id, limit=10):
        """
        Blend all four sources by quota, then diversify.

        The collaborative share goes through the cache like
        `get_collaborative_recommendations`; the content share is built from
        the books the user most recently viewed or rated.
        """
        user_id = parse_id(user_id, "user id")
        limit = _check_limit(limit)
        self._require_user(user_id)

        quotas = allocate_quotas(limit, self.config.hybrid_quotas)

        def compute():
            collaborative, _ = self._collaborative_candidates(user_id, quotas.get(COLLABORATIVE, 0))
            content = self._history_candidates(user_id, quotas.get(CONTENT_BASED, 0))
            popular = popularity_candidates(self.catalog, quotas.get(POPULARITY, 0), self.rng)
            preference = self.preferences.candidates(user_id, quotas.get(PREFERENCE, 0))
            return diversify_candidates(collaborative + content + popular + preference, limit)

        recommendations = self._live("hybrid", user_id, compute)
        track_recommendations_generated("hybrid", user_id, len(recommendations), cached=False)
        return recommendations

    def generate_recommendations(self):
        """
        Recompute and upsert cached lists for every book and for the most
        recently active users.

        Keys that fail are logged and counted, never fatal. Only a failure to
        read the catalog or the user list aborts the run.
        """
        calculated_at = timezone.now()
        expires_at = calculated_at + self.config.cache_ttl
        limit = self.config.batch_recommendation_limit

        try:
            books = self.catalog.all()
            user_ids = self.interactions.distinct_user_ids(limit=self.config.batch_user_limit)
        except Exception as e:
            logger.error(f"Could not start recommendation regeneration: {e}", exc_info=True)
            raise ComputationError("Recommendation regeneration could not start") from e

        logger.info(f"Regenerating recommendations for {len(books)} books and {len(user_ids)} users")
        catalog_features = [(book, book_features(book)) for book in books]

        def content_for(features):
            return top_similar_books(
                features, catalog_features, limit, threshold=self.config.content_similarity_threshold
            )

        content_statuses = self._run_batch(
            [(features["id"], lambda features=features: content_for(features))
             for _, features in catalog_features],
            CONTENT_BASED,
            calculated_at,
            expires_at,
        )
        collaborative_statuses = self._run_batch(
            [(user_id, lambda user_id=user_id: self.collaborative.candidates(user_id, limit))
             for user_id in user_ids],
            COLLABORATIVE,
            calculated_at,
            expires_at,
        )

        summary = {
            "success": True,
            CONTENT_BASED: _tally(content_statuses),
            COLLABORATIVE: _tally(collaborative_statuses),
            "calculated_at": calculated_at.isoformat(),
        }
        logger.info(
            f"Recommendation regeneration finished: content_based={summary[CONTENT_BASED]}, "
            f"collaborative={summary[COLLABORATIVE]}"
        )
        track_batch_regeneration_completed(summary)
        return summary

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_user(self, user_id):
        if not self.users.exists(user_id):
            raise NotFoundError(f"User {user_id} not found")

    def _live(self, kind, source_id, compute):
        try:
            return compute()
        except RecommendationError:
            raise
        except Exception as e:
            logger.error(f"Failed to compute {kind} recommendations for {source_id}: {e}", exc_info=True)
            track_recommendation_error(kind, source_id, e)
            raise ComputationError(f"Could not compute {kind} recommendations") from e

    def _similar_books(self, target_features, limit):
        candidates = [(book, book_features(book)) for book in self.catalog.all(exclude_id=target_features["id"])]
        return top_similar_books(
            target_features, candidates, limit, threshold=self.config.content_similarity_threshold
        )

    def _collaborative_candidates(self, user_id, limit):
        """Returns (candidates, served_from_cache)."""
        if limit <= 0:
            return [], False

        cached = self._from_cache(COLLABORATIVE, user_id, limit)
        if cached is not None:
            return cached, True

        return self._live(COLLABORATIVE, user_id, lambda: self.collaborative.candidates(user_id, limit)), False

    def _history_candidates(self, user_id, limit):
        if limit <= 0:
            return []

        seed_ids = []
        for interaction in self.interactions.find_by_user(user_id, kinds=SIMILARITY_KINDS):
            if interaction.book_id not in seed_ids:
                seed_ids.append(interaction.book_id)
            if len(seed_ids) == self.config.history_seed_count:
                break
        if not seed_ids:
            return []

        per_seed = math.ceil(limit / self.config.history_seed_count)
        seeds = {book.id: book for book in self.catalog.find_many(seed_ids)}

        candidates = []
        for seed_id in seed_ids:
            seed = seeds.get(seed_id)
            if seed is not None:
                candidates.extend(self._similar_books(book_features(seed), per_seed))
        return candidates

    def _from_cache(self, kind, source_id, limit):
        """Map a fresh cache entry back to books, or None when nothing usable is cached."""
        entry = self.store.get(kind, source_id)
        if entry is None:
            return None

        rows = entry.recommended_books[:limit]
        books_by_id = {book.id: book for book in self.catalog.find_many([row["book_id"] for row in rows])}
        candidates = [
            ScoredCandidate.for_book(books_by_id[row["book_id"]], row["score"], row["reason"], kind)
            for row in rows
            if row["book_id"] in books_by_id
        ]
        if not candidates:
            # every cached book has since been deleted
            return None

        logger.debug(f"Serving {kind} recommendations for {source_id} from cache")
        return candidates

    def _refresh_entry(self, kind, source_id, compute, calculated_at, expires_at):
        try:
            candidates = compute()
            if not candidates:
                self.store.delete(kind, source_id)
                return SKIPPED
            self.store.upsert(
                kind,
                source_id,
                [candidate.to_cache_entry() for candidate in candidates],
                calculated_at,
                expires_at,
            )
            return WRITTEN
        except Exception as e:
            logger.error(f"Skipping {kind} recommendations for {source_id}: {e}", exc_info=True)
            return FAILED

    def _run_batch(self, jobs, kind, calculated_at, expires_at):
        if self.config.batch_workers <= 1:
            return [
                self._refresh_entry(kind, source_id, compute, calculated_at, expires_at)
                for source_id, compute in jobs
            ]

        def work(job):
            source_id, compute = job
            try:
                return self._refresh_entry(kind, source_id, compute, calculated_at, expires_at)
            finally:
                close_old_connections()

        with ThreadPoolExecutor(max_workers=self.config.batch_workers) as executor:
            return list(executor.map(work, jobs))


def _tally(statuses):
    return {status: statuses.count(status) for status in (WRITTEN, SKIPPED, FAILED)}


def get_content_based_recommendations(book_id, limit=10):
    return RecommendationEngine().get_content_based_recommendations(book_id, limit=limit)


def get_collaborative_recommendations(user_id, limit=10):
    return RecommendationEngine().get_collaborative_recommendations(user_id, limit=limit)


def get_recommendations_for_user(user_id, limit=10):
    return RecommendationEngine().get_recommendations_for_user(user_id, limit=limit)


def get_hybrid_recommendations(user_id, limit=10):
    return RecommendationEngine().get_hybrid_recommendations(user_id, limit=limit)


def generate_recommendations():
    return RecommendationEngine().generate_recommendations()
