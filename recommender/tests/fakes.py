"""
In-memory stand-ins for the engine's collaborators.
"""
from datetime import timedelta
from types import SimpleNamespace

from django.utils import timezone


class FakeGenres:
    def __init__(self, names):
        self._genres = [SimpleNamespace(name=name) for name in names]

    def all(self):
        return list(self._genres)


def make_book(book_id, author, genres=(), rating=0.0, views=0, rating_count=0, title=None):
    return SimpleNamespace(
        id=book_id,
        title=title or f"Book {book_id}",
        author=SimpleNamespace(name=author),
        genres=FakeGenres(genres),
        average_rating=rating,
        rating_count=rating_count,
        view_count=views,
    )


def make_interaction(user_id, book_id, interaction_type="view", rating_value=None, minutes_ago=0):
    return SimpleNamespace(
        user_id=user_id,
        book_id=book_id,
        interaction_type=interaction_type,
        rating_value=rating_value,
        timestamp=timezone.now() - timedelta(minutes=minutes_ago),
    )


class FakeCatalog:
    def __init__(self, books):
        self.books = list(books)
        self.all_calls = 0

    def find_by_id(self, book_id):
        return next((b for b in self.books if b.id == book_id), None)

    def find_many(self, book_ids):
        wanted = set(book_ids)
        return [b for b in self.books if b.id in wanted]

    def all(self, exclude_id=None):
        self.all_calls += 1
        return [b for b in self.books if b.id != exclude_id]

    def most_popular(self, limit):
        ranked = sorted(self.books, key=lambda b: (-b.average_rating, -b.view_count, -b.rating_count, b.id))
        return ranked[:limit]

    def matching_preferences(self, genres, authors, limit):
        matches = [
            b
            for b in self.books
            if b.author.name in authors or any(g.name in genres for g in b.genres.all())
        ]
        matches.sort(key=lambda b: (-b.average_rating, -b.view_count, b.id))
        return matches[:limit]


class FakeInteractionLog:
    def __init__(self, interactions=()):
        self.interactions = list(interactions)

    def find_by_user(self, user_id, kinds=None):
        found = [
            i for i in self.interactions if i.user_id == user_id and (not kinds or i.interaction_type in kinds)
        ]
        return sorted(found, key=lambda i: i.timestamp, reverse=True)

    def distinct_user_ids(self, limit=None):
        last_seen = {}
        for i in self.interactions:
            last_seen[i.user_id] = max(last_seen.get(i.user_id, i.timestamp), i.timestamp)
        user_ids = sorted(last_seen, key=lambda user_id: (-last_seen[user_id].timestamp(), user_id))
        return user_ids[:limit] if limit is not None else user_ids

    def co_interaction_item_sets(self, user_id, book_ids, kinds):
        others = {
            i.user_id
            for i in self.interactions
            if i.book_id in book_ids and i.interaction_type in kinds and i.user_id != user_id
        }
        item_sets = {}
        for i in self.interactions:
            if i.user_id in others and i.interaction_type in kinds:
                item_sets.setdefault(i.user_id, set()).add(i.book_id)
        return item_sets

    def ratings_by_users(self, user_ids, min_rating):
        return [
            (i.user_id, i.book_id, i.rating_value)
            for i in self.interactions
            if i.user_id in user_ids and i.interaction_type == "rating" and i.rating_value >= min_rating
        ]


class FakeUserStore:
    def __init__(self, user_ids=(), preferences=None):
        self.user_ids = set(user_ids)
        self.preferences = preferences or {}

    def exists(self, user_id):
        return user_id in self.user_ids

    def find_preferences(self, user_id):
        if user_id not in self.user_ids:
            return None
        return self.preferences.get(user_id, {"favorite_genres": [], "favorite_authors": []})


class FakeRecommendationStore:
    def __init__(self):
        self.entries = {}

    def get(self, kind, source_id):
        entry = self.entries.get((kind, str(source_id)))
        if entry is None or entry.expires_at <= timezone.now():
            return None
        return entry

    def upsert(self, kind, source_id, entries, calculated_at, expires_at):
        if not entries:
            raise ValueError("A cached recommendation list must not be empty")
        entry = SimpleNamespace(recommended_books=entries, calculated_at=calculated_at, expires_at=expires_at)
        self.entries[(kind, str(source_id))] = entry
        return entry

    def delete(self, kind, source_id):
        return 1 if self.entries.pop((kind, str(source_id)), None) else 0
