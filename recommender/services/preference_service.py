from .candidates import PREFERENCE, ScoredCandidate

PREFERENCE_SCORE = 0.90
PREFERENCE_REASON = "matches stated preferences"


class PreferenceMatcher:
    """Catalog books matching a user's declared favourite genres or authors."""

    def __init__(self, catalog, users):
        self.catalog = catalog
        self.users = users

    def candidates(self, user_id, limit):
        preferences = self.users.find_preferences(user_id) or {}
        genres = preferences.get("favorite_genres") or []
        authors = preferences.get("favorite_authors") or []

        if not (genres or authors) or limit <= 0:
            return []

        return [
            ScoredCandidate.for_book(book, PREFERENCE_SCORE, PREFERENCE_REASON, PREFERENCE)
            for book in self.catalog.matching_preferences(genres, authors, limit)
        ]
