from dataclasses import dataclass, field, replace

CONTENT_BASED = "content_based"
COLLABORATIVE = "collaborative"
POPULARITY = "popularity"
PREFERENCE = "preference"

SOURCES = (CONTENT_BASED, COLLABORATIVE, POPULARITY, PREFERENCE)


def book_features(book):
    """
    Flatten a Book into the plain mapping the scoring functions read.

    Expects `author` to be selected and `genres` prefetched, otherwise each
    call costs extra queries.
    """
    return {
        "id": book.id,
        "author": book.author.name,
        "genres": frozenset(genre.name for genre in book.genres.all()),
        "rating": float(book.average_rating or 0.0),
        "views": int(book.view_count or 0),
    }


@dataclass
class ScoredCandidate:
    """A book proposed by one recommendation source, with its score and reason."""

    book: object
    score: float
    reason: str
    source: str
    features: dict = field(default_factory=dict)

    @classmethod
    def for_book(cls, book, score, reason, source, features=None):
        return cls(
            book=book,
            score=score,
            reason=reason,
            source=source,
            features=features if features is not None else book_features(book),
        )

    @property
    def book_id(self):
        return self.features["id"]

    def with_score(self, score):
        return replace(self, score=score)

    def to_cache_entry(self):
        return {"book_id": self.book_id, "score": round(float(self.score), 6), "reason": self.reason}
