from dataclasses import dataclass, field
from datetime import timedelta

from django.conf import settings


def _default_personalized_quotas():
    return {"collaborative": 0.6, "preference": 0.4}


def _default_hybrid_quotas():
    return {"collaborative": 0.4, "content_based": 0.3, "popularity": 0.2, "preference": 0.1}


@dataclass(frozen=True)
class EngineConfig:
    """
    Tuning knobs for RecommendationEngine.

    Built from the RECOMMENDER dict in Django settings by `from_settings`;
    tests construct it directly.
    """

    content_similarity_threshold: float = 0.30
    collaborative_similarity_threshold: float = 0.10
    max_similar_users: int = 20
    min_positive_rating: int = 4
    cache_ttl: timedelta = timedelta(hours=24)
    personalized_quotas: dict = field(default_factory=_default_personalized_quotas)
    hybrid_quotas: dict = field(default_factory=_default_hybrid_quotas)
    history_seed_count: int = 3
    batch_user_limit: int = 50
    batch_recommendation_limit: int = 10
    batch_workers: int = 1

    @classmethod
    def from_settings(cls):
        options = dict(getattr(settings, "RECOMMENDER", {}))
        ttl_hours = options.pop("cache_ttl_hours", None)
        if ttl_hours is not None:
            options["cache_ttl"] = timedelta(hours=ttl_hours)

        known = set(cls.__dataclass_fields__)
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"Unknown RECOMMENDER settings: {', '.join(sorted(unknown))}")
        return cls(**options)
