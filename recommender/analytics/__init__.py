"""
PostHog Analytics Module

Event tracking for the recommendation engine. Every helper is a no-op when
POSTHOG_API_KEY is not set.
"""

from .posthog_client import get_environment, capture_event
from .events import (
    track_recommendations_generated,
    track_recommendation_error,
    track_batch_regeneration_completed,
)

__all__ = [
    "get_environment",
    "capture_event",
    "track_recommendations_generated",
    "track_recommendation_error",
    "track_batch_regeneration_completed",
]
