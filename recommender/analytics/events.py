"""
PostHog Event Tracking Helpers

One helper per recommendation event.
"""

import re

from .posthog_client import capture_event

MAX_ERROR_MESSAGE_LENGTH = 500


def _sanitize(message):
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        message = message[:MAX_ERROR_MESSAGE_LENGTH] + "..."
    # Remove API keys, passwords, etc.
    return re.sub(
        r"(api[_-]?key|password|secret|token)\s*[:=]\s*[\w-]+", r"\1=***", message, flags=re.IGNORECASE
    )


def track_recommendations_generated(kind, source_id, recommendation_count=0, cached=False):
    """Track a served recommendation list, cached or computed live."""
    capture_event(
        distinct_id=str(source_id),
        event_name="recommendations_generated",
        properties={
            "kind": kind,
            "source_id": source_id,
            "recommendation_count": recommendation_count,
            "cached": cached,
        },
    )


def track_recommendation_error(kind, source_id, error):
    """Track an unexpected failure while computing recommendations."""
    capture_event(
        distinct_id=str(source_id),
        event_name="recommendation_error",
        properties={
            "kind": kind,
            "source_id": source_id,
            "error_type": type(error).__name__,
            "error_message": _sanitize(str(error)),
        },
    )


def track_batch_regeneration_completed(summary):
    """Track a finished cache regeneration run with its per-kind tallies."""
    properties = {"calculated_at": summary.get("calculated_at")}
    for kind in ("content_based", "collaborative"):
        for status, count in summary.get(kind, {}).items():
            properties[f"{kind}_{status}"] = count

    capture_event(
        distinct_id="recommendation_batch",
        event_name="batch_regeneration_completed",
        properties=properties,
    )
