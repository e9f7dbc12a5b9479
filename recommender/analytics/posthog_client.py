"""
PostHog Client Wrapper

Environment-aware PostHog client used by the event helpers in `events`.
"""

import os
import logging
import posthog
from django.conf import settings

logger = logging.getLogger(__name__)

POSTHOG_HOST = "https://eu.i.posthog.com"

_posthog_initialized = False


def _initialize_posthog():
    """Initialize PostHog client if not already initialized."""
    global _posthog_initialized
    if not _posthog_initialized:
        api_key = os.environ.get("POSTHOG_API_KEY", "")
        if api_key:
            posthog.api_key = api_key
            posthog.host = os.environ.get("POSTHOG_HOST", POSTHOG_HOST)
            _posthog_initialized = True
            logger.info("PostHog initialized successfully")
        else:
            logger.warning("POSTHOG_API_KEY not found. PostHog tracking will be disabled.")


def get_environment():
    """
    Get current environment string.

    Returns:
        "production" or "development"
    """
    django_env = os.environ.get("DJANGO_ENV", "").lower()
    if django_env in ("production", "development"):
        return django_env
    # Fall back to DEBUG setting
    return "development" if settings.DEBUG else "production"


def capture_event(distinct_id, event_name, properties=None, environment=None):
    """
    Capture a PostHog event with environment tagging.

    Args:
        distinct_id: User ID, book ID or a job name
        event_name: Name of the event
        properties: Dictionary of event properties
        environment: Optional environment override (defaults to current environment)
    """
    _initialize_posthog()

    if not posthog.api_key:
        return

    properties = dict(properties or {})
    properties["environment"] = environment or get_environment()

    try:
        posthog.capture(
            distinct_id=distinct_id,
            event=event_name,
            properties=properties,
        )
    except Exception as e:
        logger.error(f"Failed to capture PostHog event '{event_name}': {e}", exc_info=True)
