from django.apps import AppConfig


class RecommenderConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "recommender"

    def ready(self):
        # Initialize analytics module
        from .analytics.posthog_client import _initialize_posthog

        _initialize_posthog()
