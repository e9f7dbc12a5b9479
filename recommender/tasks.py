import logging

from celery import shared_task

from .services.recommendation_service import RecommendationEngine
from .services.repositories import RecommendationStore

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def generate_recommendations_task(self):
    """Refresh every cached content-based and collaborative recommendation list."""
    logger.info(f"Starting recommendation regeneration (task {self.request.id})")
    try:
        summary = RecommendationEngine().generate_recommendations()
    except Exception as e:
        logger.error(f"Recommendation regeneration task {self.request.id} failed: {e}", exc_info=True)
        raise  # Re-raise to let Celery know the task failed

    logger.info(f"Recommendation regeneration task {self.request.id} finished")
    return summary


@shared_task
def purge_expired_recommendations_task():
    """Delete cached recommendation lists whose expiry has passed."""
    deleted = RecommendationStore().purge_expired()
    return {"deleted": deleted}
