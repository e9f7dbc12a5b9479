import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "shelfmatch.settings")

app = Celery("shelfmatch")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    # Nightly rebuild of the precomputed content-based and collaborative lists
    "regenerate-recommendations": {
        "task": "recommender.tasks.generate_recommendations_task",
        "schedule": crontab(hour=3, minute=0),
    },
    "purge-expired-recommendations": {
        "task": "recommender.tasks.purge_expired_recommendations_task",
        "schedule": crontab(minute=15),
    },
}
