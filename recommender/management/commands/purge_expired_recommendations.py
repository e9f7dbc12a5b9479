from django.core.management.base import BaseCommand

from recommender.services.repositories import RecommendationStore


class Command(BaseCommand):
    help = "Deletes cached recommendation lists that are past their expiry."

    def handle(self, *args, **options):
        deleted = RecommendationStore().purge_expired()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired recommendation lists."))
