from django.core.management.base import BaseCommand

from recommender.services.recommendation_service import RecommendationEngine


class Command(BaseCommand):
    help = "Recomputes the cached content-based and collaborative recommendation lists."

    def add_arguments(self, parser):
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the regeneration on Celery instead of running it here.",
        )

    def handle(self, *args, **options):
        if options["run_async"]:
            from recommender.tasks import generate_recommendations_task

            result = generate_recommendations_task.delay()
            self.stdout.write(self.style.SUCCESS(f"Queued recommendation regeneration as task {result.id}"))
            return

        self.stdout.write("Regenerating recommendations...")
        summary = RecommendationEngine().generate_recommendations()

        for kind in ("content_based", "collaborative"):
            counts = summary[kind]
            self.stdout.write(
                f"  {kind}: {counts['written']} written, {counts['skipped']} skipped, {counts['failed']} failed"
            )
        self.stdout.write(self.style.SUCCESS("Recommendations regenerated."))
