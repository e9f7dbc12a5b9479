from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from recommender.exceptions import ComputationError
from recommender.models import Recommendation, UserInteraction
from recommender.services.candidates import COLLABORATIVE, CONTENT_BASED
from recommender.services.recommendation_service import RecommendationEngine
from recommender.tasks import generate_recommendations_task, purge_expired_recommendations_task

from .factories import create_book, create_user


class GenerateRecommendationsTaskTests(TestCase):

    def setUp(self):
        self.dune = create_book("Dune", "Frank Herbert", ["Science Fiction", "Fiction"], 4.5, 1000)
        self.messiah = create_book("Dune Messiah", "Frank Herbert", ["Science Fiction"], 4.3, 800)
        self.foundation = create_book("Foundation", "Isaac Asimov", ["Science Fiction", "Fiction"], 4.0, 500)
        self.emma = create_book("Emma", "Jane Austen", ["Romance"], 2.0, 5)

        self.alice = create_user("alice")
        self.bob = create_user("bob")
        UserInteraction.objects.create(
            user=self.alice, book=self.dune, interaction_type=UserInteraction.VIEW, time_on_page=60, session_id="a"
        )
        UserInteraction.objects.create(
            user=self.bob, book=self.dune, interaction_type=UserInteraction.VIEW, time_on_page=60, session_id="b"
        )
        UserInteraction.objects.create(
            user=self.bob, book=self.foundation, interaction_type=UserInteraction.RATING, rating_value=5, session_id="b"
        )

    def test_task_fills_the_cache(self):
        result = generate_recommendations_task.apply()

        self.assertTrue(result.successful())
        summary = result.get()
        self.assertEqual(summary[CONTENT_BASED], {"written": 3, "skipped": 1, "failed": 0})
        self.assertEqual(summary[COLLABORATIVE], {"written": 1, "skipped": 1, "failed": 0})

        entry = Recommendation.objects.get(kind=CONTENT_BASED, source_id=str(self.dune.id))
        self.assertEqual([row["book_id"] for row in entry.recommended_books], [self.messiah.id, self.foundation.id])
        self.assertEqual(entry.expires_at - entry.calculated_at, timedelta(hours=24))

        collaborative = Recommendation.objects.get(kind=COLLABORATIVE, source_id=str(self.alice.id))
        self.assertEqual([row["book_id"] for row in collaborative.recommended_books], [self.foundation.id])

    def test_cached_lists_are_served_afterwards(self):
        generate_recommendations_task.apply()

        with patch.object(RecommendationEngine, "_similar_books") as live:
            results = RecommendationEngine().get_content_based_recommendations(self.dune.id)

        live.assert_not_called()
        self.assertEqual([c.book for c in results], [self.messiah, self.foundation])

    def test_rerun_keeps_lists_identical(self):
        generate_recommendations_task.apply()
        first = dict(Recommendation.objects.values_list("source_id", "recommended_books").filter(kind=CONTENT_BASED))

        generate_recommendations_task.apply()
        second = dict(Recommendation.objects.values_list("source_id", "recommended_books").filter(kind=CONTENT_BASED))

        self.assertEqual(first, second)
        self.assertEqual(Recommendation.objects.count(), 4)

    @patch("recommender.tasks.RecommendationEngine")
    def test_task_fails_when_regeneration_cannot_start(self, mock_engine):
        mock_engine.return_value.generate_recommendations.side_effect = ComputationError("catalog down")

        with self.assertLogs("recommender.tasks", level="ERROR"):
            result = generate_recommendations_task.apply()

        self.assertTrue(result.failed())
        self.assertIsInstance(result.result, ComputationError)


class PurgeExpiredRecommendationsTaskTests(TestCase):

    def test_purges_only_expired_rows(self):
        now = timezone.now()
        rows = [{"book_id": 1, "score": 0.5, "reason": "same author"}]
        Recommendation.objects.create(kind=CONTENT_BASED, source_id="1", recommended_books=rows, expires_at=now - timedelta(minutes=1))
        Recommendation.objects.create(kind=CONTENT_BASED, source_id="2", recommended_books=rows, expires_at=now + timedelta(hours=1))

        result = purge_expired_recommendations_task.apply()

        self.assertEqual(result.get(), {"deleted": 1})
        self.assertEqual(list(Recommendation.objects.values_list("source_id", flat=True)), ["2"])
