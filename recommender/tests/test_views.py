import json
from unittest.mock import MagicMock, patch

from django.test import Client, TestCase
from django.urls import reverse

from recommender.exceptions import ComputationError
from recommender.models import UserInteraction

from .factories import create_book, create_user


class RecommendationViewTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = create_user("reader", favorite_genres=["Science Fiction"])
        self.dune = create_book("Dune", "Frank Herbert", ["Science Fiction", "Fiction"], 4.5, 1000)
        self.messiah = create_book("Dune Messiah", "Frank Herbert", ["Science Fiction"], 4.3, 800)
        self.foundation = create_book("Foundation", "Isaac Asimov", ["Science Fiction", "Fiction"], 4.0, 500)

    def get_json(self, url, **params):
        response = self.client.get(url, params)
        return response, response.json()

    def test_content_based(self):
        response, body = self.get_json(reverse("recommender:content_based_recommendations", args=[self.dune.id]))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(body["success"])
        recommendations = body["data"]["recommendations"]
        self.assertEqual([r["book"]["id"] for r in recommendations], [self.messiah.id, self.foundation.id])
        self.assertEqual(recommendations[0]["reason"], "same author")
        self.assertEqual(recommendations[0]["type"], "content_based")
        self.assertEqual(recommendations[0]["book"]["author"], "Frank Herbert")

    def test_similar_books_defaults_to_six(self):
        for i in range(8):
            create_book(f"Dune Sequel {i}", "Frank Herbert", ["Science Fiction", "Fiction"], 4.5, 1000)

        _, body = self.get_json(reverse("recommender:similar_books", args=[self.dune.id]))

        self.assertEqual(len(body["data"]["recommendations"]), 6)

    def test_limit_parameter(self):
        _, body = self.get_json(reverse("recommender:content_based_recommendations", args=[self.dune.id]), limit=1)
        self.assertEqual(len(body["data"]["recommendations"]), 1)

    def test_bad_limit(self):
        url = reverse("recommender:content_based_recommendations", args=[self.dune.id])
        for limit in ("abc", "0", "51"):
            response, body = self.get_json(url, limit=limit)
            self.assertEqual(response.status_code, 400)
            self.assertFalse(body["success"])

    def test_unknown_book(self):
        response, body = self.get_json(reverse("recommender:content_based_recommendations", args=[99999]))
        self.assertEqual(response.status_code, 404)
        self.assertFalse(body["success"])

    def test_malformed_id(self):
        response, _ = self.get_json(reverse("recommender:content_based_recommendations", args=["not-a-number"]))
        self.assertEqual(response.status_code, 400)

    def test_collaborative(self):
        response, body = self.get_json(reverse("recommender:collaborative_recommendations", args=[self.user.id]))

        self.assertEqual(response.status_code, 200)
        # no interactions yet, so every book comes from the popular fallback
        self.assertEqual({r["score"] for r in body["data"]["recommendations"]}, {0.8})

    def test_collaborative_unknown_user(self):
        response, _ = self.get_json(reverse("recommender:collaborative_recommendations", args=[424242]))
        self.assertEqual(response.status_code, 404)

    @patch("recommender.views.RecommendationEngine")
    def test_computation_error_is_500(self, mock_engine):
        mock_engine.return_value.get_content_based_recommendations.side_effect = ComputationError("boom")

        with self.assertLogs("recommender.views", level="ERROR"):
            response, body = self.get_json(reverse("recommender:content_based_recommendations", args=[self.dune.id]))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(body["message"], "Could not generate recommendations.")

    def test_personal_endpoints_require_login(self):
        for name in ("user_recommendations", "hybrid_recommendations"):
            response = self.client.get(reverse(f"recommender:{name}"))
            self.assertEqual(response.status_code, 401)

    def test_user_and_hybrid_recommendations(self):
        self.client.force_login(self.user)

        for name in ("user_recommendations", "hybrid_recommendations"):
            response = self.client.get(reverse(f"recommender:{name}"))
            self.assertEqual(response.status_code, 200)
            ids = [r["book"]["id"] for r in response.json()["data"]["recommendations"]]
            self.assertEqual(len(ids), len(set(ids)))
            self.assertTrue(ids)

    def test_wrong_method(self):
        response = self.client.post(reverse("recommender:content_based_recommendations", args=[self.dune.id]))
        self.assertEqual(response.status_code, 405)


class GenerateRecommendationsViewTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = create_user("admin-ish")

    @patch("recommender.views.generate_recommendations_task.delay")
    def test_queues_task(self, mock_delay):
        mock_delay.return_value = MagicMock(id="task-123")
        self.client.force_login(self.user)

        response = self.client.post(reverse("recommender:generate_recommendations"))

        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.json()["data"]["task_id"], "task-123")
        mock_delay.assert_called_once_with()

    @patch("recommender.views.generate_recommendations_task.delay")
    def test_requires_login(self, mock_delay):
        response = self.client.post(reverse("recommender:generate_recommendations"))

        self.assertEqual(response.status_code, 401)
        mock_delay.assert_not_called()


class InteractionViewTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = create_user("reader")
        self.book = create_book("Piranesi", "Susanna Clarke", ["Fantasy"], 4.0, 10, 1)
        self.url = reverse("recommender:record_interaction")

    def post_json(self, payload):
        return self.client.post(self.url, data=json.dumps(payload), content_type="application/json")

    def test_records_view(self):
        self.client.force_login(self.user)

        response = self.post_json({"book_id": self.book.id, "interaction_type": "view", "time_on_page": 30})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["interaction_type"], "view")
        self.book.refresh_from_db()
        self.assertEqual(self.book.wishlist_count, 0)
        self.assertEqual(self.book.view_count, 11)
        # falls back to the request's session key
        self.assertTrue(UserInteraction.objects.get().session_id)

    def test_invalid_payloads(self):
        self.client.force_login(self.user)

        response = self.client.post(self.url, data="not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)

        response = self.post_json({"book_id": self.book.id, "interaction_type": "rating", "rating_value": 9})
        self.assertEqual(response.status_code, 400)

        response = self.post_json({"book_id": 9999, "interaction_type": "wishlist"})
        self.assertEqual(response.status_code, 404)

    def test_requires_login(self):
        response = self.post_json({"book_id": self.book.id, "interaction_type": "wishlist"})
        self.assertEqual(response.status_code, 401)

    def test_stats(self):
        self.client.force_login(self.user)
        self.post_json({"book_id": self.book.id, "interaction_type": "rating", "rating_value": 4})

        response = self.client.get(reverse("recommender:book_interaction_stats", args=[self.book.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["total_ratings"], 1)
        self.assertEqual(response.json()["data"]["average_rating"], 4.0)
