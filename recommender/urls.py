from django.urls import path

from . import views

app_name = "recommender"

urlpatterns = [
    path(
        "recommendations/content/<str:book_id>/",
        views.content_based_recommendations_view,
        name="content_based_recommendations",
    ),
    path("recommendations/similar/<str:book_id>/", views.similar_books_view, name="similar_books"),
    path(
        "recommendations/collaborative/<str:user_id>/",
        views.collaborative_recommendations_view,
        name="collaborative_recommendations",
    ),
    path("recommendations/user/", views.user_recommendations_view, name="user_recommendations"),
    path("recommendations/hybrid/", views.hybrid_recommendations_view, name="hybrid_recommendations"),
    path("recommendations/generate/", views.generate_recommendations_view, name="generate_recommendations"),
    path("interactions/", views.record_interaction_view, name="record_interaction"),
    path("books/<str:book_id>/interactions/stats/", views.book_interaction_stats_view, name="book_interaction_stats"),
]
