import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .exceptions import InvalidInputError, RecommendationError
from .services.interaction_service import get_book_interaction_stats, record_interaction
from .services.recommendation_service import RecommendationEngine
from .tasks import generate_recommendations_task

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
SIMILAR_BOOKS_LIMIT = 6
MAX_LIMIT = 50


def api_login_required(view):
    """Like login_required, but answers 401 JSON instead of redirecting."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return _error("Authentication required.", status=401)
        return view(request, *args, **kwargs)

    return wrapper


def _error(message, status):
    return JsonResponse({"success": False, "message": message}, status=status)


def _parse_limit(request, default=DEFAULT_LIMIT):
    raw = request.GET.get("limit")
    if raw in (None, ""):
        return default
    try:
        limit = int(raw)
    except ValueError:
        raise InvalidInputError(f"limit must be an integer, got {raw!r}") from None
    if not 1 <= limit <= MAX_LIMIT:
        raise InvalidInputError(f"limit must be between 1 and {MAX_LIMIT}")
    return limit


def serialize_book(book):
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author.name,
        "genres": sorted(genre.name for genre in book.genres.all()),
        "publish_year": book.publish_year,
        "cover_image": book.cover_image,
        "average_rating": book.average_rating,
        "rating_count": book.rating_count,
        "view_count": book.view_count,
        "wishlist_count": book.wishlist_count,
    }


def serialize_candidate(candidate):
    return {
        "book": serialize_book(candidate.book),
        "score": round(candidate.score, 4),
        "reason": candidate.reason,
        "type": candidate.source,
    }


def _recommendations_response(compute, message):
    try:
        recommendations = compute()
    except RecommendationError as e:
        if e.status_code >= 500:
            logger.error(f"Recommendation request failed: {e}", exc_info=True)
            return _error("Could not generate recommendations.", status=e.status_code)
        return _error(str(e), status=e.status_code)

    return JsonResponse(
        {
            "success": True,
            "message": message,
            "data": {"recommendations": [serialize_candidate(c) for c in recommendations]},
        }
    )


@require_GET
def content_based_recommendations_view(request, book_id):
    return _recommendations_response(
        lambda: RecommendationEngine().get_content_based_recommendations(book_id, limit=_parse_limit(request)),
        "Content-based recommendations",
    )


@require_GET
def similar_books_view(request, book_id):
    return _recommendations_response(
        lambda: RecommendationEngine().get_content_based_recommendations(
            book_id, limit=_parse_limit(request, default=SIMILAR_BOOKS_LIMIT)
        ),
        "Similar books",
    )


@require_GET
def collaborative_recommendations_view(request, user_id):
    return _recommendations_response(
        lambda: RecommendationEngine().get_collaborative_recommendations(user_id, limit=_parse_limit(request)),
        "Collaborative recommendations",
    )


@require_GET
@api_login_required
def user_recommendations_view(request):
    return _recommendations_response(
        lambda: RecommendationEngine().get_recommendations_for_user(request.user.id, limit=_parse_limit(request)),
        "Personalized recommendations",
    )


@require_GET
@api_login_required
def hybrid_recommendations_view(request):
    return _recommendations_response(
        lambda: RecommendationEngine().get_hybrid_recommendations(request.user.id, limit=_parse_limit(request)),
        "Hybrid recommendations",
    )


@require_POST
@api_login_required
def generate_recommendations_view(request):
    result = generate_recommendations_task.delay()
    logger.info(f"User {request.user.id} queued recommendation regeneration as task {result.id}")
    return JsonResponse(
        {"success": True, "message": "Recommendation regeneration queued", "data": {"task_id": result.id}},
        status=202,
    )


@require_POST
@api_login_required
def record_interaction_view(request):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return _error("Request body must be valid JSON.", status=400)
    if not isinstance(data, dict):
        return _error("Request body must be a JSON object.", status=400)

    try:
        interaction = record_interaction(
            user_id=request.user.id,
            book_id=data.get("book_id"),
            interaction_type=data.get("interaction_type"),
            rating_value=data.get("rating_value"),
            time_on_page=data.get("time_on_page"),
            session_id=data.get("session_id") or request.session.session_key,
        )
    except RecommendationError as e:
        return _error(str(e), status=e.status_code)

    return JsonResponse(
        {
            "success": True,
            "message": "Interaction recorded",
            "data": {
                "id": interaction.id,
                "book_id": interaction.book_id,
                "interaction_type": interaction.interaction_type,
                "rating_value": interaction.rating_value,
                "time_on_page": interaction.time_on_page,
                "timestamp": interaction.timestamp.isoformat(),
            },
        },
        status=201,
    )


@require_GET
def book_interaction_stats_view(request, book_id):
    try:
        stats = get_book_interaction_stats(book_id)
    except RecommendationError as e:
        return _error(str(e), status=e.status_code)
    return JsonResponse({"success": True, "message": "Interaction stats", "data": stats})
