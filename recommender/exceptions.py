class RecommendationError(Exception):
    """Base class for failures surfaced by the recommendation engine."""

    status_code = 500


class NotFoundError(RecommendationError):
    """The referenced book or user does not exist."""

    status_code = 404


class InvalidInputError(RecommendationError):
    """A malformed id, limit or interaction payload."""

    status_code = 400


class ComputationError(RecommendationError):
    """An unexpected fault while scoring or aggregating candidates."""

    status_code = 500
