import logging

from django.db import connections
from django.db.utils import OperationalError

logger = logging.getLogger(__name__)
SAFE_METHODS = frozenset({'GET', 'HEAD', 'OPTIONS'})


def is_replayable(request) -> bool:
    # Engine writes report store failures as AttemptStoreUnavailable (503); the client retries those.
    return request.method in SAFE_METHODS


class RetryDatabaseConnectionMiddleware:
    """Retry once on GET/HEAD/OPTIONS when the database connection dies mid-request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        try:
            return self.get_response(request)
        except OperationalError as exc:
            if not is_replayable(request):
                raise
            logger.warning(
                'Database connection died handling %s %s; retrying once',
                request.method,
                request.path,
                exc_info=exc,
            )
            connections.close_all()
            return self.get_response(request)
