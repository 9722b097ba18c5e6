"""
Request correlation middleware.

Generates/propagates X-Request-ID and injects it, together with the
authenticated principal, into logs.
"""
import uuid
import time
import logging
from threading import local

from django.utils.deprecation import MiddlewareMixin

from .metrics import metrics

# Thread-local storage for request context
_request_context = local()

logger = logging.getLogger(__name__)


def get_request_id():
    """Get current request ID from thread-local storage."""
    return getattr(_request_context, 'request_id', None)


def get_user_id():
    """Get current user ID from thread-local storage."""
    return getattr(_request_context, 'user_id', None)


def get_user_permissions():
    """Get current user's permission set from thread-local storage."""
    return getattr(_request_context, 'user_permissions', [])


def set_user_context(user_id, permissions):
    """
    Record the authenticated principal for log correlation.

    JWT authentication runs inside the DRF view, after this middleware's
    process_request, so the principal is attached once it is resolved.
    """
    _request_context.user_id = str(user_id) if user_id is not None else None
    _request_context.user_permissions = sorted(permissions)


class RequestCorrelationMiddleware(MiddlewareMixin):
    """
    Middleware to handle request correlation.

    - Generates/propagates X-Request-ID
    - Stores context in thread-local for logging
    - Adds correlation header to response
    - Tracks request duration and counts
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'

    def process_request(self, request):
        request_id = request.META.get(self.REQUEST_ID_HEADER) or str(uuid.uuid4())

        request.request_id = request_id
        request.start_time = time.time()

        _request_context.request_id = request_id

        # Session-authenticated users (admin); JWT principals are set later
        if hasattr(request, 'user') and request.user.is_authenticated:
            role = getattr(request.user, 'role', None)
            set_user_context(request.user.id, role.allowed if role else [])
        else:
            _request_context.user_id = None
            _request_context.user_permissions = []

    def process_response(self, request, response):
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id

        if hasattr(request, 'start_time'):
            duration = time.time() - request.start_time
            route = self._route(request)

            metrics.http_requests_total.labels(
                path=route, method=request.method, status=str(response.status_code)
            ).inc()
            metrics.http_request_duration_seconds.labels(
                path=route, method=request.method
            ).observe(duration)

            logger.info(
                'Request completed',
                extra={
                    'event': 'http_request_completed',
                    'path': request.path,
                    'method': request.method,
                    'status_code': response.status_code,
                    'duration_ms': round(duration * 1000, 2),
                    'request_id': getattr(request, 'request_id', None),
                    'user_id': get_user_id(),
                }
            )

        return response

    def process_exception(self, request, exception):
        duration_ms = 0
        if hasattr(request, 'start_time'):
            duration_ms = (time.time() - request.start_time) * 1000

        metrics.exceptions_total.labels(
            exception_type=exception.__class__.__name__,
            location=self._route(request),
        ).inc()

        logger.error(
            f'Request failed: {exception.__class__.__name__}',
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'path': request.path,
                'method': request.method,
                'exception_type': exception.__class__.__name__,
                'duration_ms': round(duration_ms, 2),
                'request_id': getattr(request, 'request_id', None),
                'user_id': get_user_id(),
            }
        )

    @staticmethod
    def _route(request):
        # Route pattern keeps label cardinality bounded (no ids in paths)
        match = getattr(request, 'resolver_match', None)
        if match is not None and match.route:
            return match.route
        return 'unmatched'


def clear_request_context():
    """Clear thread-local request context (useful for testing)."""
    for attr in ['request_id', 'user_id', 'user_permissions']:
        if hasattr(_request_context, attr):
            delattr(_request_context, attr)
