"""
Domain error taxonomy shared by every service module.

Services raise these; views turn them into ``{'error': ..., 'details': ...}``
responses with ``domain_error_response``.
"""
from rest_framework import status
from rest_framework.response import Response


class DomainError(Exception):
    """Base class for rejections surfaced directly to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request could not be processed'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFoundError(DomainError):
    """Entity id does not resolve, or the caller is not associated with it."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found'


class ValidationFailed(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input'


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Conflict with current state'


def domain_error_response(exc: DomainError) -> Response:
    body = {'error': exc.message}
    if exc.details:
        body['details'] = exc.details
    return Response(body, status=exc.status_code)
