"""
Public registration views (no authentication, rate limited).
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from apps.core.errors import DomainError, domain_error_response
from apps.core.observability import get_sanitized_logger

from .serializers import (
    ExistingLookupSerializer,
    RegistrationSerializer,
    VisitorRegistrationSerializer,
)
from .services import enqueue_registration, lookup_existing, register_visitor

logger = get_sanitized_logger(__name__)


class RegistrationHourlyThrottle(AnonRateThrottle):
    """Rate limit for desk/kiosk registration calls per IP."""
    scope = 'registration'


class RegistrationBurstThrottle(AnonRateThrottle):
    """Burst protection for registration calls per IP."""
    scope = 'registration_burst'


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([RegistrationBurstThrottle, RegistrationHourlyThrottle])
def existing(request):
    """
    GET /api/v1/auth/existing?identifier_type=...&identifier=...

    Returns the matching patient summary (e-mail masked) or
    ``{'exists': false, 'try_visitor_registration': bool}``.
    """
    serializer = ExistingLookupSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    try:
        data = lookup_existing(**serializer.validated_data)
    except DomainError as e:
        return domain_error_response(e)
    return Response(data)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegistrationBurstThrottle, RegistrationHourlyThrottle])
def visitor_register(request):
    """POST /api/v1/auth/visitorRegister - new visitor, returns queue token."""
    serializer = VisitorRegistrationSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(
            'Visitor registration rejected - validation error',
            extra={'event': 'registration_rejected', 'fields': sorted(serializer.errors)}
        )
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        token = register_visitor(**serializer.validated_data)
    except DomainError as e:
        return domain_error_response(e)
    return Response({'token': token.id}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegistrationBurstThrottle, RegistrationHourlyThrottle])
def register(request):
    """POST /api/v1/auth/register - queue an existing patient, returns token."""
    serializer = RegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        token = enqueue_registration(**serializer.validated_data)
    except DomainError as e:
        return domain_error_response(e)
    return Response({'token': token.id}, status=status.HTTP_201_CREATED)
