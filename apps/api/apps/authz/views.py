"""
Authz views: role administration and current user profile.
"""
from django.db.models import ProtectedError
from rest_framework import viewsets, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.models import Role, PermissionChoices
from apps.authz.permissions import IsAdmin
from apps.authz.serializers import RoleSerializer, CurrentUserSerializer
from apps.core.observability import log_domain_event


class RoleViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Role endpoints.

    Endpoints:
    - GET /api/v1/roles/ - List roles
    - POST /api/v1/roles/ - Create role
    - GET/PATCH/PUT/DELETE /api/v1/roles/{id}/

    A role still assigned to users cannot be deleted (409).
    """
    queryset = Role.objects.all()
    serializer_class = RoleSerializer
    permission_classes = [IsAdmin]

    def perform_create(self, serializer):
        role = serializer.save()
        log_domain_event(
            'role.created',
            entity_type='Role',
            entity_id=str(role.id),
            allowed=role.allowed,
        )

    def perform_update(self, serializer):
        role = serializer.save()
        log_domain_event(
            'role.updated',
            entity_type='Role',
            entity_id=str(role.id),
            allowed=role.allowed,
        )

    def destroy(self, request, *args, **kwargs):
        role = self.get_object()
        try:
            role.delete()
        except ProtectedError:
            return Response(
                {'error': 'Role is still assigned to users'},
                status=status.HTTP_409_CONFLICT
            )
        log_domain_event('role.deleted', entity_type='Role', entity_id=str(kwargs.get('pk')))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CurrentUserView(APIView):
    """GET /api/v1/auth/me/ - Profile and permission set of the caller."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(CurrentUserSerializer(request.user).data)


class PermissionListView(APIView):
    """GET /api/v1/permissions/ - Permission names a role may grant."""
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response([
            {'name': value, 'description': label}
            for value, label in PermissionChoices.choices
        ])
