"""
Permission-set gate for API endpoints.

Each class rejects the request before any service code runs when the
user's role does not grant the required permission.
"""
from rest_framework import permissions

from apps.authz.models import PermissionChoices


class PermissionSetRequired(permissions.BasePermission):
    """
    Grants access when the user's role allows every permission in
    ``required``.
    """
    required = ()
    message = 'Missing permissions'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        granted = request.user.permission_set
        return all(permission in granted for permission in self.required)


class IsDoctor(PermissionSetRequired):
    required = (PermissionChoices.DOCTOR,)


class IsLabStaff(PermissionSetRequired):
    required = (PermissionChoices.LAB,)


class IsVitalsStaff(PermissionSetRequired):
    required = (PermissionChoices.VITALS,)


class IsAdmin(PermissionSetRequired):
    required = (PermissionChoices.ADMIN,)


class IsInventoryStaff(PermissionSetRequired):
    required = (PermissionChoices.INVENTORY,)


class CanReadFiles(permissions.BasePermission):
    """
    Any staff member may ask for a file; per-file ``allowed`` lists decide.
    """
    message = 'Missing permissions'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        granted = request.user.permission_set
        return bool(granted & {
            PermissionChoices.DOCTOR,
            PermissionChoices.LAB,
            PermissionChoices.ADMIN,
        })
