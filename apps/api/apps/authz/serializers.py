"""
Authz serializers for roles and the current user profile.
"""
from rest_framework import serializers
from apps.authz.models import Role, User, PermissionChoices


class RoleSerializer(serializers.ModelSerializer):
    """
    Serializer for Role CRUD.

    ``allowed`` must be a duplicate-free list of known permission names.
    """
    allowed = serializers.ListField(
        child=serializers.ChoiceField(choices=PermissionChoices.choices),
        allow_empty=True,
    )
    user_count = serializers.IntegerField(source='users.count', read_only=True)

    class Meta:
        model = Role
        fields = ['id', 'name', 'allowed', 'user_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'user_count', 'created_at', 'updated_at']

    def validate_allowed(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError('Duplicate permissions are not allowed.')
        return value


class CurrentUserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source='role.name', read_only=True, default=None)
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'username', 'name', 'phone', 'role', 'permissions']
        read_only_fields = fields

    def get_permissions(self, obj):
        return sorted(obj.permission_set)


class StaffSummarySerializer(serializers.ModelSerializer):
    """Minimal staff projection (doctor pickers, report headers)."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email']
        read_only_fields = fields
