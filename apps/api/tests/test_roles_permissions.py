"""
Role administration and permission gate tests.
"""
from io import StringIO

import pytest
from django.core.management import call_command

from apps.authz.models import PermissionChoices, Role
from apps.authz.principal import principal_from_user


@pytest.mark.django_db
class TestRoleAPI:

    def test_create_role(self, admin_client):
        response = admin_client.post(
            '/api/v1/roles/',
            {'name': 'Senior Doctor', 'allowed': ['doctor', 'admin']},
            format='json'
        )

        assert response.status_code == 201
        assert Role.objects.get(name='Senior Doctor').allowed == ['doctor', 'admin']

    def test_unknown_permission_rejected(self, admin_client):
        response = admin_client.post(
            '/api/v1/roles/',
            {'name': 'Broken', 'allowed': ['superpowers']},
            format='json'
        )

        assert response.status_code == 400
        assert 'allowed' in response.data

    def test_duplicate_permissions_rejected(self, admin_client):
        response = admin_client.post(
            '/api/v1/roles/',
            {'name': 'Dup', 'allowed': ['lab', 'lab']},
            format='json'
        )

        assert response.status_code == 400

    def test_update_role(self, admin_client):
        role = Role.objects.create(name='Desk', allowed=['vitals'])

        response = admin_client.patch(f'/api/v1/roles/{role.id}/', {'allowed': ['vitals', 'test']}, format='json')

        assert response.status_code == 200
        role.refresh_from_db()
        assert role.allowed == ['vitals', 'test']

    def test_delete_assigned_role_conflicts(self, admin_client, doctor):
        response = admin_client.delete(f'/api/v1/roles/{doctor.role_id}/')

        assert response.status_code == 409
        assert Role.objects.filter(pk=doctor.role_id).exists()

    def test_delete_unused_role(self, admin_client):
        role = Role.objects.create(name='Unused', allowed=[])

        response = admin_client.delete(f'/api/v1/roles/{role.id}/')

        assert response.status_code == 204

    def test_non_admin_rejected(self, doctor_client):
        response = doctor_client.get('/api/v1/roles/')

        assert response.status_code == 403
        assert response.data['detail'] == 'Missing permissions'

    def test_permission_list(self, admin_client):
        response = admin_client.get('/api/v1/permissions/')

        assert {entry['name'] for entry in response.data} == set(PermissionChoices.values)


@pytest.mark.django_db
class TestCurrentUser:

    def test_me(self, doctor_client, doctor):
        response = doctor_client.get('/api/v1/auth/me/')

        assert response.status_code == 200
        assert response.data['id'] == doctor.id
        assert response.data['permissions'] == ['doctor']

    def test_anonymous(self, api_client):
        response = api_client.get('/api/v1/auth/me/')

        assert response.status_code == 401


@pytest.mark.django_db
class TestPrincipal:

    def test_permissions_come_from_role(self, make_user):
        user = make_user('multi@test.com', [PermissionChoices.LAB, PermissionChoices.DOCTOR])

        principal = principal_from_user(user)

        assert principal.user_id == user.id
        assert principal.has(PermissionChoices.LAB)
        assert not principal.has(PermissionChoices.ADMIN)

    def test_user_without_role_has_no_permissions(self, django_user_model):
        user = django_user_model.objects.create_user(email='norole@test.com', password='x')

        assert principal_from_user(user).permissions == frozenset()

    def test_combined_role_passes_both_gates(self, make_user, api_client):
        user = make_user('both@test.com', [PermissionChoices.LAB, PermissionChoices.DOCTOR])
        api_client.force_authenticate(user=user)

        assert api_client.get('/api/v1/lab/pending').status_code == 200
        assert api_client.get('/api/v1/doctor/queue').status_code == 200


@pytest.mark.django_db
class TestEnsureDefaultRoles:

    def test_creates_roles_idempotently(self):
        call_command('ensure_default_roles', stdout=StringIO())
        call_command('ensure_default_roles', stdout=StringIO())

        assert Role.objects.get(name='Doctor').allowed == ['doctor']
        assert Role.objects.filter(name='Lab Technician').count() == 1

    def test_adds_missing_permissions(self):
        Role.objects.create(name='Pharmacist', allowed=['test'])

        call_command('ensure_default_roles', stdout=StringIO())

        assert Role.objects.get(name='Pharmacist').allowed == ['test', 'inventory']
