"""
Registration desk tests: identifier lookup, visitor registration and the
vitals queue.
"""
from datetime import date, timedelta

import pytest

from apps.core.errors import ConflictError, ValidationFailed
from apps.patients.models import IdentifierTypeChoices, Patient, RegistrationToken, Visitor
from apps.patients.services import (
    IdentifierMismatch,
    PatientNotFound,
    enqueue_registration,
    lookup_existing,
    register_visitor,
)
from apps.patients.utils import mask_email


class TestMaskEmail:

    def test_masks_local_part(self):
        assert mask_email('john.doe@example.com') == 'j***@example.com'

    def test_invalid_email(self):
        assert mask_email('not-an-email') == ''
        assert mask_email(None) == ''


@pytest.mark.django_db
class TestLookupExisting:

    def test_student_found_with_masked_email(self, student_patient):
        data = lookup_existing(IdentifierTypeChoices.STUDENT_ID, '2021A7PS0001')

        assert data['exists'] is True
        assert data['id'] == student_patient.id
        assert data['email'] == 'j***@university.edu'

    def test_unknown_student_suggests_visitor_registration(self):
        data = lookup_existing(IdentifierTypeChoices.STUDENT_ID, 'NOPE')

        assert data == {'exists': False, 'try_visitor_registration': True}

    def test_unknown_phone_does_not_suggest_visitor_registration(self):
        data = lookup_existing(IdentifierTypeChoices.PHONE, '9000000000')

        assert data == {'exists': False, 'try_visitor_registration': False}

    def test_psrn_lists_dependents(self, professor_patient, dependent_patient):
        data = lookup_existing(IdentifierTypeChoices.PSRN, 'PSRN-100')

        assert data['professor']['id'] == professor_patient.id
        assert [d['id'] for d in data['dependents']] == [dependent_patient.id]
        assert data['email'] == 'k***@university.edu'

    def test_api(self, api_client, visitor_patient):
        response = api_client.get(
            '/api/v1/auth/existing',
            {'identifier_type': 'phone', 'identifier': '9111111111'}
        )

        assert response.status_code == 200
        assert response.data['name'] == 'Ravi Visitor'
        assert response.data['email'] == 'r***@example.com'

    def test_api_unknown_identifier_type(self, api_client):
        response = api_client.get('/api/v1/auth/existing', {'identifier_type': 'aadhaar', 'identifier': '1'})

        assert response.status_code == 400


@pytest.mark.django_db
class TestRegisterVisitor:

    def test_creates_patient_and_token(self):
        token = register_visitor(
            name='New Visitor',
            birthdate=date(1995, 6, 1),
            sex='female',
            phone='9222222222',
            email='new@example.com',
        )

        assert token.identifier_type == IdentifierTypeChoices.PHONE
        assert token.patient.type == 'visitor'
        assert Visitor.objects.get(phone='9222222222').patient_id == token.patient_id

    def test_duplicate_phone_conflicts(self, visitor_patient):
        with pytest.raises(ConflictError):
            register_visitor(
                name='Someone Else',
                birthdate=date(1995, 6, 1),
                sex='male',
                phone='9111111111',
                email='else@example.com',
            )
        assert Patient.objects.count() == 1
        assert not RegistrationToken.objects.exists()

    def test_future_birthdate_rejected(self):
        with pytest.raises(ValidationFailed):
            register_visitor(
                name='Not Born',
                birthdate=date.today() + timedelta(days=1),
                sex='male',
                phone='9333333333',
                email='future@example.com',
            )

    def test_api(self, api_client):
        response = api_client.post(
            '/api/v1/auth/visitorRegister',
            {
                'name': 'Api Visitor',
                'birthdate': '1999-12-31',
                'sex': 'male',
                'phone': '9444444444',
                'email': 'api@example.com',
            },
            format='json'
        )

        assert response.status_code == 201
        assert RegistrationToken.objects.get().id == response.data['token']

    def test_api_invalid_email(self, api_client):
        response = api_client.post(
            '/api/v1/auth/visitorRegister',
            {'name': 'X', 'birthdate': '1999-12-31', 'sex': 'male', 'phone': '9555555555', 'email': 'nope'},
            format='json'
        )

        assert response.status_code == 400
        assert 'email' in response.data


@pytest.mark.django_db
class TestEnqueueRegistration:

    def test_student(self, student_patient):
        token = enqueue_registration(IdentifierTypeChoices.STUDENT_ID, '2021A7PS0001', student_patient.id)

        assert token.patient_id == student_patient.id

    def test_dependent_by_professor_psrn(self, dependent_patient):
        token = enqueue_registration(IdentifierTypeChoices.PSRN, 'PSRN-100', dependent_patient.id)

        assert token.identifier == 'PSRN-100'

    def test_identifier_of_another_patient(self, student_patient, visitor_patient):
        with pytest.raises(IdentifierMismatch):
            enqueue_registration(IdentifierTypeChoices.STUDENT_ID, '2021A7PS0001', visitor_patient.id)

    def test_unknown_patient(self):
        with pytest.raises(PatientNotFound):
            enqueue_registration(IdentifierTypeChoices.PHONE, '9111111111', 999999)

    def test_tokens_increase(self, student_patient):
        first = enqueue_registration(IdentifierTypeChoices.STUDENT_ID, '2021A7PS0001', student_patient.id)
        second = enqueue_registration(IdentifierTypeChoices.STUDENT_ID, '2021A7PS0001', student_patient.id)

        assert second.id > first.id

    def test_api(self, api_client, student_patient):
        response = api_client.post(
            '/api/v1/auth/register',
            {'identifier_type': 'student_id', 'identifier': '2021A7PS0001', 'patient_id': student_patient.id},
            format='json'
        )

        assert response.status_code == 201
        assert 'token' in response.data

    def test_api_mismatch(self, api_client, student_patient):
        response = api_client.post(
            '/api/v1/auth/register',
            {'identifier_type': 'phone', 'identifier': '9876543210', 'patient_id': student_patient.id},
            format='json'
        )

        assert response.status_code == 400
        assert response.data['error'] == 'Identifier does not belong to this patient'
