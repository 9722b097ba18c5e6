"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Staff users and authenticated API clients by permission
- Patients of every type, cases, catalog rows
- A mocked MinIO client
"""
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from rest_framework.test import APIClient

from apps.authz.models import PermissionChoices, Role, User
from apps.authz.principal import principal_from_user
from apps.clinical.models import Case, Disease, Medicine, MedicineCategoryChoices
from apps.lab.models import LabTest
from apps.patients.models import (
    Dependent,
    Patient,
    PatientTypeChoices,
    Professor,
    SexChoices,
    Student,
    Visitor,
)


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def make_user(db):
    """
    Factory: ``make_user('doctor@test.com', [PermissionChoices.DOCTOR])``.
    One role per permission combination.
    """
    def _make_user(email, permissions, name=None):
        allowed = sorted(permissions)
        role, _ = Role.objects.get_or_create(
            name='+'.join(allowed) or 'none',
            defaults={'allowed': allowed}
        )
        return User.objects.create_user(
            email=email,
            password='testpass123',
            name=name or email.split('@')[0].title(),
            role=role,
        )
    return _make_user


@pytest.fixture
def doctor(make_user):
    return make_user('doctor@test.com', [PermissionChoices.DOCTOR], name='Dr. Mehta')


@pytest.fixture
def other_doctor(make_user):
    return make_user('other.doctor@test.com', [PermissionChoices.DOCTOR], name='Dr. Rao')


@pytest.fixture
def lab_user(make_user):
    return make_user('lab@test.com', [PermissionChoices.LAB], name='Lab Tech')


@pytest.fixture
def vitals_user(make_user):
    return make_user('vitals@test.com', [PermissionChoices.VITALS], name='Vitals Desk')


@pytest.fixture
def admin_user(make_user):
    return make_user('admin@test.com', [PermissionChoices.ADMIN], name='Admin')


@pytest.fixture
def inventory_user(make_user):
    return make_user('pharmacy@test.com', [PermissionChoices.INVENTORY], name='Pharmacist')


@pytest.fixture
def doctor_principal(doctor):
    return principal_from_user(doctor)


@pytest.fixture
def lab_principal(lab_user):
    return principal_from_user(lab_user)


# ============================================================================
# API Clients
# ============================================================================

def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def doctor_client(doctor):
    return _client_for(doctor)


@pytest.fixture
def other_doctor_client(other_doctor):
    return _client_for(other_doctor)


@pytest.fixture
def lab_client(lab_user):
    return _client_for(lab_user)


@pytest.fixture
def vitals_client(vitals_user):
    return _client_for(vitals_user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def inventory_client(inventory_user):
    return _client_for(inventory_user)


# ============================================================================
# Patients
# ============================================================================

@pytest.fixture
def student_patient(db):
    patient = Patient.objects.create(
        name='Jane Doe',
        type=PatientTypeChoices.STUDENT,
        birthdate=date(2003, 5, 17),
        sex=SexChoices.FEMALE,
    )
    Student.objects.create(
        patient=patient,
        student_id='2021A7PS0001',
        email='jane.doe@university.edu',
        phone='9876543210',
    )
    return patient


@pytest.fixture
def professor_patient(db):
    patient = Patient.objects.create(
        name='Prof. Kumar',
        type=PatientTypeChoices.PROFESSOR,
        birthdate=date(1970, 1, 1),
        sex=SexChoices.MALE,
    )
    Professor.objects.create(
        patient=patient,
        psrn='PSRN-100',
        email='kumar@university.edu',
        phone='9000000001',
    )
    return patient


@pytest.fixture
def dependent_patient(professor_patient):
    patient = Patient.objects.create(
        name='Asha Kumar',
        type=PatientTypeChoices.DEPENDENT,
        birthdate=date(2012, 8, 30),
        sex=SexChoices.FEMALE,
    )
    Dependent.objects.create(patient=patient, psrn='PSRN-100')
    return patient


@pytest.fixture
def visitor_patient(db):
    patient = Patient.objects.create(
        name='Ravi Visitor',
        type=PatientTypeChoices.VISITOR,
        birthdate=date(1990, 3, 3),
        sex=SexChoices.MALE,
    )
    Visitor.objects.create(patient=patient, email='ravi@example.com', phone='9111111111')
    return patient


# ============================================================================
# Clinical
# ============================================================================

@pytest.fixture
def make_case(db):
    tokens = iter(range(1000, 100000))

    def _make_case(patient, doctors, **fields):
        return Case.objects.create(
            token=next(tokens),
            patient=patient,
            associated_users=[user.id for user in doctors],
            **fields
        )
    return _make_case


@pytest.fixture
def case(make_case, student_patient, doctor):
    return make_case(student_patient, [doctor], temperature=98.6, heart_rate=72)


@pytest.fixture
def tablet(db):
    return Medicine.objects.create(
        drug='Paracetamol',
        company='Acme Pharma',
        brand='Calpol',
        strength='500mg',
        type='Tablet',
        category=MedicineCategoryChoices.CAPSULE_TABLET,
        price=Decimal('12.50'),
    )


@pytest.fixture
def syrup(db):
    return Medicine.objects.create(
        drug='Dextromethorphan',
        company='Acme Pharma',
        brand='Benadryl DR',
        strength='10mg/5ml',
        type='Syrup',
        category=MedicineCategoryChoices.LIQUID_SYRUP,
        price=Decimal('85.00'),
    )


@pytest.fixture
def disease(db):
    return Disease.objects.create(name='Acute nasopharyngitis', icd='J00')


@pytest.fixture
def lab_tests(db):
    return [
        LabTest.objects.create(name='Complete Blood Count', category='Hematology'),
        LabTest.objects.create(name='Lipid Profile', category='Biochemistry'),
    ]


@pytest.fixture
def inactive_lab_test(db):
    return LabTest.objects.create(name='Retired Test', category='Legacy', is_active=False)


# ============================================================================
# Object storage
# ============================================================================

@pytest.fixture
def minio_client():
    """MinIO client mock; every storage call in apps.files.storage goes through it."""
    client = MagicMock()
    client.presigned_get_object.return_value = 'http://localhost:9000/presigned/object'
    with patch('apps.files.storage.get_minio_client', return_value=client):
        yield client


@pytest.fixture
def future_date():
    return date.today() + timedelta(days=365)
