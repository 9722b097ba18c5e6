"""
Patient registration and contact resolution services.
"""
from datetime import date
from typing import Optional

from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction

from apps.core.errors import ConflictError, NotFoundError, ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.patients.models import (
    Dependent,
    IdentifierTypeChoices,
    Patient,
    PatientTypeChoices,
    Professor,
    RegistrationToken,
    SexChoices,
    Student,
    Visitor,
)
from apps.patients.utils import mask_email


class PatientNotFound(NotFoundError):
    default_message = 'Patient not found'


class ContactNotFound(NotFoundError):
    default_message = 'No email on file for this patient'


class IdentifierMismatch(ValidationFailed):
    default_message = 'Identifier does not belong to this patient'


# ============================================================================
# Contact resolution
# ============================================================================

def _student_email(patient):
    return Student.objects.filter(patient=patient).values_list('email', flat=True).first()


def _professor_email(patient):
    return Professor.objects.filter(patient=patient).values_list('email', flat=True).first()


def _dependent_email(patient):
    # Dependents are reached through the sponsoring professor
    psrn = Dependent.objects.filter(patient=patient).values_list('psrn', flat=True).first()
    if psrn is None:
        return None
    return Professor.objects.filter(psrn=psrn).values_list('email', flat=True).first()


def _visitor_email(patient):
    return Visitor.objects.filter(patient=patient).values_list('email', flat=True).first()


_CONTACT_RESOLVERS = {
    PatientTypeChoices.STUDENT: _student_email,
    PatientTypeChoices.PROFESSOR: _professor_email,
    PatientTypeChoices.DEPENDENT: _dependent_email,
    PatientTypeChoices.VISITOR: _visitor_email,
}

if set(_CONTACT_RESOLVERS) != set(PatientTypeChoices):
    raise ImproperlyConfigured('Every patient type needs a contact resolver')


def resolve_contact_email(patient: Patient) -> Optional[str]:
    """
    Return the e-mail address that receives messages for ``patient``.

    Students, professors and visitors have their own address. A dependent
    resolves to the professor whose PSRN is stored on the dependent row.
    Returns None when the chain does not lead to an address.
    """
    return _CONTACT_RESOLVERS[patient.type](patient) or None


# ============================================================================
# Lookups
# ============================================================================

def get_patient(patient_id) -> Patient:
    try:
        return Patient.objects.get(pk=patient_id)
    except Patient.DoesNotExist:
        raise PatientNotFound(patient_id=patient_id)


def patient_summary(patient: Patient) -> dict:
    return {
        'id': patient.id,
        'name': patient.name,
        'type': patient.type,
        'age': patient.age,
        'sex': patient.sex,
        'birthdate': patient.birthdate.isoformat(),
    }


def lookup_existing(identifier_type: str, identifier: str) -> dict:
    """
    Find the patient(s) behind a desk identifier.

    Student ids and phone numbers map to a single patient. A PSRN maps to
    the professor plus every registered dependent. Unknown student ids and
    PSRNs suggest visitor registration; an unknown phone does not, because
    the phone is the visitor identifier itself.
    """
    if identifier_type == IdentifierTypeChoices.STUDENT_ID:
        student = Student.objects.select_related('patient').filter(student_id=identifier).first()
        if student is None:
            return {'exists': False, 'try_visitor_registration': True}
        return {
            'exists': True,
            **patient_summary(student.patient),
            'email': mask_email(student.email),
        }

    if identifier_type == IdentifierTypeChoices.PHONE:
        visitor = Visitor.objects.select_related('patient').filter(phone=identifier).first()
        if visitor is None:
            return {'exists': False, 'try_visitor_registration': False}
        return {
            'exists': True,
            **patient_summary(visitor.patient),
            'email': mask_email(visitor.email),
        }

    if identifier_type == IdentifierTypeChoices.PSRN:
        professor = Professor.objects.select_related('patient').filter(psrn=identifier).first()
        if professor is None:
            return {'exists': False, 'try_visitor_registration': True}
        dependents = Dependent.objects.select_related('patient').filter(psrn=identifier).order_by('patient_id')
        return {
            'exists': True,
            'professor': patient_summary(professor.patient),
            'email': mask_email(professor.email),
            'dependents': [patient_summary(d.patient) for d in dependents],
        }

    raise ValidationFailed('Unknown identifier type', identifier_type=identifier_type)


# ============================================================================
# Registration
# ============================================================================

def _identifier_belongs_to(identifier_type, identifier, patient_id) -> bool:
    if identifier_type == IdentifierTypeChoices.STUDENT_ID:
        return Student.objects.filter(student_id=identifier, patient_id=patient_id).exists()
    if identifier_type == IdentifierTypeChoices.PHONE:
        return Visitor.objects.filter(phone=identifier, patient_id=patient_id).exists()
    if identifier_type == IdentifierTypeChoices.PSRN:
        return (
            Professor.objects.filter(psrn=identifier, patient_id=patient_id).exists()
            or Dependent.objects.filter(psrn=identifier, patient_id=patient_id).exists()
        )
    return False


def enqueue_registration(identifier_type: str, identifier: str, patient_id: int) -> RegistrationToken:
    """
    Put an existing patient in the vitals queue and return the token.

    Raises:
        PatientNotFound: patient id does not resolve
        IdentifierMismatch: identifier is not one of the patient's identifiers
    """
    patient = get_patient(patient_id)
    if not _identifier_belongs_to(identifier_type, identifier, patient.id):
        raise IdentifierMismatch(identifier_type=identifier_type)

    token = RegistrationToken.objects.create(
        identifier_type=identifier_type,
        identifier=identifier,
        patient=patient,
    )
    log_domain_event(
        'registration.enqueued',
        entity_type='RegistrationToken',
        entity_id=str(token.id),
        entity_ids={'patient_id': str(patient.id)},
        identifier_type=identifier_type,
    )
    return token


def register_visitor(*, name: str, birthdate: date, sex: str, phone: str, email: str) -> RegistrationToken:
    """
    Create a visitor patient and queue them in one transaction.

    Raises:
        ValidationFailed: birthdate in the future or unknown sex
        ConflictError: a visitor with this phone already exists
    """
    if birthdate > date.today():
        raise ValidationFailed('Birthdate cannot be in the future')
    if sex not in SexChoices.values:
        raise ValidationFailed('Unknown sex', sex=sex)

    try:
        with transaction.atomic():
            patient = Patient.objects.create(
                name=name,
                type=PatientTypeChoices.VISITOR,
                birthdate=birthdate,
                sex=sex,
            )
            Visitor.objects.create(patient=patient, email=email, phone=phone)
            token = RegistrationToken.objects.create(
                identifier_type=IdentifierTypeChoices.PHONE,
                identifier=phone,
                patient=patient,
            )
    except IntegrityError:
        metrics.registration_requests_total.labels(endpoint='visitor', result='conflict').inc()
        raise ConflictError('A visitor with this phone number is already registered')

    metrics.registration_requests_total.labels(endpoint='visitor', result='accepted').inc()
    log_domain_event(
        'registration.visitor_created',
        entity_type='Patient',
        entity_id=str(patient.id),
        entity_ids={'token': str(token.id)},
    )
    return token


def registration_queue():
    """Unprocessed registration tokens, oldest first."""
    return RegistrationToken.objects.select_related('patient').order_by('id')
