"""
Clinical services: vitals intake, doctor consultation and case finalization.

Every operation takes the acting Principal explicitly. A case is only
visible to users listed in its ``associated_users``; anyone else gets
CaseNotFound, the same as for a missing id.
"""
import logging
from typing import Iterable, List, Optional

from django.db import transaction

from apps.authz.models import PermissionChoices, User
from apps.authz.principal import Principal
from apps.clinical.models import Case, Disease, Medicine, Prescription
from apps.clinical.prescriptions import (
    InvalidCategoryData,
    instructions,
    parse_category_data,
    to_json,
)
from apps.core.errors import ConflictError, NotFoundError, ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.patients.models import Dependent, Professor, RegistrationToken, Student, Visitor
from apps.patients.services import patient_summary

logger = logging.getLogger(__name__)


class CaseNotFound(NotFoundError):
    default_message = 'Case not found'


class CaseAlreadyFinalized(ConflictError):
    default_message = 'Case is already finalized'


class CaseFinalized(ConflictError):
    default_message = 'Case is finalized. Access via OTP required.'


class RegistrationNotFound(NotFoundError):
    default_message = 'Registration token not found'


class DoctorNotFound(NotFoundError):
    default_message = 'Doctor not found'


class InvalidDiseaseIds(ValidationFailed):
    default_message = 'Some disease IDs are invalid'


class InvalidMedicineIds(ValidationFailed):
    default_message = 'Some medicine IDs are invalid'


# ============================================================================
# Lookups
# ============================================================================

def get_associated_case(principal: Principal, case_id: int, *, for_update: bool = False) -> Case:
    """
    Raises:
        CaseNotFound: case missing or principal not associated with it
    """
    queryset = Case.objects.select_related('patient')
    if for_update:
        queryset = queryset.select_for_update()
    case = queryset.filter(pk=case_id).first()
    if case is None or not case.is_associated(principal.user_id):
        raise CaseNotFound(case_id=case_id)
    return case


def patient_identifier(patient) -> Optional[str]:
    """Desk identifier (PSRN, student id or phone) for a patient."""
    for model, field in (
        (Professor, 'psrn'),
        (Student, 'student_id'),
        (Visitor, 'phone'),
        (Dependent, 'psrn'),
    ):
        value = model.objects.filter(patient_id=patient.id).values_list(field, flat=True).first()
        if value:
            return value
    return None


def available_doctors() -> List[User]:
    users = User.objects.select_related('role').filter(is_active=True, role__isnull=False).order_by('name')
    return [user for user in users if user.role.grants(PermissionChoices.DOCTOR)]


# ============================================================================
# Vitals intake
# ============================================================================

def create_case(principal: Principal, *, patient_id: int, token: int, doctor_id: int, vitals: dict) -> Case:
    """
    Open a case from a registration token and assign the primary doctor.

    The token is consumed in the same transaction.

    Raises:
        RegistrationNotFound: token missing or issued for another patient
        DoctorNotFound: doctor_id is not an active user with doctor permission
    """
    with transaction.atomic():
        registration = (
            RegistrationToken.objects.select_for_update()
            .filter(pk=token, patient_id=patient_id)
            .first()
        )
        if registration is None:
            raise RegistrationNotFound(token=token, patient_id=patient_id)

        if doctor_id not in {user.id for user in available_doctors()}:
            raise DoctorNotFound(doctor_id=doctor_id)

        case = Case.objects.create(
            token=registration.id,
            patient_id=patient_id,
            associated_users=[doctor_id],
            **{name: vitals.get(name) for name in Case.VITAL_FIELDS},
        )
        registration.delete()

    metrics.cases_created_total.inc()
    log_domain_event(
        'case.created',
        entity_type='Case',
        entity_id=str(case.id),
        entity_ids={'patient_id': str(patient_id), 'doctor_id': str(doctor_id)},
        token=case.token,
        recorded_by=principal.user_id,
    )
    return case


# ============================================================================
# Consultation
# ============================================================================

def doctor_queue(principal: Principal) -> List[dict]:
    """Open cases the doctor is associated with, oldest first."""
    cases = Case.objects.open().associated_with(principal.user_id).select_related('patient').order_by('id')
    return [
        {
            'case_id': case.id,
            'token': case.token,
            'patient_name': case.patient.name,
            'patient_age': case.patient.age,
            'patient_sex': case.patient.sex,
            'status': 'Waiting for Consultation',
        }
        for case in cases
    ]


def serialize_prescription(prescription: Prescription) -> dict:
    medicine = prescription.medicine
    category_data = parse_category_data(prescription.category_data)
    return {
        'id': prescription.id,
        'medicine': {
            'id': medicine.id,
            'drug': medicine.drug,
            'brand': medicine.brand,
            'company': medicine.company,
            'strength': medicine.strength,
            'type': medicine.type,
            'category': medicine.category,
        },
        'dosage': prescription.dosage,
        'frequency': prescription.frequency,
        'duration': prescription.duration,
        'duration_unit': prescription.duration_unit,
        'category_data': to_json(category_data),
        'instructions': instructions(category_data),
        'comment': prescription.comment,
    }


def case_detail(case: Case) -> dict:
    """Full case payload: patient, vitals, notes, diagnoses, prescriptions, tests."""
    diseases = Disease.objects.filter(id__in=case.diagnosis or []).order_by('id')
    prescriptions = case.prescriptions.select_related('medicine').order_by('id')
    tests = case.lab_reports.select_related('test').order_by('id')
    return {
        'id': case.id,
        'token': case.token,
        'patient': {**patient_summary(case.patient), 'identifier': patient_identifier(case.patient)},
        'vitals': case.vitals(),
        'consultation_notes': case.consultation_notes,
        'diagnosis': [{'id': d.id, 'name': d.name, 'icd': d.icd} for d in diseases],
        'prescriptions': [serialize_prescription(p) for p in prescriptions],
        'tests': [
            {
                'report_id': report.id,
                'test_id': report.test_id,
                'name': report.test.name,
                'category': report.test.category,
                'status': report.status,
            }
            for report in tests
        ],
        'finalized_state': case.finalized_state,
        'associated_users': list(case.associated_users),
        'created_at': case.created_at.isoformat(),
    }


def get_consultation(principal: Principal, case_id: int) -> dict:
    """
    Raises:
        CaseNotFound: case missing or not associated with the doctor
        CaseFinalized: closed cases are only reachable through patient history
    """
    case = get_associated_case(principal, case_id)
    if case.is_finalized:
        raise CaseFinalized(case_id=case_id)
    return case_detail(case)


def _validate_diagnosis(diagnosis: Iterable[int]) -> List[int]:
    wanted = list(dict.fromkeys(diagnosis))
    found = set(Disease.objects.filter(id__in=wanted).values_list('id', flat=True))
    invalid = [disease_id for disease_id in wanted if disease_id not in found]
    if invalid:
        raise InvalidDiseaseIds(invalid_disease_ids=invalid)
    return wanted


def replace_prescriptions(case: Case, prescriptions: List[dict]) -> List[Prescription]:
    """
    Replace every prescription on ``case``. Caller provides the transaction.

    Each entry carries ``category_data`` for its medicine's category.

    Raises:
        InvalidMedicineIds: unknown medicine ids (rejected wholesale)
        InvalidCategoryData: instructions missing, malformed, or for
            another category than the medicine's
    """
    medicine_ids = [entry['medicine_id'] for entry in prescriptions]
    medicines = Medicine.objects.in_bulk(set(medicine_ids))
    invalid = [medicine_id for medicine_id in dict.fromkeys(medicine_ids) if medicine_id not in medicines]
    if invalid:
        raise InvalidMedicineIds(invalid_medicine_ids=invalid)

    rows = []
    for index, entry in enumerate(prescriptions):
        medicine = medicines[entry['medicine_id']]
        category_data = parse_category_data(entry.get('category_data'))
        if category_data.category != medicine.category:
            raise InvalidCategoryData(
                'Instructions do not match the medicine category',
                index=index,
                medicine_category=medicine.category,
                given_category=str(category_data.category),
            )
        rows.append(Prescription(
            case=case,
            medicine=medicine,
            dosage=entry['dosage'],
            frequency=entry['frequency'],
            duration=entry['duration'],
            duration_unit=entry['duration_unit'],
            category_data=to_json(category_data),
            comment=entry.get('comment') or '',
        ))

    case.prescriptions.all().delete()
    return Prescription.objects.bulk_create(rows)


def autosave_consultation(
    principal: Principal,
    case_id: int,
    *,
    consultation_notes: Optional[str] = None,
    diagnosis: Optional[List[int]] = None,
    prescriptions: Optional[List[dict]] = None,
) -> Case:
    """
    Save work-in-progress consultation fields. Omitted fields are kept;
    an empty list clears diagnosis or prescriptions.

    Raises:
        CaseNotFound, CaseFinalized, InvalidDiseaseIds,
        InvalidMedicineIds, InvalidCategoryData
    """
    with transaction.atomic():
        case = get_associated_case(principal, case_id, for_update=True)
        if case.is_finalized:
            raise CaseFinalized(case_id=case_id)

        update_fields = ['updated_at']
        if consultation_notes is not None:
            case.consultation_notes = consultation_notes
            update_fields.append('consultation_notes')
        if diagnosis is not None:
            case.diagnosis = _validate_diagnosis(diagnosis)
            update_fields.append('diagnosis')
        case.save(update_fields=update_fields)

        if prescriptions is not None:
            replace_prescriptions(case, prescriptions)

    logger.debug(
        'Consultation autosaved',
        extra={'event': 'case_autosaved', 'case_id': case.id, 'fields': update_fields[1:]}
    )
    return case


def finalize_case(
    principal: Principal,
    case_id: int,
    state: str,
    *,
    prescriptions: Optional[List[dict]] = None,
) -> Case:
    """
    Close a case with its disposition, optionally saving the final
    prescriptions in the same transaction.

    The state write is a conditional UPDATE on ``finalized_state IS NULL``:
    of two concurrent calls exactly one updates a row.

    Raises:
        CaseNotFound: case missing or not associated with the doctor
        CaseAlreadyFinalized: case was closed before (or concurrently)
    """
    with transaction.atomic():
        updated = (
            Case.objects.associated_with(principal.user_id)
            .filter(pk=case_id, finalized_state__isnull=True)
            .update(finalized_state=state)
        )
        if updated == 0:
            # Distinguish a closed case from one the doctor cannot see
            get_associated_case(principal, case_id)
            metrics.case_finalizations_total.labels(state=state, result='conflict').inc()
            log_domain_event(
                'case.finalized',
                entity_type='Case',
                entity_id=str(case_id),
                result='conflict',
                state=state,
            )
            raise CaseAlreadyFinalized(case_id=case_id)

        case = Case.objects.select_related('patient').get(pk=case_id)
        if prescriptions is not None:
            replace_prescriptions(case, prescriptions)

    metrics.case_finalizations_total.labels(state=state, result='finalized').inc()
    log_domain_event(
        'case.finalized',
        entity_type='Case',
        entity_id=str(case.id),
        entity_ids={'patient_id': str(case.patient_id)},
        state=state,
        finalized_by=principal.user_id,
    )
    return case
