"""
Patient history disclosure.

A doctor sees a patient's past cases only after the patient hands over a
one-time code sent to their registered e-mail, or after the doctor files
a written override that is kept forever.
"""
import secrets

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.authz.principal import Principal
from apps.clinical.models import Case
from apps.clinical.services import CaseNotFound, case_detail
from apps.core.errors import ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.history.models import OtpOverrideLog, OtpRecord
from apps.history.tasks import send_otp_email
from apps.patients.services import (
    ContactNotFound,
    get_patient,
    patient_summary,
    resolve_contact_email,
)
from apps.patients.utils import mask_email

OTP_MIN = 100000
OTP_MAX = 999999


class InvalidOtp(ValidationFailed):
    default_message = 'Invalid OTP'


def generate_otp() -> int:
    """Six digit code in [100000, 999999]."""
    return OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1)


def build_patient_history(patient) -> dict:
    cases = Case.objects.filter(patient=patient).select_related('patient').order_by('id')
    return {
        'patient': patient_summary(patient),
        'cases': [case_detail(case) for case in cases],
    }


def case_index(patient_id: int) -> dict:
    """
    Patient summary and the ids and states of their cases. Case contents
    are not included.

    Raises:
        PatientNotFound
    """
    patient = get_patient(patient_id)
    cases = Case.objects.filter(patient=patient).order_by('id').values(
        'id', 'token', 'finalized_state', 'created_at', 'updated_at'
    )
    return {'patient': patient_summary(patient), 'cases': list(cases)}


def issue_otp(principal: Principal, patient_id: int) -> str:
    """
    Issue a fresh code for (doctor, patient) and e-mail it to the patient.

    Any earlier code for the pair stops working. The e-mail is queued
    after the row commits.

    Returns:
        The masked address the code was sent to

    Raises:
        PatientNotFound: patient id does not resolve
        ContactNotFound: no e-mail reachable for the patient
    """
    patient = get_patient(patient_id)
    recipient = resolve_contact_email(patient)
    if not recipient:
        metrics.otp_issued_total.labels(result='no_contact').inc()
        raise ContactNotFound(patient_id=patient_id)

    otp = generate_otp()
    with transaction.atomic():
        OtpRecord.objects.update_or_create(
            doctor_id=principal.user_id,
            patient_id=patient.id,
            defaults={'otp': otp, 'issued_at': timezone.now()},
        )
        transaction.on_commit(lambda: send_otp_email.delay(recipient, otp), robust=True)

    metrics.otp_issued_total.labels(result='issued').inc()
    log_domain_event(
        'otp.issued',
        entity_type='Patient',
        entity_id=str(patient.id),
        entity_ids={'doctor_id': str(principal.user_id)},
    )
    return mask_email(recipient)


def verify_otp(principal: Principal, patient_id: int, otp: int) -> dict:
    """
    Check a submitted code and release the patient's case history.

    The code is consumed on success. Wrong, missing and expired codes all
    fail the same way.

    Raises:
        InvalidOtp
    """
    ttl = settings.OTP_TTL_SECONDS
    with transaction.atomic():
        record = (
            OtpRecord.objects.select_for_update()
            .filter(doctor_id=principal.user_id, patient_id=patient_id, otp=otp)
            .first()
        )
        if record is not None:
            expired = record.is_expired(ttl)
            record.delete()

    if record is None or expired:
        result = 'expired' if record is not None else 'rejected'
        metrics.otp_verifications_total.labels(result=result).inc()
        log_domain_event(
            'otp.rejected',
            entity_type='Patient',
            entity_id=str(patient_id),
            entity_ids={'doctor_id': str(principal.user_id)},
            result='rejected',
            expired=record is not None,
        )
        raise InvalidOtp()

    metrics.otp_verifications_total.labels(result='verified').inc()
    log_domain_event(
        'otp.verified',
        entity_type='Patient',
        entity_id=str(patient_id),
        entity_ids={'doctor_id': str(principal.user_id)},
    )
    return build_patient_history(get_patient(patient_id))


def override_verification(principal: Principal, patient_id: int, case_id: int, reason: str) -> dict:
    """
    Release the case history without a code. One audit row is written per
    call, with the reason stored verbatim.

    Raises:
        PatientNotFound: patient id does not resolve
        CaseNotFound: case missing or belongs to another patient
    """
    patient = get_patient(patient_id)
    with transaction.atomic():
        case = Case.objects.filter(pk=case_id, patient=patient).first()
        if case is None:
            raise CaseNotFound(case_id=case_id)
        entry = OtpOverrideLog.objects.create(doctor_id=principal.user_id, case=case, reason=reason)

    metrics.otp_overrides_total.inc()
    log_domain_event(
        'otp.override',
        entity_type='OtpOverrideLog',
        entity_id=str(entry.id),
        entity_ids={
            'doctor_id': str(principal.user_id),
            'patient_id': str(patient.id),
            'case_id': str(case.id),
        },
        result='warning',
        reason_length=len(reason),
    )
    return build_patient_history(patient)


def list_override_logs() -> list:
    """Override audit trail, newest first."""
    entries = OtpOverrideLog.objects.select_related('doctor', 'case__patient').order_by('-created_at', '-id')
    return [
        {
            'id': entry.id,
            'doctor_id': entry.doctor_id,
            'doctor_name': entry.doctor.name,
            'case_id': entry.case_id,
            'patient_id': entry.case.patient_id,
            'patient_name': entry.case.patient.name,
            'reason': entry.reason,
            'created_at': entry.created_at.isoformat(),
        }
        for entry in entries
    ]
