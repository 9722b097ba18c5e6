"""
Lab services: test requests, the lab worklist, file updates and results.

File updates touch object storage and the database. Storage is not
transactional, so uploads happen before the transaction, removed objects
are deleted only after commit, and fresh uploads are deleted again when
the transaction does not commit.
"""
import logging
from typing import List, Optional

from django.db import transaction

from apps.authz.models import User
from apps.authz.principal import Principal
from apps.clinical.services import CaseFinalized, CaseNotFound, get_associated_case
from apps.core.errors import NotFoundError, ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.files.models import StoredFile
from apps.files.services import (
    FileNotFound,
    discard_objects,
    put_upload,
    record_upload,
    validate_upload,
)
from apps.lab.models import LabReport, LabStatusChoices, LabTest, ReportFile
from apps.lab.transitions import plan_file_update
from apps.patients.services import patient_summary

logger = logging.getLogger(__name__)

UNKNOWN_DOCTOR = 'Unknown Doctor'


class InvalidTestIds(ValidationFailed):
    default_message = 'Some test IDs are invalid'


class ReportNotFound(NotFoundError):
    default_message = 'Lab report not found'


def _doctor_names(user_ids) -> dict:
    return dict(User.objects.filter(id__in=set(user_ids)).values_list('id', 'name'))


def _doctor_name(case, names: dict) -> str:
    return names.get(case.primary_doctor_id) or UNKNOWN_DOCTOR


# ============================================================================
# Doctor side
# ============================================================================

def request_tests(principal: Principal, case_id: int, test_ids: List[int]) -> List[LabReport]:
    """
    Request lab tests for a case. Already requested tests are left as they are.

    Raises:
        CaseNotFound: case missing or doctor not associated with it
        CaseFinalized: case already closed
        InvalidTestIds: unknown or inactive test ids (rejected wholesale)
    """
    wanted = list(dict.fromkeys(test_ids))
    with transaction.atomic():
        case = get_associated_case(principal, case_id, for_update=True)
        if case.is_finalized:
            raise CaseFinalized(case_id=case_id)

        active = set(LabTest.objects.filter(id__in=wanted, is_active=True).values_list('id', flat=True))
        invalid = [test_id for test_id in wanted if test_id not in active]
        if invalid:
            raise InvalidTestIds(invalid_test_ids=invalid)

        reports = []
        created_count = 0
        for test_id in wanted:
            report, created = LabReport.objects.get_or_create(
                case=case,
                test_id=test_id,
                defaults={'status': LabStatusChoices.REQUESTED},
            )
            created_count += int(created)
            reports.append(report)

    metrics.lab_tests_requested_total.inc(created_count)
    log_domain_event(
        'lab.tests_requested',
        entity_type='Case',
        entity_id=str(case.id),
        test_ids=wanted,
        created_count=created_count,
        requested_by=principal.user_id,
    )
    return reports


# ============================================================================
# Lab worklist
# ============================================================================

def pending_reports() -> List[dict]:
    """Reports not yet complete, grouped by case in case order."""
    reports = (
        LabReport.objects.exclude(status=LabStatusChoices.COMPLETE)
        .select_related('case__patient', 'test')
        .order_by('case_id', 'id')
    )
    grouped = {}
    for report in reports:
        grouped.setdefault(report.case_id, (report.case, []))[1].append(report)

    names = _doctor_names(case.primary_doctor_id for case, _ in grouped.values())
    return [
        {
            'case_id': case.id,
            'token': case.token,
            'patient_name': case.patient.name,
            'doctor_name': _doctor_name(case, names),
            'tests': [
                {'id': report.id, 'name': report.test.name, 'status': report.status}
                for report in case_reports
            ],
        }
        for case, case_reports in grouped.values()
    ]


def serialize_report(report: LabReport) -> dict:
    links = report.file_links.select_related('file').order_by('id')
    return {
        'id': report.id,
        'test_id': report.test_id,
        'name': report.test.name,
        'category': report.test.category,
        'status': report.status,
        'data': report.data,
        'files': [
            {'file_id': link.file_id, 'filename': link.file.filename}
            for link in links
        ],
        'updated_at': report.updated_at.isoformat(),
    }


def case_lab_details(case_id: int) -> dict:
    """
    Raises:
        CaseNotFound: no lab reports exist for the case
    """
    reports = list(
        LabReport.objects.filter(case_id=case_id)
        .select_related('case__patient', 'test')
        .order_by('id')
    )
    if not reports:
        raise CaseNotFound('No tests found for this case', case_id=case_id)

    case = reports[0].case
    names = _doctor_names([case.primary_doctor_id])
    return {
        'case_id': case.id,
        'token': case.token,
        'patient': patient_summary(case.patient),
        'doctor_name': _doctor_name(case, names),
        'tests': [serialize_report(report) for report in reports],
    }


# ============================================================================
# File updates and results
# ============================================================================

def _attached_file_ids(report: LabReport) -> set:
    return set(report.file_links.values_list('file_id', flat=True))


def _record_transition(report: LabReport, from_status: str, to_status: str, principal: Principal):
    if from_status == to_status:
        return
    metrics.lab_status_transitions_total.labels(from_status=from_status, to_status=to_status).inc()
    log_domain_event(
        'lab.report_transition',
        entity_type='LabReport',
        entity_id=str(report.id),
        entity_ids={'case_id': str(report.case_id)},
        from_status=from_status,
        to_status=to_status,
        changed_by=principal.user_id,
    )


@metrics.track_duration(metrics.lab_update_duration_seconds)
def update_test_files(
    principal: Principal,
    report_id: int,
    *,
    status: str,
    keep: Optional[List[int]] = None,
    remove: Optional[List[int]] = None,
    add: Optional[list] = None,
) -> LabReport:
    """
    Apply a file diff to a report and move it to the status the diff implies.

    New files are readable by the case's clinicians and the uploader.

    Raises:
        ReportNotFound: report id does not resolve
        InvalidFileSelection: keep/remove not attached, overlapping, or
            uploads sent with a reset to Requested
        ValidationFailed: an upload is rejected by type/size rules
        StorageError: object storage unavailable
    """
    keep = keep or []
    remove = remove or []
    add = add or []

    report = LabReport.objects.filter(pk=report_id).first()
    if report is None:
        raise ReportNotFound(report_id=report_id)

    # Reject bad input before anything reaches storage
    plan_file_update(_attached_file_ids(report), status, keep, remove, len(add))
    for uploaded_file in add:
        validate_upload(uploaded_file)

    uploaded = []
    committed = False
    try:
        for uploaded_file in add:
            uploaded.append(put_upload(uploaded_file, prefix=f'lab/{report.case_id}/{report.id}'))

        with transaction.atomic():
            report = LabReport.objects.select_for_update().select_related('case').get(pk=report_id)
            from_status = report.status
            plan = plan_file_update(_attached_file_ids(report), status, keep, remove, len(uploaded))

            removed_keys = []
            if plan.remove:
                ReportFile.objects.filter(report=report, file_id__in=plan.remove).delete()
                # Files still linked from another report stay in place
                orphaned = StoredFile.objects.filter(id__in=plan.remove).exclude(
                    id__in=ReportFile.objects.values('file_id')
                )
                removed_keys = list(orphaned.values_list('object_key', flat=True))
                orphaned.delete()

            allowed = list(report.case.associated_users)
            if principal.user_id not in allowed:
                allowed.append(principal.user_id)
            for obj in uploaded:
                stored = record_upload(obj, uploaded_by_id=principal.user_id, allowed=allowed)
                ReportFile.objects.create(report=report, file=stored)

            report.status = plan.status
            report.save(update_fields=['status', 'updated_at'])

            if removed_keys:
                transaction.on_commit(
                    lambda: discard_objects(removed_keys, reason='removed_after_commit'),
                    robust=True,
                )
        committed = True
    except Exception:
        if not committed:
            discard_objects([obj.object_key for obj in uploaded], reason='rollback')
        raise

    _record_transition(report, from_status, plan.status, principal)
    logger.info(
        'Lab report files updated',
        extra={
            'event': 'lab_files_updated',
            'report_id': report.id,
            'added': len(uploaded),
            'removed': len(plan.remove),
            'status': plan.status,
        }
    )
    return report


def submit_results(
    principal: Principal,
    report_id: int,
    results_data: dict,
    file_id: Optional[int] = None,
) -> LabReport:
    """
    Record result data, mark the report Complete and optionally attach a
    file the technician uploaded earlier. The file becomes readable by
    every clinician on the case.

    Raises:
        ReportNotFound: report id does not resolve
        FileNotFound: file missing or not readable by the technician
    """
    with transaction.atomic():
        report = LabReport.objects.select_for_update().select_related('case').filter(pk=report_id).first()
        if report is None:
            raise ReportNotFound(report_id=report_id)
        from_status = report.status

        if file_id is not None:
            stored = StoredFile.objects.select_for_update().filter(pk=file_id).first()
            if stored is None or not stored.is_allowed(principal.user_id):
                raise FileNotFound(file_id=file_id)
            stored.grant(report.case.associated_users)
            stored.save(update_fields=['allowed'])
            ReportFile.objects.get_or_create(report=report, file=stored)

        report.data = results_data
        report.status = LabStatusChoices.COMPLETE
        report.save(update_fields=['data', 'status', 'updated_at'])

    metrics.lab_results_submitted_total.labels(with_file=str(file_id is not None).lower()).inc()
    _record_transition(report, from_status, report.status, principal)
    log_domain_event(
        'lab.results_submitted',
        entity_type='LabReport',
        entity_id=str(report.id),
        entity_ids={'case_id': str(report.case_id)},
        file_id=file_id,
        submitted_by=principal.user_id,
    )
    return report
