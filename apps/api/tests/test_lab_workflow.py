"""
Lab workflow tests: requests, worklist, file updates and results.

Object storage is a MagicMock (see ``minio_client`` fixture).
"""
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from urllib3.exceptions import HTTPError

from apps.authz.principal import principal_from_user
from apps.clinical.services import CaseFinalized, CaseNotFound
from apps.core.errors import ValidationFailed
from apps.files.models import StoredFile
from apps.files.services import FileNotFound
from apps.files.storage import StorageError
from apps.lab.models import LabReport, LabStatusChoices, ReportFile
from apps.lab.services import (
    InvalidTestIds,
    ReportNotFound,
    case_lab_details,
    pending_reports,
    request_tests,
    submit_results,
    update_test_files,
)
from apps.lab.transitions import InvalidFileSelection


def pdf(name='cbc.pdf'):
    return SimpleUploadedFile(name, b'%PDF-1.4 result', content_type='application/pdf')


@pytest.fixture
def report(case, lab_tests):
    return LabReport.objects.create(case=case, test=lab_tests[0])


@pytest.fixture
def complete_report(report, lab_principal, minio_client):
    return update_test_files(lab_principal, report.id, status=LabStatusChoices.COMPLETE, add=[pdf()])


def attached_ids(report):
    return set(ReportFile.objects.filter(report=report).values_list('file_id', flat=True))


# ============================================================================
# Requests
# ============================================================================

@pytest.mark.django_db
class TestRequestTests:

    def test_creates_requested_reports(self, doctor_principal, case, lab_tests):
        reports = request_tests(doctor_principal, case.id, [t.id for t in lab_tests])

        assert [r.test_id for r in reports] == [t.id for t in lab_tests]
        assert all(r.status == LabStatusChoices.REQUESTED for r in reports)

    def test_repeat_request_keeps_existing_report(self, doctor_principal, case, lab_tests):
        first = request_tests(doctor_principal, case.id, [lab_tests[0].id])[0]
        LabReport.objects.filter(pk=first.pk).update(status=LabStatusChoices.SAMPLE_COLLECTED)

        again = request_tests(doctor_principal, case.id, [lab_tests[0].id, lab_tests[0].id])

        assert len(again) == 1
        assert again[0].pk == first.pk
        assert again[0].status == LabStatusChoices.SAMPLE_COLLECTED
        assert LabReport.objects.count() == 1

    def test_invalid_ids_rejected_wholesale(self, doctor_principal, case, lab_tests, inactive_lab_test):
        with pytest.raises(InvalidTestIds) as exc_info:
            request_tests(doctor_principal, case.id, [lab_tests[0].id, inactive_lab_test.id, 999999])

        assert exc_info.value.details['invalid_test_ids'] == [inactive_lab_test.id, 999999]
        assert not LabReport.objects.exists()

    def test_unassociated_doctor(self, other_doctor, case, lab_tests):
        with pytest.raises(CaseNotFound):
            request_tests(principal_from_user(other_doctor), case.id, [lab_tests[0].id])

    def test_finalized_case(self, doctor_principal, case, lab_tests):
        case.finalized_state = 'opd'
        case.save()

        with pytest.raises(CaseFinalized):
            request_tests(doctor_principal, case.id, [lab_tests[0].id])


# ============================================================================
# Worklist
# ============================================================================

@pytest.mark.django_db
class TestWorklist:

    def test_pending_grouped_by_case(self, case, lab_tests, make_case, visitor_patient, doctor):
        done = LabReport.objects.create(case=case, test=lab_tests[0], status=LabStatusChoices.COMPLETE)
        open_report = LabReport.objects.create(case=case, test=lab_tests[1])
        other_case = make_case(visitor_patient, [])
        other_report = LabReport.objects.create(case=other_case, test=lab_tests[0])

        pending = pending_reports()

        assert [group['case_id'] for group in pending] == [case.id, other_case.id]
        assert pending[0]['patient_name'] == 'Jane Doe'
        assert pending[0]['doctor_name'] == 'Dr. Mehta'
        assert [t['id'] for t in pending[0]['tests']] == [open_report.id]
        assert done.id not in [t['id'] for group in pending for t in group['tests']]
        assert pending[1]['doctor_name'] == 'Unknown Doctor'
        assert pending[1]['tests'][0]['id'] == other_report.id

    def test_details_lists_files(self, complete_report, case):
        details = case_lab_details(case.id)

        assert details['patient']['name'] == 'Jane Doe'
        assert details['doctor_name'] == 'Dr. Mehta'
        test = details['tests'][0]
        assert test['status'] == LabStatusChoices.COMPLETE
        assert test['files'][0]['filename'] == 'cbc.pdf'

    def test_details_without_reports(self, case):
        with pytest.raises(CaseNotFound):
            case_lab_details(case.id)


# ============================================================================
# File updates
# ============================================================================

@pytest.mark.django_db
class TestUpdateTestFiles:

    def test_toggle_sample_collected(self, report, lab_principal, minio_client):
        updated = update_test_files(lab_principal, report.id, status=LabStatusChoices.SAMPLE_COLLECTED)

        assert updated.status == LabStatusChoices.SAMPLE_COLLECTED
        minio_client.put_object.assert_not_called()

    def test_adding_file_completes_and_grants_clinicians(self, report, lab_principal, lab_user, doctor, minio_client):
        updated = update_test_files(
            lab_principal, report.id, status=LabStatusChoices.SAMPLE_COLLECTED, add=[pdf()]
        )

        assert updated.status == LabStatusChoices.COMPLETE
        stored = StoredFile.objects.get()
        assert stored.allowed == [doctor.id, lab_user.id]
        assert stored.uploaded_by_id == lab_user.id
        assert stored.object_key.startswith(f'lab/{report.case_id}/{report.id}/')
        assert attached_ids(report) == {stored.id}
        minio_client.put_object.assert_called_once()

    def test_removing_all_files_demotes_and_deletes_after_commit(
        self, complete_report, lab_principal, minio_client, django_capture_on_commit_callbacks
    ):
        stored = StoredFile.objects.get()

        with django_capture_on_commit_callbacks(execute=True):
            updated = update_test_files(
                lab_principal, complete_report.id, status=LabStatusChoices.COMPLETE, remove=[stored.id]
            )

        assert updated.status == LabStatusChoices.SAMPLE_COLLECTED
        assert not StoredFile.objects.exists()
        assert attached_ids(complete_report) == set()
        minio_client.remove_object.assert_called_once_with(
            bucket_name='test-medical-files', object_name=stored.object_key
        )

    def test_objects_not_deleted_before_commit(
        self, complete_report, lab_principal, minio_client, django_capture_on_commit_callbacks
    ):
        stored = StoredFile.objects.get()

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            update_test_files(lab_principal, complete_report.id, status=LabStatusChoices.COMPLETE, remove=[stored.id])

        assert len(callbacks) == 1
        minio_client.remove_object.assert_not_called()

    def test_reset_to_requested_detaches_everything(self, complete_report, lab_principal, minio_client):
        updated = update_test_files(lab_principal, complete_report.id, status=LabStatusChoices.REQUESTED)

        assert updated.status == LabStatusChoices.REQUESTED
        assert attached_ids(complete_report) == set()

    def test_removing_file_shared_with_another_report_keeps_it(
        self, complete_report, lab_principal, lab_tests, case, minio_client, django_capture_on_commit_callbacks
    ):
        shared = StoredFile.objects.get()
        other = LabReport.objects.create(case=case, test=lab_tests[1])
        submit_results(lab_principal, other.id, {'ldl': 96}, file_id=shared.id)

        with django_capture_on_commit_callbacks(execute=True):
            updated = update_test_files(
                lab_principal, complete_report.id, status=LabStatusChoices.COMPLETE, remove=[shared.id]
            )

        assert updated.status == LabStatusChoices.SAMPLE_COLLECTED
        assert attached_ids(complete_report) == set()
        assert attached_ids(other) == {shared.id}
        assert StoredFile.objects.filter(pk=shared.pk).exists()
        minio_client.remove_object.assert_not_called()

    def test_reset_keeps_file_shared_with_another_report(
        self, complete_report, lab_principal, lab_tests, case, minio_client
    ):
        shared = StoredFile.objects.get()
        other = LabReport.objects.create(case=case, test=lab_tests[1])
        submit_results(lab_principal, other.id, {'ldl': 96}, file_id=shared.id)

        updated = update_test_files(lab_principal, complete_report.id, status=LabStatusChoices.REQUESTED)

        assert updated.status == LabStatusChoices.REQUESTED
        assert attached_ids(other) == {shared.id}

    @pytest.mark.django_db(transaction=True)
    def test_failing_cleanup_after_commit_keeps_new_uploads(
        self, complete_report, lab_principal, minio_client, monkeypatch
    ):
        old = StoredFile.objects.get()
        calls = []

        def flaky_discard(keys, reason):
            calls.append(reason)
            if reason == 'removed_after_commit':
                raise RuntimeError('cleanup crashed')
            return []
        monkeypatch.setattr('apps.lab.services.discard_objects', flaky_discard)

        updated = update_test_files(
            lab_principal, complete_report.id, status=LabStatusChoices.COMPLETE,
            remove=[old.id], add=[pdf('repeat.pdf')]
        )

        assert updated.status == LabStatusChoices.COMPLETE
        assert calls == ['removed_after_commit']
        new = StoredFile.objects.get()
        assert new.filename == 'repeat.pdf'
        assert attached_ids(complete_report) == {new.id}

    def test_reset_with_upload_rejected_before_storage(self, report, lab_principal, minio_client):
        with pytest.raises(InvalidFileSelection):
            update_test_files(lab_principal, report.id, status=LabStatusChoices.REQUESTED, add=[pdf()])

        minio_client.put_object.assert_not_called()
        assert LabReport.objects.get(pk=report.pk).status == LabStatusChoices.REQUESTED

    def test_keep_of_foreign_file_rejected(self, complete_report, lab_principal, lab_tests, case, minio_client):
        other = LabReport.objects.create(case=case, test=lab_tests[1])
        update_test_files(lab_principal, other.id, status=LabStatusChoices.COMPLETE, add=[pdf('lipid.pdf')])
        foreign = ReportFile.objects.get(report=other).file_id

        with pytest.raises(InvalidFileSelection):
            update_test_files(lab_principal, complete_report.id, status=LabStatusChoices.COMPLETE, keep=[foreign])

    def test_disallowed_type_rejected(self, report, lab_principal, minio_client):
        upload = SimpleUploadedFile('notes.txt', b'plain', content_type='text/plain')

        with pytest.raises(ValidationFailed):
            update_test_files(lab_principal, report.id, status=LabStatusChoices.COMPLETE, add=[upload])

        minio_client.put_object.assert_not_called()

    def test_database_failure_discards_uploads(self, report, lab_principal, minio_client, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError('database unavailable')
        monkeypatch.setattr('apps.lab.services.record_upload', fail)

        with pytest.raises(RuntimeError):
            update_test_files(lab_principal, report.id, status=LabStatusChoices.COMPLETE, add=[pdf()])

        uploaded_key = minio_client.put_object.call_args.kwargs['object_name']
        minio_client.remove_object.assert_called_once_with(
            bucket_name='test-medical-files', object_name=uploaded_key
        )
        assert not StoredFile.objects.exists()
        assert LabReport.objects.get(pk=report.pk).status == LabStatusChoices.REQUESTED

    def test_partial_upload_failure_discards_earlier_uploads(self, report, lab_principal, minio_client):
        minio_client.put_object.side_effect = [None, HTTPError('connection reset')]

        with pytest.raises(StorageError):
            update_test_files(
                lab_principal, report.id, status=LabStatusChoices.COMPLETE, add=[pdf('a.pdf'), pdf('b.pdf')]
            )

        first_key = minio_client.put_object.call_args_list[0].kwargs['object_name']
        minio_client.remove_object.assert_called_once_with(
            bucket_name='test-medical-files', object_name=first_key
        )
        assert not StoredFile.objects.exists()

    def test_cleanup_failure_does_not_fail_update(
        self, complete_report, lab_principal, minio_client, django_capture_on_commit_callbacks
    ):
        minio_client.remove_object.side_effect = HTTPError('storage down')
        stored = StoredFile.objects.get()

        with django_capture_on_commit_callbacks(execute=True):
            updated = update_test_files(
                lab_principal, complete_report.id, status=LabStatusChoices.COMPLETE, remove=[stored.id]
            )

        assert updated.status == LabStatusChoices.SAMPLE_COLLECTED

    def test_unknown_report(self, lab_principal, minio_client):
        with pytest.raises(ReportNotFound):
            update_test_files(lab_principal, 999999, status=LabStatusChoices.COMPLETE)


# ============================================================================
# Results
# ============================================================================

@pytest.mark.django_db
class TestSubmitResults:

    @pytest.fixture
    def lab_file(self, lab_user):
        return StoredFile.objects.create(
            object_key='uploads/abc_cbc.pdf',
            filename='cbc.pdf',
            content_type='application/pdf',
            size_bytes=10,
            url='http://localhost:9000/test-medical-files/uploads/abc_cbc.pdf',
            allowed=[lab_user.id],
            uploaded_by=lab_user,
        )

    def test_marks_complete_with_data(self, report, lab_principal):
        updated = submit_results(lab_principal, report.id, {'hemoglobin': '13.5 g/dL'})

        assert updated.status == LabStatusChoices.COMPLETE
        assert LabReport.objects.get(pk=report.pk).data == {'hemoglobin': '13.5 g/dL'}

    def test_file_linked_and_visible_to_clinicians(self, report, lab_principal, lab_user, doctor, lab_file):
        submit_results(lab_principal, report.id, {'hemoglobin': '13.5 g/dL'}, file_id=lab_file.id)

        lab_file.refresh_from_db()
        assert lab_file.allowed == [lab_user.id, doctor.id]
        assert attached_ids(report) == {lab_file.id}

    def test_file_not_readable_by_technician(self, report, lab_principal, lab_file):
        lab_file.allowed = []
        lab_file.save()

        with pytest.raises(FileNotFound):
            submit_results(lab_principal, report.id, {'x': 1}, file_id=lab_file.id)
        assert LabReport.objects.get(pk=report.pk).status == LabStatusChoices.REQUESTED

    def test_unknown_report(self, lab_principal):
        with pytest.raises(ReportNotFound):
            submit_results(lab_principal, 999999, {'x': 1})


# ============================================================================
# HTTP surface
# ============================================================================

@pytest.mark.django_db
class TestLabAPI:

    def test_request_lab_tests(self, doctor_client, case, lab_tests):
        response = doctor_client.post(
            '/api/v1/doctor/requestLabTests',
            {'case_id': case.id, 'test_ids': [lab_tests[0].id]},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['reports'][0]['status'] == 'Requested'

    def test_request_lab_tests_invalid_ids(self, doctor_client, case):
        response = doctor_client.post(
            '/api/v1/doctor/requestLabTests',
            {'case_id': case.id, 'test_ids': [424242]},
            format='json'
        )

        assert response.status_code == 400
        assert response.data['details']['invalid_test_ids'] == [424242]

    def test_request_lab_tests_unknown_case(self, doctor_client, lab_tests):
        response = doctor_client.post(
            '/api/v1/doctor/requestLabTests',
            {'case_id': 424242, 'test_ids': [lab_tests[0].id]},
            format='json'
        )

        assert response.status_code == 404

    def test_catalog_lists_active_tests(self, doctor_client, lab_tests, inactive_lab_test):
        response = doctor_client.get('/api/v1/doctor/tests')

        assert response.status_code == 200
        assert inactive_lab_test.id not in [t['id'] for t in response.data]

    def test_pending(self, lab_client, report):
        response = lab_client.get('/api/v1/lab/pending')

        assert response.status_code == 200
        assert response.data[0]['tests'][0]['id'] == report.id

    def test_update_multipart(self, lab_client, report, minio_client):
        response = lab_client.post(
            f'/api/v1/lab/update/{report.id}',
            {'status': 'Sample Collected', 'add': [pdf()]},
            format='multipart'
        )

        assert response.status_code == 200
        assert response.data['status'] == 'Complete'
        assert response.data['files'][0]['filename'] == 'cbc.pdf'

    def test_update_storage_unavailable(self, lab_client, report, minio_client):
        minio_client.put_object.side_effect = HTTPError('connection refused')

        response = lab_client.post(
            f'/api/v1/lab/update/{report.id}',
            {'status': 'Complete', 'add': [pdf()]},
            format='multipart'
        )

        assert response.status_code == 503

    def test_submit(self, lab_client, report):
        response = lab_client.post(
            f'/api/v1/lab/submit/{report.id}',
            {'results_data': {'hemoglobin': '13.5 g/dL'}},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['status'] == 'Complete'

    def test_submit_unknown_report(self, lab_client):
        response = lab_client.post(
            '/api/v1/lab/submit/424242',
            {'results_data': {}},
            format='json'
        )

        assert response.status_code == 404

    def test_doctor_cannot_update(self, doctor_client, report):
        response = doctor_client.post(f'/api/v1/lab/update/{report.id}', {'status': 'Complete'})

        assert response.status_code == 403

    def test_lab_cannot_request(self, lab_client, case, lab_tests):
        response = lab_client.post(
            '/api/v1/doctor/requestLabTests',
            {'case_id': case.id, 'test_ids': [lab_tests[0].id]},
            format='json'
        )

        assert response.status_code == 403
