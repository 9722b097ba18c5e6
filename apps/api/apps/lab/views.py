"""
Lab views: test requests from doctors, worklist and updates for lab staff.
"""
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.permissions import IsDoctor, IsLabStaff
from apps.authz.principal import principal_from_request
from apps.core.errors import DomainError, domain_error_response
from apps.files.storage import StorageError
from apps.files.views import storage_unavailable
from apps.lab.models import LabTest
from apps.lab.serializers import (
    LabTestSerializer,
    RequestTestsSerializer,
    SubmitResultsSerializer,
    UpdateTestFilesSerializer,
)
from apps.lab.services import (
    case_lab_details,
    pending_reports,
    request_tests,
    serialize_report,
    submit_results,
    update_test_files,
)


class LabTestCatalogView(APIView):
    """GET /api/v1/doctor/tests - active tests a doctor can request."""
    permission_classes = [IsDoctor]

    def get(self, request):
        return Response(LabTestSerializer(LabTest.objects.filter(is_active=True), many=True).data)


class RequestTestsView(APIView):
    """POST /api/v1/doctor/requestLabTests"""
    permission_classes = [IsDoctor]

    def post(self, request):
        serializer = RequestTestsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reports = request_tests(
                principal_from_request(request),
                serializer.validated_data['case_id'],
                serializer.validated_data['test_ids'],
            )
        except DomainError as e:
            return domain_error_response(e)
        return Response({'reports': [{'id': r.id, 'test_id': r.test_id, 'status': r.status} for r in reports]})


class PendingReportsView(APIView):
    """GET /api/v1/lab/pending - reports not yet complete, grouped by case."""
    permission_classes = [IsLabStaff]

    def get(self, request):
        return Response(pending_reports())


class CaseLabDetailsView(APIView):
    """GET /api/v1/lab/details/{case_id}"""
    permission_classes = [IsLabStaff]

    def get(self, request, case_id):
        try:
            data = case_lab_details(case_id)
        except DomainError as e:
            return domain_error_response(e)
        return Response(data)


class UpdateTestFilesView(APIView):
    """POST /api/v1/lab/update/{report_id} - multipart file diff."""
    permission_classes = [IsLabStaff]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, report_id):
        serializer = UpdateTestFilesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = update_test_files(
                principal_from_request(request),
                report_id,
                **serializer.validated_data
            )
        except DomainError as e:
            return domain_error_response(e)
        except StorageError as e:
            return storage_unavailable(e)
        return Response(serialize_report(report))


class SubmitResultsView(APIView):
    """POST /api/v1/lab/submit/{report_id}"""
    permission_classes = [IsLabStaff]

    def post(self, request, report_id):
        serializer = SubmitResultsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = submit_results(
                principal_from_request(request),
                report_id,
                serializer.validated_data['results_data'],
                serializer.validated_data.get('file_id'),
            )
        except DomainError as e:
            return domain_error_response(e)
        return Response(serialize_report(report))
