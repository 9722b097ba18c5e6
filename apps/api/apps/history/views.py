"""
Patient history views: OTP issue/verify, override and the audit log.
"""
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from apps.authz.permissions import IsAdmin, IsDoctor
from apps.authz.principal import principal_from_request
from apps.core.errors import DomainError, domain_error_response
from apps.history.serializers import OverrideSerializer, VerifyOtpSerializer
from apps.history.services import (
    case_index,
    issue_otp,
    list_override_logs,
    override_verification,
    verify_otp,
)


class OtpIssueThrottle(UserRateThrottle):
    """Limits OTP e-mails per doctor."""
    scope = 'otp_issue'


class PatientHistoryView(APIView):
    """
    GET /api/v1/patientHistory/{patient_id} - patient and case index
    POST /api/v1/patientHistory/{patient_id} - {otp}; full case history
    """
    permission_classes = [IsDoctor]

    def get(self, request, patient_id):
        try:
            data = case_index(patient_id)
        except DomainError as e:
            return domain_error_response(e)
        return Response(data)

    def post(self, request, patient_id):
        serializer = VerifyOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            data = verify_otp(principal_from_request(request), patient_id, serializer.validated_data['otp'])
        except DomainError as e:
            return domain_error_response(e)
        return Response(data)


class SendOtpView(APIView):
    """POST /api/v1/patientHistory/{patient_id}/send-otp"""
    permission_classes = [IsDoctor]
    throttle_classes = [OtpIssueThrottle]

    def post(self, request, patient_id):
        try:
            masked = issue_otp(principal_from_request(request), patient_id)
        except DomainError as e:
            return domain_error_response(e)
        return Response({'message': 'OTP sent successfully', 'email': masked})


class OverrideView(APIView):
    """POST /api/v1/patientHistory/{patient_id}/override - {case_id, reason}"""
    permission_classes = [IsDoctor]

    def post(self, request, patient_id):
        serializer = OverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            data = override_verification(
                principal_from_request(request),
                patient_id,
                serializer.validated_data['case_id'],
                serializer.validated_data['reason'],
            )
        except DomainError as e:
            return domain_error_response(e)
        return Response(data)


class OverrideLogListView(APIView):
    """GET /api/v1/admin/otp-override-logs"""
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response(list_override_logs())
