"""
Clinical views: vitals desk and doctor consultation.
"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.permissions import IsDoctor, IsVitalsStaff
from apps.authz.principal import principal_from_request
from apps.authz.serializers import StaffSummarySerializer
from apps.clinical.models import Disease, Medicine
from apps.clinical.serializers import (
    AutosaveSerializer,
    CaseCreatedSerializer,
    CreateCaseSerializer,
    DiseaseSerializer,
    FinalizeCaseSerializer,
    MedicineSerializer,
)
from apps.clinical.services import (
    autosave_consultation,
    available_doctors,
    create_case,
    doctor_queue,
    finalize_case,
    get_consultation,
)
from apps.core.errors import DomainError, domain_error_response
from apps.patients.serializers import RegistrationQueueSerializer
from apps.patients.services import registration_queue


# ============================================================================
# Vitals desk
# ============================================================================

class UnprocessedQueueView(APIView):
    """GET /api/v1/vitals/unprocessed - registration tokens awaiting vitals."""
    permission_classes = [IsVitalsStaff]

    def get(self, request):
        return Response(RegistrationQueueSerializer(registration_queue(), many=True).data)


class AvailableDoctorsView(APIView):
    """GET /api/v1/vitals/availableDoctors"""
    permission_classes = [IsVitalsStaff]

    def get(self, request):
        return Response(StaffSummarySerializer(available_doctors(), many=True).data)


class CreateCaseView(APIView):
    """POST /api/v1/vitals/createCase - open a case and consume the token."""
    permission_classes = [IsVitalsStaff]

    def post(self, request):
        serializer = CreateCaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            case = create_case(principal_from_request(request), **serializer.validated_data)
        except DomainError as e:
            return domain_error_response(e)
        return Response(CaseCreatedSerializer(case).data, status=status.HTTP_201_CREATED)


# ============================================================================
# Doctor
# ============================================================================

class DoctorQueueView(APIView):
    """GET /api/v1/doctor/queue - open cases assigned to the caller."""
    permission_classes = [IsDoctor]

    def get(self, request):
        return Response(doctor_queue(principal_from_request(request)))


class ConsultationView(APIView):
    """GET /api/v1/doctor/consultation/{case_id}"""
    permission_classes = [IsDoctor]

    def get(self, request, case_id):
        try:
            data = get_consultation(principal_from_request(request), case_id)
        except DomainError as e:
            return domain_error_response(e)
        return Response(data)


class MedicineListView(APIView):
    permission_classes = [IsDoctor]

    def get(self, request):
        return Response(MedicineSerializer(Medicine.objects.all(), many=True).data)


class DiseaseListView(APIView):
    permission_classes = [IsDoctor]

    def get(self, request):
        return Response(DiseaseSerializer(Disease.objects.all(), many=True).data)


class AutosaveView(APIView):
    """POST /api/v1/doctor/autosave - notes, diagnosis and prescriptions draft."""
    permission_classes = [IsDoctor]

    def post(self, request):
        serializer = AutosaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        case_id = data.pop('case_id')

        try:
            autosave_consultation(principal_from_request(request), case_id, **data)
        except DomainError as e:
            return domain_error_response(e)
        return Response({'message': 'Case data saved successfully'})


class FinalizeCaseView(APIView):
    """POST /api/v1/doctor/finalizeCase - one-way close with disposition."""
    permission_classes = [IsDoctor]

    def post(self, request):
        serializer = FinalizeCaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            case = finalize_case(
                principal_from_request(request),
                serializer.validated_data['case_id'],
                serializer.validated_data['finalized_state'],
                prescriptions=serializer.validated_data.get('prescriptions'),
            )
        except DomainError as e:
            return domain_error_response(e)
        return Response({
            'message': 'Case finalized successfully',
            'case_id': case.id,
            'finalized_state': case.finalized_state,
        })
