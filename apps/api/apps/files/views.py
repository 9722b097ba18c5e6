"""
File views: upload, download link, delete.
"""
from rest_framework import status
from rest_framework.parsers import MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.permissions import CanReadFiles
from apps.authz.principal import principal_from_request
from apps.core.errors import DomainError, domain_error_response
from apps.files.storage import StorageError

from .serializers import FileUploadSerializer, StoredFileSerializer
from .services import delete_file, file_download, upload_file


def storage_unavailable(e: StorageError) -> Response:
    return Response(
        {'error': 'Object storage unavailable', 'details': {'reason': str(e)}},
        status=status.HTTP_503_SERVICE_UNAVAILABLE
    )


class FileUploadView(APIView):
    """POST /api/v1/files/upload - multipart ``file``."""
    permission_classes = [CanReadFiles]
    parser_classes = [MultiPartParser]

    def post(self, request):
        serializer = FileUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            stored = upload_file(principal_from_request(request), serializer.validated_data['file'])
        except DomainError as e:
            return domain_error_response(e)
        except StorageError as e:
            return storage_unavailable(e)
        return Response(StoredFileSerializer(stored).data, status=status.HTTP_201_CREATED)


class FileDetailView(APIView):
    """
    GET /api/v1/files/{id} - presigned download URL (``allowed`` users only)
    DELETE /api/v1/files/{id} - uploader removes an unattached file
    """
    permission_classes = [CanReadFiles]

    def get(self, request, file_id):
        try:
            data = file_download(principal_from_request(request), file_id)
        except DomainError as e:
            return domain_error_response(e)
        except StorageError as e:
            return storage_unavailable(e)
        return Response(data)

    def delete(self, request, file_id):
        try:
            delete_file(principal_from_request(request), file_id)
        except DomainError as e:
            return domain_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
