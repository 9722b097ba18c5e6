"""
File services - upload, access checks and best-effort cleanup.

Object storage is not transactional. Callers upload first, write rows
inside ``transaction.atomic`` and hand the object keys of anything that
did not make it into the database to ``discard_objects``.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List

from django.conf import settings
from django.db import transaction

from apps.authz.principal import Principal
from apps.core.errors import ConflictError, NotFoundError, ValidationFailed
from apps.core.observability import metrics
from apps.files.models import StoredFile
from apps.files.storage import (
    StorageError,
    delete_object,
    generate_object_key,
    generate_presigned_get_url,
    upload_object,
)

logger = logging.getLogger(__name__)


class FileNotFound(NotFoundError):
    default_message = 'File not found'


@dataclass(frozen=True)
class UploadedObject:
    """An object already written to storage but not yet recorded."""
    object_key: str
    url: str
    filename: str
    content_type: str
    size_bytes: int


def validate_upload(uploaded_file) -> None:
    """
    Raises:
        ValidationFailed: content type not allowed or file too large
    """
    content_type = getattr(uploaded_file, 'content_type', '') or ''
    if content_type not in settings.LAB_ALLOWED_UPLOAD_MIMES:
        raise ValidationFailed(
            'File type not allowed',
            filename=uploaded_file.name,
            content_type=content_type,
        )
    if uploaded_file.size > settings.LAB_MAX_UPLOAD_BYTES:
        raise ValidationFailed(
            'File too large',
            filename=uploaded_file.name,
            max_bytes=settings.LAB_MAX_UPLOAD_BYTES,
        )


def put_upload(uploaded_file, prefix: str) -> UploadedObject:
    """Write an uploaded file to object storage. No database access."""
    object_key = generate_object_key(prefix, uploaded_file.name)
    try:
        url = upload_object(
            object_key,
            uploaded_file,
            uploaded_file.size,
            getattr(uploaded_file, 'content_type', ''),
        )
    except StorageError:
        metrics.storage_uploads_total.labels(result='failure').inc()
        raise
    metrics.storage_uploads_total.labels(result='success').inc()
    return UploadedObject(
        object_key=object_key,
        url=url,
        filename=uploaded_file.name,
        content_type=getattr(uploaded_file, 'content_type', '') or '',
        size_bytes=uploaded_file.size,
    )


def record_upload(obj: UploadedObject, *, uploaded_by_id: int, allowed: List[int]) -> StoredFile:
    return StoredFile.objects.create(
        object_key=obj.object_key,
        filename=obj.filename,
        content_type=obj.content_type,
        size_bytes=obj.size_bytes,
        url=obj.url,
        allowed=list(allowed),
        uploaded_by_id=uploaded_by_id,
    )


def discard_objects(object_keys: Iterable[str], reason: str) -> List[str]:
    """
    Delete objects from storage, logging failures instead of raising.

    Returns:
        Object keys that could not be deleted
    """
    failed = []
    for object_key in object_keys:
        try:
            delete_object(object_key)
        except StorageError as e:
            failed.append(object_key)
            metrics.storage_cleanup_failures_total.labels(reason=reason).inc()
            logger.error(
                'Object storage cleanup failed',
                extra={
                    'event': 'storage_cleanup_failed',
                    'object_key': object_key,
                    'cleanup_reason': reason,
                    'error': str(e),
                }
            )
    return failed


def upload_file(principal: Principal, uploaded_file, prefix: str = 'uploads') -> StoredFile:
    """
    Store a standalone upload readable by the uploader only.

    Raises:
        ValidationFailed: file rejected by type/size rules
        StorageError: object storage unavailable
    """
    validate_upload(uploaded_file)
    obj = put_upload(uploaded_file, prefix)
    try:
        with transaction.atomic():
            stored = record_upload(obj, uploaded_by_id=principal.user_id, allowed=[principal.user_id])
    except Exception:
        discard_objects([obj.object_key], reason='rollback')
        raise
    logger.info(
        'File uploaded',
        extra={'event': 'file_uploaded', 'file_id': stored.id, 'size_bytes': stored.size_bytes}
    )
    return stored


def get_file_for_principal(principal: Principal, file_id: int) -> StoredFile:
    """
    Raises:
        FileNotFound: file missing or principal not in ``allowed``
    """
    stored = StoredFile.objects.filter(pk=file_id).first()
    if stored is None or not stored.is_allowed(principal.user_id):
        raise FileNotFound(file_id=file_id)
    return stored


def file_download(principal: Principal, file_id: int) -> dict:
    stored = get_file_for_principal(principal, file_id)
    return {
        'id': stored.id,
        'filename': stored.filename,
        'content_type': stored.content_type,
        'size_bytes': stored.size_bytes,
        'url': generate_presigned_get_url(stored.object_key),
    }


def delete_file(principal: Principal, file_id: int) -> None:
    """
    Delete a file the principal uploaded, unless a lab report uses it.

    Raises:
        FileNotFound: file missing or principal cannot see it
        ConflictError: file is attached to a lab report
    """
    with transaction.atomic():
        stored = get_file_for_principal(principal, file_id)
        if stored.uploaded_by_id != principal.user_id:
            raise FileNotFound(file_id=file_id)
        if stored.report_links.exists():
            raise ConflictError('File is attached to a lab report', file_id=file_id)
        object_key = stored.object_key
        stored.delete()
        transaction.on_commit(lambda: discard_objects([object_key], reason='removed_after_commit'))
