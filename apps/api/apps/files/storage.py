"""
MinIO storage utilities for uploaded clinical files.
"""
import uuid
from datetime import timedelta

from django.conf import settings
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError


class StorageError(Exception):
    """Object storage call failed."""


def get_minio_client():
    """Get configured MinIO client instance."""
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_USE_SSL
    )


def generate_object_key(prefix: str, filename: str) -> str:
    """
    Generate unique object key for MinIO storage.

    Example: lab-reports/3f9a0c1b2d4e_cbc_result.pdf
    """
    unique_id = uuid.uuid4().hex[:12]
    safe_filename = "".join(c for c in filename if c.isalnum() or c in "._-")
    return f"{prefix}/{unique_id}_{safe_filename}"


def public_url(object_key: str) -> str:
    base = settings.MINIO_PUBLIC_URL.rstrip('/')
    return f"{base}/{settings.MINIO_FILES_BUCKET}/{object_key}"


def upload_object(object_key: str, stream, length: int, content_type: str) -> str:
    """
    Store ``length`` bytes from ``stream`` under ``object_key``.

    Returns:
        Public locator URL of the stored object

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    try:
        client.put_object(
            bucket_name=settings.MINIO_FILES_BUCKET,
            object_name=object_key,
            data=stream,
            length=length,
            content_type=content_type or 'application/octet-stream',
        )
    except (S3Error, HTTPError) as e:
        raise StorageError(f"Failed to upload object to MinIO: {e}") from e
    return public_url(object_key)


def delete_object(object_key: str) -> None:
    """
    Delete an object from MinIO storage (hard delete).

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    try:
        client.remove_object(bucket_name=settings.MINIO_FILES_BUCKET, object_name=object_key)
    except (S3Error, HTTPError) as e:
        raise StorageError(f"Failed to delete object from MinIO: {e}") from e


def generate_presigned_get_url(object_key: str, expires: timedelta = None) -> str:
    """
    Generate presigned GET URL for downloading a file.

    Raises:
        StorageError: If MinIO operation fails
    """
    if expires is None:
        expires = timedelta(minutes=settings.MINIO_PRESIGN_EXPIRY_MINUTES)
    client = get_minio_client()
    try:
        return client.presigned_get_object(
            bucket_name=settings.MINIO_FILES_BUCKET,
            object_name=object_key,
            expires=expires
        )
    except (S3Error, HTTPError) as e:
        raise StorageError(f"Failed to generate presigned GET URL: {e}") from e
