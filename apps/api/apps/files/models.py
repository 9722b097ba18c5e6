"""
Stored file metadata. Bytes live in object storage under ``object_key``.
"""
from django.conf import settings
from django.db import models


class StoredFile(models.Model):
    """
    Uploaded file.

    ``allowed`` lists the user ids that may fetch the file. It starts with
    the uploader and is widened when lab results are released to the
    clinicians of a case.
    """
    object_key = models.CharField(max_length=500, unique=True)
    filename = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100, blank=True)
    size_bytes = models.PositiveBigIntegerField(default=0)
    url = models.URLField(max_length=1000)
    allowed = models.JSONField(default=list, blank=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='uploaded_files'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'stored_file'
        ordering = ['id']

    def __str__(self):
        return self.filename

    def is_allowed(self, user_id) -> bool:
        return user_id in (self.allowed or [])

    def grant(self, user_ids):
        """Add ``user_ids`` to ``allowed`` keeping order and uniqueness."""
        merged = list(self.allowed or [])
        for user_id in user_ids:
            if user_id not in merged:
                merged.append(user_id)
        self.allowed = merged
