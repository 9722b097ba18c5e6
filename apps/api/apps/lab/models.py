"""
Lab models: lab_test (catalog), lab_report, lab_report_file
"""
from django.db import models

from apps.clinical.models import Case
from apps.files.models import StoredFile


class LabStatusChoices(models.TextChoices):
    """
    Report status.

    REQUESTED -> SAMPLE_COLLECTED is a manual toggle by lab staff.
    SAMPLE_COLLECTED <-> COMPLETE follows whether files are attached.
    Resetting to REQUESTED detaches every file.
    """
    REQUESTED = 'Requested', 'Requested'
    SAMPLE_COLLECTED = 'Sample Collected', 'Sample Collected'
    COMPLETE = 'Complete', 'Complete'


class LabTest(models.Model):
    """Catalog entry. Only active tests can be requested."""
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_test'
        ordering = ['name']

    def __str__(self):
        return self.name


class LabReport(models.Model):
    """
    One requested test on a case. Never deleted.
    """
    case = models.ForeignKey(Case, on_delete=models.PROTECT, related_name='lab_reports')
    test = models.ForeignKey(LabTest, on_delete=models.PROTECT, related_name='reports')
    status = models.CharField(
        max_length=20,
        choices=LabStatusChoices.choices,
        default=LabStatusChoices.REQUESTED
    )
    data = models.JSONField(null=True, blank=True)  # Result payload
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_report'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['case', 'test'], name='uniq_lab_report_case_test'),
        ]
        indexes = [
            models.Index(fields=['case'], name='idx_lab_report_case'),
            models.Index(fields=['status'], name='idx_lab_report_status'),
        ]

    def __str__(self):
        return f'Report {self.id} ({self.status})'


class ReportFile(models.Model):
    """Attachment of a stored file to a lab report."""
    report = models.ForeignKey(LabReport, on_delete=models.CASCADE, related_name='file_links')
    file = models.ForeignKey(StoredFile, on_delete=models.PROTECT, related_name='report_links')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'lab_report_file'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['report', 'file'], name='uniq_lab_report_file'),
        ]
