"""
Patient history disclosure models: otp_record, otp_override_log
"""
from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.clinical.models import Case
from apps.patients.models import Patient


class AppendOnlyError(RuntimeError):
    """Raised on any attempt to change or remove an audit row."""


class OtpRecord(models.Model):
    """
    The live code for one (doctor, patient) pair.

    Re-issuing replaces the code in place; a successful verification
    deletes the row.
    """
    doctor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='otp_records')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='otp_records')
    otp = models.PositiveIntegerField()
    issued_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'otp_record'
        constraints = [
            models.UniqueConstraint(fields=['doctor', 'patient'], name='uniq_otp_doctor_patient'),
        ]

    def __str__(self):
        return f'OTP doctor={self.doctor_id} patient={self.patient_id}'

    def is_expired(self, ttl_seconds, now=None) -> bool:
        if ttl_seconds is None:
            return False
        now = now or timezone.now()
        return (now - self.issued_at).total_seconds() > ttl_seconds


class OtpOverrideLogQuerySet(models.QuerySet):

    def update(self, **kwargs):
        raise AppendOnlyError('Override logs cannot be updated')

    def delete(self):
        raise AppendOnlyError('Override logs cannot be deleted')


class OtpOverrideLog(models.Model):
    """
    Audit row for an emergency history access without OTP.

    Rows are written once and never changed or deleted.
    """
    doctor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='otp_overrides')
    case = models.ForeignKey(Case, on_delete=models.PROTECT, related_name='otp_overrides')
    reason = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = OtpOverrideLogQuerySet.as_manager()

    class Meta:
        db_table = 'otp_override_log'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f'Override by {self.doctor_id} on case {self.case_id}'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError('Override logs cannot be updated')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError('Override logs cannot be deleted')
