"""
Clinical models: case, disease, medicine, prescription
"""
from django.db import connection, models

from apps.patients.models import Patient


# ============================================================================
# Enums
# ============================================================================

class FinalizedStateChoices(models.TextChoices):
    """Disposition a case is closed with. Set once, never changed."""
    OPD = 'opd', 'OPD'
    ADMITTED = 'admitted', 'Admitted'
    REFERRED = 'referred', 'Referred'


class MedicineCategoryChoices(models.TextChoices):
    CAPSULE_TABLET = 'Capsule/Tablet', 'Capsule/Tablet'
    EXTERNAL_APPLICATION = 'External Application', 'External Application'
    INJECTION = 'Injection', 'Injection'
    LIQUID_SYRUP = 'Liquids/Syrups', 'Liquids/Syrups'


# ============================================================================
# Catalogs
# ============================================================================

class Disease(models.Model):
    name = models.CharField(max_length=1023)
    icd = models.CharField(max_length=255, unique=True)

    class Meta:
        db_table = 'disease'
        ordering = ['name']

    def __str__(self):
        return f'{self.icd} {self.name}'


class Medicine(models.Model):
    drug = models.CharField(max_length=1023)
    company = models.CharField(max_length=1023)
    brand = models.CharField(max_length=1023)
    strength = models.CharField(max_length=255)
    type = models.CharField(max_length=255)
    category = models.CharField(max_length=50, choices=MedicineCategoryChoices.choices)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = 'medicine'
        ordering = ['brand']

    def __str__(self):
        return f'{self.brand} ({self.drug} {self.strength})'


# ============================================================================
# Case
# ============================================================================

class CaseQuerySet(models.QuerySet):

    def associated_with(self, user_id):
        """
        Cases whose ``associated_users`` contains ``user_id``.

        Backends without JSON containment (SQLite) are filtered in Python
        and re-wrapped as an id filter so the result stays a queryset.
        """
        if connection.features.supports_json_field_contains:
            return self.filter(associated_users__contains=[user_id])
        ids = [
            pk for pk, users in self.values_list('id', 'associated_users')
            if user_id in (users or [])
        ]
        return self.filter(id__in=ids)

    def open(self):
        return self.filter(finalized_state__isnull=True)


class Case(models.Model):
    """
    One clinical encounter.

    ``associated_users`` is ordered; the first entry is the primary
    (requesting) doctor. ``finalized_state`` moves from NULL to one of
    FinalizedStateChoices exactly once.
    """
    token = models.PositiveIntegerField(unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='cases')

    # Vitals
    weight = models.PositiveIntegerField(null=True, blank=True)
    temperature = models.FloatField(null=True, blank=True)
    heart_rate = models.PositiveIntegerField(null=True, blank=True)
    respiratory_rate = models.PositiveIntegerField(null=True, blank=True)
    blood_pressure_systolic = models.PositiveIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveIntegerField(null=True, blank=True)
    blood_sugar = models.PositiveIntegerField(null=True, blank=True)
    spo2 = models.PositiveIntegerField(null=True, blank=True)

    consultation_notes = models.TextField(blank=True, default='')
    diagnosis = models.JSONField(default=list, blank=True)  # Disease ids
    finalized_state = models.CharField(
        max_length=20,
        choices=FinalizedStateChoices.choices,
        null=True,
        blank=True
    )
    associated_users = models.JSONField(default=list, blank=True)  # User ids, primary first

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CaseQuerySet.as_manager()

    VITAL_FIELDS = (
        'weight',
        'temperature',
        'heart_rate',
        'respiratory_rate',
        'blood_pressure_systolic',
        'blood_pressure_diastolic',
        'blood_sugar',
        'spo2',
    )

    class Meta:
        db_table = 'case'
        ordering = ['id']
        indexes = [
            models.Index(fields=['patient'], name='idx_case_patient'),
            models.Index(fields=['finalized_state'], name='idx_case_finalized'),
        ]

    def __str__(self):
        return f'Case {self.id} (token {self.token})'

    @property
    def primary_doctor_id(self):
        return self.associated_users[0] if self.associated_users else None

    @property
    def is_finalized(self):
        return self.finalized_state is not None

    def is_associated(self, user_id) -> bool:
        return user_id in (self.associated_users or [])

    def vitals(self) -> dict:
        return {name: getattr(self, name) for name in self.VITAL_FIELDS}


class Prescription(models.Model):
    """
    One medicine line on a case. ``category_data`` holds the
    category-specific instructions (see apps.clinical.prescriptions).
    """
    case = models.ForeignKey(Case, on_delete=models.CASCADE, related_name='prescriptions')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='prescriptions')
    dosage = models.CharField(max_length=255)
    frequency = models.CharField(max_length=255)
    duration = models.CharField(max_length=255)
    duration_unit = models.CharField(max_length=255)
    category_data = models.JSONField()
    comment = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'case_prescription'
        ordering = ['id']
