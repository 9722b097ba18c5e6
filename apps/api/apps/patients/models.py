"""
Patient models - identity records and the registration queue.

A Patient row holds demographics only. The patient type decides which
linked table (student, professor, dependent, visitor) carries the
identifier and contact details.
"""
from datetime import date

from django.db import models


class PatientTypeChoices(models.TextChoices):
    STUDENT = 'student', 'Student'
    PROFESSOR = 'professor', 'Professor'
    DEPENDENT = 'dependent', 'Dependent'
    VISITOR = 'visitor', 'Visitor'


class SexChoices(models.TextChoices):
    MALE = 'male', 'Male'
    FEMALE = 'female', 'Female'


class IdentifierTypeChoices(models.TextChoices):
    """How a patient identified themselves at the registration desk."""
    PSRN = 'psrn', 'PSRN'
    STUDENT_ID = 'student_id', 'Student ID'
    PHONE = 'phone', 'Phone'


class Patient(models.Model):
    """
    Identity record. Created at registration, never hard-deleted.
    """
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=PatientTypeChoices.choices)
    birthdate = models.DateField()
    sex = models.CharField(max_length=10, choices=SexChoices.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'patient'
        ordering = ['id']
        indexes = [
            models.Index(fields=['type'], name='idx_patient_type'),
        ]

    def __str__(self):
        return f'{self.name} ({self.type})'

    @property
    def age(self):
        today = date.today()
        had_birthday = (today.month, today.day) >= (self.birthdate.month, self.birthdate.day)
        return today.year - self.birthdate.year - (0 if had_birthday else 1)


class Student(models.Model):
    patient = models.OneToOneField(Patient, on_delete=models.PROTECT, related_name='student')
    student_id = models.CharField(max_length=50, unique=True)
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'patient_student'


class Professor(models.Model):
    patient = models.OneToOneField(Patient, on_delete=models.PROTECT, related_name='professor')
    psrn = models.CharField(max_length=50, unique=True)
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'patient_professor'


class Dependent(models.Model):
    """
    Family member of a professor. Has no contact details of its own;
    ``psrn`` points at the sponsoring professor.
    """
    patient = models.OneToOneField(Patient, on_delete=models.PROTECT, related_name='dependent')
    psrn = models.CharField(max_length=50, db_index=True)

    class Meta:
        db_table = 'patient_dependent'


class Visitor(models.Model):
    patient = models.OneToOneField(Patient, on_delete=models.PROTECT, related_name='visitor')
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=20, unique=True)

    class Meta:
        db_table = 'patient_visitor'


class RegistrationToken(models.Model):
    """
    Registration queue entry. Its id is the queue token handed to the
    patient; vitals intake consumes it when the case is opened.
    """
    identifier_type = models.CharField(max_length=20, choices=IdentifierTypeChoices.choices)
    identifier = models.CharField(max_length=100)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='registration_tokens')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'registration_queue'
        ordering = ['id']

    def __str__(self):
        return f'Token {self.id} -> patient {self.patient_id}'
