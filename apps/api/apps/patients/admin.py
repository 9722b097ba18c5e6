from django.contrib import admin

from .models import Patient, Student, Professor, Dependent, Visitor, RegistrationToken


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'type', 'sex', 'birthdate', 'created_at']
    list_filter = ['type', 'sex']
    search_fields = ['name']


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['student_id', 'patient']
    search_fields = ['student_id']


@admin.register(Professor)
class ProfessorAdmin(admin.ModelAdmin):
    list_display = ['psrn', 'patient']
    search_fields = ['psrn']


@admin.register(Dependent)
class DependentAdmin(admin.ModelAdmin):
    list_display = ['psrn', 'patient']
    search_fields = ['psrn']


@admin.register(Visitor)
class VisitorAdmin(admin.ModelAdmin):
    list_display = ['phone', 'patient']
    search_fields = ['phone']


@admin.register(RegistrationToken)
class RegistrationTokenAdmin(admin.ModelAdmin):
    list_display = ['id', 'identifier_type', 'patient', 'created_at']
    list_filter = ['identifier_type']
