from django.contrib import admin

from .models import Case, Disease, Medicine, Prescription


class PrescriptionInline(admin.TabularInline):
    model = Prescription
    extra = 0


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ['id', 'token', 'patient', 'finalized_state', 'created_at']
    list_filter = ['finalized_state']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [PrescriptionInline]


@admin.register(Disease)
class DiseaseAdmin(admin.ModelAdmin):
    list_display = ['icd', 'name']
    search_fields = ['icd', 'name']


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ['brand', 'drug', 'strength', 'category', 'price']
    list_filter = ['category']
    search_fields = ['brand', 'drug', 'company']
