from django.contrib import admin

from .models import LabReport, LabTest, ReportFile


class ReportFileInline(admin.TabularInline):
    model = ReportFile
    extra = 0
    raw_id_fields = ['file']


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'is_active']
    list_filter = ['is_active', 'category']
    search_fields = ['name']


@admin.register(LabReport)
class LabReportAdmin(admin.ModelAdmin):
    list_display = ['id', 'case', 'test', 'status', 'updated_at']
    list_filter = ['status']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ReportFileInline]
