from django.contrib import admin

from .models import OtpOverrideLog


@admin.register(OtpOverrideLog)
class OtpOverrideLogAdmin(admin.ModelAdmin):
    list_display = ['id', 'doctor', 'case', 'created_at']
    readonly_fields = ['doctor', 'case', 'reason', 'created_at']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
