from django.contrib import admin

from .models import StoredFile


@admin.register(StoredFile)
class StoredFileAdmin(admin.ModelAdmin):
    list_display = ['id', 'filename', 'content_type', 'size_bytes', 'uploaded_by', 'created_at']
    search_fields = ['filename', 'object_key']
    readonly_fields = ['object_key', 'url', 'allowed', 'created_at']
