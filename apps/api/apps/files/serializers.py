from rest_framework import serializers

from .models import StoredFile


class FileUploadSerializer(serializers.Serializer):
    file = serializers.FileField()


class StoredFileSerializer(serializers.ModelSerializer):
    class Meta:
        model = StoredFile
        fields = ['id', 'filename', 'content_type', 'size_bytes', 'url', 'created_at']
        read_only_fields = fields
