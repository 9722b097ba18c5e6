"""
Lab serializers.
"""
from rest_framework import serializers

from apps.lab.models import LabStatusChoices, LabTest


class LabTestSerializer(serializers.ModelSerializer):
    class Meta:
        model = LabTest
        fields = ['id', 'name', 'category']
        read_only_fields = fields


class RequestTestsSerializer(serializers.Serializer):
    case_id = serializers.IntegerField(min_value=1)
    test_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class UpdateTestFilesSerializer(serializers.Serializer):
    """Multipart form: ``status``, repeated ``keep``/``remove`` ids and ``add`` files."""
    status = serializers.ChoiceField(choices=LabStatusChoices.choices)
    keep = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)
    remove = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)
    add = serializers.ListField(child=serializers.FileField(), required=False, default=list)


class SubmitResultsSerializer(serializers.Serializer):
    results_data = serializers.DictField()
    file_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
