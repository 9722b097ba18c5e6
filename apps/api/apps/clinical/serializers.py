"""
Clinical serializers: boundary validation for vitals intake and consultation.
"""
from rest_framework import serializers

from apps.clinical.models import Case, Disease, FinalizedStateChoices, Medicine


class VitalsSerializer(serializers.Serializer):
    weight = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    temperature = serializers.FloatField(min_value=0, required=False, allow_null=True)
    heart_rate = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    respiratory_rate = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    blood_pressure_systolic = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    blood_pressure_diastolic = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    blood_sugar = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    spo2 = serializers.IntegerField(min_value=1, max_value=100, required=False, allow_null=True)


class CreateCaseSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    token = serializers.IntegerField(min_value=1)
    doctor_id = serializers.IntegerField(min_value=1)
    vitals = VitalsSerializer()


class CaseCreatedSerializer(serializers.ModelSerializer):
    class Meta:
        model = Case
        fields = ['id', 'token', 'patient', 'associated_users', 'created_at'] + list(Case.VITAL_FIELDS)
        read_only_fields = fields


class PrescriptionInputSerializer(serializers.Serializer):
    """
    One prescription line. ``category_data`` is checked against the
    medicine's category by the service layer.
    """
    medicine_id = serializers.IntegerField(min_value=1)
    dosage = serializers.CharField(max_length=255)
    frequency = serializers.CharField(max_length=255)
    duration = serializers.CharField(max_length=255)
    duration_unit = serializers.CharField(max_length=255)
    category_data = serializers.DictField()
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class AutosaveSerializer(serializers.Serializer):
    case_id = serializers.IntegerField(min_value=1)
    consultation_notes = serializers.CharField(required=False, allow_blank=True)
    diagnosis = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    prescriptions = PrescriptionInputSerializer(many=True, required=False)


class FinalizeCaseSerializer(serializers.Serializer):
    case_id = serializers.IntegerField(min_value=1)
    finalized_state = serializers.ChoiceField(choices=FinalizedStateChoices.choices)
    prescriptions = PrescriptionInputSerializer(many=True, required=False)


class MedicineSerializer(serializers.ModelSerializer):
    class Meta:
        model = Medicine
        fields = ['id', 'drug', 'company', 'brand', 'strength', 'type', 'category', 'price']
        read_only_fields = fields


class DiseaseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Disease
        fields = ['id', 'name', 'icd']
        read_only_fields = fields
