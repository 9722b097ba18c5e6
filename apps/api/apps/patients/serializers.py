"""
Registration serializers (public desk endpoints).
"""
from rest_framework import serializers

from .models import IdentifierTypeChoices, RegistrationToken, SexChoices


class ExistingLookupSerializer(serializers.Serializer):
    identifier_type = serializers.ChoiceField(choices=IdentifierTypeChoices.choices)
    identifier = serializers.CharField(min_length=1, max_length=100)


class VisitorRegistrationSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=1, max_length=255)
    birthdate = serializers.DateField()
    sex = serializers.ChoiceField(choices=SexChoices.choices)
    phone = serializers.CharField(min_length=1, max_length=20)
    email = serializers.EmailField()


class RegistrationSerializer(serializers.Serializer):
    identifier_type = serializers.ChoiceField(choices=IdentifierTypeChoices.choices)
    identifier = serializers.CharField(min_length=1, max_length=100)
    patient_id = serializers.IntegerField(min_value=1)


class RegistrationQueueSerializer(serializers.ModelSerializer):
    """Queue entry as shown to the vitals desk."""
    token = serializers.IntegerField(source='id', read_only=True)
    patient_id = serializers.IntegerField(read_only=True)
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    patient_type = serializers.CharField(source='patient.type', read_only=True)
    patient_age = serializers.IntegerField(source='patient.age', read_only=True)
    patient_sex = serializers.CharField(source='patient.sex', read_only=True)

    class Meta:
        model = RegistrationToken
        fields = [
            'token',
            'identifier_type',
            'patient_id',
            'patient_name',
            'patient_type',
            'patient_age',
            'patient_sex',
            'created_at',
        ]
        read_only_fields = fields
