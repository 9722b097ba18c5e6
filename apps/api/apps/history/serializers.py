"""
Patient history serializers.
"""
from django.conf import settings
from rest_framework import serializers


class VerifyOtpSerializer(serializers.Serializer):
    otp = serializers.IntegerField(min_value=1)


class OverrideSerializer(serializers.Serializer):
    case_id = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(trim_whitespace=True)

    def validate_reason(self, value):
        minimum = settings.OTP_OVERRIDE_MIN_REASON_LENGTH
        if len(value) < minimum:
            raise serializers.ValidationError(f'Reason must be at least {minimum} characters')
        return value
