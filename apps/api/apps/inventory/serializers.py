"""Inventory serializers."""
from rest_framework import serializers


class AddMedicineSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    critical_quantity = serializers.IntegerField(min_value=0, required=False, default=0)


class AddBatchSerializer(serializers.Serializer):
    batch_number = serializers.CharField(max_length=255)
    expiry_date = serializers.DateField()
    quantity = serializers.IntegerField(min_value=1)


class QuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class CriticalQuantitySerializer(serializers.Serializer):
    critical_quantity = serializers.IntegerField(min_value=0)
