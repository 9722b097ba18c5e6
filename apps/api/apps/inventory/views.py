"""Inventory views with batch receiving and FEFO dispensing."""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authz.permissions import IsInventoryStaff
from apps.authz.principal import principal_from_request
from apps.core.errors import DomainError, domain_error_response

from .serializers import (
    AddBatchSerializer,
    AddMedicineSerializer,
    CriticalQuantitySerializer,
    QuantitySerializer,
)
from .services import (
    add_batch,
    add_medicine,
    delete_medicine,
    dispense_medicine,
    inventory_summary,
    restock_batch,
    serialize_medicine,
    update_critical_quantity,
)


class InventoryMedicineViewSet(viewsets.ViewSet):
    """
    /api/v1/inventory/medicines

    list, create, destroy plus:
    - POST {id}/batches: receive a lot
    - PATCH {id}/critical-quantity
    - POST {id}/dispense: FEFO allocation
    """
    permission_classes = [IsInventoryStaff]

    def list(self, request):
        return Response({'inventory': inventory_summary()})

    def create(self, request):
        serializer = AddMedicineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            medicine = add_medicine(**serializer.validated_data)
        except DomainError as e:
            return domain_error_response(e)
        return Response(serialize_medicine(medicine, batches=[]), status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        try:
            delete_medicine(int(pk))
        except DomainError as e:
            return domain_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def batches(self, request, pk=None):
        serializer = AddBatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            batch = add_batch(int(pk), **serializer.validated_data)
        except DomainError as e:
            return domain_error_response(e)
        return Response(serialize_medicine(batch.medicine), status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['patch'], url_path='critical-quantity')
    def critical_quantity(self, request, pk=None):
        serializer = CriticalQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            medicine = update_critical_quantity(int(pk), serializer.validated_data['critical_quantity'])
        except DomainError as e:
            return domain_error_response(e)
        return Response(serialize_medicine(medicine))

    @action(detail=True, methods=['post'], url_path='dispense')
    def dispense(self, request, pk=None):
        serializer = QuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            allocations = dispense_medicine(principal_from_request(request), int(pk), serializer.validated_data['quantity'])
        except DomainError as e:
            return domain_error_response(e)
        return Response({'allocations': allocations})


class BatchViewSet(viewsets.ViewSet):
    """/api/v1/inventory/batches/{id}/restock"""
    permission_classes = [IsInventoryStaff]

    @action(detail=True, methods=['post'])
    def restock(self, request, pk=None):
        serializer = QuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            batch = restock_batch(int(pk), serializer.validated_data['quantity'])
        except DomainError as e:
            return domain_error_response(e)
        return Response(serialize_medicine(batch.medicine))
