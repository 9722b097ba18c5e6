"""
Inventory services - stock summary, receiving and FEFO dispensing.
"""
from datetime import date
from typing import List, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from apps.authz.principal import Principal
from apps.core.errors import ConflictError, NotFoundError, ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.inventory.models import Batch, InventoryMedicine


class MedicineNotFound(NotFoundError):
    default_message = 'Medicine not found'


class BatchNotFound(NotFoundError):
    default_message = 'Batch not found'


class InsufficientStockError(ValidationFailed):
    """Raised when non-expired stock cannot cover a dispense."""
    default_message = 'Insufficient stock'


def _get_medicine(medicine_id: int, *, for_update: bool = False) -> InventoryMedicine:
    queryset = InventoryMedicine.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    medicine = queryset.filter(pk=medicine_id).first()
    if medicine is None:
        raise MedicineNotFound(medicine_id=medicine_id)
    return medicine


def serialize_medicine(medicine: InventoryMedicine, batches=None) -> dict:
    batches = list(batches if batches is not None else medicine.batches.order_by('expiry_date', 'batch_number'))
    quantity = sum(batch.quantity for batch in batches)
    return {
        'id': medicine.id,
        'name': medicine.name,
        'quantity': quantity,
        'critical_quantity': medicine.critical_quantity,
        'low_stock': quantity <= medicine.critical_quantity,
        'batches': [
            {
                'id': batch.id,
                'batch_number': batch.batch_number,
                'expiry_date': batch.expiry_date.isoformat(),
                'quantity': batch.quantity,
                'is_expired': batch.is_expired,
            }
            for batch in batches
        ],
    }


def inventory_summary() -> List[dict]:
    """Every medicine with its batches and total quantity."""
    medicines = InventoryMedicine.objects.prefetch_related('batches').order_by('name')
    return [
        serialize_medicine(medicine, sorted(medicine.batches.all(), key=lambda b: (b.expiry_date, b.batch_number)))
        for medicine in medicines
    ]


def add_medicine(name: str, critical_quantity: int = 0) -> InventoryMedicine:
    """
    Raises:
        ConflictError: a medicine with this name already exists
    """
    try:
        with transaction.atomic():
            return InventoryMedicine.objects.create(name=name, critical_quantity=critical_quantity)
    except IntegrityError:
        raise ConflictError('Medicine already exists in inventory', name=name)


def add_batch(medicine_id: int, *, batch_number: str, expiry_date: date, quantity: int) -> Batch:
    """
    Receive a new lot.

    Raises:
        MedicineNotFound
        ValidationFailed: quantity not positive or lot already expired
        ConflictError: batch number already used for this medicine
    """
    if quantity <= 0:
        raise ValidationFailed('Quantity must be positive', quantity=quantity)
    if expiry_date < timezone.localdate():
        raise ValidationFailed('Batch is already expired', expiry_date=expiry_date.isoformat())

    medicine = _get_medicine(medicine_id)
    try:
        with transaction.atomic():
            batch = Batch.objects.create(
                medicine=medicine,
                batch_number=batch_number,
                expiry_date=expiry_date,
                quantity=quantity,
            )
    except IntegrityError:
        raise ConflictError('Batch number already exists for this medicine', batch_number=batch_number)

    log_domain_event(
        'inventory.batch_received',
        entity_type='Batch',
        entity_id=str(batch.id),
        entity_ids={'medicine_id': str(medicine.id)},
        quantity=quantity,
    )
    return batch


def restock_batch(batch_id: int, quantity: int) -> Batch:
    """
    Raises:
        BatchNotFound
        ValidationFailed: quantity not positive
    """
    if quantity <= 0:
        raise ValidationFailed('Quantity must be positive', quantity=quantity)
    with transaction.atomic():
        batch = Batch.objects.select_for_update().filter(pk=batch_id).first()
        if batch is None:
            raise BatchNotFound(batch_id=batch_id)
        batch.quantity += quantity
        batch.save(update_fields=['quantity'])
    return batch


def update_critical_quantity(medicine_id: int, critical_quantity: int) -> InventoryMedicine:
    with transaction.atomic():
        medicine = _get_medicine(medicine_id, for_update=True)
        medicine.critical_quantity = critical_quantity
        medicine.save(update_fields=['critical_quantity', 'updated_at'])
    return medicine


def delete_medicine(medicine_id: int) -> None:
    """
    Raises:
        MedicineNotFound
        ConflictError: batches still hold stock
    """
    with transaction.atomic():
        medicine = _get_medicine(medicine_id, for_update=True)
        on_hand = medicine.batches.aggregate(total=Sum('quantity'))['total'] or 0
        if on_hand > 0:
            raise ConflictError('Medicine still has stock', quantity=on_hand)
        medicine.delete()


def allocate_batches_fefo(medicine: InventoryMedicine, quantity_needed: int) -> List[Tuple[Batch, int]]:
    """
    Allocate batches using FEFO (First Expired, First Out).

    Locks the candidate batch rows; call inside a transaction.

    Returns:
        List of (batch, quantity) tuples allocated

    Raises:
        InsufficientStockError: non-expired stock does not cover the request
    """
    if quantity_needed <= 0:
        raise ValidationFailed('Quantity must be positive', quantity=quantity_needed)

    batches = list(
        Batch.objects.select_for_update()
        .filter(medicine=medicine, quantity__gt=0, expiry_date__gte=timezone.localdate())
        .order_by('expiry_date', 'batch_number')
    )
    available = sum(batch.quantity for batch in batches)
    if available < quantity_needed:
        raise InsufficientStockError(
            f'Insufficient stock for {medicine.name}. Available: {available}, needed: {quantity_needed}',
            available=available,
            requested=quantity_needed,
        )

    allocations = []
    remaining = quantity_needed
    for batch in batches:
        if remaining <= 0:
            break
        allocated = min(batch.quantity, remaining)
        allocations.append((batch, allocated))
        remaining -= allocated
    return allocations


@metrics.track_duration(metrics.inventory_allocation_fefo_duration_seconds)
def dispense_medicine(principal: Principal, medicine_id: int, quantity: int) -> List[dict]:
    """
    Take ``quantity`` units out of stock, earliest expiry first.

    Raises:
        MedicineNotFound
        InsufficientStockError: nothing is changed in that case
    """
    try:
        with transaction.atomic():
            medicine = _get_medicine(medicine_id, for_update=True)
            allocations = allocate_batches_fefo(medicine, quantity)
            for batch, allocated in allocations:
                batch.quantity -= allocated
                batch.save(update_fields=['quantity'])
    except InsufficientStockError:
        metrics.inventory_dispensed_total.labels(result='insufficient').inc()
        log_domain_event(
            'inventory.dispensed',
            entity_type='InventoryMedicine',
            entity_id=str(medicine_id),
            result='rejected',
            quantity=quantity,
        )
        raise

    metrics.inventory_dispensed_total.labels(result='dispensed').inc()
    log_domain_event(
        'inventory.dispensed',
        entity_type='InventoryMedicine',
        entity_id=str(medicine.id),
        quantity=quantity,
        batches=[batch.id for batch, _ in allocations],
        dispensed_by=principal.user_id,
    )
    return [
        {'batch_id': batch.id, 'batch_number': batch.batch_number, 'quantity': allocated}
        for batch, allocated in allocations
    ]
