"""
Pharmacy stock: inventory_medicine, inventory_batch
"""
from django.db import models
from django.db.models import Sum
from django.utils import timezone


class InventoryMedicine(models.Model):
    """
    A stocked medicine. On-hand quantity is the sum of its batches.

    Business Rules:
    - critical_quantity marks the low-stock threshold
    - cannot be deleted while any batch still holds stock
    """
    name = models.CharField(max_length=255, unique=True)
    critical_quantity = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'inventory_medicine'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def quantity(self):
        return self.batches.aggregate(total=Sum('quantity'))['total'] or 0


class Batch(models.Model):
    """
    A received lot of a medicine.

    Business Rules:
    - batch_number unique per medicine
    - dispensing takes from the earliest expiry first (FEFO)
    - expired batches are never dispensed
    """
    medicine = models.ForeignKey(InventoryMedicine, on_delete=models.CASCADE, related_name='batches')
    batch_number = models.CharField(max_length=255)
    expiry_date = models.DateField()
    quantity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'inventory_batch'
        ordering = ['expiry_date', 'batch_number']
        constraints = [
            models.UniqueConstraint(fields=['medicine', 'batch_number'], name='uniq_batch_per_medicine'),
        ]
        indexes = [
            models.Index(fields=['medicine', 'expiry_date'], name='idx_batch_medicine_expiry'),
        ]

    def __str__(self):
        return f'{self.medicine.name} - {self.batch_number}'

    @property
    def is_expired(self):
        return self.expiry_date < timezone.localdate()
