from django.contrib import admin

from .models import Batch, InventoryMedicine


class BatchInline(admin.TabularInline):
    model = Batch
    extra = 0


@admin.register(InventoryMedicine)
class InventoryMedicineAdmin(admin.ModelAdmin):
    list_display = ['name', 'critical_quantity', 'updated_at']
    search_fields = ['name']
    inlines = [BatchInline]
