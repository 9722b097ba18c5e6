"""Inventory URLs."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BatchViewSet, InventoryMedicineViewSet

router = DefaultRouter()
router.register(r'medicines', InventoryMedicineViewSet, basename='inventory-medicine')
router.register(r'batches', BatchViewSet, basename='inventory-batch')

urlpatterns = [
    path('', include(router.urls)),
]
