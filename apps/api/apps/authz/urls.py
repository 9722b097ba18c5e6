"""
Authz URLs - Roles and current user.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import RoleViewSet, CurrentUserView, PermissionListView

router = DefaultRouter()
router.register(r'roles', RoleViewSet, basename='role')

urlpatterns = [
    path('', include(router.urls)),
    path('auth/me/', CurrentUserView.as_view(), name='current-user'),
    path('permissions/', PermissionListView.as_view(), name='permission-list'),
]
