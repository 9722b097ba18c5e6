"""
URL configuration for the Medical Center API project.
"""
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from apps.core.observability.health import HealthzView, ReadyzView

urlpatterns = [
    # Health checks (no auth required)
    path('healthz', HealthzView.as_view(), name='healthz'),
    path('readyz', ReadyzView.as_view(), name='readyz'),

    # Admin
    path('admin/', admin.site.urls),

    # Public API (NO authentication required)
    path('api/v1/auth/', include('apps.patients.urls')),  # Lookup + self-registration

    # Private API (authentication required)
    path('api/', include('apps.core.urls')),  # JWT tokens
    path('api/v1/', include('apps.authz.urls')),  # Roles, current user
    path('api/v1/', include('apps.clinical.urls')),  # Vitals intake, doctor consultation
    path('api/v1/', include('apps.lab.urls')),  # Lab test lifecycle
    path('api/v1/', include('apps.history.urls')),  # OTP-gated patient history
    path('api/v1/files/', include('apps.files.urls')),
    path('api/v1/inventory/', include('apps.inventory.urls')),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
