"""
Patients URLs - public lookup and self-registration.
"""
from django.urls import path

from . import views

urlpatterns = [
    path('existing', views.existing, name='patient-existing'),
    path('visitorRegister', views.visitor_register, name='visitor-register'),
    path('register', views.register, name='patient-register'),
]
