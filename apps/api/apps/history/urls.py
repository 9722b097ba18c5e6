"""
Patient history URLs.
"""
from django.urls import path

from . import views

urlpatterns = [
    path('patientHistory/<int:patient_id>', views.PatientHistoryView.as_view(), name='patient-history'),
    path('patientHistory/<int:patient_id>/send-otp', views.SendOtpView.as_view(), name='patient-history-send-otp'),
    path('patientHistory/<int:patient_id>/override', views.OverrideView.as_view(), name='patient-history-override'),
    path('admin/otp-override-logs', views.OverrideLogListView.as_view(), name='otp-override-logs'),
]
