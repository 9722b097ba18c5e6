"""
Clinical URLs - vitals desk and doctor consultation.
"""
from django.urls import path

from . import views

urlpatterns = [
    # Vitals desk
    path('vitals/unprocessed', views.UnprocessedQueueView.as_view(), name='vitals-unprocessed'),
    path('vitals/availableDoctors', views.AvailableDoctorsView.as_view(), name='vitals-available-doctors'),
    path('vitals/createCase', views.CreateCaseView.as_view(), name='vitals-create-case'),

    # Doctor
    path('doctor/queue', views.DoctorQueueView.as_view(), name='doctor-queue'),
    path('doctor/consultation/<int:case_id>', views.ConsultationView.as_view(), name='doctor-consultation'),
    path('doctor/medicines', views.MedicineListView.as_view(), name='doctor-medicines'),
    path('doctor/diseases', views.DiseaseListView.as_view(), name='doctor-diseases'),
    path('doctor/autosave', views.AutosaveView.as_view(), name='doctor-autosave'),
    path('doctor/finalizeCase', views.FinalizeCaseView.as_view(), name='doctor-finalize-case'),
]
