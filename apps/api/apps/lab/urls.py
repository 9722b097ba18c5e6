"""
Lab URLs.
"""
from django.urls import path

from . import views

urlpatterns = [
    path('doctor/tests', views.LabTestCatalogView.as_view(), name='doctor-lab-tests'),
    path('doctor/requestLabTests', views.RequestTestsView.as_view(), name='doctor-request-lab-tests'),
    path('lab/pending', views.PendingReportsView.as_view(), name='lab-pending'),
    path('lab/details/<int:case_id>', views.CaseLabDetailsView.as_view(), name='lab-details'),
    path('lab/update/<int:report_id>', views.UpdateTestFilesView.as_view(), name='lab-update'),
    path('lab/submit/<int:report_id>', views.SubmitResultsView.as_view(), name='lab-submit'),
]
