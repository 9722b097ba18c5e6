"""
Celery application for background work (OTP e-mail delivery).
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('medcenter')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
