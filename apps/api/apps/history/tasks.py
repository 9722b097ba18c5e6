"""
Celery tasks for patient history disclosure.
"""
import logging
import smtplib

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from apps.core.observability import metrics

logger = logging.getLogger(__name__)

OTP_EMAIL_BODY = (
    'A doctor is requesting access to view case history. '
    'Your OTP is: {otp}. It is valid for a limited time.'
)


@shared_task(name='apps.history.tasks.send_otp_email')
def send_otp_email(recipient, otp):
    """
    Deliver an OTP to the patient's contact address.

    The OTP row is already committed when this runs; a delivery failure
    leaves it in place so the doctor can simply ask again.
    """
    try:
        send_mail(
            settings.OTP_EMAIL_SUBJECT,
            OTP_EMAIL_BODY.format(otp=otp),
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
        )
    except (smtplib.SMTPException, OSError) as e:
        metrics.otp_email_delivery_total.labels(result='failure').inc()
        logger.error(
            'OTP e-mail delivery failed',
            extra={'event': 'otp_email_failed', 'error_type': type(e).__name__}
        )
        raise
    metrics.otp_email_delivery_total.labels(result='success').inc()
