# apps/notifications/mailer.py

import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailJob:
    to: str
    subject: str
    html_body: str


def send_email(job):
    """
    Send one HTML email through the configured Django email backend (SMTP
    in production). Raises on delivery failure; retrying is the worker's job.
    """
    message = EmailMultiAlternatives(
        subject=job.subject,
        body=strip_tags(job.html_body),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[job.to],
    )
    message.attach_alternative(job.html_body, "text/html")
    message.send(fail_silently=False)
    logger.info(f"Email sent to {job.to}: {job.subject}")
