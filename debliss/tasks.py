from celery import shared_task
from flask_mail import Message
from smtplib import SMTPException
import logging

from debliss import mail

logger = logging.getLogger(__name__)


@shared_task(bind=True, ignore_result=True, max_retries=3)
def send_async_email(self, to, subject, html_body):
    """Deliver one HTML email through Flask-Mail."""
    msg = Message(subject=subject, recipients=[to], html=html_body)
    try:
        mail.send(msg)
    except (SMTPException, OSError) as e:
        logger.error(f"Error sending email to {to}: {str(e)}")
        self.retry(exc=e, countdown=60)  # Retry after 1 minute
    logger.info(f"Email sent to {to}: {subject}", extra={'event': 'email_sent'})
