from flask import render_template
import logging

logger = logging.getLogger(__name__)


def send_email(to, subject, html_body):
    """Queue an HTML email for background delivery.

    Raises whatever the task broker raises; callers decide whether a
    failed dispatch matters.
    """
    from debliss.tasks import send_async_email
    send_async_email.delay(to, subject, html_body)
    logger.info(f"Email queued for {to}: {subject}", extra={'event': 'email_queued'})


def send_email_quietly(to, subject, template, **context):
    """Render ``template`` and queue it; failures are logged, never raised."""
    try:
        html_body = render_template(template, **context)
        send_email(to, subject, html_body)
        return True
    except Exception as e:
        logger.error(
            f"Failed to send email '{subject}' to {to}: {e}",
            extra={'event': 'email_failed'}
        )
        return False
