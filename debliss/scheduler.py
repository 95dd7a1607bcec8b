from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import pytz
import logging

logger = logging.getLogger(__name__)

# Scheduler setup
scheduler = BackgroundScheduler(daemon=True)
scheduler.configure(timezone=pytz.utc)


def cleanup_trigger(hour):
    """Daily at ``hour``:00 UTC, whatever the host timezone."""
    return CronTrigger(hour=hour, minute=0, timezone=pytz.utc)


def start_scheduler(app):
    """Schedule the daily sweep of expired finished deliveries."""

    def cleanup_finished_orders():
        from .services.archive import purge_expired_deliveries
        with app.app_context():
            purge_expired_deliveries()

    scheduler.add_job(
        id="finished_orders_cleanup",
        func=cleanup_finished_orders,
        trigger=cleanup_trigger(app.config.get("CLEANUP_HOUR", 2)),
        replace_existing=True
    )
    if not scheduler.running:
        scheduler.start()
    logger.info("Finished orders cleanup scheduled", extra={
        'event': 'scheduler_started'
    })
    return scheduler
