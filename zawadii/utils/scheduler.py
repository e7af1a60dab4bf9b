"""
Background scheduler for automated tasks.

Handles:
- Reclaiming stale reward reservations (every 5 minutes)
"""
import os
import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

RECLAIM_INTERVAL_MINUTES = 5

# Global scheduler instance
_scheduler = None
_flask_app = None  # Flask app reference for job context


def init_scheduler(app):
    """
    Initialize the background scheduler.

    Only runs in production or when ENABLE_SCHEDULER=true, and only once
    per process group (gunicorn workers share SCHEDULER_RUNNING).
    """
    global _scheduler, _flask_app

    _flask_app = app

    if app.config.get('TESTING'):
        logger.debug('[Scheduler] Disabled in testing mode')
        return

    if not (os.getenv('FLASK_ENV') == 'production' or os.getenv('ENABLE_SCHEDULER') == 'true'):
        logger.info('[Scheduler] Disabled (set FLASK_ENV=production or ENABLE_SCHEDULER=true)')
        return

    if os.getenv('SCHEDULER_RUNNING') == 'true':
        logger.info('[Scheduler] Already running in another process')
        return

    try:
        _scheduler = BackgroundScheduler(
            timezone='UTC',
            job_defaults={
                'coalesce': True,  # Combine missed runs
                'max_instances': 1,  # Prevent concurrent runs
                'misfire_grace_time': 300
            }
        )

        _scheduler.add_job(
            run_reservation_reclaim,
            trigger=IntervalTrigger(minutes=RECLAIM_INTERVAL_MINUTES),
            id='reservation_reclaim',
            name='Reclaim stale reward reservations',
            replace_existing=True
        )

        _scheduler.start()
        os.environ['SCHEDULER_RUNNING'] = 'true'
        logger.info(
            f'[Scheduler] Started: reservation reclaim every {RECLAIM_INTERVAL_MINUTES} minutes'
        )

        atexit.register(shutdown_scheduler)

    except Exception as e:
        logger.error(f'[Scheduler] Failed to initialize: {e}')


def shutdown_scheduler():
    """Gracefully shutdown the scheduler."""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info('[Scheduler] Shutdown complete')


def run_reservation_reclaim():
    """Return reward codes stuck in pending to inventory."""
    global _flask_app

    if not _flask_app:
        logger.error('[Scheduler] Flask app not initialized')
        return

    with _flask_app.app_context():
        try:
            from ..services.scheduled_tasks import scheduled_tasks_service

            timeout = _flask_app.config.get('REWARD_RESERVATION_TIMEOUT_MINUTES', 15)
            result = scheduled_tasks_service.reclaim_stale_reservations(timeout_minutes=timeout)

            if result['errors']:
                logger.warning(
                    f"[Scheduler] Reservation reclaim finished with {len(result['errors'])} errors"
                )

        except Exception as e:
            logger.error(f'[Scheduler] Reservation reclaim failed: {e}')
