# dayos/services/scheduler.py
"""
In-process trigger source for the reminder engine's periodic passes
"""

from typing import Dict, Any, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.triggers.cron import CronTrigger
import logging

from dayos.config.settings import Settings
from dayos.services.reminder_engine import ReminderEngine, get_engine

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

class ReminderScheduler:
    """Runs the due-reminder, digest and cleanup passes on a timer"""

    def __init__(self, engine: Optional[ReminderEngine] = None, settings=Settings):
        self.scheduler = AsyncIOScheduler(timezone=settings.ENGINE['digest_timezone'])
        self.settings = settings
        self._engine = engine
        self.is_running = False

    @property
    def engine(self) -> ReminderEngine:
        if self._engine is None:
            self._engine = get_engine()
        return self._engine

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            return

        # Due reminders every few minutes
        self.scheduler.add_job(
            self.process_due_reminders,
            trigger=IntervalTrigger(minutes=self.settings.SCHEDULER['reminder_poll_minutes']),
            id='process_due_reminders',
            name='Process Due Reminders',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        # Daily digest once a day
        self.scheduler.add_job(
            self.send_daily_digests,
            trigger=CronTrigger(hour=self.settings.SCHEDULER['digest_hour'], minute=0),
            id='send_daily_digests',
            name='Send Daily Digests',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        # Prune old delivery logs at midnight
        self.scheduler.add_job(
            self.cleanup_delivery_logs,
            trigger=CronTrigger(hour=0, minute=0),
            id='cleanup_delivery_logs',
            name='Cleanup Delivery Logs',
            replace_existing=True,
        )

        self.scheduler.start()
        self.is_running = True
        logger.info("Reminder scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Reminder scheduler stopped")

    async def process_due_reminders(self):
        try:
            logger.info("Checking for due reminders...")
            await self.engine.process_due_reminders()
        except Exception as e:
            logger.exception(f"Error processing due reminders: {e}")

    async def send_daily_digests(self):
        try:
            logger.info("Sending daily digests...")
            await self.engine.send_daily_digests()
        except Exception as e:
            logger.exception(f"Error sending daily digests: {e}")

    async def cleanup_delivery_logs(self):
        try:
            self.engine.cleanup_delivery_logs()
        except Exception as e:
            logger.exception(f"Error cleaning up delivery logs: {e}")

    async def get_scheduler_status(self) -> Dict[str, Any]:
        """
        Report whether passes run in-process or are left to the /cron endpoints,
        along with the configured cadence and each job's next fire time.
        """
        status = {
            "mode": "in-process" if self.is_running else "external-cron",
            "reminder_poll_minutes": self.settings.SCHEDULER['reminder_poll_minutes'],
            "digest_hour": self.settings.SCHEDULER['digest_hour'],
            "digest_timezone": self.settings.ENGINE['digest_timezone'],
            "jobs": [],
        }
        if not self.is_running:
            return status

        for job in self.scheduler.get_jobs():
            status["jobs"].append({
                "id": job.id,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            })
        return status

# Global scheduler instance
reminder_scheduler = ReminderScheduler()
