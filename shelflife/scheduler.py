"""Scheduled expiry checks and notification refreshes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from .db import InventoryDB
from .notifications import NotificationCenter
from .store import KeyValueStore, NotificationSettings, SettingsStore, SQLiteStore

logger = logging.getLogger(__name__)


@dataclass
class ExpiryReminder:
    item_id: int
    user_id: str
    item_name: str
    quantity: str
    expiry_date: str


@dataclass
class ExpiryCheckResult:
    check_date: str
    days_ahead: int
    reminders: list[ExpiryReminder] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.reminders)


def check_expiring_items(
    db: InventoryDB, days_ahead: int = 1, today: date | None = None
) -> ExpiryCheckResult:
    """Collect every user's items expiring exactly ``days_ahead`` days from today."""
    if today is None:
        today = date.today()
    target = today + timedelta(days=days_ahead)
    logger.info("Checking for items expiring on %s", target.isoformat())
    db.renormalize()

    reminders = [
        ExpiryReminder(
            item_id=row["id"],
            user_id=row["user_id"],
            item_name=row["item_name"] or "Unknown Item",
            quantity=row["quantity"] or "Unknown quantity",
            expiry_date=row["expiry_date"],
        )
        for row in db.get_items_expiring_in(days_ahead, today)
    ]
    for r in reminders:
        logger.info("Reminder: %s (%s) expires on %s", r.item_name, r.quantity, r.expiry_date)
    if not reminders:
        logger.info("No items expiring on %s", target.isoformat())

    return ExpiryCheckResult(
        check_date=target.isoformat(),
        days_ahead=days_ahead,
        reminders=reminders,
    )


def refresh_user_notifications(
    db: InventoryDB,
    store: KeyValueStore,
    user_id: str,
    defaults: NotificationSettings | None = None,
    today: date | None = None,
) -> int:
    """Regenerate one user's notifications. Returns the number added."""
    if today is None:
        today = date.today()
    settings = SettingsStore(store, user_id, defaults).load()
    center = NotificationCenter(store, user_id)
    center.load()
    added = center.refresh(
        db.get_inventory_with_metadata(user_id, today), settings, today, complete=True
    )
    center.save()
    return len(added)


class ExpiryScheduler:
    """Runs the daily expiry check and notification refresh.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config) -> None:
        """Initialize scheduler with an AppConfig.

        Args:
            config: AppConfig instance.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'shelflife[scheduler]'"
            )

        self._config = config
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        sc = self._config.scheduler

        self._scheduler.add_job(
            self._job_check_expiring,
            trigger=self._parse_cron(sc.check_schedule),
            id="check_expiring",
            name="Expiry check",
            replace_existing=True,
        )
        logger.info("Registered expiry check: %s", sc.check_schedule)

        self._scheduler.add_job(
            self._job_refresh_notifications,
            trigger=self._parse_cron(sc.refresh_schedule),
            id="refresh_notifications",
            name="Notification refresh",
            replace_existing=True,
        )
        logger.info("Registered notification refresh: %s", sc.refresh_schedule)

    def start(self) -> None:
        """Start the scheduler."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    def _open_db(self) -> InventoryDB:
        return InventoryDB(
            self._config.database.path,
            normalizer=self._config.expiry.normalizer(),
            soon_days=self._config.expiry.soon_days,
        )

    async def _job_check_expiring(self) -> None:
        logger.info("Running expiry check...")

        try:
            db = self._open_db()
            try:
                result = check_expiring_items(db, self._config.scheduler.days_ahead)
                logger.info(
                    "%d item(s) expiring on %s", result.count, result.check_date
                )
            finally:
                db.close()
        except Exception:
            logger.exception("Expiry check failed")

    async def _job_refresh_notifications(self) -> None:
        logger.info("Refreshing notifications...")

        try:
            db = self._open_db()
            store = SQLiteStore(self._config.database.path)
            try:
                for user_id in db.list_users():
                    try:
                        refresh_user_notifications(
                            db, store, user_id, self._config.notifications
                        )
                    except Exception:
                        logger.exception("Notification refresh failed for user %s", user_id)
            finally:
                store.close()
                db.close()
        except Exception:
            logger.exception("Notification refresh failed")
