"""
Background maintenance jobs.

The expiry sweep deletes sessions and reset tokens whose ``expires_at`` has
passed. ``CronService`` schedules it with APScheduler; call ``start()`` from
the application startup and ``stop()`` on shutdown.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from gtd_auth.core.logging.logger import get_logger
from gtd_auth.crud.base import PasswordResetTokenStore, SessionStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    sessions: int
    reset_tokens: int


class SessionMaintenance:
    """Purges expired sessions and reset tokens."""

    def __init__(self, sessions: SessionStore, tokens: PasswordResetTokenStore) -> None:
        self.sessions = sessions
        self.tokens = tokens

    async def purge_expired(self, now: datetime) -> SweepResult:
        result = SweepResult(
            sessions=await self.sessions.delete_expired(now),
            reset_tokens=await self.tokens.delete_expired(now),
        )
        logger.info(
            "Expiry sweep completed",
            event="sweep.completed",
            sessions_deleted=result.sessions,
            reset_tokens_deleted=result.reset_tokens,
        )
        return result


class CronService:
    """
    Schedules the expiry sweep on a fixed interval.
    """

    def __init__(
        self,
        maintenance: SessionMaintenance,
        interval_minutes: int = 15,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        self.maintenance = maintenance
        self.interval_minutes = interval_minutes
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self.logger = get_logger("cron_service")

    async def run_sweep(self) -> None:
        try:
            await self.maintenance.purge_expired(datetime.now(timezone.utc))
        except Exception as e:
            self.logger.log_error(e, "Expiry sweep failed")
            raise

    def start(self) -> None:
        """Register the sweep job and start the scheduler. Must run inside the event loop."""
        self.scheduler.add_job(
            self.run_sweep,
            IntervalTrigger(minutes=self.interval_minutes),
            id="expiry_sweep",
            name="Purge expired sessions and reset tokens",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        self.logger.info("Cron Service started", interval_minutes=self.interval_minutes)

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            self.logger.info("Cron Service stopped")
