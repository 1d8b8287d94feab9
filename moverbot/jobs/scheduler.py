"""Job scheduler using APScheduler with async support."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from moverbot.core.logging import get_logger

from .registry import JobFunc, JobRegistry

logger = get_logger("jobs.scheduler")


class JobScheduler:
    """Interval scheduler for registered jobs."""

    def __init__(self, registry: JobRegistry, timezone_name: str = "UTC"):
        self.registry = registry
        self._scheduler = AsyncIOScheduler(
            timezone=timezone_name,
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one instance per job at a time
                "misfire_grace_time": 60,
            },
        )
        self._intervals: dict[str, int] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def schedule_interval(self, name: str, seconds: int, run_on_start: bool = False) -> None:
        """Schedule a registered job every ``seconds``; optionally fire once at start."""
        job_func = self.registry.get(name)
        if job_func is None:
            raise ValueError(f"Unknown job: {name}")

        kwargs = {}
        if run_on_start:
            kwargs["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            self._wrap_job(name, job_func),
            trigger=IntervalTrigger(seconds=seconds),
            id=name,
            name=name,
            replace_existing=True,
            **kwargs,
        )
        self._intervals[name] = seconds
        logger.info(f"Scheduled job: {name} (every {seconds}s)")

    async def start(self) -> None:
        """Start the scheduler; must be called from a running event loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._scheduler.start()
        self._running = True
        logger.info("Job scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler without waiting for in-flight jobs."""
        if not self._running:
            return

        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Job scheduler stopped")

    def _wrap_job(self, name: str, func: JobFunc):
        async def wrapper():
            await self._execute_job(name, func)

        return wrapper

    async def _execute_job(self, name: str, func: JobFunc) -> object:
        """Execute a job with logging; failures never reach APScheduler."""
        logger.info(f"Job {name} started")
        start_time = datetime.now(timezone.utc)

        try:
            result = await func()
        except Exception:
            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
            logger.exception(f"Job {name} failed after {duration_ms}ms")
            return None

        duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
        logger.info(f"Job {name} completed in {duration_ms}ms")
        return result

    async def run_job_now(self, name: str) -> object:
        """Manually trigger a job execution and return its result."""
        job_func = self.registry.get(name)
        if job_func is None:
            raise ValueError(f"Unknown job: {name}")

        return await self._execute_job(name, job_func)

    def get_next_run_time(self, name: str) -> Optional[datetime]:
        """Get next scheduled run time for a job."""
        job = self._scheduler.get_job(name)
        if job:
            return job.next_run_time
        return None

    def get_jobs_status(self) -> list:
        """Get status of all scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "interval_seconds": self._intervals.get(job.id),
                    "next_run_time": next_run.isoformat() if next_run else None,
                }
            )
        return jobs
