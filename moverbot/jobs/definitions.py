"""Job definitions for the market bot."""

from __future__ import annotations

from .cycle import CycleRunner
from .registry import JobRegistry
from .scheduler import JobScheduler

MARKET_CYCLE_JOB = "market_cycle"


def register_market_jobs(registry: JobRegistry, runner: CycleRunner) -> None:
    """Register the periodic market cycle against a runner."""

    @registry.job(MARKET_CYCLE_JOB)
    async def market_cycle_job() -> str:
        """
        Fetch, rank and deliver the market update.

        Schedule: every CYCLE_INTERVAL_SECONDS (default 300)

        Returns:
            Summary of the cycle run
        """
        result = await runner.trigger()
        summary = f"{result.state.value}"
        if result.error:
            summary += f": {result.error}"
        elif result.failed_destinations:
            summary += f" (failed: {', '.join(result.failed_destinations)})"
        return summary


def build_scheduler(runner: CycleRunner) -> JobScheduler:
    """Registry plus scheduler with the market cycle on its configured interval."""
    settings = runner.session.settings
    registry = JobRegistry()
    register_market_jobs(registry, runner)

    scheduler = JobScheduler(registry)
    scheduler.schedule_interval(
        MARKET_CYCLE_JOB,
        settings.cycle_interval_seconds,
        run_on_start=settings.run_on_start,
    )
    return scheduler
