"""Scheduled jobs: the market cycle and the scheduler that drives it."""

from .cycle import ALERTS, SUGGESTIONS, UPDATES, CycleRunner
from .definitions import MARKET_CYCLE_JOB, build_scheduler, register_market_jobs
from .registry import JobRegistry
from .scheduler import JobScheduler

__all__ = [
    "ALERTS",
    "SUGGESTIONS",
    "UPDATES",
    "CycleRunner",
    "JobRegistry",
    "JobScheduler",
    "MARKET_CYCLE_JOB",
    "build_scheduler",
    "register_market_jobs",
]
