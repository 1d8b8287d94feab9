"""Job registry for mapping job names to coroutine functions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from moverbot.core.logging import get_logger


logger = get_logger("jobs.registry")

JobFunc = Callable[[], Awaitable[object]]


class JobRegistry:
    """Name to job function mapping owned by one scheduler."""

    def __init__(self):
        self._jobs: dict[str, JobFunc] = {}

    def register(self, name: str, func: JobFunc) -> None:
        """Register a job function, replacing any previous one."""
        self._jobs[name] = func
        logger.debug(f"Registered job: {name}")

    def job(self, name: str) -> Callable[[JobFunc], JobFunc]:
        """
        Decorator form of ``register``.

        Usage:
            @registry.job("market_cycle")
            async def market_cycle() -> str:
                ...
        """

        def decorator(func: JobFunc) -> JobFunc:
            self.register(name, func)
            return func

        return decorator

    def get(self, name: str) -> JobFunc | None:
        return self._jobs.get(name)
