"""
OpenAI client ownership and the advisory circuit.

The bot session owns one ``OpenAIClientManager``. It builds a single
``AsyncOpenAI`` client on first use (SDK retries off, since the advisory
step never retries) and gates every request through an ``AdvisoryCircuit``:
after enough consecutive failures or timeouts, advice requests are refused
until a cooldown passes, so a dead advisory service does not add its full
timeout to every cycle and every command.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Callable

from openai import AsyncOpenAI

from moverbot.core.logging import get_logger
from moverbot.services.openai.config import OpenAISettings, get_settings


logger = get_logger("openai.client")


class AdvisoryCircuit:
    """Consecutive-failure circuit that lets requests through again after the cooldown."""

    def __init__(
        self,
        threshold: int,
        cooldown_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = max(1, threshold)
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self.consecutive_failures = 0
        self.opened_at: float | None = None
        self.failure_reasons: Counter[str] = Counter()

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None

    def allow(self) -> bool:
        if self.opened_at is None:
            return True
        if self._clock() - self.opened_at >= self.cooldown_seconds:
            logger.info("Advisory circuit half-open, allowing request")
            return True
        return False

    def record_success(self) -> None:
        if self.opened_at is not None:
            logger.info("Advisory circuit closed")
        self.consecutive_failures = 0
        self.opened_at = None

    def record_failure(self, reason: str) -> None:
        self.consecutive_failures += 1
        self.failure_reasons[reason] += 1
        if self.consecutive_failures >= self.threshold:
            # A failure while half-open restarts the cooldown
            self.opened_at = self._clock()
            logger.warning(
                f"Advisory circuit open after {self.consecutive_failures} "
                f"consecutive failures (last: {reason})"
            )


class OpenAIClientManager:
    """Lazily builds the session's OpenAI client and tracks advisory health."""

    def __init__(
        self,
        settings: OpenAISettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings or get_settings()
        self._client: AsyncOpenAI | None = None
        self.circuit = AdvisoryCircuit(
            self._settings.circuit_breaker_threshold,
            self._settings.circuit_breaker_timeout,
            clock=clock,
        )

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    async def get_client(self) -> AsyncOpenAI | None:
        """Return the client, or None without an API key or while the circuit is open."""
        if not self._settings.api_key:
            logger.warning("OpenAI API key not configured")
            return None
        if not self.circuit.allow():
            logger.debug("Advisory circuit open, skipping OpenAI request")
            return None

        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._settings.api_key,
                timeout=self._settings.request_timeout,
                max_retries=0,
            )
            logger.debug(f"Created OpenAI client for {self._settings.default_model}")
        return self._client

    def record_success(self) -> None:
        self.circuit.record_success()

    def record_failure(self, reason: str = "error") -> None:
        self.circuit.record_failure(reason)

    def is_circuit_open(self) -> bool:
        return self.circuit.is_open

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
