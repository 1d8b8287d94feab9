"""
Advisory generation.

``AdvisoryBridge`` turns market context (a ranked view, a single quote or a
free-form question) into a prompt, forwards it to an ``AdviceGenerator`` and
normalizes every failure to ``AdvisoryUnavailableError``. It never retries.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol, Union

from openai import APITimeoutError

from moverbot.core.exceptions import AdvisoryUnavailableError
from moverbot.core.logging import get_logger
from moverbot.domain import InstrumentQuote, RankedView
from moverbot.services.notifications.message_builder import (
    ADVICE_UNAVAILABLE,
    ListStyle,
    render_detail,
    render_list,
)
from moverbot.services.openai.client import OpenAIClientManager
from moverbot.services.openai.config import AdviceKind
from moverbot.services.openai.prompts import (
    get_instructions,
    lookup_prompt,
    market_prompt,
    question_prompt,
)

logger = get_logger("openai.advisory")

AdviceContext = Union[RankedView, InstrumentQuote, str]


class AdviceGenerator(Protocol):
    """Text-completion collaborator."""

    async def generate(self, prompt: str, *, instructions: str, max_tokens: int) -> str:
        ...


class OpenAIAdviceGenerator:
    """Chat-completions backed generator using the session's client manager."""

    def __init__(self, manager: OpenAIClientManager):
        self._manager = manager

    async def generate(self, prompt: str, *, instructions: str, max_tokens: int) -> str:
        settings = self._manager.settings
        client = await self._manager.get_client()
        if not client:
            raise AdvisoryUnavailableError("OpenAI client unavailable (no API key or circuit open)")

        start = time.monotonic()
        try:
            response = await client.chat.completions.create(
                model=settings.default_model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": prompt},
                ],
                max_completion_tokens=max_tokens,
                temperature=settings.temperature,
                timeout=settings.request_timeout,
            )
        except asyncio.CancelledError:
            # The bridge's advisory budget ran out before OpenAI answered
            self._manager.record_failure("timeout")
            raise
        except APITimeoutError as e:
            self._manager.record_failure("timeout")
            raise AdvisoryUnavailableError("OpenAI request timed out") from e
        except Exception as e:
            self._manager.record_failure("error")
            raise AdvisoryUnavailableError(f"OpenAI request failed: {e}") from e

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            self._manager.record_failure("empty")
            raise AdvisoryUnavailableError("Empty completion from OpenAI")

        self._manager.record_success()

        usage = response.usage
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            f"Advice generated with {settings.default_model} - "
            f"{getattr(usage, 'prompt_tokens', 0) if usage else 0} in / "
            f"{getattr(usage, 'completion_tokens', 0) if usage else 0} out tokens, "
            f"{duration_ms}ms"
        )
        return content


def prompt_kind(context: AdviceContext) -> AdviceKind:
    if isinstance(context, RankedView):
        return AdviceKind.MARKET
    if isinstance(context, InstrumentQuote):
        return AdviceKind.LOOKUP
    return AdviceKind.QUESTION


class AdvisoryBridge:
    """Builds advisory prompts and requests advice with failure normalization."""

    def __init__(
        self,
        generator: AdviceGenerator,
        picks: int = 3,
        currency: str | None = None,
        max_tokens: dict[AdviceKind, int] | None = None,
        timeout: float | None = None,
    ):
        self._generator = generator
        self.picks = picks
        self.currency = currency
        self._max_tokens = max_tokens or {}
        self.timeout = timeout

    def build_prompt(self, context: AdviceContext) -> str:
        """Render the user prompt for a ranked view, a quote or a question."""
        if isinstance(context, RankedView):
            return market_prompt(
                render_list("Top Gainers", context.gainers, ListStyle.FULL, self.currency),
                render_list("Top Losers", context.losers, ListStyle.FULL, self.currency),
                render_list("Favorite Stocks", context.favorites, ListStyle.FULL, self.currency)
                if context.favorites
                else None,
                self.picks,
            )
        if isinstance(context, InstrumentQuote):
            return lookup_prompt(render_detail(context, self.currency))
        return question_prompt(str(context))

    async def request_advice(self, prompt: str, kind: AdviceKind = AdviceKind.QUESTION) -> str:
        """Send a prompt to the generator.

        Raises:
            AdvisoryUnavailableError: on any generator failure or empty output
        """
        if not prompt.strip():
            raise AdvisoryUnavailableError("Empty prompt")

        call = self._generator.generate(
            prompt,
            instructions=get_instructions(kind),
            max_tokens=self._max_tokens.get(kind, 400),
        )
        try:
            if self.timeout:
                text = await asyncio.wait_for(call, timeout=self.timeout)
            else:
                text = await call
        except AdvisoryUnavailableError:
            raise
        except asyncio.TimeoutError as e:
            raise AdvisoryUnavailableError("Advisory request timed out") from e
        except Exception as e:
            raise AdvisoryUnavailableError(f"Advisory request failed: {e}") from e

        if not isinstance(text, str) or not text.strip():
            raise AdvisoryUnavailableError("Advisory service returned no text")
        return text.strip()

    async def advise(self, context: AdviceContext) -> str:
        """Build, request, and fall back to the placeholder on failure."""
        kind = prompt_kind(context)
        try:
            return await self.request_advice(self.build_prompt(context), kind)
        except AdvisoryUnavailableError as e:
            logger.warning(f"Advice unavailable ({kind.value}): {e.message}")
            return ADVICE_UNAVAILABLE
