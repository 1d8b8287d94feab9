"""Periodic market cycle.

One cycle fetches a snapshot, ranks it, renders the blocks for each role and
delivers them, then asks for advisory text for the suggestions role. A
trigger that arrives while a cycle is still running is dropped.
"""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from moverbot.core.exceptions import FeedUnavailableError
from moverbot.core.logging import cycle_id_var, get_logger
from moverbot.domain import CycleResult, CycleState, MarketSnapshot, RankedView
from moverbot.services.notifications import render_advice, render_alerts, render_updates
from moverbot.services.ranking import rank
from moverbot.session import BotSession

logger = get_logger("jobs.cycle")

UPDATES = "updates"
ALERTS = "alerts"
SUGGESTIONS = "suggestions"

SUGGESTIONS_TITLE = "AI Suggestions"


class CycleRunner:
    """Runs market cycles against a session with an explicit Idle/Running guard."""

    def __init__(
        self,
        session: BotSession,
        retry_delay: float = 1.0,
        retry_max_delay: float = 10.0,
    ):
        self.session = session
        self.retry_delay = retry_delay
        self.retry_max_delay = retry_max_delay
        self._state = CycleState.IDLE
        self.last_result: CycleResult | None = None

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == CycleState.RUNNING

    async def trigger(self) -> CycleResult:
        """Run one cycle unless one is already in flight."""
        # Checked and set with no await in between
        if self._state == CycleState.RUNNING:
            logger.warning("Market cycle skipped - previous cycle still running")
            return CycleResult(state=CycleState.SKIPPED)

        self._state = CycleState.RUNNING
        token = cycle_id_var.set(uuid.uuid4().hex[:12])
        started_at = datetime.now(UTC)
        try:
            result = await self._run(started_at)
        except Exception as e:
            logger.exception("Market cycle crashed")
            result = CycleResult(
                state=CycleState.FAILED,
                error=str(e) or type(e).__name__,
                started_at=started_at,
                finished_at=datetime.now(UTC),
            )
        finally:
            self._state = CycleState.IDLE
            cycle_id_var.reset(token)

        self.last_result = result
        return result

    async def fetch(self) -> MarketSnapshot:
        """Fetch a snapshot within the per-cycle attempt budget."""
        attempts = self.session.settings.feed_fetch_attempts
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential_jitter(
                initial=self.retry_delay,
                max=self.retry_max_delay,
                jitter=self.retry_delay,
            ),
            retry=retry_if_exception_type(FeedUnavailableError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(
                        f"Retrying feed fetch (attempt {attempt.retry_state.attempt_number}/{attempts})"
                    )
                return await self.session.feed.fetch_snapshot()
        raise FeedUnavailableError("Feed fetch budget exhausted")  # pragma: no cover

    def render(self, view: RankedView, snapshot: MarketSnapshot) -> dict[str, str]:
        """Render the per-role texts for the configured roles."""
        settings = self.session.settings
        dispatcher = self.session.dispatcher
        messages: dict[str, str] = {}
        if dispatcher.has_role(UPDATES):
            messages[UPDATES] = render_updates(
                view,
                snapshot.captured_at,
                currency=settings.currency,
                include_favorites=bool(settings.favorite_stocks),
            )
        if dispatcher.has_role(ALERTS) and view.alerts:
            messages[ALERTS] = render_alerts(view, settings.alert_threshold, settings.currency)
        return messages

    async def _run(self, started_at: datetime) -> CycleResult:
        settings = self.session.settings
        start = time.monotonic()

        try:
            snapshot = await self.fetch()
        except FeedUnavailableError as e:
            logger.error(
                f"Market cycle failed: {e.message}",
                extra={"attempts": settings.feed_fetch_attempts},
            )
            return CycleResult(
                state=CycleState.FAILED,
                error=e.message,
                started_at=started_at,
                finished_at=datetime.now(UTC),
            )

        view = rank(
            snapshot,
            favorites=settings.favorite_stocks,
            limit=settings.top_limit,
            alert_threshold=settings.alert_threshold,
        )

        dispatcher = self.session.dispatcher
        outcomes = await dispatcher.deliver_many(self.render(view, snapshot))

        if dispatcher.has_role(SUGGESTIONS):
            try:
                advice = await self.session.advisory.advise(view)
            except Exception:
                logger.exception("Advisory step failed")
                advice = None
            outcomes.append(
                await dispatcher.deliver(SUGGESTIONS, render_advice(SUGGESTIONS_TITLE, advice))
            )

        result = CycleResult(
            state=CycleState.COMPLETED,
            snapshot=snapshot,
            ranked_view=view,
            outcomes=outcomes,
            started_at=started_at,
            finished_at=datetime.now(UTC),
        )

        duration_ms = int((time.monotonic() - start) * 1000)
        summary = (
            f"{len(snapshot)} quotes ({snapshot.dropped} dropped), "
            f"{len(view.gainers)} gainers, {len(view.losers)} losers, "
            f"{len(view.alerts)} alerts, "
            f"delivered {len(outcomes) - len(result.failed_destinations)}/{len(outcomes)} "
            f"in {duration_ms}ms"
        )
        if result.failed_destinations:
            logger.warning(
                f"Market cycle completed with delivery failures: {summary}",
                extra={"failed_destinations": result.failed_destinations},
            )
        else:
            logger.info(f"Market cycle completed: {summary}")
        return result
