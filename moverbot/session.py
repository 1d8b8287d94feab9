"""Bot session: the shared, explicitly managed resources of one process.

The process entry point creates one ``BotSession`` at startup, passes it to
the scheduler and the command router, and closes it at shutdown.
"""

from __future__ import annotations

import httpx

from moverbot.core.config import Settings
from moverbot.core.logging import get_logger
from moverbot.services.feed import FeedClient
from moverbot.services.notifications import (
    AppriseGateway,
    Dispatcher,
    InMemoryGateway,
    MessagingGateway,
)
from moverbot.services.openai import (
    AdviceGenerator,
    AdviceKind,
    AdvisoryBridge,
    OpenAIAdviceGenerator,
    OpenAIClientManager,
    OpenAISettings,
)

logger = get_logger("session")


class BotSession:
    """Holds the feed client, gateway, dispatcher and advisory bridge."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        gateway: MessagingGateway,
        advice_generator: AdviceGenerator,
        openai_manager: OpenAIClientManager | None = None,
        advice_timeout: float | None = None,
        max_tokens: dict[AdviceKind, int] | None = None,
    ):
        self.settings = settings
        self.http = http_client
        self.gateway = gateway
        self.feed = FeedClient(
            http_client,
            url=settings.feed_url,
            feed_format=settings.feed_format,
            timeout=settings.feed_timeout,
            instrument_url_template=settings.instrument_url_template,
        )
        self.dispatcher = Dispatcher(gateway, settings.destination_roles)
        self.advisory = AdvisoryBridge(
            advice_generator,
            picks=settings.advice_picks,
            currency=settings.currency,
            max_tokens=max_tokens,
            timeout=advice_timeout,
        )
        self._openai_manager = openai_manager
        self._closed = False

    @classmethod
    def create(
        cls,
        settings: Settings,
        openai_settings: OpenAISettings | None = None,
    ) -> "BotSession":
        """Build a session with the production collaborators."""
        openai_settings = openai_settings or OpenAISettings()
        http_client = httpx.AsyncClient(follow_redirects=True)

        gateway: MessagingGateway
        if settings.dry_run:
            gateway = InMemoryGateway(max_message_length=settings.message_max_length)
        else:
            gateway = AppriseGateway(settings.destinations, settings.message_max_length)

        manager = OpenAIClientManager(openai_settings)
        session = cls(
            settings,
            http_client,
            gateway,
            OpenAIAdviceGenerator(manager),
            openai_manager=manager,
            # Small grace on top of the HTTP timeout so httpx reports first
            advice_timeout=openai_settings.request_timeout + 5.0,
            max_tokens={kind: openai_settings.max_tokens_for(kind) for kind in AdviceKind},
        )
        logger.info(
            "Session created",
            extra={
                "feed_url": settings.feed_url,
                "destinations": sorted(settings.destination_roles),
                "dry_run": settings.dry_run,
            },
        )
        return session

    async def close(self) -> None:
        """Release HTTP connections; safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self._openai_manager is not None:
            await self._openai_manager.close()
        await self.http.aclose()
        logger.info("Session closed")

    async def __aenter__(self) -> "BotSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
