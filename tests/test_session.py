"""Tests for BotSession construction and teardown."""

from __future__ import annotations

import asyncio

from moverbot.services.notifications import AppriseGateway, InMemoryGateway
from moverbot.services.openai import OpenAISettings
from moverbot.session import BotSession
from tests.factories import make_settings


def _openai_settings() -> OpenAISettings:
    return OpenAISettings(_env_file=None, OPENAI_API_KEY="")


class TestBotSession:
    """Tests for BotSession.create."""

    def test_dry_run_uses_in_memory_gateway(self):
        """Dry runs record messages instead of sending them."""
        session = BotSession.create(make_settings(dry_run=True), _openai_settings())
        assert isinstance(session.gateway, InMemoryGateway)
        asyncio.run(session.close())

    def test_live_run_uses_apprise(self):
        """Live runs send through Apprise with every configured role."""
        settings = make_settings(dry_run=False, destinations={"updates-chan": "json://localhost/hook"})
        session = BotSession.create(settings, _openai_settings())
        assert isinstance(session.gateway, AppriseGateway)
        assert session.dispatcher.roles == {
            "updates": "updates-chan",
            "alerts": "alerts-chan",
            "suggestions": "suggest-chan",
        }
        asyncio.run(session.close())

    def test_session_wires_settings(self):
        """Feed and advisory options come from settings."""
        settings = make_settings(feed_timeout=7, advice_picks=5, currency="USD")
        session = BotSession.create(settings, _openai_settings())
        assert session.feed.timeout == 7
        assert session.advisory.picks == 5
        assert session.advisory.currency == "USD"
        asyncio.run(session.close())

    def test_close_is_idempotent(self):
        """Closing twice is harmless."""
        session = BotSession.create(make_settings(), _openai_settings())

        async def run():
            async with session:
                pass
            await session.close()

        asyncio.run(run())
