"""Tests for the FastAPI command webhook."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from moverbot.main import create_app
from tests.factories import make_session, make_settings


def _client(**overrides) -> TestClient:
    settings = make_settings(**overrides)
    return TestClient(create_app(settings, session=make_session(settings)))


class TestCommandWebhook:
    """Tests for POST /commands."""

    def test_command_reply(self):
        """A command message gets its reply text back."""
        with _client() as client:
            response = client.post("/commands", json={
                "channel_id": "general",
                "author": "rahim",
                "content": "!stock GP",
                "is_bot": False,
            })
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["reply"].startswith("GP\nLast price: 250.40 BDT")

    def test_bot_message_gets_null_reply(self):
        """Messages from bots are ignored."""
        with _client() as client:
            response = client.post("/commands", json={
                "channel_id": "general",
                "author": "other-bot",
                "content": "!gainers",
                "is_bot": True,
            })
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"reply": None}

    def test_plain_chat_gets_null_reply(self):
        """Ordinary chat outside the suggestion channel is ignored."""
        with _client() as client:
            response = client.post("/commands", json={"channel_id": "general", "content": "hi all"})
        assert response.json() == {"reply": None}

    def test_missing_channel_is_rejected(self):
        """channel_id is required."""
        with _client() as client:
            response = client.post("/commands", json={"content": "!gainers"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    def test_lifespan_wires_state_without_scheduler(self):
        """The lifespan wires session and runner but leaves the scheduler off when disabled."""
        with _client(scheduler_enabled=False) as client:
            state = client.app.state
            assert state.scheduler.running is False
            assert state.cycle_runner.session is state.session

    def test_scheduler_started_when_enabled(self):
        """The scheduler runs during the app's lifetime and stops on shutdown."""
        with _client(scheduler_enabled=True, cycle_interval_seconds=3600) as client:
            scheduler = client.app.state.scheduler
            assert scheduler.running
            assert scheduler.get_jobs_status()[0]["interval_seconds"] == 3600
        assert not scheduler.running
