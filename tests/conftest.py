"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from moverbot.core.config import Settings
from moverbot.core.exceptions import AdvisoryUnavailableError
from moverbot.session import BotSession
from tests.factories import FakeAdviceGenerator, make_session, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def advice_generator() -> FakeAdviceGenerator:
    return FakeAdviceGenerator()


@pytest.fixture
def failing_generator() -> FakeAdviceGenerator:
    return FakeAdviceGenerator(error=AdvisoryUnavailableError("quota exceeded"))


@pytest.fixture
def session(settings, advice_generator) -> BotSession:
    return make_session(settings, generator=advice_generator)
