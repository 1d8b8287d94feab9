"""Messaging gateways.

A gateway resolves destination ids and sends text to them. Two implementations:

- ``AppriseGateway`` delivers through Apprise URLs
  (Discord, Telegram, Slack, ntfy, webhooks, ...).
- ``InMemoryGateway`` records messages instead of sending them (dry runs).

Apprise URL formats:
    discord://webhook_id/webhook_token
    tgram://bot_token/chat_id
    slack://TokenA/TokenB/TokenC/#channel
    ntfy://topic
    json://hostname/path
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Mapping, Protocol, runtime_checkable

import apprise

from moverbot.core.exceptions import DeliveryFailedError, DestinationNotFoundError
from moverbot.core.logging import get_logger


logger = get_logger("notifications.gateway")

DEFAULT_MAX_MESSAGE_LENGTH = 2000  # Discord message limit


@dataclass(frozen=True)
class DestinationHandle:
    """A resolved destination."""

    id: str
    target: str


@runtime_checkable
class MessagingGateway(Protocol):
    """What the dispatch layer needs from a messaging transport."""

    max_message_length: int

    async def resolve_destination(self, destination_id: str) -> DestinationHandle:
        """Raises DestinationNotFoundError."""
        ...

    async def send(self, handle: DestinationHandle, text: str) -> None:
        """Raises DeliveryFailedError."""
        ...


class AppriseGateway:
    """Gateway delivering through Apprise.

    Destination ids are looked up in ``destinations`` (id -> Apprise URL); an
    id that is itself a valid Apprise URL is used directly.
    """

    def __init__(
        self,
        destinations: Mapping[str, str] | None = None,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
    ):
        self._destinations = dict(destinations or {})
        self.max_message_length = max_message_length

    async def resolve_destination(self, destination_id: str) -> DestinationHandle:
        url = self._destinations.get(destination_id)
        if url is None and "://" in destination_id:
            url = destination_id
        if not url:
            raise DestinationNotFoundError(
                f"Unknown destination: {destination_id}",
                details={"destination": destination_id},
            )

        candidate = apprise.Apprise()
        if not candidate.add(url):
            raise DestinationNotFoundError(
                f"Invalid Apprise URL for destination {destination_id}",
                details={"destination": destination_id},
            )
        return DestinationHandle(id=destination_id, target=url)

    async def send(self, handle: DestinationHandle, text: str) -> None:
        apobj = apprise.Apprise()
        if not apobj.add(handle.target):
            raise DeliveryFailedError(
                "Invalid Apprise URL format", details={"destination": handle.id}
            )

        try:
            result = await apobj.async_notify(
                body=text,
                notify_type=apprise.NotifyType.INFO,
                body_format=apprise.NotifyFormat.TEXT,
            )
        except Exception as e:
            raise DeliveryFailedError(
                f"Apprise delivery raised: {e}", details={"destination": handle.id}
            ) from e

        if not result:
            raise DeliveryFailedError(
                "Apprise notify() returned False", details={"destination": handle.id}
            )
        logger.debug(f"Sent {len(text)} chars to {handle.id}")


@dataclass
class InMemoryGateway:
    """Gateway that records the most recent messages; every destination id resolves."""

    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH
    history_limit: int = 500
    sent: deque[tuple[str, str]] = field(init=False)

    def __post_init__(self) -> None:
        self.sent = deque(maxlen=self.history_limit)

    async def resolve_destination(self, destination_id: str) -> DestinationHandle:
        if not destination_id:
            raise DestinationNotFoundError("Empty destination id")
        return DestinationHandle(id=destination_id, target=f"memory://{destination_id}")

    async def send(self, handle: DestinationHandle, text: str) -> None:
        self.sent.append((handle.id, text))
        logger.info(f"[dry-run] {handle.id}: {len(text)} chars")

    def messages_for(self, destination_id: str) -> list[str]:
        return [text for dest, text in self.sent if dest == destination_id]
