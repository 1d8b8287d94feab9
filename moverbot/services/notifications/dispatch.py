"""Per-destination delivery with message splitting and failure isolation."""

from __future__ import annotations

import asyncio
from typing import Mapping

from moverbot.core.exceptions import AppException
from moverbot.core.logging import get_logger
from moverbot.domain import DestinationOutcome
from moverbot.services.notifications.gateway import MessagingGateway


logger = get_logger("notifications.dispatch")


def _hard_wrap(line: str, limit: int) -> list[str]:
    return [line[i : i + limit] for i in range(0, len(line), limit)]


def split_message(text: str, limit: int) -> list[str]:
    """Split text into chunks of at most ``limit`` characters.

    Splits happen between lines only; a chunk boundary is moved back to the
    last blank line in the chunk when there is one, so rendered blocks stay
    together. A single line longer than ``limit`` is hard-wrapped.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current: list[str] = []
    size = 0

    def flush(lines: list[str]) -> None:
        chunk = "\n".join(lines).strip("\n")
        if chunk:
            chunks.append(chunk)

    for line in text.split("\n"):
        if len(line) > limit:
            flush(current)
            current, size = [], 0
            chunks.extend(_hard_wrap(line, limit))
            continue

        added = len(line) + (1 if current else 0)
        if size + added > limit:
            # Prefer to cut at the last block separator
            if "" in current[1:]:
                cut = len(current) - 1 - current[::-1].index("")
                flush(current[:cut])
                current = current[cut + 1 :]
            else:
                flush(current)
                current = []
            size = len("\n".join(current))
            added = len(line) + (1 if current else 0)
            if size + added > limit:
                flush(current)
                current, size, added = [], 0, len(line)

        current.append(line)
        size += added

    flush(current)
    return chunks


class Dispatcher:
    """Delivers rendered text to destinations; never raises.

    ``roles`` maps a logical role (updates, alerts, suggestions) to the
    gateway destination id.
    """

    def __init__(self, gateway: MessagingGateway, roles: Mapping[str, str]):
        self.gateway = gateway
        self.roles = dict(roles)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    async def deliver(self, role: str, text: str) -> DestinationOutcome:
        """Resolve and send to one destination, splitting to the gateway limit."""
        destination_id = self.roles.get(role)
        if not destination_id:
            return DestinationOutcome(
                destination=role, delivered=False, error="Destination not configured"
            )

        sent = 0
        try:
            handle = await self.gateway.resolve_destination(destination_id)
            for chunk in split_message(text, self.gateway.max_message_length):
                await self.gateway.send(handle, chunk)
                sent += 1
        except AppException as e:
            logger.warning(
                f"Delivery to {role} failed: {e.message}",
                extra={"destination": role, "chunks_sent": sent, "error_code": e.error_code},
            )
            return DestinationOutcome(destination=role, delivered=False, chunks_sent=sent, error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error delivering to {role}")
            return DestinationOutcome(destination=role, delivered=False, chunks_sent=sent, error=str(e))

        logger.info(f"Delivered {sent} message(s) to {role}")
        return DestinationOutcome(destination=role, delivered=True, chunks_sent=sent)

    async def deliver_many(self, messages: Mapping[str, str]) -> list[DestinationOutcome]:
        """Deliver to several roles concurrently; one failure never affects another."""
        roles = list(messages)
        results = await asyncio.gather(
            *(self.deliver(role, messages[role]) for role in roles)
        )
        return list(results)
