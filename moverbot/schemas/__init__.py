"""Request and response schemas for the command webhook."""

from moverbot.schemas.commands import CommandReply, InboundMessage

__all__ = ["CommandReply", "InboundMessage"]
