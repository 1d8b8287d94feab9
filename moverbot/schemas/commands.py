"""Inbound command schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    """A chat message forwarded to the bot by a transport."""

    channel_id: str = Field(..., description="Channel the message was posted in")
    author: str = Field(default="", description="Display name or id of the author")
    content: str = Field(default="", max_length=4000, description="Raw message text")
    is_bot: bool = Field(default=False, description="Message was posted by a bot")

    model_config = {
        "json_schema_extra": {
            "example": {"channel_id": "123", "author": "rahim", "content": "!stock GP", "is_bot": False}
        }
    }


class CommandReply(BaseModel):
    """Reply text for the transport to post, or null when the message is ignored."""

    reply: Optional[str] = Field(default=None, description="Reply text")
