"""Inbound command webhook."""

from __future__ import annotations

from fastapi import APIRouter, Request

from moverbot.schemas import CommandReply, InboundMessage


router = APIRouter(prefix="/commands", tags=["Commands"])


@router.post(
    "",
    response_model=CommandReply,
    summary="Handle a chat message",
    description="Route a forwarded chat message to a bot command and return the reply.",
)
async def handle_command(message: InboundMessage, request: Request) -> CommandReply:
    """
    Run the matching command for a forwarded message.

    Bot-authored messages, plain chat and unknown commands get a null reply.
    """
    state = request.app.state
    reply = await state.command_router.dispatch(state.session, message)
    return CommandReply(reply=reply)
