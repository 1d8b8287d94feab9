"""
Inbound chat commands.

Usage:
    from moverbot.commands import build_router

    router = build_router(settings)
    reply = await router.dispatch(session, message)
"""

from moverbot.commands.handlers import build_router
from moverbot.commands.router import (
    MARKET_DATA_UNAVAILABLE,
    Command,
    CommandContext,
    CommandRouter,
    ParsedCommand,
    parse_command,
)

__all__ = [
    "MARKET_DATA_UNAVAILABLE",
    "Command",
    "CommandContext",
    "CommandRouter",
    "ParsedCommand",
    "build_router",
    "parse_command",
]
