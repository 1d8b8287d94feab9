"""
Command parsing and routing.

A message is a command when it starts with the configured prefix or with
``/`` (slash-command style). Unknown commands are ignored. Wrong arity
produces a usage reply. Handler failures are turned into user-facing text.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from moverbot.core.exceptions import (
    AdvisoryUnavailableError,
    AppException,
    CommandUsageError,
    FeedUnavailableError,
)
from moverbot.core.logging import get_logger
from moverbot.schemas import InboundMessage
from moverbot.services.notifications import ADVICE_UNAVAILABLE

if TYPE_CHECKING:
    from moverbot.session import BotSession

logger = get_logger("commands.router")

SLASH_PREFIX = "/"
MARKET_DATA_UNAVAILABLE = "Market data is unavailable right now."
UNEXPECTED_ERROR = "Something went wrong handling that command."


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: tuple[str, ...] = ()


def parse_command(text: str, prefix: str = "!") -> ParsedCommand | None:
    """Split ``!name arg ...`` or ``/name arg ...`` into a lowercased name and args."""
    stripped = (text or "").strip()
    for candidate in (prefix, SLASH_PREFIX):
        if candidate and stripped.startswith(candidate):
            body = stripped[len(candidate):]
            break
    else:
        return None

    parts = body.split()
    if not parts:
        return None
    return ParsedCommand(name=parts[0].lower(), args=tuple(parts[1:]))


@dataclass
class CommandContext:
    """Everything a handler sees for one inbound message."""

    session: "BotSession"
    message: InboundMessage
    command: str
    args: tuple[str, ...] = ()


Handler = Callable[[CommandContext], Awaitable[str]]


@dataclass(frozen=True)
class Command:
    name: str
    handler: Handler
    usage: str
    description: str = ""
    arity: int = 0
    variadic: bool = False  # arity is a minimum
    aliases: tuple[str, ...] = field(default_factory=tuple)

    def accepts(self, count: int) -> bool:
        if self.variadic:
            return count >= self.arity
        return count == self.arity


class CommandRouter:
    """Maps command names and aliases to handlers."""

    def __init__(
        self,
        prefix: str = "!",
        suggestion_channel_id: Optional[str] = None,
        fallback_command: str = "suggest",
    ):
        self.prefix = prefix
        self.suggestion_channel_id = suggestion_channel_id
        self.fallback_command = fallback_command
        self._commands: dict[str, Command] = {}
        self._lookup: dict[str, Command] = {}

    def register(
        self,
        name: str,
        handler: Handler,
        usage: str,
        arity: int = 0,
        variadic: bool = False,
        aliases: tuple[str, ...] = (),
        description: str = "",
    ) -> Command:
        command = Command(
            name=name.lower(),
            handler=handler,
            usage=usage,
            description=description,
            arity=arity,
            variadic=variadic,
            aliases=tuple(a.lower() for a in aliases),
        )
        for key in (command.name, *command.aliases):
            if key in self._lookup:
                raise ValueError(f"Command name already registered: {key}")
        self._commands[command.name] = command
        self._lookup[command.name] = command
        for alias in command.aliases:
            self._lookup[alias] = command
        logger.debug(f"Registered command: {command.name}")
        return command

    def get(self, name: str) -> Command | None:
        return self._lookup.get(name.lower())

    @property
    def commands(self) -> list[Command]:
        return list(self._commands.values())

    def usage_text(self, command: Command) -> str:
        return f"Usage: {self.prefix}{command.usage}"

    def resolve(self, message: InboundMessage) -> tuple[Command, tuple[str, ...]] | None:
        """Find the command and arguments a message addresses, if any."""
        if message.is_bot:
            return None

        parsed = parse_command(message.content, self.prefix)
        if parsed is not None:
            command = self.get(parsed.name)
            return (command, parsed.args) if command else None

        # Plain text in the suggestion channel is a free-form question
        if (
            self.suggestion_channel_id
            and message.channel_id == self.suggestion_channel_id
            and message.content.strip()
        ):
            command = self.get(self.fallback_command)
            if command:
                return command, tuple(message.content.split())
        return None

    async def dispatch(self, session: "BotSession", message: InboundMessage) -> str | None:
        """Handle one inbound message; returns the reply text or None to ignore."""
        resolved = self.resolve(message)
        if resolved is None:
            return None
        command, args = resolved

        if not command.accepts(len(args)):
            return self.usage_text(command)

        ctx = CommandContext(session=session, message=message, command=command.name, args=args)
        log_extra = {"command": command.name, "channel_id": message.channel_id}
        try:
            reply = await command.handler(ctx)
        except CommandUsageError:
            return self.usage_text(command)
        except FeedUnavailableError as e:
            logger.warning(f"Command {command.name} failed: {e.message}", extra=log_extra)
            return MARKET_DATA_UNAVAILABLE
        except AdvisoryUnavailableError:
            return ADVICE_UNAVAILABLE
        except AppException as e:
            logger.info(f"Command {command.name}: {e.message}", extra=log_extra)
            return e.message
        except Exception:
            logger.exception(f"Command {command.name} crashed", extra=log_extra)
            return UNEXPECTED_ERROR

        logger.info(f"Handled command {command.name}", extra=log_extra)
        return reply
