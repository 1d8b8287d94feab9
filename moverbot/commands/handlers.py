"""Built-in bot commands."""

from __future__ import annotations

from moverbot.commands.router import CommandContext, CommandRouter
from moverbot.core.config import Settings
from moverbot.core.exceptions import CommandUsageError
from moverbot.services.feed import is_valid_ticker
from moverbot.services.notifications import (
    ListStyle,
    render_advice,
    render_alerts,
    render_detail,
    render_list,
)
from moverbot.services.ranking import rank

NO_FAVORITES = "No favorite stocks configured."


async def stock_command(ctx: CommandContext) -> str:
    """Single-instrument detail plus a short take from the advisor."""
    session = ctx.session
    if not is_valid_ticker(ctx.args[0]):
        raise CommandUsageError(f"Not a ticker: {ctx.args[0]!r}")
    quote = await session.feed.fetch_instrument(ctx.args[0])
    advice = await session.advisory.advise(quote)
    return "\n\n".join([
        render_detail(quote, session.settings.currency),
        render_advice("AI Suggestion", advice),
    ])


async def _ranked_view(ctx: CommandContext):
    settings = ctx.session.settings
    snapshot = await ctx.session.feed.fetch_snapshot()
    return rank(
        snapshot,
        favorites=settings.favorite_stocks,
        limit=settings.top_limit,
        alert_threshold=settings.alert_threshold,
    )


async def gainers_command(ctx: CommandContext) -> str:
    view = await _ranked_view(ctx)
    return render_list("Top Gainers", view.gainers, ListStyle.FULL, ctx.session.settings.currency)


async def losers_command(ctx: CommandContext) -> str:
    view = await _ranked_view(ctx)
    return render_list("Top Losers", view.losers, ListStyle.FULL, ctx.session.settings.currency)


async def favorites_command(ctx: CommandContext) -> str:
    if not ctx.session.settings.favorite_stocks:
        return NO_FAVORITES
    view = await _ranked_view(ctx)
    return render_list("Favorite Stocks", view.favorites, ListStyle.FULL, ctx.session.settings.currency)


async def alerts_command(ctx: CommandContext) -> str:
    settings = ctx.session.settings
    view = await _ranked_view(ctx)
    return render_alerts(view, settings.alert_threshold, settings.currency)


async def suggest_command(ctx: CommandContext) -> str:
    question = " ".join(ctx.args)
    advice = await ctx.session.advisory.advise(question)
    return render_advice("AI Suggestion", advice)


def build_router(settings: Settings) -> CommandRouter:
    """Router with every built-in command registered."""
    router = CommandRouter(
        prefix=settings.command_prefix,
        suggestion_channel_id=settings.suggestion_channel_id,
    )
    router.register(
        "stock", stock_command, "stock <TICKER>", arity=1,
        aliases=("price", "lookup"), description="Price details and a short take on one ticker",
    )
    router.register("gainers", gainers_command, "gainers", description="Top gainers right now")
    router.register("losers", losers_command, "losers", description="Top losers right now")
    router.register("favorites", favorites_command, "favorites", description="Your favorite stocks")
    router.register(
        "alerts", alerts_command, "alerts",
        description=f"Moves of at least {settings.alert_threshold:.2f}%",
    )
    router.register(
        "suggest", suggest_command, "suggest <question>", arity=1, variadic=True,
        description="Ask the market analyst a question",
    )

    async def help_command(ctx: CommandContext) -> str:
        lines = ["Commands:"]
        for command in router.commands:
            line = f"{router.prefix}{command.usage}"
            if command.description:
                line += f" - {command.description}"
            lines.append(line)
        return "\n".join(lines)

    router.register("help", help_command, "help", description="Show this list")
    return router
