"""HTTP surface: the inbound command webhook."""

from moverbot.api.commands import router

__all__ = ["router"]
