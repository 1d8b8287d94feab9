"""moverbot: market movers, alerts and AI suggestions for chat channels."""

__version__ = "1.0.0"
