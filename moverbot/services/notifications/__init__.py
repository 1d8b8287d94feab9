"""
Notification package: text rendering, messaging gateways and dispatch.

Usage:
    from moverbot.services.notifications import (
        AppriseGateway,
        Dispatcher,
        render_list,
        render_updates,
    )
"""

from moverbot.services.notifications.dispatch import Dispatcher, split_message
from moverbot.services.notifications.gateway import (
    AppriseGateway,
    DestinationHandle,
    InMemoryGateway,
    MessagingGateway,
)
from moverbot.services.notifications.message_builder import (
    ADVICE_UNAVAILABLE,
    NO_DATA,
    NOT_AVAILABLE,
    ListStyle,
    format_percent,
    format_price,
    render_advice,
    render_alerts,
    render_detail,
    render_list,
    render_updates,
)

__all__ = [
    # Dispatch
    "Dispatcher",
    "split_message",
    # Gateways
    "AppriseGateway",
    "DestinationHandle",
    "InMemoryGateway",
    "MessagingGateway",
    # Message building
    "ADVICE_UNAVAILABLE",
    "NO_DATA",
    "NOT_AVAILABLE",
    "ListStyle",
    "format_percent",
    "format_price",
    "render_advice",
    "render_alerts",
    "render_detail",
    "render_list",
    "render_updates",
]
