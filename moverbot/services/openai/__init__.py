"""
OpenAI advisory package.

Usage:
    from moverbot.services.openai import (
        AdvisoryBridge,
        OpenAIAdviceGenerator,
        OpenAIClientManager,
    )

    manager = OpenAIClientManager()
    bridge = AdvisoryBridge(OpenAIAdviceGenerator(manager), picks=3)
    text = await bridge.advise(ranked_view)
"""

from moverbot.services.openai.advisory import (
    AdviceContext,
    AdviceGenerator,
    AdvisoryBridge,
    OpenAIAdviceGenerator,
    prompt_kind,
)
from moverbot.services.openai.client import AdvisoryCircuit, OpenAIClientManager
from moverbot.services.openai.config import AdviceKind, OpenAISettings, get_settings

__all__ = [
    "AdviceContext",
    "AdviceGenerator",
    "AdviceKind",
    "AdvisoryBridge",
    "AdvisoryCircuit",
    "OpenAIAdviceGenerator",
    "OpenAIClientManager",
    "OpenAISettings",
    "get_settings",
    "prompt_kind",
]
