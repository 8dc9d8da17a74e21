"""
Actors decide what a player does on their turn.

- HumanActor: interactive, driven by a front end
- ScriptedActor: greedy built-in opponent
- LlmActor: OpenAI-backed automated player
"""

from typing import Any, Optional

from conquest.config import ActorKind

from .base import Actor, ActorContext, AutomatedActor
from .human import HumanActor
from .scripted import ScriptedActor
from .llm import LlmActor, LlmActorConfig


def create_actor(
    kind: ActorKind,
    seed: Optional[int] = None,
    llm_config: Optional[LlmActorConfig] = None,
    llm_client: Any = None,
) -> Actor:
    """Build the actor variant for a kind."""
    if kind == ActorKind.HUMAN:
        return HumanActor()
    if kind == ActorKind.SCRIPTED:
        return ScriptedActor(seed=seed)
    if kind == ActorKind.LLM:
        return LlmActor(llm_config, client=llm_client)
    raise ValueError(f"Unknown actor kind: {kind}")


__all__ = [
    "Actor", "ActorContext", "AutomatedActor",
    "HumanActor", "ScriptedActor", "LlmActor", "LlmActorConfig",
    "create_actor",
]
