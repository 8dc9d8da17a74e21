"""
Actor interface: who decides what a player does on their turn.

Interactive actors leave the turn open until the game is told to move on;
automated actors play their whole turn inside do_turn().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from conquest.config import ActorKind
from conquest.game import Game
from conquest.players import Player
from conquest.territory import Territory


@dataclass
class ActorContext:
    """Handles an actor receives at game setup."""
    player: Player
    game: Game
    update_panel: Callable[[Optional[Territory]], None]


class Actor(ABC):
    """Base class for every actor variant."""

    kind: ActorKind

    def __init__(self):
        self.context: Optional[ActorContext] = None

    def init(self, context: ActorContext):
        self.context = context

    @property
    def is_automated(self) -> bool:
        return False

    @property
    def player(self) -> Player:
        return self.context.player

    @property
    def game(self) -> Game:
        return self.context.game

    def on_turn_start(self):
        pass

    def on_turn_end(self):
        pass


class AutomatedActor(Actor):
    """An actor that plays its turn without waiting for input."""

    @property
    def is_automated(self) -> bool:
        return True

    @abstractmethod
    async def do_turn(self):
        """Issue every move for the current turn."""
