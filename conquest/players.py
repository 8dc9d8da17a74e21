"""
Players and turn order.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Player:
    """A participant. Territories are referenced by id."""
    id: int
    name: str
    actor: Any = None  # actors.base.Actor, kept untyped to avoid a package cycle
    territories: set[int] = field(default_factory=set)
    turns_played: int = 0

    def __repr__(self) -> str:
        return f"Player({self.id}, {self.name!r})"


class PlayerManager:
    """Owns the fixed turn order and tracks which players are still in the game."""

    def __init__(self, players: list[Player]):
        ids = [p.id for p in players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Player ids must be unique: {ids}")
        self._order: list[Player] = list(players)
        self.players: list[Player] = list(players)
        self.eliminated: list[Player] = []

    @property
    def order(self) -> list[Player]:
        """Every player ever in the game, in turn order."""
        return list(self._order)

    def first(self) -> Player:
        return self.players[0]

    def get(self, player_id: Optional[int]) -> Optional[Player]:
        for player in self._order:
            if player.id == player_id:
                return player
        return None

    def next(self, player: Player) -> Optional[Player]:
        """Next active player after the given one in turn order, wrapping around."""
        if not self.players:
            return None
        start = self._order.index(player)
        count = len(self._order)
        for step in range(1, count + 1):
            candidate = self._order[(start + step) % count]
            if candidate in self.players:
                return candidate
        return None

    def delete(self, player: Player):
        """Eliminate a player from the rotation."""
        if player in self.players:
            self.players.remove(player)
            self.eliminated.append(player)
            logger.info(f"{player.name} has been eliminated")

    def __iter__(self):
        return iter(list(self.players))

    def __len__(self) -> int:
        return len(self.players)
