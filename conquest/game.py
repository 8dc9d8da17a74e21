"""
Game composition root.

Wires the movement engine and turn controller to one GameState, runs the
autoplay loop for automated actors and exposes the operations an actor
needs: buying, moving and ending turns.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .board import Cell
from .generation import save_layout
from .movement import MoveReport, MovementEngine
from .players import Player
from .state import GameState
from .territory import Territory
from .turn import TurnController
from .units import Unit, UnitType

logger = logging.getLogger(__name__)


@dataclass
class PanelUpdate:
    """What a player-facing panel shows for the current selection."""
    player: Player
    territory: Optional[Territory] = None
    money: Optional[int] = None
    has_capital: bool = False


class Game:
    """A running game: state, rules and the autoplay loop."""

    def __init__(
        self,
        state: GameState,
        win_percentage: float = 60,
        on_win: Optional[Callable[[Player], None]] = None,
        on_update_panel: Optional[Callable[[PanelUpdate], None]] = None,
        turn_limit: Optional[int] = None,
    ):
        self.state = state
        self.movement = MovementEngine(state)
        self.turns = TurnController(state, win_percentage, on_win=on_win)
        self.turns.on_turn_start = self._handle_turn_start
        self.turns.on_turn_end = self._handle_turn_end
        self.on_update_panel = on_update_panel
        self.turn_limit = turn_limit

        self._autoplay_running = False
        self._must_pause_autoplay = False

        state.place_initial_capitals()

    @property
    def player(self) -> Optional[Player]:
        return self.turns.player

    @property
    def game_over(self) -> bool:
        return self.turns.game_over

    @property
    def winner(self) -> Optional[Player]:
        return self.turns.winner

    # Turn flow
    async def start(self):
        """Begin with the first player and run any automated turns."""
        self.turns.start()
        await self.autoplay()

    async def resume(self):
        if self._automated_actor() is not None:
            await self.autoplay()

    async def autoplay(self):
        """Play turns for automated actors until a human is up, the game ends or a pause is requested."""
        # Only one loop may run at a time
        if self._autoplay_running:
            return
        self._autoplay_running = True
        self._must_pause_autoplay = False
        try:
            actor = self._automated_actor()
            while actor is not None and not self.turn_limit_reached():
                await actor.do_turn()
                if self._must_pause_autoplay:
                    break
                self.next_turn()
                actor = self._automated_actor()
        finally:
            self._autoplay_running = False
            self._must_pause_autoplay = False

    def pause_autoplay(self):
        self._must_pause_autoplay = True

    async def next_turns(self):
        """End the current (human) turn and let automated players take theirs."""
        if not self._autoplay_running:
            self.next_turn()
            await self.autoplay()

    def next_turn(self) -> Optional[Player]:
        if self.game_over:
            return None
        return self.turns.end_turn()

    def _automated_actor(self):
        if self.game_over or self.player is None:
            return None
        actor = self.player.actor
        if actor is not None and actor.is_automated:
            return actor
        return None

    def turn_limit_reached(self) -> bool:
        return self.turn_limit is not None and self.turns.turn >= self.turn_limit

    def _handle_turn_start(self, player: Player):
        if player.actor is not None:
            player.actor.on_turn_start()

    def _handle_turn_end(self, player: Player):
        if player.actor is not None:
            player.actor.on_turn_end()

    # Actions
    def move(self, unit: Unit, cell: Cell, origin_territory: Optional[Territory] = None) -> MoveReport:
        """Move a unit for the active player."""
        return self.movement.move(unit, cell, self.player, origin_territory)

    def buy_unit(self, unit_type: UnitType, cell: Cell, territory: Territory) -> Optional[Unit]:
        """Buy a unit from a territory's treasury and drop it on a cell."""
        if not unit_type.is_buildable:
            logger.warning(f"{unit_type.name} is not buildable")
            return None
        if territory.money < unit_type.cost:
            logger.warning(f"Not enough money to buy {unit_type.name} ({territory.money} < {unit_type.cost})")
            return None

        unit = Unit(type=unit_type)
        if self.movement.move(unit, cell, self.player, territory):
            territory.money -= unit_type.cost
            return unit
        return None

    def panel_update(self, player: Player, territory: Optional[Territory] = None) -> PanelUpdate:
        update = PanelUpdate(player=player, territory=territory)
        if territory is not None:
            update.money = territory.money
            update.has_capital = self.state.capital_of(territory) is not None
        return update

    def update_panel(self, player: Player, territory: Optional[Territory] = None):
        if self.on_update_panel:
            self.on_update_panel(self.panel_update(player, territory))

    # Utility
    def save_layout(self, path: Path | str) -> list[int]:
        player_ids = [p.id for p in self.state.players.order]
        return save_layout(self.state.board, player_ids, path)

    def get_stats(self) -> dict:
        """Per-player statistics."""
        board_size = self.state.board.size()
        players = {}
        for player in self.state.players.order:
            territories = self.state.player_territories(player)
            cells = sum(t.size() for t in territories)
            players[player.name] = {
                "cells": cells,
                "cell_share": round(cells * 100 / board_size, 1),
                "territories": len(territories),
                "controllable_territories": sum(1 for t in territories if t.is_controllable()),
                "money": sum(t.money for t in territories),
                "units": len(self.state.units.get_units_by_owner(player.id)),
                "eliminated": player in self.state.players.eliminated,
            }
        return {
            "turn": self.turns.turn,
            "active_player": self.player.name if self.player else None,
            "winner": self.winner.name if self.winner else None,
            "board": self.state.board.get_stats(),
            "units": self.state.units.get_stats(),
            "players": players,
        }

    def check_integrity(self) -> list[str]:
        """Verify every settled-state invariant; returns problems, empty when consistent."""
        state = self.state
        problems = state.territories.validate_integrity()

        for unit in state.units:
            cell = state.cell_of(unit)
            if cell is None or cell.unit_id != unit.id:
                problems.append(f"unit {unit.id} and its cell disagree")
        for cell in state.board:
            if cell.unit_id is not None and state.units.get_unit(cell.unit_id) is None:
                problems.append(f"cell {cell.index} references missing unit {cell.unit_id}")

        for territory in state.territories:
            units = state.units_in(territory)
            capitals = [u for u in units if state.catalog.is_capital(u.type)]
            if territory.is_controllable() and len(capitals) != 1:
                problems.append(f"territory {territory.id} has {len(capitals)} capitals")
            if not territory.is_controllable() and units:
                problems.append(f"uncontrollable territory {territory.id} holds units")
            if territory.money < 0:
                problems.append(f"territory {territory.id} has negative money")
        return problems
