"""
Scripted actor: a greedy built-in opponent.

Each turn it walks its controllable territories, attacks with units that
can win a fight (merging two weak units when that wins one), then spends
the treasury on the cheapest unit that can take a weak neighbor without
pushing upkeep above income.
"""

import asyncio
import logging
import random
from typing import Optional

from conquest.board import Cell
from conquest.config import ActorKind
from conquest.territory import Territory
from conquest.units import Unit, UnitType

from .base import AutomatedActor

logger = logging.getLogger(__name__)


class ScriptedActor(AutomatedActor):
    """Rule-based automated player."""

    kind = ActorKind.SCRIPTED

    def __init__(self, seed: Optional[int] = None, max_actions: int = 50):
        super().__init__()
        self.rng = random.Random(seed)
        self.max_actions = max_actions
        self.actions_taken = 0

    async def do_turn(self):
        self.actions_taken = 0
        state = self.game.state
        for territory in state.controllable_territories(self.player):
            # Earlier captures may have merged this territory into another one
            if state.territories.get(territory.id) is not territory:
                continue
            self._attack_with_units(territory)
            self._buy_and_attack(territory)
            await asyncio.sleep(0)
        logger.debug(f"{self.player.name} finished turn with {self.actions_taken} actions")

    def _attack_with_units(self, territory: Territory):
        state = self.game.state
        for unit in state.units_in(territory):
            if self.actions_taken >= self.max_actions:
                return
            if not (unit.type.is_movable and unit.can_move):
                continue
            cell = state.cell_of(unit)
            if cell is None:
                continue  # merged into another unit earlier this turn
            current = state.territory_of(cell)
            if current is None or current.owner != self.player.id:
                continue
            target = self._pick_target(current, unit.strength)
            if target is None and self._try_merge(unit, current):
                target = self._pick_target(current, unit.strength)
            if target is None:
                continue
            if self.game.move(unit, target):
                self.actions_taken += 1

    def _try_merge(self, unit: Unit, territory: Territory) -> bool:
        """Combine two ready units when the merged type can attack and its salary is covered."""
        state = self.game.state
        spare_income = territory.income() - state.upkeep_of(territory)
        for other in state.units_in(territory):
            if other is unit or not (other.type.is_buildable and other.type.is_movable and other.can_move):
                continue
            merged = state.catalog.merged_type(other.type, unit.type)
            if merged is None:
                continue
            extra_salary = merged.salary - other.type.salary - unit.type.salary
            if extra_salary > spare_income or self._pick_target(territory, merged.strength) is None:
                continue
            if self.game.move(unit, state.cell_of(other)):
                self.actions_taken += 1
                return True
        return False

    def _buy_and_attack(self, territory: Territory):
        state = self.game.state
        while self.actions_taken < self.max_actions and state.territories.get(territory.id) is territory:
            choice = self._affordable_attack(territory)
            if choice is None:
                return
            unit_type, target = choice
            if self.game.buy_unit(unit_type, target, territory) is None:
                return
            self.actions_taken += 1

    def _affordable_attack(self, territory: Territory) -> Optional[tuple[UnitType, Cell]]:
        """Cheapest buildable movable type that beats some neighbor and keeps upkeep within income."""
        state = self.game.state
        spare_income = territory.income() - state.upkeep_of(territory)
        candidates = sorted(
            (t for t in state.catalog.buildable() if t.is_movable),
            key=lambda t: (t.cost, t.strength),
        )
        for unit_type in candidates:
            if unit_type.cost > territory.money or unit_type.salary > spare_income:
                continue
            target = self._pick_target(territory, unit_type.strength)
            if target is not None:
                return unit_type, target
        return None

    def _pick_target(self, territory: Territory, strength: int) -> Optional[Cell]:
        """Best enemy neighbor the given strength can capture."""
        state = self.game.state
        movement = self.game.movement
        options = [
            cell for cell in state.territories.neighbors(territory)
            if cell.owner != self.player.id and movement.get_field_defending_strength(cell) < strength
        ]
        if not options:
            return None

        def score(cell: Cell) -> int:
            value = 0
            unit = state.unit_at(cell)
            if unit is not None and state.catalog.is_capital(unit.type):
                value += 10  # takes the treasury with it
            for neighbor in state.board.get_neighbors(cell):
                # Joining own territories grows income
                if neighbor.owner == self.player.id and neighbor.index not in territory.cells:
                    value += 3
            return value

        best = max(score(c) for c in options)
        return self.rng.choice([c for c in options if score(c) == best])
