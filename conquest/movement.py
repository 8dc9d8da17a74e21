"""
Move validation and resolution.

A move either stays inside the unit's territory or steps onto one of the
territory's neighbor cells. Depending on the target it relocates the unit,
merges it with a friendly unit, or captures the cell, after which
territories are merged, split and given capitals until the board is
consistent again. Validation happens before any mutation, so a rejected
move leaves the state untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .board import Cell
from .combat import CombatReport, CombatResolver
from .players import Player
from .state import GameState
from .territory import Territory
from .units import Unit

logger = logging.getLogger(__name__)


@dataclass
class MoveReport:
    """Outcome of a move request. Falsy when the move was rejected."""
    accepted: bool = False
    reason: Optional[str] = None
    crossed_border: bool = False
    combat: Optional[CombatReport] = None
    merged_type: Optional[str] = None
    territories_merged: list[int] = field(default_factory=list)
    territories_created: list[int] = field(default_factory=list)
    territories_removed: list[int] = field(default_factory=list)
    capitals_installed: list[int] = field(default_factory=list)  # territory ids
    units_removed: int = 0

    def __bool__(self) -> bool:
        return self.accepted


class MovementEngine:
    """Validates and executes unit moves against a GameState."""

    def __init__(self, state: GameState, combat: Optional[CombatResolver] = None):
        self.state = state
        self.combat = combat or CombatResolver(state)

    def move(
        self,
        unit: Unit,
        cell: Cell,
        player: Player,
        origin_territory: Optional[Territory] = None,
    ) -> MoveReport:
        """
        Move a unit (placed, or bought and still in hand) to a cell.

        origin_territory is only used when the unit has no cell yet; a placed
        unit always acts from the territory it stands in.
        """
        report = MoveReport()
        state = self.state

        if unit.id is not None and cell.unit_id == unit.id:
            return self._reject(report, "Unit is already on this field")

        unit_cell = state.cell_of(unit)
        if unit_cell is not None and state.territory_of(unit_cell) is not None:
            territory = state.territory_of(unit_cell)
        elif origin_territory is not None:
            territory = origin_territory
        else:
            return self._reject(report, "No territory selected")

        if territory.owner != player.id:
            return self._reject(report, "Units can only be moved by the player owning their territory")
        if state.territory_of(cell) is None:
            return self._reject(report, "Field has no territory")

        is_moving_inside = cell.index in territory.cells
        is_moving_to_neighbors = not is_moving_inside and any(
            n.index in territory.cells for n in state.board.get_neighbors(cell)
        )
        if not is_moving_inside and not is_moving_to_neighbors:
            return self._reject(report, "Unit can only move to neighbors or inside same territory")
        if not is_moving_inside and not (unit.type.is_movable and unit.can_move):
            return self._reject(report, "Only movable units can be placed outside the territory")
        if is_moving_inside and not territory.is_controllable():
            return self._reject(report, "A single-field territory cannot hold units")

        renew: list[Territory] = []
        if cell.owner != player.id:
            if not self._capture(unit, cell, player, territory, report, renew):
                return report
        else:
            occupant = state.unit_at(cell)
            if occupant is not None and not self._merge(unit, occupant, report):
                return report

        state.units.place(unit, cell)
        if is_moving_to_neighbors:
            # One step out of the home territory spends the unit for this turn
            unit.can_move = False
            report.crossed_border = True

        self.renew_capitals(renew, report)
        report.accepted = True
        return report

    def get_field_defending_strength(self, cell: Cell) -> int:
        return self.combat.defending_strength(cell)

    def reachable_cells(self, unit: Unit, origin_territory: Optional[Territory] = None) -> list[Cell]:
        """Cells a move could target: the unit's territory plus its neighbors when the unit may leave."""
        unit_cell = self.state.cell_of(unit)
        territory = self.state.territory_of(unit_cell) if unit_cell else origin_territory
        if territory is None:
            return []
        cells = self.state.territories.cells_of(territory) if territory.is_controllable() else []
        if unit.type.is_movable and unit.can_move:
            cells = cells + self.state.territories.neighbors(territory)
        return [c for c in cells if c is not unit_cell]

    # Resolution steps
    def _merge(self, unit: Unit, stationary: Unit, report: MoveReport) -> bool:
        state = self.state
        unit_cell = state.cell_of(unit)
        stationary_cell = state.cell_of(stationary)
        if unit_cell and stationary_cell and unit_cell.territory_id != stationary_cell.territory_id:
            self._reject(report, "Only units in the same territory can merge together")
            return False
        if not unit.type.is_movable:
            self._reject(report, "Only movable units can be merged into another unit")
            return False
        if not stationary.type.is_buildable or not stationary.type.is_movable:
            self._reject(report, "Only buildable and movable units can merge together")
            return False

        merged = state.catalog.merged_type(stationary.type, unit.type)
        if merged is None:
            self._reject(report, "No type with same cost found to merge")
            return False

        logger.info(f"Units merged: {unit.type.name} + {stationary.type.name} -> {merged.name}")
        # A merge never refreshes movement: the stationary unit's state wins
        unit.can_move = stationary.can_move
        state.units.delete(stationary)
        unit.set_type(merged)
        report.merged_type = merged.name
        return True

    def _capture(
        self,
        unit: Unit,
        cell: Cell,
        player: Player,
        territory: Territory,
        report: MoveReport,
        renew: list[Territory],
    ) -> bool:
        state = self.state
        combat = self.combat.resolve(unit, cell)
        report.combat = combat
        if not combat.captured:
            self._reject(report, combat.notes[0] if combat.notes else "Attack repelled")
            return False

        lost_territory = state.territory_of(cell)
        defender = state.unit_at(cell)
        if defender is not None:
            if combat.capital_captured:
                logger.info(f"Capital of territory {lost_territory.id} captured, treasury of {lost_territory.money} lost")
                lost_territory.money = 0
            state.units.delete(defender)
            logger.info(f"Defending {defender.type.name} killed at {cell.coords}")

        # Transfer the cell
        cell.owner = player.id
        state.territories.remove_cell(lost_territory, cell)
        state.territories.add_cells(territory, [cell])
        if not lost_territory.cells:
            report.territories_removed.append(lost_territory.id)
            state.territories.delete(lost_territory)

        neighbors = state.board.get_neighbors(cell)
        self._merge_territories(territory, neighbors, player, report)
        enemy_cells = [n for n in neighbors if n.owner != player.id]
        self._split_territories(enemy_cells, report)

        for enemy_cell in enemy_cells:
            enemy_territory = state.territory_of(enemy_cell)
            if enemy_territory is not None and enemy_territory not in renew:
                renew.append(enemy_territory)
        # A bought unit may grow a lone cell into a controllable territory
        renew.append(territory)
        return True

    def _merge_territories(self, main: Territory, neighbors: list[Cell], player: Player, report: MoveReport):
        """Absorb every other territory of the attacker that now touches main."""
        state = self.state
        others: list[Territory] = []
        for neighbor in neighbors:
            if neighbor.owner != player.id:
                continue
            other = state.territory_of(neighbor)
            if other is not None and other is not main and other not in others:
                others.append(other)

        for other in others:
            # Only the destination's capital survives
            state.units.delete(state.capital_of(other))
            logger.info(f"Territory {other.id} merged into {main.id} ({other.money} money)")
            report.territories_merged.append(other.id)
            state.territories.absorb(main, other)

    def _split_territories(self, enemy_cells: list[Cell], report: MoveReport):
        """
        Carve disconnected fragments out of enemy territories.

        The first fragment reached for a territory keeps the territory object
        and its money; every further fragment becomes a new territory of the
        same owner.
        """
        state = self.state
        checked: set[int] = set()
        kept: set[int] = set()
        for enemy_cell in enemy_cells:
            if enemy_cell.index in checked:
                continue
            component = state.board.connected_cells(enemy_cell)
            indices = {c.index for c in component}
            checked.update(c.index for c in enemy_cells if c.index in indices)

            territory = state.territory_of(enemy_cell)
            if territory.id not in kept:
                kept.add(territory.id)
                continue

            fragment = state.territories.create(enemy_cell.owner, component)
            report.territories_created.append(fragment.id)
            logger.info(f"Territory {territory.id} split, new territory {fragment.id} with {fragment.size()} cells")

    def renew_capitals(self, territories: Iterable[Territory], report: Optional[MoveReport] = None):
        """
        Restore the capital invariant on the given territories.

        Controllable territories without a capital get one, on an empty cell
        if possible, otherwise replacing the weakest unit. Uncontrollable
        territories lose every unit.
        """
        state = self.state
        for territory in territories:
            if state.territories.get(territory.id) is not territory:
                continue  # merged away or emptied

            if territory.is_controllable():
                if state.capital_of(territory) is not None:
                    continue
                cells = state.territories.cells_of(territory)

                def cell_score(c: Cell) -> tuple[int, int]:
                    unit = state.unit_at(c)
                    return (unit.strength if unit else 0, c.index)

                target = min(cells, key=cell_score)
                state.units.delete(state.unit_at(target))
                state.units.add(state.catalog.capital, target)
                logger.info(f"New capital for territory {territory.id} at {target.coords}")
                if report is not None:
                    report.capitals_installed.append(territory.id)
            else:
                for unit in state.units_in(territory):
                    state.units.delete(unit)
                    logger.debug(f"Removed {unit.type.name} from uncontrollable territory {territory.id}")
                    if report is not None:
                        report.units_removed += 1

    def _reject(self, report: MoveReport, reason: str) -> MoveReport:
        logger.warning(reason)
        report.accepted = False
        report.reason = reason
        return report
