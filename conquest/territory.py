"""
Territories: maximal connected regions of same-owner cells.

TerritoryIndex owns every Territory object and keeps the cell -> territory
and player -> territory back-references consistent while territories are
discovered, grown, merged, split and discarded.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .board import Board, Cell
from .errors import InvariantViolation
from .players import PlayerManager

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Territory:
    """A connected same-owner region with its own treasury."""
    id: int
    owner: int
    cells: set[int] = field(default_factory=set)  # cell indices
    money: int = 0

    def size(self) -> int:
        return len(self.cells)

    def is_controllable(self) -> bool:
        """Two or more cells: must hold exactly one capital."""
        return len(self.cells) >= 2

    def income(self) -> int:
        return len(self.cells)

    def on_start(self):
        """Owner's first turn: collect income, no salaries yet."""
        self.money += self.income()

    def on_turn(self, upkeep: int):
        """Regular turn: collect income and pay unit salaries."""
        self.money += self.income() - upkeep

    def is_bankrupt(self) -> bool:
        return self.money < 0

    def __repr__(self) -> str:
        return f"Territory(id={self.id}, owner={self.owner}, cells={len(self.cells)}, money={self.money})"


class TerritoryIndex:
    """Arena of territories for one board."""

    def __init__(self, board: Board, players: PlayerManager):
        self.board = board
        self.players = players
        self.territories: dict[int, Territory] = {}
        self._next_id = 1

    # Discovery
    def discover(self) -> list[Territory]:
        """
        Build the initial partition from scratch.

        Scans cells row-major; every unassigned cell seeds a flood fill that
        becomes one territory. Each cell is visited once overall.
        """
        for territory in list(self.territories.values()):
            self.delete(territory)
        for cell in self.board:
            cell.territory_id = None

        for cell in self.board:
            if cell.territory_id is not None:
                continue
            if cell.owner is None:
                message = f"{cell} has no owner, cannot assign it to a territory"
                logger.error(message)
                raise InvariantViolation(message)
            self.create(cell.owner, self.board.connected_cells(cell))

        logger.debug(f"Discovered {len(self.territories)} territories")
        return list(self.territories.values())

    @staticmethod
    def partition(board: Board) -> set[tuple[Optional[int], frozenset[int]]]:
        """Ground-truth partition of the board as (owner, cell indices) pairs. Does not mutate."""
        seen: set[int] = set()
        result = set()
        for cell in board:
            if cell.index in seen:
                continue
            component = frozenset(c.index for c in board.connected_cells(cell))
            seen |= component
            result.add((cell.owner, component))
        return result

    def snapshot(self) -> set[tuple[int, frozenset[int]]]:
        """Current partition in the same shape as partition()."""
        return {(t.owner, frozenset(t.cells)) for t in self.territories.values()}

    # Mutation
    def create(self, owner: int, cells: Iterable[Cell] = ()) -> Territory:
        """Create a territory for owner, taking the given cells away from their current territories."""
        player = self.players.get(owner)
        if player is None:
            message = f"Cannot create a territory for unknown owner {owner!r}"
            logger.error(message)
            raise InvariantViolation(message)

        territory = Territory(id=self._next_id, owner=owner)
        self._next_id += 1
        self.territories[territory.id] = territory
        player.territories.add(territory.id)
        self.add_cells(territory, cells)
        return territory

    def add_cells(self, territory: Territory, cells: Iterable[Cell]):
        """Move cells into territory, detaching them from any previous territory."""
        for cell in cells:
            if cell.territory_id is not None and cell.territory_id != territory.id:
                previous = self.territories.get(cell.territory_id)
                if previous is not None:
                    previous.cells.discard(cell.index)
            cell.territory_id = territory.id
            territory.cells.add(cell.index)

    def remove_cell(self, territory: Territory, cell: Cell):
        territory.cells.discard(cell.index)
        if cell.territory_id == territory.id:
            cell.territory_id = None

    def absorb(self, main: Territory, other: Territory):
        """Merge other into main: money and cells move over, other is discarded."""
        main.money += other.money
        self.add_cells(main, self.cells_of(other))
        other.money = 0
        self.delete(other)

    def delete(self, territory: Territory):
        """Discard a territory and detach it from its owner."""
        player = self.players.get(territory.owner)
        if player is not None:
            player.territories.discard(territory.id)
        for index in territory.cells:
            cell = self.board.cell_at(index)
            if cell.territory_id == territory.id:
                cell.territory_id = None
        territory.cells = set()
        self.territories.pop(territory.id, None)

    # Queries
    def get(self, territory_id: Optional[int]) -> Optional[Territory]:
        if territory_id is None:
            return None
        return self.territories.get(territory_id)

    def of_cell(self, cell: Cell) -> Optional[Territory]:
        return self.get(cell.territory_id)

    def cells_of(self, territory: Territory) -> list[Cell]:
        """Member cells in board order."""
        return [self.board.cell_at(i) for i in sorted(territory.cells)]

    def neighbors(self, territory: Territory) -> list[Cell]:
        """Cells adjacent to the territory that are not part of it, in board order."""
        found: dict[int, Cell] = {}
        for cell in self.cells_of(territory):
            for neighbor in self.board.get_neighbors(cell):
                if neighbor.index not in territory.cells:
                    found[neighbor.index] = neighbor
        return [found[i] for i in sorted(found)]

    def by_owner(self, owner: int) -> list[Territory]:
        return [t for t in self.territories.values() if t.owner == owner]

    def __iter__(self):
        return iter(list(self.territories.values()))

    def __len__(self) -> int:
        return len(self.territories)

    def validate_integrity(self) -> list[str]:
        """Check partition invariants; returns a list of problems, empty when consistent."""
        problems = []
        claimed: dict[int, int] = {}
        for territory in self.territories.values():
            if not territory.cells:
                problems.append(f"territory {territory.id} is empty")
                continue
            for index in territory.cells:
                cell = self.board.cell_at(index)
                if index in claimed:
                    problems.append(f"cell {index} claimed by {claimed[index]} and {territory.id}")
                claimed[index] = territory.id
                if cell.territory_id != territory.id:
                    problems.append(f"cell {index} points at {cell.territory_id}, not {territory.id}")
                if cell.owner != territory.owner:
                    problems.append(f"cell {index} owner {cell.owner} differs from territory {territory.id}")
            start = self.board.cell_at(min(territory.cells))
            component = {c.index for c in self.board.connected_cells(start)}
            if component != territory.cells:
                problems.append(f"territory {territory.id} is not exactly one connected component")
            player = self.players.get(territory.owner)
            if player is None or territory.id not in player.territories:
                problems.append(f"territory {territory.id} missing from its owner's territories")

        for cell in self.board:
            if cell.index not in claimed:
                problems.append(f"cell {cell.index} belongs to no territory")
        return problems
