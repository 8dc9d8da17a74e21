"""
Hex board for the territorial-conquest engine.

Cells live on an offset grid addressed by (x, y) with x the column. Odd
columns are drawn half a cell lower than even ones, so neighbor offsets
depend on column parity. Positions are numbered row-major; a cell's index
(x + y * columns) is its stable handle everywhere else in the engine.

Shaped boards (hexagon, ring) leave some positions of the enclosing
rectangle without a cell. Those positions behave like the area off the
board: no lookup returns them and they are never anyone's neighbor.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


# (dx, dy) pairs, six per column parity
NEIGHBORS_ODD_COLUMN = ((-1, 0), (0, -1), (1, 0), (1, 1), (0, 1), (-1, 1))
NEIGHBORS_EVEN_COLUMN = ((-1, -1), (0, -1), (1, -1), (1, 0), (0, 1), (-1, 0))


def hex_distance(a: tuple[int, int], b: tuple[int, int]) -> int:
    """Step count between two offset positions, ignoring which cells exist."""
    def axial(x, y):
        return x, y - (x - (x & 1)) // 2

    aq, ar = axial(*a)
    bq, br = axial(*b)
    dq, dr = aq - bq, ar - br
    return (abs(dq) + abs(dr) + abs(dq + dr)) // 2


@dataclass(eq=False)
class Cell:
    """Individual hex cell on the board."""
    x: int  # column
    y: int  # row
    index: int
    owner: Optional[int] = None  # player id
    territory_id: Optional[int] = None
    unit_id: Optional[int] = None

    @property
    def coords(self) -> tuple[int, int]:
        return (self.x, self.y)

    def __repr__(self) -> str:
        return f"Cell({self.x}, {self.y}, owner={self.owner})"


class Board:
    """
    Offset hex grid of columns x rows positions.

    Exactly one Cell object exists per present position; cells are created
    here and never destroyed, only mutated. `present` limits which positions
    hold a cell, every position does when it is omitted.
    """

    def __init__(self, columns: int, rows: int, owners: Optional[list[int]] = None,
                 present: Optional[Iterable[int]] = None):
        if columns < 1 or rows < 1:
            raise ValueError(f"Board needs at least one column and one row, got {columns}x{rows}")
        self.columns = columns
        self.rows = rows
        present = set(range(columns * rows)) if present is None else set(present)
        self._positions: list[Optional[Cell]] = [None] * (columns * rows)
        self.cells: list[Cell] = []

        for y in range(rows):
            for x in range(columns):
                index = x + y * columns
                if index in present:
                    cell = Cell(x=x, y=y, index=index)
                    self._positions[index] = cell
                    self.cells.append(cell)

        if not self.cells:
            raise ValueError(f"Board {columns}x{rows} has no cells")

        if owners is not None:
            self.assign_owners(owners)

    def assign_owners(self, owners: list[int]):
        """Assign cell owners from a row-major sequence covering the present cells."""
        if len(owners) != len(self.cells):
            raise ValueError(f"Expected {len(self.cells)} owners, got {len(owners)}")
        for cell, owner in zip(self.cells, owners):
            cell.owner = owner

    def size(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    # Lookups
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.columns and 0 <= y < self.rows

    def get_cell(self, x: int, y: int) -> Optional[Cell]:
        """Get cell at offset coordinates, or None off the board or off its shape."""
        if not self.in_bounds(x, y):
            return None
        return self._positions[x + y * self.columns]

    def cell_at(self, index: int) -> Cell:
        cell = self._positions[index]
        if cell is None:
            raise IndexError(f"Position {index} has no cell")
        return cell

    def get_neighbors(self, cell: Cell) -> list[Cell]:
        """Get adjacent cells. Positions off the board are skipped, there is no wraparound."""
        offsets = NEIGHBORS_ODD_COLUMN if cell.x % 2 else NEIGHBORS_EVEN_COLUMN
        neighbors = []
        for dx, dy in offsets:
            neighbor = self.get_cell(cell.x + dx, cell.y + dy)
            if neighbor is not None:
                neighbors.append(neighbor)
        return neighbors

    def are_adjacent(self, a: Cell, b: Cell) -> bool:
        return b in self.get_neighbors(a)

    def connected_cells(self, start: Cell) -> list[Cell]:
        """
        Flood fill over same-owner neighbors.

        Iterative with an explicit stack so large boards cannot exhaust the
        recursion limit. Returns cells in visit order, start first.
        """
        visited = {start.index}
        result = []
        stack = [start]
        while stack:
            cell = stack.pop()
            result.append(cell)
            for neighbor in self.get_neighbors(cell):
                if neighbor.index in visited or neighbor.owner != start.owner:
                    continue
                visited.add(neighbor.index)
                stack.append(neighbor)
        return result

    # Utility
    def get_cells_by_owner(self, owner: int) -> list[Cell]:
        return [c for c in self.cells if c.owner == owner]

    def owners(self) -> list[Optional[int]]:
        """Owner of every cell in row-major order."""
        return [c.owner for c in self.cells]

    def get_stats(self) -> dict:
        """Get board statistics."""
        owner_counts: dict = {}
        for cell in self.cells:
            owner_counts[cell.owner] = owner_counts.get(cell.owner, 0) + 1

        return {
            "total_cells": len(self.cells),
            "columns": self.columns,
            "rows": self.rows,
            "owner_distribution": owner_counts,
            "occupied_cells": sum(1 for c in self.cells if c.unit_id is not None),
        }
