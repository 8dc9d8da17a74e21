"""
Unit types and placed units for the conquest engine.

Handles the static catalog of unit type definitions and the registry of
units currently standing on the board.
"""

import logging
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .board import Board, Cell
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitType:
    """Immutable unit type definition."""
    name: str
    strength: int
    cost: int
    salary: int
    is_buildable: bool
    is_movable: bool


DEFAULT_CAPITAL = UnitType(
    name="Gym", strength=1, cost=0, salary=0, is_buildable=False, is_movable=False,
)

DEFAULT_UNIT_TYPES = [
    DEFAULT_CAPITAL,
    UnitType("Instructor", strength=2, cost=14, salary=0, is_buildable=True, is_movable=False),
    UnitType("Leek", strength=1, cost=8, salary=2, is_buildable=True, is_movable=True),
    UnitType("Gym Bro", strength=2, cost=16, salary=5, is_buildable=True, is_movable=True),
    UnitType("Bodybuilder", strength=3, cost=24, salary=15, is_buildable=True, is_movable=True),
    UnitType("Strongman", strength=4, cost=32, salary=45, is_buildable=True, is_movable=True),
]


class UnitCatalog:
    """
    Fixed registry of unit types.

    Contains exactly one capital type: not buildable, not movable,
    strength 1, cost 0, salary 0.
    """

    def __init__(self, unit_types: Optional[list[UnitType]] = None):
        self.types: list[UnitType] = list(unit_types if unit_types is not None else DEFAULT_UNIT_TYPES)
        self.capital = self._validate()

    @classmethod
    def load(cls, path: Path | str) -> "UnitCatalog":
        """Load catalog from YAML; fall back to the built-in catalog if the file is missing."""
        path = Path(path)
        if not path.exists():
            logger.info(f"Unit catalog not found at {path}, using built-in catalog")
            return cls()

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Unit catalog {path} is not valid YAML: {e}") from e

        definitions = data.get("unit_types") if isinstance(data, dict) else None
        if not isinstance(definitions, list) or not definitions:
            raise ConfigurationError(f"Unit catalog {path} has no unit_types list")

        unit_types = []
        for info in definitions:
            if not isinstance(info, dict) or "name" not in info:
                raise ConfigurationError(f"Malformed unit type entry in {path}: {info!r}")
            try:
                unit_types.append(UnitType(
                    name=str(info["name"]),
                    strength=int(info.get("strength", 0)),
                    cost=int(info.get("cost", 0)),
                    salary=int(info.get("salary", 0)),
                    is_buildable=bool(info.get("buildable", False)),
                    is_movable=bool(info.get("movable", False)),
                ))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Bad value in unit type {info.get('name')!r}: {e}") from e

        catalog = cls(unit_types)
        logger.info(f"Loaded {len(catalog.types)} unit types from {path}")
        return catalog

    def _validate(self) -> UnitType:
        names = [t.name for t in self.types]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ConfigurationError(f"Duplicate unit type names: {sorted(duplicates)}")

        for unit_type in self.types:
            if min(unit_type.strength, unit_type.cost, unit_type.salary) < 0:
                raise ConfigurationError(f"Unit type {unit_type.name!r} has a negative value")

        capitals = [t for t in self.types if not t.is_buildable and not t.is_movable]
        if len(capitals) != 1:
            raise ConfigurationError(
                f"Catalog needs exactly one non-buildable, non-movable capital type, found {len(capitals)}"
            )
        capital = capitals[0]
        if (capital.strength, capital.cost, capital.salary) != (1, 0, 0):
            raise ConfigurationError(
                f"Capital type {capital.name!r} must have strength 1, cost 0 and salary 0"
            )

        soldiers = [t for t in self.types if t.is_buildable and t.is_movable]
        if not soldiers:
            raise ConfigurationError("Catalog needs at least one buildable, movable unit type")
        cheapest = min(soldiers, key=lambda t: t.cost)
        doubled = cheapest.cost * 2
        if not any(t.cost == doubled for t in soldiers):
            raise ConfigurationError(
                f"No buildable, movable unit type costs {doubled}, so two {cheapest.name} units cannot merge"
            )
        return capital

    def get(self, name: str) -> Optional[UnitType]:
        for unit_type in self.types:
            if unit_type.name == name:
                return unit_type
        return None

    def buildable(self) -> list[UnitType]:
        return [t for t in self.types if t.is_buildable]

    def merged_type(self, a: UnitType, b: UnitType) -> Optional[UnitType]:
        """Find the movable, buildable type whose cost is exactly a.cost + b.cost."""
        cost = a.cost + b.cost
        for unit_type in self.types:
            if unit_type.cost == cost and unit_type.is_movable and unit_type.is_buildable:
                return unit_type
        return None

    def is_capital(self, unit_type: UnitType) -> bool:
        return unit_type == self.capital


@dataclass(eq=False)
class Unit:
    """
    A piece on the board, or held in hand while a purchase is pending.

    id and cell_index are None until the unit is placed.
    """
    type: UnitType
    can_move: Optional[bool] = None
    id: Optional[int] = None
    cell_index: Optional[int] = None

    def __post_init__(self):
        if self.can_move is None:
            self.can_move = self.type.is_movable

    @property
    def strength(self) -> int:
        return self.type.strength

    def set_type(self, unit_type: UnitType):
        self.type = unit_type

    def on_turn(self):
        """Owner's turn begins: units that can move get to move."""
        self.can_move = self.type.is_movable

    def off_turn(self):
        self.can_move = False

    def __repr__(self) -> str:
        return f"Unit(id={self.id}, type={self.type.name}, cell={self.cell_index}, can_move={self.can_move})"


class UnitManager:
    """
    Registry of placed units.

    Keeps the cell -> unit and unit -> cell references in agreement; units are
    addressed by integer id so a deleted unit leaves no dangling object
    references on cells.
    """

    def __init__(self, board: Board):
        self.board = board
        self.units: dict[int, Unit] = {}
        self._next_id = 1

    def add(self, unit_type: UnitType, cell: Cell) -> Unit:
        """Create a unit of the given type on an empty cell."""
        unit = Unit(type=unit_type)
        self.place(unit, cell)
        return unit

    def place(self, unit: Unit, cell: Cell):
        """Put a unit on a cell, detaching it from its previous cell. Registers in-hand units."""
        if cell.unit_id is not None and cell.unit_id != unit.id:
            raise ValueError(f"{cell} is already occupied by unit {cell.unit_id}")

        if unit.id is None:
            unit.id = self._next_id
            self._next_id += 1
            self.units[unit.id] = unit

        if unit.cell_index is not None:
            old_cell = self.board.cell_at(unit.cell_index)
            if old_cell.unit_id == unit.id:
                old_cell.unit_id = None

        unit.cell_index = cell.index
        cell.unit_id = unit.id

    def delete(self, unit: Optional[Unit]):
        """Remove a unit from play. Accepts None for convenience."""
        if unit is None or unit.id is None:
            return
        if unit.cell_index is not None:
            cell = self.board.cell_at(unit.cell_index)
            if cell.unit_id == unit.id:
                cell.unit_id = None
        self.units.pop(unit.id, None)
        unit.cell_index = None

    # Query methods
    def get_unit(self, unit_id: int) -> Optional[Unit]:
        return self.units.get(unit_id)

    def at(self, cell: Cell) -> Optional[Unit]:
        """Get the unit standing on a cell."""
        if cell.unit_id is None:
            return None
        return self.units.get(cell.unit_id)

    def get_cell(self, unit: Unit) -> Optional[Cell]:
        if unit.cell_index is None or unit.id not in self.units:
            return None
        return self.board.cell_at(unit.cell_index)

    def get_units_by_owner(self, owner: int) -> list[Unit]:
        return [u for u in self.units.values()
                if u.cell_index is not None and self.board.cell_at(u.cell_index).owner == owner]

    def __iter__(self):
        return iter(list(self.units.values()))

    def __len__(self) -> int:
        return len(self.units)

    def get_stats(self) -> dict:
        """Get unit statistics."""
        by_type: dict[str, int] = {}
        for unit in self.units.values():
            by_type[unit.type.name] = by_type.get(unit.type.name, 0) + 1
        return {
            "total_units": len(self.units),
            "by_type": by_type,
        }
