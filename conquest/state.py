"""
Shared game state handle.

Every engine component receives a GameState instead of closing over shared
mutable fields; it bundles the board, the unit catalog, placed units,
territories and players of a single game.
"""

from dataclasses import dataclass, field
from typing import Optional

from .board import Board, Cell
from .players import Player, PlayerManager
from .territory import Territory, TerritoryIndex
from .units import Unit, UnitCatalog, UnitManager


@dataclass
class GameState:
    """Complete mutable state of one game."""
    board: Board
    catalog: UnitCatalog
    players: PlayerManager
    units: UnitManager = field(init=False)
    territories: TerritoryIndex = field(init=False)

    def __post_init__(self):
        self.units = UnitManager(self.board)
        self.territories = TerritoryIndex(self.board, self.players)

    @classmethod
    def create(cls, board: Board, players: list[Player], catalog: Optional[UnitCatalog] = None) -> "GameState":
        """Build state and discover the initial territories."""
        state = cls(board=board, catalog=catalog or UnitCatalog(), players=PlayerManager(players))
        state.territories.discover()
        return state

    # Convenience lookups
    def unit_at(self, cell: Cell) -> Optional[Unit]:
        return self.units.at(cell)

    def territory_of(self, cell: Cell) -> Optional[Territory]:
        return self.territories.of_cell(cell)

    def cell_of(self, unit: Unit) -> Optional[Cell]:
        return self.units.get_cell(unit)

    def units_in(self, territory: Territory) -> list[Unit]:
        units = []
        for cell in self.territories.cells_of(territory):
            unit = self.units.at(cell)
            if unit is not None:
                units.append(unit)
        return units

    def capital_of(self, territory: Territory) -> Optional[Unit]:
        for unit in self.units_in(territory):
            if self.catalog.is_capital(unit.type):
                return unit
        return None

    def upkeep_of(self, territory: Territory) -> int:
        return sum(u.type.salary for u in self.units_in(territory))

    def player_territories(self, player: Player) -> list[Territory]:
        return [t for t in (self.territories.get(i) for i in sorted(player.territories)) if t is not None]

    def controllable_territories(self, player: Player) -> list[Territory]:
        return [t for t in self.player_territories(player) if t.is_controllable()]

    def player_cell_count(self, player: Player) -> int:
        return sum(t.size() for t in self.player_territories(player))

    def place_initial_capitals(self):
        """Give every controllable territory a capital on its first cell."""
        for territory in self.territories:
            if territory.is_controllable() and self.capital_of(territory) is None:
                first = self.territories.cells_of(territory)[0]
                self.units.delete(self.units.at(first))
                self.units.add(self.catalog.capital, first)
