"""
Combat resolution for cell captures.

Combat is deterministic: the attacking unit's strength is compared with the
strongest defender that covers the target cell.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .board import Cell
from .state import GameState
from .units import Unit


class CombatResult(Enum):
    CAPTURED = "captured"
    REPELLED = "repelled"


@dataclass
class CombatReport:
    """Report of one attack on a cell."""
    attacker_strength: int
    defending_strength: int
    result: CombatResult
    location: tuple[int, int]
    defender_owner: Optional[int] = None
    defender_unit: Optional[str] = None  # type name of the unit that stood on the cell
    capital_captured: bool = False
    notes: list[str] = field(default_factory=list)

    @property
    def captured(self) -> bool:
        return self.result == CombatResult.CAPTURED


class CombatResolver:
    """Computes defending strength and decides attacks."""

    def __init__(self, state: GameState):
        self.state = state

    def defending_strength(self, cell: Cell) -> int:
        """
        Strength protecting a cell: its own unit, or any same-owner neighbor's
        unit, whichever is strongest. An empty undefended cell has strength 0.
        """
        own = self.state.unit_at(cell)
        strength = own.strength if own else 0
        for neighbor in self.state.board.get_neighbors(cell):
            if neighbor.owner != cell.owner:
                continue
            unit = self.state.unit_at(neighbor)
            if unit is not None:
                strength = max(strength, unit.strength)
        return strength

    def resolve(self, attacker: Unit, cell: Cell) -> CombatReport:
        """Decide an attack without mutating anything. Ties favor the defender."""
        defending = self.defending_strength(cell)
        defender_unit = self.state.unit_at(cell)
        captured = attacker.strength > defending

        report = CombatReport(
            attacker_strength=attacker.strength,
            defending_strength=defending,
            result=CombatResult.CAPTURED if captured else CombatResult.REPELLED,
            location=cell.coords,
            defender_owner=cell.owner,
            defender_unit=defender_unit.type.name if defender_unit else None,
            capital_captured=bool(
                captured and defender_unit and self.state.catalog.is_capital(defender_unit.type)
            ),
        )
        if not captured:
            report.notes.append("Field is defended by a stronger or same strength unit")
        return report
