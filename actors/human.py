"""
Human actor: turns selections and clicks into engine calls.

Rendering and pointer handling live outside the engine; a front end calls
select_unit_type() and click_cell() and ends the turn with end_turn().
"""

import logging
from typing import Optional

from conquest.board import Cell
from conquest.config import ActorKind
from conquest.territory import Territory
from conquest.units import Unit, UnitType

from .base import Actor, ActorContext

logger = logging.getLogger(__name__)


class HumanActor(Actor):
    """Interactive player. Never automated: the turn waits for end_turn()."""

    kind = ActorKind.HUMAN

    def __init__(self):
        super().__init__()
        self.selected_territory: Optional[Territory] = None
        self.holding: Optional[Unit] = None  # unit picked up from the board
        self.holding_type: Optional[UnitType] = None  # unit type picked from the panel, not paid yet

    def init(self, context: ActorContext):
        super().init(context)
        self.selected_territory = None
        self.holding = None
        self.holding_type = None

    def on_turn_start(self):
        self.context.update_panel(None)

    def on_turn_end(self):
        self.select_territory(None)
        self.holding = None
        self.holding_type = None

    def select_unit_type(self, unit_type: UnitType) -> bool:
        """Pick a unit type to buy for the selected territory."""
        territory = self.selected_territory
        if territory is None:
            logger.warning("No territory selected")
            return False
        if self.holding is not None or self.holding_type is not None:
            logger.warning("Already holding a unit")
            return False
        if territory.money < unit_type.cost:
            logger.warning("Not enough money to buy this unit")
            return False
        self.holding_type = unit_type
        return True

    def click_cell(self, cell: Cell) -> bool:
        """
        Handle a click on a cell.

        With a unit in hand the click is a move (or a purchase); otherwise it
        selects one of the player's territories and picks up a movable unit.
        """
        game = self.game
        state = game.state

        if self.holding is not None or self.holding_type is not None:
            done = False
            if self.holding is not None:
                done = bool(game.move(self.holding, cell))
            elif self.selected_territory is not None:
                done = game.buy_unit(self.holding_type, cell, self.selected_territory) is not None
            self.holding = None
            self.holding_type = None
            self.select_territory(self._reselect(cell) if done else self.selected_territory)
            return done

        if cell.owner != self.player.id:
            logger.warning("Can't use another player's territory")
            return False

        self.select_territory(state.territory_of(cell))
        unit = state.unit_at(cell)
        if unit is not None and unit.can_move:
            self.holding = unit
        return True

    def select_territory(self, territory: Optional[Territory]):
        self.selected_territory = territory
        self.context.update_panel(territory)

    def _reselect(self, cell: Cell) -> Optional[Territory]:
        """Territory to keep selected after a move landed on cell; captures can merge the old one away."""
        state = self.game.state
        if cell.owner == self.player.id:
            return state.territory_of(cell)
        if self.selected_territory is not None and state.territories.get(self.selected_territory.id):
            return self.selected_territory
        return None

    async def end_turn(self):
        await self.game.next_turns()
