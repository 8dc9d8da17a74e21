"""
Turn sequencing for the conquest engine.

TurnStart(player) -> TurnActive(player) -> TurnEnd(player) ->
TurnStart(next) or GameOver(winner).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .errors import InvariantViolation
from .players import Player
from .state import GameState

logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    TURN_START = "turn_start"
    TURN_ACTIVE = "turn_active"
    TURN_END = "turn_end"
    GAME_OVER = "game_over"


@dataclass
class TurnState:
    """Bookkeeping for one player's turn."""
    turn_number: int
    player_id: int
    first_turn: bool
    bankrupt_territories: list[int] = field(default_factory=list)
    eliminated_players: list[int] = field(default_factory=list)


class TurnController:
    """Cycles the active player, applies upkeep and detects win/loss."""

    def __init__(
        self,
        state: GameState,
        win_percentage: float = 60,
        on_win: Optional[Callable[[Player], None]] = None,
    ):
        self.state = state
        self.win_percentage = win_percentage
        self.on_win = on_win

        self.player: Optional[Player] = None
        self.turn = 0
        self.phase: Optional[TurnPhase] = None
        self.winner: Optional[Player] = None
        self.current_turn: Optional[TurnState] = None
        self.turn_history: list[TurnState] = []

        # Callbacks for actor integration
        self.on_turn_start: Optional[Callable[[Player], None]] = None
        self.on_turn_end: Optional[Callable[[Player], None]] = None

    @property
    def game_over(self) -> bool:
        return self.phase == TurnPhase.GAME_OVER

    def start(self) -> TurnState:
        """Start the game with the first player."""
        if self.phase is not None:
            logger.error("Game already started")
            raise InvariantViolation("Game already started")
        self.player = self.state.players.first()
        self.turn = 1
        return self._handle_turn_start()

    def end_turn(self) -> Optional[Player]:
        """
        Finish the active player's turn.

        Returns the next player, or None when the game is over.
        """
        if self.phase != TurnPhase.TURN_ACTIVE:
            message = f"Cannot end a turn in phase {self.phase}"
            logger.error(message)
            raise InvariantViolation(message)

        self.phase = TurnPhase.TURN_END
        if self.on_turn_end:
            self.on_turn_end(self.player)
        self.turn_history.append(self.current_turn)

        if self.has_player_won(self.player):
            logger.info(f"{self.player.name} has won on turn {self.turn}")
            self.winner = self.player
            self.phase = TurnPhase.GAME_OVER
            if self.on_win:
                self.on_win(self.player)
            return None

        eliminated = []
        next_player = None
        players = self.state.players
        for _ in range(len(players)):
            candidate = players.next(self.player)
            if candidate is None:
                break
            if self.has_player_lost(candidate):
                players.delete(candidate)
                eliminated.append(candidate.id)
                continue
            next_player = candidate
            break

        if next_player is None:
            message = "Next player chooser found no eligible player"
            logger.error(message)
            raise InvariantViolation(message)

        self.player = next_player
        self.turn += 1
        state = self._handle_turn_start()
        state.eliminated_players = eliminated
        return self.player

    def _handle_turn_start(self) -> TurnState:
        self.phase = TurnPhase.TURN_START
        player = self.player
        turn_state = TurnState(
            turn_number=self.turn,
            player_id=player.id,
            first_turn=player.turns_played == 0,
        )
        self.current_turn = turn_state

        for territory in self.state.player_territories(player):
            if turn_state.first_turn:
                territory.on_start()
            else:
                territory.on_turn(self.state.upkeep_of(territory))

            if territory.is_bankrupt():
                logger.info(f"Territory {territory.id} of {player.name} is bankrupt ({territory.money})")
                for unit in self.state.units_in(territory):
                    if not self.state.catalog.is_capital(unit.type):
                        self.state.units.delete(unit)
                territory.money = 0
                turn_state.bankrupt_territories.append(territory.id)

        # Only the active player's units may move
        for unit in self.state.units:
            cell = self.state.cell_of(unit)
            if cell is not None and cell.owner == player.id:
                unit.on_turn()
            else:
                unit.off_turn()

        player.turns_played += 1
        logger.debug(f"Turn {self.turn}: {player.name}")
        if self.on_turn_start:
            self.on_turn_start(player)

        self.phase = TurnPhase.TURN_ACTIVE
        return turn_state

    def has_player_won(self, player: Player) -> bool:
        cells = self.state.player_cell_count(player)
        return cells * 100 / self.state.board.size() > self.win_percentage

    def has_player_lost(self, player: Player) -> bool:
        return not self.state.controllable_territories(player)
