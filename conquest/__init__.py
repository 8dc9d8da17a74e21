"""
Territorial-conquest engine on a hexagonal board.

Core modules:
- board: Offset hex grid, neighbors and flood fill
- units: Unit catalog, units and their placement
- territory: Territories and the territory index
- players: Players and turn order
- state: Shared game state handle
- combat: Defending strength and attack resolution
- movement: Move validation, merging, capture, split and capital renewal
- turn: Turn sequencing, upkeep, bankruptcy and win/loss
- game: Composition root and autoplay loop
- generation: Board generation strategies and saved layouts
- config: Scenario options
"""

from .board import Board, Cell
from .units import UnitCatalog, UnitManager, Unit, UnitType
from .players import Player, PlayerManager
from .territory import Territory, TerritoryIndex
from .state import GameState
from .combat import CombatResolver, CombatReport, CombatResult
from .movement import MovementEngine, MoveReport
from .turn import TurnController, TurnPhase, TurnState
from .game import Game, PanelUpdate
from .generation import BoardShape, PlayerPicker, generate_board, load_layout, save_layout
from .config import ActorKind, GameOptions, PlayerOptions, load_options, apply_env_overrides
from .errors import ConquestError, ConfigurationError, InvariantViolation

__version__ = "0.1.0"

__all__ = [
    # Board
    "Board", "Cell",
    # Units
    "UnitCatalog", "UnitManager", "Unit", "UnitType",
    # Players and territories
    "Player", "PlayerManager", "Territory", "TerritoryIndex", "GameState",
    # Rules
    "CombatResolver", "CombatReport", "CombatResult", "MovementEngine", "MoveReport",
    "TurnController", "TurnPhase", "TurnState",
    # Game
    "Game", "PanelUpdate",
    "BoardShape", "PlayerPicker", "generate_board", "load_layout", "save_layout",
    "ActorKind", "GameOptions", "PlayerOptions", "load_options", "apply_env_overrides",
    # Errors
    "ConquestError", "ConfigurationError", "InvariantViolation",
]
