"""
Game options: YAML scenario files with environment overrides.
"""

import logging
import os
import yaml
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError
from .generation import BoardShape, PlayerPicker

logger = logging.getLogger(__name__)


class ActorKind(Enum):
    HUMAN = "human"
    SCRIPTED = "scripted"
    LLM = "llm"


@dataclass
class PlayerOptions:
    name: str
    actor: ActorKind = ActorKind.SCRIPTED


@dataclass
class GameOptions:
    """Everything needed to build a game."""
    columns: int = 12
    rows: int = 10
    radius: int = 5  # hexagon and ring boards
    players: list[PlayerOptions] = field(default_factory=lambda: [
        PlayerOptions("Red"), PlayerOptions("Blue"), PlayerOptions("Green"),
    ])
    shape: BoardShape = BoardShape.RECTANGLE
    picker: PlayerPicker = PlayerPicker.RANDOM
    layout_path: Optional[str] = None
    seed: Optional[int] = None
    win_percentage: float = 60
    max_turns: int = 500
    catalog_path: str = "schema/units.yaml"  # relative paths resolve against the data directory
    llm_model: str = "gpt-4o"

    def validate(self):
        if self.columns < 1 or self.rows < 1:
            raise ConfigurationError(f"Board must be at least 1x1, got {self.columns}x{self.rows}")
        if len(self.players) < 2:
            raise ConfigurationError("At least two players are required")
        if not 0 < self.win_percentage < 100:
            raise ConfigurationError(f"win_percentage must be between 0 and 100, got {self.win_percentage}")
        if self.max_turns < 1:
            raise ConfigurationError("max_turns must be positive")
        if self.shape in (BoardShape.HEXAGON, BoardShape.RING) and self.radius < 1:
            raise ConfigurationError(f"Board shape {self.shape.value!r} needs radius of at least 1, got {self.radius}")
        if self.shape == BoardShape.LOAD and not self.layout_path:
            raise ConfigurationError("Board shape 'load' needs layout_path")


def _enum_value(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ConfigurationError(f"Unknown {what} {value!r} (expected one of: {allowed})") from None


def options_from_dict(data: dict) -> GameOptions:
    """Build options from a decoded scenario mapping."""
    defaults = GameOptions()
    game = data.get("game", data)
    if not isinstance(game, dict):
        raise ConfigurationError("Scenario 'game' section must be a mapping")

    players = defaults.players
    if "players" in game:
        players = []
        for entry in game["players"] or []:
            if isinstance(entry, str):
                entry = {"name": entry}
            if not isinstance(entry, dict) or "name" not in entry:
                raise ConfigurationError(f"Malformed player entry: {entry!r}")
            players.append(PlayerOptions(
                name=str(entry["name"]),
                actor=_enum_value(ActorKind, entry.get("actor", "scripted"), "actor kind"),
            ))

    try:
        options = GameOptions(
            columns=int(game.get("columns", defaults.columns)),
            rows=int(game.get("rows", defaults.rows)),
            radius=int(game.get("radius", defaults.radius)),
            players=players,
            shape=_enum_value(BoardShape, game.get("shape", defaults.shape.value), "board shape"),
            picker=_enum_value(PlayerPicker, game.get("picker", defaults.picker.value), "player picker"),
            layout_path=game.get("layout_path"),
            seed=game.get("seed"),
            win_percentage=float(game.get("win_percentage", defaults.win_percentage)),
            max_turns=int(game.get("max_turns", defaults.max_turns)),
            catalog_path=str(game.get("catalog_path", defaults.catalog_path)),
            llm_model=str(game.get("llm_model", defaults.llm_model)),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"Invalid game option: {e}") from e

    options.validate()
    return options


def load_options(path: Path | str) -> GameOptions:
    """Load scenario options from YAML, defaulting when the file is missing."""
    path = Path(path)
    if not path.exists():
        logger.info(f"Scenario {path} not found, using default options")
        return GameOptions()

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Scenario {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Scenario {path} must contain a mapping")
    options = options_from_dict(data)
    logger.info(f"Scenario loaded: {data.get('name', path.stem)}")
    return options


ENV_OVERRIDES = {
    "CONQUEST_COLUMNS": ("columns", int),
    "CONQUEST_ROWS": ("rows", int),
    "CONQUEST_RADIUS": ("radius", int),
    "CONQUEST_SEED": ("seed", int),
    "CONQUEST_MAX_TURNS": ("max_turns", int),
    "CONQUEST_LLM_MODEL": ("llm_model", str),
}


def apply_env_overrides(options: GameOptions, environ: Optional[Mapping[str, str]] = None) -> GameOptions:
    """Override options from CONQUEST_* environment variables."""
    environ = os.environ if environ is None else environ
    for key, (attr, convert) in ENV_OVERRIDES.items():
        raw = environ.get(key)
        if raw is None or raw == "":
            continue
        try:
            setattr(options, attr, convert(raw))
        except ValueError as e:
            raise ConfigurationError(f"{key}={raw!r} is not a valid {convert.__name__}") from e
        logger.debug(f"{attr} overridden from {key}")
    options.validate()
    return options
