"""
Board generation strategies and saved layouts.

A saved layout is a JSON array of per-position owner indices in row-major
order; entries may also be objects of the form {"owner": n}. A null entry
marks a position without a cell, which is how hexagon and ring boards are
saved.
"""

import json
import logging
import random
from enum import Enum
from pathlib import Path
from typing import Optional

from .board import Board, hex_distance
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class BoardShape(Enum):
    RECTANGLE = "rectangle"
    HEXAGON = "hexagon"
    RING = "ring"
    LOAD = "load"


class PlayerPicker(Enum):
    RANDOM = "random"
    EVEN = "even"


def pick_random(board: Board, player_ids: list[int], rng: random.Random):
    """Give every cell a uniformly random owner."""
    board.assign_owners([rng.choice(player_ids) for _ in range(board.size())])


def pick_even(board: Board, player_ids: list[int], rng: random.Random):
    """Give every player an equal share of cells (remainder spread in turn order), shuffled."""
    owners = [player_ids[i % len(player_ids)] for i in range(board.size())]
    rng.shuffle(owners)
    board.assign_owners(owners)


PICKERS = {
    PlayerPicker.RANDOM: pick_random,
    PlayerPicker.EVEN: pick_even,
}


def hexagon_board(radius: int, hole: int = 0) -> Board:
    """
    Hexagon of cells within `radius` steps of the center, inside a
    (2 * radius + 1) square. Cells closer than `hole` steps are left out.
    """
    side = 2 * radius + 1
    center = (radius, radius)
    present = [
        x + y * side
        for y in range(side)
        for x in range(side)
        if hole <= hex_distance((x, y), center) <= radius
    ]
    return Board(side, side, present=present)


def ring_board(radius: int) -> Board:
    """Hexagon with its inner half cut out, the center always among the missing cells."""
    return hexagon_board(radius, hole=(radius + 1) // 2)


def generate_board(
    columns: int,
    rows: int,
    player_ids: list[int],
    shape: BoardShape = BoardShape.RECTANGLE,
    picker: PlayerPicker = PlayerPicker.RANDOM,
    rng: Optional[random.Random] = None,
    layout: Optional[list[Optional[int]]] = None,
    radius: int = 3,
) -> Board:
    """
    Build a board with owners assigned by the chosen strategy.

    Rectangle and load boards are columns x rows; hexagon and ring boards
    are sized by `radius` instead.
    """
    if not player_ids:
        raise ConfigurationError("Board generation needs at least one player")

    if shape in (BoardShape.HEXAGON, BoardShape.RING):
        if radius < 1:
            raise ConfigurationError(f"Board shape '{shape.value}' needs a radius of at least 1, got {radius}")
        board = hexagon_board(radius) if shape == BoardShape.HEXAGON else ring_board(radius)
    elif columns < 1 or rows < 1:
        raise ConfigurationError(f"Board needs at least one column and one row, got {columns}x{rows}")
    elif shape == BoardShape.LOAD:
        if layout is None:
            raise ConfigurationError("Board shape 'load' needs a saved layout")
        layout = parse_layout(layout, len(player_ids))
        if len(layout) != columns * rows:
            raise ConfigurationError(
                f"Saved layout has {len(layout)} positions, board {columns}x{rows} needs {columns * rows}"
            )
        present = [i for i, owner in enumerate(layout) if owner is not None]
        board = Board(columns, rows, present=present)
        board.assign_owners([player_ids[layout[i]] for i in present])
    else:
        board = Board(columns, rows)

    if shape != BoardShape.LOAD:
        PICKERS[picker](board, player_ids, rng or random.Random())

    logger.info(f"Generated {shape.value} board {board.columns}x{board.rows} "
                f"({board.size()} cells) for {len(player_ids)} players")
    return board


def parse_layout(data, player_count: int) -> list[Optional[int]]:
    """Validate a decoded layout and return owner indices, None where a position has no cell."""
    if not isinstance(data, list):
        raise ConfigurationError("Saved layout must be a JSON array")

    owners = []
    for position, entry in enumerate(data):
        if entry is None:
            owners.append(None)
            continue
        if isinstance(entry, dict):
            entry = entry.get("owner")
        if isinstance(entry, bool) or not isinstance(entry, int):
            raise ConfigurationError(f"Saved layout cell {position} has no integer owner: {entry!r}")
        if not 0 <= entry < player_count:
            raise ConfigurationError(
                f"Saved layout cell {position} references player {entry}, only {player_count} players"
            )
        owners.append(entry)
    if all(owner is None for owner in owners):
        raise ConfigurationError("Saved layout has no cells")
    return owners


def load_layout(path: Path | str, player_count: int) -> list[int]:
    """Load a saved layout file."""
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Saved layout not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not load saved layout {path}: {e}") from e
    return parse_layout(data, player_count)


def layout_of(board: Board, player_ids: list[int]) -> list[Optional[int]]:
    """Row-major owner indices for a board, None at positions without a cell."""
    layout = []
    for y in range(board.rows):
        for x in range(board.columns):
            cell = board.get_cell(x, y)
            layout.append(None if cell is None else player_ids.index(cell.owner))
    return layout


def save_layout(board: Board, player_ids: list[int], path: Path | str) -> list[Optional[int]]:
    """Write the board ownership as a saved layout and return it."""
    layout = layout_of(board, player_ids)
    with open(path, "w") as f:
        json.dump(layout, f)
    logger.info(f"Layout saved to {path}")
    return layout
