"""
Shared fixtures: boards are written as strings, one letter per cell,
'A' for player 0, 'B' for player 1 and so on, one string per row.
"""

from typing import Optional

import pytest

from conquest import Board, Game, GameState, Player, UnitCatalog


def make_state(rows: list[str], catalog: Optional[UnitCatalog] = None, player_count: int = 2) -> GameState:
    """Build a discovered GameState from owner strings."""
    owners = [ord(ch) - ord("A") for row in rows for ch in row]
    count = max(player_count, max(owners) + 1)
    players = [Player(id=i, name=chr(ord("A") + i)) for i in range(count)]
    board = Board(len(rows[0]), len(rows), owners)
    return GameState.create(board, players, catalog)


def make_game(rows: list[str], **kwargs) -> Game:
    """Build a Game (initial capitals placed) from owner strings."""
    return Game(make_state(rows), **kwargs)


def cell(state: GameState, x: int, y: int = 0):
    return state.board.get_cell(x, y)


def unit_type(state: GameState, name: str):
    return state.catalog.get(name)


def place(state: GameState, name: str, x: int, y: int = 0):
    """Drop a unit of the named type on a cell."""
    return state.units.add(unit_type(state, name), cell(state, x, y))


@pytest.fixture
def catalog():
    return UnitCatalog()


def attach_actors(game: Game, actors: list):
    """Seat actors in turn order and hand them their context."""
    from functools import partial

    from actors import ActorContext

    for player, actor in zip(game.state.players.order, actors):
        player.actor = actor
        actor.init(ActorContext(player=player, game=game, update_panel=partial(game.update_panel, player)))
