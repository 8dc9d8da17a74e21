import asyncio
import random

from actors import AutomatedActor, HumanActor, ScriptedActor
from conquest import ActorKind, BoardShape, Game, GameState, Player, PlayerPicker, generate_board, load_layout

from conftest import attach_actors, cell, make_game, place, unit_type


class CountingActor(AutomatedActor):
    """Does nothing but count its turns; can pause autoplay or try to re-enter it."""

    kind = ActorKind.SCRIPTED

    def __init__(self, pause_on=None, reenter=False):
        super().__init__()
        self.calls = 0
        self.pause_on = pause_on
        self.reenter = reenter

    async def do_turn(self):
        self.calls += 1
        if self.reenter:
            await self.game.next_turns()
        if self.calls == self.pause_on:
            self.game.pause_autoplay()


def test_initial_capitals_on_first_cell():
    game = make_game(["AABBA"])
    state = game.state
    assert state.unit_at(cell(state, 0)).type.name == "Gym"
    assert state.unit_at(cell(state, 2)).type.name == "Gym"
    assert state.unit_at(cell(state, 4)) is None
    assert game.check_integrity() == []


def test_buy_unit_deducts_cost():
    game = make_game(["AAABB"])
    asyncio.run(game.start())
    state = game.state
    territory = state.territory_of(cell(state, 0))
    territory.money = 20

    unit = game.buy_unit(unit_type(state, "Gym Bro"), cell(state, 3), territory)
    assert unit is not None
    assert territory.money == 4
    assert cell(state, 3).owner == 0
    assert not unit.can_move


def test_buy_unit_rejections_keep_money():
    game = make_game(["AAABB"])
    asyncio.run(game.start())
    state = game.state
    territory = state.territory_of(cell(state, 0))
    territory.money = 10

    assert game.buy_unit(state.catalog.capital, cell(state, 1), territory) is None
    assert game.buy_unit(unit_type(state, "Gym Bro"), cell(state, 1), territory) is None
    assert game.buy_unit(unit_type(state, "Leek"), cell(state, 4), territory) is None
    assert territory.money == 10
    assert len(state.units) == 2


def test_buy_unit_into_single_field_territory_is_refused():
    game = make_game(["ABB", "BBB"])
    asyncio.run(game.start())
    state = game.state
    lone = state.territory_of(cell(state, 0))
    lone.money = 8

    assert game.buy_unit(unit_type(state, "Leek"), cell(state, 0), lone) is None
    assert lone.money == 8
    assert state.unit_at(cell(state, 0)) is None
    assert game.check_integrity() == []


def test_autoplay_stops_at_turn_limit():
    game = make_game(["AABB"], turn_limit=6)
    a, b = CountingActor(), CountingActor()
    attach_actors(game, [a, b])
    asyncio.run(game.start())
    assert game.turns.turn == 6
    assert (a.calls, b.calls) == (3, 2)


def test_pause_and_resume():
    game = make_game(["AABB"], turn_limit=10)
    a, b = CountingActor(pause_on=3), CountingActor()
    attach_actors(game, [a, b])

    asyncio.run(game.start())
    assert game.turns.turn == 5
    assert game.player.id == 0

    asyncio.run(game.resume())
    assert game.turns.turn == 10
    assert a.calls == 6  # turn 5 was played again after resuming
    assert b.calls == 4


def test_autoplay_cannot_be_reentered():
    game = make_game(["AABB"], turn_limit=4)
    a, b = CountingActor(reenter=True), CountingActor()
    attach_actors(game, [a, b])
    asyncio.run(game.start())
    assert game.turns.turn == 4
    assert (a.calls, b.calls) == (2, 1)


def test_human_turn_stops_autoplay_and_buys():
    updates = []
    game = make_game(["AABBB"], on_update_panel=updates.append)
    human, bot = HumanActor(), ScriptedActor(seed=1)
    attach_actors(game, [human, bot])
    asyncio.run(game.start())
    state = game.state
    assert game.player.id == 0

    territory = state.territory_of(cell(state, 0))
    assert human.click_cell(cell(state, 0))
    assert human.selected_territory is territory
    assert human.holding is None  # capitals stay put
    assert updates[-1].territory is territory
    assert updates[-1].has_capital

    assert not human.select_unit_type(unit_type(state, "Gym Bro"))
    territory.money = 20
    assert human.select_unit_type(unit_type(state, "Gym Bro"))
    assert human.click_cell(cell(state, 2))
    assert territory.money == 4
    assert cell(state, 2).owner == 0
    assert human.selected_territory is territory

    asyncio.run(human.end_turn())
    assert human.selected_territory is None
    assert game.player.id == 0
    assert game.turns.turn == 3
    assert game.check_integrity() == []


def test_human_moves_held_unit():
    game = make_game(["AABBB"])
    human, other = HumanActor(), HumanActor()
    attach_actors(game, [human, other])
    asyncio.run(game.start())
    state = game.state
    gym_bro = place(state, "Gym Bro", 1)

    assert not human.click_cell(cell(state, 3))  # not ours, nothing held
    assert human.click_cell(cell(state, 1))
    assert human.holding is gym_bro
    assert human.click_cell(cell(state, 2))
    assert human.holding is None
    assert state.unit_at(cell(state, 2)) is gym_bro


def test_scripted_game_stays_consistent():
    players = [Player(id=0, name="Red"), Player(id=1, name="Blue")]
    board = generate_board(8, 6, [0, 1], picker=PlayerPicker.EVEN, rng=random.Random(3))
    game = Game(GameState.create(board, players), turn_limit=80)
    attach_actors(game, [ScriptedActor(seed=1), ScriptedActor(seed=2)])

    asyncio.run(game.start())
    assert game.game_over or game.turns.turn == 80
    assert game.check_integrity() == []

    stats = game.get_stats()
    assert set(stats["players"]) == {"Red", "Blue"}
    assert sum(p["cells"] for p in stats["players"].values()) == 48
    if game.game_over:
        assert stats["players"][stats["winner"]]["cell_share"] > 60


def test_scripted_game_on_ring_board_stays_consistent():
    players = [Player(id=0, name="Red"), Player(id=1, name="Blue")]
    board = generate_board(0, 0, [0, 1], shape=BoardShape.RING, radius=3, rng=random.Random(5))
    game = Game(GameState.create(board, players), turn_limit=60)
    attach_actors(game, [ScriptedActor(seed=3), ScriptedActor(seed=4)])

    asyncio.run(game.start())
    assert game.check_integrity() == []
    assert game.state.board.get_cell(3, 3) is None
    assert sum(p["cells"] for p in game.get_stats()["players"].values()) == 30


def test_check_integrity_reports_missing_capital():
    game = make_game(["AABB"])
    state = game.state
    state.units.delete(state.unit_at(cell(state, 0)))
    assert game.check_integrity() == [f"territory {state.territory_of(cell(state, 0)).id} has 0 capitals"]


def test_save_layout(tmp_path):
    game = make_game(["AB", "BA"])
    path = tmp_path / "layout.json"
    assert game.save_layout(path) == [0, 1, 1, 0]
    assert load_layout(path, 2) == [0, 1, 1, 0]
