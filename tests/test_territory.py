import pytest

from conquest import InvariantViolation, TerritoryIndex
from conquest.territory import Territory

from conftest import cell, make_state


def test_discovery_finds_connected_regions():
    state = make_state(["AABBA"])
    territories = sorted(state.territories, key=lambda t: min(t.cells))
    assert [(t.owner, sorted(t.cells)) for t in territories] == [(0, [0, 1]), (1, [2, 3]), (0, [4])]
    assert state.territories.snapshot() == TerritoryIndex.partition(state.board)
    assert state.territories.validate_integrity() == []


def test_discovery_links_players_and_cells():
    state = make_state(["AB", "AB"])
    a, b = state.players.order
    assert len(a.territories) == 1
    assert len(b.territories) == 1
    for c in state.board:
        assert state.territory_of(c).owner == c.owner


def test_discovery_rejects_ownerless_cell():
    state = make_state(["AB"])
    cell(state, 1).owner = None
    with pytest.raises(InvariantViolation):
        state.territories.discover()


def test_rediscovery_is_idempotent():
    state = make_state(["AAB", "BBA"])
    before = state.territories.snapshot()
    state.territories.discover()
    assert state.territories.snapshot() == before
    assert state.territories.validate_integrity() == []


def test_territory_neighbors():
    state = make_state(["AABBA"])
    territory = state.territory_of(cell(state, 2))
    assert [c.index for c in state.territories.neighbors(territory)] == [1, 4]


def test_absorb_moves_money_and_cells():
    state = make_state(["AABAA"])
    left = state.territory_of(cell(state, 0))
    right = state.territory_of(cell(state, 4))
    left.money, right.money = 10, 7

    state.territories.absorb(left, right)
    assert left.money == 17
    assert left.cells == {0, 1, 3, 4}
    assert state.territories.get(right.id) is None
    assert right.id not in state.players.get(0).territories
    assert cell(state, 4).territory_id == left.id


def test_validate_integrity_reports_disconnected_territory():
    state = make_state(["AABAA"])
    left = state.territory_of(cell(state, 0))
    state.territories.add_cells(left, [cell(state, 4)])
    problems = state.territories.validate_integrity()
    assert any("connected component" in p for p in problems)


def test_create_for_unknown_owner_fails():
    state = make_state(["AB"])
    with pytest.raises(InvariantViolation):
        state.territories.create(7, [])


def test_economy():
    territory = Territory(id=1, owner=0, cells={0, 1, 2})
    assert territory.is_controllable()
    territory.on_start()
    assert territory.money == 3
    territory.on_turn(upkeep=2)
    assert territory.money == 4
    territory.on_turn(upkeep=10)
    assert territory.money == -3
    assert territory.is_bankrupt()
    assert not Territory(id=2, owner=0, cells={5}).is_controllable()
