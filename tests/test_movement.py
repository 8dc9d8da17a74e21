from conquest import MovementEngine, TerritoryIndex, Unit

from conftest import cell, make_state, place, unit_type


def with_capitals(rows):
    state = make_state(rows)
    state.place_initial_capitals()
    return state, MovementEngine(state)


def player(state, player_id):
    return state.players.get(player_id)


def assert_consistent(state):
    assert state.territories.snapshot() == TerritoryIndex.partition(state.board)
    assert state.territories.validate_integrity() == []
    for territory in state.territories:
        capitals = [u for u in state.units_in(territory) if state.catalog.is_capital(u.type)]
        if territory.is_controllable():
            assert len(capitals) == 1
        else:
            assert state.units_in(territory) == []


# Relocation and validation

def test_move_inside_territory_keeps_unit_ready():
    state, movement = with_capitals(["AAAB"])
    leek = place(state, "Leek", 1)

    report = movement.move(leek, cell(state, 2), player(state, 0))
    assert report
    assert not report.crossed_border
    assert state.unit_at(cell(state, 2)) is leek
    assert state.unit_at(cell(state, 1)) is None
    assert leek.can_move


def test_move_onto_own_cell_is_rejected():
    state, movement = with_capitals(["AAAB"])
    leek = place(state, "Leek", 1)
    report = movement.move(leek, cell(state, 1), player(state, 0))
    assert not report
    assert report.reason == "Unit is already on this field"


def test_unit_in_hand_needs_territory():
    state, movement = with_capitals(["AAAB"])
    report = movement.move(Unit(type=unit_type(state, "Leek")), cell(state, 1), player(state, 0))
    assert report.reason == "No territory selected"


def test_only_owner_moves_units():
    state, movement = with_capitals(["AABB"])
    gym_bro = place(state, "Gym Bro", 3)
    report = movement.move(gym_bro, cell(state, 1), player(state, 0))
    assert report.reason == "Units can only be moved by the player owning their territory"
    assert state.unit_at(cell(state, 3)) is gym_bro


def test_target_must_touch_territory():
    state, movement = with_capitals(["AAABB"])
    leek = place(state, "Leek", 1)
    report = movement.move(leek, cell(state, 4), player(state, 0))
    assert report.reason == "Unit can only move to neighbors or inside same territory"


def test_spent_unit_cannot_leave_territory():
    state, movement = with_capitals(["AAAB"])
    gym_bro = place(state, "Gym Bro", 2)
    gym_bro.can_move = False
    report = movement.move(gym_bro, cell(state, 3), player(state, 0))
    assert report.reason == "Only movable units can be placed outside the territory"
    assert cell(state, 3).owner == 1


def test_static_unit_cannot_leave_territory():
    state, movement = with_capitals(["AAAB"])
    territory = state.territory_of(cell(state, 0))
    instructor = Unit(type=unit_type(state, "Instructor"))
    report = movement.move(instructor, cell(state, 3), player(state, 0), territory)
    assert report.reason == "Only movable units can be placed outside the territory"

    assert movement.move(instructor, cell(state, 2), player(state, 0), territory)
    assert state.unit_at(cell(state, 2)) is instructor


def test_reachable_cells():
    state, movement = with_capitals(["AAABB"])
    leek = place(state, "Leek", 1)
    assert [c.index for c in movement.reachable_cells(leek)] == [0, 2, 3]
    leek.can_move = False
    assert [c.index for c in movement.reachable_cells(leek)] == [0, 2]


# Unit merging

def test_merge_into_stronger_type():
    state, movement = with_capitals(["AAAB"])
    leek = place(state, "Leek", 1)
    gym_bro = place(state, "Gym Bro", 2)

    report = movement.move(leek, cell(state, 2), player(state, 0))
    assert report
    assert report.merged_type == "Bodybuilder"
    assert state.unit_at(cell(state, 2)) is leek
    assert leek.type.name == "Bodybuilder"
    assert state.units.get_unit(gym_bro.id) is None
    assert len(state.units) == 2  # capital and the merged unit


def test_merge_keeps_stationary_readiness():
    state, movement = with_capitals(["AAAB"])
    leek = place(state, "Leek", 1)
    other = place(state, "Leek", 2)
    other.can_move = False

    assert movement.move(leek, cell(state, 2), player(state, 0))
    assert leek.type.name == "Gym Bro"
    assert not leek.can_move


def test_merge_without_matching_cost_is_rejected():
    state, movement = with_capitals(["AAAB"])
    bodybuilder = place(state, "Bodybuilder", 1)
    gym_bro = place(state, "Gym Bro", 2)

    report = movement.move(bodybuilder, cell(state, 2), player(state, 0))
    assert report.reason == "No type with same cost found to merge"
    assert state.unit_at(cell(state, 1)) is bodybuilder
    assert state.unit_at(cell(state, 2)) is gym_bro


def test_cannot_merge_into_capital():
    state, movement = with_capitals(["AAAB"])
    leek = place(state, "Leek", 1)
    report = movement.move(leek, cell(state, 0), player(state, 0))
    assert report.reason == "Only buildable and movable units can merge together"


def test_bought_unit_merges_on_drop():
    state, movement = with_capitals(["AAAB"])
    territory = state.territory_of(cell(state, 0))
    stationary = place(state, "Leek", 2)
    leek = Unit(type=unit_type(state, "Leek"))

    assert movement.move(leek, cell(state, 2), player(state, 0), territory)
    assert leek.type.name == "Gym Bro"
    assert state.units.get_unit(stationary.id) is None


# Capture

def test_tie_favors_defender():
    state, movement = with_capitals(["AABB"])
    leek = place(state, "Leek", 1)
    report = movement.move(leek, cell(state, 2), player(state, 0))
    assert not report
    assert report.reason == "Field is defended by a stronger or same strength unit"
    assert report.combat.defending_strength == 1
    assert cell(state, 2).owner == 1
    assert_consistent(state)


def test_capturing_capital_wipes_treasury():
    state, movement = with_capitals(["AABB"])
    enemy = state.territory_of(cell(state, 2))
    enemy.money = 500
    gym_bro = place(state, "Gym Bro", 1)

    report = movement.move(gym_bro, cell(state, 2), player(state, 0))
    assert report
    assert report.combat.capital_captured
    assert report.crossed_border
    assert enemy.money == 0
    assert cell(state, 2).owner == 0
    assert not gym_bro.can_move
    assert state.territory_of(cell(state, 2)).cells == {0, 1, 2}
    assert_consistent(state)


def test_neighbor_defends_cell():
    state, movement = with_capitals(["AABB"])
    place(state, "Gym Bro", 3)
    assert movement.get_field_defending_strength(cell(state, 2)) == 2

    gym_bro = place(state, "Gym Bro", 1)
    assert not movement.move(gym_bro, cell(state, 2), player(state, 0))

    bodybuilder = Unit(type=unit_type(state, "Bodybuilder"))
    report = movement.move(bodybuilder, cell(state, 2), player(state, 0), state.territory_of(cell(state, 0)))
    assert report
    assert report.combat.defending_strength == 2


def test_capture_strands_enemy_units():
    state, movement = with_capitals(["AABB"])
    place(state, "Leek", 3)
    bodybuilder = place(state, "Bodybuilder", 1)

    report = movement.move(bodybuilder, cell(state, 2), player(state, 0))
    assert report
    assert report.units_removed == 1
    assert state.units_in(state.territory_of(cell(state, 3))) == []
    assert_consistent(state)


def test_capture_joins_own_territories():
    state, movement = with_capitals(["AABAA"])
    left = state.territory_of(cell(state, 0))
    right = state.territory_of(cell(state, 4))
    left.money, right.money = 10, 7
    enemy_id = state.territory_of(cell(state, 2)).id
    leek = place(state, "Leek", 1)

    report = movement.move(leek, cell(state, 2), player(state, 0))
    assert report
    assert report.territories_merged == [right.id]
    assert report.territories_removed == [enemy_id]
    assert left.money == 17
    assert left.cells == {0, 1, 2, 3, 4}
    assert player(state, 1).territories == set()
    assert state.capital_of(left) is state.unit_at(cell(state, 0))
    assert_consistent(state)


def test_capture_splits_enemy_territory():
    #  A B B B B
    #  A A A A A
    state, movement = with_capitals(["ABBBB", "AAAAA"])
    enemy = state.territory_of(cell(state, 1))
    enemy.money = 20
    gym_bro = place(state, "Gym Bro", 2, 1)

    report = movement.move(gym_bro, cell(state, 2), player(state, 0))
    assert report
    assert len(report.territories_created) == 1

    # The fragment reached first keeps the territory and its money
    assert enemy.cells == {3, 4}
    assert enemy.money == 20
    assert state.unit_at(cell(state, 3)).type.name == "Gym"

    fragment = state.territories.get(report.territories_created[0])
    assert fragment.cells == {1}
    assert fragment.money == 0
    assert state.unit_at(cell(state, 1)) is None
    assert_consistent(state)


def test_capture_splits_enemy_territory_into_three():
    #  A B A A
    #  A B A A     B at (1,1) is the only link between three B arms
    #  B A B B
    state, movement = with_capitals(["ABAA", "ABAA", "BABB"])
    enemy = state.territory_of(cell(state, 1))
    enemy.money = 12
    assert enemy.cells == {1, 5, 8, 10, 11}
    gym_bro = place(state, "Gym Bro", 2, 2)
    leek = place(state, "Leek", 3, 2)
    bodybuilder = place(state, "Bodybuilder", 2, 1)
    assert movement.get_field_defending_strength(cell(state, 1, 1)) == 2

    report = movement.move(bodybuilder, cell(state, 1, 1), player(state, 0))
    assert report
    assert len(report.territories_created) == 2
    fragments = sorted(state.territories.by_owner(1), key=lambda t: min(t.cells))
    assert [t.cells for t in fragments] == [{1}, {8}, {10, 11}]

    # The arm reached first keeps the treasury but is too small for its capital
    assert fragments[0] is enemy
    assert enemy.money == 12
    assert state.unit_at(cell(state, 1)) is None
    assert report.units_removed == 1

    assert state.units_in(fragments[1]) == []
    assert fragments[1].money == 0

    # The two-cell arm gets a new capital in place of its weakest unit
    assert fragments[2].money == 0
    assert state.units.get_unit(leek.id) is None
    assert state.capital_of(fragments[2]) is state.unit_at(cell(state, 3, 2))
    assert state.unit_at(cell(state, 2, 2)) is gym_bro

    # Both A territories touching the captured cell joined the attacker
    assert len(report.territories_merged) == 2
    [attacker] = state.territories.by_owner(0)
    assert attacker.cells == {0, 2, 3, 4, 5, 6, 7, 9}
    assert state.capital_of(attacker) is state.unit_at(cell(state, 2))
    assert_consistent(state)


def test_new_capital_replaces_weakest_unit():
    state, movement = with_capitals(["ABBBB", "AAAAA"])
    place(state, "Gym Bro", 3)
    leek = place(state, "Leek", 4)
    assert movement.get_field_defending_strength(cell(state, 2)) == 2

    gym_bro = place(state, "Gym Bro", 2, 1)
    assert not movement.move(gym_bro, cell(state, 2), player(state, 0))

    bodybuilder = place(state, "Bodybuilder", 3, 1)
    report = movement.move(bodybuilder, cell(state, 2), player(state, 0))
    assert report
    assert state.units.get_unit(leek.id) is None
    assert state.unit_at(cell(state, 4)).type.name == "Gym"
    assert state.unit_at(cell(state, 3)).type.name == "Gym Bro"
    assert_consistent(state)


def test_lone_cell_grows_into_controllable_territory():
    state, movement = with_capitals(["ABA", "BBB"])
    lone = state.territory_of(cell(state, 0))
    assert not lone.is_controllable()
    gym_bro = Unit(type=unit_type(state, "Gym Bro"))

    report = movement.move(gym_bro, cell(state, 1), player(state, 0), lone)
    assert report
    assert state.capital_of(state.territory_of(cell(state, 0))) is not None
    assert_consistent(state)


def test_single_field_territory_cannot_hold_units():
    state, movement = with_capitals(["ABB", "BBB"])
    lone = state.territory_of(cell(state, 0))

    report = movement.move(Unit(type=unit_type(state, "Leek")), cell(state, 0), player(state, 0), lone)
    assert not report
    assert report.reason == "A single-field territory cannot hold units"
    assert state.unit_at(cell(state, 0)) is None
    assert movement.reachable_cells(Unit(type=unit_type(state, "Instructor")), lone) == []
    assert_consistent(state)
