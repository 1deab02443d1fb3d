from hubcatan.engine.geometry import HexCoord, corner_key, edge_key
from hubcatan.engine.scoring import (
    calculate_longest_road,
    calculate_victory_points,
    check_victory,
    public_score,
    update_largest_army,
    update_longest_road,
    vp_breakdown,
)
from hubcatan.engine.types import BuildingType, DevCard, DevCardType

CENTER = HexCoord(0, 0)


def _roads(board, owner, directions, hex_=CENTER):
    for direction in directions:
        board.edges[board.edge_id(edge_key(hex_, direction))].owner = owner


def _build(board, owner, direction, hex_=CENTER, building=BuildingType.SETTLEMENT):
    corner = board.corners[board.corner_id(corner_key(hex_, direction))]
    corner.building = building
    corner.owner = owner


def test_single_chain_length(board):
    # Edges 0..4 of one hex form a simple five-road path.
    _roads(board, "p1", range(5))
    assert calculate_longest_road(board, "p1") == 5
    assert calculate_longest_road(board, "p2") == 0


def test_loop_never_reuses_a_road(board):
    _roads(board, "p1", range(6))
    assert calculate_longest_road(board, "p1") == 6


def test_branch_counts_longest_arm(board):
    _roads(board, "p1", range(4))
    # A spur off corner 1 of the center hex.
    spur = board.corner_edges[board.corner_id(corner_key(CENTER, 1))]
    outward = [e for e in spur if board.edges[e].owner is None]
    board.edges[outward[0]].owner = "p1"
    assert calculate_longest_road(board, "p1") == 4


def test_opponent_building_cuts_the_road(board):
    _roads(board, "p1", range(5))
    _build(board, "p2", 2)
    # Corner 2 splits the path into three roads and two roads.
    assert calculate_longest_road(board, "p1") == 3


def test_own_building_does_not_cut(board):
    _roads(board, "p1", range(5))
    _build(board, "p1", 2)
    assert calculate_longest_road(board, "p1") == 5


def test_longest_road_needs_five(lobby_state):
    state = lobby_state
    _roads(state.board, "p1", range(4))
    assert update_longest_road(state) is None
    assert state.player("p1").longest_road_length == 4

    _roads(state.board, "p1", [4])
    assert update_longest_road(state) == "p1"
    assert state.longest_road_holder == "p1"


def test_longest_road_tie_keeps_holder(lobby_state):
    state = lobby_state
    _roads(state.board, "p1", range(5))
    update_longest_road(state)

    _roads(state.board, "p2", range(5), hex_=HexCoord(-2, 0))
    assert update_longest_road(state) == "p1"

    _roads(state.board, "p2", [5], hex_=HexCoord(-2, 0))
    assert update_longest_road(state) == "p2"


def test_simultaneous_qualifiers_resolved_by_seat_order(lobby_state):
    """Intentional: with no holder, the earliest seat among equal leaders wins."""
    state = lobby_state
    _roads(state.board, "p3", range(5), hex_=HexCoord(0, 2))
    _roads(state.board, "p2", range(5), hex_=HexCoord(-2, 0))
    assert update_longest_road(state) == "p2"


def test_cut_road_revokes_bonus(lobby_state):
    state = lobby_state
    _roads(state.board, "p1", range(5))
    update_longest_road(state)
    _build(state.board, "p2", 2)
    assert update_longest_road(state) is None
    assert state.player("p1").longest_road_length == 3


def test_cut_road_passes_bonus_to_next_qualifier(lobby_state):
    state = lobby_state
    _roads(state.board, "p1", range(6))
    update_longest_road(state)
    _roads(state.board, "p3", range(5), hex_=HexCoord(0, 2))
    assert update_longest_road(state) == "p1"

    _build(state.board, "p2", 2)
    _build(state.board, "p2", 5)
    assert update_longest_road(state) == "p3"


def test_largest_army(lobby_state):
    state = lobby_state
    state.player("p1").knights_played = 2
    assert update_largest_army(state) is None

    state.player("p1").knights_played = 3
    assert update_largest_army(state) == "p1"

    state.player("p2").knights_played = 3
    assert update_largest_army(state) == "p1"

    state.player("p2").knights_played = 4
    assert update_largest_army(state) == "p2"


def test_victory_points_breakdown(lobby_state):
    state = lobby_state
    board = state.board
    _build(board, "p1", 0)
    _build(board, "p1", 3, building=BuildingType.CITY)
    state.player("p1").dev_cards.append(DevCard("victory_point-0", DevCardType.VICTORY_POINT))
    state.largest_army_holder = "p1"

    breakdown = vp_breakdown(state, "p1")
    assert breakdown["settlements"]["points"] == 1
    assert breakdown["cities"]["points"] == 2
    assert breakdown["largest_army"]["points"] == 2
    assert breakdown["longest_road"]["points"] == 0
    assert breakdown["victory_point_cards"]["count"] == 1
    assert calculate_victory_points(state, "p1") == 6
    assert public_score(state, "p1") == 5


def test_check_victory(lobby_state):
    state = lobby_state
    for corner_id in (0, 20, 30, 40):
        state.board.corners[corner_id].building = BuildingType.CITY
        state.board.corners[corner_id].owner = "p2"
    assert check_victory(state) is None

    state.player("p2").dev_cards.append(DevCard("victory_point-0", DevCardType.VICTORY_POINT))
    state.player("p2").dev_cards.append(DevCard("victory_point-1", DevCardType.VICTORY_POINT))
    assert check_victory(state) == "p2"
