import pytest
from conftest import complete_setup, roll, set_hand

from hubcatan.engine.errors import ErrorCode
from hubcatan.engine.game_state import RoadBuilding, TurnPhase, YearOfPlenty
from hubcatan.engine.geometry import HexCoord, corner_key, edge_key
from hubcatan.engine.types import Action, ActionType, BuildingType, DevCard, DevCardType, ResourceType

CENTER = HexCoord(0, 0)


def _act(state, player_id, action_type, **payload):
    return state.apply(player_id, Action(action_type, payload))


def _corner(state, direction, hex_=CENTER):
    return state.board.corner_id(corner_key(hex_, direction))


def _edge(state, direction, hex_=CENTER):
    return state.board.edge_id(edge_key(hex_, direction))


def _settle(state, owner, corner_id, building=BuildingType.SETTLEMENT):
    corner = state.board.corners[corner_id]
    corner.building = building
    corner.owner = owner


def _give_card(state, player_id, card_type):
    player = state.player(player_id)
    player.dev_cards.append(DevCard(f"{card_type.value}-t{len(player.dev_cards)}", card_type))


@pytest.fixture
def turn(main_state):
    """First player's MAIN phase on a board with no pieces."""
    for corner in main_state.board.corners:
        corner.building = None
        corner.owner = None
    for edge in main_state.board.edges:
        edge.owner = None
    main_state.longest_road_holder = None
    for player in main_state.players:
        player.longest_road_length = 0
    return main_state


# Gating


def test_lobby_rejects_actions(lobby_state):
    result = _act(lobby_state, "p1", ActionType.ROLL_DICE)
    assert result.error == ErrorCode.WRONG_PHASE


def test_unknown_player_and_wrong_seat(setup_state):
    corner_id = _corner(setup_state, 0)
    assert _act(setup_state, "ghost", ActionType.PLACE_SETTLEMENT, corner_id=corner_id).error == (
        ErrorCode.PLAYER_NOT_FOUND
    )
    assert _act(setup_state, "p2", ActionType.PLACE_SETTLEMENT, corner_id=corner_id).error == ErrorCode.NOT_YOUR_TURN


def test_rejected_action_leaves_state_alone(turn):
    before = dict(turn.player("p1").resources)
    result = _act(turn, "p1", ActionType.BUILD_CITY, corner_id=_corner(turn, 0))
    assert not result.ok
    assert turn.player("p1").resources == before
    assert turn.phase == TurnPhase.MAIN


def test_action_result_serializes_error(turn):
    result = _act(turn, "p1", ActionType.BUILD_ROAD)
    assert result.to_dict() == {"ok": False, "error": "INVALID_PAYLOAD"}


# Setup


def test_setup_runs_in_snake_order(setup_state):
    order = complete_setup(setup_state)
    assert order == ["p1", "p2", "p3", "p4", "p4", "p3", "p2", "p1"]
    assert setup_state.phase == TurnPhase.ROLL
    assert setup_state.current_player.player_id == "p1"
    assert setup_state.round_number == 1
    for player in setup_state.players:
        assert player.settlements_remaining == 3
        assert player.roads_remaining == 13


def test_second_settlement_grants_adjacent_resources(setup_state):
    state = setup_state
    awarded = {}
    while state.phase != TurnPhase.ROLL:
        player_id = state.current_player.player_id
        (menu,) = state.legal_actions(player_id)
        if menu["type"] == ActionType.PLACE_SETTLEMENT.value:
            result = _act(state, player_id, ActionType.PLACE_SETTLEMENT, corner_id=menu["valid_corners"][0])
            if "initial_resources" in result.data:
                awarded[player_id] = sum(result["initial_resources"].values())
        else:
            result = _act(state, player_id, ActionType.PLACE_ROAD, edge_id=menu["valid_edges"][0])
        assert result.ok

    assert set(awarded) == {"p1", "p2", "p3", "p4"}
    for player in state.players:
        assert sum(player.resources.values()) == awarded[player.player_id]


def test_setup_road_must_touch_new_settlement(setup_state):
    state = setup_state
    assert _act(state, "p1", ActionType.PLACE_SETTLEMENT, corner_id=_corner(state, 0)).ok
    assert state.phase == TurnPhase.SETUP_ROAD_1

    result = _act(state, "p1", ActionType.PLACE_ROAD, edge_id=_edge(state, 3))
    assert result.error == ErrorCode.MUST_CONNECT_TO_SETTLEMENT
    assert _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 1)).error == ErrorCode.WRONG_PHASE

    assert _act(state, "p1", ActionType.PLACE_ROAD, edge_id=_edge(state, 1)).ok
    assert state.current_player.player_id == "p2"
    assert state.phase == TurnPhase.SETUP_SETTLEMENT_1


def test_setup_settlement_accepts_corner_key(setup_state):
    key = corner_key(HexCoord(1, -1), 2)
    result = _act(setup_state, "p1", ActionType.PLACE_SETTLEMENT, corner_id=key)
    assert result.ok
    assert setup_state.board.corners[result["corner_id"]].key == key


# Dice and robber


def test_roll_produces_and_moves_to_main(turn):
    state = turn
    state.phase = TurnPhase.ROLL
    tile = next(tile for tile in state.board.tiles if tile.number_token == 8)
    _settle(state, "p1", state.board.tile_corners[tile.tile_id][0])

    result = roll(state, "p1", 8)

    assert result.ok
    assert result["roll"]["total"] == 8
    assert result["distribution"]["p1"][tile.resource.value] == 1
    assert state.player("p1").resources[tile.resource] == 1
    assert state.phase == TurnPhase.MAIN
    assert state.last_roll.total == 8
    assert roll(state, "p1", 8).error == ErrorCode.WRONG_PHASE


def test_seven_without_big_hands_skips_discard(turn):
    turn.phase = TurnPhase.ROLL
    result = roll(turn, "p1", 7)
    assert result["robber"] is True
    assert result["discards"] == {}
    assert turn.phase == TurnPhase.ROBBER_MOVE


def test_seven_collects_discards(turn):
    state = turn
    state.phase = TurnPhase.ROLL
    set_hand(state.player("p2"), wood=5, ore=4)

    result = roll(state, "p1", 7)
    assert result["discards"] == {"p2": 4}
    assert state.phase == TurnPhase.DISCARD
    assert state.legal_actions("p2") == [{"type": "DISCARD_RESOURCES", "count": 4}]
    assert state.legal_actions("p3") == []

    assert _act(state, "p1", ActionType.MOVE_ROBBER, tile_id=3).error == ErrorCode.WRONG_PHASE
    bad = _act(state, "p3", ActionType.DISCARD_RESOURCES, resources={"wood": 1})
    assert bad.error == ErrorCode.NOT_REQUIRED_TO_DISCARD
    short = _act(state, "p2", ActionType.DISCARD_RESOURCES, resources={"wood": 3})
    assert short.error == ErrorCode.WRONG_DISCARD_COUNT

    done = _act(state, "p2", ActionType.DISCARD_RESOURCES, resources={"wood": 2, "ore": 2})
    assert done.ok
    assert done["waiting_for"] == []
    assert sum(state.player("p2").resources.values()) == 5
    assert state.pending_discards is None
    assert state.phase == TurnPhase.ROBBER_MOVE


def test_robber_move_and_steal(turn):
    state = turn
    state.phase = TurnPhase.ROBBER_MOVE
    _settle(state, "p2", state.board.tile_corners[3][0])
    set_hand(state.player("p2"), wood=1)

    assert _act(state, "p1", ActionType.MOVE_ROBBER, tile_id=0).error == ErrorCode.INVALID_ROBBER_TILE
    assert _act(state, "p1", ActionType.MOVE_ROBBER, tile_id=99).error == ErrorCode.INVALID_TILE
    assert _act(state, "p1", ActionType.MOVE_ROBBER).error == ErrorCode.INVALID_PAYLOAD

    moved = _act(state, "p1", ActionType.MOVE_ROBBER, tile_id=3)
    assert moved["can_steal_from"] == ["p2"]
    assert state.phase == TurnPhase.ROBBER_STEAL
    assert state.board.robber_tile_id == 3

    wrong = _act(state, "p1", ActionType.STEAL_RESOURCE, target_player_id="p3")
    assert wrong.error == ErrorCode.INVALID_STEAL_TARGET

    stolen = _act(state, "p1", ActionType.STEAL_RESOURCE, target_player_id="p2")
    assert stolen["stolen"] == "wood"
    assert state.player("p1").resources[ResourceType.WOOD] == 1
    assert state.player("p2").resources[ResourceType.WOOD] == 0
    assert state.phase == TurnPhase.MAIN
    assert state.pending_action is None


def test_robber_on_empty_tile_skips_steal(turn):
    turn.phase = TurnPhase.ROBBER_MOVE
    result = _act(turn, "p1", ActionType.MOVE_ROBBER, tile_id=5)
    assert result["can_steal_from"] == []
    assert turn.phase == TurnPhase.MAIN


# Building


def test_build_road(turn):
    state = turn
    player = state.player("p1")
    _settle(state, "p1", _corner(state, 0))
    roads_before = player.roads_remaining

    assert _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 1)).error == ErrorCode.NOT_ENOUGH_RESOURCES
    set_hand(player, wood=1, brick=1)
    assert _act(state, "p1", ActionType.BUILD_ROAD, edge_id="E:9,9,0").error == ErrorCode.INVALID_EDGE
    assert _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 3)).error == ErrorCode.NOT_CONNECTED

    result = _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 1))
    assert result.ok
    assert result["free"] is False
    assert state.board.edges[_edge(state, 1)].owner == "p1"
    assert player.roads_remaining == roads_before - 1
    assert sum(player.resources.values()) == 0


def test_build_settlement(turn):
    state = turn
    player = state.player("p1")
    _settle(state, "p1", _corner(state, 0))
    for direction in (1, 2):
        state.board.edges[_edge(state, direction)].owner = "p1"
    set_hand(player, wood=1, brick=1, sheep=1, wheat=1)
    left = player.settlements_remaining

    too_close = _act(state, "p1", ActionType.BUILD_SETTLEMENT, corner_id=_corner(state, 1))
    assert too_close.error == ErrorCode.TOO_CLOSE_TO_BUILDING

    result = _act(state, "p1", ActionType.BUILD_SETTLEMENT, corner_id=_corner(state, 2))
    assert result.ok
    assert state.board.corners[_corner(state, 2)].owner == "p1"
    assert player.settlements_remaining == left - 1
    assert sum(player.resources.values()) == 0


def test_build_settlement_without_pieces(turn):
    player = turn.player("p1")
    player.settlements_remaining = 0
    set_hand(player, wood=1, brick=1, sheep=1, wheat=1)
    result = _act(turn, "p1", ActionType.BUILD_SETTLEMENT, corner_id=_corner(turn, 0))
    assert result.error == ErrorCode.NO_SETTLEMENTS_LEFT


def test_build_city_upgrades_settlement(turn):
    state = turn
    player = state.player("p1")
    corner_id = _corner(state, 0)
    _settle(state, "p1", corner_id)
    set_hand(player, wheat=4, ore=6)
    settlements, cities = player.settlements_remaining, player.cities_remaining

    assert _act(state, "p1", ActionType.BUILD_CITY, corner_id=corner_id).ok
    assert state.board.corners[corner_id].building == BuildingType.CITY
    assert player.cities_remaining == cities - 1
    assert player.settlements_remaining == settlements + 1
    assert player.resources[ResourceType.WHEAT] == 2
    assert player.resources[ResourceType.ORE] == 3

    again = _act(state, "p1", ActionType.BUILD_CITY, corner_id=corner_id)
    assert again.error == ErrorCode.NO_SETTLEMENT_HERE


def test_fifth_road_takes_longest_road(turn):
    state = turn
    player = state.player("p1")
    _settle(state, "p1", _corner(state, 0))
    for direction in (1, 2, 3, 4):
        state.board.edges[_edge(state, direction)].owner = "p1"
    set_hand(player, wood=1, brick=1)

    result = _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 5))
    assert result["longest_road_holder"] == "p1"
    assert player.longest_road_length == 5


# Development cards


def test_knight_before_roll_returns_to_roll(turn):
    state = turn
    state.phase = TurnPhase.ROLL
    _give_card(state, "p1", DevCardType.KNIGHT)

    result = _act(state, "p1", ActionType.PLAY_DEV_CARD, card_type="knight")
    assert result["requires_robber_move"] is True
    assert state.phase == TurnPhase.ROBBER_MOVE

    assert _act(state, "p1", ActionType.MOVE_ROBBER, tile_id=5).ok
    assert state.phase == TurnPhase.ROLL
    assert roll(state, "p1", 9).ok


def test_play_dev_card_accepts_enum_card_type(turn):
    state = turn
    _give_card(state, "p1", DevCardType.KNIGHT)

    result = _act(state, "p1", ActionType.PLAY_DEV_CARD, card_type=DevCardType.KNIGHT)
    assert result.ok
    assert result["card_type"] == "knight"
    assert state.phase == TurnPhase.ROBBER_MOVE
    assert state.player("p1").knights_played == 1


def test_road_building_places_free_roads(turn):
    state = turn
    player = state.player("p1")
    _settle(state, "p1", _corner(state, 0))
    _give_card(state, "p1", DevCardType.ROAD_BUILDING)

    result = _act(state, "p1", ActionType.PLAY_DEV_CARD, card_type="road_building")
    assert result["roads_to_place"] == 2
    assert _act(state, "p1", ActionType.BUY_DEV_CARD).error == ErrorCode.PENDING_ACTION_REQUIRED

    first = _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 1))
    assert first["free"] is True
    assert first["free_roads_left"] == 1
    assert isinstance(state.pending_action, RoadBuilding)

    second = _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 2))
    assert second["free_roads_left"] == 0
    assert state.pending_action is None
    assert sum(player.resources.values()) == 0


def test_road_building_in_roll_phase_is_wrong_phase(turn):
    turn.phase = TurnPhase.ROLL
    _give_card(turn, "p1", DevCardType.ROAD_BUILDING)
    result = _act(turn, "p1", ActionType.PLAY_DEV_CARD, card_type="road_building")
    assert result.error == ErrorCode.WRONG_PHASE
    assert turn.player("p1").dev_cards


def test_unused_free_roads_are_forfeited_at_end_of_turn(turn):
    state = turn
    _settle(state, "p1", _corner(state, 0))
    _give_card(state, "p1", DevCardType.ROAD_BUILDING)
    _act(state, "p1", ActionType.PLAY_DEV_CARD, card_type="road_building")
    assert _act(state, "p1", ActionType.BUILD_ROAD, edge_id=_edge(state, 1)).ok

    result = _act(state, "p1", ActionType.END_TURN)
    assert result["next_player"] == "p2"
    assert state.pending_action is None


def test_year_of_plenty_requires_selection(turn):
    state = turn
    _give_card(state, "p1", DevCardType.YEAR_OF_PLENTY)
    assert _act(state, "p1", ActionType.SELECT_RESOURCES, resource1="ore", resource2="ore").error == (
        ErrorCode.NO_PENDING_YEAR_OF_PLENTY
    )

    assert _act(state, "p1", ActionType.PLAY_DEV_CARD, card_type="year_of_plenty").ok
    assert isinstance(state.pending_action, YearOfPlenty)
    assert _act(state, "p1", ActionType.END_TURN).error == ErrorCode.PENDING_ACTION_REQUIRED
    bad = _act(state, "p1", ActionType.SELECT_RESOURCES, resource1="ore", resource2="gold")
    assert bad.error == ErrorCode.INVALID_RESOURCE

    assert _act(state, "p1", ActionType.SELECT_RESOURCES, resource1="ore", resource2="ore").ok
    assert state.player("p1").resources[ResourceType.ORE] == 2
    assert state.pending_action is None


def test_monopoly_collects_from_everyone(turn):
    state = turn
    set_hand(state.player("p2"), wheat=2)
    set_hand(state.player("p3"), wheat=1, ore=1)
    _give_card(state, "p1", DevCardType.MONOPOLY)

    assert _act(state, "p1", ActionType.PLAY_DEV_CARD, card_type="monopoly").ok
    result = _act(state, "p1", ActionType.SELECT_RESOURCE_TYPE, resource_type="wheat")
    assert result["taken"] == 3
    assert state.player("p1").resources[ResourceType.WHEAT] == 3
    assert state.player("p3").resources[ResourceType.ORE] == 1


def test_unplayable_card_types(turn):
    _give_card(turn, "p1", DevCardType.VICTORY_POINT)
    vp = _act(turn, "p1", ActionType.PLAY_DEV_CARD, card_type="victory_point")
    assert vp.error == ErrorCode.VP_CARDS_ARE_AUTOMATIC
    unknown = _act(turn, "p1", ActionType.PLAY_DEV_CARD, card_type="dragon")
    assert unknown.error == ErrorCode.UNKNOWN_CARD_TYPE


# Trading


def test_trade_accept(turn):
    state = turn
    set_hand(state.player("p1"), wood=2)
    set_hand(state.player("p2"), ore=1)

    proposed = _act(
        state, "p1", ActionType.PROPOSE_TRADE, to_player_id="p2", offer={"wood": 1}, request={"ore": 1}
    )
    trade_id = proposed["trade_offer"]["trade_id"]
    assert trade_id == "trade-1"
    assert state.legal_actions("p2") == [
        {"type": "ACCEPT_TRADE", "trade_id": trade_id},
        {"type": "REJECT_TRADE", "trade_id": trade_id},
    ]

    assert _act(state, "p3", ActionType.ACCEPT_TRADE, trade_id=trade_id).error == ErrorCode.NOT_TRADE_TARGET
    assert _act(state, "p2", ActionType.ACCEPT_TRADE, trade_id="trade-9").error == ErrorCode.NO_SUCH_TRADE

    accepted = _act(state, "p2", ActionType.ACCEPT_TRADE, trade_id=trade_id)
    assert accepted["trade"]["status"] == "accepted"
    assert state.trade_offer is None
    assert state.player("p1").resources[ResourceType.WOOD] == 1
    assert state.player("p1").resources[ResourceType.ORE] == 1
    assert state.player("p2").resources[ResourceType.WOOD] == 1
    assert state.player("p2").resources[ResourceType.ORE] == 0


def test_trade_proposal_validation(turn):
    set_hand(turn.player("p1"), wood=1)
    result = _act(turn, "p1", ActionType.PROPOSE_TRADE, to_player_id="p2", offer={"wood": 1}, request={"ore": 1})
    assert result.error == ErrorCode.TARGET_LACKS_RESOURCES
    result = _act(turn, "p1", ActionType.PROPOSE_TRADE, to_player_id="p2", offer="wood", request={"ore": 1})
    assert result.error == ErrorCode.INVALID_PAYLOAD
    assert turn.trade_offer is None


def test_trade_reject_and_cancel(turn):
    state = turn
    set_hand(state.player("p1"), wood=2)
    set_hand(state.player("p2"), ore=2)

    def propose():
        return _act(
            state, "p1", ActionType.PROPOSE_TRADE, to_player_id="p2", offer={"wood": 1}, request={"ore": 1}
        )["trade_offer"]["trade_id"]

    first = propose()
    assert _act(state, "p3", ActionType.REJECT_TRADE, trade_id=first).error == ErrorCode.NOT_TRADE_TARGET
    assert _act(state, "p2", ActionType.REJECT_TRADE, trade_id=first)["trade"]["status"] == "rejected"
    assert state.trade_offer is None

    second = propose()
    assert second == "trade-2"
    assert _act(state, "p2", ActionType.CANCEL_TRADE, trade_id=second).error == ErrorCode.NOT_TRADE_OWNER
    assert _act(state, "p1", ActionType.CANCEL_TRADE, trade_id=second)["trade"]["status"] == "cancelled"
    assert state.player("p1").resources[ResourceType.WOOD] == 2


def test_bank_trade(turn):
    player = turn.player("p1")
    set_hand(player, wood=4)
    bad = _act(turn, "p1", ActionType.BANK_TRADE, give_resource="wood", receive_resource="gold")
    assert bad.error == ErrorCode.INVALID_RESOURCE

    result = _act(turn, "p1", ActionType.BANK_TRADE, give_resource="wood", receive_resource="ore")
    assert result["ratio"] == 4
    assert player.resources[ResourceType.WOOD] == 0
    assert player.resources[ResourceType.ORE] == 1


# Turn flow


def test_end_turn_resets_turn_state(turn):
    state = turn
    player = state.player("p1")
    set_hand(player, wood=1)
    set_hand(state.player("p2"), ore=1)
    _act(state, "p1", ActionType.PROPOSE_TRADE, to_player_id="p2", offer={"wood": 1}, request={"ore": 1})
    player.dev_cards.append(DevCard("knight-new", DevCardType.KNIGHT, bought_this_turn=True))
    state.dev_card_played_this_turn = True

    result = _act(state, "p1", ActionType.END_TURN)

    assert result["next_player"] == "p2"
    assert state.phase == TurnPhase.ROLL
    assert state.trade_offer is None
    assert state.dev_card_played_this_turn is False
    assert not any(card.bought_this_turn for card in player.dev_cards)
    assert _act(state, "p2", ActionType.END_TURN).error == ErrorCode.WRONG_PHASE


def test_round_number_counts_every_turn(turn):
    state = turn
    assert state.round_number == 1
    for expected, player_id in enumerate(("p1", "p2", "p3", "p4"), start=2):
        if player_id != "p1":
            assert roll(state, player_id, 9).ok
        assert _act(state, player_id, ActionType.END_TURN).ok
        assert state.round_number == expected
    assert state.current_player.player_id == "p1"


def test_reaching_target_finishes_game(turn):
    state = turn
    player = state.player("p1")
    for corner_id in (20, 30, 40, 50):
        _settle(state, "p1", corner_id, BuildingType.CITY)
    _give_card(state, "p1", DevCardType.VICTORY_POINT)
    set_hand(player, sheep=1, wheat=1, ore=1)

    # The top of an unshuffled deck is a victory point card.
    result = _act(state, "p1", ActionType.BUY_DEV_CARD)

    assert result["card"]["card_type"] == "victory_point"
    assert result["winner"] == "p1"
    assert state.winner == "p1"
    assert state.phase == TurnPhase.FINISHED
    assert _act(state, "p2", ActionType.END_TURN).error == ErrorCode.GAME_OVER
    assert state.legal_actions("p1") == []
