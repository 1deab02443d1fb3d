from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Mapping, Optional

from ..utils.logging_config import get_logger
from .dev_cards import (
    buy_dev_card,
    can_play_dev_card,
    clear_bought_this_turn,
    parse_dev_card_type,
    play_knight,
    play_monopoly,
    play_road_building,
    play_year_of_plenty,
)
from .errors import ActionResult, ErrorCode, RuleViolation
from .game_state import (
    DiceRoll,
    GameState,
    Monopoly,
    PlayerState,
    RoadBuilding,
    SetupRoad,
    Steal,
    TradeOffer,
    TurnPhase,
    YearOfPlenty,
)
from .placement import can_place_city, can_place_road, can_place_settlement
from .resources import (
    COSTS,
    add_resources,
    apply_monopoly,
    apply_year_of_plenty,
    bundle_to_dict,
    can_afford,
    check_bank_trade,
    deduct_resources,
    distribute_resources,
    execute_bank_trade,
    execute_player_trade,
    initial_resources,
    parse_bundle,
    parse_resource,
    players_to_discard,
    steal_random_resource,
    total_resources,
    validate_discard,
    validate_trade_offer,
)
from .scoring import check_victory, update_longest_road
from .types import Action, ActionType, BuildingType, DevCardType

logger = get_logger(__name__)

Payload = Mapping[str, object]
Handler = Callable[[GameState, PlayerState, Payload], ActionResult]

# Actions that a player other than the turn-holder may take.
OFF_TURN_ACTIONS = (
    ActionType.DISCARD_RESOURCES,
    ActionType.ACCEPT_TRADE,
    ActionType.REJECT_TRADE,
    ActionType.CANCEL_TRADE,
)

# Follow-ups that remain legal while a card effect is unresolved.
PENDING_FOLLOW_UPS = {
    RoadBuilding: (ActionType.BUILD_ROAD, ActionType.END_TURN),
    YearOfPlenty: (ActionType.SELECT_RESOURCES,),
    Monopoly: (ActionType.SELECT_RESOURCE_TYPE,),
}


def _resolve_corner(state: GameState, payload: Payload) -> int | RuleViolation:
    if "corner_id" not in payload:
        return RuleViolation(ErrorCode.INVALID_PAYLOAD)
    corner_id = state.board.corner_id(payload["corner_id"])
    if corner_id is None:
        return RuleViolation(ErrorCode.INVALID_CORNER)
    return corner_id


def _resolve_edge(state: GameState, payload: Payload) -> int | RuleViolation:
    if "edge_id" not in payload:
        return RuleViolation(ErrorCode.INVALID_PAYLOAD)
    edge_id = state.board.edge_id(payload["edge_id"])
    if edge_id is None:
        return RuleViolation(ErrorCode.INVALID_EDGE)
    return edge_id


def _place_building(state: GameState, player: PlayerState, corner_id: int) -> None:
    corner = state.board.corners[corner_id]
    corner.building = BuildingType.SETTLEMENT
    corner.owner = player.player_id
    player.settlements_remaining -= 1


def _place_road_piece(state: GameState, player: PlayerState, edge_id: int) -> None:
    state.board.edges[edge_id].owner = player.player_id
    player.roads_remaining -= 1


def _return_from_robber(state: GameState) -> None:
    state.pending_action = None
    state.phase = state.robber_return_phase
    state.robber_return_phase = TurnPhase.MAIN


# Setup


def _handle_place_settlement(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase not in (TurnPhase.SETUP_SETTLEMENT_1, TurnPhase.SETUP_SETTLEMENT_2):
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    corner_id = _resolve_corner(state, payload)
    if isinstance(corner_id, RuleViolation):
        return ActionResult.failure(corner_id)
    violation = can_place_settlement(state.board, corner_id, player.player_id, is_setup=True)
    if violation is not None:
        return ActionResult.failure(violation)

    _place_building(state, player, corner_id)
    state.pending_action = SetupRoad(corner_id=corner_id)

    if state.phase == TurnPhase.SETUP_SETTLEMENT_2:
        award = initial_resources(state.board, corner_id)
        add_resources(player, award)
        state.phase = TurnPhase.SETUP_ROAD_2
        return ActionResult.success(corner_id=corner_id, initial_resources=bundle_to_dict(award))

    state.phase = TurnPhase.SETUP_ROAD_1
    return ActionResult.success(corner_id=corner_id)


def _handle_place_road(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase not in (TurnPhase.SETUP_ROAD_1, TurnPhase.SETUP_ROAD_2):
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    edge_id = _resolve_edge(state, payload)
    if isinstance(edge_id, RuleViolation):
        return ActionResult.failure(edge_id)
    pending = state.pending_action
    setup_corner_id = pending.corner_id if isinstance(pending, SetupRoad) else None
    violation = can_place_road(state.board, edge_id, player.player_id, True, setup_corner_id)
    if violation is not None:
        return ActionResult.failure(violation)

    _place_road_piece(state, player, edge_id)
    state.pending_action = None
    update_longest_road(state)

    last_seat = len(state.players) - 1
    if state.phase == TurnPhase.SETUP_ROAD_1:
        if state.turn_index == last_seat:
            # The last seat places twice in a row.
            state.phase = TurnPhase.SETUP_SETTLEMENT_2
        else:
            state.turn_index += 1
            state.phase = TurnPhase.SETUP_SETTLEMENT_1
    elif state.turn_index == 0:
        state.phase = TurnPhase.ROLL
        state.round_number = 1
        logger.info("setup_complete", first_player=state.current_player.player_id)
    else:
        state.turn_index -= 1
        state.phase = TurnPhase.SETUP_SETTLEMENT_2

    return ActionResult.success(edge_id=edge_id)


# Dice and robber


def _handle_roll_dice(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.ROLL:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)

    roll = DiceRoll(state.rng.randint(1, 6), state.rng.randint(1, 6))
    state.last_roll = roll
    roll_data = {"die1": roll.die1, "die2": roll.die2, "total": roll.total}

    if roll.total == 7:
        discards = players_to_discard(state)
        state.robber_return_phase = TurnPhase.MAIN
        if discards:
            state.pending_discards = discards
            state.phase = TurnPhase.DISCARD
        else:
            state.pending_discards = None
            state.phase = TurnPhase.ROBBER_MOVE
        logger.info("seven_rolled", player_id=player.player_id, discards=discards)
        return ActionResult.success(roll=roll_data, robber=True, discards=dict(discards))

    distribution = distribute_resources(state, roll.total)
    state.phase = TurnPhase.MAIN
    return ActionResult.success(
        roll=roll_data,
        distribution={pid: bundle_to_dict(award) for pid, award in distribution.items()},
    )


def _handle_discard(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.DISCARD:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    required = (state.pending_discards or {}).get(player.player_id)
    if required is None:
        return ActionResult.failure(ErrorCode.NOT_REQUIRED_TO_DISCARD)

    bundle = parse_bundle(payload.get("resources"))
    if isinstance(bundle, RuleViolation):
        return ActionResult.failure(bundle)
    violation = validate_discard(player, bundle, required)
    if violation is not None:
        return ActionResult.failure(violation)

    deduct_resources(player, bundle)
    del state.pending_discards[player.player_id]
    if not state.pending_discards:
        state.pending_discards = None
        state.phase = TurnPhase.ROBBER_MOVE

    return ActionResult.success(
        discarded=bundle_to_dict(bundle),
        waiting_for=sorted(state.pending_discards or {}),
    )


def _handle_move_robber(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.ROBBER_MOVE:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    if "tile_id" not in payload:
        return ActionResult.failure(ErrorCode.INVALID_PAYLOAD)
    tile_id = state.board.tile_id(payload["tile_id"])
    if tile_id is None:
        return ActionResult.failure(ErrorCode.INVALID_TILE)
    if tile_id not in state.board.valid_robber_tiles():
        return ActionResult.failure(ErrorCode.INVALID_ROBBER_TILE)

    state.board.move_robber(tile_id)

    targets = []
    for owner in state.board.players_on_tile(tile_id):
        victim = state.player(owner)
        if owner != player.player_id and victim is not None and total_resources(victim.resources) > 0:
            targets.append(owner)

    if not targets:
        _return_from_robber(state)
    else:
        state.pending_action = Steal(candidate_targets=tuple(targets))
        state.phase = TurnPhase.ROBBER_STEAL

    return ActionResult.success(tile_id=tile_id, can_steal_from=targets)


def _handle_steal(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.ROBBER_STEAL:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    pending = state.pending_action
    target_id = payload.get("target_player_id")
    if not isinstance(pending, Steal) or target_id not in pending.candidate_targets:
        return ActionResult.failure(ErrorCode.INVALID_STEAL_TARGET)

    stolen = steal_random_resource(state.rng, state.player(target_id), player)
    _return_from_robber(state)
    return ActionResult.success(stolen=stolen.value if stolen else None, from_player=target_id)


# Building


def _handle_build_road(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    edge_id = _resolve_edge(state, payload)
    if isinstance(edge_id, RuleViolation):
        return ActionResult.failure(edge_id)
    if player.roads_remaining <= 0:
        return ActionResult.failure(ErrorCode.NO_ROADS_LEFT)

    road_building = state.pending_action if isinstance(state.pending_action, RoadBuilding) else None
    if road_building is None and not can_afford(player, "road"):
        return ActionResult.failure(ErrorCode.NOT_ENOUGH_RESOURCES)
    violation = can_place_road(state.board, edge_id, player.player_id)
    if violation is not None:
        return ActionResult.failure(violation)

    if road_building is None:
        deduct_resources(player, COSTS["road"])
    _place_road_piece(state, player, edge_id)
    update_longest_road(state)

    free_roads_left = 0
    if road_building is not None:
        road_building.roads_placed += 1
        free_roads_left = road_building.remaining
        if free_roads_left <= 0 or player.roads_remaining <= 0:
            state.pending_action = None
            free_roads_left = 0

    return ActionResult.success(
        edge_id=edge_id,
        free=road_building is not None,
        free_roads_left=free_roads_left,
        longest_road_holder=state.longest_road_holder,
    )


def _handle_build_settlement(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    corner_id = _resolve_corner(state, payload)
    if isinstance(corner_id, RuleViolation):
        return ActionResult.failure(corner_id)
    if player.settlements_remaining <= 0:
        return ActionResult.failure(ErrorCode.NO_SETTLEMENTS_LEFT)
    if not can_afford(player, "settlement"):
        return ActionResult.failure(ErrorCode.NOT_ENOUGH_RESOURCES)
    violation = can_place_settlement(state.board, corner_id, player.player_id)
    if violation is not None:
        return ActionResult.failure(violation)

    deduct_resources(player, COSTS["settlement"])
    _place_building(state, player, corner_id)
    # A new settlement can cut an opponent's road.
    update_longest_road(state)
    return ActionResult.success(corner_id=corner_id, longest_road_holder=state.longest_road_holder)


def _handle_build_city(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    corner_id = _resolve_corner(state, payload)
    if isinstance(corner_id, RuleViolation):
        return ActionResult.failure(corner_id)
    if player.cities_remaining <= 0:
        return ActionResult.failure(ErrorCode.NO_CITIES_LEFT)
    if not can_afford(player, "city"):
        return ActionResult.failure(ErrorCode.NOT_ENOUGH_RESOURCES)
    violation = can_place_city(state.board, corner_id, player.player_id)
    if violation is not None:
        return ActionResult.failure(violation)

    deduct_resources(player, COSTS["city"])
    state.board.corners[corner_id].building = BuildingType.CITY
    player.cities_remaining -= 1
    player.settlements_remaining += 1
    return ActionResult.success(corner_id=corner_id)


# Development cards


def _handle_buy_dev_card(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    card = buy_dev_card(state, player.player_id)
    if isinstance(card, RuleViolation):
        return ActionResult.failure(card)
    return ActionResult.success(
        card={"card_id": card.card_id, "card_type": card.card_type.value},
        cards_left=len(state.dev_card_deck),
    )


def _handle_play_dev_card(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase not in (TurnPhase.MAIN, TurnPhase.ROLL):
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    card_type = parse_dev_card_type(payload.get("card_type"))
    if card_type is None:
        return ActionResult.failure(ErrorCode.UNKNOWN_CARD_TYPE)

    if card_type == DevCardType.KNIGHT:
        violation = play_knight(state, player.player_id)
        if violation is not None:
            return ActionResult.failure(violation)
        state.robber_return_phase = state.phase
        state.phase = TurnPhase.ROBBER_MOVE
        return ActionResult.success(
            card_type=card_type.value,
            requires_robber_move=True,
            largest_army_holder=state.largest_army_holder,
        )

    if card_type == DevCardType.ROAD_BUILDING:
        if state.phase != TurnPhase.MAIN:
            return ActionResult.failure(ErrorCode.WRONG_PHASE)
        roads = play_road_building(state, player.player_id)
        if isinstance(roads, RuleViolation):
            return ActionResult.failure(roads)
        return ActionResult.success(card_type=card_type.value, roads_to_place=roads)

    if card_type == DevCardType.YEAR_OF_PLENTY:
        violation = play_year_of_plenty(state, player.player_id)
        if violation is not None:
            return ActionResult.failure(violation)
        return ActionResult.success(card_type=card_type.value, requires_resource_selection=True)

    if card_type == DevCardType.MONOPOLY:
        violation = play_monopoly(state, player.player_id)
        if violation is not None:
            return ActionResult.failure(violation)
        return ActionResult.success(card_type=card_type.value, requires_resource_type_selection=True)

    card = can_play_dev_card(state, player.player_id, card_type)
    return ActionResult.failure(card if isinstance(card, RuleViolation) else ErrorCode.UNKNOWN_CARD_TYPE)


def _handle_select_resources(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if not isinstance(state.pending_action, YearOfPlenty):
        return ActionResult.failure(ErrorCode.NO_PENDING_YEAR_OF_PLENTY)
    first = parse_resource(payload.get("resource1"))
    second = parse_resource(payload.get("resource2"))
    if first is None or second is None:
        return ActionResult.failure(ErrorCode.INVALID_RESOURCE)
    apply_year_of_plenty(player, (first, second))
    state.pending_action = None
    return ActionResult.success(resources=[first.value, second.value])


def _handle_select_resource_type(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if not isinstance(state.pending_action, Monopoly):
        return ActionResult.failure(ErrorCode.NO_PENDING_MONOPOLY)
    resource = parse_resource(payload.get("resource_type"))
    if resource is None:
        return ActionResult.failure(ErrorCode.INVALID_RESOURCE)
    taken = apply_monopoly(state, player.player_id, resource)
    state.pending_action = None
    return ActionResult.success(resource_type=resource.value, taken=taken)


# Trading


def _open_trade(state: GameState, trade_id: object) -> Optional[TradeOffer]:
    offer = state.trade_offer
    if offer is None or offer.trade_id != trade_id:
        return None
    return offer


def _handle_propose_trade(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    offer = parse_bundle(payload.get("offer"))
    if isinstance(offer, RuleViolation):
        return ActionResult.failure(offer)
    request = parse_bundle(payload.get("request"))
    if isinstance(request, RuleViolation):
        return ActionResult.failure(request)
    to_player_id = payload.get("to_player_id")
    violation = validate_trade_offer(state, player.player_id, to_player_id, offer, request)
    if violation is not None:
        return ActionResult.failure(violation)

    state.trades_proposed += 1
    state.trade_offer = TradeOffer(
        trade_id=f"trade-{state.trades_proposed}",
        from_player=player.player_id,
        to_player=str(to_player_id),
        offer=offer,
        request=request,
    )
    return ActionResult.success(trade_offer=state.trade_offer.to_dict())


def _handle_accept_trade(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    offer = _open_trade(state, payload.get("trade_id"))
    if offer is None:
        return ActionResult.failure(ErrorCode.NO_SUCH_TRADE)
    if offer.to_player != player.player_id:
        return ActionResult.failure(ErrorCode.NOT_TRADE_TARGET)

    # Hands may have changed since the offer; it closes either way.
    state.trade_offer = None
    violation = execute_player_trade(state, offer.from_player, offer.to_player, offer.offer, offer.request)
    if violation is not None:
        return ActionResult.failure(violation)
    return ActionResult.success(trade=replace(offer, status="accepted").to_dict())


def _handle_reject_trade(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    offer = _open_trade(state, payload.get("trade_id"))
    if offer is None:
        return ActionResult.failure(ErrorCode.NO_SUCH_TRADE)
    if offer.to_player != player.player_id:
        return ActionResult.failure(ErrorCode.NOT_TRADE_TARGET)
    state.trade_offer = None
    return ActionResult.success(trade=replace(offer, status="rejected").to_dict())


def _handle_cancel_trade(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    offer = _open_trade(state, payload.get("trade_id"))
    if offer is None:
        return ActionResult.failure(ErrorCode.NO_SUCH_TRADE)
    if offer.from_player != player.player_id:
        return ActionResult.failure(ErrorCode.NOT_TRADE_OWNER)
    state.trade_offer = None
    return ActionResult.success(trade=replace(offer, status="cancelled").to_dict())


def _handle_bank_trade(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    give = parse_resource(payload.get("give_resource"))
    receive = parse_resource(payload.get("receive_resource"))
    if give is None or receive is None:
        return ActionResult.failure(ErrorCode.INVALID_RESOURCE)
    ratio = check_bank_trade(state, player, give, receive)
    if isinstance(ratio, RuleViolation):
        return ActionResult.failure(ratio)
    execute_bank_trade(player, give, receive, ratio)
    return ActionResult.success(give=give.value, receive=receive.value, ratio=ratio)


# Turn


def _handle_end_turn(state: GameState, player: PlayerState, payload: Payload) -> ActionResult:
    if state.phase != TurnPhase.MAIN:
        return ActionResult.failure(ErrorCode.WRONG_PHASE)
    if state.pending_action is not None:
        if not isinstance(state.pending_action, RoadBuilding):
            return ActionResult.failure(ErrorCode.PENDING_ACTION_REQUIRED)
        # Unplaced free roads are forfeited.
        state.pending_action = None

    state.trade_offer = None
    state.dev_card_played_this_turn = False
    clear_bought_this_turn(player)
    state.robber_return_phase = TurnPhase.MAIN

    state.turn_index = (state.turn_index + 1) % len(state.players)
    state.round_number += 1
    state.phase = TurnPhase.ROLL
    state.last_roll = None
    return ActionResult.success(next_player=state.current_player.player_id)


HANDLERS: Dict[ActionType, Handler] = {
    ActionType.PLACE_SETTLEMENT: _handle_place_settlement,
    ActionType.PLACE_ROAD: _handle_place_road,
    ActionType.ROLL_DICE: _handle_roll_dice,
    ActionType.DISCARD_RESOURCES: _handle_discard,
    ActionType.MOVE_ROBBER: _handle_move_robber,
    ActionType.STEAL_RESOURCE: _handle_steal,
    ActionType.BUILD_ROAD: _handle_build_road,
    ActionType.BUILD_SETTLEMENT: _handle_build_settlement,
    ActionType.BUILD_CITY: _handle_build_city,
    ActionType.BUY_DEV_CARD: _handle_buy_dev_card,
    ActionType.PLAY_DEV_CARD: _handle_play_dev_card,
    ActionType.SELECT_RESOURCES: _handle_select_resources,
    ActionType.SELECT_RESOURCE_TYPE: _handle_select_resource_type,
    ActionType.PROPOSE_TRADE: _handle_propose_trade,
    ActionType.ACCEPT_TRADE: _handle_accept_trade,
    ActionType.REJECT_TRADE: _handle_reject_trade,
    ActionType.CANCEL_TRADE: _handle_cancel_trade,
    ActionType.BANK_TRADE: _handle_bank_trade,
    ActionType.END_TURN: _handle_end_turn,
}


def validate_turn(state: GameState, player_id: str, action_type: ActionType) -> Optional[RuleViolation]:
    """Checks shared by every action before its handler runs."""
    if state.phase == TurnPhase.FINISHED:
        return RuleViolation(ErrorCode.GAME_OVER)
    if state.phase == TurnPhase.LOBBY:
        return RuleViolation(ErrorCode.WRONG_PHASE)
    if state.player(player_id) is None:
        return RuleViolation(ErrorCode.PLAYER_NOT_FOUND)
    if action_type in OFF_TURN_ACTIONS:
        return None
    if state.current_player.player_id != player_id:
        return RuleViolation(ErrorCode.NOT_YOUR_TURN)

    allowed = PENDING_FOLLOW_UPS.get(type(state.pending_action))
    if allowed is not None and action_type not in allowed:
        return RuleViolation(ErrorCode.PENDING_ACTION_REQUIRED)
    return None


def apply_action(state: GameState, player_id: str, action: Action) -> ActionResult:
    violation = validate_turn(state, player_id, action.action_type)
    handler = HANDLERS.get(action.action_type)
    if violation is None and handler is None:
        violation = RuleViolation(ErrorCode.UNKNOWN_ACTION)
    if violation is not None:
        logger.debug(
            "action_rejected", player_id=player_id, action=action.action_type.value, error=violation.reason.value
        )
        return ActionResult.failure(violation)

    result = handler(state, state.player(player_id), action.payload)
    if not result.ok:
        logger.debug(
            "action_rejected", player_id=player_id, action=action.action_type.value, error=result.error.value
        )
        return result

    winner = check_victory(state)
    if winner is not None:
        state.winner = winner
        state.phase = TurnPhase.FINISHED
        state.pending_action = None
        state.trade_offer = None
        result.data["winner"] = winner
        logger.info("game_finished", winner=winner, round_number=state.round_number)
    return result
