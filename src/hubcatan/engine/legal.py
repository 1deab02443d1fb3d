"""Legal-action menu used to drive a client UI."""
from __future__ import annotations

from typing import Dict, List

from .dev_cards import can_buy_dev_card, playable_cards
from .game_state import GameState, Monopoly, PlayerState, RoadBuilding, SetupRoad, Steal, TurnPhase, YearOfPlenty
from .placement import valid_city_corners, valid_road_edges, valid_settlement_corners
from .resources import best_trade_ratio, can_afford
from .types import RESOURCE_TYPES, ActionType, DevCardType

Menu = List[Dict[str, object]]


def _entry(action_type: ActionType, **fields: object) -> Dict[str, object]:
    entry: Dict[str, object] = {"type": action_type.value}
    entry.update(fields)
    return entry


def _card_entry(state: GameState, player_id: str) -> Menu:
    cards = playable_cards(state, player_id)
    if state.phase == TurnPhase.ROLL:
        cards = [card for card in cards if card != DevCardType.ROAD_BUILDING]
    if not cards:
        return []
    return [_entry(ActionType.PLAY_DEV_CARD, cards=[card.value for card in cards])]


def _bank_trades(state: GameState, player: PlayerState) -> List[Dict[str, object]]:
    trades = []
    for give in RESOURCE_TYPES:
        ratio = best_trade_ratio(state.board, player.player_id, give)
        if player.resources[give] < ratio:
            continue
        for receive in RESOURCE_TYPES:
            if receive != give:
                trades.append({"give": give.value, "receive": receive.value, "ratio": ratio})
    return trades


def _main_turn(state: GameState, player: PlayerState) -> Menu:
    board = state.board
    pending = state.pending_action
    actions: Menu = []

    if isinstance(pending, RoadBuilding):
        edges = valid_road_edges(board, player.player_id)
        if edges and player.roads_remaining > 0:
            actions.append(_entry(ActionType.BUILD_ROAD, valid_edges=edges, free=True, remaining=pending.remaining))
        # Remaining free roads may be abandoned.
        actions.append(_entry(ActionType.END_TURN))
        return actions
    if isinstance(pending, YearOfPlenty):
        return [_entry(ActionType.SELECT_RESOURCES, count=2, resources=[r.value for r in RESOURCE_TYPES])]
    if isinstance(pending, Monopoly):
        return [_entry(ActionType.SELECT_RESOURCE_TYPE, resources=[r.value for r in RESOURCE_TYPES])]

    if player.roads_remaining > 0 and can_afford(player, "road"):
        edges = valid_road_edges(board, player.player_id)
        if edges:
            actions.append(_entry(ActionType.BUILD_ROAD, valid_edges=edges))
    if player.settlements_remaining > 0 and can_afford(player, "settlement"):
        corners = valid_settlement_corners(board, player.player_id)
        if corners:
            actions.append(_entry(ActionType.BUILD_SETTLEMENT, valid_corners=corners))
    if player.cities_remaining > 0 and can_afford(player, "city"):
        corners = valid_city_corners(board, player.player_id)
        if corners:
            actions.append(_entry(ActionType.BUILD_CITY, valid_corners=corners))

    if can_buy_dev_card(state, player.player_id) is None:
        actions.append(_entry(ActionType.BUY_DEV_CARD))
    actions.extend(_card_entry(state, player.player_id))

    trades = _bank_trades(state, player)
    if trades:
        actions.append(_entry(ActionType.BANK_TRADE, trades=trades))

    others = [
        {"player_id": other.player_id, "display_name": other.display_name}
        for other in state.players
        if other.player_id != player.player_id
    ]
    if others:
        actions.append(_entry(ActionType.PROPOSE_TRADE, targets=others))
    offer = state.trade_offer
    if offer is not None and offer.from_player == player.player_id:
        actions.append(_entry(ActionType.CANCEL_TRADE, trade_id=offer.trade_id))

    actions.append(_entry(ActionType.END_TURN))
    return actions


def legal_actions(state: GameState, player_id: str) -> Menu:
    player = state.player(player_id)
    if player is None or state.phase in (TurnPhase.LOBBY, TurnPhase.FINISHED):
        return []

    is_current = state.current_player.player_id == player_id
    phase = state.phase
    pending = state.pending_action

    if phase in (TurnPhase.SETUP_SETTLEMENT_1, TurnPhase.SETUP_SETTLEMENT_2):
        if not is_current:
            return []
        corners = valid_settlement_corners(state.board, player_id, is_setup=True)
        return [_entry(ActionType.PLACE_SETTLEMENT, valid_corners=corners)] if corners else []

    if phase in (TurnPhase.SETUP_ROAD_1, TurnPhase.SETUP_ROAD_2):
        if not is_current or not isinstance(pending, SetupRoad):
            return []
        edges = valid_road_edges(state.board, player_id, True, pending.corner_id)
        return [_entry(ActionType.PLACE_ROAD, valid_edges=edges)] if edges else []

    if phase == TurnPhase.ROLL:
        if not is_current:
            return []
        if isinstance(pending, YearOfPlenty):
            return [_entry(ActionType.SELECT_RESOURCES, count=2, resources=[r.value for r in RESOURCE_TYPES])]
        if isinstance(pending, Monopoly):
            return [_entry(ActionType.SELECT_RESOURCE_TYPE, resources=[r.value for r in RESOURCE_TYPES])]
        return [_entry(ActionType.ROLL_DICE)] + _card_entry(state, player_id)

    if phase == TurnPhase.DISCARD:
        count = (state.pending_discards or {}).get(player_id)
        return [_entry(ActionType.DISCARD_RESOURCES, count=count)] if count else []

    if phase == TurnPhase.ROBBER_MOVE:
        if not is_current:
            return []
        return [_entry(ActionType.MOVE_ROBBER, valid_tiles=state.board.valid_robber_tiles())]

    if phase == TurnPhase.ROBBER_STEAL:
        if not is_current or not isinstance(pending, Steal):
            return []
        return [_entry(ActionType.STEAL_RESOURCE, targets=list(pending.candidate_targets))]

    if is_current:
        return _main_turn(state, player)

    offer = state.trade_offer
    if offer is not None and offer.to_player == player_id:
        return [
            _entry(ActionType.ACCEPT_TRADE, trade_id=offer.trade_id),
            _entry(ActionType.REJECT_TRADE, trade_id=offer.trade_id),
        ]
    return []
