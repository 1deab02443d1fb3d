from __future__ import annotations

from typing import Dict, List, Optional, Union

from .errors import ErrorCode, RuleViolation
from .game_state import GameState, Monopoly, PlayerState, RoadBuilding, YearOfPlenty
from .resources import COSTS, can_afford, deduct_resources
from .scoring import update_largest_army
from .types import DevCard, DevCardType

DEV_CARD_COUNTS: Dict[DevCardType, int] = {
    DevCardType.KNIGHT: 14,
    DevCardType.ROAD_BUILDING: 2,
    DevCardType.YEAR_OF_PLENTY: 2,
    DevCardType.MONOPOLY: 2,
    DevCardType.VICTORY_POINT: 5,
}

ROAD_BUILDING_ROADS = 2


def parse_dev_card_type(raw: object) -> Optional[DevCardType]:
    if isinstance(raw, DevCardType):
        return raw
    try:
        return DevCardType(str(raw))
    except ValueError:
        return None


def create_dev_card_deck(rng) -> List[DevCard]:
    deck = [
        DevCard(card_id=f"{card_type.value}-{idx}", card_type=card_type)
        for card_type, count in DEV_CARD_COUNTS.items()
        for idx in range(count)
    ]
    rng.shuffle(deck)
    return deck


def can_buy_dev_card(state: GameState, player_id: str) -> RuleViolation | None:
    player = state.player(player_id)
    if player is None:
        return RuleViolation(ErrorCode.PLAYER_NOT_FOUND)
    if not state.dev_card_deck:
        return RuleViolation(ErrorCode.NO_CARDS_LEFT)
    if not can_afford(player, "dev_card"):
        return RuleViolation(ErrorCode.NOT_ENOUGH_RESOURCES)
    return None


def buy_dev_card(state: GameState, player_id: str) -> Union[DevCard, RuleViolation]:
    violation = can_buy_dev_card(state, player_id)
    if violation is not None:
        return violation
    player = state.player(player_id)
    deduct_resources(player, COSTS["dev_card"])
    card = state.dev_card_deck.pop()
    card.bought_this_turn = True
    player.dev_cards.append(card)
    return card


def can_play_dev_card(
    state: GameState, player_id: str, card_type: DevCardType
) -> Union[DevCard, RuleViolation]:
    """Return the card that would be played, or why it cannot be."""
    player = state.player(player_id)
    if player is None:
        return RuleViolation(ErrorCode.PLAYER_NOT_FOUND)
    if card_type == DevCardType.VICTORY_POINT:
        return RuleViolation(ErrorCode.VP_CARDS_ARE_AUTOMATIC)
    card = next(
        (c for c in player.dev_cards if c.card_type == card_type and not c.bought_this_turn),
        None,
    )
    if card is None:
        return RuleViolation(ErrorCode.NO_ELIGIBLE_CARD)
    if state.dev_card_played_this_turn:
        return RuleViolation(ErrorCode.ALREADY_PLAYED_CARD)
    return card


def _consume(state: GameState, player: PlayerState, card: DevCard) -> None:
    player.dev_cards.remove(card)
    player.dev_cards_played.append(card)
    state.dev_card_played_this_turn = True


def play_knight(state: GameState, player_id: str) -> RuleViolation | None:
    card = can_play_dev_card(state, player_id, DevCardType.KNIGHT)
    if isinstance(card, RuleViolation):
        return card
    player = state.player(player_id)
    _consume(state, player, card)
    player.knights_played += 1
    update_largest_army(state)
    return None


def play_road_building(state: GameState, player_id: str) -> Union[int, RuleViolation]:
    card = can_play_dev_card(state, player_id, DevCardType.ROAD_BUILDING)
    if isinstance(card, RuleViolation):
        return card
    player = state.player(player_id)
    _consume(state, player, card)
    roads_to_place = min(ROAD_BUILDING_ROADS, player.roads_remaining)
    if roads_to_place > 0:
        state.pending_action = RoadBuilding(roads_to_place=roads_to_place)
    return roads_to_place


def play_year_of_plenty(state: GameState, player_id: str) -> RuleViolation | None:
    card = can_play_dev_card(state, player_id, DevCardType.YEAR_OF_PLENTY)
    if isinstance(card, RuleViolation):
        return card
    _consume(state, state.player(player_id), card)
    state.pending_action = YearOfPlenty()
    return None


def play_monopoly(state: GameState, player_id: str) -> RuleViolation | None:
    card = can_play_dev_card(state, player_id, DevCardType.MONOPOLY)
    if isinstance(card, RuleViolation):
        return card
    _consume(state, state.player(player_id), card)
    state.pending_action = Monopoly()
    return None


def playable_cards(state: GameState, player_id: str) -> List[DevCardType]:
    player = state.player(player_id)
    if player is None or state.dev_card_played_this_turn:
        return []
    playable: List[DevCardType] = []
    for card in player.dev_cards:
        if card.bought_this_turn or card.card_type == DevCardType.VICTORY_POINT:
            continue
        if card.card_type not in playable:
            playable.append(card.card_type)
    return playable


def clear_bought_this_turn(player: PlayerState) -> None:
    for card in player.dev_cards:
        card.bought_this_turn = False
