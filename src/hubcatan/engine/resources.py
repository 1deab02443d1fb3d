from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple, Union

from .board import Board
from .errors import ErrorCode, RuleViolation
from .game_state import GameState, PlayerState, ResourceBank, empty_resources
from .types import RESOURCE_TYPES, BuildingType, PortType, ResourceType

COSTS: Dict[str, ResourceBank] = {
    "road": {ResourceType.WOOD: 1, ResourceType.BRICK: 1},
    "settlement": {
        ResourceType.WOOD: 1,
        ResourceType.BRICK: 1,
        ResourceType.SHEEP: 1,
        ResourceType.WHEAT: 1,
    },
    "city": {ResourceType.WHEAT: 2, ResourceType.ORE: 3},
    "dev_card": {ResourceType.SHEEP: 1, ResourceType.WHEAT: 1, ResourceType.ORE: 1},
}

DEFAULT_TRADE_RATIO = 4


def total_resources(bundle: Mapping[ResourceType, int]) -> int:
    return sum(bundle.get(resource, 0) for resource in RESOURCE_TYPES)


def has_resources(resources: ResourceBank, bundle: Mapping[ResourceType, int]) -> bool:
    return all(resources.get(res, 0) >= amount for res, amount in bundle.items())


def can_afford(player: PlayerState, item: str) -> bool:
    return has_resources(player.resources, COSTS[item])


def deduct_resources(player: PlayerState, bundle: Mapping[ResourceType, int]) -> None:
    for resource, amount in bundle.items():
        player.resources[resource] -= amount


def add_resources(player: PlayerState, bundle: Mapping[ResourceType, int]) -> None:
    for resource, amount in bundle.items():
        player.resources[resource] += amount


def parse_resource(raw: object) -> Optional[ResourceType]:
    if isinstance(raw, ResourceType):
        return raw
    try:
        return ResourceType(str(raw))
    except ValueError:
        return None


def parse_bundle(raw: object) -> Union[ResourceBank, RuleViolation]:
    """Turn an untrusted ``{"wood": 2, ...}`` mapping into a resource bundle."""
    if not isinstance(raw, Mapping):
        return RuleViolation(ErrorCode.INVALID_PAYLOAD)
    bundle = empty_resources()
    for key, value in raw.items():
        resource = parse_resource(key)
        if resource is None:
            return RuleViolation(ErrorCode.INVALID_RESOURCE)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return RuleViolation(ErrorCode.INVALID_PAYLOAD)
        bundle[resource] += value
    return bundle


def distribute_resources(state: GameState, roll: int) -> Dict[str, ResourceBank]:
    board = state.board
    distribution: Dict[str, ResourceBank] = {}
    for tile in board.tiles:
        if tile.number_token != roll or tile.has_robber or tile.resource is None:
            continue
        for corner_id in board.tile_corners[tile.tile_id]:
            corner = board.corners[corner_id]
            if corner.building is None or corner.owner is None:
                continue
            amount = 2 if corner.building == BuildingType.CITY else 1
            award = distribution.setdefault(corner.owner, empty_resources())
            award[tile.resource] += amount

    for player_id, award in distribution.items():
        player = state.player(player_id)
        if player is not None:
            add_resources(player, award)
    return distribution


def initial_resources(board: Board, corner_id: int) -> ResourceBank:
    award = empty_resources()
    for tile_id in board.corners[corner_id].tile_ids:
        resource = board.tiles[tile_id].resource
        if resource is not None:
            award[resource] += 1
    return award


def best_trade_ratio(board: Board, player_id: str, resource: ResourceType) -> int:
    ratio = DEFAULT_TRADE_RATIO
    for port in board.ports_for_player(player_id):
        if port.port_type == PortType.GENERIC or port.port_type.value == resource.value:
            ratio = min(ratio, port.ratio)
    return ratio


def check_bank_trade(
    state: GameState, player: PlayerState, give: ResourceType, receive: ResourceType
) -> Union[int, RuleViolation]:
    if give == receive:
        return RuleViolation(ErrorCode.SAME_RESOURCE)
    ratio = best_trade_ratio(state.board, player.player_id, give)
    if player.resources[give] < ratio:
        return RuleViolation(ErrorCode.NOT_ENOUGH_RESOURCES)
    return ratio


def execute_bank_trade(player: PlayerState, give: ResourceType, receive: ResourceType, ratio: int) -> None:
    player.resources[give] -= ratio
    player.resources[receive] += 1


def validate_trade_offer(
    state: GameState,
    from_player_id: str,
    to_player_id: str,
    offer: ResourceBank,
    request: ResourceBank,
) -> Optional[RuleViolation]:
    from_player = state.player(from_player_id)
    to_player = state.player(to_player_id)
    if from_player is None or to_player is None:
        return RuleViolation(ErrorCode.PLAYER_NOT_FOUND)
    if from_player_id == to_player_id:
        return RuleViolation(ErrorCode.CANNOT_TRADE_WITH_SELF)
    if not has_resources(from_player.resources, offer):
        return RuleViolation(ErrorCode.OFFERER_LACKS_RESOURCES)
    if not has_resources(to_player.resources, request):
        return RuleViolation(ErrorCode.TARGET_LACKS_RESOURCES)
    if total_resources(offer) == 0 or total_resources(request) == 0:
        return RuleViolation(ErrorCode.EMPTY_TRADE)
    return None


def execute_player_trade(
    state: GameState,
    from_player_id: str,
    to_player_id: str,
    offer: ResourceBank,
    request: ResourceBank,
) -> Optional[RuleViolation]:
    violation = validate_trade_offer(state, from_player_id, to_player_id, offer, request)
    if violation is not None:
        return violation
    giver = state.player(from_player_id)
    receiver = state.player(to_player_id)
    deduct_resources(giver, offer)
    add_resources(receiver, offer)
    deduct_resources(receiver, request)
    add_resources(giver, request)
    return None


def discard_count(player: PlayerState, max_hand_size: int = 7) -> int:
    total = total_resources(player.resources)
    if total <= max_hand_size:
        return 0
    return total // 2


def players_to_discard(state: GameState) -> Dict[str, int]:
    pending: Dict[str, int] = {}
    for player in state.players:
        count = discard_count(player, state.config.max_hand_size)
        if count > 0:
            pending[player.player_id] = count
    return pending


def validate_discard(player: PlayerState, bundle: ResourceBank, required: int) -> Optional[RuleViolation]:
    if total_resources(bundle) != required:
        return RuleViolation(ErrorCode.WRONG_DISCARD_COUNT)
    if not has_resources(player.resources, bundle):
        return RuleViolation(ErrorCode.NOT_ENOUGH_RESOURCES)
    return None


def steal_random_resource(rng, victim: PlayerState, thief: PlayerState) -> Optional[ResourceType]:
    """Take one card from ``victim``; each held card is equally likely."""
    available: List[ResourceType] = []
    for resource in RESOURCE_TYPES:
        available.extend([resource] * victim.resources[resource])
    if not available:
        return None
    stolen = available[rng.randrange(len(available))]
    victim.resources[stolen] -= 1
    thief.resources[stolen] += 1
    return stolen


def apply_monopoly(state: GameState, player_id: str, resource: ResourceType) -> int:
    taken = 0
    for other in state.players:
        if other.player_id == player_id:
            continue
        taken += other.resources[resource]
        other.resources[resource] = 0
    state.player(player_id).resources[resource] += taken
    return taken


def apply_year_of_plenty(player: PlayerState, picks: Tuple[ResourceType, ResourceType]) -> None:
    for resource in picks:
        player.resources[resource] += 1


def bundle_to_dict(bundle: Mapping[ResourceType, int]) -> Dict[str, int]:
    return {resource.value: int(bundle.get(resource, 0)) for resource in RESOURCE_TYPES}
