from __future__ import annotations

from typing import Dict, List, Optional, Set

import networkx as nx

from ..utils.logging_config import get_logger
from .board import Board
from .game_state import GameState, PlayerState
from .types import BuildingType, DevCardType

logger = get_logger(__name__)

VP_VALUES: Dict[str, int] = {
    "settlement": 1,
    "city": 2,
    "longest_road": 2,
    "largest_army": 2,
    "victory_point_card": 1,
}


def count_buildings(board: Board, player_id: str, building: BuildingType) -> int:
    return sum(1 for corner in board.corners if corner.owner == player_id and corner.building == building)


def count_vp_cards(player: PlayerState) -> int:
    return sum(1 for card in player.dev_cards if card.card_type == DevCardType.VICTORY_POINT)


def vp_breakdown(state: GameState, player_id: str) -> Dict[str, Dict[str, object]]:
    player = state.player(player_id)
    if player is None:
        raise KeyError(player_id)

    settlements = count_buildings(state.board, player_id, BuildingType.SETTLEMENT)
    cities = count_buildings(state.board, player_id, BuildingType.CITY)
    vp_cards = count_vp_cards(player)
    has_road = state.longest_road_holder == player_id
    has_army = state.largest_army_holder == player_id

    breakdown: Dict[str, Dict[str, object]] = {
        "settlements": {"count": settlements, "points": settlements * VP_VALUES["settlement"]},
        "cities": {"count": cities, "points": cities * VP_VALUES["city"]},
        "longest_road": {
            "has": has_road,
            "length": player.longest_road_length,
            "points": VP_VALUES["longest_road"] if has_road else 0,
        },
        "largest_army": {
            "has": has_army,
            "knights": player.knights_played,
            "points": VP_VALUES["largest_army"] if has_army else 0,
        },
        "victory_point_cards": {"count": vp_cards, "points": vp_cards * VP_VALUES["victory_point_card"]},
    }
    breakdown["total"] = {"points": sum(int(part["points"]) for part in breakdown.values())}
    return breakdown


def calculate_victory_points(state: GameState, player_id: str) -> int:
    return int(vp_breakdown(state, player_id)["total"]["points"])


def public_score(state: GameState, player_id: str) -> int:
    """Victory points as seen by opponents (hidden VP cards excluded)."""
    breakdown = vp_breakdown(state, player_id)
    return int(breakdown["total"]["points"]) - int(breakdown["victory_point_cards"]["points"])


def _road_graph(board: Board, player_id: str) -> nx.Graph:
    roads = [edge.corner_ids for edge in board.edges if edge.owner == player_id]
    return board.graph.edge_subgraph(roads)


def _extend_road(
    board: Board, roads: nx.Graph, corner_id: int, player_id: str, used: Set[int]
) -> int:
    corner = board.corners[corner_id]
    if corner.building is not None and corner.owner != player_id:
        return 0

    best = 0
    for next_corner in roads.neighbors(corner_id):
        edge_id = roads.edges[corner_id, next_corner]["edge_id"]
        if edge_id in used:
            continue
        used.add(edge_id)
        best = max(best, 1 + _extend_road(board, roads, next_corner, player_id, used))
        used.remove(edge_id)
    return best


def calculate_longest_road(board: Board, player_id: str) -> int:
    """Length of the longest trail through the player's roads.

    A path may not reuse a road, and it ends at any corner holding an
    opponent's building.
    """
    roads = _road_graph(board, player_id)
    longest = 0
    for a, b, edge_id in roads.edges(data="edge_id"):
        for end in (a, b):
            used = {edge_id}
            longest = max(longest, 1 + _extend_road(board, roads, end, player_id, used))
    return longest


def _award(
    players: List[PlayerState], values: Dict[str, int], incumbent: Optional[str], minimum: int
) -> Optional[str]:
    # Incumbent keeps exact ties; challengers win in seat order by strictly exceeding.
    holder = None
    best = minimum - 1
    if incumbent is not None and values.get(incumbent, 0) >= minimum:
        holder = incumbent
        best = values[incumbent]
    for player in players:
        if values[player.player_id] > best:
            holder = player.player_id
            best = values[player.player_id]
    return holder


def update_longest_road(state: GameState) -> Optional[str]:
    lengths: Dict[str, int] = {}
    for player in state.players:
        player.longest_road_length = calculate_longest_road(state.board, player.player_id)
        lengths[player.player_id] = player.longest_road_length

    previous = state.longest_road_holder
    state.longest_road_holder = _award(state.players, lengths, previous, state.config.min_longest_road)
    if state.longest_road_holder != previous:
        logger.info(
            "longest_road_changed",
            previous=previous,
            holder=state.longest_road_holder,
            length=lengths.get(state.longest_road_holder or "", 0),
        )
    return state.longest_road_holder


def update_largest_army(state: GameState) -> Optional[str]:
    knights = {player.player_id: player.knights_played for player in state.players}
    previous = state.largest_army_holder
    state.largest_army_holder = _award(state.players, knights, previous, state.config.min_largest_army)
    if state.largest_army_holder != previous:
        logger.info("largest_army_changed", previous=previous, holder=state.largest_army_holder)
    return state.largest_army_holder


def check_victory(state: GameState) -> Optional[str]:
    for player in state.players:
        if calculate_victory_points(state, player.player_id) >= state.target_victory_points:
            return player.player_id
    return None
