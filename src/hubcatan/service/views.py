from __future__ import annotations

from typing import Any, Dict, Optional

from ..engine.game_state import GameState, PendingAction, PlayerState, RoadBuilding, SetupRoad, Steal
from ..engine.geometry import Point, corner_position, edge_position, hex_to_pixel
from ..engine.legal import legal_actions
from ..engine.resources import bundle_to_dict, total_resources
from ..engine.scoring import calculate_victory_points, public_score

# Layout unit for client rendering: distance from a hex center to its corners.
HEX_SIZE = 1.0


def _xy(point: Point) -> Dict[str, float]:
    return {"x": round(point.x, 4), "y": round(point.y, 4)}


def serialize_board(state: GameState) -> Dict[str, Any]:
    board = state.board
    return {
        "robber_tile_id": board.robber_tile_id,
        "tiles": [
            {
                "tile_id": tile.tile_id,
                "key": tile.key,
                "q": tile.coord.q,
                "r": tile.coord.r,
                "terrain": tile.terrain.value,
                "resource": tile.resource.value if tile.resource else None,
                "number_token": tile.number_token,
                "has_robber": tile.has_robber,
                **_xy(hex_to_pixel(tile.coord, HEX_SIZE)),
            }
            for tile in board.tiles
        ],
        "corners": [
            {
                "corner_id": corner.corner_id,
                "key": corner.key,
                "tile_ids": list(corner.tile_ids),
                "building": corner.building.value if corner.building else None,
                "owner": corner.owner,
                "port_id": corner.port.port_id if corner.port else None,
                **_xy(corner_position(corner.coord, corner.direction, HEX_SIZE)),
            }
            for corner in board.corners
        ],
        "edges": [
            {
                "edge_id": edge.edge_id,
                "key": edge.key,
                "corner_ids": list(edge.corner_ids),
                "owner": edge.owner,
                **_xy(edge_position(edge.coord, edge.direction, HEX_SIZE)),
            }
            for edge in board.edges
        ],
        "ports": [
            {
                "port_id": port.port_id,
                "port_type": port.port_type.value,
                "ratio": port.ratio,
                "corner_ids": list(port.corner_ids),
            }
            for port in board.ports
        ],
    }


def serialize_pending(pending: Optional[PendingAction]) -> Optional[Dict[str, Any]]:
    if pending is None:
        return None
    data: Dict[str, Any] = {"type": pending.kind}
    if isinstance(pending, SetupRoad):
        data["corner_id"] = pending.corner_id
    elif isinstance(pending, Steal):
        data["targets"] = list(pending.candidate_targets)
    elif isinstance(pending, RoadBuilding):
        data["roads_to_place"] = pending.roads_to_place
        data["roads_placed"] = pending.roads_placed
    return data


def _player_view(state: GameState, player: PlayerState, viewer_id: str) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "player_id": player.player_id,
        "display_name": player.display_name,
        "color": player.color,
        "settlements_remaining": player.settlements_remaining,
        "cities_remaining": player.cities_remaining,
        "roads_remaining": player.roads_remaining,
        "knights_played": player.knights_played,
        "longest_road_length": player.longest_road_length,
        "dev_cards_played_count": len(player.dev_cards_played),
        "public_score": public_score(state, player.player_id),
    }
    if player.player_id == viewer_id:
        info["resources"] = bundle_to_dict(player.resources)
        info["dev_cards"] = [
            {"card_id": card.card_id, "card_type": card.card_type.value, "bought_this_turn": card.bought_this_turn}
            for card in player.dev_cards
        ]
        info["total_victory_points"] = calculate_victory_points(state, player.player_id)
    else:
        info["resource_count"] = total_resources(player.resources)
        info["dev_card_count"] = len(player.dev_cards)
    return info


def sanitize_state(state: GameState, viewer_id: str) -> Dict[str, Any]:
    """Project the game for one viewer.

    The board and public player data are shared; only the viewer's own hand,
    dev cards and hidden victory points are revealed.
    """
    last_roll = state.last_roll
    return {
        "phase": state.phase.value,
        "board": serialize_board(state),
        "turn_index": state.turn_index,
        "round_number": state.round_number,
        "current_player": state.current_player.player_id if state.players else None,
        "last_roll": {"die1": last_roll.die1, "die2": last_roll.die2, "total": last_roll.total}
        if last_roll
        else None,
        "longest_road_holder": state.longest_road_holder,
        "largest_army_holder": state.largest_army_holder,
        "dev_cards_remaining": len(state.dev_card_deck),
        "pending_action": serialize_pending(state.pending_action),
        "pending_discards": dict(state.pending_discards) if state.pending_discards else None,
        "trade_offer": state.trade_offer.to_dict() if state.trade_offer else None,
        "target_victory_points": state.target_victory_points,
        "winner": state.winner,
        "players": [_player_view(state, player, viewer_id) for player in state.players],
        "available_actions": legal_actions(state, viewer_id),
    }
