"""Legality of settlement, city and road placement."""
from __future__ import annotations

from typing import List, Optional

from .board import Board
from .errors import ErrorCode, RuleViolation
from .types import BuildingType


def can_place_settlement(
    board: Board, corner_ref: object, player_id: str, is_setup: bool = False
) -> Optional[RuleViolation]:
    corner_id = board.corner_id(corner_ref)
    if corner_id is None:
        return RuleViolation(ErrorCode.INVALID_CORNER)
    if board.corners[corner_id].building is not None:
        return RuleViolation(ErrorCode.CORNER_OCCUPIED)

    # Distance rule: no building one edge away.
    for neighbor_id in board.corner_neighbors[corner_id]:
        if board.corners[neighbor_id].building is not None:
            return RuleViolation(ErrorCode.TOO_CLOSE_TO_BUILDING)

    if is_setup:
        return None

    if not any(board.edges[e].owner == player_id for e in board.corner_edges[corner_id]):
        return RuleViolation(ErrorCode.NOT_CONNECTED_TO_ROAD)
    return None


def can_place_city(board: Board, corner_ref: object, player_id: str) -> Optional[RuleViolation]:
    corner_id = board.corner_id(corner_ref)
    if corner_id is None:
        return RuleViolation(ErrorCode.INVALID_CORNER)
    corner = board.corners[corner_id]
    if corner.building != BuildingType.SETTLEMENT or corner.owner != player_id:
        return RuleViolation(ErrorCode.NO_SETTLEMENT_HERE)
    return None


def can_place_road(
    board: Board,
    edge_ref: object,
    player_id: str,
    is_setup: bool = False,
    setup_corner_id: int | None = None,
) -> Optional[RuleViolation]:
    edge_id = board.edge_id(edge_ref)
    if edge_id is None:
        return RuleViolation(ErrorCode.INVALID_EDGE)
    edge = board.edges[edge_id]
    if edge.has_road:
        return RuleViolation(ErrorCode.EDGE_OCCUPIED)

    if is_setup and setup_corner_id is not None:
        if setup_corner_id not in edge.corner_ids:
            return RuleViolation(ErrorCode.MUST_CONNECT_TO_SETTLEMENT)
        return None

    for corner_id in edge.corner_ids:
        if _extends_from(board, corner_id, edge_id, player_id):
            return None
    return RuleViolation(ErrorCode.NOT_CONNECTED)


def _extends_from(board: Board, corner_id: int, edge_id: int, player_id: str) -> bool:
    corner = board.corners[corner_id]
    if corner.building is not None:
        # An opponent's building cuts the road network at this corner.
        return corner.owner == player_id
    return any(
        other != edge_id and board.edges[other].owner == player_id
        for other in board.corner_edges[corner_id]
    )


def valid_settlement_corners(board: Board, player_id: str, is_setup: bool = False) -> List[int]:
    return [
        corner.corner_id
        for corner in board.corners
        if can_place_settlement(board, corner.corner_id, player_id, is_setup) is None
    ]


def valid_city_corners(board: Board, player_id: str) -> List[int]:
    return [
        corner.corner_id
        for corner in board.corners
        if corner.owner == player_id and corner.building == BuildingType.SETTLEMENT
    ]


def valid_road_edges(
    board: Board, player_id: str, is_setup: bool = False, setup_corner_id: int | None = None
) -> List[int]:
    return [
        edge.edge_id
        for edge in board.edges
        if can_place_road(board, edge.edge_id, player_id, is_setup, setup_corner_id) is None
    ]
