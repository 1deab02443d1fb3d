"""Axial hex-grid math and canonical identities for shared corners and edges.

Pointy-top orientation. Neighbor direction ``d`` points at angle ``60 * d``
degrees (E, NE, NW, W, SW, SE). Corner ``d`` of a hex sits between neighbor
directions ``d`` and ``d + 1``; edge ``d`` is the side facing neighbor ``d``
and runs from corner ``d - 1`` to corner ``d``.
"""
from __future__ import annotations

import math
from typing import List, NamedTuple, Tuple

SQRT3 = math.sqrt(3.0)

AXIAL_DIRECTIONS: List[Tuple[int, int]] = [
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
]


class HexCoord(NamedTuple):
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def key(self) -> str:
        return f"{self.q},{self.r}"


class HexDir(NamedTuple):
    """A (hex, direction) pair naming a corner or an edge of that hex."""

    hex: HexCoord
    direction: int


class Point(NamedTuple):
    x: float
    y: float


def neighbor(hex_: HexCoord, direction: int) -> HexCoord:
    dq, dr = AXIAL_DIRECTIONS[direction % 6]
    return HexCoord(hex_.q + dq, hex_.r + dr)


def neighbors(hex_: HexCoord) -> List[HexCoord]:
    return [neighbor(hex_, d) for d in range(6)]


def distance(a: HexCoord, b: HexCoord) -> int:
    return max(abs(a.q - b.q), abs(a.r - b.r), abs(a.s - b.s))


def ring_index(hex_: HexCoord) -> int:
    return distance(hex_, HexCoord(0, 0))


def is_in_grid(hex_: HexCoord, radius: int) -> bool:
    return abs(hex_.q) <= radius and abs(hex_.r) <= radius and abs(hex_.s) <= radius


def create_hex_grid(radius: int) -> List[HexCoord]:
    """All hexes within ``radius`` rings of the origin (3k^2 + 3k + 1 of them)."""
    hexes: List[HexCoord] = []
    for q in range(-radius, radius + 1):
        for r in range(max(-radius, -q - radius), min(radius, -q + radius) + 1):
            hexes.append(HexCoord(q, r))
    return hexes


def hexes_in_range(center: HexCoord, radius: int) -> List[HexCoord]:
    return [HexCoord(center.q + h.q, center.r + h.r) for h in create_hex_grid(radius)]


def spiral_order(hexes: List[HexCoord]) -> List[HexCoord]:
    """Ring by ring outward, each ring sorted by polar angle of (q, r)."""
    return sorted(hexes, key=lambda h: (ring_index(h), math.atan2(h.r, h.q)))


def hex_to_pixel(hex_: HexCoord, size: float) -> Point:
    x = size * (SQRT3 * hex_.q + SQRT3 / 2.0 * hex_.r)
    y = size * (1.5 * hex_.r)
    return Point(x, y)


def hex_round(q: float, r: float) -> HexCoord:
    s = -q - r
    rq, rr, rs = round(q), round(r), round(s)
    q_diff, r_diff, s_diff = abs(rq - q), abs(rr - r), abs(rs - s)
    if q_diff > r_diff and q_diff > s_diff:
        rq = -rr - rs
    elif r_diff > s_diff:
        rr = -rq - rs
    return HexCoord(int(rq), int(rr))


def pixel_to_hex(point: Point, size: float) -> HexCoord:
    q = (SQRT3 / 3.0 * point.x - 1.0 / 3.0 * point.y) / size
    r = (2.0 / 3.0 * point.y) / size
    return hex_round(q, r)


def corner_position(hex_: HexCoord, direction: int, size: float) -> Point:
    # Screen y grows downward, so a positive math angle is negated.
    center = hex_to_pixel(hex_, size)
    angle = math.radians(60 * direction + 30)
    return Point(center.x + size * math.cos(angle), center.y - size * math.sin(angle))


def edge_position(hex_: HexCoord, direction: int, size: float) -> Point:
    a, b = edge_corners(hex_, direction)
    pa = corner_position(a.hex, a.direction, size)
    pb = corner_position(b.hex, b.direction, size)
    return Point((pa.x + pb.x) / 2.0, (pa.y + pb.y) / 2.0)


def corner_hexes(hex_: HexCoord, direction: int) -> List[HexDir]:
    """The three equivalent (hex, direction) names of one corner."""
    d = direction % 6
    return [
        HexDir(hex_, d),
        HexDir(neighbor(hex_, d), (d + 2) % 6),
        HexDir(neighbor(hex_, d + 1), (d + 4) % 6),
    ]


def edge_hexes(hex_: HexCoord, direction: int) -> List[HexDir]:
    """The two equivalent (hex, direction) names of one edge."""
    d = direction % 6
    return [HexDir(hex_, d), HexDir(neighbor(hex_, d), (d + 3) % 6)]


def canonical_corner(hex_: HexCoord, direction: int) -> HexDir:
    return min(corner_hexes(hex_, direction))


def canonical_edge(hex_: HexCoord, direction: int) -> HexDir:
    return min(edge_hexes(hex_, direction))


def corner_key(hex_: HexCoord, direction: int) -> str:
    c = canonical_corner(hex_, direction)
    return f"C:{c.hex.q},{c.hex.r},{c.direction}"


def edge_key(hex_: HexCoord, direction: int) -> str:
    e = canonical_edge(hex_, direction)
    return f"E:{e.hex.q},{e.hex.r},{e.direction}"


def edge_corners(hex_: HexCoord, direction: int) -> Tuple[HexDir, HexDir]:
    d = direction % 6
    return HexDir(hex_, (d + 5) % 6), HexDir(hex_, d)


def corner_edges(hex_: HexCoord, direction: int) -> List[HexDir]:
    """The three edges meeting at a corner."""
    d = direction % 6
    return [
        HexDir(hex_, d),
        HexDir(hex_, (d + 1) % 6),
        HexDir(neighbor(hex_, d), (d + 2) % 6),
    ]
