from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx

from .geometry import (
    HexCoord,
    canonical_corner,
    canonical_edge,
    corner_hexes,
    corner_key,
    create_hex_grid,
    edge_corners,
    edge_hexes,
    edge_key,
    is_in_grid,
    neighbors,
    spiral_order,
)
from .types import PORT_RATIOS, Corner, Edge, Port, PortType, Terrain, Tile

AXIAL_RADIUS = 2

# Spiral order: center, ring 1, ring 2.
STANDARD_TERRAIN = [
    Terrain.DESERT,
    Terrain.FIELDS,
    Terrain.PASTURE,
    Terrain.FOREST,
    Terrain.HILLS,
    Terrain.MOUNTAINS,
    Terrain.FIELDS,
    Terrain.FOREST,
    Terrain.PASTURE,
    Terrain.HILLS,
    Terrain.FIELDS,
    Terrain.MOUNTAINS,
    Terrain.FOREST,
    Terrain.PASTURE,
    Terrain.HILLS,
    Terrain.PASTURE,
    Terrain.MOUNTAINS,
    Terrain.FIELDS,
    Terrain.FOREST,
]

STANDARD_NUMBER_TOKENS = [5, 2, 6, 3, 8, 10, 9, 12, 11, 4, 8, 10, 9, 4, 5, 6, 3, 11]
HOT_TOKENS = frozenset((6, 8))
MAX_LAYOUT_DRAWS = 5000

STANDARD_PORTS = [
    PortType.GENERIC,
    PortType.WHEAT,
    PortType.ORE,
    PortType.GENERIC,
    PortType.SHEEP,
    PortType.GENERIC,
    PortType.GENERIC,
    PortType.BRICK,
    PortType.WOOD,
]


@dataclass
class Board:
    """Arena of tiles, corners and edges addressed by integer index.

    Shape is fixed at generation; only buildings, roads and the robber move.
    """

    radius: int
    tiles: List[Tile]
    corners: List[Corner]
    edges: List[Edge]
    ports: List[Port]
    robber_tile_id: int
    graph: nx.Graph
    tile_neighbors: Dict[int, List[int]]
    tile_corners: List[Tuple[int, ...]]
    corner_neighbors: List[Tuple[int, ...]]
    corner_edges: List[Tuple[int, ...]]
    _tile_by_key: Dict[str, int] = field(default_factory=dict, repr=False)
    _corner_by_key: Dict[str, int] = field(default_factory=dict, repr=False)
    _edge_by_key: Dict[str, int] = field(default_factory=dict, repr=False)

    def tile_ids(self) -> Iterable[int]:
        return range(len(self.tiles))

    @staticmethod
    def _resolve(ref: object, size: int, by_key: Dict[str, int]) -> Optional[int]:
        if isinstance(ref, bool):
            return None
        if isinstance(ref, int):
            return ref if 0 <= ref < size else None
        if isinstance(ref, str):
            if ref in by_key:
                return by_key[ref]
            if ref.isdigit():
                return Board._resolve(int(ref), size, by_key)
        return None

    def tile_id(self, ref: object) -> Optional[int]:
        return self._resolve(ref, len(self.tiles), self._tile_by_key)

    def corner_id(self, ref: object) -> Optional[int]:
        return self._resolve(ref, len(self.corners), self._corner_by_key)

    def edge_id(self, ref: object) -> Optional[int]:
        return self._resolve(ref, len(self.edges), self._edge_by_key)

    def edge_between(self, corner_a: int, corner_b: int) -> int | None:
        data = self.graph.get_edge_data(corner_a, corner_b)
        return None if data is None else data["edge_id"]

    def move_robber(self, tile_id: int) -> None:
        self.tiles[self.robber_tile_id].has_robber = False
        self.tiles[tile_id].has_robber = True
        self.robber_tile_id = tile_id

    def valid_robber_tiles(self) -> List[int]:
        return [tile.tile_id for tile in self.tiles if not tile.has_robber]

    def players_on_tile(self, tile_id: int) -> List[str]:
        owners: List[str] = []
        for corner_id in self.tile_corners[tile_id]:
            owner = self.corners[corner_id].owner
            if owner is not None and owner not in owners:
                owners.append(owner)
        return owners

    def ports_for_player(self, player_id: str) -> List[Port]:
        ports: List[Port] = []
        for corner in self.corners:
            if corner.owner == player_id and corner.port is not None and corner.port not in ports:
                ports.append(corner.port)
        return ports


def build_tile_neighbors(coords: List[HexCoord]) -> Dict[int, List[int]]:
    coord_to_id = {coord: tile_id for tile_id, coord in enumerate(coords)}
    result: Dict[int, List[int]] = {}
    for tile_id, coord in enumerate(coords):
        result[tile_id] = [coord_to_id[n] for n in neighbors(coord) if n in coord_to_id]
    return result


def _hot_tokens_touch(tokens: Dict[int, int], neighbors_by_tile: Dict[int, List[int]]) -> bool:
    hot = {tile_id for tile_id, token in tokens.items() if token in HOT_TOKENS}
    return any(other in hot for tile_id in hot for other in neighbors_by_tile[tile_id])


def _layout(
    coords: List[HexCoord],
    neighbors_by_tile: Dict[int, List[int]],
    layout: str,
    rng,
) -> Tuple[List[Terrain], Dict[int, int]]:
    terrain = list(STANDARD_TERRAIN)
    numbers = list(STANDARD_NUMBER_TOKENS)
    if len(coords) != len(terrain):
        raise ValueError(f"No tile set for a board of {len(coords)} hexes")

    if layout == "standard":
        producing = [tile_id for tile_id, t in enumerate(terrain) if t != Terrain.DESERT]
        return terrain, dict(zip(producing, numbers))

    if layout != "random":
        raise ValueError(f"Unknown board layout: {layout}")
    if rng is None:
        raise ValueError("A random layout needs an rng")

    # Reshuffle both terrain and tokens until no 6 or 8 borders another.
    for _ in range(MAX_LAYOUT_DRAWS):
        rng.shuffle(terrain)
        rng.shuffle(numbers)
        producing = [tile_id for tile_id, t in enumerate(terrain) if t != Terrain.DESERT]
        tokens = dict(zip(producing, numbers))
        if not _hot_tokens_touch(tokens, neighbors_by_tile):
            return terrain, tokens
    raise RuntimeError(f"No random layout without touching 6/8 tokens after {MAX_LAYOUT_DRAWS} draws")


def _build_corners(
    coords: List[HexCoord], radius: int
) -> Tuple[List[Corner], List[Tuple[int, ...]], Dict[str, int]]:
    coord_to_id = {coord: tile_id for tile_id, coord in enumerate(coords)}
    corners: List[Corner] = []
    by_key: Dict[str, int] = {}
    tile_corners: List[Tuple[int, ...]] = []

    for tile_id, coord in enumerate(coords):
        ids: List[int] = []
        for direction in range(6):
            key = corner_key(coord, direction)
            if key not in by_key:
                canonical = canonical_corner(coord, direction)
                touching = sorted(
                    coord_to_id[h.hex] for h in corner_hexes(coord, direction) if is_in_grid(h.hex, radius)
                )
                by_key[key] = len(corners)
                corners.append(
                    Corner(
                        corner_id=len(corners),
                        key=key,
                        coord=canonical.hex,
                        direction=canonical.direction,
                        tile_ids=tuple(touching),
                    )
                )
            ids.append(by_key[key])
        tile_corners.append(tuple(ids))

    return corners, tile_corners, by_key


def _build_edges(
    coords: List[HexCoord], radius: int, corner_by_key: Dict[str, int]
) -> Tuple[List[Edge], Dict[str, int]]:
    coord_to_id = {coord: tile_id for tile_id, coord in enumerate(coords)}
    edges: List[Edge] = []
    by_key: Dict[str, int] = {}

    for coord in coords:
        for direction in range(6):
            key = edge_key(coord, direction)
            if key in by_key:
                continue
            canonical = canonical_edge(coord, direction)
            a, b = edge_corners(coord, direction)
            corner_ids = (
                corner_by_key[corner_key(a.hex, a.direction)],
                corner_by_key[corner_key(b.hex, b.direction)],
            )
            touching = sorted(
                coord_to_id[h.hex] for h in edge_hexes(coord, direction) if is_in_grid(h.hex, radius)
            )
            by_key[key] = len(edges)
            edges.append(
                Edge(
                    edge_id=len(edges),
                    key=key,
                    coord=canonical.hex,
                    direction=canonical.direction,
                    corner_ids=corner_ids,
                    tile_ids=tuple(touching),
                )
            )

    return edges, by_key


def _coastline(graph: nx.Graph, edges: List[Edge]) -> List[int]:
    """Coastal edge ids in walking order around the board."""
    coastal = [edge.corner_ids for edge in edges if len(edge.tile_ids) == 1]
    coast = graph.edge_subgraph(coastal)
    start = min(coast.nodes)
    return [graph.edges[u, v]["edge_id"] for u, v in nx.find_cycle(coast, source=start)]


def _assign_ports(graph: nx.Graph, corners: List[Corner], edges: List[Edge]) -> List[Port]:
    coastline = _coastline(graph, edges)
    ports: List[Port] = []
    for port_id, port_type in enumerate(STANDARD_PORTS):
        edge = edges[coastline[(port_id * len(coastline)) // len(STANDARD_PORTS)]]
        port = Port(
            port_id=port_id,
            port_type=port_type,
            ratio=PORT_RATIOS[port_type],
            edge_id=edge.edge_id,
            corner_ids=edge.corner_ids,
        )
        for corner_id in edge.corner_ids:
            corners[corner_id].port = port
        ports.append(port)
    return ports


def generate_board(
    layout: str = "standard",
    rng=None,
    radius: int = AXIAL_RADIUS,
) -> Board:
    coords = spiral_order(create_hex_grid(radius))
    neighbors_by_tile = build_tile_neighbors(coords)
    terrain, numbers_by_tile = _layout(coords, neighbors_by_tile, layout, rng)

    tiles = [
        Tile(
            tile_id=tile_id,
            coord=coord,
            terrain=terrain[tile_id],
            number_token=numbers_by_tile.get(tile_id),
            has_robber=terrain[tile_id] == Terrain.DESERT,
        )
        for tile_id, coord in enumerate(coords)
    ]

    corners, tile_corners, corner_by_key = _build_corners(coords, radius)
    edges, edge_by_key = _build_edges(coords, radius, corner_by_key)

    graph = nx.Graph()
    graph.add_nodes_from(range(len(corners)))
    for edge in edges:
        graph.add_edge(*edge.corner_ids, edge_id=edge.edge_id)

    ports = _assign_ports(graph, corners, edges)

    robber_tile_id = next(tile.tile_id for tile in tiles if tile.has_robber)

    return Board(
        radius=radius,
        tiles=tiles,
        corners=corners,
        edges=edges,
        ports=ports,
        robber_tile_id=robber_tile_id,
        graph=graph,
        tile_neighbors=neighbors_by_tile,
        tile_corners=tile_corners,
        corner_neighbors=[tuple(sorted(graph.neighbors(c))) for c in range(len(corners))],
        corner_edges=[
            tuple(sorted(graph.edges[c, n]["edge_id"] for n in graph.neighbors(c)))
            for c in range(len(corners))
        ],
        _tile_by_key={tile.key: tile.tile_id for tile in tiles},
        _corner_by_key=corner_by_key,
        _edge_by_key=edge_by_key,
    )


def standard_board() -> Board:
    return generate_board(layout="standard")
