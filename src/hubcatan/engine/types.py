from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from .geometry import HexCoord


class ResourceType(str, Enum):
    WOOD = "wood"
    BRICK = "brick"
    SHEEP = "sheep"
    WHEAT = "wheat"
    ORE = "ore"


RESOURCE_TYPES: Tuple[ResourceType, ...] = tuple(ResourceType)


class Terrain(str, Enum):
    FOREST = "forest"
    HILLS = "hills"
    PASTURE = "pasture"
    FIELDS = "fields"
    MOUNTAINS = "mountains"
    DESERT = "desert"


TERRAIN_RESOURCE: Dict[Terrain, Optional[ResourceType]] = {
    Terrain.FOREST: ResourceType.WOOD,
    Terrain.HILLS: ResourceType.BRICK,
    Terrain.PASTURE: ResourceType.SHEEP,
    Terrain.FIELDS: ResourceType.WHEAT,
    Terrain.MOUNTAINS: ResourceType.ORE,
    Terrain.DESERT: None,
}


class DevCardType(str, Enum):
    KNIGHT = "knight"
    ROAD_BUILDING = "road_building"
    YEAR_OF_PLENTY = "year_of_plenty"
    MONOPOLY = "monopoly"
    VICTORY_POINT = "victory_point"


class BuildingType(str, Enum):
    SETTLEMENT = "settlement"
    CITY = "city"


class PortType(str, Enum):
    GENERIC = "generic"
    WOOD = "wood"
    BRICK = "brick"
    SHEEP = "sheep"
    WHEAT = "wheat"
    ORE = "ore"


PORT_RATIOS: Dict[PortType, int] = {
    PortType.GENERIC: 3,
    PortType.WOOD: 2,
    PortType.BRICK: 2,
    PortType.SHEEP: 2,
    PortType.WHEAT: 2,
    PortType.ORE: 2,
}


class ActionType(str, Enum):
    PLACE_SETTLEMENT = "PLACE_SETTLEMENT"
    PLACE_ROAD = "PLACE_ROAD"
    ROLL_DICE = "ROLL_DICE"
    DISCARD_RESOURCES = "DISCARD_RESOURCES"
    MOVE_ROBBER = "MOVE_ROBBER"
    STEAL_RESOURCE = "STEAL_RESOURCE"
    BUILD_ROAD = "BUILD_ROAD"
    BUILD_SETTLEMENT = "BUILD_SETTLEMENT"
    BUILD_CITY = "BUILD_CITY"
    BUY_DEV_CARD = "BUY_DEV_CARD"
    PLAY_DEV_CARD = "PLAY_DEV_CARD"
    SELECT_RESOURCES = "SELECT_RESOURCES"
    SELECT_RESOURCE_TYPE = "SELECT_RESOURCE_TYPE"
    PROPOSE_TRADE = "PROPOSE_TRADE"
    ACCEPT_TRADE = "ACCEPT_TRADE"
    REJECT_TRADE = "REJECT_TRADE"
    CANCEL_TRADE = "CANCEL_TRADE"
    BANK_TRADE = "BANK_TRADE"
    END_TURN = "END_TURN"


@dataclass(frozen=True)
class Action:
    action_type: ActionType
    payload: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "Action":
        """Build an action from ``{"type": ..., **payload}``.

        Raises ``ValueError`` when the type is not in the vocabulary.
        """
        data = dict(raw)
        raw_type = data.pop("type", "")
        action_type = raw_type if isinstance(raw_type, ActionType) else ActionType(str(raw_type))
        return cls(action_type=action_type, payload=data)


@dataclass(frozen=True)
class Port:
    port_id: int
    port_type: PortType
    ratio: int
    edge_id: int
    corner_ids: Tuple[int, int]


@dataclass
class Tile:
    tile_id: int
    coord: HexCoord
    terrain: Terrain
    number_token: int | None
    has_robber: bool = False

    @property
    def key(self) -> str:
        return self.coord.key()

    @property
    def resource(self) -> Optional[ResourceType]:
        return TERRAIN_RESOURCE[self.terrain]


@dataclass
class Corner:
    corner_id: int
    key: str
    coord: HexCoord
    direction: int
    tile_ids: Tuple[int, ...]
    building: BuildingType | None = None
    owner: str | None = None
    port: Port | None = None

    @property
    def is_coastal(self) -> bool:
        return len(self.tile_ids) < 3


@dataclass
class Edge:
    edge_id: int
    key: str
    coord: HexCoord
    direction: int
    corner_ids: Tuple[int, int]
    tile_ids: Tuple[int, ...]
    owner: str | None = None

    @property
    def has_road(self) -> bool:
        return self.owner is not None


@dataclass
class DevCard:
    card_id: str
    card_type: DevCardType
    bought_this_turn: bool = False
