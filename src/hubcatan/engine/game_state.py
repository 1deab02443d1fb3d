from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, NamedTuple, Optional, Tuple, Union

from .board import Board
from .config import GameConfig
from .types import DevCard, ResourceType

if TYPE_CHECKING:
    from ..utils.repro import RandomSource
    from .errors import ActionResult
    from .types import Action


class TurnPhase(str, Enum):
    LOBBY = "LOBBY"
    SETUP_SETTLEMENT_1 = "SETUP_SETTLEMENT_1"
    SETUP_ROAD_1 = "SETUP_ROAD_1"
    SETUP_SETTLEMENT_2 = "SETUP_SETTLEMENT_2"
    SETUP_ROAD_2 = "SETUP_ROAD_2"
    ROLL = "ROLL"
    DISCARD = "DISCARD"
    ROBBER_MOVE = "ROBBER_MOVE"
    ROBBER_STEAL = "ROBBER_STEAL"
    MAIN = "MAIN"
    FINISHED = "FINISHED"


SETUP_PHASES = (
    TurnPhase.SETUP_SETTLEMENT_1,
    TurnPhase.SETUP_ROAD_1,
    TurnPhase.SETUP_SETTLEMENT_2,
    TurnPhase.SETUP_ROAD_2,
)


ResourceBank = Dict[ResourceType, int]

STARTING_SETTLEMENTS = 5
STARTING_CITIES = 4
STARTING_ROADS = 15

PLAYER_COLORS = ["red", "blue", "orange", "white"]


def empty_resources() -> ResourceBank:
    return {resource: 0 for resource in ResourceType}


@dataclass
class PlayerState:
    player_id: str
    display_name: str
    color: str
    resources: ResourceBank = field(default_factory=empty_resources)
    dev_cards: List[DevCard] = field(default_factory=list)
    dev_cards_played: List[DevCard] = field(default_factory=list)
    settlements_remaining: int = STARTING_SETTLEMENTS
    cities_remaining: int = STARTING_CITIES
    roads_remaining: int = STARTING_ROADS
    knights_played: int = 0
    longest_road_length: int = 0


class DiceRoll(NamedTuple):
    die1: int
    die2: int

    @property
    def total(self) -> int:
        return self.die1 + self.die2


# Pending multi-step actions. Exactly one may be open at a time.


@dataclass(frozen=True)
class SetupRoad:
    corner_id: int
    kind = "SETUP_ROAD"


@dataclass(frozen=True)
class Steal:
    candidate_targets: Tuple[str, ...]
    kind = "STEAL"


@dataclass
class RoadBuilding:
    roads_to_place: int
    roads_placed: int = 0
    kind = "ROAD_BUILDING"

    @property
    def remaining(self) -> int:
        return self.roads_to_place - self.roads_placed


@dataclass(frozen=True)
class YearOfPlenty:
    kind = "YEAR_OF_PLENTY"


@dataclass(frozen=True)
class Monopoly:
    kind = "MONOPOLY"


PendingAction = Union[SetupRoad, Steal, RoadBuilding, YearOfPlenty, Monopoly]


@dataclass
class TradeOffer:
    trade_id: str
    from_player: str
    to_player: str
    offer: ResourceBank
    request: ResourceBank
    status: str = "pending"

    def to_dict(self) -> Dict[str, object]:
        return {
            "trade_id": self.trade_id,
            "from_player": self.from_player,
            "to_player": self.to_player,
            "offer": {res.value: amount for res, amount in self.offer.items() if amount},
            "request": {res.value: amount for res, amount in self.request.items() if amount},
            "status": self.status,
        }


@dataclass
class GameState:
    board: Board
    players: List[PlayerState]
    config: GameConfig
    rng: "RandomSource" = field(repr=False, compare=False)
    phase: TurnPhase = TurnPhase.LOBBY
    turn_index: int = 0
    round_number: int = 0
    last_roll: DiceRoll | None = None
    longest_road_holder: str | None = None
    largest_army_holder: str | None = None
    dev_card_deck: List[DevCard] = field(default_factory=list)
    dev_card_played_this_turn: bool = False
    pending_action: Optional[PendingAction] = None
    pending_discards: Dict[str, int] | None = None
    trade_offer: TradeOffer | None = None
    robber_return_phase: TurnPhase = TurnPhase.MAIN
    winner: str | None = None
    trades_proposed: int = 0

    @property
    def target_victory_points(self) -> int:
        return self.config.target_victory_points

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.turn_index]

    def player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def legal_actions(self, player_id: str) -> List[Dict[str, object]]:
        from .legal import legal_actions

        return legal_actions(self, player_id)

    def apply(self, player_id: str, action: "Action") -> "ActionResult":
        from .rules import apply_action

        return apply_action(self, player_id, action)


def initial_game_state(
    board: Board,
    players: List[PlayerState],
    config: GameConfig,
    rng: "RandomSource",
    dev_card_deck: List[DevCard],
) -> GameState:
    return GameState(
        board=board,
        players=players,
        config=config,
        rng=rng,
        dev_card_deck=dev_card_deck,
    )
