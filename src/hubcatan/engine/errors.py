from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class ErrorCode(str, Enum):
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    WRONG_PHASE = "WRONG_PHASE"
    GAME_OVER = "GAME_OVER"
    ALREADY_STARTED = "ALREADY_STARTED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    PENDING_ACTION_REQUIRED = "PENDING_ACTION_REQUIRED"
    # placement
    INVALID_CORNER = "INVALID_CORNER"
    INVALID_EDGE = "INVALID_EDGE"
    INVALID_TILE = "INVALID_TILE"
    CORNER_OCCUPIED = "CORNER_OCCUPIED"
    TOO_CLOSE_TO_BUILDING = "TOO_CLOSE_TO_BUILDING"
    NOT_CONNECTED_TO_ROAD = "NOT_CONNECTED_TO_ROAD"
    NO_SETTLEMENT_HERE = "NO_SETTLEMENT_HERE"
    EDGE_OCCUPIED = "EDGE_OCCUPIED"
    MUST_CONNECT_TO_SETTLEMENT = "MUST_CONNECT_TO_SETTLEMENT"
    NOT_CONNECTED = "NOT_CONNECTED"
    NO_ROADS_LEFT = "NO_ROADS_LEFT"
    NO_SETTLEMENTS_LEFT = "NO_SETTLEMENTS_LEFT"
    NO_CITIES_LEFT = "NO_CITIES_LEFT"
    # economy
    INVALID_RESOURCE = "INVALID_RESOURCE"
    NOT_ENOUGH_RESOURCES = "NOT_ENOUGH_RESOURCES"
    SAME_RESOURCE = "SAME_RESOURCE"
    NOT_REQUIRED_TO_DISCARD = "NOT_REQUIRED_TO_DISCARD"
    WRONG_DISCARD_COUNT = "WRONG_DISCARD_COUNT"
    INVALID_ROBBER_TILE = "INVALID_ROBBER_TILE"
    INVALID_STEAL_TARGET = "INVALID_STEAL_TARGET"
    # trading
    CANNOT_TRADE_WITH_SELF = "CANNOT_TRADE_WITH_SELF"
    OFFERER_LACKS_RESOURCES = "OFFERER_LACKS_RESOURCES"
    TARGET_LACKS_RESOURCES = "TARGET_LACKS_RESOURCES"
    EMPTY_TRADE = "EMPTY_TRADE"
    NO_SUCH_TRADE = "NO_SUCH_TRADE"
    NOT_TRADE_TARGET = "NOT_TRADE_TARGET"
    NOT_TRADE_OWNER = "NOT_TRADE_OWNER"
    # development cards
    NO_CARDS_LEFT = "NO_CARDS_LEFT"
    NO_ELIGIBLE_CARD = "NO_ELIGIBLE_CARD"
    VP_CARDS_ARE_AUTOMATIC = "VP_CARDS_ARE_AUTOMATIC"
    ALREADY_PLAYED_CARD = "ALREADY_PLAYED_CARD"
    UNKNOWN_CARD_TYPE = "UNKNOWN_CARD_TYPE"
    NO_PENDING_YEAR_OF_PLENTY = "NO_PENDING_YEAR_OF_PLENTY"
    NO_PENDING_MONOPOLY = "NO_PENDING_MONOPOLY"


@dataclass(frozen=True)
class RuleViolation:
    reason: ErrorCode


@dataclass
class ActionResult:
    ok: bool
    error: Optional[ErrorCode] = None
    data: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def success(cls, **data: object) -> "ActionResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, reason: ErrorCode | RuleViolation, **data: object) -> "ActionResult":
        if isinstance(reason, RuleViolation):
            reason = reason.reason
        return cls(ok=False, error=reason, data=data)

    def __getitem__(self, key: str) -> object:
        return self.data[key]

    def get(self, key: str, default: object = None) -> object:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, object]:
        result: Dict[str, object] = {"ok": self.ok}
        if self.error is not None:
            result["error"] = self.error.value
        result.update(self.data)
        return result
