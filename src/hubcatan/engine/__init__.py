"""Core rules engine for the settlement-and-trade board game."""

from .board import Board, generate_board, standard_board
from .config import GameConfig
from .errors import ActionResult, ErrorCode, RuleViolation
from .game_state import GameState, PlayerState, TurnPhase, initial_game_state
from .rules import apply_action
from .types import Action, ActionType, BuildingType, DevCardType, ResourceType

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "Board",
    "BuildingType",
    "DevCardType",
    "ErrorCode",
    "GameConfig",
    "GameState",
    "PlayerState",
    "ResourceType",
    "RuleViolation",
    "TurnPhase",
    "apply_action",
    "generate_board",
    "initial_game_state",
    "standard_board",
]
