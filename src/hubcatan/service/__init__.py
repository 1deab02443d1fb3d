"""Transport-facing facade over the game engine."""

from .game_service import (
    GameEngine,
    create_initial_state,
    get_available_actions,
    get_game_results,
    is_game_finished,
    process_action,
    start_game,
)
from .views import sanitize_state

__all__ = [
    "GameEngine",
    "create_initial_state",
    "get_available_actions",
    "get_game_results",
    "is_game_finished",
    "process_action",
    "sanitize_state",
    "start_game",
]
