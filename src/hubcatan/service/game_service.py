from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..engine.board import generate_board
from ..engine.config import MIN_PLAYERS, GameConfig
from ..engine.dev_cards import create_dev_card_deck
from ..engine.errors import ActionResult, ErrorCode
from ..engine.game_state import PLAYER_COLORS, GameState, PlayerState, TurnPhase, initial_game_state
from ..engine.legal import legal_actions
from ..engine.scoring import calculate_victory_points
from ..engine.types import Action
from ..utils.logging_config import get_logger
from ..utils.repro import RandomSource, make_rng
from .views import sanitize_state

logger = get_logger(__name__)

SeatInfo = Mapping[str, Any]


def create_initial_state(
    players: Sequence[SeatInfo],
    mode: str = "4P",
    config: GameConfig | None = None,
    rng: RandomSource | None = None,
) -> GameState:
    """Build a lobby-phase game for the given seats.

    Each seat is a mapping with ``player_id`` and optionally ``display_name``.
    Seats beyond the mode's player count are ignored.
    """
    config = config or GameConfig.for_mode(mode)
    rng = rng or make_rng(config.seed)

    seats = list(players)[: config.num_players]
    player_states = [
        PlayerState(
            player_id=str(seat["player_id"]),
            display_name=str(seat.get("display_name") or seat["player_id"]),
            color=PLAYER_COLORS[idx],
        )
        for idx, seat in enumerate(seats)
    ]
    if config.shuffle_seating:
        rng.shuffle(player_states)

    board = generate_board(layout=config.board_layout, rng=rng)
    deck = create_dev_card_deck(rng)
    return initial_game_state(board, player_states, config, rng, deck)


def start_game(state: GameState) -> ActionResult:
    if state.phase != TurnPhase.LOBBY:
        return ActionResult.failure(ErrorCode.ALREADY_STARTED)
    if len(state.players) < MIN_PLAYERS:
        return ActionResult.failure(ErrorCode.NOT_ENOUGH_PLAYERS)

    state.phase = TurnPhase.SETUP_SETTLEMENT_1
    state.turn_index = 0
    state.round_number = 0
    state.last_roll = None
    state.pending_action = None
    state.pending_discards = None
    state.trade_offer = None
    state.robber_return_phase = TurnPhase.MAIN
    state.winner = None
    logger.info(
        "game_started",
        mode=state.config.mode,
        seats=[player.player_id for player in state.players],
    )
    return ActionResult.success()


def process_action(
    state: GameState, player_id: str, action: Union[Action, Mapping[str, Any]]
) -> ActionResult:
    if not isinstance(action, Action):
        if not isinstance(action, Mapping):
            return ActionResult.failure(ErrorCode.INVALID_PAYLOAD)
        try:
            action = Action.from_dict(action)
        except ValueError:
            logger.debug("unknown_action", player_id=player_id, action=action.get("type"))
            return ActionResult.failure(ErrorCode.UNKNOWN_ACTION)
    return state.apply(player_id, action)


def get_available_actions(state: GameState, player_id: str) -> List[Dict[str, object]]:
    return legal_actions(state, player_id)


def is_game_finished(state: GameState) -> bool:
    return state.phase == TurnPhase.FINISHED


def get_game_results(state: GameState) -> Optional[Dict[str, Any]]:
    if not is_game_finished(state):
        return None

    standings = [
        {
            "player_id": player.player_id,
            "display_name": player.display_name,
            "color": player.color,
            "victory_points": calculate_victory_points(state, player.player_id),
            "is_winner": player.player_id == state.winner,
        }
        for player in state.players
    ]
    standings.sort(key=lambda entry: entry["victory_points"], reverse=True)

    winner = state.player(state.winner) if state.winner else None
    return {
        "winner": state.winner,
        "winner_name": winner.display_name if winner else None,
        "standings": standings,
    }


class GameEngine:
    """Owns one game's state; every mutation goes through ``act``.

    Callers serialize access per instance.
    """

    def __init__(
        self,
        players: Sequence[SeatInfo],
        mode: str = "4P",
        config: GameConfig | None = None,
        rng: RandomSource | None = None,
    ):
        self._state = create_initial_state(players, mode=mode, config=config, rng=rng)

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def finished(self) -> bool:
        return is_game_finished(self._state)

    def start(self) -> ActionResult:
        return start_game(self._state)

    def act(self, player_id: str, action: Union[Action, Mapping[str, Any]]) -> ActionResult:
        return process_action(self._state, player_id, action)

    def view(self, viewer_id: str) -> Dict[str, Any]:
        return sanitize_state(self._state, viewer_id)

    def available_actions(self, player_id: str) -> List[Dict[str, object]]:
        return get_available_actions(self._state, player_id)

    def results(self) -> Optional[Dict[str, Any]]:
        return get_game_results(self._state)
