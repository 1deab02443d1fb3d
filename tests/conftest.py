from __future__ import annotations

from typing import Iterable, List

import pytest

from hubcatan.engine.board import standard_board
from hubcatan.engine.game_state import TurnPhase
from hubcatan.engine.types import Action, ActionType, ResourceType
from hubcatan.service import create_initial_state, start_game

SEATS = [
    {"player_id": "p1", "display_name": "Ada"},
    {"player_id": "p2", "display_name": "Brook"},
    {"player_id": "p3", "display_name": "Cyd"},
    {"player_id": "p4", "display_name": "Dale"},
]


class ScriptedRandom:
    """RandomSource test double: queued dice and picks, shuffles keep order."""

    def __init__(self, dice: Iterable[int] = (), picks: Iterable[int] = ()):
        self.dice: List[int] = list(dice)
        self.picks: List[int] = list(picks)

    def queue_roll(self, total: int) -> None:
        die1 = min(6, total - 1)
        self.dice.extend([die1, total - die1])

    def randint(self, a: int, b: int) -> int:
        if self.dice:
            return self.dice.pop(0)
        return a

    def randrange(self, stop: int) -> int:
        if self.picks:
            return self.picks.pop(0) % stop
        return 0

    def shuffle(self, items) -> None:
        pass


def roll(state, player_id: str, total: int):
    state.rng.queue_roll(total)
    return state.apply(player_id, Action(ActionType.ROLL_DICE))


def set_hand(player, **amounts: int) -> None:
    for resource in ResourceType:
        player.resources[resource] = amounts.get(resource.value, 0)


def complete_setup(state) -> List[str]:
    """Place every setup piece on the first legal spot; return the acting order."""
    order: List[str] = []
    while state.phase in (
        TurnPhase.SETUP_SETTLEMENT_1,
        TurnPhase.SETUP_ROAD_1,
        TurnPhase.SETUP_SETTLEMENT_2,
        TurnPhase.SETUP_ROAD_2,
    ):
        player_id = state.current_player.player_id
        (menu,) = state.legal_actions(player_id)
        if menu["type"] == ActionType.PLACE_SETTLEMENT.value:
            order.append(player_id)
            action = Action(ActionType.PLACE_SETTLEMENT, {"corner_id": menu["valid_corners"][0]})
        else:
            action = Action(ActionType.PLACE_ROAD, {"edge_id": menu["valid_edges"][0]})
        result = state.apply(player_id, action)
        assert result.ok, result.error
    return order


@pytest.fixture
def board():
    return standard_board()


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def lobby_state(rng):
    return create_initial_state(SEATS, mode="4P", rng=rng)


@pytest.fixture
def setup_state(lobby_state):
    assert start_game(lobby_state).ok
    return lobby_state


@pytest.fixture
def main_state(setup_state):
    """First player's turn in MAIN, all hands emptied."""
    complete_setup(setup_state)
    for player in setup_state.players:
        set_hand(player)
    setup_state.phase = TurnPhase.MAIN
    return setup_state
