from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

MODE_PLAYER_COUNTS: Dict[str, int] = {"3P": 3, "4P": 4}

MIN_PLAYERS = 3


@dataclass(frozen=True)
class GameConfig:
    mode: str = "4P"
    target_victory_points: int = 10
    max_hand_size: int = 7
    min_longest_road: int = 5
    min_largest_army: int = 3
    board_layout: str = "standard"
    shuffle_seating: bool = True
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.mode not in MODE_PLAYER_COUNTS:
            raise ValueError(f"Unknown game mode: {self.mode}")
        if self.board_layout not in ("standard", "random"):
            raise ValueError(f"Unknown board layout: {self.board_layout}")

    @property
    def num_players(self) -> int:
        return MODE_PLAYER_COUNTS[self.mode]

    @classmethod
    def for_mode(cls, mode: str = "4P", **overrides: object) -> "GameConfig":
        return cls(mode=mode, **overrides)
