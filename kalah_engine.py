"""Core rules engine for Kalah on a linear board of pits and two stores.

Board layout for ``pits_per_side = n``:

    indices 0..n-1       player 1 pits
    index   n            player 1 store
    indices n+1..2n      player 2 pits
    index   2n+1         player 2 store

Functions here operate on a plain ``list`` of stone counts and mutate it in place.
They hold no turn or history state; :mod:`kalah_game` orchestrates them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Optional, Sequence, Tuple

PLAYER_ONE = 1
PLAYER_TWO = 2
TIE = 0

DEFAULT_PITS_PER_SIDE = 6
DEFAULT_STONES_PER_PIT = 4

ENV_PITS_PER_SIDE = "KALAH_PITS_PER_SIDE"
ENV_STONES_PER_PIT = "KALAH_STONES_PER_PIT"


class TurnOutcome(Enum):
    EXTRA_TURN = "extra_turn"
    TURN_ENDS = "turn_ends"


class IllegalMoveError(ValueError):
    """Raised when a move cannot be applied to the current position."""

    def __init__(self, pit: int, message: str) -> None:
        super().__init__(message)
        self.pit = pit


class OutOfRangePit(IllegalMoveError):
    def __init__(self, pit: int, board_length: int) -> None:
        super().__init__(pit, f"illegal move: pit {pit} is outside 0..{board_length - 1}")


class NotOwnedByCurrentPlayer(IllegalMoveError):
    def __init__(self, pit: int, player: int) -> None:
        super().__init__(pit, f"illegal move: pit {pit} is not a pit of player {player}")


class EmptyPit(IllegalMoveError):
    def __init__(self, pit: int) -> None:
        super().__init__(pit, f"illegal move: pit {pit} is empty")


class GameAlreadyOver(IllegalMoveError):
    def __init__(self, pit: int = -1) -> None:
        super().__init__(pit, "illegal move: the game is already over")


@dataclass(frozen=True)
class GameConfig:
    pits_per_side: int = DEFAULT_PITS_PER_SIDE
    stones_per_pit: int = DEFAULT_STONES_PER_PIT

    def __post_init__(self) -> None:
        for name in ("pits_per_side", "stones_per_pit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    @property
    def board_length(self) -> int:
        return 2 * self.pits_per_side + 2

    @property
    def total_stones(self) -> int:
        """Stones on a freshly initialised board."""
        return 2 * self.pits_per_side * self.stones_per_pit


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> GameConfig:
    env = os.environ if environ is None else environ

    def _read(name: str, default: int) -> int:
        raw = env.get(name, "").strip()
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {raw!r}") from None

    return GameConfig(
        pits_per_side=_read(ENV_PITS_PER_SIDE, DEFAULT_PITS_PER_SIDE),
        stones_per_pit=_read(ENV_STONES_PER_PIT, DEFAULT_STONES_PER_PIT),
    )


@dataclass(frozen=True)
class CaptureInfo:
    landing_pit: int
    opposite_pit: int
    captured_count: int
    store: int


@dataclass(frozen=True)
class MoveTrace:
    mover: int
    picked_pit: int
    picked_count: int
    drops: Tuple[int, ...]
    landing_pit: int
    outcome: TurnOutcome
    capture: Optional[CaptureInfo]
    terminal_after: bool
    sweep_one: int
    sweep_two: int

    @property
    def extra_turn(self) -> bool:
        return self.outcome is TurnOutcome.EXTRA_TURN


def _check_player(player: int) -> None:
    if player not in (PLAYER_ONE, PLAYER_TWO):
        raise ValueError(f"player must be {PLAYER_ONE} or {PLAYER_TWO}, got {player!r}")


def other_player(player: int) -> int:
    _check_player(player)
    return PLAYER_TWO if player == PLAYER_ONE else PLAYER_ONE


def store_index(config: GameConfig, player: int) -> int:
    _check_player(player)
    if player == PLAYER_ONE:
        return config.pits_per_side
    return 2 * config.pits_per_side + 1


def pit_range(config: GameConfig, player: int) -> range:
    """Playable pit indices of ``player``; the store is excluded."""
    _check_player(player)
    n = config.pits_per_side
    if player == PLAYER_ONE:
        return range(0, n)
    return range(n + 1, 2 * n + 1)


def is_pit_owned_by(config: GameConfig, idx: int, player: int) -> bool:
    return idx in pit_range(config, player)


def opposite_pit(config: GameConfig, pit: int) -> int:
    if pit == config.pits_per_side or not 0 <= pit <= 2 * config.pits_per_side:
        raise ValueError(f"pit {pit} has no opposite pit")
    return 2 * config.pits_per_side - pit


def initial_board(config: GameConfig) -> List[int]:
    board = [config.stones_per_pit] * config.board_length
    board[store_index(config, PLAYER_ONE)] = 0
    board[store_index(config, PLAYER_TWO)] = 0
    return board


def is_board_index(config: GameConfig, idx: int) -> bool:
    if isinstance(idx, bool) or not isinstance(idx, int):
        return False
    return 0 <= idx < config.board_length


def validate_move(config: GameConfig, board: Sequence[int], player: int, pit: int) -> None:
    if not is_board_index(config, pit):
        raise OutOfRangePit(pit, config.board_length)
    if not is_pit_owned_by(config, pit, player):
        raise NotOwnedByCurrentPlayer(pit, player)
    if board[pit] == 0:
        raise EmptyPit(pit)


def sow(config: GameConfig, board: List[int], player: int, pit: int) -> Tuple[int, List[int]]:
    """Pick up ``pit`` and sow counter-clockwise, skipping the opponent's store.

    Returns the number of stones picked up and the index of every drop in order;
    the last drop is the landing pit.
    """
    seeds = board[pit]
    if seeds == 0:
        raise EmptyPit(pit)
    board[pit] = 0
    skip = store_index(config, other_player(player))

    picked_count = seeds
    drops: List[int] = []
    pos = pit
    while seeds > 0:
        pos = (pos + 1) % config.board_length
        if pos == skip:
            continue
        board[pos] += 1
        drops.append(pos)
        seeds -= 1
    return picked_count, drops


def evaluate_landing(
    config: GameConfig, board: List[int], player: int, landing_pit: int
) -> Tuple[TurnOutcome, Optional[CaptureInfo]]:
    """Apply the capture rule for ``landing_pit`` and decide whether the mover goes again.

    Landing in the mover's own store is an extra turn and is never a capture.
    Landing in a previously empty pit of the mover's own row captures that stone
    together with the opposite pit, provided the opposite pit is non-empty.
    """
    store = store_index(config, player)
    if landing_pit == store:
        return TurnOutcome.EXTRA_TURN, None

    if is_pit_owned_by(config, landing_pit, player) and board[landing_pit] == 1:
        opposite = opposite_pit(config, landing_pit)
        if board[opposite] > 0:
            captured = board[landing_pit] + board[opposite]
            board[landing_pit] = 0
            board[opposite] = 0
            board[store] += captured
            return TurnOutcome.TURN_ENDS, CaptureInfo(landing_pit, opposite, captured, store)

    return TurnOutcome.TURN_ENDS, None


def side_total(config: GameConfig, board: Sequence[int], player: int) -> int:
    return sum(board[i] for i in pit_range(config, player))


def is_terminal(config: GameConfig, board: Sequence[int]) -> bool:
    return side_total(config, board, PLAYER_ONE) == 0 or side_total(config, board, PLAYER_TWO) == 0


def sweep(config: GameConfig, board: List[int]) -> Tuple[int, int]:
    """Move every pit's stones into its owner's store. Returns the amounts per player."""
    swept = []
    for player in (PLAYER_ONE, PLAYER_TWO):
        store = store_index(config, player)
        total = 0
        for idx in pit_range(config, player):
            total += board[idx]
            board[idx] = 0
        board[store] += total
        swept.append(total)
    return swept[0], swept[1]


def decide_winner(config: GameConfig, board: Sequence[int]) -> int:
    score_one = board[store_index(config, PLAYER_ONE)]
    score_two = board[store_index(config, PLAYER_TWO)]
    if score_one > score_two:
        return PLAYER_ONE
    if score_two > score_one:
        return PLAYER_TWO
    return TIE
