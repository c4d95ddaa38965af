"""Stateful Kalah game: turn tracking, snapshot history for undo, and change listeners."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from kalah_engine import (
    DEFAULT_PITS_PER_SIDE,
    DEFAULT_STONES_PER_PIT,
    PLAYER_ONE,
    PLAYER_TWO,
    GameAlreadyOver,
    GameConfig,
    MoveTrace,
    OutOfRangePit,
    TurnOutcome,
    decide_winner,
    evaluate_landing,
    initial_board,
    is_board_index,
    is_terminal,
    other_player,
    pit_range,
    sow,
    store_index,
    sweep,
    validate_move,
)
from kalah_telemetry import (
    CaptureEvent,
    GameOverEvent,
    GameStartEvent,
    MoveAppliedEvent,
    TelemetrySink,
    UndoEvent,
    emit_dataclass_event,
)

Listener = Callable[[], None]


def _check_first_player(player: int) -> None:
    if player not in (PLAYER_ONE, PLAYER_TWO):
        raise ValueError(f"first_player must be {PLAYER_ONE} or {PLAYER_TWO}, got {player!r}")


@dataclass(frozen=True)
class Snapshot:
    board: Tuple[int, ...]
    last_move: Optional[int]
    last_trace: Optional[MoveTrace]
    current_player: int
    game_over: bool
    winner: Optional[int]


class KalahGame:
    """One game of Kalah.

    The board is owned exclusively by the instance: readers get copies and every
    history entry is an immutable tuple taken before the move mutates the board.
    Not thread-safe; callers sharing a game across threads must serialize access.
    """

    def __init__(
        self,
        pits_per_side: int = DEFAULT_PITS_PER_SIDE,
        stones_per_pit: int = DEFAULT_STONES_PER_PIT,
        first_player: int = PLAYER_ONE,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> None:
        self._config = GameConfig(pits_per_side, stones_per_pit)
        self._board: List[int] = initial_board(self._config)
        self._history: List[Snapshot] = []
        self._listeners: List[Listener] = []
        self._telemetry_sink = telemetry_sink
        _check_first_player(first_player)
        self._current_player = first_player
        self._game_over = False
        self._winner: Optional[int] = None
        self._last_move: Optional[int] = None
        self._last_trace: Optional[MoveTrace] = None
        self._total_stones = self._config.total_stones

    @classmethod
    def from_config(
        cls,
        config: GameConfig,
        first_player: int = PLAYER_ONE,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> "KalahGame":
        return cls(config.pits_per_side, config.stones_per_pit, first_player, telemetry_sink)

    @classmethod
    def from_position(
        cls,
        board: Sequence[int],
        current_player: int = PLAYER_ONE,
        stones_per_pit: int = DEFAULT_STONES_PER_PIT,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> "KalahGame":
        """Start from an arbitrary position. ``pits_per_side`` is derived from the board length.

        The position is taken as-is; call :meth:`check_and_finalize` if it may already be terminal.
        """
        if len(board) < 4 or len(board) % 2 != 0:
            raise ValueError(f"board length must be an even number >= 4, got {len(board)}")
        for n in board:
            if isinstance(n, bool) or not isinstance(n, int) or n < 0:
                raise ValueError(f"stone counts must be non-negative integers, got {n!r}")
        game = cls((len(board) - 2) // 2, stones_per_pit, current_player, telemetry_sink)
        game._board = list(board)
        game._total_stones = sum(board)
        return game

    @property
    def config(self) -> GameConfig:
        return self._config

    def start_game(self, first_player: int) -> None:
        _check_first_player(first_player)
        if self._game_over:
            raise GameAlreadyOver()
        self._current_player = first_player
        emit_dataclass_event(
            self._telemetry_sink,
            "game_start",
            GameStartEvent(self._config.pits_per_side, self._config.stones_per_pit, first_player),
        )

    # Read accessors

    def get_current_player(self) -> int:
        return self._current_player

    def is_game_over(self) -> bool:
        return self._game_over

    def get_winner(self) -> Optional[int]:
        """1 or 2 for a winner, ``TIE`` (0) for a draw, ``None`` while the game is running."""
        return self._winner

    def get_board_state(self) -> List[int]:
        return list(self._board)

    def get_stones_at_pit(self, idx: int) -> int:
        if not is_board_index(self._config, idx):
            raise OutOfRangePit(idx, self._config.board_length)
        return self._board[idx]

    def get_store(self, player: int) -> int:
        return self._board[store_index(self._config, player)]

    def scores(self) -> Tuple[int, int]:
        return self.get_store(PLAYER_ONE), self.get_store(PLAYER_TWO)

    def total_stones(self) -> int:
        """Stones in play; constant for the lifetime of the game."""
        return self._total_stones

    def legal_moves(self) -> List[int]:
        if self._game_over:
            return []
        return [i for i in pit_range(self._config, self._current_player) if self._board[i] > 0]

    def last_move(self) -> Optional[int]:
        return self._last_move

    def last_trace(self) -> Optional[MoveTrace]:
        return self._last_trace

    # Moves

    def apply_move(self, pit_index: int) -> bool:
        """Play ``pit_index`` for the current player. Returns True on an extra turn."""
        return self.apply_move_with_info(pit_index).extra_turn

    def apply_move_with_info(self, pit_index: int) -> MoveTrace:
        if self._game_over:
            raise GameAlreadyOver(pit_index)
        mover = self._current_player
        validate_move(self._config, self._board, mover, pit_index)

        self._snapshot()
        self._last_move = pit_index

        picked_count, drops = sow(self._config, self._board, mover, pit_index)
        landing = drops[-1]
        outcome, capture = evaluate_landing(self._config, self._board, mover, landing)
        sweep_one, sweep_two = self._finalize_if_terminal()

        if not self._game_over and outcome is TurnOutcome.TURN_ENDS:
            self._current_player = other_player(mover)

        trace = MoveTrace(
            mover=mover,
            picked_pit=pit_index,
            picked_count=picked_count,
            drops=tuple(drops),
            landing_pit=landing,
            outcome=outcome,
            capture=capture,
            terminal_after=self._game_over,
            sweep_one=sweep_one,
            sweep_two=sweep_two,
        )
        self._last_trace = trace

        emit_dataclass_event(
            self._telemetry_sink,
            "move_applied",
            MoveAppliedEvent(
                mover=mover,
                pit=pit_index,
                picked_count=picked_count,
                landing_pit=landing,
                outcome=outcome.value,
                next_player=self._current_player,
                history_depth=len(self._history),
            ),
        )
        if capture is not None:
            emit_dataclass_event(
                self._telemetry_sink,
                "capture",
                CaptureEvent(mover, capture.landing_pit, capture.opposite_pit, capture.captured_count),
            )
        if self._game_over:
            store_one, store_two = self.scores()
            emit_dataclass_event(
                self._telemetry_sink,
                "game_over",
                GameOverEvent(self._winner, store_one, store_two, sweep_one, sweep_two),
            )

        self._notify()
        return trace

    def check_and_finalize(self) -> bool:
        """End the game if either row is empty. Returns whether the game is over.

        Moves already run this check; calling it directly matters only for a position
        loaded through :meth:`from_position` that is terminal from the start.
        """
        was_over = self._game_over
        self._finalize_if_terminal()
        if self._game_over and not was_over:
            self._notify()
        return self._game_over

    def _finalize_if_terminal(self) -> Tuple[int, int]:
        if self._game_over or not is_terminal(self._config, self._board):
            return 0, 0
        swept = sweep(self._config, self._board)
        self._winner = decide_winner(self._config, self._board)
        self._game_over = True
        return swept

    # History

    def has_history(self) -> bool:
        return bool(self._history)

    def history_depth(self) -> int:
        return len(self._history)

    def undo(self) -> bool:
        """Restore the state from before the most recent move. No-op on empty history."""
        if not self._history:
            return False
        snapshot = self._history.pop()
        self._board = list(snapshot.board)
        self._last_move = snapshot.last_move
        self._last_trace = snapshot.last_trace
        self._current_player = snapshot.current_player
        self._game_over = snapshot.game_over
        self._winner = snapshot.winner
        emit_dataclass_event(
            self._telemetry_sink,
            "undo",
            UndoEvent(snapshot.current_player, snapshot.last_move, len(self._history)),
        )
        self._notify()
        return True

    def _snapshot(self) -> None:
        self._history.append(
            Snapshot(
                board=tuple(self._board),
                last_move=self._last_move,
                last_trace=self._last_trace,
                current_player=self._current_player,
                game_over=self._game_over,
                winner=self._winner,
            )
        )

    # Listeners

    def add_listener(self, listener: Listener) -> Listener:
        self._listeners.append(listener)
        return listener

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
