"""Routes presentation events to a :class:`KalahGame` and layers the undo policy on top."""

from __future__ import annotations

from typing import Callable, Optional

from kalah_engine import DEFAULT_PITS_PER_SIDE, PLAYER_ONE, PLAYER_TWO, is_pit_owned_by
from kalah_game import KalahGame
from kalah_telemetry import TelemetrySink

MAX_UNDOS_PER_TURN = 3
PLAYER_NAMES = {PLAYER_ONE: "A", PLAYER_TWO: "B"}


class GameController:
    def __init__(
        self,
        game: Optional[KalahGame] = None,
        max_undos_per_turn: int = MAX_UNDOS_PER_TURN,
        allow_consecutive_undo: bool = False,
        on_change: Optional[Callable[[], None]] = None,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> None:
        if max_undos_per_turn < 0:
            raise ValueError("max_undos_per_turn must be non-negative")
        self.max_undos_per_turn = max_undos_per_turn
        self.allow_consecutive_undo = allow_consecutive_undo
        self.on_change = on_change
        self.telemetry_sink = telemetry_sink
        self.game: Optional[KalahGame] = None
        self.undos_this_turn = 0
        self.last_action_was_undo = False
        if game is not None:
            self._attach(game)

    def new_game(
        self,
        stones_per_pit: int,
        first_player: int = PLAYER_ONE,
        pits_per_side: int = DEFAULT_PITS_PER_SIDE,
    ) -> KalahGame:
        if self.game is not None:
            self.game.remove_listener(self._on_game_changed)
        game = KalahGame(pits_per_side, stones_per_pit, first_player, self.telemetry_sink)
        self._attach(game)
        game.start_game(first_player)
        self._on_game_changed()
        return game

    def _attach(self, game: KalahGame) -> None:
        self.game = game
        self.undos_this_turn = 0
        self.last_action_was_undo = False
        game.add_listener(self._on_game_changed)

    def _on_game_changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def on_pit_clicked(self, pit_index: int) -> bool:
        game = self.game
        if game is None or game.is_game_over():
            return False
        mover = game.get_current_player()
        if not is_pit_owned_by(game.config, pit_index, mover):
            return False
        if game.get_stones_at_pit(pit_index) == 0:
            return False

        game.apply_move(pit_index)
        self.last_action_was_undo = False
        if game.get_current_player() != mover:
            self.undos_this_turn = 0
        return True

    def can_undo(self) -> bool:
        if self.game is None or not self.game.has_history():
            return False
        if self.undos_this_turn >= self.max_undos_per_turn:
            return False
        if self.last_action_was_undo and not self.allow_consecutive_undo:
            return False
        return True

    def request_undo(self) -> bool:
        if self.game is None or not self.can_undo():
            return False
        self.undos_this_turn += 1
        self.last_action_was_undo = True
        return self.game.undo()

    def status_text(self) -> str:
        game = self.game
        if game is None:
            return ""
        if game.is_game_over():
            winner = game.get_winner()
            if winner in PLAYER_NAMES:
                return f"Player {PLAYER_NAMES[winner]} wins!"
            return "It's a tie!"
        return f"Player {PLAYER_NAMES[game.get_current_player()]}'s turn"
