"""PySide6 bridge exposing a KalahGame's change notifications as Qt signals."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, Signal

from kalah_game import KalahGame


class QtGameBridge(QObject):
    state_changed = Signal()
    undo_available = Signal(bool)
    game_finished = Signal(int)

    def __init__(self, game: KalahGame, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.game: Optional[KalahGame] = game
        self._was_over = game.is_game_over()
        game.add_listener(self._on_game_changed)

    def detach(self) -> None:
        if self.game is None:
            return
        self.game.remove_listener(self._on_game_changed)
        self.game = None

    def _on_game_changed(self) -> None:
        game = self.game
        if game is None:
            return
        self.state_changed.emit()
        self.undo_available.emit(game.has_history())
        over = game.is_game_over()
        if over and not self._was_over:
            winner = game.get_winner()
            self.game_finished.emit(0 if winner is None else winner)
        self._was_over = over
