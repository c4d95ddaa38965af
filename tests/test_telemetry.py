import unittest
from queue import Queue

from kalah_controller import GameController
from kalah_engine import PLAYER_ONE, PLAYER_TWO
from kalah_game import KalahGame
from kalah_telemetry import (
    CallbackTelemetrySink,
    MemoryTelemetrySink,
    NullTelemetrySink,
    QueueTelemetrySink,
    TelemetryEnvelope,
    UndoEvent,
    emit_dataclass_event,
    emit_event,
)


class _ExplodingSink:
    def emit(self, envelope: TelemetryEnvelope) -> None:
        raise RuntimeError("sink down")

    def close(self) -> None:
        return


class TestTelemetry(unittest.TestCase):
    def test_game_emits_core_events(self):
        sink = MemoryTelemetrySink()
        game = KalahGame.from_position(
            [1, 0, 0, 0, 1, 0, 2, 5, 4, 4, 4, 4, 4, 0], telemetry_sink=sink
        )
        game.start_game(PLAYER_ONE)
        game.apply_move(4)
        game.undo()
        self.assertEqual(sink.names(), ["game_start", "move_applied", "capture", "undo"])
        move = sink.events[1].data
        self.assertEqual(move["pit"], 4)
        self.assertEqual(move["landing_pit"], 5)
        self.assertEqual(move["outcome"], "turn_ends")
        self.assertEqual(move["next_player"], PLAYER_TWO)
        self.assertEqual(move["history_depth"], 1)
        self.assertEqual(sink.events[2].data["captured_count"], 6)
        self.assertEqual(sink.events[3].data["history_depth"], 0)

    def test_game_start_emitted_once_per_start(self):
        sink = MemoryTelemetrySink()
        game = KalahGame(6, 4, telemetry_sink=sink)
        self.assertEqual(sink.names(), [])
        game.start_game(PLAYER_TWO)
        self.assertEqual(sink.names(), ["game_start"])
        self.assertEqual(sink.events[0].data["first_player"], PLAYER_TWO)

        controller_sink = MemoryTelemetrySink()
        GameController(telemetry_sink=controller_sink).new_game(3)
        self.assertEqual(controller_sink.names(), ["game_start"])

    def test_game_over_event(self):
        sink = MemoryTelemetrySink()
        game = KalahGame.from_position(
            [0, 0, 0, 0, 0, 1, 10, 2, 2, 2, 2, 2, 2, 10], telemetry_sink=sink
        )
        game.apply_move(5)
        over = [event for event in sink.events if event.event == "game_over"]
        self.assertEqual(len(over), 1)
        self.assertEqual(over[0].data["winner"], PLAYER_TWO)
        self.assertEqual(over[0].data["store_two"], 22)
        self.assertEqual(over[0].data["sweep_two"], 12)

    def test_failing_sink_does_not_break_play(self):
        game = KalahGame(telemetry_sink=_ExplodingSink())
        self.assertTrue(game.apply_move(2))
        self.assertTrue(game.undo())

    def test_memory_sink_is_bounded(self):
        sink = MemoryTelemetrySink(maxlen=2)
        for i in range(5):
            emit_event(sink, f"e{i}", {})
        self.assertEqual(sink.names(), ["e3", "e4"])
        sink.close()
        emit_event(sink, "late", {})
        self.assertEqual(sink.names(), ["e3", "e4"])

    def test_queue_and_callback_sinks(self):
        queue: "Queue[TelemetryEnvelope]" = Queue()
        emit_dataclass_event(QueueTelemetrySink(queue), "undo", UndoEvent(1, None, 0))
        envelope = queue.get_nowait()
        self.assertEqual(envelope.event, "undo")
        self.assertEqual(envelope.data, {"restored_player": 1, "restored_last_move": None, "history_depth": 0})

        received = []
        emit_event(CallbackTelemetrySink(received.append), "ping", {"n": 1})
        self.assertEqual([e.data for e in received], [{"n": 1}])

    def test_none_and_null_sinks_are_quiet(self):
        emit_event(None, "ignored", {})
        emit_dataclass_event(None, "undo", UndoEvent(1, None, 0))
        emit_event(NullTelemetrySink(), "ignored", {})


if __name__ == "__main__":
    unittest.main()
