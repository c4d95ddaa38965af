"""Telemetry schema and sinks for Kalah game instrumentation."""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from queue import Queue
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Protocol
import time


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TelemetryEnvelope:
    event: str
    ts_ms: int
    data: Dict[str, Any]


@dataclass(frozen=True)
class GameStartEvent:
    pits_per_side: int
    stones_per_pit: int
    first_player: int


@dataclass(frozen=True)
class MoveAppliedEvent:
    mover: int
    pit: int
    picked_count: int
    landing_pit: int
    outcome: str
    next_player: int
    history_depth: int


@dataclass(frozen=True)
class CaptureEvent:
    mover: int
    landing_pit: int
    opposite_pit: int
    captured_count: int


@dataclass(frozen=True)
class GameOverEvent:
    winner: int
    store_one: int
    store_two: int
    sweep_one: int
    sweep_two: int


@dataclass(frozen=True)
class UndoEvent:
    restored_player: int
    restored_last_move: Optional[int]
    history_depth: int


class TelemetrySink(Protocol):
    def emit(self, envelope: TelemetryEnvelope) -> None:
        ...

    def close(self) -> None:
        ...


class NullTelemetrySink:
    def emit(self, envelope: TelemetryEnvelope) -> None:
        _ = envelope

    def close(self) -> None:
        return


class CallbackTelemetrySink:
    def __init__(self, callback: Callable[[TelemetryEnvelope], None]) -> None:
        self._callback = callback

    def emit(self, envelope: TelemetryEnvelope) -> None:
        self._callback(envelope)

    def close(self) -> None:
        return


class QueueTelemetrySink:
    def __init__(self, queue: "Queue[TelemetryEnvelope]") -> None:
        self._queue = queue

    def emit(self, envelope: TelemetryEnvelope) -> None:
        self._queue.put(envelope)

    def close(self) -> None:
        return


class MemoryTelemetrySink:
    """Keeps the most recent envelopes; the oldest are dropped once ``maxlen`` is reached."""

    def __init__(self, maxlen: int = 1024) -> None:
        self._events: Deque[TelemetryEnvelope] = deque(maxlen=max(1, maxlen))
        self._closed = False

    @property
    def events(self) -> List[TelemetryEnvelope]:
        return list(self._events)

    def names(self) -> List[str]:
        return [envelope.event for envelope in self._events]

    def emit(self, envelope: TelemetryEnvelope) -> None:
        if self._closed:
            return
        self._events.append(envelope)

    def close(self) -> None:
        self._closed = True


def emit_event(sink: Optional[TelemetrySink], event: str, payload: Mapping[str, Any]) -> None:
    if sink is None:
        return
    envelope = TelemetryEnvelope(event=event, ts_ms=now_ms(), data=dict(payload))
    try:
        sink.emit(envelope)
    except Exception:
        return


def emit_dataclass_event(sink: Optional[TelemetrySink], event: str, payload_obj: object) -> None:
    if sink is None:
        return
    emit_event(sink, event, asdict(payload_obj))
