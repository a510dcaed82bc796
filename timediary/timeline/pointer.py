"""Translate raw mouse and touch input into timeline pointer events.

Touch input only reaches the gesture machine after a long press, so an
ordinary swipe keeps scrolling the page. Pointer moves are coalesced so the
machine and the layout run at most once per animation frame.
"""
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from timediary.timeline.gesture import (
    Edge,
    PointerDown,
    PointerEvent,
    PointerLeave,
    PointerMove,
    PointerUp,
)

logger = logging.getLogger(__name__)

LONG_PRESS_MS = 500
MOVE_SLOP_PX = 10

Sink = Callable[[PointerEvent], Any]


@dataclass(frozen=True)
class HitTarget:
    """What lies under the pointer when it goes down."""
    is_plan: bool
    event_id: UUID | None = None
    edge: Edge | None = None


class FrameCoalescer:
    """Hold back pointer moves until the next animation frame.

    Only the most recent move survives. Any other event first delivers the
    pending move so ordering is preserved.
    """

    def __init__(self, sink: Sink):
        self.sink = sink
        self.pending: PointerMove | None = None
        self.dropped = 0

    def push(self, event: PointerEvent) -> Any:
        if isinstance(event, PointerMove):
            if self.pending is not None:
                self.dropped += 1
            self.pending = event
            return None
        self.flush()
        return self.sink(event)

    def flush(self) -> Any:
        """Deliver the pending move, if any. Call once per frame."""
        if self.pending is None:
            return None
        event, self.pending = self.pending, None
        return self.sink(event)


class MouseAdapter:
    """Mouse input maps one-to-one onto pointer events."""

    def __init__(self, sink: Sink):
        self.sink = sink

    def mouse_down(self, y: float, target: HitTarget, button: int = 0) -> Any:
        if button != 0:
            return None
        return self.sink(PointerDown(y, target.is_plan, target.event_id, target.edge))

    def mouse_move(self, y: float) -> Any:
        return self.sink(PointerMove(y))

    def mouse_up(self, y: float) -> Any:
        return self.sink(PointerUp(y))

    def mouse_leave(self) -> Any:
        return self.sink(PointerLeave())


class TouchAdapter:
    """Single-finger touch input gated behind a long press.

    Timestamps are passed in by the caller (milliseconds), so the adapter
    has no timers of its own; the caller invokes `tick` from its frame or
    timer loop.
    """

    def __init__(self, sink: Sink, long_press_ms: int = LONG_PRESS_MS, slop_px: float = MOVE_SLOP_PX):
        self.sink = sink
        self.long_press_ms = long_press_ms
        self.slop_px = slop_px
        self._origin: tuple[float, float] | None = None
        self._pressed_at = 0
        self._target: HitTarget | None = None
        self.armed = False

    @property
    def captures_scroll(self) -> bool:
        """True while the timeline owns the touch and page scroll must be blocked."""
        return self.armed

    def touch_start(self, x: float, y: float, t_ms: int, target: HitTarget, touches: int = 1) -> None:
        if touches != 1:
            self._cancel()
            return
        self._origin = (x, y)
        self._pressed_at = t_ms
        self._target = target
        self.armed = False

    def tick(self, t_ms: int) -> Any:
        if self._origin is None or self.armed:
            return None
        if t_ms - self._pressed_at < self.long_press_ms:
            return None
        self.armed = True
        target = self._target
        logger.debug("Long press recognised, timeline takes the touch")
        return self.sink(PointerDown(self._origin[1], target.is_plan, target.event_id, target.edge))

    def touch_move(self, x: float, y: float, t_ms: int) -> Any:
        if self._origin is None:
            return None
        if not self.armed:
            if math.dist(self._origin, (x, y)) > self.slop_px:
                # The finger is scrolling the page.
                self._cancel()
                return None
            self.tick(t_ms)
            return None
        return self.sink(PointerMove(y))

    def touch_end(self, x: float, y: float, t_ms: int) -> Any:
        if self._origin is None:
            return None
        if not self.armed:
            self.tick(t_ms)
        result = self.sink(PointerUp(y)) if self.armed else None
        self._cancel()
        return result

    def touch_cancel(self) -> Any:
        was_armed = self.armed
        self._cancel()
        return self.sink(PointerLeave()) if was_armed else None

    def _cancel(self) -> None:
        self._origin = None
        self._target = None
        self.armed = False
