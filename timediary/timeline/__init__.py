from timediary.timeline.gesture import (
    CommitError,
    Edge,
    GestureState,
    PointerDown,
    PointerLeave,
    PointerMove,
    PointerUp,
    TimelineConfig,
    TimelineController,
    TimelineGesture,
)
from timediary.timeline.layout import ColumnSlot, Interval, layout_columns, layout_day

__all__ = [
    "ColumnSlot",
    "CommitError",
    "Edge",
    "GestureState",
    "Interval",
    "PointerDown",
    "PointerLeave",
    "PointerMove",
    "PointerUp",
    "TimelineConfig",
    "TimelineController",
    "TimelineGesture",
    "layout_columns",
    "layout_day",
]
