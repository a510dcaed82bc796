"""Create, move and resize events on the timeline by dragging.

`TimelineGesture` is a finite-state machine fed with abstract pointer
events (mouse and touch are translated upstream by `timediary.timeline.pointer`).
It never touches storage: a finished gesture yields a proposal, and
`TimelineController` applies that proposal optimistically, sends it to an
`EventMutations` surface and rolls back if the write fails.

All positions are minutes from midnight of the displayed day. Events that
started the day before therefore have a negative start.
"""
import datetime as dt
import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Protocol
from uuid import UUID

from timediary.schedule.clock import (
    MINUTES_PER_DAY,
    SNAP_MINUTES,
    clock_from_minutes,
    minutes_from_pixels,
    resolve_bounds,
    snap_minutes,
)
from timediary.schedule.day_window import ResolvedEvent
from timediary.timeline.layout import Block, layout_plan_and_actual

logger = logging.getLogger(__name__)


class GestureState(enum.Enum):
    IDLE = "idle"
    CREATING = "creating"
    DRAGGING_MOVE = "dragging-move"
    DRAGGING_RESIZE = "dragging-resize"


class Edge(enum.Enum):
    TOP = "top"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class PointerDown:
    """Press on the timeline.

    `event_id` is None on empty area. `edge` is set when the press landed on
    an event's resize strip.
    """
    y: float
    is_plan: bool
    event_id: UUID | None = None
    edge: Edge | None = None


@dataclass(frozen=True)
class PointerMove:
    y: float


@dataclass(frozen=True)
class PointerUp:
    y: float


@dataclass(frozen=True)
class PointerLeave:
    pass


PointerEvent = PointerDown | PointerMove | PointerUp | PointerLeave


@dataclass(frozen=True)
class TimelineConfig:
    hour_height: float = 40.0
    step: int = SNAP_MINUTES
    min_duration: int = SNAP_MINUTES

    @property
    def max_duration(self) -> int:
        # Events may cross at most one midnight.
        return MINUTES_PER_DAY - self.step


@dataclass(frozen=True)
class Span:
    """An event's position on the displayed day."""
    event_id: UUID
    start: int
    end: int
    is_plan: bool
    date: dt.date


@dataclass(frozen=True)
class CreateProposal:
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    is_plan: bool
    start: int
    end: int


@dataclass(frozen=True)
class UpdateProposal:
    event_id: UUID
    fields: dict[str, Any]
    start: int
    end: int


Proposal = CreateProposal | UpdateProposal


def span_of(event: ResolvedEvent, day: dt.date) -> Span:
    day_start = dt.datetime.combine(day, dt.time())
    return Span(
        event_id=event.id,
        start=int((event.start - day_start).total_seconds() // 60),
        end=int((event.end - day_start).total_seconds() // 60),
        is_plan=event.is_plan,
        date=event.date,
    )


def anchor_fields(day: dt.date, start: int, end: int) -> dict[str, Any]:
    """Date and clock times for a span measured from midnight of `day`."""
    return {
        "date": day + dt.timedelta(days=start // MINUTES_PER_DAY),
        "start_time": clock_from_minutes(start),
        "end_time": clock_from_minutes(end),
    }


@dataclass
class _Drag:
    span: Span | None = None
    anchor: int = 0
    current: int = 0
    offset: int = 0
    duration: int = 0
    start: int = 0
    end: int = 0
    edge: Edge | None = None
    is_plan: bool = False
    origin: int = 0
    travel: int = 0


class TimelineGesture:
    """Single-gesture state machine for one displayed day."""

    def __init__(self, day: dt.date, spans: list[Span], config: TimelineConfig | None = None):
        self.day = day
        self.spans = list(spans)
        self.config = config or TimelineConfig()
        self.state = GestureState.IDLE
        self.aborted = False
        self._drag = _Drag()

    @property
    def draft(self) -> tuple[int, int] | None:
        """The live [start, end) of the gesture in progress."""
        if self.state is GestureState.IDLE:
            return None
        if self.state is GestureState.CREATING:
            return min(self._drag.anchor, self._drag.current), max(
                self._drag.anchor, self._drag.current
            )
        return self._drag.start, self._drag.end

    def handle(self, event: PointerEvent) -> Proposal | None:
        if isinstance(event, PointerDown):
            self._press(event)
            return None
        if self.state is GestureState.IDLE:
            return None
        if isinstance(event, PointerLeave):
            logger.debug(f"Pointer left timeline, cancelling {self.state.value}")
            self._reset()
            return None
        self._track(event.y)
        if self.state is GestureState.IDLE:
            # Tracking aborted the gesture.
            return None
        if isinstance(event, PointerUp):
            proposal = self._finish()
            self._reset()
            return proposal
        return None

    def _minutes(self, y: float) -> int:
        return minutes_from_pixels(y, self.config.hour_height)

    def _snap(self, minutes: int) -> int:
        return snap_minutes(minutes, self.config.step)

    def _find(self, event_id: UUID) -> Span | None:
        return next((s for s in self.spans if s.event_id == event_id), None)

    def _press(self, event: PointerDown) -> None:
        if self.state is not GestureState.IDLE:
            return
        self.aborted = False

        if event.event_id is None:
            raw = self._minutes(event.y)
            anchor = min(max(self._snap(raw), 0), MINUTES_PER_DAY)
            self._drag = _Drag(anchor=anchor, current=anchor, is_plan=event.is_plan, origin=raw)
            self.state = GestureState.CREATING
            return

        span = self._find(event.event_id)
        if span is None:
            logger.warning(f"Pressed unknown event {event.event_id}")
            return

        self._drag = _Drag(
            span=span,
            start=span.start,
            end=span.end,
            duration=span.end - span.start,
            is_plan=span.is_plan,
        )
        if event.edge is None:
            rendered_top = max(span.start, 0)
            self._drag.offset = self._minutes(event.y) - rendered_top
            self._drag.origin = self._snap(span.start)
            self.state = GestureState.DRAGGING_MOVE
        else:
            self._drag.edge = event.edge
            self._drag.origin = self._snap(self._minutes(event.y))
            self.state = GestureState.DRAGGING_RESIZE

    def _track(self, y: float) -> None:
        drag = self._drag
        span = drag.span
        if self.state is GestureState.CREATING:
            raw = self._minutes(y)
            drag.current = min(max(self._snap(raw), 0), MINUTES_PER_DAY)
            drag.travel = abs(raw - drag.origin)

        elif self.state is GestureState.DRAGGING_MOVE:
            latest_start = MINUTES_PER_DAY - self.config.step
            start = min(max(self._snap(self._minutes(y) - drag.offset), 0), latest_start)
            if start == drag.origin:
                drag.start, drag.end = span.start, span.end
            else:
                drag.start, drag.end = start, start + drag.duration

        elif drag.edge is Edge.TOP:
            start = self._snap(self._minutes(y))
            if start == drag.origin:
                drag.start = span.start
            elif start < 0:
                logger.info("Resize above midnight is not supported, cancelling")
                self._reset()
                self.aborted = True
            else:
                drag.start = max(
                    min(start, drag.end - self.config.min_duration),
                    drag.end - self.config.max_duration,
                )

        else:
            end = self._snap(self._minutes(y))
            if end == drag.origin:
                drag.end = span.end
            else:
                drag.end = min(
                    max(end, drag.start + self.config.min_duration),
                    drag.start + self.config.max_duration,
                )

    def _finish(self) -> Proposal | None:
        drag = self._drag
        if self.state is GestureState.CREATING:
            return self._finish_create()

        span = drag.span
        if (drag.start, drag.end) == (span.start, span.end):
            return None

        fields = anchor_fields(self.day, drag.start, drag.end)
        if self.state is GestureState.DRAGGING_MOVE:
            return UpdateProposal(span.event_id, fields, drag.start, drag.end)

        if drag.edge is Edge.TOP:
            update = {"start_time": fields["start_time"]}
            if fields["date"] != span.date:
                update["date"] = fields["date"]
        else:
            update = {"end_time": fields["end_time"]}
        return UpdateProposal(span.event_id, update, drag.start, drag.end)

    def _finish_create(self) -> CreateProposal | None:
        start, end = self.draft
        # Both the pointer travel and the snapped span must reach the minimum.
        if end - start < self.config.min_duration or self._drag.travel < self.config.min_duration:
            logger.debug(f"Discarding {end - start} minute create gesture")
            return None
        end = min(end, start + self.config.max_duration)

        duration = end - start
        clashes = [
            s for s in self.spans
            if s.is_plan == self._drag.is_plan and s.start < end and start < s.end
        ]
        if clashes:
            start = max(s.end for s in clashes)
            end = start + duration

        fields = anchor_fields(self.day, start, end)
        return CreateProposal(
            date=fields["date"],
            start_time=fields["start_time"],
            end_time=fields["end_time"],
            is_plan=self._drag.is_plan,
            start=start,
            end=end,
        )

    def _reset(self) -> None:
        self.state = GestureState.IDLE
        self._drag = _Drag()


class CommitError(Exception):
    """The event store rejected or failed to apply a timeline change."""


class EventMutations(Protocol):
    def create_event(
        self,
        date: dt.date,
        title: str,
        start_time: dt.time,
        end_time: dt.time,
        category_id: UUID | None,
        is_plan: bool,
        description: str,
    ) -> ResolvedEvent: ...

    def update_event(self, event_id: UUID, fields: dict[str, Any]) -> ResolvedEvent: ...

    def delete_event(self, event_id: UUID) -> None: ...


@dataclass
class CommitResult:
    proposal: Proposal
    event: ResolvedEvent | None = None
    error: CommitError | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None


class TimelineController:
    """Owns the events of one displayed day and commits gestures.

    Local state changes immediately when a gesture ends and is replaced by
    the stored event once the mutation surface acknowledges it. A failed
    write puts the last known-good event back.
    """

    def __init__(
        self,
        day: dt.date,
        events: list[ResolvedEvent],
        mutations: EventMutations,
        config: TimelineConfig | None = None,
        title: str = "",
        category_id: UUID | None = None,
    ):
        self.day = day
        self.events = list(events)
        self.mutations = mutations
        self.config = config or TimelineConfig()
        self.title = title
        self.category_id = category_id
        self.gesture = TimelineGesture(day, self._spans(), self.config)

    def _spans(self) -> list[Span]:
        return [span_of(e, self.day) for e in self.events if e.id is not None]

    def _refresh(self) -> None:
        self.gesture.spans = self._spans()

    def dispatch(self, event: PointerEvent) -> CommitResult | None:
        proposal = self.gesture.handle(event)
        if proposal is None:
            return None
        if isinstance(proposal, CreateProposal):
            return self._commit_create(proposal)
        return self._commit_update(proposal)

    def layout(self) -> dict[str, list[Block]]:
        return layout_plan_and_actual(self.events, self.day)

    def delete(self, event_id: UUID) -> bool:
        index = self._index(event_id)
        if index is None:
            return False
        removed = self.events.pop(index)
        try:
            self.mutations.delete_event(event_id)
        except CommitError as e:
            logger.warning(f"Delete of {event_id} failed, restoring: {e}")
            self.events.insert(index, removed)
            return False
        finally:
            self._refresh()
        return True

    def _index(self, event_id: UUID) -> int | None:
        return next((i for i, e in enumerate(self.events) if e.id == event_id), None)

    def _commit_create(self, proposal: CreateProposal) -> CommitResult:
        start, end = resolve_bounds(proposal.date, proposal.start_time, proposal.end_time)
        provisional = ResolvedEvent(
            id=None,
            date=proposal.date,
            title=self.title,
            start_time=proposal.start_time,
            end_time=proposal.end_time,
            start=start,
            end=end,
            is_plan=proposal.is_plan,
            category_id=self.category_id,
        )
        self.events.append(provisional)
        try:
            stored = self.mutations.create_event(
                proposal.date,
                self.title,
                proposal.start_time,
                proposal.end_time,
                self.category_id,
                proposal.is_plan,
                "",
            )
        except CommitError as e:
            logger.warning(f"Create failed, discarding draft event: {e}")
            self.events.remove(provisional)
            self._refresh()
            return CommitResult(proposal, error=e)

        self.events[self.events.index(provisional)] = stored
        self._refresh()
        return CommitResult(proposal, event=stored)

    def _commit_update(self, proposal: UpdateProposal) -> CommitResult:
        index = self._index(proposal.event_id)
        if index is None:
            logger.warning(f"Update for unknown event {proposal.event_id}")
            return CommitResult(proposal, error=CommitError("unknown event"))

        original = self.events[index]
        date = proposal.fields.get("date", original.date)
        start_time = proposal.fields.get("start_time", original.start_time)
        end_time = proposal.fields.get("end_time", original.end_time)
        start, end = resolve_bounds(date, start_time, end_time)
        self.events[index] = replace(
            original, date=date, start_time=start_time, end_time=end_time, start=start, end=end
        )
        self._refresh()

        try:
            stored = self.mutations.update_event(proposal.event_id, proposal.fields)
        except CommitError as e:
            logger.warning(f"Update of {proposal.event_id} failed, rolling back: {e}")
            self.events[index] = original
            self._refresh()
            return CommitResult(proposal, error=e)

        self.events[index] = stored
        self._refresh()
        return CommitResult(proposal, event=stored)
