"""Tests for the side-by-side column layout."""

import datetime as dt
import itertools
from uuid import uuid4

import pytest

from timediary.schedule.clock import resolve_bounds
from timediary.schedule.day_window import ResolvedEvent
from timediary.timeline.layout import (
    Interval,
    layout_columns,
    layout_day,
    layout_plan_and_actual,
    minutes_on,
    overlaps,
)

DAY = dt.date(2024, 6, 3)


def resolved(start, end, date=DAY, is_plan=False, routine_id=None):
    start_at, end_at = resolve_bounds(date, start, end)
    return ResolvedEvent(
        id=None if routine_id else uuid4(),
        date=date,
        title="",
        start_time=start,
        end_time=end,
        start=start_at,
        end=end_at,
        is_plan=is_plan,
        routine_id=routine_id,
    )


class TestLayoutColumns:
    """Tests for greedy column packing."""

    def test_three_event_chain(self):
        """[9:00,10:00), [9:30,11:00), [10:30,10:45) pack into columns 0, 1, 0."""
        slots = layout_columns([
            Interval("a", 540, 600),
            Interval("b", 570, 660),
            Interval("c", 630, 645),
        ])
        assert [slots[k].column for k in "abc"] == [0, 1, 0]
        assert [slots[k].total_columns for k in "abc"] == [2, 2, 2]

    def test_isolated_event_takes_full_width(self):
        slots = layout_columns([
            Interval("a", 540, 600),
            Interval("b", 570, 660),
            Interval("far", 900, 960),
        ])
        assert slots["far"].column == 0
        assert slots["far"].total_columns == 1
        assert slots["far"].width_percent == 100

    def test_longer_event_claims_lower_column_on_tie(self):
        slots = layout_columns([Interval("short", 600, 630), Interval("long", 600, 720)])
        assert slots["long"].column == 0
        assert slots["short"].column == 1

    def test_touching_events_share_a_column(self):
        slots = layout_columns([Interval("a", 540, 600), Interval("b", 600, 660)])
        assert slots["a"].column == slots["b"].column == 0
        assert slots["b"].total_columns == 1

    def test_invalid_intervals_are_dropped(self):
        slots = layout_columns([Interval("zero", 600, 600), Interval("inverted", 700, 650)])
        assert slots == {}

    def test_width_and_offset(self):
        slots = layout_columns([Interval("a", 0, 60), Interval("b", 0, 60), Interval("c", 0, 60)])
        assert slots["c"].width_percent == pytest.approx(100 / 3)
        assert slots["c"].left_percent == pytest.approx(200 / 3)

    @pytest.mark.parametrize("seed", range(5))
    def test_overlapping_events_never_share_a_column(self, seed):
        # Deterministic pseudo-random intervals
        intervals = []
        for i in range(12):
            start = (i * 37 + seed * 53) % 600
            intervals.append(Interval(i, start, start + 20 + (i * 29 + seed) % 120))
        slots = layout_columns(intervals)

        for a, b in itertools.combinations(intervals, 2):
            if overlaps(a, b):
                assert slots[a.key].column != slots[b.key].column
        for a in intervals:
            neighbours = [slots[b.key].column for b in intervals if b is not a and overlaps(a, b)]
            assert slots[a.key].total_columns >= 1 + max(neighbours + [slots[a.key].column])


class TestLayoutDay:
    """Tests for laying out resolved events on a displayed day."""

    def test_overnight_event_clamped_to_day(self):
        event = resolved(dt.time(23, 0), dt.time(7, 0), date=DAY - dt.timedelta(days=1))
        assert minutes_on(event, DAY) == (0, 420)

    def test_overnight_event_on_its_own_date(self):
        event = resolved(dt.time(23, 0), dt.time(7, 0))
        assert minutes_on(event, DAY) == (1380, 1440)

    def test_plan_and_actual_laid_out_separately(self):
        events = [
            resolved(dt.time(9, 0), dt.time(10, 0), is_plan=True),
            resolved(dt.time(9, 0), dt.time(10, 0), is_plan=False),
        ]
        layout = layout_plan_and_actual(events, DAY)
        assert [b.slot.total_columns for b in layout["plan"]] == [1]
        assert [b.slot.total_columns for b in layout["actual"]] == [1]

    def test_routine_events_are_keyed_by_routine(self):
        routine_id = uuid4()
        events = [
            resolved(dt.time(9, 0), dt.time(10, 0), is_plan=True, routine_id=routine_id),
            resolved(dt.time(9, 30), dt.time(10, 30), is_plan=True),
        ]
        blocks = layout_day(events, DAY)
        assert [b.slot.column for b in blocks] == [0, 1]
        assert blocks[0].to_dict()["event"]["routine_id"] == str(routine_id)

    def test_event_ending_at_midnight_from_previous_day_skipped(self):
        event = resolved(dt.time(22, 0), dt.time(0, 0), date=DAY - dt.timedelta(days=1))
        assert layout_day([event], DAY) == []
