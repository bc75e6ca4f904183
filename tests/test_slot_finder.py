"""
Tests for the slot finder.
"""

import pendulum
import pytest

from meetingslots.domain.exceptions import InputError
from meetingslots.domain.models import SlotRequest, TimeInterval, WorkingHours
from meetingslots.domain.slot_finder import SlotFinder, find_available_slots

TZ = "Europe/Berlin"


def at(value: str):
    return pendulum.parse(value, tz=TZ)


def iv(start: str, end: str, day: str = "2024-11-25") -> TimeInterval:
    return TimeInterval(start=at(f"{day} {start}"), end=at(f"{day} {end}"))


MONDAY = at("2024-11-25 00:00")
TUESDAY = at("2024-11-26 00:00")


class TestSlotFinder:
    """Tests for SlotFinder."""

    def test_jumps_over_busy_block_then_steps_thirty_minutes(self):
        """Slots after a busy block start at its end and then move in 30-minute steps."""
        slots = find_available_slots(
            range_start=MONDAY,
            range_end=TUESDAY,
            merged_intervals=[iv("10:00", "11:00")],
            duration_minutes=60,
            working_hours=WorkingHours(),
            max_results=3,
        )

        assert slots == [
            iv("09:00", "10:00"),
            iv("11:00", "12:00"),
            iv("11:30", "12:30"),
        ]

    def test_all_slots_of_a_day(self):
        """Without a tight limit the scan runs until the window closes."""
        slots = find_available_slots(
            range_start=MONDAY,
            range_end=TUESDAY,
            merged_intervals=[iv("10:00", "11:00")],
            duration_minutes=60,
            max_results=100,
        )

        # 09:00, then 11:00 ... 16:00 every 30 minutes
        assert len(slots) == 12
        assert slots[0] == iv("09:00", "10:00")
        assert slots[-1] == iv("16:00", "17:00")

    def test_consecutive_slots_may_overlap(self):
        """The 30-minute step is independent of the duration."""
        slots = find_available_slots(MONDAY, TUESDAY, [], duration_minutes=90, max_results=2)

        assert slots == [iv("09:00", "10:30"), iv("09:30", "11:00")]
        assert slots[0].overlaps(slots[1])

    def test_touching_busy_block_is_not_a_conflict(self):
        slots = find_available_slots(
            MONDAY, TUESDAY, [iv("09:00", "10:00")], duration_minutes=60, max_results=1
        )

        assert slots == [iv("10:00", "11:00")]

    def test_default_max_results(self):
        slots = find_available_slots(MONDAY, TUESDAY, [], duration_minutes=30)

        assert len(slots) == 5

    def test_result_count_is_bounded_by_valid_slots(self):
        """Fewer valid slots than the limit returns all of them."""
        slots = find_available_slots(
            MONDAY,
            TUESDAY,
            [iv("09:00", "15:00")],
            duration_minutes=60,
            max_results=50,
        )

        assert slots == [iv("15:00", "16:00"), iv("15:30", "16:30"), iv("16:00", "17:00")]

    def test_busy_all_day_yields_no_slots(self):
        slots = find_available_slots(
            MONDAY, TUESDAY, [iv("08:00", "18:00")], duration_minutes=30, max_results=10
        )

        assert slots == []

    def test_exclude_weekends(self):
        """Saturday and Sunday are skipped."""
        friday = at("2024-11-22 00:00")

        slots = find_available_slots(friday, TUESDAY, [], duration_minutes=480, max_results=10)

        assert [slot.start.day_of_week for slot in slots] == [
            friday.day_of_week,
            MONDAY.day_of_week,
        ]
        assert slots == [iv("09:00", "17:00", day="2024-11-22"), iv("09:00", "17:00")]

    def test_window_is_clamped_to_range_start(self):
        slots = find_available_slots(
            at("2024-11-25 10:15"),
            at("2024-11-25 12:00"),
            [],
            duration_minutes=60,
            max_results=10,
        )

        assert slots == [iv("10:15", "11:15"), iv("10:45", "11:45")]

    def test_window_is_clamped_to_range_end(self):
        slots = find_available_slots(
            MONDAY, at("2024-11-25 10:00"), [], duration_minutes=60, max_results=10
        )

        assert slots == [iv("09:00", "10:00")]

    def test_custom_working_hours(self):
        slots = find_available_slots(
            MONDAY,
            TUESDAY,
            [],
            duration_minutes=60,
            working_hours=WorkingHours.parse("15:30", "17:00"),
            max_results=10,
        )

        assert slots == [iv("15:30", "16:30"), iv("16:00", "17:00")]

    def test_spans_several_days_in_order(self):
        slots = find_available_slots(
            MONDAY,
            at("2024-11-27 00:00"),
            [iv("09:00", "16:00"), iv("09:00", "16:30", day="2024-11-26")],
            duration_minutes=30,
            max_results=10,
        )

        assert slots == [
            iv("16:00", "16:30"),
            iv("16:30", "17:00"),
            iv("16:30", "17:00", day="2024-11-26"),
        ]

    def test_slots_respect_busy_times_and_working_hours(self):
        busy = [
            iv("09:10", "09:50"),
            iv("11:00", "11:20"),
            iv("13:45", "14:30"),
            iv("10:00", "12:00", day="2024-11-26"),
        ]

        slots = find_available_slots(
            at("2024-11-23 00:00"),  # Saturday
            at("2024-11-30 00:00"),
            busy,
            duration_minutes=45,
            max_results=200,
        )

        assert slots
        for slot in slots:
            assert slot.duration_minutes() == 45
            assert slot.start.weekday() < 5
            assert slot.start.hour >= 9
            assert (slot.end.hour, slot.end.minute) <= (17, 0)
            assert not any(slot.overlaps(b) for b in busy)
        assert slots == sorted(slots, key=lambda slot: slot.start)

    def test_empty_range_yields_nothing(self):
        assert find_available_slots(MONDAY, MONDAY, [], duration_minutes=30) == []

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(InputError):
            find_available_slots(MONDAY, TUESDAY, [], duration_minutes=duration)

    def test_inverted_range_rejected(self):
        with pytest.raises(InputError):
            find_available_slots(TUESDAY, MONDAY, [], duration_minutes=30)

    def test_finder_with_custom_step(self):
        request = SlotRequest(range_start=MONDAY, range_end=TUESDAY, duration_minutes=60, max_results=3)

        slots = SlotFinder(step_minutes=60).find(request, [])

        assert slots == [iv("09:00", "10:00"), iv("10:00", "11:00"), iv("11:00", "12:00")]
