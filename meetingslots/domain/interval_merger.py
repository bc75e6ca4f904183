"""
Coalescing of busy intervals into a minimal disjoint set.
"""

from typing import Iterable, List

from .models import TimeInterval


class IntervalMerger:
    """
    Merges overlapping or touching intervals.

    Example: [09:00-10:00, 10:00-11:00, 10:30-12:00, 14:00-15:00]
          -> [09:00-12:00, 14:00-15:00]
    """

    def merge(self, intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
        """
        Return the intervals sorted by start with all overlaps collapsed.

        Intervals spanning several source calendars can be passed in any
        order; the result only depends on the covered time.
        """
        sorted_intervals = sorted(intervals, key=lambda interval: interval.start)

        if not sorted_intervals:
            return []

        merged: List[TimeInterval] = [sorted_intervals[0]]

        for current in sorted_intervals[1:]:
            last = merged[-1]

            # Touching endpoints merge too
            if current.start <= last.end:
                if current.end > last.end:
                    merged[-1] = TimeInterval(start=last.start, end=current.end)
            else:
                merged.append(current)

        return merged


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Shortcut for ``IntervalMerger().merge``."""
    return IntervalMerger().merge(intervals)
