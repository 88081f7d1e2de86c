"""
Weekly grid layout.

Computes the shared time window of both grids (available courses and
my schedule), splits sections into weekday columns and finds the cards
that overlap so the user can cycle through them.

Overlap rule:
    start < other_end AND end > other_start
(touching endpoints do not overlap)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, NamedTuple, Optional

from schedulebuilder.filters import apply_filters, has_active_allow_sets
from schedulebuilder.model import CourseSection, FilterState, OverlapGroup
from schedulebuilder.timeutil import DAYS

MIN_WINDOW_START = 8 * 60
MIN_WINDOW_END = 18 * 60
DAY_MINUTES = 24 * 60
PADDING_MIN = 60
PX_PER_HOUR = 80


class TimeWindow(NamedTuple):
    start_min: int
    end_min: int

    def hour_ticks(self) -> list[int]:
        return list(range(self.start_min, self.end_min + 1, 60))


DEFAULT_WINDOW = TimeWindow(MIN_WINDOW_START, MIN_WINDOW_END)


def _floor_hour(m: int) -> int:
    return (m // 60) * 60


def _ceil_hour(m: int) -> int:
    return -(-m // 60) * 60


def compute_time_window(
    all_courses: Iterable[CourseSection],
    my_schedule: Iterable[CourseSection],
    filters: FilterState,
) -> TimeWindow:
    """
    Time window shared by both grids.

    With filter chips selected: filtered available + scheduled sections,
    rounded out to whole hours. Without: scheduled sections only, padded
    by one hour on each side. Always covers at least 8:00-18:00.
    """
    my_schedule = list(my_schedule)
    chips = has_active_allow_sets(filters)

    if chips:
        candidates = apply_filters(all_courses, filters, my_schedule) + my_schedule
    else:
        candidates = my_schedule

    if not candidates:
        return DEFAULT_WINDOW

    earliest = min(c.start_min for c in candidates)
    latest = max(c.end_min for c in candidates)

    if not chips:
        earliest = max(0, earliest - PADDING_MIN)
        latest = min(DAY_MINUTES, latest + PADDING_MIN)

    start = _floor_hour(earliest)
    end = _ceil_hour(latest)
    return TimeWindow(min(start, MIN_WINDOW_START), max(end, MIN_WINDOW_END))


def bucket_by_day(courses: Iterable[CourseSection]) -> dict[str, list[CourseSection]]:
    """
    One column per weekday. A 'MWF' section shows up in three columns
    (the same object, not a copy).
    """
    columns: dict[str, list[CourseSection]] = {day: [] for day in DAYS}
    for course in courses:
        for day in DAYS:
            if day in course.days:
                columns[day].append(course)
    return columns


def overlaps(a: CourseSection, b: CourseSection) -> bool:
    return a.start_min < b.end_min and a.end_min > b.start_min


def find_overlap_groups(day_courses: list[CourseSection]) -> dict[str, list[CourseSection]]:
    """
    Group the overlapping cards of one day column by exact time key.

    Each section is visited in order. It opens a group under its own
    "start-end" key when that key is still free, the section is not
    already a member of an earlier group and at least one section with
    another CRN overlaps it. The group is [section, *overlapping].

    Groups are not merged transitively: A=9:00-10:30 and B=10:00-11:30
    give one group "540-630" holding both, and no group "600-690".
    """
    groups: dict[str, list[CourseSection]] = {}
    grouped: set[int] = set()

    for course in day_courses:
        key = course.time_key
        if key in groups or id(course) in grouped:
            continue

        others = [o for o in day_courses if o.crn != course.crn and overlaps(course, o)]
        if not others:
            continue

        members = [course, *others]
        groups[key] = members
        grouped.update(id(c) for c in members)

    return groups


@dataclass
class OverlapBoard:
    """
    Overlap groups of all day columns plus which card is in front.

    Keys are (day, time_key). rebuild() throws away all cycling state.
    """

    groups: dict[tuple[str, str], OverlapGroup] = field(default_factory=dict)

    def rebuild(self, columns: dict[str, list[CourseSection]]) -> None:
        fresh: dict[tuple[str, str], OverlapGroup] = {}
        for day in DAYS:
            for time_key, members in find_overlap_groups(columns.get(day, [])).items():
                fresh[(day, time_key)] = OverlapGroup(day=day, time_key=time_key, courses=members)
        self.groups = fresh

    def get(self, day: str, time_key: str) -> Optional[OverlapGroup]:
        return self.groups.get((day, time_key))

    def group_of(self, day: str, course: CourseSection) -> Optional[OverlapGroup]:
        """
        The group a card belongs to on `day` (its own key first).
        """
        own = self.groups.get((day, course.time_key))
        if own is not None and any(c is course for c in own.courses):
            return own
        for (g_day, _), group in self.groups.items():
            if g_day == day and any(c is course for c in group.courses):
                return group
        return None

    def front(self, day: str, time_key: str) -> Optional[CourseSection]:
        group = self.get(day, time_key)
        return group.front if group else None

    def promote(self, day: str, time_key: str, index: int) -> bool:
        """
        Bring the card at `index` to the front of its group, and every
        card with the same CRN to the front of every other group.
        """
        group = self.get(day, time_key)
        if group is None or not (0 <= index < len(group.courses)):
            return False

        crn = group.courses[index].crn
        updated: dict[tuple[str, str], OverlapGroup] = {}
        for key, g in self.groups.items():
            pos = next((i for i, c in enumerate(g.courses) if c.crn == crn), -1)
            if pos == -1:
                updated[key] = g
                continue
            reordered = list(g.courses)
            reordered.insert(0, reordered.pop(pos))
            updated[key] = replace(g, courses=reordered, current_index=0)

        self.groups = updated
        return True

    def cycle(self, day: str, time_key: str, step: int = 1) -> bool:
        """
        Move the front index of one group forward (step=1) or back (step=-1).
        """
        group = self.get(day, time_key)
        if group is None or not group.courses:
            return False
        new_index = (group.current_index + step) % len(group.courses)
        self.groups = {**self.groups, (day, time_key): replace(group, current_index=new_index)}
        return True


@dataclass
class Layout:
    window: TimeWindow
    columns: dict[str, list[CourseSection]]
    board: OverlapBoard


def compute_layout(courses: Iterable[CourseSection], window: TimeWindow) -> Layout:
    columns = bucket_by_day(courses)
    board = OverlapBoard()
    board.rebuild(columns)
    return Layout(window=window, columns=columns, board=board)


def slot_geometry(course: CourseSection, window: TimeWindow, px_per_hour: int = PX_PER_HOUR) -> tuple[float, float]:
    """
    (top, height) of a card in pixels relative to the window start.
    """
    top = (course.start_min - window.start_min) / 60 * px_per_hour
    height = (course.end_min - course.start_min) / 60 * px_per_hour
    return top, height
