"""
Conflict detection and schedule updates.

A section is added together with all its siblings (lecture + lab rows
sharing the CRN). Two sections conflict when they share a weekday and
their times overlap:
    start < other_end AND end > other_start
"""

from __future__ import annotations

from typing import Iterable, NamedTuple, Sequence

from schedulebuilder.model import CourseSection


class Conflict(NamedTuple):
    candidate: CourseSection
    existing: CourseSection

    def describe(self) -> str:
        return f"Time conflict with {self.existing.subject} {self.existing.course}"


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def _share_day(a: CourseSection, b: CourseSection) -> bool:
    return any(d in b.days for d in a.days)


def sections_conflict(a: CourseSection, b: CourseSection) -> bool:
    return _share_day(a, b) and _overlaps(a.start_min, a.end_min, b.start_min, b.end_min)


def find_conflicts(sections: Sequence[CourseSection]) -> list[tuple[CourseSection, CourseSection]]:
    """
    Find overlapping section pairs (A,B) with different CRNs, each pair once (i<j).
    """
    conflicts: list[tuple[CourseSection, CourseSection]] = []

    # O(n^2) is fine for one student's schedule
    for i in range(len(sections)):
        a = sections[i]
        for j in range(i + 1, len(sections)):
            b = sections[j]
            if a.crn == b.crn:
                continue
            if sections_conflict(a, b):
                conflicts.append((a, b))

    return conflicts


def siblings(crn: str, all_courses: Iterable[CourseSection]) -> list[CourseSection]:
    return [c for c in all_courses if c.crn == crn]


def check_conflict(
    crn: str,
    all_courses: Iterable[CourseSection],
    my_schedule: Iterable[CourseSection],
) -> list[Conflict]:
    """
    Conflicts that adding `crn` would create. The caller asks the user.
    A CRN that is already scheduled adds nothing, so it has none.
    """
    schedule = list(my_schedule)
    if any(c.crn == crn for c in schedule):
        return []
    out: list[Conflict] = []
    for candidate in siblings(crn, all_courses):
        for existing in schedule:
            if sections_conflict(candidate, existing):
                out.append(Conflict(candidate, existing))
    return out


def add_to_schedule(
    crn: str,
    all_courses: Iterable[CourseSection],
    my_schedule: Iterable[CourseSection],
) -> list[CourseSection]:
    """
    Return a new schedule with every sibling row of `crn` added once.

    Unknown CRNs and CRNs already in the schedule leave it unchanged.
    """
    schedule = list(my_schedule)
    rows = siblings(crn, all_courses)
    if not rows or any(c.crn == crn for c in schedule):
        return schedule

    seen = {c.schedule_key for c in schedule}
    for row in rows:
        if row.schedule_key not in seen:
            schedule.append(row)
            seen.add(row.schedule_key)
    return schedule


def remove_from_schedule(crn: str, my_schedule: Iterable[CourseSection]) -> list[CourseSection]:
    return [c for c in my_schedule if c.crn != crn]


def add_online(
    crn: str,
    online_courses: Iterable[CourseSection],
    my_online: Iterable[CourseSection],
) -> list[CourseSection]:
    """
    Online classes are kept one per CRN.
    """
    chosen = list(my_online)
    if any(c.crn == crn for c in chosen):
        return chosen
    for course in online_courses:
        if course.crn == crn:
            chosen.append(course)
            break
    return chosen


def remove_online(crn: str, my_online: Iterable[CourseSection]) -> list[CourseSection]:
    return [c for c in my_online if c.crn != crn]


def unique_by_crn(sections: Iterable[CourseSection]) -> list[CourseSection]:
    seen: set[str] = set()
    out: list[CourseSection] = []
    for c in sections:
        if c.crn not in seen:
            seen.add(c.crn)
            out.append(c)
    return out


def total_units(my_schedule: Iterable[CourseSection], my_online: Iterable[CourseSection] = ()) -> float:
    # lab rows carry 0 units, so each CRN counts through its lecture row
    return sum(c.units for c in [*my_schedule, *my_online] if c.units > 0)
