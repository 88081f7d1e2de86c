"""
Filter engine.

A section passes when every non-empty allow-set contains its value and
the capacity toggles do not hide it. Lab rows (continuations) carry no
enrollment data, so they follow their lecture: a lab is shown exactly
when a lecture row with the same CRN passes.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from schedulebuilder.model import CourseSection, FilterState

ALLOW_FIELDS = {
    "subject": "subject_allow",
    "course": "course_allow",
    "instructor": "instructor_allow",
    "campus": "campus_allow",
}

FLAG_FIELDS = ("show_online", "show_full_classes", "show_full_waitlist")


def matches_allow_sets(course: CourseSection, filters: FilterState) -> bool:
    return (
        (not filters.subject_allow or course.subject in filters.subject_allow)
        and (not filters.course_allow or course.course in filters.course_allow)
        and (not filters.instructor_allow or course.instructor in filters.instructor_allow)
        and (not filters.campus_allow or course.campus in filters.campus_allow)
    )


def passes(course: CourseSection, filters: FilterState) -> bool:
    full_ok = filters.show_full_classes or not course.is_full
    waitlist_ok = filters.show_full_waitlist or not course.is_waitlist_full
    return matches_allow_sets(course, filters) and full_ok and waitlist_ok


def has_active_allow_sets(filters: FilterState) -> bool:
    return bool(filters.subject_allow or filters.course_allow or filters.instructor_allow or filters.campus_allow)


def apply_filters(
    courses: Iterable[CourseSection],
    filters: FilterState,
    my_schedule: Iterable[CourseSection] = (),
) -> list[CourseSection]:
    """
    Sections available to add: filtered, minus every CRN already scheduled.

    Pass 1 collects the CRNs of lecture rows that pass the full predicate.
    Pass 2 keeps lecture rows that pass and lab rows whose CRN is in that set.
    """
    courses = list(courses)
    scheduled_crns = {c.crn for c in my_schedule}

    allowed_crns = {
        c.crn for c in courses if not c.is_continuation and c.crn not in scheduled_crns and passes(c, filters)
    }

    out: list[CourseSection] = []
    for c in courses:
        if c.crn in scheduled_crns:
            continue
        if c.is_continuation:
            if c.crn in allowed_crns:
                out.append(c)
        elif passes(c, filters):
            out.append(c)
    return out


def filter_online(
    online: Iterable[CourseSection],
    filters: FilterState,
    my_online: Iterable[CourseSection] = (),
) -> list[CourseSection]:
    """
    Online sections matching the allow-sets. Capacity toggles do not apply.
    """
    chosen = {c.crn for c in my_online}
    return [c for c in online if c.crn not in chosen and matches_allow_sets(c, filters)]


def visible_online(
    online: Iterable[CourseSection],
    filters: FilterState,
    my_online: Iterable[CourseSection] = (),
) -> list[CourseSection]:
    if not filters.show_online:
        return []
    return filter_online(online, filters, my_online)


# ---------------------------------------------------------------------------
# FilterState transitions (always return a new value)
# ---------------------------------------------------------------------------


def toggle_value(filters: FilterState, dimension: str, value: str) -> FilterState:
    """
    Add or remove one chip. Changing the subject selection clears the
    course, instructor and campus selections.
    """
    attr = ALLOW_FIELDS.get(dimension)
    if attr is None:
        raise ValueError(f"Unknown filter dimension: {dimension!r}")

    current: frozenset[str] = getattr(filters, attr)
    updated = current - {value} if value in current else current | {value}

    if attr == "subject_allow":
        return replace(
            filters,
            subject_allow=updated,
            course_allow=frozenset(),
            instructor_allow=frozenset(),
            campus_allow=frozenset(),
        )
    return replace(filters, **{attr: updated})


def select_subjects(filters: FilterState, subjects: Iterable[str]) -> FilterState:
    return replace(
        filters,
        subject_allow=frozenset(subjects),
        course_allow=frozenset(),
        instructor_allow=frozenset(),
        campus_allow=frozenset(),
    )


def set_flag(filters: FilterState, name: str, value: bool) -> FilterState:
    if name not in FLAG_FIELDS:
        raise ValueError(f"Unknown filter flag: {name!r}")
    return replace(filters, **{name: bool(value)})


def reset_filters(filters: FilterState) -> FilterState:
    # show_online is a view preference and survives a reset
    return FilterState(show_online=filters.show_online)
