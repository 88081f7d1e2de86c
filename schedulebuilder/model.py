"""
Central data model definitions used across the project.

This module defines the canonical structure of the parsed catalog so that:
- parser, filters, layout and storage share the same field names
- persisted JSON uses the same keys as the original table export
  ("Subject", "CRN", "DispTime", ...)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class CourseSection:
    """
    One row of the catalog table (a lecture or one of its lab rows).

    Continuation rows share crn/instructor/color with the lecture row
    above them but have their own days, time and location.
    """

    subject: str
    course: str
    crn: str
    title: str
    instructor: str
    location: str
    campus: str
    units: float
    days: str
    disp_time: str
    start_min: int
    end_min: int
    capacity: int = 0
    actual: int = 0
    remaining: int = 0
    wait_cap: int = 0
    wait_act: int = 0
    wait_rem: int = 0
    color: str = ""
    bg: str = ""
    is_continuation: bool = False

    @property
    def instructor_label(self) -> str:
        return self.instructor or "TBA"

    @property
    def is_full(self) -> bool:
        # capacity 0 means "not tracked", never full
        return self.remaining <= 0 and self.capacity > 0

    @property
    def is_waitlist_full(self) -> bool:
        return self.wait_rem <= 0 and self.wait_cap > 0

    @property
    def schedule_key(self) -> tuple[str, str, str]:
        return (self.crn, self.days, self.disp_time)

    @property
    def time_key(self) -> str:
        return f"{self.start_min}-{self.end_min}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "Subject": self.subject,
            "Course": self.course,
            "CRN": self.crn,
            "Title": self.title,
            "Instructor": self.instructor,
            "Location": self.location,
            "Campus": self.campus,
            "Units": self.units,
            "Days": self.days,
            "DispTime": self.disp_time,
            "StartMin": self.start_min,
            "EndMin": self.end_min,
            "Capacity": self.capacity,
            "Actual": self.actual,
            "Remaining": self.remaining,
            "WaitCap": self.wait_cap,
            "WaitAct": self.wait_act,
            "WaitRem": self.wait_rem,
            "__color": self.color,
            "__bg": self.bg,
            "isLabSection": self.is_continuation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CourseSection":
        """
        Rebuild a section from its persisted form. Missing keys default.
        """

        def _s(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        def _i(key: str) -> int:
            try:
                return int(data.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        try:
            units = float(data.get("Units") or 0)
        except (TypeError, ValueError):
            units = 0.0

        return cls(
            subject=_s("Subject"),
            course=_s("Course"),
            crn=_s("CRN"),
            title=_s("Title"),
            instructor=_s("Instructor"),
            location=_s("Location"),
            campus=_s("Campus"),
            units=units,
            days=_s("Days"),
            disp_time=_s("DispTime"),
            start_min=_i("StartMin"),
            end_min=_i("EndMin"),
            capacity=_i("Capacity"),
            actual=_i("Actual"),
            remaining=_i("Remaining"),
            wait_cap=_i("WaitCap"),
            wait_act=_i("WaitAct"),
            wait_rem=_i("WaitRem"),
            color=_s("__color"),
            bg=_s("__bg"),
            is_continuation=bool(data.get("isLabSection", False)),
        )


@dataclass
class ParseResult:
    """
    Output of the table parser. `skipped` counts dropped data rows.
    """

    scheduled: list[CourseSection] = field(default_factory=list)
    online: list[CourseSection] = field(default_factory=list)
    skipped: int = 0


@dataclass
class SubjectData:
    courses: list[CourseSection] = field(default_factory=list)
    course_numbers: set[str] = field(default_factory=set)
    instructors: set[str] = field(default_factory=set)
    campuses: set[str] = field(default_factory=set)


@dataclass
class CatalogIndex:
    """
    Subject -> SubjectData plus the global filter value sets.
    Built once per import, read-only afterwards.
    """

    subject_data: dict[str, SubjectData] = field(default_factory=dict)
    subjects: set[str] = field(default_factory=set)
    courses: set[str] = field(default_factory=set)
    instructors: set[str] = field(default_factory=set)
    campuses: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class FilterState:
    """
    Allow-sets (empty = no restriction) and visibility toggles.
    Replace with dataclasses.replace(), never mutate.
    """

    subject_allow: frozenset[str] = frozenset()
    course_allow: frozenset[str] = frozenset()
    instructor_allow: frozenset[str] = frozenset()
    campus_allow: frozenset[str] = frozenset()
    show_online: bool = False
    show_full_classes: bool = False
    show_full_waitlist: bool = False


@dataclass(frozen=True)
class ScheduleCollections:
    all_courses: tuple[CourseSection, ...] = ()
    online_courses: tuple[CourseSection, ...] = ()
    my_schedule: tuple[CourseSection, ...] = ()
    my_online: tuple[CourseSection, ...] = ()


@dataclass
class OverlapGroup:
    """
    Same-day sections sharing one exact start-end key, with the index of
    the card currently in front.
    """

    day: str
    time_key: str
    courses: list[CourseSection]
    current_index: int = 0

    @property
    def front(self) -> Optional[CourseSection]:
        if not self.courses:
            return None
        return self.courses[self.current_index]
