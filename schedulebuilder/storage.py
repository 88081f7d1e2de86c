"""
Persistent storage for the imported catalog and the user's schedule.

This module manages the file:

    data/state.json

It stores the parsed sections, the schedule, the filter value sets, the
subject index, the filter state, the theme flag and the number of
dropped table rows, stamped with the save time. Sets are written as
sorted arrays and rebuilt on load.

Snapshots older than the freshness window (7 days) are ignored, since
the enrollment numbers they contain are stale by then.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Optional

from schedulebuilder.model import (
    CatalogIndex,
    CourseSection,
    FilterState,
    ScheduleCollections,
    SubjectData,
)
from schedulebuilder.state import AppState

MAX_AGE_SECONDS = 7 * 24 * 60 * 60


def _default_state_path() -> Path:
    """
    Return the default path of state.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "state.json"


def _sections(raw: Any) -> tuple[CourseSection, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(CourseSection.from_dict(x) for x in raw if isinstance(x, dict))


def _str_set(raw: Any) -> set[str]:
    if not isinstance(raw, list):
        return set()
    return {x for x in raw if isinstance(x, str)}


def _count(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return 0
    return max(raw, 0)


def _state_to_payload(state: AppState, timestamp_ms: int) -> dict[str, Any]:
    col = state.collections
    idx = state.index
    f = state.filters
    return {
        "allCourses": [c.to_dict() for c in col.all_courses],
        "onlineCourses": [c.to_dict() for c in col.online_courses],
        "mySchedule": [c.to_dict() for c in col.my_schedule],
        "myOnlineClasses": [c.to_dict() for c in col.my_online],
        "subjects": sorted(idx.subjects),
        "courses": sorted(idx.courses),
        "instructors": sorted(idx.instructors),
        "campuses": sorted(idx.campuses),
        "subjectData": [
            [
                subject,
                {
                    "courses": [c.to_dict() for c in data.courses],
                    "courseNumbers": sorted(data.course_numbers),
                    "instructors": sorted(data.instructors),
                    "campuses": sorted(data.campuses),
                },
            ]
            for subject, data in sorted(idx.subject_data.items())
        ],
        "filters": {
            "subjectAllow": sorted(f.subject_allow),
            "courseAllow": sorted(f.course_allow),
            "instructorAllow": sorted(f.instructor_allow),
            "campusAllow": sorted(f.campus_allow),
            "showOnline": f.show_online,
            "showFullClasses": f.show_full_classes,
            "showFullWaitlist": f.show_full_waitlist,
        },
        "isLightMode": state.light_mode,
        "skippedRows": state.skipped_rows,
        "timestamp": timestamp_ms,
    }


def _payload_to_state(data: dict[str, Any]) -> AppState:
    subject_data: dict[str, SubjectData] = {}
    for entry in data.get("subjectData") or []:
        if not (isinstance(entry, list) and len(entry) == 2 and isinstance(entry[1], dict)):
            continue
        key, value = entry
        subject_data[str(key)] = SubjectData(
            courses=list(_sections(value.get("courses"))),
            course_numbers=_str_set(value.get("courseNumbers")),
            instructors=_str_set(value.get("instructors")),
            campuses=_str_set(value.get("campuses")),
        )

    raw_filters = data.get("filters")
    if not isinstance(raw_filters, dict):
        raw_filters = {}

    return AppState(
        collections=ScheduleCollections(
            all_courses=_sections(data.get("allCourses")),
            online_courses=_sections(data.get("onlineCourses")),
            my_schedule=_sections(data.get("mySchedule")),
            my_online=_sections(data.get("myOnlineClasses")),
        ),
        index=CatalogIndex(
            subject_data=subject_data,
            subjects=_str_set(data.get("subjects")),
            courses=_str_set(data.get("courses")),
            instructors=_str_set(data.get("instructors")),
            campuses=_str_set(data.get("campuses")),
        ),
        filters=FilterState(
            subject_allow=frozenset(_str_set(raw_filters.get("subjectAllow"))),
            course_allow=frozenset(_str_set(raw_filters.get("courseAllow"))),
            instructor_allow=frozenset(_str_set(raw_filters.get("instructorAllow"))),
            campus_allow=frozenset(_str_set(raw_filters.get("campusAllow"))),
            show_online=bool(raw_filters.get("showOnline", False)),
            show_full_classes=bool(raw_filters.get("showFullClasses", False)),
            show_full_waitlist=bool(raw_filters.get("showFullWaitlist", False)),
        ),
        light_mode=bool(data.get("isLightMode", False)),
        skipped_rows=_count(data.get("skippedRows")),
    )


def save_state(state: AppState, path: str | Path | None = None, now: float | None = None) -> None:
    """
    Save the state to state.json. Creates parent directories if needed.
    """
    state_path = Path(path) if path is not None else _default_state_path()
    state_path.parent.mkdir(parents=True, exist_ok=True)

    timestamp_ms = int((time.time() if now is None else now) * 1000)
    payload = _state_to_payload(state, timestamp_ms)
    state_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def load_state(
    path: str | Path | None = None,
    max_age: float = MAX_AGE_SECONDS,
    now: float | None = None,
) -> Optional[AppState]:
    """
    Load the saved state.

    Returns None if the file is missing, unreadable, older than `max_age`
    seconds or holds no scheduled sections.
    """
    state_path = Path(path) if path is not None else _default_state_path()

    # First run: nothing saved yet
    if not state_path.exists():
        return None

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(data, dict):
        return None

    timestamp = data.get("timestamp")
    if not isinstance(timestamp, (int, float)):
        return None
    current = time.time() if now is None else now
    if current - timestamp / 1000 >= max_age:
        return None

    state = _payload_to_state(data)
    if not state.collections.all_courses:
        return None
    return state


def clear_state(path: str | Path | None = None) -> None:
    state_path = Path(path) if path is not None else _default_state_path()
    state_path.unlink(missing_ok=True)
