"""
Catalog index: group parsed sections by subject and collect the values
that populate the filter chips.
"""

from __future__ import annotations

from typing import Iterable

from schedulebuilder.model import CatalogIndex, CourseSection, SubjectData


def build_index(scheduled: Iterable[CourseSection], online: Iterable[CourseSection]) -> CatalogIndex:
    """
    Fold scheduled + online sections into a CatalogIndex.

    Empty instructors and campuses are left out of the value sets.
    Set order is meaningless; sort at display time.
    """
    index = CatalogIndex()

    for course in [*scheduled, *online]:
        info = index.subject_data.get(course.subject)
        if info is None:
            info = SubjectData()
            index.subject_data[course.subject] = info

        info.courses.append(course)
        info.course_numbers.add(course.course)
        if course.instructor:
            info.instructors.add(course.instructor)
        if course.campus:
            info.campuses.add(course.campus)

        index.subjects.add(course.subject)
        index.courses.add(course.course)
        if course.instructor:
            index.instructors.add(course.instructor)
        if course.campus:
            index.campuses.add(course.campus)

    return index


def options_for_subjects(index: CatalogIndex, subjects: Iterable[str]) -> dict[str, set[str]]:
    """
    Course numbers, instructors and campuses offered under the selected
    subjects. Without a subject selection only campuses are offered
    (the global set), the other two dimensions stay empty.
    """
    selected = list(subjects)
    out: dict[str, set[str]] = {"courses": set(), "instructors": set(), "campuses": set()}

    if not selected:
        out["campuses"] = set(index.campuses)
        return out

    for subject in selected:
        info = index.subject_data.get(subject)
        if info is None:
            continue
        out["courses"] |= info.course_numbers
        out["instructors"] |= info.instructors
        out["campuses"] |= info.campuses

    return out


def sorted_values(values: Iterable[str]) -> list[str]:
    return sorted(values)
