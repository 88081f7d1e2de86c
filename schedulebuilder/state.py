"""
Application state owner.

All catalog, filter and schedule data lives in one immutable AppState
value. ScheduleBuilder holds the current value and every action swaps
in a new one, so readers never see a half-applied update.

Imports are numbered: an import that finishes after a newer one was
started is discarded instead of overwriting the newer data.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional

from schedulebuilder import conflicts, filters as filter_engine
from schedulebuilder.catalog import build_index
from schedulebuilder.errors import EmptySelectionError
from schedulebuilder.layout import Layout, TimeWindow, compute_layout, compute_time_window
from schedulebuilder.model import CatalogIndex, CourseSection, FilterState, ParseResult, ScheduleCollections
from schedulebuilder.parse import parse_html_table

ProgressFn = Callable[[int, str], None]


@dataclass(frozen=True)
class AppState:
    collections: ScheduleCollections = field(default_factory=ScheduleCollections)
    index: CatalogIndex = field(default_factory=CatalogIndex)
    filters: FilterState = field(default_factory=FilterState)
    light_mode: bool = False
    skipped_rows: int = 0


class ScheduleBuilder:
    """
    Single writer for AppState.
    """

    def __init__(self, state: Optional[AppState] = None) -> None:
        self.state = state if state is not None else AppState()
        self.generation = 0

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def begin_import(self) -> int:
        self.generation += 1
        return self.generation

    def finish_import(self, generation: int, result: ParseResult) -> bool:
        """
        Install a parse result. Returns False if a newer import was started.
        """
        if generation != self.generation:
            return False

        self.state = replace(
            self.state,
            collections=ScheduleCollections(
                all_courses=tuple(result.scheduled),
                online_courses=tuple(result.online),
            ),
            index=build_index(result.scheduled, result.online),
            skipped_rows=result.skipped,
        )
        return True

    def import_html(self, html: str, basic_mode: bool = False, progress: Optional[ProgressFn] = None) -> ParseResult:
        """
        Parse and install a catalog page. Raises ParseError (state untouched).
        """

        def report(percent: int, text: str) -> None:
            if progress is not None:
                progress(percent, text)

        generation = self.begin_import()
        report(0, "Starting import...")
        report(20, "Parsing schedule table...")

        def row_progress(done: int, total: int) -> None:
            report(20 + done * 50 // max(total, 1), f"Processing rows... {done}/{total}")

        result = parse_html_table(html, basic_mode=basic_mode, progress=row_progress)

        report(70, "Building filter options...")
        report(90, "Finalizing data...")
        self.finish_import(generation, result)
        report(100, "Import complete!")
        return result

    def complete_import(self, subjects: Iterable[str]) -> None:
        """
        Second import step: restrict the view to the chosen subjects.
        Codes are matched case-insensitively; unknown codes are dropped.
        """
        known = self.state.index.subjects
        chosen = [code for code in (s.strip().upper() for s in subjects) if code in known]
        if not chosen:
            raise EmptySelectionError("Please select at least one subject before continuing.")
        self.set_filters(filter_engine.select_subjects(self.state.filters, chosen))

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def set_filters(self, new_filters: FilterState) -> None:
        self.state = replace(self.state, filters=new_filters)

    def toggle_filter(self, dimension: str, value: str) -> None:
        self.set_filters(filter_engine.toggle_value(self.state.filters, dimension, value))

    def set_flag(self, name: str, value: bool) -> None:
        self.set_filters(filter_engine.set_flag(self.state.filters, name, value))

    def reset_filters(self) -> None:
        self.set_filters(filter_engine.reset_filters(self.state.filters))

    def set_light_mode(self, value: bool) -> None:
        self.state = replace(self.state, light_mode=value)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def _set_collections(self, **changes: tuple[CourseSection, ...]) -> None:
        self.state = replace(self.state, collections=replace(self.state.collections, **changes))

    def request_add(self, crn: str) -> list[conflicts.Conflict]:
        col = self.state.collections
        return conflicts.check_conflict(crn, col.all_courses, col.my_schedule)

    def add(self, crn: str) -> int:
        """
        Add all rows of `crn`. Returns the number of rows added.
        """
        col = self.state.collections
        updated = conflicts.add_to_schedule(crn, col.all_courses, col.my_schedule)
        added = len(updated) - len(col.my_schedule)
        if added:
            self._set_collections(my_schedule=tuple(updated))
        return added

    def remove(self, crn: str) -> int:
        col = self.state.collections
        updated = conflicts.remove_from_schedule(crn, col.my_schedule)
        removed = len(col.my_schedule) - len(updated)
        if removed:
            self._set_collections(my_schedule=tuple(updated))
        return removed

    def add_online(self, crn: str) -> bool:
        col = self.state.collections
        updated = conflicts.add_online(crn, col.online_courses, col.my_online)
        if len(updated) == len(col.my_online):
            return False
        self._set_collections(my_online=tuple(updated))
        return True

    def remove_online(self, crn: str) -> bool:
        col = self.state.collections
        updated = conflicts.remove_online(crn, col.my_online)
        if len(updated) == len(col.my_online):
            return False
        self._set_collections(my_online=tuple(updated))
        return True

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def available(self) -> list[CourseSection]:
        col = self.state.collections
        return filter_engine.apply_filters(col.all_courses, self.state.filters, col.my_schedule)

    def available_online(self) -> list[CourseSection]:
        col = self.state.collections
        return filter_engine.visible_online(col.online_courses, self.state.filters, col.my_online)

    def time_window(self) -> TimeWindow:
        col = self.state.collections
        return compute_time_window(col.all_courses, col.my_schedule, self.state.filters)

    def layout(self, which: str = "schedule") -> Layout:
        """
        Grid layout of "available" sections or of "schedule" (my schedule).
        Both share one time window.
        """
        if which == "available":
            courses: list[CourseSection] = self.available()
        elif which == "schedule":
            courses = list(self.state.collections.my_schedule)
        else:
            raise ValueError(f"Unknown layout: {which!r}")
        return compute_layout(courses, self.time_window())

    def total_units(self) -> float:
        col = self.state.collections
        return conflicts.total_units(col.my_schedule, col.my_online)
