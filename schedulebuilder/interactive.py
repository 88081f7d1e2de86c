"""
Interactive terminal menu and the text rendering of the weekly grid.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from schedulebuilder.catalog import options_for_subjects, sorted_values
from schedulebuilder.conflicts import find_conflicts
from schedulebuilder.errors import ScheduleBuilderError
from schedulebuilder.fetch import read_html
from schedulebuilder.layout import Layout
from schedulebuilder.model import CourseSection, OverlapGroup
from schedulebuilder.state import AppState, ScheduleBuilder
from schedulebuilder.storage import clear_state, save_state
from schedulebuilder.timeutil import DAY_LABELS, DAYS, format_minutes

console = Console()


def _println(msg: str = "") -> None:
    console.print(msg, markup=False)


def _prompt(msg: str) -> str:
    return console.input(msg, markup=False)


def _card(course: CourseSection) -> str:
    lab = " lab" if course.is_continuation else ""
    return (
        f"[bold]{escape(course.subject)} {escape(course.course)}[/]{lab}\n"
        f"{escape(course.crn)} {escape(course.disp_time)}\n{escape(course.location)}"
    )


def sections_table(title: str, sections: list[CourseSection]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    for col in ("CRN", "Course", "Title", "Days", "Time", "Instructor", "Location", "Campus", "Seats"):
        table.add_column(col)

    ordered = sorted(sections, key=lambda c: (c.subject, c.course, c.crn, c.is_continuation, c.start_min))
    for c in ordered:
        seats = "" if c.is_continuation or not c.capacity else f"{c.remaining}/{c.capacity}"
        if c.wait_cap:
            seats += f" wl {c.wait_rem}/{c.wait_cap}"
        table.add_row(
            f"[bold cyan]{escape(c.crn)}[/]",
            escape(f"{c.subject} {c.course}") + (" (lab)" if c.is_continuation else ""),
            escape(c.title),
            escape(c.days or "-"),
            escape(c.disp_time),
            escape(c.instructor_label),
            escape(c.location),
            escape(c.campus),
            seats.strip(),
        )
    return table


def render_layout(layout: Layout, title: str = "") -> Table:
    """
    Weekly grid as a table: one row per hour of the window, one column
    per weekday. Overlapping cards show only the card in front.
    """
    table = Table(title=title or None, box=box.SIMPLE, show_lines=True)
    table.add_column("Time", justify="right")
    for day in DAYS:
        table.add_column(DAY_LABELS[day])

    cells: dict[tuple[int, str], list[str]] = {}
    for day in DAYS:
        shown: set[tuple[str, str]] = set()
        for course in sorted(layout.columns.get(day, []), key=lambda c: (c.start_min, c.crn)):
            group = layout.board.group_of(day, course)
            if group is None:
                start, text = course.start_min, _card(course)
            else:
                if (group.day, group.time_key) in shown:
                    continue
                shown.add((group.day, group.time_key))
                front = group.front
                if front is None:
                    continue
                start = int(group.time_key.split("-")[0])
                text = f"{_card(front)}\n[yellow]{group.current_index + 1}/{len(group.courses)} overlapping[/]"
            ticks = layout.window.hour_ticks()
            hour = min(max((start // 60) * 60, ticks[0]), ticks[-2] if len(ticks) > 1 else ticks[0])
            cells.setdefault((hour, day), []).append(text)

    for hour in layout.window.hour_ticks()[:-1]:
        row = [format_minutes(hour)]
        for day in DAYS:
            row.append("\n\n".join(cells.get((hour, day), [])))
        table.add_row(*row)

    return table


def _save(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    save_state(builder.state, state_path)


def _print_header(builder: ScheduleBuilder) -> None:
    col = builder.state.collections
    f = builder.state.filters
    _println("\n=== Schedule Builder (interactive) ===")
    if not col.all_courses and not col.online_courses:
        _println("Data: (nothing imported yet), run [1] Import first")
    else:
        _println(
            f"Data: {len(col.all_courses)} scheduled | {len(col.online_courses)} online | "
            f"{len(builder.state.index.subjects)} subjects"
        )
    _println(
        f"My schedule: {len(col.my_schedule)} rows | {len(col.my_online)} online | "
        f"{builder.total_units():g} units"
    )
    _println(f"Subjects: {', '.join(sorted(f.subject_allow)) or '(all)'}")


def run_interactive(state: Optional[AppState], state_path: Optional[Path] = None) -> None:
    """
    Interactive menu loop. Every change is saved right away.
    """
    builder = ScheduleBuilder(state)

    while True:
        _print_header(builder)

        choice = _prompt(
            "\n[1] Import schedule page\n"
            "[2] Select subjects\n"
            "[3] Filters\n"
            "[4] Available sections (add)\n"
            "[5] Weekly grid (cycle overlaps)\n"
            "[6] Remove a section\n"
            "[7] Online classes\n"
            "[8] Show conflicts\n"
            "[9] Clear saved data\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        try:
            if choice == "0":
                _println("Bye.")
                return
            if choice == "1":
                _flow_import(builder, state_path)
            elif choice == "2":
                _flow_subjects(builder, state_path)
            elif choice == "3":
                _flow_filters(builder, state_path)
            elif choice == "4":
                _flow_available(builder, state_path)
            elif choice == "5":
                _flow_grid(builder)
            elif choice == "6":
                _flow_remove(builder, state_path)
            elif choice == "7":
                _flow_online(builder, state_path)
            elif choice == "8":
                _flow_conflicts(builder)
            elif choice == "9":
                clear_state(state_path)
                builder = ScheduleBuilder()
                _println("Saved data cleared.")
            else:
                _println("Invalid choice.")
        except ScheduleBuilderError as e:
            _println(f"Error: {e}")


def _flow_import(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    source = _prompt("HTML file or URL [blank = back]: ").strip()
    if not source:
        return
    basic = _prompt("Basic schedule (ignore enrollment)? [y/N]: ").strip().lower() == "y"

    html = read_html(source)
    result = builder.import_html(html, basic_mode=basic, progress=lambda p, text: _println(f"[{p:3d}%] {text}"))
    _println(f"Imported {len(result.scheduled)} scheduled, {len(result.online)} online ({result.skipped} rows skipped).")

    # Second step: the user must pick at least one subject
    while builder.state.index.subjects:
        try:
            _choose_subjects(builder)
            break
        except ScheduleBuilderError as e:
            _println(str(e))

    _save(builder, state_path)


def _choose_subjects(builder: ScheduleBuilder) -> None:
    subjects = sorted_values(builder.state.index.subjects)
    _println("Subjects: " + ", ".join(subjects))
    picked = _prompt("Subjects to include (space separated): ").upper().split()
    builder.complete_import([s for s in picked if s in builder.state.index.subjects])


def _flow_subjects(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    subjects = sorted_values(builder.state.index.subjects)
    if not subjects:
        _println("Nothing imported yet.")
        return

    while True:
        selected = builder.state.filters.subject_allow
        _println("\nSubjects ([x] = selected):")
        _println("  ".join(f"[{'x' if s in selected else ' '}] {s}" for s in subjects))
        pick = _prompt("Toggle subject [blank = back]: ").strip().upper()
        if not pick:
            return
        if pick not in builder.state.index.subjects:
            _println("Unknown subject.")
            continue
        builder.toggle_filter("subject", pick)
        _save(builder, state_path)


def _flow_filters(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    dims = {"1": "course", "2": "instructor", "3": "campus"}
    flags = {"4": "show_online", "5": "show_full_classes", "6": "show_full_waitlist"}

    while True:
        f = builder.state.filters
        options = options_for_subjects(builder.state.index, f.subject_allow)
        _println(
            f"\n[1] Courses: {', '.join(sorted(f.course_allow)) or '(all)'}\n"
            f"[2] Instructors: {', '.join(sorted(f.instructor_allow)) or '(all)'}\n"
            f"[3] Campuses: {', '.join(sorted(f.campus_allow)) or '(all)'}\n"
            f"[4] Show online classes: {f.show_online}\n"
            f"[5] Show full classes: {f.show_full_classes}\n"
            f"[6] Show full waitlists: {f.show_full_waitlist}\n"
            f"[7] Reset filters"
        )
        pick = _prompt("Select [blank = back]: ").strip()
        if not pick:
            return

        if pick in dims:
            dimension = dims[pick]
            values = sorted_values(options[f"{dimension}s" if dimension != "campus" else "campuses"])
            if not values:
                _println("Select at least one subject first.")
                continue
            for i, v in enumerate(values, start=1):
                _println(f"{i}) {v}")
            raw = _prompt("Toggle number: ").strip()
            if raw.isdigit() and 1 <= int(raw) <= len(values):
                builder.toggle_filter(dimension, values[int(raw) - 1])
            else:
                _println("Out of range.")
                continue
        elif pick in flags:
            name = flags[pick]
            builder.set_flag(name, not getattr(f, name))
        elif pick == "7":
            builder.reset_filters()
        else:
            _println("Invalid choice.")
            continue

        _save(builder, state_path)


def _flow_available(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    while True:
        sections = builder.available()
        if not sections:
            _println("No sections match the current filters.")
            return
        console.print(sections_table(f"Available sections ({len(sections)})", sections[:60]))
        if len(sections) > 60:
            _println(f"... and {len(sections) - 60} more (narrow the filters)")

        crn = _prompt("CRN to add [blank = back]: ").strip()
        if not crn:
            return

        found = builder.request_add(crn)
        if found:
            for conflict in found:
                _println(f"{conflict.describe()} ({conflict.existing.days} {conflict.existing.disp_time})")
            if _prompt("Add anyway? [y/N]: ").strip().lower() != "y":
                continue

        added = builder.add(crn)
        if added:
            _save(builder, state_path)
            _println(f"Added: {crn} ({added} rows)")
        else:
            _println(f"Not added: {crn} (unknown or already selected)")


def _pick_group(layout: Layout) -> Optional[OverlapGroup]:
    groups = sorted(layout.board.groups.values(), key=lambda g: (DAYS.index(g.day), g.time_key))
    if not groups:
        _println("No overlapping sections.")
        return None
    for i, g in enumerate(groups, start=1):
        start, end = (int(x) for x in g.time_key.split("-"))
        _println(f"{i}) {DAY_LABELS[g.day]} {format_minutes(start)}-{format_minutes(end)}: {len(g.courses)} sections")
    raw = _prompt("Group number [blank = back]: ").strip()
    if not raw.isdigit() or not (1 <= int(raw) <= len(groups)):
        return None
    return groups[int(raw) - 1]


def _flow_grid(builder: ScheduleBuilder) -> None:
    which = "available" if _prompt("Grid of [a]vailable or [m]y schedule? [m]: ").strip().lower() == "a" else "schedule"
    layout = builder.layout(which)

    while True:
        console.print(render_layout(layout, title="Available courses" if which == "available" else "My schedule"))
        action = _prompt("[n]ext / [p]rev card in a group, [b]ring section to front, blank = back: ").strip().lower()
        if not action:
            return
        if action not in ("n", "p", "b"):
            _println("Invalid choice.")
            continue

        group = _pick_group(layout)
        if group is None:
            continue

        if action == "b":
            for i, c in enumerate(group.courses, start=1):
                _println(f"{i}) {c.subject} {c.course} {c.crn} {c.disp_time}")
            raw = _prompt("Section number: ").strip()
            if raw.isdigit() and 1 <= int(raw) <= len(group.courses):
                layout.board.promote(group.day, group.time_key, int(raw) - 1)
        else:
            layout.board.cycle(group.day, group.time_key, 1 if action == "n" else -1)


def _flow_remove(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    col = builder.state.collections
    crns = sorted({c.crn for c in col.my_schedule} | {c.crn for c in col.my_online})
    if not crns:
        _println("No sections selected.")
        return

    for i, crn in enumerate(crns, start=1):
        c = next(x for x in [*col.my_schedule, *col.my_online] if x.crn == crn)
        _println(f"{i}) {crn} | {c.subject} {c.course} | {c.title}")

    pick = _prompt("Enter number to remove (or blank to cancel): ").strip()
    if not pick:
        return
    if not pick.isdigit() or not (1 <= int(pick) <= len(crns)):
        _println("Out of range.")
        return

    crn = crns[int(pick) - 1]
    builder.remove(crn)
    builder.remove_online(crn)
    _save(builder, state_path)
    _println(f"Removed: {crn}")


def _flow_online(builder: ScheduleBuilder, state_path: Optional[Path]) -> None:
    if not builder.state.filters.show_online:
        _println("Online classes are hidden; enable them under [3] Filters.")
        return

    available = builder.available_online()
    if not available:
        _println("No online classes match the current filters.")
        return
    console.print(sections_table(f"Online classes ({len(available)})", available))

    crn = _prompt("CRN to add [blank = back]: ").strip()
    if crn and builder.add_online(crn):
        _save(builder, state_path)
        _println(f"Added online class: {crn}")


def _flow_conflicts(builder: ScheduleBuilder) -> None:
    confs = find_conflicts(list(builder.state.collections.my_schedule))
    if not confs:
        _println("No conflicts found.")
        return
    _println(f"Conflicts found: {len(confs)}")
    for a, b in confs:
        _println(f"- {a.subject} {a.course} {a.days} {a.disp_time}  <->  {b.subject} {b.course} {b.days} {b.disp_time}")
