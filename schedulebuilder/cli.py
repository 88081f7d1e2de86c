"""
CLI (Command Line Interface).

Terminal commands around the saved state, e.g.:

    schedulebuilder import page.html --subject ACCT
    schedulebuilder filter --course 001 --show-full-classes
    schedulebuilder available
    schedulebuilder add 12345
    schedulebuilder remove 12345
    schedulebuilder conflicts
    schedulebuilder show
    schedulebuilder interactive

Note:
- The interactive menu and the grid rendering live in schedulebuilder/interactive.py
- Every command loads data/state.json, applies its change and saves it again
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from schedulebuilder.conflicts import find_conflicts
from schedulebuilder.errors import ScheduleBuilderError
from schedulebuilder.fetch import read_html
from schedulebuilder.interactive import render_layout, run_interactive, sections_table
from schedulebuilder.state import ScheduleBuilder
from schedulebuilder.storage import load_state, save_state

console = Console()


def _load_builder(state_path: Optional[Path]) -> Optional[ScheduleBuilder]:
    """
    Load the saved state. Prints a hint and returns None if there is none.
    """
    state = load_state(state_path)
    if state is None:
        console.print("No imported data (or data older than 7 days). Run: schedulebuilder import <file.html>")
        return None
    return ScheduleBuilder(state)


def _cmd_import(args: argparse.Namespace) -> int:
    """
    Parse a saved page (or URL) and replace the stored catalog.
    """
    html = read_html(args.source)
    builder = ScheduleBuilder()

    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}%"),
        console=console,
    )
    with progress:
        task = progress.add_task("Importing...", total=100)

        def report(percent: int, text: str) -> None:
            progress.update(task, completed=percent, description=text)

        result = builder.import_html(html, basic_mode=args.basic, progress=report)

    if args.subject:
        builder.complete_import(args.subject)

    save_state(builder.state, args.state)
    console.print(
        f"Imported {len(result.scheduled)} scheduled and {len(result.online)} online sections "
        f"({result.skipped} rows skipped)."
    )
    console.print(f"Subjects: {', '.join(sorted(builder.state.index.subjects)) or '(none)'}")
    return 0


def _cmd_subjects(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    index = builder.state.index
    table = Table(title="Subjects", box=box.SIMPLE)
    table.add_column("Subject")
    table.add_column("Sections", justify="right")
    table.add_column("Courses", justify="right")
    table.add_column("Instructors", justify="right")
    for subject in sorted(index.subject_data):
        data = index.subject_data[subject]
        table.add_row(subject, str(len(data.courses)), str(len(data.course_numbers)), str(len(data.instructors)))
    console.print(table)
    return 0


def _cmd_filter(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    """
    Toggle filter chips and switches. Subjects are applied first because
    changing them clears the other chips.
    """
    if args.reset:
        builder.reset_filters()

    for value in args.subject or []:
        builder.toggle_filter("subject", value.strip().upper())
    for dimension in ("course", "instructor", "campus"):
        for value in getattr(args, dimension) or []:
            if dimension == "course":
                value = value.strip().zfill(3)
            builder.toggle_filter(dimension, value.strip())

    for flag in ("show_online", "show_full_classes", "show_full_waitlist"):
        value = getattr(args, flag)
        if value is not None:
            builder.set_flag(flag, value)

    save_state(builder.state, args.state)

    f = builder.state.filters
    console.print(f"Subjects:    {', '.join(sorted(f.subject_allow)) or '(all)'}")
    console.print(f"Courses:     {', '.join(sorted(f.course_allow)) or '(all)'}")
    console.print(f"Instructors: {', '.join(sorted(f.instructor_allow)) or '(all)'}")
    console.print(f"Campuses:    {', '.join(sorted(f.campus_allow)) or '(all)'}")
    console.print(
        f"Online: {f.show_online} | Full classes: {f.show_full_classes} | Full waitlists: {f.show_full_waitlist}"
    )
    return 0


def _cmd_available(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    sections = builder.available()
    if not sections:
        console.print("No sections match the current filters.")
        return 0
    console.print(sections_table(f"Available sections ({len(sections)})", sections))
    return 0


def _cmd_online(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    mine = list(builder.state.collections.my_online)
    if mine:
        console.print(sections_table("My online classes", mine))

    if not builder.state.filters.show_online:
        console.print("Online classes are hidden. Enable with: schedulebuilder filter --show-online")
        return 0

    available = builder.available_online()
    if not available:
        console.print("No online classes match the current filters.")
        return 0
    console.print(sections_table(f"Online classes ({len(available)})", available))
    return 0


def _cmd_add(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    """
    Add a CRN (all of its rows). Asks before adding over a time conflict.
    """
    crn = (args.crn or "").strip()
    if not crn:
        console.print("Please provide a CRN.")
        return 1

    col = builder.state.collections
    if any(c.crn == crn for c in col.online_courses) and not any(c.crn == crn for c in col.all_courses):
        if builder.add_online(crn):
            save_state(builder.state, args.state)
            console.print(f"Added online class: {crn}")
        else:
            console.print(f"Already selected: {crn}")
        return 0

    if not any(c.crn == crn for c in col.all_courses):
        console.print(f"CRN '{crn}' not found.")
        return 1
    if any(c.crn == crn for c in col.my_schedule):
        console.print(f"Already selected: {crn}")
        return 0

    found = builder.request_add(crn)
    if found and not args.yes:
        for conflict in found:
            console.print(f"{conflict.describe()} ({conflict.existing.days} {conflict.existing.disp_time})")
        answer = console.input("Add anyway? [y/N]: ", markup=False).strip().lower()
        if answer != "y":
            console.print("Not added.")
            return 0

    added = builder.add(crn)
    save_state(builder.state, args.state)
    console.print(f"Added: {crn} ({added} rows, {builder.total_units():g} units scheduled)")
    return 0


def _cmd_remove(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    crn = (args.crn or "").strip()
    if not crn:
        console.print("Please provide a CRN.")
        return 1

    removed = builder.remove(crn)
    removed_online = builder.remove_online(crn)
    if not removed and not removed_online:
        console.print(f"Not selected: {crn}")
        return 0

    save_state(builder.state, args.state)
    console.print(f"Removed: {crn}")
    return 0


def _cmd_conflicts(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    confs = find_conflicts(list(builder.state.collections.my_schedule))
    if not confs:
        console.print("No conflicts found.")
        return 0

    console.print(f"Conflicts found: {len(confs)}")
    for a, b in sorted(confs, key=lambda p: (p[0].start_min, p[0].crn)):
        console.print(
            f"- {a.subject} {a.course} ({a.crn}) {a.days} {a.disp_time}  <->  "
            f"{b.subject} {b.course} ({b.crn}) {b.days} {b.disp_time}"
        )
    return 0


def _cmd_show(args: argparse.Namespace, builder: ScheduleBuilder) -> int:
    which = "available" if args.available else "schedule"
    console.print(render_layout(builder.layout(which), title="Available courses" if args.available else "My schedule"))
    if not args.available:
        console.print(f"Total units: {builder.total_units():g}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="schedulebuilder", description="Student Schedule Builder CLI")
    parser.add_argument("--state", type=Path, default=None, help="State file (default: package data/state.json)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log parser details")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import a saved schedule page or URL")
    p_import.add_argument("source", type=str, help="HTML file or http(s) URL")
    p_import.add_argument("--basic", action="store_true", help="Ignore enrollment columns")
    p_import.add_argument("--subject", action="append", help="Subject to include (repeatable)")

    sub.add_parser("subjects", help="List imported subjects")

    p_filter = sub.add_parser("filter", help="Toggle filter chips and switches")
    p_filter.add_argument("--subject", action="append", help="Toggle subject (clears other chips)")
    p_filter.add_argument("--course", action="append", help="Toggle course number")
    p_filter.add_argument("--instructor", action="append", help="Toggle instructor")
    p_filter.add_argument("--campus", action="append", help="Toggle campus")
    p_filter.add_argument("--show-online", action=argparse.BooleanOptionalAction, default=None)
    p_filter.add_argument("--show-full-classes", action=argparse.BooleanOptionalAction, default=None)
    p_filter.add_argument("--show-full-waitlist", action=argparse.BooleanOptionalAction, default=None)
    p_filter.add_argument("--reset", action="store_true", help="Clear all chips first")

    sub.add_parser("available", help="List sections matching the filters")
    sub.add_parser("online", help="List online classes")

    p_add = sub.add_parser("add", help="Add a section by CRN")
    p_add.add_argument("crn", type=str, help="CRN (e.g. 12345)")
    p_add.add_argument("--yes", "-y", action="store_true", help="Add even if it conflicts")

    p_remove = sub.add_parser("remove", help="Remove a section by CRN")
    p_remove.add_argument("crn", type=str, help="CRN (e.g. 12345)")

    sub.add_parser("conflicts", help="Show time conflicts in my schedule")

    p_show = sub.add_parser("show", help="Show the weekly grid")
    p_show.add_argument("--available", action="store_true", help="Grid of available sections instead")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if args.command == "import":
            raise SystemExit(_cmd_import(args))

        if args.command in ("add", "remove") and not (args.crn or "").strip():
            console.print("Please provide a CRN.")
            raise SystemExit(1)

        if args.command == "interactive":
            run_interactive(load_state(args.state), state_path=args.state)
            raise SystemExit(0)

        builder = _load_builder(args.state)
        if builder is None:
            raise SystemExit(1)

        handlers = {
            "subjects": _cmd_subjects,
            "filter": _cmd_filter,
            "available": _cmd_available,
            "online": _cmd_online,
            "add": _cmd_add,
            "remove": _cmd_remove,
            "conflicts": _cmd_conflicts,
            "show": _cmd_show,
        }
        handler = handlers.get(args.command)
        if handler is None:
            raise SystemExit(2)
        raise SystemExit(handler(args, builder))
    except ScheduleBuilderError as e:
        console.print(f"Error: {e}")
        raise SystemExit(1)
