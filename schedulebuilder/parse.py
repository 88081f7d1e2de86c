"""
Parsing (catalog HTML table -> course sections).

- Finds the `table.dataentrytable` element of a saved schedule page
- Walks its rows top to bottom, tracking the current subject / course
  header and the last lecture (primary) row
- Emits one CourseSection per data row and sorts it into the scheduled
  or the online bucket

Important rules (DO NOT CHANGE):
- A lab row (continuation) without a lecture row above it is dropped
- A row whose time cell does not hold "H:MMam - H:MMpm" is dropped
- Dropped rows never abort the import
"""

from __future__ import annotations

import argparse
import json
import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, NamedTuple, Optional

from bs4 import BeautifulSoup, Tag

from schedulebuilder.errors import ParseError
from schedulebuilder.model import CourseSection, ParseResult
from schedulebuilder.timeutil import background_for, color_for, parse_display_time

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent

TABLE_SELECTOR = "table.dataentrytable"
CRN_LINK_SELECTOR = 'a[href*="p_course_popup"]'
SUBJECT_HEADER_SELECTOR = 'td.deheader b font[color="DARKBLUE"]'
COURSE_HEADER_SELECTOR = "td.deheader"

MIN_DATA_CELLS = 10
DAY_WINDOW = 5
ENROLLMENT_FIELDS = ("capacity", "actual", "remaining", "wait_cap", "wait_act", "wait_rem")

# Report progress every N rows
PROGRESS_EVERY = 200

_SUBJECT_RE = re.compile(r"^([A-Z]+)\s*-\s*(.+)$")
_COURSE_RE = re.compile(r"^([A-Z]+)\s+(\d+)\s+-\s+(.+?)(?:\s+Lecture)?(?:\s+Lab)?$")
_TIME_RANGE_RE = re.compile(r"(\d{1,2}:\d{2}[ap]m)\s*-\s*(\d{1,2}:\d{2}[ap]m)", re.IGNORECASE)
_DAY_CELL_RE = re.compile(r"^[MTWRF]$")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?")


# ---------------------------------------------------------------------------
# Column layout
# ---------------------------------------------------------------------------


class ColumnOffsets(NamedTuple):
    """
    Cell indexes of one row kind. None = field not present in that row kind.
    """

    days: int
    time: int
    location: int
    campus: int
    units: Optional[int]
    enrollment: Optional[int]
    instructor: Optional[int]


# Lecture rows carry every column.
PRIMARY_OFFSETS = ColumnOffsets(
    days=3,
    time=10,
    location=12,
    campus=13,
    units=2,
    enrollment=15,
    instructor=20,
)

# Lab rows start with a colspan=3 cell, which removes two columns.
CONTINUATION_OFFSETS = ColumnOffsets(
    days=1,
    time=8,
    location=10,
    campus=11,
    units=None,
    enrollment=None,
    instructor=None,
)


# ---------------------------------------------------------------------------
# Scan state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScanState:
    """
    Context carried from one row to the next.
    """

    subject: str = ""
    course: str = ""
    title: str = ""
    last_crn: str = ""
    last_instructor: str = ""
    last_color: str = ""
    last_bg: str = ""


class RowResult(NamedTuple):
    state: ScanState
    section: Optional[CourseSection]
    skipped: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cell_text(cells: list[Tag], index: Optional[int]) -> str:
    if index is None or index >= len(cells):
        return ""
    return cells[index].get_text().strip()


def _to_number(text: str) -> float:
    m = _LEADING_NUMBER_RE.match(text.strip())
    return float(m.group(0)) if m else 0.0


def _to_int(text: str) -> int:
    return int(_to_number(text))


def _extract_days(cells: list[Tag], start: int) -> str:
    days = ""
    for i in range(start, min(start + DAY_WINDOW, len(cells))):
        txt = cells[i].get_text().strip()
        if _DAY_CELL_RE.match(txt):
            days += txt
    return days


def _extract_enrollment(cells: list[Tag], start: int) -> dict[str, int]:
    """
    Read the six enrollment columns starting at `start`.

    The last column shares its cell with the instructor name, so a
    remaining count that is not a number is derived as cap - actual.
    """
    raw = [_cell_text(cells, start + i) for i in range(len(ENROLLMENT_FIELDS))]
    values = dict(zip(ENROLLMENT_FIELDS, (_to_int(t) for t in raw)))

    for remaining, cap, actual in (("remaining", "capacity", "actual"), ("wait_rem", "wait_cap", "wait_act")):
        if not _LEADING_NUMBER_RE.match(raw[ENROLLMENT_FIELDS.index(remaining)]):
            values[remaining] = max(values[cap] - values[actual], 0)
    return values


def is_online(days: str, location: str) -> bool:
    return not days or "online" in location.lower()


# ---------------------------------------------------------------------------
# Row processing (CORE LOGIC)
# ---------------------------------------------------------------------------


def process_row(row: Tag, state: ScanState, basic_mode: bool = False) -> RowResult:
    """
    Classify one <tr> and return the updated scan state plus the section
    it produced (if any).
    """

    # Subject header: "ACCT - Accounting"
    subj_header = row.select_one(SUBJECT_HEADER_SELECTOR)
    if subj_header is not None:
        m = _SUBJECT_RE.match(subj_header.get_text().strip())
        if m:
            state = replace(state, subject=m.group(1))
        return RowResult(state, None, False)

    # Course header: "ACCT 1 - Financial Accounting Lecture"
    course_header = row.select_one(COURSE_HEADER_SELECTOR)
    if course_header is not None and " - " in course_header.get_text():
        m = _COURSE_RE.match(course_header.get_text().strip())
        if m:
            state = replace(
                state,
                subject=m.group(1),
                course=m.group(2).zfill(3),
                title=m.group(3).strip(),
            )
        return RowResult(state, None, False)

    cells = row.find_all("td")
    if len(cells) < MIN_DATA_CELLS:
        return RowResult(state, None, False)

    crn_link = row.select_one(CRN_LINK_SELECTOR)
    is_continuation = crn_link is None and cells[0].get("colspan") == "3"

    if is_continuation:
        if not state.last_crn:
            logger.debug("Dropping lab row without a preceding lecture row")
            return RowResult(state, None, True)
        offsets = CONTINUATION_OFFSETS
        crn = state.last_crn
        instructor = state.last_instructor
        color = state.last_color
        bg = state.last_bg
    else:
        if crn_link is None:
            logger.debug("Dropping data row without CRN link")
            return RowResult(state, None, True)
        offsets = PRIMARY_OFFSETS
        crn = crn_link.get_text().strip()
        instructor = _cell_text(cells, offsets.instructor)
        color = color_for(crn)
        bg = background_for(color)
        # Remember for the lab rows that follow, even if this row is dropped below
        state = replace(
            state,
            last_crn=crn,
            last_instructor=instructor,
            last_color=color,
            last_bg=bg,
        )

    days = _extract_days(cells, offsets.days)

    time_text = _cell_text(cells, offsets.time)
    tm = _TIME_RANGE_RE.search(time_text)
    if not tm:
        logger.debug("Dropping row %s: no time range in %r", crn, time_text)
        return RowResult(state, None, True)

    start_min = parse_display_time(tm.group(1))
    end_min = parse_display_time(tm.group(2))
    if start_min is None or end_min is None:
        logger.debug("Dropping row %s: bad time %r", crn, time_text)
        return RowResult(state, None, True)

    enrollment = dict.fromkeys(ENROLLMENT_FIELDS, 0)
    # Lab rows and basic schedules carry no enrollment numbers
    if offsets.enrollment is not None and not basic_mode:
        enrollment = _extract_enrollment(cells, offsets.enrollment)

    units = _to_number(_cell_text(cells, offsets.units)) if offsets.units is not None else 0.0

    section = CourseSection(
        subject=state.subject,
        course=state.course,
        crn=crn,
        title=state.title,
        instructor=instructor,
        location=_cell_text(cells, offsets.location),
        campus=_cell_text(cells, offsets.campus),
        units=max(units, 0.0),
        days=days,
        disp_time=time_text,
        start_min=start_min,
        end_min=end_min,
        color=color,
        bg=bg,
        is_continuation=is_continuation,
        **enrollment,
    )
    return RowResult(state, section, False)


def _find_table(html: str) -> Tag:
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one(TABLE_SELECTOR)
    if table is None:
        raise ParseError("No valid schedule table found")
    return table


def parse_html_table(
    html: str,
    basic_mode: bool = False,
    progress: Optional[Callable[[int, int], None]] = None,
) -> ParseResult:
    """
    Parse the catalog table into scheduled and online sections.

    Raises ParseError if the page has no `table.dataentrytable`.
    `progress(done, total)` is called every PROGRESS_EVERY rows.
    """
    table = _find_table(html)
    rows = table.select("tr")
    total = len(rows)

    result = ParseResult()
    state = ScanState()

    for done, row in enumerate(rows, start=1):
        state, section, skipped = process_row(row, state, basic_mode)
        if skipped:
            result.skipped += 1
        if section is not None:
            if is_online(section.days, section.location):
                result.online.append(section)
            else:
                result.scheduled.append(section)
        if progress is not None and done % PROGRESS_EVERY == 0:
            progress(done, total)

    logger.debug(
        "Parsed %d rows: %d scheduled, %d online, %d skipped",
        total,
        len(result.scheduled),
        len(result.online),
        result.skipped,
    )
    return result


def load_table_html(html: str) -> str:
    """
    Cut the catalog table out of a full saved page.
    """
    return str(_find_table(html))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_file(path: str | Path, basic_mode: bool = False) -> ParseResult:
    html = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_html_table(html, basic_mode=basic_mode)


def write_result(result: ParseResult, out_path: str | Path) -> None:
    """
    Write both buckets to one JSON file.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "courses": [c.to_dict() for c in result.scheduled],
        "online": [c.to_dict() for c in result.online],
        "skipped": result.skipped,
    }
    out.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# CLI connection
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="schedulebuilder.parse",
        description="Parse a saved schedule page into JSON",
    )
    p.add_argument("html", type=Path, help="Saved HTML page containing the schedule table")
    p.add_argument(
        "--out",
        type=Path,
        default=PACKAGE_DIR / "data" / "catalog.json",
    )
    p.add_argument("--basic", action="store_true", help="Ignore enrollment columns")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        result = parse_file(args.html, basic_mode=args.basic)
    except ParseError as e:
        print(f"Error: {e}")
        raise SystemExit(1)

    write_result(result, args.out)
    print(
        f"Parsed {len(result.scheduled)} scheduled and {len(result.online)} online sections "
        f"({result.skipped} rows skipped). JSON written to {args.out.resolve()}"
    )


if __name__ == "__main__":
    main()
