"""
Unit tests for the catalog table parser.

Rules checked here:
- headers set subject / course / title, data rows produce sections
- lab rows inherit CRN, instructor and color from the lecture row above
- rows without a usable time are dropped, never raised
"""

import unittest

from bs4 import BeautifulSoup

from html_fixtures import course_header, lab_row, page, primary_row, sample_page, subject_header
from schedulebuilder.errors import ParseError
from schedulebuilder.parse import (
    CONTINUATION_OFFSETS,
    PRIMARY_OFFSETS,
    ScanState,
    load_table_html,
    parse_html_table,
    process_row,
)
from schedulebuilder.timeutil import color_for


def _row(html: str):
    soup = BeautifulSoup(f"<table>{html}</table>", "html.parser")
    return soup.find("tr")


class TestParseHtmlTable(unittest.TestCase):
    def test_missing_table_raises(self) -> None:
        with self.assertRaises(ParseError):
            parse_html_table("<html><body><table><tr><td>x</td></tr></table></body></html>")

    def test_sample_page_buckets(self) -> None:
        result = parse_html_table(sample_page())
        self.assertEqual([c.crn for c in result.scheduled], ["12345", "12345", "22222"])
        self.assertEqual([c.crn for c in result.online], ["12346"])
        self.assertEqual(result.skipped, 0)

    def test_primary_row_fields(self) -> None:
        result = parse_html_table(sample_page())
        lecture = result.scheduled[0]

        self.assertEqual(lecture.subject, "ACCT")
        self.assertEqual(lecture.course, "001")
        self.assertEqual(lecture.title, "Financial Accounting")
        self.assertEqual(lecture.instructor, "Smith, Jane")
        self.assertEqual(lecture.units, 3.0)
        self.assertEqual(lecture.days, "MWF")
        self.assertEqual(lecture.disp_time, "9:00am - 9:50am")
        self.assertEqual((lecture.start_min, lecture.end_min), (540, 590))
        self.assertEqual(lecture.location, "BLDG 101")
        self.assertEqual(lecture.campus, "Main")
        self.assertEqual((lecture.capacity, lecture.actual, lecture.remaining), (30, 10, 20))
        self.assertEqual((lecture.wait_cap, lecture.wait_act), (10, 0))
        self.assertFalse(lecture.is_continuation)
        self.assertEqual(lecture.color, color_for("12345"))
        self.assertTrue(lecture.bg.startswith("hsla("))
        self.assertTrue(lecture.bg.endswith(", 0.22)"))

    def test_waitlist_remaining_shares_instructor_cell(self) -> None:
        # column 20 holds the instructor name, so remaining = cap - actual
        result = parse_html_table(sample_page())
        self.assertEqual(result.scheduled[0].wait_rem, 10)
        biol = result.scheduled[2]
        self.assertEqual(biol.wait_rem, 4)
        self.assertTrue(biol.is_full)

    def test_lab_row_inherits_lecture_identity(self) -> None:
        result = parse_html_table(sample_page())
        lecture, lab = result.scheduled[0], result.scheduled[1]

        self.assertTrue(lab.is_continuation)
        self.assertEqual(lab.crn, lecture.crn)
        self.assertEqual(lab.instructor, lecture.instructor)
        self.assertEqual(lab.color, lecture.color)
        self.assertEqual(lab.bg, lecture.bg)
        self.assertEqual(lab.subject, "ACCT")
        self.assertEqual(lab.course, "001")
        self.assertEqual(lab.days, "T")
        self.assertEqual((lab.start_min, lab.end_min), (840, 1010))
        self.assertEqual(lab.location, "LAB 5")
        self.assertEqual(lab.units, 0)
        self.assertEqual((lab.capacity, lab.remaining, lab.wait_cap, lab.wait_rem), (0, 0, 0, 0))

    def test_course_header_suffix_and_padding(self) -> None:
        result = parse_html_table(sample_page())
        biol = result.scheduled[2]
        self.assertEqual(biol.subject, "BIOL")
        self.assertEqual(biol.course, "010")
        self.assertEqual(biol.title, "General Biology")

    def test_lab_row_without_lecture_is_dropped(self) -> None:
        html = page(subject_header("ACCT - Accounting"), course_header("ACCT 1 - Intro"), lab_row(), primary_row("1"))
        result = parse_html_table(html)
        self.assertEqual([c.crn for c in result.scheduled], ["1"])
        self.assertFalse(result.scheduled[0].is_continuation)
        self.assertEqual(result.skipped, 1)

    def test_unparsable_time_drops_row(self) -> None:
        html = page(course_header("ACCT 1 - Intro"), primary_row("1", time="TBD"))
        result = parse_html_table(html)
        self.assertEqual(result.scheduled, [])
        self.assertEqual(result.online, [])
        self.assertEqual(result.skipped, 1)

    def test_dropped_lecture_still_feeds_lab_rows(self) -> None:
        html = page(course_header("ACCT 1 - Intro"), primary_row("777", time="TBA"), lab_row(days="R"))
        result = parse_html_table(html)
        self.assertEqual(len(result.scheduled), 1)
        self.assertEqual(result.scheduled[0].crn, "777")
        self.assertTrue(result.scheduled[0].is_continuation)

    def test_online_classification(self) -> None:
        html = page(
            course_header("ACCT 1 - Intro"),
            primary_row("1", days="", location="ONLINE SECTION"),
            primary_row("2", days="MWF", location="BLDG 1"),
            primary_row("3", days="TR", location="Online - synchronous"),
        )
        result = parse_html_table(html)
        self.assertEqual([c.crn for c in result.online], ["1", "3"])
        self.assertEqual([c.crn for c in result.scheduled], ["2"])

    def test_basic_mode_ignores_enrollment(self) -> None:
        result = parse_html_table(sample_page(), basic_mode=True)
        for c in result.scheduled + result.online:
            self.assertEqual(
                (c.capacity, c.actual, c.remaining, c.wait_cap, c.wait_act, c.wait_rem),
                (0, 0, 0, 0, 0, 0),
            )
        self.assertEqual(result.scheduled[0].units, 3.0)

    def test_short_rows_are_ignored(self) -> None:
        html = page("<tr><td>a</td><td>b</td></tr>", course_header("ACCT 1 - Intro"), primary_row("1"))
        result = parse_html_table(html)
        self.assertEqual(len(result.scheduled), 1)
        self.assertEqual(result.skipped, 0)

    def test_non_numeric_units_become_zero(self) -> None:
        html = page(course_header("ACCT 1 - Intro"), primary_row("1", units="TBA"))
        result = parse_html_table(html)
        self.assertEqual(result.scheduled[0].units, 0)

    def test_progress_callback(self) -> None:
        rows = [course_header("ACCT 1 - Intro")] + [primary_row(str(i)) for i in range(450)]
        calls = []
        parse_html_table(page(*rows), progress=lambda done, total: calls.append((done, total)))
        self.assertEqual(calls, [(200, 451), (400, 451)])


class TestProcessRow(unittest.TestCase):
    def test_subject_header_updates_state(self) -> None:
        state, section, skipped = process_row(_row(subject_header("CHEM - Chemistry")), ScanState())
        self.assertEqual(state.subject, "CHEM")
        self.assertIsNone(section)
        self.assertFalse(skipped)

    def test_primary_row_records_last_primary(self) -> None:
        state, section, _ = process_row(_row(primary_row("5555")), ScanState(subject="X", course="001"))
        self.assertEqual(state.last_crn, "5555")
        self.assertEqual(state.last_instructor, "Smith, Jane")
        self.assertIsNotNone(section)

    def test_continuation_without_context_is_skipped(self) -> None:
        state, section, skipped = process_row(_row(lab_row()), ScanState())
        self.assertEqual(state, ScanState())
        self.assertIsNone(section)
        self.assertTrue(skipped)

    def test_offsets_shift_by_two_for_lab_rows(self) -> None:
        self.assertEqual(PRIMARY_OFFSETS.days - CONTINUATION_OFFSETS.days, 2)
        self.assertEqual(PRIMARY_OFFSETS.time - CONTINUATION_OFFSETS.time, 2)
        self.assertEqual(PRIMARY_OFFSETS.location - CONTINUATION_OFFSETS.location, 2)
        self.assertEqual(PRIMARY_OFFSETS.campus - CONTINUATION_OFFSETS.campus, 2)


class TestLoadTableHtml(unittest.TestCase):
    def test_extracts_table(self) -> None:
        table_html = load_table_html(sample_page())
        self.assertTrue(table_html.startswith('<table class="dataentrytable">'))
        self.assertNotIn("Class Schedule", table_html)
        self.assertEqual(len(parse_html_table(table_html).scheduled), 3)

    def test_missing_table(self) -> None:
        with self.assertRaises(ParseError):
            load_table_html("<p>nothing</p>")


if __name__ == "__main__":
    unittest.main()
