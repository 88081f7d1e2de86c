"""
Unit tests for the application state owner.

Every action swaps in a new AppState value; a failed action leaves the
previous value in place.
"""

import unittest

from html_fixtures import sample_page
from schedulebuilder.errors import EmptySelectionError, ParseError
from schedulebuilder.model import ParseResult
from schedulebuilder.state import ScheduleBuilder


class TestImport(unittest.TestCase):
    def test_import_installs_catalog(self) -> None:
        builder = ScheduleBuilder()
        steps = []
        result = builder.import_html(sample_page(), progress=lambda pct, text: steps.append(pct))

        col = builder.state.collections
        self.assertEqual(len(col.all_courses), 3)
        self.assertEqual(len(col.online_courses), 1)
        self.assertEqual(col.my_schedule, ())
        self.assertEqual(builder.state.index.subjects, {"ACCT", "BIOL"})
        self.assertEqual(result.skipped, 0)
        self.assertEqual(steps[0], 0)
        self.assertEqual(steps[-1], 100)
        self.assertEqual(steps, sorted(steps))

    def test_parse_error_keeps_previous_state(self) -> None:
        builder = ScheduleBuilder()
        builder.import_html(sample_page())
        before = builder.state
        with self.assertRaises(ParseError):
            builder.import_html("<p>no table here</p>")
        self.assertIs(builder.state, before)

    def test_stale_import_is_discarded(self) -> None:
        builder = ScheduleBuilder()
        first = builder.begin_import()
        second = builder.begin_import()

        self.assertTrue(builder.finish_import(second, ParseResult()))
        installed = builder.state
        self.assertFalse(builder.finish_import(first, ParseResult(skipped=5)))
        self.assertIs(builder.state, installed)

    def test_empty_subject_selection(self) -> None:
        builder = ScheduleBuilder()
        builder.import_html(sample_page())
        before = builder.state
        with self.assertRaises(EmptySelectionError):
            builder.complete_import([])
        self.assertIs(builder.state, before)

    def test_subject_selection_is_normalized(self) -> None:
        builder = ScheduleBuilder()
        builder.import_html(sample_page())
        builder.complete_import([" acct ", "MATH"])
        self.assertEqual(builder.state.filters.subject_allow, {"ACCT"})
        self.assertEqual({c.crn for c in builder.available()}, {"12345"})

    def test_unknown_subjects_only(self) -> None:
        builder = ScheduleBuilder()
        builder.import_html(sample_page())
        before = builder.state
        with self.assertRaises(EmptySelectionError):
            builder.complete_import(["MATH", "  "])
        self.assertIs(builder.state, before)

    def test_subject_selection_sets_filter(self) -> None:
        builder = ScheduleBuilder()
        builder.import_html(sample_page())
        builder.complete_import(["BIOL"])
        self.assertEqual(builder.state.filters.subject_allow, {"BIOL"})


class TestScheduleActions(unittest.TestCase):
    def setUp(self) -> None:
        self.builder = ScheduleBuilder()
        self.builder.import_html(sample_page())

    def test_add_and_remove(self) -> None:
        self.assertEqual(self.builder.add("12345"), 2)
        self.assertEqual(self.builder.add("12345"), 0)
        self.assertEqual(len(self.builder.state.collections.my_schedule), 2)
        self.assertEqual(self.builder.total_units(), 3.0)

        self.assertEqual(self.builder.remove("12345"), 2)
        self.assertEqual(self.builder.state.collections.my_schedule, ())

    def test_add_replaces_state_value(self) -> None:
        before = self.builder.state
        self.builder.add("12345")
        self.assertIsNot(self.builder.state, before)
        self.assertEqual(before.collections.my_schedule, ())

    def test_request_add_for_scheduled_crn(self) -> None:
        self.builder.add("12345")
        self.assertEqual(self.builder.request_add("12345"), [])

    def test_request_add_reports_conflicts(self) -> None:
        self.builder.add("22222")
        # the ACCT lab (T 2:00pm) does not hit BIOL (TR 9:30am)
        self.assertEqual(self.builder.request_add("12345"), [])

    def test_available_hides_scheduled_and_full(self) -> None:
        crns = {c.crn for c in self.builder.available()}
        # BIOL 22222 is full
        self.assertEqual(crns, {"12345"})
        self.builder.set_flag("show_full_classes", True)
        self.assertEqual({c.crn for c in self.builder.available()}, {"12345", "22222"})
        self.builder.add("12345")
        self.assertEqual({c.crn for c in self.builder.available()}, {"22222"})

    def test_online_visibility(self) -> None:
        self.assertEqual(self.builder.available_online(), [])
        self.builder.set_flag("show_online", True)
        self.assertEqual([c.crn for c in self.builder.available_online()], ["12346"])
        self.assertTrue(self.builder.add_online("12346"))
        self.assertFalse(self.builder.add_online("12346"))
        self.assertEqual(self.builder.available_online(), [])
        self.assertTrue(self.builder.remove_online("12346"))

    def test_layouts_share_window(self) -> None:
        self.builder.add("12345")
        schedule = self.builder.layout("schedule")
        available = self.builder.layout("available")
        self.assertEqual(schedule.window, available.window)
        self.assertEqual(len(schedule.columns["M"]), 1)
        self.assertEqual(len(schedule.columns["T"]), 1)
        with self.assertRaises(ValueError):
            self.builder.layout("calendar")

    def test_reset_filters_keeps_online_toggle(self) -> None:
        self.builder.set_flag("show_online", True)
        self.builder.toggle_filter("subject", "ACCT")
        self.builder.reset_filters()
        self.assertTrue(self.builder.state.filters.show_online)
        self.assertEqual(self.builder.state.filters.subject_allow, frozenset())


if __name__ == "__main__":
    unittest.main()
