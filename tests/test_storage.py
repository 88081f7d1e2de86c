"""
Unit tests for local storage of the imported catalog and schedule.

Storage contract:
- Missing/invalid/stale file -> None
- Sets are written as sorted arrays and rebuilt as sets on load
- A snapshot without scheduled sections is treated as absent
"""

import json
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path

from html_fixtures import sample_page
from schedulebuilder.state import AppState, ScheduleBuilder
from schedulebuilder.storage import MAX_AGE_SECONDS, clear_state, load_state, save_state

NOW = 1_700_000_000.0


def _imported_state() -> AppState:
    builder = ScheduleBuilder()
    builder.import_html(sample_page())
    builder.complete_import(["ACCT"])
    builder.add("12345")
    builder.add_online("12346")
    builder.set_flag("show_online", True)
    builder.set_light_mode(True)
    return builder.state


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "missing.json"
            self.assertIsNone(load_state(p))

    def test_save_and_load_roundtrip(self) -> None:
        state = _imported_state()
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "state.json"
            save_state(state, p, now=NOW)
            loaded = load_state(p, now=NOW + 60)

            self.assertIsNotNone(loaded)
            self.assertEqual(loaded.collections, state.collections)
            self.assertEqual(loaded.index, state.index)
            self.assertEqual(loaded.filters, state.filters)
            self.assertTrue(loaded.light_mode)
            self.assertIsInstance(loaded.index.subjects, set)
            self.assertIsInstance(loaded.filters.subject_allow, frozenset)

    def test_skipped_row_count_survives_reload(self) -> None:
        state = replace(_imported_state(), skipped_rows=4)
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(state, p, now=NOW)
            self.assertEqual(load_state(p, now=NOW).skipped_rows, 4)

            # older snapshots have no count
            data = json.loads(p.read_text(encoding="utf-8"))
            del data["skippedRows"]
            p.write_text(json.dumps(data), encoding="utf-8")
            self.assertEqual(load_state(p, now=NOW).skipped_rows, 0)

    def test_sets_are_sorted_arrays(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(_imported_state(), p, now=NOW)
            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertEqual(data["subjects"], ["ACCT", "BIOL"])
            self.assertEqual(data["filters"]["subjectAllow"], ["ACCT"])
            self.assertEqual(data["timestamp"], int(NOW * 1000))
            self.assertEqual([entry[0] for entry in data["subjectData"]], ["ACCT", "BIOL"])
            self.assertEqual(data["mySchedule"][0]["CRN"], "12345")

    def test_stale_snapshot_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(_imported_state(), p, now=NOW)
            self.assertIsNone(load_state(p, now=NOW + MAX_AGE_SECONDS))
            self.assertIsNotNone(load_state(p, now=NOW + MAX_AGE_SECONDS - 1))

    def test_corrupt_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            p.write_text("{not json", encoding="utf-8")
            self.assertIsNone(load_state(p))
            p.write_text("[1, 2, 3]", encoding="utf-8")
            self.assertIsNone(load_state(p))

    def test_empty_catalog_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(AppState(), p, now=NOW)
            self.assertIsNone(load_state(p, now=NOW))

    def test_clear_state(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(_imported_state(), p, now=NOW)
            clear_state(p)
            self.assertFalse(p.exists())
            # clearing twice is fine
            clear_state(p)


if __name__ == "__main__":
    unittest.main()
