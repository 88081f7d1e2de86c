"""
Unit tests for time parsing, day sets and section colors.

- "H:MM AM/PM" -> minutes since midnight, anything else -> None
- unknown day letters are ignored
- one CRN always maps to one color
"""

import unittest

from schedulebuilder.timeutil import (
    background_for,
    color_for,
    format_minutes,
    parse_day_set,
    parse_display_time,
)


class TestDisplayTime(unittest.TestCase):
    def test_examples(self) -> None:
        self.assertEqual(parse_display_time("9:00 AM"), 540)
        self.assertEqual(parse_display_time("12:00 PM"), 720)
        self.assertEqual(parse_display_time("12:30 AM"), 30)
        self.assertEqual(parse_display_time("1:15pm"), 795)
        self.assertEqual(parse_display_time(" 11:59 pm "), 1439)

    def test_mismatch_returns_none(self) -> None:
        for text in ("", "TBD", "9 AM", "9:00", "09:5 AM", "9:00 XM"):
            self.assertIsNone(parse_display_time(text), text)

    def test_format_roundtrip(self) -> None:
        for m in range(0, 1440):
            self.assertEqual(parse_display_time(format_minutes(m)), m)

    def test_format_examples(self) -> None:
        self.assertEqual(format_minutes(0), "12:00 AM")
        self.assertEqual(format_minutes(540), "9:00 AM")
        self.assertEqual(format_minutes(780), "1:00 PM")


class TestDaySet(unittest.TestCase):
    def test_letters(self) -> None:
        self.assertEqual(parse_day_set("TR"), {"T", "R"})
        self.assertEqual(parse_day_set("M W F"), {"M", "W", "F"})

    def test_garbage_degrades(self) -> None:
        self.assertEqual(parse_day_set(""), set())
        self.assertEqual(parse_day_set("Sa Su"), set())
        self.assertEqual(parse_day_set("MxQ"), {"M"})


class TestColor(unittest.TestCase):
    def test_same_id_same_color(self) -> None:
        self.assertEqual(color_for("12345"), color_for("12345"))

    def test_hash_values(self) -> None:
        self.assertEqual(color_for(""), "hsl(0, 65%, 55%)")
        self.assertEqual(color_for("A"), "hsl(65, 65%, 55%)")
        # (65 * 131 + 66) % 360
        self.assertEqual(color_for("AB"), "hsl(301, 65%, 55%)")

    def test_background_same_hue(self) -> None:
        self.assertEqual(background_for("hsl(65, 65%, 55%)"), "hsla(65, 65%, 55%, 0.22)")


if __name__ == "__main__":
    unittest.main()
