from datetime import datetime, timezone
from unittest import TestCase

from core.helper import as_utc, format_local, page_count, to_iso


class TestHelper(TestCase):
    def test_as_utc(self):
        naive = datetime(2026, 11, 15, 14, 0)
        self.assertEqual(as_utc(naive).tzinfo, timezone.utc)
        self.assertEqual(as_utc(naive).hour, 14)
        self.assertIsNone(as_utc(None))

    def test_to_iso(self):
        self.assertEqual(
            to_iso(datetime(2026, 11, 15, 14, 0)), "2026-11-15T14:00:00+00:00"
        )
        self.assertIsNone(to_iso(None))

    def test_format_local(self):
        value = datetime(2026, 11, 15, 14, 0, tzinfo=timezone.utc)
        self.assertEqual(
            format_local(value, tz="Asia/Kolkata"), "15 Nov 2026, 07:30 PM IST"
        )

    def test_page_count(self):
        self.assertEqual(page_count(0, 10), 0)
        self.assertEqual(page_count(10, 10), 1)
        self.assertEqual(page_count(11, 10), 2)
