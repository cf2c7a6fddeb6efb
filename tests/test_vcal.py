#!/usr/bin/env python
from unittest import TestCase

import icalendar

from caldav_ics_sync.lib import vcal
from caldav_ics_sync.lib.vcal import VEvent
from caldav_ics_sync.lib.vcal import VEventScanner
from caldav_ics_sync.lib.vcal import combine_events
from caldav_ics_sync.lib.vcal import extract_events
from caldav_ics_sync.lib.vcal import extract_uid_events
from caldav_ics_sync.lib.vcal import wrap_event

from fixture_helpers import make_calendar
from fixture_helpers import make_vevent

# example from http://www.rfc-editor.org/rfc/rfc5545.txt, with an alarm
ev = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp.//CalDAV Client//EN
BEGIN:VTIMEZONE
TZID:Europe/Oslo
BEGIN:STANDARD
DTSTART:19701025T030000
TZOFFSETFROM:+0200
TZOFFSETTO:+0100
END:STANDARD
END:VTIMEZONE
BEGIN:VEVENT
UID:19970901T130000Z-123403@example.com
DTSTAMP:19970901T130000Z
DTSTART;VALUE=DATE:19971102
SUMMARY:Our Blissful Anniversary
X-VENDOR-THING:kept as is
RRULE:FREQ=YEARLY
BEGIN:VALARM
ACTION:DISPLAY
DESCRIPTION:Reminder
TRIGGER:-PT15M
END:VALARM
END:VEVENT
BEGIN:VTODO
UID:todo-1
SUMMARY:Not an event
END:VTODO
END:VCALENDAR
"""


class TestScanner(TestCase):
    def test_terminated_blocks_are_emitted(self):
        ## M terminated blocks plus J unterminated ones yield exactly M
        text = make_calendar(make_vevent("a"), make_vevent("b"), make_vevent("c"))
        text += "BEGIN:VEVENT\r\nUID:d\r\nSUMMARY:cut off\r\n"
        events = extract_events(text)
        self.assertEqual([e.uid for e in events], ["a", "b", "c"])

    def test_unterminated_only(self):
        self.assertEqual(extract_events("BEGIN:VEVENT\nUID:x\nSUMMARY:y\n"), [])

    def test_empty_input(self):
        self.assertEqual(extract_events(""), [])
        self.assertEqual(extract_events("BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"), [])

    def test_block_is_kept_verbatim(self):
        events = extract_events(ev)
        self.assertEqual(len(events), 1)
        text = events[0].text
        self.assertTrue(text.startswith("BEGIN:VEVENT\r\n"))
        self.assertTrue(text.endswith("END:VEVENT\r\n"))
        self.assertIn("X-VENDOR-THING:kept as is\r\n", text)
        self.assertIn("BEGIN:VALARM\r\n", text)
        self.assertNotIn("VTODO", text)
        self.assertNotIn("VTIMEZONE", text)
        self.assertEqual(events[0].uid, "19970901T130000Z-123403@example.com")

    def test_line_endings_are_normalized(self):
        lf = make_calendar(make_vevent("a"), newline="\n")
        crlf = make_calendar(make_vevent("a"), newline="\r\n")
        self.assertEqual(extract_events(lf), extract_events(crlf))
        text = extract_events(lf)[0].text
        self.assertEqual(text.count("\r\n"), text.count("\n"))

    def test_missing_uid(self):
        events = extract_events(make_calendar(make_vevent("")))
        self.assertEqual(len(events), 1)
        self.assertIsNone(events[0].uid)

    def test_uid_is_stripped(self):
        events = extract_events("BEGIN:VEVENT\r\nUID:  abc  \r\nEND:VEVENT\r\n")
        self.assertEqual(events[0].uid, "abc")

    def test_empty_uid_counts_as_missing(self):
        events = extract_events("BEGIN:VEVENT\r\nUID:\r\nEND:VEVENT\r\n")
        self.assertIsNone(events[0].uid)

    def test_nested_begin_starts_over(self):
        text = (
            "BEGIN:VEVENT\r\nUID:first\r\nSUMMARY:lost\r\n"
            "BEGIN:VEVENT\r\nUID:second\r\nEND:VEVENT\r\n"
        )
        events = extract_events(text)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].uid, "second")
        self.assertNotIn("lost", events[0].text)

    def test_buffer_is_fresh_per_document(self):
        scanner = VEventScanner()
        self.assertEqual(list(scanner.feed("BEGIN:VEVENT\r\nUID:open\r\n")), [])
        self.assertIs(scanner.state, vcal.ScanState.OUTSIDE)
        events = list(scanner.feed("SUMMARY:x\r\nEND:VEVENT\r\n"))
        self.assertEqual(events, [])

    def test_uid_events(self):
        text = make_calendar(make_vevent("a"), make_vevent(""), make_vevent("b"))
        self.assertEqual([e.uid for e in extract_uid_events(text)], ["a", "b"])


class TestCombine(TestCase):
    def test_zero_events(self):
        self.assertEqual(
            combine_events([]),
            "BEGIN:VCALENDAR\r\n"
            "VERSION:2.0\r\n"
            "PRODID:-//CalDAV to ICS//EN\r\n"
            "CALSCALE:GREGORIAN\r\n"
            "METHOD:PUBLISH\r\n"
            "END:VCALENDAR\r\n",
        )

    def test_order_and_determinism(self):
        events = extract_events(make_calendar(make_vevent("1"), make_vevent("2")))
        combined = combine_events(events)
        self.assertEqual(combined, combine_events(events))
        self.assertLess(combined.index("UID:1"), combined.index("UID:2"))
        self.assertEqual(combined.count("BEGIN:VEVENT"), 2)
        self.assertTrue(combined.endswith("END:VEVENT\r\nEND:VCALENDAR\r\n"))

    def test_combined_output_parses(self):
        events = extract_events(ev) + extract_events(
            make_calendar(make_vevent("x", summary="Other"))
        )
        cal = icalendar.Calendar.from_ical(combine_events(events))
        self.assertEqual(str(cal["PRODID"]), vcal.FORWARD_PRODID)
        uids = [str(c["UID"]) for c in cal.walk("VEVENT")]
        self.assertEqual(uids, ["19970901T130000Z-123403@example.com", "x"])


class TestWrap(TestCase):
    def test_wrap_event(self):
        event = VEvent(text="BEGIN:VEVENT\r\nUID:u\r\nEND:VEVENT\r\n", uid="u")
        self.assertEqual(
            wrap_event(event),
            "BEGIN:VCALENDAR\r\n"
            "VERSION:2.0\r\n"
            "PRODID:-//CalDAV/ICS Sync//EN\r\n"
            "BEGIN:VEVENT\r\nUID:u\r\nEND:VEVENT\r\n"
            "\r\n"
            "END:VCALENDAR\r\n",
        )

    def test_wrapped_event_parses(self):
        event = extract_uid_events(ev)[0]
        cal = icalendar.Calendar.from_ical(wrap_event(event))
        (vevent,) = cal.walk("VEVENT")
        self.assertEqual(str(vevent["SUMMARY"]), "Our Blissful Anniversary")
