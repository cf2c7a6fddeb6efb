#!/usr/bin/env python
"""
Line based handling of iCalendar text.

Events are not parsed semantically.  A VEVENT is the opaque run of
lines from ``BEGIN:VEVENT`` to ``END:VEVENT``; the only property looked
at is ``UID``.  That keeps vendor extensions, VALARMs and whatever else
the server put into the component intact when it is copied around.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional

CRLF = "\r\n"

FORWARD_PRODID = "-//CalDAV to ICS//EN"
REVERSE_PRODID = "-//CalDAV/ICS Sync//EN"


@dataclass(frozen=True)
class VEvent:
    text: str
    uid: Optional[str] = None


class ScanState(Enum):
    OUTSIDE = "outside"
    INSIDE_VEVENT = "inside-vevent"


class VEventScanner:
    """
    Two state scanner over the lines of one or more ics documents.

    Every line inside a block gets a CRLF terminator, no matter what
    the input used.  A block is only emitted once its END line is seen,
    so a truncated document loses its last event silently.  A second
    BEGIN:VEVENT before the END starts the block over.
    """

    def __init__(self) -> None:
        self.state = ScanState.OUTSIDE
        self._buffer: List[str] = []
        self._uid: Optional[str] = None

    def feed_line(self, line: str) -> Optional[VEvent]:
        if line.startswith("BEGIN:VEVENT"):
            self.state = ScanState.INSIDE_VEVENT
            self._buffer = []
            self._uid = None

        if self.state is not ScanState.INSIDE_VEVENT:
            return None

        self._buffer.append(line + CRLF)
        if line.startswith("UID:"):
            self._uid = line[len("UID:") :].strip()

        if line.startswith("END:VEVENT"):
            event = VEvent(text="".join(self._buffer), uid=self._uid or None)
            self.reset()
            return event
        return None

    def feed(self, text: str) -> Iterator[VEvent]:
        for line in split_lines(text):
            event = self.feed_line(line)
            if event is not None:
                yield event
        ## whatever is still open belongs to an unterminated block
        self.reset()

    def reset(self) -> None:
        self.state = ScanState.OUTSIDE
        self._buffer = []
        self._uid = None


def split_lines(text: str) -> Iterator[str]:
    """Split on LF, dropping one CR before it."""
    if not text:
        return
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    for line in lines:
        if line.endswith("\r"):
            line = line[:-1]
        yield line


def extract_events(text: str) -> List[VEvent]:
    return list(VEventScanner().feed(text))


def extract_uid_events(text: str) -> List[VEvent]:
    """Only the events that carry a UID, the others can't be addressed."""
    return [ev for ev in extract_events(text) if ev.uid]


def combine_events(events: Iterable[VEvent], prodid: str = FORWARD_PRODID) -> str:
    parts = [
        "BEGIN:VCALENDAR" + CRLF,
        "VERSION:2.0" + CRLF,
        "PRODID:%s" % prodid + CRLF,
        "CALSCALE:GREGORIAN" + CRLF,
        "METHOD:PUBLISH" + CRLF,
    ]
    parts.extend(ev.text for ev in events)
    parts.append("END:VCALENDAR" + CRLF)
    return "".join(parts)


def wrap_event(event: VEvent, prodid: str = REVERSE_PRODID) -> str:
    ## The block already ends with CRLF, servers accept the empty line
    return (
        "BEGIN:VCALENDAR" + CRLF
        + "VERSION:2.0" + CRLF
        + "PRODID:%s" % prodid + CRLF
        + event.text + CRLF
        + "END:VCALENDAR" + CRLF
    )
