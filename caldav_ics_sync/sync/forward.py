"""
CalDAV to ICS: merge every calendar of a CalDAV account into one feed.
"""

import logging
from dataclasses import dataclass
from typing import List

from caldav_ics_sync.io.base import AsyncIOProtocol
from caldav_ics_sync.lib import error
from caldav_ics_sync.lib.url import resolve_calendar_url, toggle_trailing_slash
from caldav_ics_sync.lib.vcal import VEvent, VEventScanner, combine_events
from caldav_ics_sync.protocol import CalDAVProtocol

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceSyncResult:
    event_count: int
    calendar_count: int
    ics_data: str

    def __str__(self) -> str:
        return "%i events from %i calendars" % (self.event_count, self.calendar_count)


async def discover_calendars(
    io: AsyncIOProtocol, protocol: CalDAVProtocol, url: str
) -> List[str]:
    """
    PROPFIND the collection at ``url`` and return the hrefs of the
    calendars in it.

    Servers disagree on whether a collection URL ends with a slash, so
    a failed PROPFIND is repeated once with the slash toggled.
    """
    request = protocol.propfind_request(url)
    response = await io.execute(request)
    if not response.ok:
        retry_url = toggle_trailing_slash(url)
        log.info(
            "PROPFIND %s returned %i %s, retrying as %s",
            url,
            response.status,
            response.reason,
            retry_url,
        )
        response = await io.execute(request.with_url(retry_url))
        if not response.ok:
            raise error.PropfindError(
                retry_url, "PROPFIND returned %i %s" % (response.status, response.reason)
            )
        url = retry_url

    return protocol.parse_propfind(response, url=url)


async def fetch_events(
    io: AsyncIOProtocol, protocol: CalDAVProtocol, base_url: str, calendar_path: str
) -> List[str]:
    """
    REPORT one calendar and return its calendar objects as raw ics text.

    The status code is not checked, some servers answer a perfectly
    fine multistatus with odd codes.  Only unparsable bodies fail.
    """
    try:
        url = resolve_calendar_url(base_url, calendar_path)
    except ValueError as err:
        raise error.ReportError(calendar_path, str(err)) from err

    response = await io.execute(protocol.calendar_query_request(url))
    if not response.ok:
        error.weirdness("REPORT %s returned %i" % (url, response.status))
    return protocol.parse_calendar_query(response, url=url)


async def run_sync(
    io: AsyncIOProtocol, caldav_url: str, username: str, password: str
) -> SourceSyncResult:
    """
    Build the combined ics of every calendar below ``caldav_url``.

    A calendar that can't be fetched is skipped with a warning, the
    others still end up in the feed.  Discovery failures propagate.
    """
    protocol = CalDAVProtocol(username=username, password=password)

    calendar_paths = await discover_calendars(io, protocol, caldav_url)
    log.debug("found %i calendars at %s", len(calendar_paths), caldav_url)

    events: List[VEvent] = []
    for path in calendar_paths:
        try:
            documents = await fetch_events(io, protocol, caldav_url, path)
        except error.DAVError as err:
            log.warning("Skipping calendar %s: %s", path, err)
            continue
        for document in documents:
            events.extend(VEventScanner().feed(document))

    return SourceSyncResult(
        event_count=len(events),
        calendar_count=len(calendar_paths),
        ics_data=combine_events(events),
    )
