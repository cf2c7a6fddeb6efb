"""
ICS to CalDAV: upload every event of an ics feed into one collection.

Each event is PUT to ``<collection>/<UID>.ics``.  Running the upload
again overwrites the same resources, which is what makes retrying a
whole run safe.  Events removed from the feed are not deleted on the
server.
"""

import logging
from dataclasses import dataclass

from caldav_ics_sync.io.base import AsyncIOProtocol
from caldav_ics_sync.lib import error
from caldav_ics_sync.lib.url import collection_base, event_url
from caldav_ics_sync.lib.vcal import extract_uid_events, wrap_event
from caldav_ics_sync.protocol import CalDAVProtocol

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReverseSyncResult:
    uploaded: int
    total: int

    def __str__(self) -> str:
        return "uploaded %i of %i events" % (self.uploaded, self.total)


async def fetch_feed(io: AsyncIOProtocol, ics_url: str) -> str:
    """GET the feed without credentials and return its text."""
    anonymous = CalDAVProtocol()
    try:
        response = await io.execute(anonymous.get_request(ics_url))
    except error.TransportError as err:
        raise error.FetchError(ics_url, "Failed to fetch ICS file: %s" % err.reason) from err
    if not response.ok:
        error.weirdness("GET %s returned %i" % (ics_url, response.status))
    return response.text


async def run_reverse_sync(
    io: AsyncIOProtocol,
    ics_url: str,
    caldav_url: str,
    calendar_name: str,
    username: str,
    password: str,
    sync_all: bool = False,
    keep_local: bool = False,
) -> ReverseSyncResult:
    """
    Upload the events of ``ics_url`` to ``calendar_name`` at ``caldav_url``.

    Events without a UID are skipped and not counted.  All events are
    attempted even if some fail; if any failed, UploadError is raised
    after the last one, carrying both counts.

    ``sync_all`` and ``keep_local`` are accepted for the callers'
    benefit and currently have no effect.
    """
    ics_text = await fetch_feed(io, ics_url)
    events = extract_uid_events(ics_text)

    protocol = CalDAVProtocol(username=username, password=password)
    base = collection_base(caldav_url, calendar_name)

    uploaded = 0
    errors = 0
    for event in events:
        url = event_url(base, event.uid)
        request = protocol.put_request(url, wrap_event(event).encode("utf-8"))
        try:
            response = await io.execute(request)
        except error.TransportError as err:
            log.error("PUT %s failed: %s", url, err.reason)
            errors += 1
            continue
        if response.ok:
            uploaded += 1
        else:
            log.warning("PUT %s returned %i %s", url, response.status, response.reason)
            errors += 1

    if errors:
        raise error.UploadError(base, uploaded=uploaded, failed=errors)

    return ReverseSyncResult(uploaded=uploaded, total=len(events))
