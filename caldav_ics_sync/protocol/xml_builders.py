"""
Pure functions for building CalDAV XML request bodies.

Both bodies are fixed: the sync engine always asks for the same
properties, so there is nothing to parametrize.
"""
from caldav_ics_sync.elements import cdav
from caldav_ics_sync.elements import dav


def build_propfind_body() -> bytes:
    """
    Build the PROPFIND body used for calendar discovery.

    Asks for resourcetype, displayname and
    supported-calendar-component-set of the collection and its members.

    Returns:
        UTF-8 encoded XML bytes
    """
    prop = dav.Prop() + [
        dav.ResourceType(),
        dav.DisplayName(),
        cdav.SupportedCalendarComponentSet(),
    ]
    return (dav.Propfind() + prop).tobytes()


def build_calendar_query_body() -> bytes:
    """
    Build the calendar-query REPORT body used to fetch events.

    Requests getetag and calendar-data for every object having a VEVENT
    inside its VCALENDAR.  No time range, the whole collection is
    fetched.

    Returns:
        UTF-8 encoded XML bytes
    """
    prop = dav.Prop() + [dav.GetEtag(), cdav.CalendarData()]
    vcalendar = cdav.CompFilter("VCALENDAR") + cdav.CompFilter("VEVENT")
    root = cdav.CalendarQuery() + [prop, cdav.Filter() + vcalendar]
    return root.tobytes()
