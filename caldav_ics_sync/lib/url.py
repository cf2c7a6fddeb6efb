#!/usr/bin/env python
"""
URL helpers for the sync pipelines.

CalDAV servers are inconsistent about trailing slashes and about
returning absolute versus server-relative hrefs.  The helpers in here
take care of that without touching anything else in the URL.
"""
from urllib.parse import quote
from urllib.parse import urlsplit
from urllib.parse import urlunsplit


def toggle_trailing_slash(url: str) -> str:
    """
    Some servers only answer PROPFIND on ``/cal/`` and others only on
    ``/cal`` - returns the other variant of the given URL.
    """
    if url.endswith("/"):
        return url[:-1]
    return url + "/"


def resolve_calendar_url(base_url: str, calendar_path: str) -> str:
    """
    Turn an href from a multistatus response into a full URL.

    Anything starting with ``http`` is taken as-is.  Other hrefs are
    server-relative and borrow scheme, host and port from the base URL
    (credentials embedded in the base URL are not carried over).
    """
    if calendar_path.startswith("http"):
        return calendar_path
    parsed = urlsplit(base_url)
    if not parsed.scheme or not parsed.hostname:
        raise ValueError("%s can't be used to resolve %s" % (base_url, calendar_path))
    netloc = parsed.hostname
    if ":" in netloc:
        ## IPv6 literal
        netloc = "[%s]" % netloc
    if parsed.port:
        netloc = "%s:%i" % (netloc, parsed.port)
    if not calendar_path.startswith("/"):
        calendar_path = "/" + calendar_path
    return urlunsplit((parsed.scheme, netloc, calendar_path, "", ""))


def collection_base(caldav_url: str, calendar_name: str) -> str:
    """
    The URL events of a destination are stored below, always with a
    trailing slash.

    >>> collection_base("https://host/cal/team/", "team")
    'https://host/cal/team/'
    >>> collection_base("https://host/cal", "team")
    'https://host/cal/team/'
    """
    normalized = caldav_url.rstrip("/")
    if normalized.endswith(calendar_name):
        return normalized + "/"
    return "%s/%s/" % (normalized, calendar_name)


def event_url(base: str, uid: str) -> str:
    ## "@" is common in UIDs and harmless in a path segment, "/" is not.
    return "%s%s.ics" % (base, quote(uid, safe="@"))
