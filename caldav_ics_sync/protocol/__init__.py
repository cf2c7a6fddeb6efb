"""
Sans-I/O CalDAV protocol layer.

This package builds requests and parses responses as pure data
transformations, the network is handled by caldav_ics_sync.io.

- types: DAVRequest, DAVResponse, DAVMethod
- xml_builders: the fixed PROPFIND and calendar-query bodies
- xml_parsers: calendar hrefs and calendar-data out of multistatus XML
- operations: CalDAVProtocol combining builders, parsers and Basic auth

Example usage:

    from caldav_ics_sync.protocol import CalDAVProtocol

    protocol = CalDAVProtocol(username="user", password="secret")
    request = protocol.propfind_request("https://cal.example.com/dav/")
    response = await io.execute(request)
    hrefs = protocol.parse_propfind(response)
"""

from .types import DAVMethod, DAVRequest, DAVResponse
from .xml_builders import build_calendar_query_body, build_propfind_body
from .xml_parsers import parse_calendar_data, parse_calendar_hrefs
from .operations import CalDAVProtocol

__all__ = [
    "DAVMethod",
    "DAVRequest",
    "DAVResponse",
    "build_calendar_query_body",
    "build_propfind_body",
    "parse_calendar_data",
    "parse_calendar_hrefs",
    "CalDAVProtocol",
]
