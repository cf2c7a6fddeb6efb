"""
I/O layer for the sync engine.

The I/O layer is intentionally thin - it only handles HTTP transport.
All protocol logic (XML building/parsing) is in caldav_ics_sync.protocol.

Example:
    from caldav_ics_sync.protocol import CalDAVProtocol
    from caldav_ics_sync.io import AsyncIO

    protocol = CalDAVProtocol(username="user", password="secret")
    async with AsyncIO() as io:
        request = protocol.propfind_request("https://cal.example.com/dav/")
        response = await io.execute(request)
        hrefs = protocol.parse_propfind(response)
"""

from .base import AsyncIOProtocol
from .async_ import AsyncIO

__all__ = [
    "AsyncIOProtocol",
    "AsyncIO",
]
