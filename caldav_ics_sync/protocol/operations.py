"""
CalDAV protocol operations combining request building and response parsing.

This class provides a high-level interface to the requests the sync
pipelines make while remaining completely I/O-free.
"""

import base64
from typing import Dict, List, Optional

from .types import DAVMethod, DAVRequest, DAVResponse
from .xml_builders import build_calendar_query_body, build_propfind_body
from .xml_parsers import parse_calendar_data, parse_calendar_hrefs

ICS_CONTENT_TYPE = "text/calendar; charset=utf-8"
XML_CONTENT_TYPE = "application/xml; charset=utf-8"


class CalDAVProtocol:
    """
    Sans-I/O CalDAV protocol handler.

    Builds requests and parses responses without doing any I/O.  The
    credentials given are attached to every request as Basic auth.

    Example:
        protocol = CalDAVProtocol(username="user", password="secret")
        request = protocol.propfind_request("https://cal.example.com/dav/")
        response = await io.execute(request)
        hrefs = protocol.parse_propfind(response)
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.username = username
        self.password = password
        self._auth_header = self._build_auth_header(username, password)

    def _build_auth_header(
        self,
        username: Optional[str],
        password: Optional[str],
    ) -> Optional[str]:
        """Build Basic auth header if a username is given."""
        if username is None:
            return None
        credentials = f"{username}:{password or ''}"
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return f"Basic {encoded}"

    def _base_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        return headers

    # =========================================================================
    # Request builders
    # =========================================================================

    def propfind_request(self, url: str) -> DAVRequest:
        """
        Build the discovery PROPFIND with Depth 1.

        Args:
            url: Collection URL

        Returns:
            DAVRequest ready for execution
        """
        headers = {
            **self._base_headers(),
            "Content-Type": XML_CONTENT_TYPE,
            "Depth": "1",
        }
        return DAVRequest(
            method=DAVMethod.PROPFIND,
            url=url,
            headers=headers,
            body=build_propfind_body(),
        )

    def calendar_query_request(self, url: str) -> DAVRequest:
        """
        Build a calendar-query REPORT fetching all VEVENTs of a collection.

        Args:
            url: Calendar collection URL

        Returns:
            DAVRequest ready for execution
        """
        headers = {
            **self._base_headers(),
            "Content-Type": XML_CONTENT_TYPE,
            "Depth": "1",
        }
        return DAVRequest(
            method=DAVMethod.REPORT,
            url=url,
            headers=headers,
            body=build_calendar_query_body(),
        )

    def get_request(self, url: str) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.GET,
            url=url,
            headers=self._base_headers(),
        )

    def put_request(
        self,
        url: str,
        data: bytes,
        content_type: str = ICS_CONTENT_TYPE,
    ) -> DAVRequest:
        """
        Build a PUT request storing one calendar object.

        Args:
            url: Resource URL
            data: Resource content
            content_type: Content-Type header

        Returns:
            DAVRequest ready for execution
        """
        headers = self._base_headers()
        headers["Content-Type"] = content_type
        return DAVRequest(
            method=DAVMethod.PUT,
            url=url,
            headers=headers,
            body=data,
        )

    # =========================================================================
    # Response parsers
    # =========================================================================

    def parse_propfind(self, response: DAVResponse, url: Optional[str] = None) -> List[str]:
        """Hrefs of the calendar collections in a PROPFIND response."""
        return parse_calendar_hrefs(response.body, url=url)

    def parse_calendar_query(
        self, response: DAVResponse, url: Optional[str] = None
    ) -> List[str]:
        """Raw ics documents in a calendar-query response."""
        return parse_calendar_data(response.body, url=url)
