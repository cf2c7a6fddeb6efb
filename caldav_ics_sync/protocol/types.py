"""
Core protocol types for the Sans-I/O CalDAV layer.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation.
"""

from dataclasses import dataclass, field
from enum import Enum


class DAVMethod(Enum):
    """HTTP methods used by the sync pipelines."""

    GET = "GET"
    PUT = "PUT"
    PROPFIND = "PROPFIND"
    REPORT = "REPORT"


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, REPORT)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes (optional)
    """

    method: DAVMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def with_url(self, url: str) -> "DAVRequest":
        """Return the same request aimed at another URL."""
        return DAVRequest(
            method=self.method,
            url=url,
            headers=self.headers,
            body=self.body,
        )


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        headers: HTTP headers as dict
        body: Response body as bytes
    """

    status: int
    headers: dict[str, str]
    body: bytes
    reason: str = ""

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        charset = "utf-8"
        content_type = self.headers.get("Content-Type") or self.headers.get(
            "content-type", ""
        )
        if "charset=" in content_type:
            charset = content_type.split("charset=", 1)[1].split(";")[0].strip(' "')
        try:
            return self.body.decode(charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")
