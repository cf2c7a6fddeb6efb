"""
Abstract I/O protocol definition.

This module defines the interface the sync pipelines expect from the
HTTP layer.
"""

from typing import Protocol, runtime_checkable

from caldav_ics_sync.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class AsyncIOProtocol(Protocol):
    """
    Protocol defining the asynchronous I/O interface.

    Implementations execute DAVRequest objects and return DAVResponse
    objects.  A request that does not produce any HTTP response must
    raise caldav_ics_sync.lib.error.TransportError; a response with an
    error status is returned like any other.
    """

    async def execute(self, request: DAVRequest) -> DAVResponse:
        ...

    async def close(self) -> None:
        """Close any resources (e.g., HTTP session)."""
        ...
