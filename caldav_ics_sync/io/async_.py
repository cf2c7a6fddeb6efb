"""
Asynchronous I/O implementation using aiohttp library.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from caldav_ics_sync.lib import error
from caldav_ics_sync.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class AsyncIO:
    """
    Asynchronous I/O shell using aiohttp library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  One instance is meant to be shared
    by all sync tasks of a process, the connection pool is shared too.

    Example:
        async with AsyncIO() as io:
            request = protocol.propfind_request("https://cal.example.com/dav/")
            response = await io.execute(request)
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
    ):
        """
        Args:
            session: Existing aiohttp ClientSession to use (creates new if None)
            timeout: Request timeout in seconds
            verify_ssl: Verify SSL certificates
        """
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.verify_ssl = verify_ssl

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(ssl=None if self.verify_ssl else False)
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=connector,
            )
        return self._session

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Raises:
            TransportError: if no HTTP response was received
        """
        session = await self._get_session()
        log.debug("%s %s", request.method.value, request.url)

        try:
            async with session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
            ) as response:
                body = await response.read()
                return DAVResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                    reason=response.reason or "",
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise error.TransportError(
                request.url, "%s failed: %s" % (request.method.value, str(err) or type(err).__name__)
            ) from err

    async def close(self) -> None:
        """Close the session if we created it."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AsyncIO":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
