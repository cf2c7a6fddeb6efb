#!/usr/bin/env python
import logging
import os
from enum import Enum
from typing import Optional

from caldav_ics_sync import __version__

## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("CALDAV_ICS_SYNC_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("caldav_ics_sync")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def weirdness(*reasons) -> None:
    reason = " : ".join(str(x) for x in reasons)
    log.warning(f"Deviation from expectations found: {reason}")


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason
        super().__init__(self.reason)

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class TransportError(DAVError):
    """
    The request never produced an HTTP response: connection refused,
    DNS failure, TLS failure or timeout.
    """

    pass


class PropfindError(DAVError):
    pass


class ReportError(DAVError):
    pass


class FetchError(DAVError):
    pass


class ParseError(DAVError):
    """The server delivered something that is not well-formed XML."""

    pass


class UploadError(DAVError):
    """
    Some events of a reverse sync could not be stored on the CalDAV
    server.  The successful PUTs are not rolled back; ``uploaded`` and
    ``failed`` tell how the run ended.
    """

    def __init__(self, url: Optional[str] = None, uploaded: int = 0, failed: int = 0) -> None:
        self.uploaded = uploaded
        self.failed = failed
        super().__init__(url, "Uploaded %i events but %i failed" % (uploaded, failed))

    def __str__(self) -> str:
        return self.reason


class StoreError(DAVError):
    pass


class NotFoundError(DAVError):
    """The source or destination is not (or no longer) configured."""

    pass


class FailureKind(Enum):
    """Decides what the retry boundary does with a failed sync attempt."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


def classify(exc: BaseException) -> FailureKind:
    if isinstance(exc, NotFoundError):
        return FailureKind.FATAL
    return FailureKind.RETRYABLE


class SyncFailure(Exception):
    """
    A sync run that failed for good, tagged with its classification.
    ``cause`` is the last underlying exception.
    """

    def __init__(self, kind: FailureKind, cause: BaseException, attempts: int = 1) -> None:
        self.kind = kind
        self.cause = cause
        self.attempts = attempts
        super().__init__(str(cause))

    @property
    def fatal(self) -> bool:
        return self.kind is FailureKind.FATAL

    def __str__(self) -> str:
        return str(self.cause)
