"""
Configured resources as the sync engine sees them.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SyncStatus(str, Enum):
    PENDING = "pending"
    OK = "ok"
    ERROR = "error"


class ResourceKind(str, Enum):
    SOURCE = "source"
    DESTINATION = "destination"


@dataclass
class Source:
    """
    A CalDAV account whose calendars are merged into one ics feed.

    ``ics_path`` is where the external API publishes the generated feed.
    A ``sync_interval_secs`` of 0 means the source is only synced on demand.
    """

    id: int
    name: str
    caldav_url: str
    username: str
    password: str
    ics_path: str
    sync_interval_secs: int = 0
    last_synced: Optional[datetime] = None
    last_sync_status: SyncStatus = SyncStatus.PENDING
    last_sync_error: Optional[str] = None

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.SOURCE


@dataclass
class Destination:
    """
    An ics feed whose events are uploaded into a CalDAV collection.

    ``sync_all`` and ``keep_local`` are stored for the API but do not
    change how events are uploaded.
    """

    id: int
    name: str
    ics_url: str
    caldav_url: str
    calendar_name: str
    username: str
    password: str
    sync_interval_secs: int = 0
    sync_all: bool = False
    keep_local: bool = False
    last_synced: Optional[datetime] = None
    last_sync_status: SyncStatus = SyncStatus.PENDING
    last_sync_error: Optional[str] = None

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.DESTINATION
