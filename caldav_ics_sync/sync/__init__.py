"""
The two one-way pipelines.

- forward: CalDAV account -> one combined ics feed (sources)
- reverse: ics feed -> events in a CalDAV collection (destinations)
"""

from .forward import SourceSyncResult, discover_calendars, fetch_events, run_sync
from .reverse import ReverseSyncResult, fetch_feed, run_reverse_sync

__all__ = [
    "SourceSyncResult",
    "discover_calendars",
    "fetch_events",
    "run_sync",
    "ReverseSyncResult",
    "fetch_feed",
    "run_reverse_sync",
]
