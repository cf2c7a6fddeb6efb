#!/usr/bin/env python
import logging

__version__ = "0.3.0"

## Silence notification of no default logging handler, the application
## embedding the sync engine decides where the records go.
log = logging.getLogger("caldav_ics_sync")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

from .service import SyncService
from .scheduler import AutoSyncSupervisor, RetryPolicy

__all__ = ["__version__", "SyncService", "AutoSyncSupervisor", "RetryPolicy"]
