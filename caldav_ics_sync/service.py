"""
One sync run of a configured source or destination, against the store.

The scheduler and on-demand triggers (from the HTTP API) both go
through ``SyncService``.  The store is only touched in short calls
before and after the network work, never across it.
"""

import logging
from typing import Optional, Union

from caldav_ics_sync.config import SyncSettings
from caldav_ics_sync.io import AsyncIO
from caldav_ics_sync.io.base import AsyncIOProtocol
from caldav_ics_sync.lib import error
from caldav_ics_sync.models import ResourceKind, SyncStatus
from caldav_ics_sync.storage import PayloadSink
from caldav_ics_sync.store import StatusStore
from caldav_ics_sync.sync.forward import SourceSyncResult, run_sync
from caldav_ics_sync.sync.reverse import ReverseSyncResult, run_reverse_sync

log = logging.getLogger(__name__)

SyncResult = Union[SourceSyncResult, ReverseSyncResult]


class SyncService:
    def __init__(
        self,
        store: StatusStore,
        io: Optional[AsyncIOProtocol] = None,
        settings: Optional[SyncSettings] = None,
        sink: Optional[PayloadSink] = None,
    ) -> None:
        self.store = store
        self.settings = settings or SyncSettings()
        self.io = io or AsyncIO(
            timeout=self.settings.request_timeout,
            verify_ssl=self.settings.verify_ssl,
        )
        self.sink = sink or PayloadSink(
            store,
            strategy=self.settings.storage_strategy,
            data_dir=self.settings.data_dir,
        )

    async def sync_source(self, source_id: int) -> SourceSyncResult:
        """
        Run the CalDAV to ICS pipeline of a source and record success.

        Raises NotFoundError if the source is gone, any other DAVError
        for failures worth retrying.  Failures are not recorded here,
        that is up to the caller.
        """
        source = self.store.get_source(source_id)
        result = await run_sync(self.io, source.caldav_url, source.username, source.password)
        await self.sink.save(source, result.ics_data.encode("utf-8"))
        self.store.update_last_synced(ResourceKind.SOURCE, source_id)
        self.store.update_status(ResourceKind.SOURCE, source_id, SyncStatus.OK)
        log.info("Source %s (%s) synced: %s", source_id, source.name, result)
        return result

    async def sync_destination(self, destination_id: int) -> ReverseSyncResult:
        """Run the ICS to CalDAV pipeline of a destination and record success."""
        dest = self.store.get_destination(destination_id)
        result = await run_reverse_sync(
            self.io,
            dest.ics_url,
            dest.caldav_url,
            dest.calendar_name,
            dest.username,
            dest.password,
            sync_all=dest.sync_all,
            keep_local=dest.keep_local,
        )
        self.store.update_last_synced(ResourceKind.DESTINATION, destination_id)
        self.store.update_status(ResourceKind.DESTINATION, destination_id, SyncStatus.OK)
        log.info("Destination %s (%s) synced: %s", destination_id, dest.name, result)
        return result

    async def sync(self, kind: ResourceKind, resource_id: int) -> SyncResult:
        if ResourceKind(kind) is ResourceKind.SOURCE:
            return await self.sync_source(resource_id)
        return await self.sync_destination(resource_id)

    def record_failure(self, kind: ResourceKind, resource_id: int, message: str) -> None:
        """
        Store ``error`` and the message.  A store failure here is logged,
        there is nobody left to hand it to.
        """
        try:
            self.store.update_status(kind, resource_id, SyncStatus.ERROR, message)
        except error.NotFoundError:
            log.info("%s %s was deleted, not recording its failure", kind.value, resource_id)
        except error.StoreError as err:
            log.error("Failed to record error status of %s %s: %s", kind.value, resource_id, err)

    async def trigger(self, kind: ResourceKind, resource_id: int) -> SyncResult:
        """
        On-demand sync: a single attempt, no retries.

        On failure the error is recorded and SyncFailure raised; the
        payload of an earlier successful run stays where it is.
        """
        kind = ResourceKind(kind)
        try:
            return await self.sync(kind, resource_id)
        except Exception as err:
            failure = error.SyncFailure(error.classify(err), err)
            if not failure.fatal:
                self.record_failure(kind, resource_id, str(err))
            log.error("On-demand sync of %s %s failed: %s", kind.value, resource_id, err)
            raise failure from err

    async def close(self) -> None:
        await self.io.close()
