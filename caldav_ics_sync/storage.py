"""
Where the generated ics of a source ends up.

``memory-only`` keeps it in the status store, ``disk-only`` writes it
to ``<data_dir>/ics/<ics_path>`` and nowhere else, ``memory-and-disk``
does both.  Disk writes run in a worker thread so they never block the
event loop.
"""

import asyncio
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from caldav_ics_sync.lib import error
from caldav_ics_sync.models import Source
from caldav_ics_sync.store import StatusStore

log = logging.getLogger(__name__)


class StorageStrategy(str, Enum):
    MEMORY_ONLY = "memory-only"
    DISK_ONLY = "disk-only"
    MEMORY_AND_DISK = "memory-and-disk"

    @property
    def uses_store(self) -> bool:
        return self is not StorageStrategy.DISK_ONLY

    @property
    def uses_disk(self) -> bool:
        return self is not StorageStrategy.MEMORY_ONLY


class PayloadSink:
    def __init__(
        self,
        store: StatusStore,
        strategy: Union[StorageStrategy, str] = StorageStrategy.MEMORY_ONLY,
        data_dir: Union[str, Path] = "./data",
    ) -> None:
        self.store = store
        self.strategy = StorageStrategy(strategy)
        self.ics_dir = Path(data_dir) / "ics"

    def path_for(self, source: Source) -> Path:
        name = source.ics_path.strip("/")
        if not name or ".." in Path(name).parts:
            raise error.StoreError(source.ics_path, "unusable ics path")
        return self.ics_dir / name

    def _write(self, path: Path, data: bytes) -> None:
        ## a fresh temp file per write, next to the target
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=str(path.parent),
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    async def save(self, source: Source, data: bytes) -> None:
        """
        Persist a freshly generated payload.

        With memory-and-disk a failing disk write is only logged, the
        payload is safe in the store.  With disk-only it raises
        StoreError.
        """
        if self.strategy.uses_store:
            self.store.save_payload(source.id, data)
        if not self.strategy.uses_disk:
            return

        try:
            path = self.path_for(source)
            await asyncio.to_thread(self._write, path, data)
        except (OSError, error.StoreError) as err:
            if self.strategy is StorageStrategy.DISK_ONLY:
                if isinstance(err, error.StoreError):
                    raise
                raise error.StoreError(str(self.ics_dir), "Failed to save to disk: %s" % err) from err
            log.error("Failed to save ics of source %s to disk: %s", source.id, err)

    def read(self, source: Source) -> Optional[bytes]:
        """The payload currently published for a source, if there is one."""
        if self.strategy is StorageStrategy.DISK_ONLY:
            try:
                return self.path_for(source).read_bytes()
            except FileNotFoundError:
                return None
            except OSError as err:
                raise error.StoreError(str(self.ics_dir), str(err)) from err
        return self.store.get_payload(source.id)
