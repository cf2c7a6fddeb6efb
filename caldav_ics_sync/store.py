"""
Status store: credentials, intervals, sync status and generated payloads.

The sync engine only talks to the ``StatusStore`` protocol.  Every call
is short and takes the store lock for that call alone, so a lock is
never held while a sync task waits on the network.  Two
implementations are provided, an in-memory one and one on SQLite.
"""

import dataclasses
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union, runtime_checkable

from caldav_ics_sync.lib import error
from caldav_ics_sync.models import Destination, ResourceKind, Source, SyncStatus

log = logging.getLogger(__name__)

Resource = Union[Source, Destination]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_status(status: SyncStatus) -> SyncStatus:
    status = SyncStatus(status)
    if status is SyncStatus.PENDING:
        raise ValueError("a resource can't go back to pending")
    return status


@runtime_checkable
class StatusStore(Protocol):
    def get_source(self, source_id: int) -> Source:
        """Raises NotFoundError if there is no such source."""
        ...

    def get_destination(self, destination_id: int) -> Destination:
        """Raises NotFoundError if there is no such destination."""
        ...

    def list_sources(self) -> List[Source]:
        ...

    def list_destinations(self) -> List[Destination]:
        ...

    def save_payload(self, source_id: int, data: bytes) -> None:
        ...

    def get_payload(self, source_id: int) -> Optional[bytes]:
        ...

    def get_payload_by_path(self, ics_path: str) -> Optional[bytes]:
        ...

    def update_last_synced(
        self, kind: ResourceKind, resource_id: int, when: Optional[datetime] = None
    ) -> None:
        ...

    def update_status(
        self,
        kind: ResourceKind,
        resource_id: int,
        status: SyncStatus,
        message: Optional[str] = None,
    ) -> None:
        ...


class MemoryStatusStore:
    """
    Keeps everything in dicts.  Objects handed out are copies, changing
    them does not change the store.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sources: Dict[int, Source] = {}
        self._destinations: Dict[int, Destination] = {}
        self._payloads: Dict[int, bytes] = {}
        self._next_id = 1

    def _table(self, kind: ResourceKind) -> Dict[int, Resource]:
        if ResourceKind(kind) is ResourceKind.SOURCE:
            return self._sources
        return self._destinations

    def _get(self, kind: ResourceKind, resource_id: int) -> Resource:
        try:
            return self._table(kind)[resource_id]
        except KeyError:
            raise error.NotFoundError(
                reason="%s %s no longer exists" % (ResourceKind(kind).value.capitalize(), resource_id)
            ) from None

    def add_source(
        self,
        name: str,
        caldav_url: str,
        username: str,
        password: str,
        ics_path: str,
        sync_interval_secs: int = 0,
    ) -> Source:
        with self._lock:
            source = Source(
                id=self._next_id,
                name=name,
                caldav_url=caldav_url,
                username=username,
                password=password,
                ics_path=ics_path,
                sync_interval_secs=sync_interval_secs,
            )
            self._next_id += 1
            self._sources[source.id] = source
            return dataclasses.replace(source)

    def add_destination(
        self,
        name: str,
        ics_url: str,
        caldav_url: str,
        calendar_name: str,
        username: str,
        password: str,
        sync_interval_secs: int = 0,
        sync_all: bool = False,
        keep_local: bool = False,
    ) -> Destination:
        with self._lock:
            destination = Destination(
                id=self._next_id,
                name=name,
                ics_url=ics_url,
                caldav_url=caldav_url,
                calendar_name=calendar_name,
                username=username,
                password=password,
                sync_interval_secs=sync_interval_secs,
                sync_all=sync_all,
                keep_local=keep_local,
            )
            self._next_id += 1
            self._destinations[destination.id] = destination
            return dataclasses.replace(destination)

    def get_source(self, source_id: int) -> Source:
        with self._lock:
            return dataclasses.replace(self._get(ResourceKind.SOURCE, source_id))

    def get_destination(self, destination_id: int) -> Destination:
        with self._lock:
            return dataclasses.replace(self._get(ResourceKind.DESTINATION, destination_id))

    def list_sources(self) -> List[Source]:
        with self._lock:
            return [dataclasses.replace(s) for s in self._sources.values()]

    def list_destinations(self) -> List[Destination]:
        with self._lock:
            return [dataclasses.replace(d) for d in self._destinations.values()]

    def delete_source(self, source_id: int) -> None:
        with self._lock:
            self._get(ResourceKind.SOURCE, source_id)
            del self._sources[source_id]
            self._payloads.pop(source_id, None)

    def delete_destination(self, destination_id: int) -> None:
        with self._lock:
            self._get(ResourceKind.DESTINATION, destination_id)
            del self._destinations[destination_id]

    def set_interval(self, kind: ResourceKind, resource_id: int, secs: int) -> None:
        if secs < 0:
            raise ValueError("sync interval can't be negative")
        with self._lock:
            self._get(kind, resource_id).sync_interval_secs = secs

    def save_payload(self, source_id: int, data: bytes) -> None:
        with self._lock:
            self._get(ResourceKind.SOURCE, source_id)
            self._payloads[source_id] = bytes(data)

    def get_payload(self, source_id: int) -> Optional[bytes]:
        with self._lock:
            return self._payloads.get(source_id)

    def get_payload_by_path(self, ics_path: str) -> Optional[bytes]:
        with self._lock:
            for source in self._sources.values():
                if source.ics_path == ics_path:
                    return self._payloads.get(source.id)
        return None

    def update_last_synced(
        self, kind: ResourceKind, resource_id: int, when: Optional[datetime] = None
    ) -> None:
        with self._lock:
            self._get(kind, resource_id).last_synced = when or utcnow()

    def update_status(
        self,
        kind: ResourceKind,
        resource_id: int,
        status: SyncStatus,
        message: Optional[str] = None,
    ) -> None:
        status = _check_status(status)
        with self._lock:
            resource = self._get(kind, resource_id)
            resource.last_sync_status = status
            resource.last_sync_error = message if status is SyncStatus.ERROR else None


SCHEMA = """
CREATE TABLE IF NOT EXISTS sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    caldav_url TEXT NOT NULL,
    username TEXT NOT NULL,
    password TEXT NOT NULL,
    ics_path TEXT NOT NULL UNIQUE,
    sync_interval_secs INTEGER NOT NULL DEFAULT 0,
    last_synced TEXT,
    last_sync_status TEXT NOT NULL DEFAULT 'pending',
    last_sync_error TEXT,
    ics_data BLOB,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS destinations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    ics_url TEXT NOT NULL,
    caldav_url TEXT NOT NULL,
    calendar_name TEXT NOT NULL,
    username TEXT NOT NULL,
    password TEXT NOT NULL,
    sync_interval_secs INTEGER NOT NULL DEFAULT 0,
    sync_all INTEGER NOT NULL DEFAULT 0,
    keep_local INTEGER NOT NULL DEFAULT 0,
    last_synced TEXT,
    last_sync_status TEXT NOT NULL DEFAULT 'pending',
    last_sync_error TEXT,
    created_at TEXT NOT NULL
);
"""

_TABLES = {
    ResourceKind.SOURCE: "sources",
    ResourceKind.DESTINATION: "destinations",
}


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class SqliteStatusStore:
    """
    Status store in a SQLite database file.

    The connection is shared between the event loop thread and the
    worker threads disk writes run in, access is serialized by a lock
    taken per call.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self.conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "SqliteStatusStore":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def connect(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.executescript(SCHEMA)
            self.conn.commit()
        except (OSError, sqlite3.Error) as err:
            raise error.StoreError(str(self.db_path), str(err)) from err
        log.info("Status database initialized at %s", self.db_path)

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self.conn is None:
            raise error.StoreError(str(self.db_path), "database is not connected")
        with self._lock:
            try:
                cursor = self.conn.execute(sql, params)
                self.conn.commit()
                return cursor
            except sqlite3.Error as err:
                raise error.StoreError(str(self.db_path), str(err)) from err

    def _fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        if self.conn is None:
            raise error.StoreError(str(self.db_path), "database is not connected")
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchone()
            except sqlite3.Error as err:
                raise error.StoreError(str(self.db_path), str(err)) from err

    def _fetchall(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        if self.conn is None:
            raise error.StoreError(str(self.db_path), "database is not connected")
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as err:
                raise error.StoreError(str(self.db_path), str(err)) from err

    def _require_changed(self, cursor: sqlite3.Cursor, kind: ResourceKind, resource_id: int) -> None:
        if cursor.rowcount == 0:
            raise error.NotFoundError(
                reason="%s %s no longer exists" % (ResourceKind(kind).value.capitalize(), resource_id)
            )

    @staticmethod
    def _row_to_source(row: sqlite3.Row) -> Source:
        return Source(
            id=row["id"],
            name=row["name"],
            caldav_url=row["caldav_url"],
            username=row["username"],
            password=row["password"],
            ics_path=row["ics_path"],
            sync_interval_secs=row["sync_interval_secs"],
            last_synced=_parse_ts(row["last_synced"]),
            last_sync_status=SyncStatus(row["last_sync_status"]),
            last_sync_error=row["last_sync_error"],
        )

    @staticmethod
    def _row_to_destination(row: sqlite3.Row) -> Destination:
        return Destination(
            id=row["id"],
            name=row["name"],
            ics_url=row["ics_url"],
            caldav_url=row["caldav_url"],
            calendar_name=row["calendar_name"],
            username=row["username"],
            password=row["password"],
            sync_interval_secs=row["sync_interval_secs"],
            sync_all=bool(row["sync_all"]),
            keep_local=bool(row["keep_local"]),
            last_synced=_parse_ts(row["last_synced"]),
            last_sync_status=SyncStatus(row["last_sync_status"]),
            last_sync_error=row["last_sync_error"],
        )

    def add_source(
        self,
        name: str,
        caldav_url: str,
        username: str,
        password: str,
        ics_path: str,
        sync_interval_secs: int = 0,
    ) -> Source:
        cursor = self._execute(
            """INSERT INTO sources
               (name, caldav_url, username, password, ics_path, sync_interval_secs, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (name, caldav_url, username, password, ics_path, sync_interval_secs, utcnow().isoformat()),
        )
        return self.get_source(cursor.lastrowid)

    def add_destination(
        self,
        name: str,
        ics_url: str,
        caldav_url: str,
        calendar_name: str,
        username: str,
        password: str,
        sync_interval_secs: int = 0,
        sync_all: bool = False,
        keep_local: bool = False,
    ) -> Destination:
        cursor = self._execute(
            """INSERT INTO destinations
               (name, ics_url, caldav_url, calendar_name, username, password,
                sync_interval_secs, sync_all, keep_local, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                name,
                ics_url,
                caldav_url,
                calendar_name,
                username,
                password,
                sync_interval_secs,
                int(sync_all),
                int(keep_local),
                utcnow().isoformat(),
            ),
        )
        return self.get_destination(cursor.lastrowid)

    def get_source(self, source_id: int) -> Source:
        row = self._fetchone("SELECT * FROM sources WHERE id = ?", (source_id,))
        if row is None:
            raise error.NotFoundError(reason="Source %s no longer exists" % source_id)
        return self._row_to_source(row)

    def get_destination(self, destination_id: int) -> Destination:
        row = self._fetchone("SELECT * FROM destinations WHERE id = ?", (destination_id,))
        if row is None:
            raise error.NotFoundError(reason="Destination %s no longer exists" % destination_id)
        return self._row_to_destination(row)

    def list_sources(self) -> List[Source]:
        return [self._row_to_source(r) for r in self._fetchall("SELECT * FROM sources ORDER BY id")]

    def list_destinations(self) -> List[Destination]:
        return [
            self._row_to_destination(r)
            for r in self._fetchall("SELECT * FROM destinations ORDER BY id")
        ]

    def delete_source(self, source_id: int) -> None:
        cursor = self._execute("DELETE FROM sources WHERE id = ?", (source_id,))
        self._require_changed(cursor, ResourceKind.SOURCE, source_id)

    def delete_destination(self, destination_id: int) -> None:
        cursor = self._execute("DELETE FROM destinations WHERE id = ?", (destination_id,))
        self._require_changed(cursor, ResourceKind.DESTINATION, destination_id)

    def set_interval(self, kind: ResourceKind, resource_id: int, secs: int) -> None:
        if secs < 0:
            raise ValueError("sync interval can't be negative")
        cursor = self._execute(
            "UPDATE %s SET sync_interval_secs = ? WHERE id = ?" % _TABLES[ResourceKind(kind)],
            (secs, resource_id),
        )
        self._require_changed(cursor, kind, resource_id)

    def save_payload(self, source_id: int, data: bytes) -> None:
        cursor = self._execute(
            "UPDATE sources SET ics_data = ? WHERE id = ?", (bytes(data), source_id)
        )
        self._require_changed(cursor, ResourceKind.SOURCE, source_id)

    def get_payload(self, source_id: int) -> Optional[bytes]:
        row = self._fetchone("SELECT ics_data FROM sources WHERE id = ?", (source_id,))
        if row is None or row["ics_data"] is None:
            return None
        return bytes(row["ics_data"])

    def get_payload_by_path(self, ics_path: str) -> Optional[bytes]:
        row = self._fetchone("SELECT ics_data FROM sources WHERE ics_path = ?", (ics_path,))
        if row is None or row["ics_data"] is None:
            return None
        return bytes(row["ics_data"])

    def update_last_synced(
        self, kind: ResourceKind, resource_id: int, when: Optional[datetime] = None
    ) -> None:
        cursor = self._execute(
            "UPDATE %s SET last_synced = ? WHERE id = ?" % _TABLES[ResourceKind(kind)],
            ((when or utcnow()).isoformat(), resource_id),
        )
        self._require_changed(cursor, kind, resource_id)

    def update_status(
        self,
        kind: ResourceKind,
        resource_id: int,
        status: SyncStatus,
        message: Optional[str] = None,
    ) -> None:
        status = _check_status(status)
        cursor = self._execute(
            "UPDATE %s SET last_sync_status = ?, last_sync_error = ? WHERE id = ?"
            % _TABLES[ResourceKind(kind)],
            (status.value, message if status is SyncStatus.ERROR else None, resource_id),
        )
        self._require_changed(cursor, kind, resource_id)
