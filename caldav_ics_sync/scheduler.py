"""
Periodic background sync of every configured source and destination.

Each resource with a non-zero interval gets its own asyncio task.  A
tick runs the sync with exponential backoff retries; what happens when
the retries run out depends on the failure's classification:

* FATAL (the resource was deleted): the loop ends for good.
* RETRYABLE: ``error`` and the message go to the store and the loop
  waits for its next tick.

Runs of one resource never overlap.  Different resources are fully
independent of each other.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from tenacity import AsyncRetrying
from tenacity import RetryCallState
from tenacity import retry_if_exception
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from caldav_ics_sync.config import SyncSettings
from caldav_ics_sync.lib import error
from caldav_ics_sync.lib.error import FailureKind, SyncFailure
from caldav_ics_sync.models import ResourceKind
from caldav_ics_sync.service import SyncService

log = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
LoopKey = Tuple[ResourceKind, int]


@dataclass(frozen=True)
class RetryPolicy:
    """
    ``max_attempts`` attempts in total, the n-th retry waits
    ``base_delay * 2**(n-1)`` seconds, never more than ``max_delay``.
    """

    base_delay: float = 30.0
    max_delay: float = 300.0
    max_attempts: int = 5

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "RetryPolicy":
        return cls(
            base_delay=settings.retry_base_secs,
            max_delay=settings.retry_max_secs,
            max_attempts=settings.max_retries,
        )

    def retrying(self, name: str = "sync", sleep: Sleep = asyncio.sleep) -> AsyncRetrying:
        return AsyncRetrying(
            sleep=sleep,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry(name, self.max_attempts),
            reraise=True,
        )


def _is_retryable(exc: BaseException) -> bool:
    ## cancellation must never be retried
    return isinstance(exc, Exception) and error.classify(exc) is FailureKind.RETRYABLE


def _log_retry(name: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        log.warning(
            "%s: attempt %i of %i failed (%s), retrying in %.0fs",
            name,
            retry_state.attempt_number,
            max_attempts,
            retry_state.outcome.exception(),
            retry_state.next_action.sleep,
        )

    return before_sleep


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    name: str = "sync",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Call ``operation`` until it succeeds, a fatal failure shows up or
    the policy is exhausted.

    Raises:
        SyncFailure: tagged FATAL right after the first fatal failure,
        RETRYABLE with the last error once all attempts failed.
    """
    attempts = 0
    try:
        async for attempt in policy.retrying(name, sleep):
            with attempt:
                attempts = attempt.retry_state.attempt_number
                return await operation()
    except Exception as err:
        raise SyncFailure(error.classify(err), err, attempts=attempts) from err
    ## not reached, AsyncRetrying either returns or raises
    raise AssertionError("retry loop ended without result")


class AutoSyncSupervisor:
    """
    Owns the scheduling loops, one per ``(kind, id)``.

    ``start()`` spawns loops for everything in the store with an interval
    above zero.  After the configuration changed, ``reconcile()`` starts
    loops for new resources, cancels those of deleted or now manual-only
    resources and restarts loops whose interval changed.
    """

    def __init__(
        self,
        service: SyncService,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.service = service
        self.store = service.store
        self.policy = policy or RetryPolicy.from_settings(service.settings)
        self._sleep = sleep
        self._clock = clock
        self._loops: Dict[LoopKey, Tuple[int, asyncio.Task]] = {}

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    @property
    def running(self) -> List[LoopKey]:
        return [key for key, (_, task) in self._loops.items() if not task.done()]

    def interval_of(self, kind: ResourceKind, resource_id: int) -> Optional[int]:
        entry = self._loops.get((ResourceKind(kind), resource_id))
        if entry is None or entry[1].done():
            return None
        return entry[0]

    def _configured(self) -> Dict[LoopKey, Tuple[str, int]]:
        configured: Dict[LoopKey, Tuple[str, int]] = {}
        for source in self.store.list_sources():
            if source.sync_interval_secs > 0:
                configured[(ResourceKind.SOURCE, source.id)] = (
                    source.name,
                    source.sync_interval_secs,
                )
        for dest in self.store.list_destinations():
            if dest.sync_interval_secs > 0:
                configured[(ResourceKind.DESTINATION, dest.id)] = (
                    dest.name,
                    dest.sync_interval_secs,
                )
        return configured

    def start(self) -> None:
        """Spawn a loop for each scheduled resource.  Needs a running event loop."""
        for key, (name, interval) in self._configured().items():
            if key not in self.running:
                self._spawn(key, name, interval)

    def reconcile(self) -> None:
        configured = self._configured()
        for key in list(self._loops):
            interval, task = self._loops[key]
            if task.done():
                del self._loops[key]
            elif key not in configured:
                log.info("Auto-sync for %s %s removed", key[0].value, key[1])
                self.stop(*key)
            elif configured[key][1] != interval:
                log.info(
                    "Auto-sync interval of %s %s changed from %is to %is",
                    key[0].value,
                    key[1],
                    interval,
                    configured[key][1],
                )
                self.stop(*key)
        for key, (name, interval) in configured.items():
            if key not in self._loops:
                self._spawn(key, name, interval)

    def stop(self, kind: ResourceKind, resource_id: int) -> None:
        entry = self._loops.pop((ResourceKind(kind), resource_id), None)
        if entry is not None:
            entry[1].cancel()

    async def shutdown(self) -> None:
        """Cancel all loops.  An in-flight sync run is abandoned."""
        tasks = [task for _, task in self._loops.values()]
        self._loops.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, key: LoopKey, name: str, interval: int) -> None:
        task = asyncio.get_running_loop().create_task(
            self._run_loop(key, name, interval),
            name="auto-sync-%s-%s" % (key[0].value, key[1]),
        )
        self._loops[key] = (interval, task)
        log.info("Auto-sync enabled for %s (every %is)", name, interval)

    async def _run_loop(self, key: LoopKey, name: str, interval: int) -> None:
        kind, resource_id = key
        label = "%s '%s'" % (kind.value, name)
        while True:
            started = self._now()
            try:
                result = await run_with_retry(
                    lambda: self.service.sync(kind, resource_id),
                    self.policy,
                    name="Auto-sync %s" % label,
                    sleep=self._sleep,
                )
            except SyncFailure as failure:
                if failure.fatal:
                    log.error("Auto-sync %s stopping: %s", label, failure)
                    entry = self._loops.get(key)
                    if entry is not None and entry[1] is asyncio.current_task():
                        del self._loops[key]
                    return
                log.error(
                    "Auto-sync %s failed after %i attempts: %s",
                    label,
                    failure.attempts,
                    failure,
                )
                self.service.record_failure(kind, resource_id, str(failure))
            else:
                log.info("Auto-sync %s: %s", label, result)

            elapsed = self._now() - started
            await self._sleep(max(0.0, interval - elapsed))
