"""
Orchestrator for loading the session catalog.

A live load fans the identifier set out to a fixed pool of async workers, fans
their results back in and merges each success into the `CatalogStore`. A
per-session failure only drops that session; the run itself always finishes
and always marks the catalog ready, even when nothing could be loaded.

Usage (example from CLI):
    from session_catalog.orchestrator import start_loading
    from session_catalog.store import CatalogStore

    store = CatalogStore()
    handle = start_loading(store)     # background thread, or None when offline
    store.ready.wait()
    print(len(store))
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, cast

from session_catalog.config import Settings, get_settings
from session_catalog.domain.errors import FetchTransportError
from session_catalog.domain.models import FetchJobResult, LoadReport
from session_catalog.infrastructure.browser import PlaywrightPageFetcher
from session_catalog.infrastructure.snapshot import load_snapshot
from session_catalog.pipeline.abstract import FetchJob, PageFetcher
from session_catalog.pipeline.fetch_job import RetryingFetchJob
from session_catalog.store import CatalogStore
from session_catalog.utils.logging import get_logger
from session_catalog.utils.profiler import profile_block

log = get_logger(__name__)

# Pushed by the completion watcher once every worker has returned.
_END_OF_RESULTS = object()


def default_worker_count() -> int:
    """Pool size derived from the CPUs this process may run on."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


def unique_identifiers(identifiers: Iterable[str]) -> Tuple[str, ...]:
    """Drop repeated ids, keeping first-seen order."""
    return tuple(dict.fromkeys(identifiers))


class CatalogLoader:
    """
    Bounded worker pool that populates a `CatalogStore`.

    Parameters
    ----------
    store : CatalogStore
        Destination catalog. Marked ready when `load` finishes.
    job : FetchJob
        Retry-wrapped fetch + extract for one identifier.
    workers : int, optional
        Pool size. Defaults to the CPU count; never more than the number of
        identifiers in a run.
    """

    def __init__(self, store: CatalogStore, job: FetchJob, workers: Optional[int] = None) -> None:
        if workers is not None and workers < 1:
            raise ValueError("workers must be at least 1")
        self.store = store
        self.job = job
        self.workers = workers or default_worker_count()

    async def load(self, identifiers: Sequence[str]) -> LoadReport:
        """
        Fetch every identifier and merge successes into the store.

        Results merge in completion order. Readiness fires exactly once when
        this coroutine exits, whether it finished, failed or was cancelled.
        """
        ids = unique_identifiers(identifiers)
        if len(ids) != len(identifiers):
            log.warning(
                f"Ignoring {len(identifiers) - len(ids)} repeated session id(s)",
                extra={"requested": len(identifiers), "unique": len(ids)},
            )
        pool_size = min(self.workers, len(ids))
        log.info(
            f"[LOAD START] {len(ids)} session(s) using {pool_size} worker(s)",
            extra={"sessions": len(ids), "workers": pool_size},
        )

        work: asyncio.Queue[str] = asyncio.Queue(maxsize=len(ids))
        for identifier in ids:
            work.put_nowait(identifier)
        results: asyncio.Queue[object] = asyncio.Queue(maxsize=len(ids))

        workers = [
            asyncio.create_task(self._worker(n, work, results), name=f"catalog-worker-{n}")
            for n in range(pool_size)
        ]
        watcher = asyncio.create_task(self._watch(workers, results), name="catalog-watcher")

        loaded = 0
        failed: List[str] = []
        try:
            while True:
                item = await results.get()
                if item is _END_OF_RESULTS:
                    break
                result = cast(FetchJobResult, item)
                if result.ok:
                    self.store.put(result.session)
                    loaded += 1
                    log.info(
                        f"[SESSION LOADED] {result.identifier}: {result.session.title}",
                        extra={"session_id": result.identifier},
                    )
                else:
                    failed.append(result.identifier)
                    log.error(
                        f"[SESSION FAILED] {result.identifier}: {result.error}",
                        extra={"session_id": result.identifier},
                    )
        finally:
            pending = [task for task in (*workers, watcher) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self.store.mark_ready()

        log.info(
            f"[LOAD COMPLETE] {loaded}/{len(ids)} session(s) loaded, {len(failed)} failed",
            extra={"loaded": loaded, "failed": len(failed)},
        )
        return LoadReport(source="live", requested=len(ids), loaded=loaded, failed=sorted(failed))

    async def _worker(
        self,
        worker_id: int,
        work: asyncio.Queue[str],
        results: asyncio.Queue[object],
    ) -> None:
        # The queue is filled before any worker starts, so empty means done.
        while True:
            try:
                identifier = work.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                session = await self.job.run(identifier)
                if session.id != identifier:
                    raise ValueError(f"job returned session {session.id!r} for {identifier!r}")
            except Exception as exc:  # noqa: BLE001 - recorded as a failed result
                log.debug(f"Worker {worker_id}: session {identifier} failed", exc_info=True)
                result = FetchJobResult(identifier, error=exc)
            else:
                result = FetchJobResult(identifier, session=session)
            await results.put(result)

    @staticmethod
    async def _watch(workers: List[asyncio.Task[None]], results: asyncio.Queue[object]) -> None:
        await asyncio.gather(*workers, return_exceptions=True)
        await results.put(_END_OF_RESULTS)


async def load_live_catalog(
    store: CatalogStore,
    settings: Optional[Settings] = None,
    identifiers: Optional[Sequence[str]] = None,
    *,
    fetcher: Optional[PageFetcher] = None,
) -> LoadReport:
    """
    Populate `store` from the live site.

    Opens a headless browser for the duration of the run unless `fetcher` is
    supplied. The store is marked ready on every exit path, including a browser
    that fails to launch.
    """
    settings = settings or get_settings()
    ids = list(identifiers) if identifiers is not None else list(settings.session_ids)

    with profile_block("catalog-load") as stats:
        try:
            async with contextlib.AsyncExitStack() as stack:
                if fetcher is None:
                    fetcher = await stack.enter_async_context(PlaywrightPageFetcher.from_settings(settings))
                job = RetryingFetchJob.from_settings(fetcher, settings)
                loader = CatalogLoader(store, job, workers=settings.fetch_workers)
                report = await loader.load(ids)
        except FetchTransportError as exc:
            log.exception("[LOAD ABORTED] browser session could not be started")
            unique = unique_identifiers(ids)
            report = LoadReport(
                source="live", requested=len(unique), loaded=0, failed=sorted(unique), error=str(exc)
            )
        finally:
            store.mark_ready()

    report["duration_seconds"] = round(stats.duration_seconds, 2)
    report["peak_rss_bytes"] = stats.peak_rss_bytes
    report["cpu_percent"] = round(stats.cpu_percent, 1) if stats.cpu_percent is not None else None
    return report


def load_snapshot_catalog(store: CatalogStore, path: Path | str) -> LoadReport:
    """
    Populate `store` from a snapshot file and mark it ready.

    Raises
    ------
    SnapshotError
        If the file cannot be read or validated. The store is left unready.
    """
    log.info(f"Running in offline mode, loading sessions from {path}")
    sessions = load_snapshot(path)
    for session in sessions:
        log.debug(f"Added session {session.id}: {session.title}", extra={"session_id": session.id})
    store.put_many(sessions)
    store.mark_ready()
    return LoadReport(source="snapshot", requested=len(sessions), loaded=len(store), failed=[])


class BackgroundLoad:
    """
    Live catalog load running on its own thread and event loop.

    Query callers keep using the store from their own threads while the load
    runs. `cancel` unwinds the load, closing any open browser contexts and the
    browser itself, and the store is still marked ready.
    """

    def __init__(
        self,
        store: CatalogStore,
        settings: Optional[Settings] = None,
        identifiers: Optional[Sequence[str]] = None,
        *,
        fetcher: Optional[PageFetcher] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.identifiers = identifiers
        self.fetcher = fetcher
        self.report: Optional[LoadReport] = None
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="catalog-loader", daemon=True)
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    def start(self) -> "BackgroundLoad":
        log.info("Loading agenda sessions in the background...")
        self._thread.start()
        return self

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the load thread; returns True once it has finished."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def cancel(self, timeout: Optional[float] = None) -> bool:
        """Request cancellation and wait up to `timeout` for the thread to exit."""
        with self._lock:
            self._cancel_requested = True
            loop, task = self._loop, self._task
        if loop is not None and task is not None and not task.done():
            # The loop may close between the check and the call.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(task.cancel)
        if not self._thread.is_alive():
            return True
        return self.join(timeout)

    def _run(self) -> None:
        try:
            self.report = asyncio.run(self._main())
        except asyncio.CancelledError:
            log.warning("[LOAD CANCELLED] catalog load was cancelled")
        except Exception as exc:  # noqa: BLE001 - surfaced through .error
            self.error = exc
            log.exception("[LOAD FAILED] background catalog load crashed")
        finally:
            self.store.mark_ready()

    async def _main(self) -> LoadReport:
        with self._lock:
            self._loop = asyncio.get_running_loop()
            self._task = asyncio.current_task()
            cancelled = self._cancel_requested
        if cancelled:
            raise asyncio.CancelledError()
        return await load_live_catalog(self.store, self.settings, self.identifiers, fetcher=self.fetcher)


def start_loading(store: CatalogStore, settings: Optional[Settings] = None) -> Optional[BackgroundLoad]:
    """
    Begin populating `store` according to settings.

    Offline mode loads the snapshot synchronously (raising `SnapshotError` on
    failure) and returns None. Otherwise a `BackgroundLoad` is started and
    returned.
    """
    settings = settings or get_settings()
    if settings.offline:
        load_snapshot_catalog(store, settings.data_file)
        return None
    return BackgroundLoad(store, settings).start()


__all__ = [
    "BackgroundLoad",
    "CatalogLoader",
    "default_worker_count",
    "load_live_catalog",
    "load_snapshot_catalog",
    "start_loading",
    "unique_identifiers",
]
