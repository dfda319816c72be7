"""
async_loader.py
---------------
Run dataset loads off the caller's thread.

Each load is submitted to a small worker pool and returns a
``concurrent.futures.Future`` resolving to a LoadResult. An optional callback
receives the result; ``dispatch`` decides where that callback runs, e.g.
``loop.call_soon_threadsafe`` for an asyncio caller or a Qt signal emitter.
Without ``dispatch`` the callback runs on the worker thread.

Usage
-----
from async_loader import AsyncDatasetLoader
from data_service import BundledDataService

with AsyncDatasetLoader(BundledDataService()) as loader:
    pending = loader.load_all()
    datasets = pending.wait(timeout=5)
    print(len(datasets.branches.value or []))

The three loads are independent and may finish in any order.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass
from typing import Callable, List, Optional

from data_service import BRANCHES, EVENTS, VISITS, DataServiceProtocol, LoadError, LoadResult
from models import Branch, Event, VisitRecord

logger = logging.getLogger(__name__)

__all__ = ["AsyncDatasetLoader", "PendingDatasets", "LoadedDatasets"]

Dispatch = Callable[[Callable[[], None]], None]
Callback = Callable[[LoadResult], None]


@dataclass(frozen=True)
class LoadedDatasets:
    branches: LoadResult[Branch]
    visits: LoadResult[VisitRecord]
    events: LoadResult[Event]

    @property
    def errors(self) -> List[LoadError]:
        return [r.error for r in (self.branches, self.visits, self.events) if r.error is not None]


@dataclass(frozen=True)
class PendingDatasets:
    branches: "Future[LoadResult[Branch]]"
    visits: "Future[LoadResult[VisitRecord]]"
    events: "Future[LoadResult[Event]]"

    def done(self) -> bool:
        return all(f.done() for f in (self.branches, self.visits, self.events))

    def wait(self, timeout: Optional[float] = None) -> LoadedDatasets:
        """Block until all three loads finish. Raises TimeoutError on timeout."""
        futures = (self.branches, self.visits, self.events)
        _, not_done = wait_futures(futures, timeout=timeout)
        if not_done:
            raise TimeoutError(f"{len(not_done)} dataset load(s) still running")
        return LoadedDatasets(
            branches=self.branches.result(),
            visits=self.visits.result(),
            events=self.events.result(),
        )


class AsyncDatasetLoader:
    def __init__(
        self,
        service: DataServiceProtocol,
        *,
        max_workers: int = 3,
        dispatch: Optional[Dispatch] = None,
    ):
        self.service = service
        self._dispatch = dispatch
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dataset-load")

    def __enter__(self) -> "AsyncDatasetLoader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _guarded(dataset: str, load: Callable[[], LoadResult]) -> LoadResult:
        # Services report LoadErrors in the result; anything else they raise
        # is folded into one so the future and the callback still see a result
        try:
            return load()
        except Exception as exc:
            logger.exception("Dataset load crashed: %s", dataset)
            return LoadResult(dataset=dataset, error=LoadError(dataset, f"load crashed: {exc!r}"))

    def _deliver(self, callback: Callback, future: Future) -> None:
        result = future.result()

        def invoke() -> None:
            try:
                callback(result)
            except Exception:
                logger.exception("Callback for %s load failed", result.dataset)

        if self._dispatch is None:
            invoke()
        else:
            self._dispatch(invoke)

    def _submit(
        self, dataset: str, load: Callable[[], LoadResult], callback: Optional[Callback]
    ) -> Future:
        future = self._executor.submit(self._guarded, dataset, load)
        if callback is not None:
            future.add_done_callback(lambda f: self._deliver(callback, f))
        return future

    def load_branches_async(self, callback: Optional[Callback] = None) -> "Future[LoadResult[Branch]]":
        return self._submit(BRANCHES, self.service.load_branches, callback)

    def load_visits_async(self, callback: Optional[Callback] = None) -> "Future[LoadResult[VisitRecord]]":
        return self._submit(VISITS, self.service.load_visits, callback)

    def load_events_async(self, callback: Optional[Callback] = None) -> "Future[LoadResult[Event]]":
        return self._submit(EVENTS, self.service.load_events, callback)

    def load_all(self, callback: Optional[Callback] = None) -> PendingDatasets:
        """Start all three loads; ``callback`` fires once per dataset."""
        return PendingDatasets(
            branches=self.load_branches_async(callback),
            visits=self.load_visits_async(callback),
            events=self.load_events_async(callback),
        )
