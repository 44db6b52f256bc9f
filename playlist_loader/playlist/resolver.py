"""
Track resolver contract and the ordered, thread-pooled base resolver.

A resolver turns a raw reference (URL or search text) into one
ResolveOutcome and hands it to a callback. Playlists submit all their
items under one order key (the playlist name) and rely on the resolver
to report outcomes for the same key in submission order.

OrderedResolver provides that guarantee on top of a ThreadPoolExecutor:
    - items of the same key are resolved one after the other, in order
    - different keys are resolved concurrently on the shared pool
    - a failing resolve() becomes a ResolutionFailed outcome
    - a failing handler is logged and doesn't block the key's queue
    - shutdown(wait=False) drops queued items and cancels their futures

Usage:
    class MyResolver(OrderedResolver):
        def resolve(self, reference: str) -> ResolveOutcome:
            ...

    with MyResolver(threads=4) as resolver:
        playlist.load(resolver, config.playback.is_too_long, on_track, on_done)
        playlist.wait()
"""

import threading
from abc import ABC, abstractmethod
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

from playlist_loader.core.exceptions import ResolverError
from playlist_loader.core.logger import get_logger
from playlist_loader.playlist.models import ResolutionFailed, ResolveOutcome

logger = get_logger(__name__)


OutcomeHandler = Callable[[ResolveOutcome], None]


class TrackResolver(ABC):
    """Interface for resolving references asynchronously, FIFO per order key."""

    @abstractmethod
    def submit(self, order_key: str, reference: str, handler: OutcomeHandler) -> Future:
        """
        Queue a reference for resolution and return immediately.

        Args:
            order_key: Outcomes for the same key are delivered in
                       submission order.
            reference: URL or search text.
            handler: Called exactly once with the outcome, on a worker thread.

        Returns:
            Future completed with the outcome once the handler has run.
        """
        ...


@dataclass
class _PendingItem:
    reference: str
    handler: OutcomeHandler
    future: Future


class OrderedResolver(TrackResolver):
    """
    Base resolver with per-key FIFO delivery on a shared thread pool.

    Subclasses implement resolve(), which runs on a worker thread and
    may block (network access etc.).

    Attributes:
        _executor: Worker pool shared by all order keys.
        _queues: Pending items per order key. A key is present while a
                 worker is draining it.
        _lock: Protects _queues and _closed.

    Thread Safety:
        submit() may be called from any thread, including from inside
        a handler.
    """

    def __init__(self, threads: int = 4) -> None:
        """
        Initialize the resolver.

        Args:
            threads: Number of worker threads. Each active order key
                     occupies at most one worker at a time.
        """
        self._executor = ThreadPoolExecutor(max_workers=threads, thread_name_prefix="resolver")
        self._queues: dict[str, deque[_PendingItem]] = {}
        self._lock = threading.Lock()
        self._closed = False

    @abstractmethod
    def resolve(self, reference: str) -> ResolveOutcome:
        """
        Resolve one reference. Runs on a worker thread.

        Raises:
            ResolverError: For expected failures; the message becomes the
                           ResolutionFailed reason.
        """
        ...

    def submit(self, order_key: str, reference: str, handler: OutcomeHandler) -> Future:
        future: Future = Future()
        pending = _PendingItem(reference=reference, handler=handler, future=future)

        with self._lock:
            if self._closed:
                raise RuntimeError("cannot submit after the resolver was shut down")
            queue = self._queues.get(order_key)
            if queue is not None:
                # A worker is already draining this key and will get to it
                queue.append(pending)
                return future
            self._queues[order_key] = deque([pending])

        try:
            self._executor.submit(self._drain, order_key)
        except RuntimeError:
            with self._lock:
                self._queues.pop(order_key, None)
            raise

        logger.debug(f"Started worker for order key '{order_key}'")
        return future

    def _drain(self, order_key: str) -> None:
        """Process a key's queue until it is empty, then release the key."""
        while True:
            with self._lock:
                queue = self._queues.get(order_key)
                if not queue:
                    self._queues.pop(order_key, None)
                    return
                pending = queue.popleft()

            self._process(pending)

    def _process(self, pending: _PendingItem) -> None:
        outcome = self._resolve_safely(pending.reference)
        try:
            pending.handler(outcome)
        except Exception as e:
            logger.exception(f"Outcome handler failed for '{pending.reference}'")
            pending.future.set_exception(e)
            return
        pending.future.set_result(outcome)

    def _resolve_safely(self, reference: str) -> ResolveOutcome:
        try:
            return self.resolve(reference)
        except ResolverError as e:
            logger.debug(f"Resolver error for '{reference}': {e.message}")
            return ResolutionFailed(reason=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error resolving '{reference}'")
            return ResolutionFailed(reason=str(e) or e.__class__.__name__)

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting work and release the worker threads.

        Args:
            wait: If True, block until queued items have been processed.
                  If False, drop every queued item (its future is
                  cancelled and its handler never runs) and return at
                  once. Items already inside resolve() still finish.
        """
        dropped: list[_PendingItem] = []
        with self._lock:
            self._closed = True
            if not wait:
                for queue in self._queues.values():
                    dropped.extend(queue)
                    queue.clear()

        for pending in dropped:
            pending.future.cancel()
        if dropped:
            logger.debug(f"Dropped {len(dropped)} queued items on shutdown")

        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> "OrderedResolver":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.shutdown(wait=True)
