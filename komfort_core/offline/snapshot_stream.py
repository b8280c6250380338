# =============================================================================
# komfort_core/offline/snapshot_stream.py
# Hot multicast stream of collection snapshots
# =============================================================================
"""
SnapshotStream - replay-latest publish/subscribe.

A new subscriber receives the current snapshot immediately and every
published snapshot after that. History is not replayed. Each delivery is
a private deep copy, so one subscriber cannot alter what another sees.

Usage:
    stream = SnapshotStream([])
    sub = stream.subscribe(lambda items: print(len(items)))
    stream.publish(items)
    sub.unsubscribe()
"""

from __future__ import annotations
import copy
import threading
from typing import Callable, Generic, List, Optional, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() to stop receiving."""

    def __init__(self, stream: SnapshotStream, callback: Callable):
        self._stream = stream
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._stream._remove(self._callback)
            self.active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.unsubscribe()
        return False


class SnapshotStream(Generic[T]):
    """Thread-safe multicast channel that remembers its latest value."""

    def __init__(self, initial: Optional[T] = None, name: str = "snapshots"):
        self.name = name
        self._latest: Optional[T] = initial
        self._callbacks: List[Callable[[T], None]] = []
        self._lock = threading.Lock()

    @property
    def latest(self) -> Optional[T]:
        with self._lock:
            return copy.deepcopy(self._latest)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """
        Register a callback and immediately deliver the latest snapshot.

        Args:
            callback: Function called with each snapshot

        Returns:
            Subscription handle
        """
        with self._lock:
            self._callbacks.append(callback)
            latest = self._latest
        self._deliver(callback, latest)
        return Subscription(self, callback)

    def publish(self, snapshot: T) -> None:
        """Store snapshot as the latest value and push it to all subscribers."""
        with self._lock:
            self._latest = snapshot
            callbacks = list(self._callbacks)
        for callback in callbacks:
            self._deliver(callback, snapshot)

    def _remove(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _deliver(self, callback: Callable[[T], None], snapshot: T) -> None:
        try:
            callback(copy.deepcopy(snapshot))
        except Exception as e:
            logger.error(f"Error in {self.name} subscriber: {e}")
