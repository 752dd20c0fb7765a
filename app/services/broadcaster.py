"""
In-process notification sink for committed scoring changes
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, int, dict], None]


class MatchBroadcaster:
    """
    Fans out (event name, match id, payload) to subscribers.

    Delivery happens on a single worker thread per match, so publish()
    returns at once and one match's notifications arrive in the order
    they were published. A subscriber registered with a match id only
    hears about that match. A failing subscriber is logged and skipped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: list[tuple[Optional[int], Subscriber]] = []
        self._workers: dict[int, ThreadPoolExecutor] = {}

    def subscribe(self, callback: Subscriber, match_id: Optional[int] = None) -> Callable[[], None]:
        """Register a callback. Returns a function that removes it again."""
        entry = (match_id, callback)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: str, match_id: int, payload: dict) -> Optional[Future]:
        """Queue a notification for the match's subscribers"""
        with self._lock:
            targets = [cb for mid, cb in self._subscribers if mid is None or mid == match_id]
            if not targets:
                return None
            worker = self._workers.get(match_id)
            if worker is None:
                worker = self._workers[match_id] = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=f"match-{match_id}-notify"
                )
        return worker.submit(self._deliver, targets, event, match_id, payload)

    def flush(self, match_id: Optional[int] = None, timeout: Optional[float] = None) -> None:
        """Wait until everything published so far has been delivered"""
        with self._lock:
            if match_id is None:
                workers = list(self._workers.values())
            else:
                workers = [self._workers[match_id]] if match_id in self._workers else []
        for worker in workers:
            worker.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        """Deliver what is queued, then stop the worker threads"""
        with self._lock:
            workers, self._workers = list(self._workers.values()), {}
        for worker in workers:
            worker.shutdown(wait=True)

    @staticmethod
    def _deliver(targets: list[Subscriber], event: str, match_id: int, payload: dict) -> None:
        for callback in targets:
            try:
                callback(event, match_id, payload)
            except Exception:
                logger.exception("Subscriber failed on %s for match %s", event, match_id)
