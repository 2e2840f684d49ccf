# civic_dispatch/services/notifier.py
import logging
import threading
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class ChangeEvent(BaseModel):
    """Carries no issue data; receivers re-fetch the collection."""
    model_config = ConfigDict(frozen=True)

    collection_key: str
    version: int


Callback = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """
    Publish/subscribe keyed by collection. ``publish`` reaches every
    subscriber of the collection except the writer, which is expected to
    refresh its own view after writing.
    """

    def __init__(self):
        self._subscribers: Dict[str, Dict[str, Callback]] = {}
        self._lock = threading.Lock()

    def subscribe(self, collection_key: str, viewer_id: str, callback: Callback) -> None:
        with self._lock:
            self._subscribers.setdefault(collection_key, {})[viewer_id] = callback

    def unsubscribe(self, collection_key: str, viewer_id: str) -> None:
        with self._lock:
            subs = self._subscribers.get(collection_key)
            if subs is not None:
                subs.pop(viewer_id, None)
                if not subs:
                    del self._subscribers[collection_key]

    def subscribers(self, collection_key: str):
        with self._lock:
            return list(self._subscribers.get(collection_key, {}))

    def publish(self, collection_key: str, version: int, writer_id: Optional[str] = None) -> int:
        """Returns how many subscribers were notified."""
        event = ChangeEvent(collection_key=collection_key, version=version)
        delivered = 0
        with self._lock:
            targets = list(self._subscribers.get(collection_key, {}).items())
        # callbacks run outside the lock; they may subscribe or unsubscribe
        for viewer_id, callback in targets:
            if viewer_id == writer_id:
                continue
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                logger.error(f"Change callback for viewer {viewer_id} failed: {e}", exc_info=True)
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()


notifier = ChangeNotifier()
