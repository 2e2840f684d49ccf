# civic_dispatch/services/viewer.py
"""
Per-viewer derived state for an authority dashboard.

A view holds the last snapshot it loaded and everything derived from it:
the prioritized list and the performance score for its authority. It is
refreshed directly by its own writes and through the change notifier for
everyone else's. Notifications arrive on other request threads, so each view
swaps its snapshot and derived state under one lock and readers never see a
mix of two snapshots.
"""
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from civic_dispatch.core.config import settings
from civic_dispatch.schemas.authority import Authority, PerformanceScore
from civic_dispatch.schemas.issue import Issue, PrioritizedIssue, Priority
from civic_dispatch.services.notifier import ChangeEvent, ChangeNotifier, notifier as default_notifier
from civic_dispatch.services.priority import classify
from civic_dispatch.services.scoring import NO_DATA, score
from civic_dispatch.services.store import ReportStore

logger = logging.getLogger(__name__)

NEW_ISSUE_ALERT = "A new issue has been reported and assigned to your department!"
UPDATED_ALERT = "Issues were updated elsewhere; this view has been refreshed."


class AuthorityView:
    def __init__(
        self,
        viewer_id: str,
        authority: Authority,
        session_factory: Callable,
        collection_key: Optional[str] = None,
        notifier: Optional[ChangeNotifier] = None,
        clock: Callable[[], float] = time.monotonic,
        alert_ttl: Optional[float] = None,
    ):
        self.viewer_id = viewer_id
        self.authority = authority
        self.session_factory = session_factory
        self.collection_key = collection_key or settings.collection_key
        self.notifier = notifier or default_notifier
        self.clock = clock
        self.alert_ttl = settings.alert_ttl_seconds if alert_ttl is None else alert_ttl

        self._lock = threading.RLock()
        self.version = 0
        self.issues: List[Issue] = []
        self.prioritized: List[PrioritizedIssue] = []
        self.score: PerformanceScore = NO_DATA
        self._alert_message: Optional[str] = None
        self._alert_until: Optional[float] = None
        self.last_seen = clock()

    def attach(self) -> None:
        self.notifier.subscribe(self.collection_key, self.viewer_id, self.on_change)

    def detach(self) -> None:
        self.notifier.unsubscribe(self.collection_key, self.viewer_id)

    def touch(self) -> None:
        self.last_seen = self.clock()

    def _load(self):
        db = self.session_factory()
        try:
            return ReportStore(db, self.collection_key).snapshot()
        finally:
            db.close()

    def refresh(self) -> None:
        version, issues = self._load()
        mine = [i for i in issues if i.assigned_name == self.authority.name]
        prioritized = classify(issues, self.authority.name)
        result = score(mine)
        with self._lock:
            # an older snapshot loaded by a slower thread must not replace a newer one
            if version < self.version:
                return
            self.version, self.issues, self.prioritized, self.score = version, issues, prioritized, result

    def on_change(self, event: ChangeEvent) -> None:
        with self._lock:
            before = {i.id for i in self.mine()}
            self.refresh()
            arrived = [i for i in self.mine() if i.id not in before]
            self._alert_message = NEW_ISSUE_ALERT if arrived else UPDATED_ALERT
            self._alert_until = self.clock() + self.alert_ttl
        logger.debug(f"Viewer {self.viewer_id} refreshed to v{self.version} after change v{event.version}")

    def poll(self) -> bool:
        """Pick up writes made outside this process. True when a change was seen."""
        db = self.session_factory()
        try:
            current = ReportStore(db, self.collection_key).version()
        finally:
            db.close()
        with self._lock:
            if current == self.version:
                return False
            self.on_change(ChangeEvent(collection_key=self.collection_key, version=current))
            return True

    @property
    def alert(self) -> Optional[str]:
        with self._lock:
            if self._alert_until is not None and self.clock() < self._alert_until:
                return self._alert_message
            return None

    def mine(self) -> List[Issue]:
        with self._lock:
            return [i for i in self.issues if i.assigned_name == self.authority.name]

    def metrics(self) -> dict:
        with self._lock:
            mine = self.mine()
            resolved = sum(1 for i in mine if i.is_resolved)
            return {
                "total": len(self.issues),
                "assigned": len(mine),
                "pending": len(mine) - resolved,
                "resolved": resolved,
                "high_priority": sum(1 for i in self.prioritized if i.priority == Priority.high),
            }

    def as_dict(self) -> dict:
        with self._lock:
            return {
                "viewer_id": self.viewer_id,
                "authority": self.authority.model_dump(),
                "version": self.version,
                "metrics": self.metrics(),
                "score": self.score.model_dump(),
                "issues": [i.to_record() for i in self.prioritized],
                "alert": self.alert,
            }


class ViewerRegistry:
    """
    One view per viewer id, subscribed for as long as it is registered.

    Views that have not been opened for ``idle_seconds`` are dropped the next
    time a view is opened, and past ``max_views`` the least recently used
    views go first.
    """

    def __init__(
        self,
        session_factory: Callable,
        notifier: Optional[ChangeNotifier] = None,
        idle_seconds: Optional[float] = None,
        max_views: Optional[int] = None,
        **view_kwargs,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or default_notifier
        self.idle_seconds = settings.viewer_idle_seconds if idle_seconds is None else idle_seconds
        self.max_views = settings.max_viewers if max_views is None else max_views
        self.view_kwargs = view_kwargs
        self.clock = view_kwargs.get("clock", time.monotonic)
        self._views: Dict[str, AuthorityView] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._views)

    def get(self, viewer_id: Optional[str]) -> Optional[AuthorityView]:
        if not viewer_id:
            return None
        view = self._views.get(viewer_id)
        if view is not None:
            view.touch()
        return view

    def open(self, viewer_id: str, authority: Authority) -> AuthorityView:
        with self._lock:
            view = self._views.get(viewer_id)
            if view is not None and view.authority == authority:
                view.touch()
                return view
            if view is not None:
                view.detach()
            self._evict(keep=viewer_id)
            view = AuthorityView(
                viewer_id, authority, self.session_factory, notifier=self.notifier, **self.view_kwargs
            )
            view.attach()
            view.refresh()
            self._views[viewer_id] = view
            return view

    def _evict(self, keep: str) -> None:
        cutoff = self.clock() - self.idle_seconds
        stale = [vid for vid, v in self._views.items() if vid != keep and v.last_seen < cutoff]
        others = sorted(
            (v for vid, v in self._views.items() if vid != keep and vid not in stale),
            key=lambda v: v.last_seen,
        )
        # room for the view about to be opened
        overflow = len(others) + 1 - self.max_views
        if overflow > 0:
            stale.extend(v.viewer_id for v in others[:overflow])
        for vid in stale:
            self._views.pop(vid).detach()
        if stale:
            logger.info(f"Dropped {len(stale)} idle dashboard views")

    def close(self, viewer_id: str) -> None:
        with self._lock:
            view = self._views.pop(viewer_id, None)
        if view is not None:
            view.detach()

    def clear(self) -> None:
        for viewer_id in list(self._views):
            self.close(viewer_id)
