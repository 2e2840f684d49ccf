# civic_dispatch/services/issues.py
"""
Citizen and authority actions on the issue collection.

Every action loads the whole collection, changes it, saves the whole
collection back and then tells the other viewers that it changed. Actions on
an id that does not exist change nothing and return None.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from civic_dispatch.schemas.authority import Authority
from civic_dispatch.schemas.issue import Comment, Issue, IssueCreate, IssueStatus
from civic_dispatch.services.dispatch import get_policy
from civic_dispatch.services.geo import resolve_location
from civic_dispatch.services.notifier import ChangeNotifier, notifier as default_notifier
from civic_dispatch.services.rewards import RewardsLedger
from civic_dispatch.services.store import MutationResult, ReportStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_from_ms(ms: int) -> str:
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class IssueService:
    def __init__(
        self,
        db: Session,
        store: Optional[ReportStore] = None,
        policy=None,
        notifier: Optional[ChangeNotifier] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store or ReportStore(db)
        self.rewards = RewardsLedger(db)
        self.policy = policy or get_policy()
        self.notifier = notifier or default_notifier
        self.clock = clock

    def _publish(self, version: Optional[int], writer_id: Optional[str]) -> None:
        if version is not None:
            self.notifier.publish(self.store.key, version, writer_id)

    def _mutate(self, issue_id: int, update_fn, writer_id: Optional[str]) -> MutationResult:
        result = self.store.mutate(issue_id, update_fn)
        self._publish(result.version, writer_id)
        return result

    # ---------- reads ----------

    def list_issues(self, search: Optional[str] = None) -> List[Issue]:
        issues = self.store.load_all()
        if search and search.strip():
            term = search.strip()
            issues = [i for i in issues if str(i.id) == term]
        return issues

    def get_issue(self, issue_id: int) -> Optional[Issue]:
        for issue in self.store.load_all():
            if issue.id == issue_id:
                return issue
        return None

    def issues_for(self, authority: Authority) -> List[Issue]:
        return [i for i in self.store.load_all() if i.assigned_name == authority.name]

    # ---------- citizen actions ----------

    def submit_issue(self, payload: IssueCreate, writer_id: Optional[str] = None) -> Optional[Issue]:
        version, current = self.store.snapshot()
        authority = self.policy.assign(payload.issue_type, current)
        last_id = max((i.id for i in current), default=0)
        issue = Issue(
            # ids are creation timestamps, bumped past the newest one so they stay unique
            id=max(self.clock(), last_id + 1),
            issue_type=payload.issue_type,
            description=payload.description,
            coordinates=resolve_location(payload.coordinates, payload.location_failed),
            evidence_ref=payload.evidence_ref or None,
            status=IssueStatus.pending,
            assigned_name=authority.name,
            assigned_phone=authority.phone,
            citizen_name=payload.citizen_name.strip(),
            citizen_phone=payload.citizen_phone.strip(),
        )
        current.append(issue)
        new_version = self.store.save_all(current, version if self.store.strict else None)
        if new_version is None:
            logger.warning(f"Submission for {issue.issue_type!r} was not saved")
            return None
        logger.info(f"Issue {issue.id} ({issue.issue_type}) dispatched to {authority.name} via {self.policy.name}")
        if issue.citizen_phone:
            self.rewards.credit(issue.citizen_phone)
        self._publish(new_version, writer_id)
        return issue

    def vote(self, issue_id: int, direction: str, writer_id: Optional[str] = None) -> MutationResult:
        field = "upvotes" if direction == "up" else "downvotes"
        return self._mutate(
            issue_id,
            lambda i: i.model_copy(update={field: getattr(i, field) + 1}),
            writer_id,
        )

    def add_comment(self, issue_id: int, text: str, writer_id: Optional[str] = None) -> MutationResult:
        text = (text or "").strip()

        def _append(issue: Issue) -> Issue:
            if not text:
                return issue
            comment = Comment(text=text, date=iso_from_ms(self.clock()))
            return issue.model_copy(update={"comments": [*issue.comments, comment]})

        return self._mutate(issue_id, _append, writer_id)

    # ---------- authority actions ----------

    def assign_issue(self, issue_id: int, authority: Authority, writer_id: Optional[str] = None) -> MutationResult:
        return self._mutate(
            issue_id,
            lambda i: i.model_copy(update={"assigned_name": authority.name, "assigned_phone": authority.phone}),
            writer_id,
        )

    def resolve_issue(self, issue_id: int, writer_id: Optional[str] = None) -> MutationResult:
        def _resolve(issue: Issue) -> Issue:
            # Resolved is terminal and resolvedAt is written once
            if issue.is_resolved:
                return issue
            return issue.model_copy(
                update={"status": IssueStatus.resolved, "resolved_at": max(self.clock(), issue.created_at)}
            )

        return self._mutate(issue_id, _resolve, writer_id)

    def annotate_issue(self, issue_id: int, note: str, writer_id: Optional[str] = None) -> MutationResult:
        note = (note or "").strip()
        return self._mutate(
            issue_id,
            lambda i: i.model_copy(update={"authority_note": note}) if note else i,
            writer_id,
        )
