# civic_dispatch/services/store.py
"""
Whole-collection persistence.

Each collection lives in a single ``collections`` row and is only ever read
and written in full. Readers that hit a missing or unreadable payload get an
empty collection back; nothing here raises into the caller.
Individual records that fail validation are skipped on read and written back
unchanged, so a save never drops them.
"""
import json
import logging
from typing import Callable, List, NamedTuple, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from civic_dispatch.core.config import settings
from civic_dispatch.models.collection import StoredCollection
from civic_dispatch.schemas.issue import Issue, IssueStatus

logger = logging.getLogger(__name__)


class CollectionStore:
    """Versioned JSON blob keyed by collection name."""

    def __init__(self, db: Session, key: str):
        self.db = db
        self.key = key

    def read(self) -> Tuple[int, Optional[str]]:
        try:
            row = self.db.execute(
                select(StoredCollection.version, StoredCollection.payload)
                .where(StoredCollection.key == self.key)
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read collection {self.key!r}: {e}", exc_info=True)
            self.db.rollback()
            return 0, None
        if row is None:
            return 0, None
        return row[0] or 0, row[1]

    def version(self) -> int:
        return self.read()[0]

    def write(self, payload: str, expected_version: Optional[int] = None) -> Optional[int]:
        """
        Replace the payload and bump the version. Returns the new version, or
        None when ``expected_version`` is stale or the write failed.
        """
        try:
            current = self.read()[0]
            if expected_version is not None and expected_version != current:
                logger.info(
                    f"Rejected stale write to {self.key!r}: read v{expected_version}, stored v{current}"
                )
                return None

            if current == 0 and self.db.get(StoredCollection, self.key) is None:
                self.db.add(StoredCollection(key=self.key, version=1, payload=payload))
                self.db.commit()
                return 1

            stmt = update(StoredCollection).where(StoredCollection.key == self.key)
            if expected_version is not None:
                stmt = stmt.where(StoredCollection.version == expected_version)
            result = self.db.execute(
                stmt.values(payload=payload, version=StoredCollection.version + 1)
            )
            if result.rowcount == 0:
                self.db.rollback()
                return None
            new_version = self.db.execute(
                select(StoredCollection.version).where(StoredCollection.key == self.key)
            ).scalar_one()
            self.db.commit()
            return new_version
        except IntegrityError:
            # another writer created the row first
            self.db.rollback()
            if expected_version is None:
                return self.write(payload, expected_version=None)
            return None
        except SQLAlchemyError as e:
            logger.error(f"Failed to write collection {self.key!r}: {e}", exc_info=True)
            self.db.rollback()
            return None


class MutationResult(NamedTuple):
    issue: Optional[Issue]
    # None when nothing was written
    version: Optional[int]
    # the write was rejected because the snapshot it was based on went stale
    conflict: bool = False


class ReportStore:
    """
    The authoritative issue collection.

    ``strict=True`` makes append/mutate pass the version they loaded, so a
    write based on a stale snapshot is rejected instead of silently replacing
    a concurrent writer's change.
    """

    def __init__(self, db: Session, key: Optional[str] = None, strict: Optional[bool] = None):
        self._blob = CollectionStore(db, key or settings.collection_key)
        self.strict = settings.strict_writes if strict is None else strict
        # raw records from the last read that did not validate
        self._unreadable: list = []

    @property
    def key(self) -> str:
        return self._blob.key

    def version(self) -> int:
        return self._blob.version()

    def snapshot(self) -> Tuple[int, List[Issue]]:
        version, payload = self._blob.read()
        return version, self._parse(payload)

    def load_all(self) -> List[Issue]:
        return self.snapshot()[1]

    def save_all(self, issues: List[Issue], expected_version: Optional[int] = None) -> Optional[int]:
        records = [i.to_record() for i in issues] + self._unreadable
        payload = json.dumps(records, ensure_ascii=False)
        return self._blob.write(payload, expected_version)

    def append(self, issue: Issue) -> Optional[int]:
        version, issues = self.snapshot()
        issues.append(issue)
        return self.save_all(issues, version if self.strict else None)

    def mutate(self, issue_id: int, update_fn: Callable[[Issue], Issue]) -> MutationResult:
        """
        Map ``update_fn`` over the issue with ``issue_id``. Unknown ids and
        updates that return the issue unchanged write nothing.
        """
        version, issues = self.snapshot()
        target = None
        changed = False
        out = []
        for issue in issues:
            if issue.id == issue_id:
                updated = update_fn(issue)
                changed = updated != issue
                target = updated
                out.append(updated)
            else:
                out.append(issue)
        if target is None or not changed:
            return MutationResult(target, None)
        new_version = self.save_all(out, version if self.strict else None)
        if new_version is None:
            return MutationResult(target, None, conflict=True)
        return MutationResult(target, new_version)

    def _parse(self, payload: Optional[str]) -> List[Issue]:
        self._unreadable = []
        if payload is None:
            return []
        try:
            data = json.loads(payload)
        except (TypeError, ValueError):
            logger.warning(f"Collection {self.key!r} is not valid JSON; treating as empty")
            return []
        if not isinstance(data, list):
            logger.warning(f"Collection {self.key!r} is not a list; treating as empty")
            return []
        issues = []
        for record in data:
            try:
                issues.append(Issue.model_validate(_repair_record(record)))
            except ValidationError as e:
                logger.warning(
                    f"Skipping unreadable record in {self.key!r} ({e.error_count()} errors): {str(record)[:200]}"
                )
                self._unreadable.append(record)
        return issues


def _repair_record(record):
    """Older records were resolved without a resolvedAt; use the creation time."""
    if not isinstance(record, dict):
        return record
    resolved = record.get("status") == IssueStatus.resolved.value
    has_resolved_at = record.get("resolvedAt") is not None
    if resolved and not has_resolved_at and isinstance(record.get("id"), int):
        return {**record, "resolvedAt": record["id"]}
    if not resolved and has_resolved_at:
        return {k: v for k, v in record.items() if k != "resolvedAt"}
    return record
