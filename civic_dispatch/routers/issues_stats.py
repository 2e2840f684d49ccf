# civic_dispatch/routers/issues_stats.py
from fastapi import APIRouter, Depends, Query
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from civic_dispatch.core.deps import get_issue_service
from civic_dispatch.schemas.issue import Issue
from civic_dispatch.services.dispatch import AUTHORITIES
from civic_dispatch.services.issues import IssueService
from civic_dispatch.services.scoring import score

router = APIRouter(prefix="/issues/stats", tags=["issues:stats"])

def range_to_ms(range_key: str) -> Optional[int]:
    now = datetime.now(timezone.utc)
    since = None
    if range_key == "today": since = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if range_key == "7d": since = now - timedelta(days=7)
    if range_key == "30d": since = now - timedelta(days=30)
    if range_key == "90d": since = now - timedelta(days=90)
    if range_key == "year": since = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return int(since.timestamp() * 1000) if since else None

def _in_range(issues: List[Issue], range_key: str) -> List[Issue]:
    since = range_to_ms(range_key)
    if since is None:
        return issues
    return [i for i in issues if i.created_at >= since]

@router.get("/summary")
def summary(range: str = Query("all"), svc: IssueService = Depends(get_issue_service)):
    issues = _in_range(svc.store.load_all(), range)
    resolved = sum(1 for i in issues if i.is_resolved)
    return {"total": len(issues), "pending": len(issues) - resolved, "resolved": resolved}

@router.get("/by-type")
def by_type(range: str = Query("all"), svc: IssueService = Depends(get_issue_service)):
    by_cat: dict[str, dict[str, int]] = {}
    for issue in _in_range(svc.store.load_all(), range):
        row = by_cat.setdefault(issue.issue_type or "unknown", {"pending": 0, "resolved": 0})
        row["resolved" if issue.is_resolved else "pending"] += 1
    return [
        {"type": cat, "count": data["pending"] + data["resolved"], **data}
        for cat, data in sorted(by_cat.items(), key=lambda x: sum(x[1].values()), reverse=True)
    ]

@router.get("/by-authority")
def by_authority(range: str = Query("all"), svc: IssueService = Depends(get_issue_service)):
    issues = _in_range(svc.store.load_all(), range)
    out = []
    for a in AUTHORITIES:
        mine = [i for i in issues if i.assigned_name == a.name]
        resolved = sum(1 for i in mine if i.is_resolved)
        out.append({
            "authority": a.name,
            "total": len(mine),
            "pending": len(mine) - resolved,
            "resolved": resolved,
            "score": score(mine).value,
        })
    return out
