# civic_dispatch/routers/issues.py
from fastapi import APIRouter, Depends, Query, HTTPException, Request
from typing import Optional
from civic_dispatch.core.deps import get_issue_service, get_viewer_id, refresh_writer_view
from civic_dispatch.core.ratelimit import limiter
from civic_dispatch.core.security import get_current_authority
from civic_dispatch.schemas.auth import Identity
from civic_dispatch.schemas.issue import IssueCreate, AssignIn, NoteIn, VoteIn, CommentIn
from civic_dispatch.services.dispatch import get_authority
from civic_dispatch.services.issues import IssueService
from civic_dispatch.services.store import MutationResult

router = APIRouter(prefix="/issues", tags=["issues"])


def _mutation_out(result: MutationResult, viewer_id: Optional[str]) -> dict:
    if result.conflict:
        raise HTTPException(status_code=409, detail="Issues changed while saving; reload and try again")
    if result.issue is None:
        raise HTTPException(status_code=404, detail="Issue not found")
    if result.version is not None:
        refresh_writer_view(viewer_id)
    return result.issue.to_record()


@router.post("", status_code=201)
@limiter.limit("10/minute")
def create_issue(
    request: Request,
    body: IssueCreate,
    svc: IssueService = Depends(get_issue_service),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    issue = svc.submit_issue(body, writer_id=viewer_id)
    if issue is None:
        raise HTTPException(status_code=409, detail="Issues changed while saving; please submit again")
    refresh_writer_view(viewer_id)
    out = issue.to_record()
    if issue.citizen_phone:
        out["rewardPoints"] = svc.rewards.points(issue.citizen_phone)
    return out


@router.get("")
def list_issues(
    search: Optional[str] = Query(default=None, description="Exact issue id"),
    status: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=10000),
    offset: int = Query(default=0, ge=0),
    svc: IssueService = Depends(get_issue_service),
):
    issues = svc.list_issues(search=search)
    if status:
        issues = [i for i in issues if i.status.value.lower() == status.strip().lower()]
    if category:
        issues = [i for i in issues if i.issue_type == category]
    # newest first, as ids are creation timestamps
    issues.sort(key=lambda i: i.id, reverse=True)
    return {
        "items": [i.to_record() for i in issues[offset:offset + limit]],
        "total": len(issues),
        "offset": offset,
        "limit": limit,
    }


@router.get("/{issue_id}")
def get_issue(issue_id: int, svc: IssueService = Depends(get_issue_service)):
    issue = svc.get_issue(issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")
    return issue.to_record()


@router.post("/{issue_id}/assign")
def assign_issue(
    issue_id: int,
    body: AssignIn,
    svc: IssueService = Depends(get_issue_service),
    me: Identity = Depends(get_current_authority),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    authority = get_authority(body.authority or me.authority_key)
    if authority is None:
        raise HTTPException(status_code=400, detail="Unknown authority")
    return _mutation_out(svc.assign_issue(issue_id, authority, writer_id=viewer_id), viewer_id)


@router.post("/{issue_id}/resolve")
def resolve_issue(
    issue_id: int,
    svc: IssueService = Depends(get_issue_service),
    me: Identity = Depends(get_current_authority),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    return _mutation_out(svc.resolve_issue(issue_id, writer_id=viewer_id), viewer_id)


@router.post("/{issue_id}/note")
def annotate_issue(
    issue_id: int,
    body: NoteIn,
    svc: IssueService = Depends(get_issue_service),
    me: Identity = Depends(get_current_authority),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    return _mutation_out(svc.annotate_issue(issue_id, body.note, writer_id=viewer_id), viewer_id)


@router.post("/{issue_id}/vote")
def vote(
    issue_id: int,
    body: VoteIn,
    svc: IssueService = Depends(get_issue_service),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    return _mutation_out(svc.vote(issue_id, body.direction, writer_id=viewer_id), viewer_id)


@router.post("/{issue_id}/comments")
def add_comment(
    issue_id: int,
    body: CommentIn,
    svc: IssueService = Depends(get_issue_service),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    return _mutation_out(svc.add_comment(issue_id, body.text, writer_id=viewer_id), viewer_id)
