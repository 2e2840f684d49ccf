# civic_dispatch/routers/authorities.py
from fastapi import APIRouter, Depends, HTTPException
from typing import List
from civic_dispatch.core.deps import get_issue_service
from civic_dispatch.schemas.authority import AuthorityOut, PerformanceScore
from civic_dispatch.services.dispatch import AUTHORITIES, get_authority
from civic_dispatch.services.issues import IssueService
from civic_dispatch.services.priority import classify
from civic_dispatch.services.scoring import score

router = APIRouter(prefix="/authorities", tags=["authorities"])

@router.get("", response_model=List[AuthorityOut])
def list_authorities(svc: IssueService = Depends(get_issue_service)):
    issues = svc.store.load_all()
    out = []
    for a in AUTHORITIES:
        mine = [i for i in issues if i.assigned_name == a.name]
        out.append(AuthorityOut(key=a.key, name=a.name, phone=a.phone, assigned=len(mine), score=score(mine)))
    return out

@router.get("/{key}/score", response_model=PerformanceScore)
def authority_score(key: str, svc: IssueService = Depends(get_issue_service)):
    authority = get_authority(key)
    if not authority:
        raise HTTPException(status_code=404, detail="Authority not found")
    return score(svc.issues_for(authority))

@router.get("/{key}/issues")
def authority_issues(key: str, svc: IssueService = Depends(get_issue_service)):
    """The authority's issues, recurring-location clusters first."""
    authority = get_authority(key)
    if not authority:
        raise HTTPException(status_code=404, detail="Authority not found")
    return [i.to_record() for i in classify(svc.store.load_all(), authority.name)]
