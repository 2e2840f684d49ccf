# civic_dispatch/core/deps.py
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from civic_dispatch.db.session import get_db, SessionLocal
from civic_dispatch.services.issues import IssueService
from civic_dispatch.services.viewer import ViewerRegistry

viewers = ViewerRegistry(SessionLocal)

def get_issue_service(db: Session = Depends(get_db)) -> IssueService:
    return IssueService(db)

def get_viewer_id(x_viewer_id: Optional[str] = Header(default=None, max_length=120)) -> Optional[str]:
    return x_viewer_id or None

def refresh_writer_view(viewer_id: Optional[str]) -> None:
    # writers get no notification for their own change
    view = viewers.get(viewer_id)
    if view is not None:
        view.refresh()
