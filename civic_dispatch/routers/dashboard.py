# civic_dispatch/routers/dashboard.py
import uuid
from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from civic_dispatch.core.deps import get_viewer_id, viewers
from civic_dispatch.core.security import get_current_authority
from civic_dispatch.schemas.auth import Identity
from civic_dispatch.services.dispatch import get_authority

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("")
def dashboard(
    me: Identity = Depends(get_current_authority),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    """
    Current derived view for the calling authority. Send the returned
    ``viewer_id`` back as ``X-Viewer-Id`` to keep the same view; it is then
    refreshed (and alerted) whenever someone else changes the issue list.
    """
    view = viewers.open(viewer_id or uuid.uuid4().hex, get_authority(me.authority_key))
    # catches writes made by other server processes
    view.poll()
    return view.as_dict()

@router.delete("")
def close_dashboard(
    me: Identity = Depends(get_current_authority),
    viewer_id: Optional[str] = Depends(get_viewer_id),
):
    view = viewers.get(viewer_id)
    if view is not None:
        if view.authority.key != me.authority_key:
            raise HTTPException(status_code=403, detail="This view belongs to another authority")
        viewers.close(viewer_id)
    return {"ok": True}
