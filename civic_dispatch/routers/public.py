# civic_dispatch/routers/public.py
from fastapi import APIRouter
from civic_dispatch.core.config import settings
from civic_dispatch.schemas.issue import CATEGORIES
from civic_dispatch.services.dispatch import get_policy, CategoryRoutingPolicy

router = APIRouter(prefix="/public", tags=["public"])

@router.get("/issue-types")
def issue_types():
    routing = CategoryRoutingPolicy()
    return [{"name": c, "routed_to": routing.assign(c, []).name} for c in CATEGORIES]

@router.get("/settings")
def public_settings():
    return {
        "dispatch_policy": get_policy().name,
        "alert_ttl_seconds": settings.alert_ttl_seconds,
        "reward_points_per_report": settings.reward_points_per_report,
        "use_fallback_location": settings.use_fallback_location,
    }
