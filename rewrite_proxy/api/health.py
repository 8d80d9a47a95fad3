"""
Health Check API
"""

from fastapi import APIRouter

from rewrite_proxy.api.deps import SettingsDep

router = APIRouter(tags=["Health"])


@router.get("/healthz")
async def health_check(settings: SettingsDep):
    """
    Health Check

    Used for liveness probes. Answers without contacting the upstream.
    """
    return {"ok": True, "target": settings.TARGET}
