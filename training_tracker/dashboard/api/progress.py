import logging
from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from ...core.progress import activity_level
from ...services.progress_service import ImportFormatError, ProgressService
from ..dependencies import get_current_user, get_progress_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


def _attachment(name: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{name}"'}


@router.get("/stats", response_model=Dict[str, Any])
async def get_stats(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Overall and per-section completion
    """
    return service.stats()


@router.get("/activity", response_model=Dict[str, Any])
async def get_activity(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Confirmations per day for the activity heatmap
    """
    days = [{**day, "level": activity_level(day["count"])} for day in service.activity()]
    return {"days": days, "total": sum(day["count"] for day in days)}


@router.post("/reset", response_model=Dict[str, Any])
async def reset_progress(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    service.reset()
    return {"reset": True}


@router.get("/export.json")
async def export_json(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    filename = f"training-export-{date.today().isoformat()}.json"
    return JSONResponse(content=service.export_json(), headers=_attachment(filename))


@router.get("/export.csv")
async def export_csv(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    filename = f"training-export-{date.today().isoformat()}.csv"
    return Response(
        content=service.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers=_attachment(filename),
    )


@router.post("/import/json", response_model=Dict[str, Any])
async def import_json(
    payload: Any = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Restore confirmations from a JSON export envelope
    """
    try:
        restored = service.import_json(payload)
    except ImportFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"restored": restored}


@router.post("/import/csv", response_model=Dict[str, Any])
async def import_csv(
    request: Request,
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Replace tasks and confirmations with an uploaded CSV export (raw request body)
    """
    raw = await request.body()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")
    try:
        return service.import_csv(text)
    except ImportFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/sync/push", response_model=Dict[str, Any])
async def sync_push(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    return {"synced": service.push_remote(user["id"])}


@router.post("/sync/pull", response_model=Dict[str, Any])
async def sync_pull(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    return service.pull_remote(user["id"])
