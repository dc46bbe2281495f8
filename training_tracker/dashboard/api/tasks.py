import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ...services.progress_service import ProgressService, TaskNotFoundError
from ..dependencies import get_current_user, get_progress_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class ConfirmRequest(BaseModel):
    confirmed: bool = True


@router.get("", response_model=Dict[str, Any])
async def list_tasks(
    query: str = Query("", max_length=200),
    tab: str = Query("all", pattern="^(all|pending|completed)$"),
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Sections with confirmations merged, filtered by search text and tab
    """
    try:
        return service.view(query=query, tab=tab)
    except Exception as e:
        logger.error(f"❌ Failed to build task view: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load tasks: {e}")


@router.post("/{task_id}/confirm", response_model=Dict[str, Any])
async def confirm_task(
    task_id: str,
    request: ConfirmRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service),
):
    """
    Mark a task confirmed (or not); saved locally, then synced when a remote store is set
    """
    try:
        return service.confirm(task_id, request.confirmed, user_id=user["id"])
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Failed to confirm {task_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update task: {e}")
