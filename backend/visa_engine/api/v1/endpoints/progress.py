"""Progress endpoints for tracked evaluations."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from visa_engine.core.context import EngineContext
from visa_engine.deps import get_engine_context

router = APIRouter()


@router.get("/users/{user_id}", summary="List a user's tracked processes")
async def get_user_processes(
    user_id: str,
    engine: Annotated[EngineContext, Depends(get_engine_context)],
) -> dict[str, Any]:
    processes = engine.tracker.get_user_processes(user_id)
    return {"userId": user_id, "processes": processes, "total": len(processes)}


@router.get("/{process_id}", summary="Get process status")
async def get_process_status(
    process_id: str,
    engine: Annotated[EngineContext, Depends(get_engine_context)],
) -> dict[str, Any]:
    """Snapshot of an active, retained or cached process."""
    snapshot = engine.tracker.get_process_status(process_id)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Process {process_id} not found",
        )
    return snapshot
