"""Application guide endpoint."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from visa_engine.core.enums import ApplicationType
from visa_engine.deps import get_engine_service
from visa_engine.services.evaluation_service import VisaEvaluationService

router = APIRouter()


@router.get("/{application_type}", summary="Get an application guide")
async def get_application_guide(
    application_type: ApplicationType,
    service: Annotated[VisaEvaluationService, Depends(get_engine_service)],
    visa_type: Optional[str] = None,
) -> dict[str, Any]:
    """Steps, timeline and tips for an application type, optionally for one visa."""
    if visa_type and not service.context.factory.is_supported(visa_type):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Visa type {visa_type} is not supported",
        )
    return service.get_application_guide(application_type, visa_type)
