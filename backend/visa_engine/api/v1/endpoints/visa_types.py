"""Visa type endpoints: catalogue, requirements, documents and change paths."""

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from visa_engine.core.enums import ApplicationType
from visa_engine.deps import get_engine_service
from visa_engine.models.schemas.evaluation import ChangePathCheckRequest, DocumentValidationRequest
from visa_engine.services.evaluation_service import VisaEvaluationService

logger = logging.getLogger(__name__)

router = APIRouter()

EngineService = Annotated[VisaEvaluationService, Depends(get_engine_service)]


def _ensure_supported(service: VisaEvaluationService, code: str) -> None:
    if not service.context.factory.is_supported(code):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Visa type {code} is not supported",
        )


@router.get("", summary="List supported visa types")
async def list_visa_types(service: EngineService) -> dict[str, Any]:
    """Supported visa types with their capabilities."""
    visa_types = [service.get_visa_type_capabilities(code) for code in service.get_supported_visa_types()]
    return {"visaTypes": visa_types, "total": len(visa_types)}


@router.get("/change-paths", summary="Check a visa change path")
async def get_change_paths(
    service: EngineService,
    from_visa: str = Query(..., alias="from", min_length=1),
    to_visa: str = Query(..., alias="to", min_length=1),
) -> dict[str, Any]:
    """Whether ``from`` can be changed directly to ``to``, with alternative routes."""
    return service.get_change_paths(from_visa, to_visa)


@router.post("/change-paths/check", summary="Check an applicant against a change path")
async def check_change_path(request: ChangePathCheckRequest, service: EngineService) -> dict[str, Any]:
    """Change path plus a ``conditionsCheck`` scoring the applicant against its conditions."""
    return service.get_change_paths(request.current_visa, request.target_visa, request.applicant_data)


@router.get("/{code}/capabilities", summary="Get visa type capabilities")
async def get_capabilities(code: str, service: EngineService) -> dict[str, Any]:
    """Capabilities of a visa type; unsupported types report ``isSupported: false``."""
    return service.get_visa_type_capabilities(code)


@router.get("/{code}/requirements", summary="Get visa type requirements")
async def get_requirements(code: str, service: EngineService) -> dict[str, Any]:
    _ensure_supported(service, code)
    return service.get_requirements(code)


@router.get("/{code}/documents", summary="Get the document checklist")
async def get_document_checklist(
    code: str,
    service: EngineService,
    application_type: ApplicationType = ApplicationType.NEW,
    nationality: Optional[str] = None,
    current_visa: Optional[str] = None,
) -> dict[str, Any]:
    """Documents required for an application type, nationality and current visa."""
    _ensure_supported(service, code)
    return service.get_document_checklist(code, application_type, nationality, current_visa)


@router.post("/{code}/documents/validate", summary="Validate submitted documents")
async def validate_documents(
    code: str,
    request: DocumentValidationRequest,
    service: EngineService,
) -> dict[str, Any]:
    """
    Validate submitted document descriptors against the checklist.

    Malformed descriptors answer 400 with a structured error.
    """
    _ensure_supported(service, code)
    return service.validate_documents(
        code,
        request.documents,
        application_type=request.application_type,
        nationality=request.nationality,
        current_visa=request.current_visa,
        applicant_id=request.applicant_id,
    )
