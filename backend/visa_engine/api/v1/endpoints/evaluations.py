"""Evaluation endpoints for single, batch and historical evaluations."""

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from visa_engine.core.errors import DocumentValidationError, ValidationError, VisaEngineError
from visa_engine.deps import get_evaluation_service
from visa_engine.models.schemas.evaluation import (
    BatchEvaluationRequest,
    EvaluationRecordResponse,
    EvaluationRequest,
)
from visa_engine.services.evaluation_service import VisaEvaluationService

logger = logging.getLogger(__name__)

router = APIRouter()

# Failure results are answered with the status of the error that produced them
FAILURE_STATUS_CODES: dict[str, int] = {
    ValidationError.code: status.HTTP_400_BAD_REQUEST,
    DocumentValidationError.code: status.HTTP_400_BAD_REQUEST,
}


@router.post(
    "/batch",
    summary="Evaluate several applicants",
    description="Evaluate a batch of requests in fixed-size concurrent windows",
)
async def evaluate_batch(
    request: BatchEvaluationRequest,
    service: Annotated[VisaEvaluationService, Depends(get_evaluation_service)],
) -> dict[str, Any]:
    """
    Evaluate a batch of requests.

    Each entry carries its own visa type and options. An unsupported visa
    type or invalid applicant data fails that entry only.
    """
    try:
        return await service.evaluate_batch(request.requests)
    except VisaEngineError:
        raise
    except Exception as e:
        logger.error(f"Error evaluating batch: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to evaluate batch",
        )


@router.post(
    "/{visa_type}",
    summary="Evaluate an applicant",
    description="Pre-screen an applicant for one visa type",
)
async def evaluate(
    visa_type: str,
    request: EvaluationRequest,
    service: Annotated[VisaEvaluationService, Depends(get_evaluation_service)],
) -> Any:
    """
    Evaluate an applicant for a visa type.

    Returns the evaluation result: pass/fail verdict, rejection reasons,
    remediable issues, success probability, processing estimate, action
    plan and alternatives. Invalid applicant data answers 400 with a
    structured error.
    """
    if not service.context.factory.is_supported(visa_type):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Visa type {visa_type} is not supported",
        )

    try:
        result = await service.evaluate(visa_type, request.applicant_data, request.options())
    except VisaEngineError:
        raise
    except ValueError as e:
        logger.error(f"Validation error evaluating {visa_type}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except Exception as e:
        logger.error(f"Error evaluating {visa_type}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to evaluate applicant",
        )

    if result.get("success") is False:
        status_code = FAILURE_STATUS_CODES.get(
            result["error"]["code"], status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        return JSONResponse(status_code=status_code, content=result)
    return result


@router.get(
    "/history/{user_id}",
    response_model=list[EvaluationRecordResponse],
    summary="Get evaluation history of a user",
)
async def get_evaluation_history(
    user_id: str,
    service: Annotated[VisaEvaluationService, Depends(get_evaluation_service)],
    visa_type: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> list[EvaluationRecordResponse]:
    """Persisted evaluations of a user, newest first."""
    try:
        records = await service.get_user_history(user_id, visa_type=visa_type, skip=skip, limit=limit)
        return [EvaluationRecordResponse.model_validate(r) for r in records]
    except VisaEngineError:
        raise
    except Exception as e:
        logger.error(f"Error retrieving history for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve evaluation history",
        )
