"""Pydantic schemas for evaluation requests and history responses."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from visa_engine.core.enums import ApplicationType, EvaluationStatus
from visa_engine.models.schemas.compliance import ComplianceHistory


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ==================== Evaluation Schemas ====================


class EvaluationOptions(CamelModel):
    """Per-request options for one evaluation."""

    application_type: Optional[ApplicationType] = None
    evaluation_id: Optional[str] = Field(None, max_length=100)
    user_id: Optional[str] = Field(None, max_length=100)
    force_evaluation: bool = False
    compliance_history: Optional[ComplianceHistory] = None


class EvaluationRequest(EvaluationOptions):
    """Body of ``POST /evaluations/{visa_type}``."""

    applicant_data: dict[str, Any]

    def options(self) -> EvaluationOptions:
        return EvaluationOptions(**{name: getattr(self, name) for name in EvaluationOptions.model_fields})


class BatchEvaluationItem(EvaluationRequest):
    """One entry of a batch request."""

    visa_type: str = Field(..., min_length=1, max_length=10)


class BatchEvaluationRequest(CamelModel):
    """Body of ``POST /evaluations/batch``."""

    requests: list[BatchEvaluationItem] = Field(..., min_length=1)


# ==================== Document Schemas ====================


class DocumentValidationRequest(CamelModel):
    """Body of ``POST /visa-types/{code}/documents/validate``."""

    documents: list[dict[str, Any]]
    application_type: ApplicationType = ApplicationType.NEW
    nationality: Optional[str] = None
    current_visa: Optional[str] = None
    applicant_id: Optional[str] = None


# ==================== History Schemas ====================


class EvaluationRecordResponse(BaseModel):
    """Schema for a persisted evaluation run."""

    id: UUID
    visa_type: str
    application_type: ApplicationType
    user_id: Optional[str] = None
    evaluation_id: Optional[str] = None
    status: EvaluationStatus
    pass_pre_screening: Optional[bool] = None
    success_probability: Optional[int] = None
    rule_set_version: Optional[str] = None
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== Change Path Schemas ====================


class ChangePathCheckRequest(CamelModel):
    """Body of ``POST /visa-types/change-paths/check``."""

    current_visa: str = Field(..., min_length=1, max_length=10)
    target_visa: str = Field(..., min_length=1, max_length=10)
    applicant_data: dict[str, Any] = Field(default_factory=dict)
