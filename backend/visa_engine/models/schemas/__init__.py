"""Pydantic schemas for engine input and API serialization."""

from visa_engine.models.schemas.applicant import ApplicantData
from visa_engine.models.schemas.compliance import (
    ComplianceHistory,
    InsuranceRecordInput,
    PositiveRecordInput,
    TaxRecordInput,
    ViolationInput,
)
from visa_engine.models.schemas.document import DocumentDescriptor
from visa_engine.models.schemas.evaluation import (
    BatchEvaluationItem,
    BatchEvaluationRequest,
    ChangePathCheckRequest,
    DocumentValidationRequest,
    EvaluationOptions,
    EvaluationRecordResponse,
    EvaluationRequest,
)

__all__ = [
    # Input
    "ApplicantData",
    "DocumentDescriptor",
    # Compliance
    "ComplianceHistory",
    "ViolationInput",
    "PositiveRecordInput",
    "TaxRecordInput",
    "InsuranceRecordInput",
    # Evaluation
    "EvaluationOptions",
    "EvaluationRequest",
    "BatchEvaluationItem",
    "BatchEvaluationRequest",
    "DocumentValidationRequest",
    "ChangePathCheckRequest",
    "EvaluationRecordResponse",
]
