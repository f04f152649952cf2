"""Specialized E-1 (professor) plugin."""

import logging
from datetime import date
from typing import Any, Optional, Sequence

from visa_engine.core.enums import ApplicationType, DocumentRequirement
from visa_engine.models.schemas.document import DocumentDescriptor
from visa_engine.rules import e1
from visa_engine.rules.schema import ChecklistEntry
from visa_engine.services.rule_engine.base import EvaluationContext, EvaluationResult, VisaPlugin
from visa_engine.services.rule_engine.e1_prescreening import E1PreScreening

logger = logging.getLogger(__name__)

MAX_DOCUMENT_SIZE = 10 * 1024 * 1024


class E1Plugin(VisaPlugin):
    """
    Hand-written E-1 evaluation with document checklist validation.

    Wrapped together with the generic plugin by the EvaluationAdapter.
    """

    version = "2.0.0"
    is_specialized = True

    def __init__(self, rule_set):
        super().__init__(rule_set)
        self.pipeline = E1PreScreening(rule_set)

    def evaluate(self, context: EvaluationContext) -> EvaluationResult:
        logger.debug(f"E-1 pre-screening for {context.application_type.value} application")
        return self.pipeline.run(context)

    def get_requirements(self) -> dict[str, Any]:
        req = e1.ACTIVITY_REQUIREMENTS
        return {
            "visaType": self.visa_type,
            "basic": [
                "Bachelor's degree or higher",
                "Lecturing in the field of the degree",
                f"At least {req['min_weekly_hours']} teaching hours per week",
                "Employment at an eligible institution",
            ],
            "documents": [
                entry.name
                for entry in self.rule_set.documents.documents_for(ApplicationType.NEW)
                if entry.requirement == DocumentRequirement.REQUIRED
            ],
            "eligibility": [
                "Expert knowledge in the field",
                "Ability to carry out teaching activities",
                "Command of Korean or English",
                "Good conduct",
            ],
            "specialRequirements": {
                "lectureHours": f"At least {req['min_weekly_hours']} hours per week",
                "onlineLimit": f"At most {req['max_online_percentage']}% of all lectures",
                "institutionType": "Eligible institution under the Higher Education Act",
                "contractPeriod": f"At least {req['min_contract_months']} months",
            },
        }

    def validate_documents(
        self,
        documents: Sequence[DocumentDescriptor],
        application_type: ApplicationType = ApplicationType.NEW,
        nationality: Optional[str] = None,
        current_visa: Optional[str] = None,
        today: Optional[date] = None,
    ) -> dict[str, Any]:
        """
        Check submitted documents against the E-1 checklist.

        A checklist entry is satisfied by a document whose ``type`` equals
        the entry code or whose ``name`` contains the entry name.

        Args:
            documents: Submitted document descriptors
            application_type: Checklist to validate against
            nationality: Applicant nationality for nationality-specific entries
            current_visa: Current visa for CHANGE-specific entries
            today: Reference date for expiry checks

        Returns:
            Dict with success flag, completeness percentage, validation
            breakdown and recommendations
        """
        today = today or date.today()
        checklist = self.rule_set.documents.documents_for(application_type, nationality, current_visa)
        required = [e for e in checklist if e.requirement == DocumentRequirement.REQUIRED]
        optional = [e for e in checklist if e.requirement != DocumentRequirement.REQUIRED]

        provided, missing = [], []
        for entry in required:
            found = _find_document(entry, documents)
            if found:
                provided.append({"type": entry.code, "status": "provided", "document": found.name})
            else:
                missing.append(entry.code)

        invalid = []
        for document in documents:
            issues = _document_issues(document, today)
            if issues:
                invalid.append({"document": document.name or document.type, "issues": issues})

        completeness = round(len(provided) / len(required) * 100) if required else 100

        return {
            "success": not missing and not invalid,
            "completeness": completeness,
            "missing": missing,
            "invalid": invalid,
            "validation": {
                "required": provided,
                "optional": [
                    {"type": e.code, "provided": _find_document(e, documents) is not None}
                    for e in optional
                ],
                "missing": missing,
                "invalid": invalid,
            },
            "recommendations": _recommendations(missing, invalid),
        }

    def get_special_features(self) -> dict[str, bool]:
        return {
            "hasAdvancedEvaluation": True,
            "hasDocumentValidation": True,
            "hasCustomRequirements": True,
            "hasWorkflowIntegration": True,
        }

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info.update(
            name="E-1 Professor Plugin",
            description="Pre-screening for foreign professors and lecturers",
            features=[
                "Pre-screening",
                "Activity scope validation",
                "Document checklist validation",
            ],
        )
        return info

    def health_check(self) -> dict[str, Any]:
        health = super().health_check()
        pipeline_status = "HEALTHY" if self.pipeline is not None else "UNHEALTHY"
        health["components"] = {
            "preScreening": pipeline_status,
            "documentChecklist": "ACTIVE",
        }
        health["overall"] = "HEALTHY" if pipeline_status == "HEALTHY" else "DEGRADED"
        return health


def _find_document(
    entry: ChecklistEntry, documents: Sequence[DocumentDescriptor]
) -> Optional[DocumentDescriptor]:
    for document in documents:
        if document.type == entry.code or (document.name and entry.name in document.name):
            return document
    return None


def _document_issues(document: DocumentDescriptor, today: date) -> list[str]:
    issues = []
    if not document.name:
        issues.append("Missing file name")
    if not document.type:
        issues.append("Missing document type")
    if document.size is not None and document.size > MAX_DOCUMENT_SIZE:
        issues.append("File exceeds the 10MB limit")
    if document.expiry_date is not None and document.expiry_date < today:
        issues.append("Document has expired")
    return issues


def _recommendations(missing: list[str], invalid: list[dict]) -> list[str]:
    recommendations = []
    if missing:
        recommendations.append("Prepare the missing required documents")
    if invalid:
        recommendations.append("Check document quality and resubmit")
    recommendations.append("Use certificates issued within the last 3 months")
    recommendations.append("Foreign documents need an apostille or consular legalization")
    return recommendations
