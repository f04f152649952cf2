"""Rule engine foundation: evaluation context, typed results and the plugin interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence

from visa_engine.core.enums import (
    ApplicationType,
    Difficulty,
    IssueCategory,
    ProbabilityLevel,
    Severity,
)
from visa_engine.models.schemas.applicant import ApplicantData
from visa_engine.models.schemas.document import DocumentDescriptor
from visa_engine.rules.schema import RuleSet


@dataclass(frozen=True)
class EvaluationContext:
    """
    Everything an evaluator needs for one applicant.

    Attributes:
        applicant: Immutable applicant record
        application_type: Resolved application kind
        options: Caller options (evaluation id, user id, ...)
    """

    applicant: ApplicantData
    application_type: ApplicationType
    options: dict[str, Any] = field(default_factory=dict)


# ==================== Result Parts ====================


@dataclass(frozen=True)
class RejectionReason:
    """Blocking reason; any one of these forces probability to zero."""

    code: str
    message: str
    solution: str
    severity: Severity = Severity.CRITICAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity.value,
            "message": self.message,
            "solution": self.solution,
        }


@dataclass(frozen=True)
class RemediableIssue:
    """Deficiency that should be fixed before filing but does not block."""

    code: str
    severity: Severity
    category: IssueCategory
    message: str
    solution: str
    time_to_resolve: str
    difficulty: Difficulty

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "solution": self.solution,
            "timeToResolve": self.time_to_resolve,
            "difficulty": self.difficulty.value,
        }


@dataclass(frozen=True)
class SuccessProbability:
    percentage: int
    level: ProbabilityLevel
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "percentage": self.percentage,
            "level": self.level.value,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class ProcessingTimeEstimate:
    estimated_days: int
    minimum_days: int
    maximum_days: int
    factors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimatedDays": self.estimated_days,
            "range": {"minimum": self.minimum_days, "maximum": self.maximum_days},
            "factors": list(self.factors),
        }


@dataclass(frozen=True)
class ActionItem:
    issue: str
    title: str
    solution: str
    difficulty: Difficulty
    category: IssueCategory

    def to_dict(self) -> dict[str, Any]:
        return {
            "issue": self.issue,
            "title": self.title,
            "solution": self.solution,
            "difficulty": self.difficulty.value,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class ActionPlan:
    """Remediation actions bucketed by how soon they should happen."""

    immediate: tuple[ActionItem, ...] = ()
    short_term: tuple[ActionItem, ...] = ()
    medium_term: tuple[ActionItem, ...] = ()
    long_term: tuple[ActionItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "immediate": [a.to_dict() for a in self.immediate],
            "shortTerm": [a.to_dict() for a in self.short_term],
            "mediumTerm": [a.to_dict() for a in self.medium_term],
            "longTerm": [a.to_dict() for a in self.long_term],
        }


@dataclass(frozen=True)
class TimelineEntry:
    period: str
    actions: tuple[str, ...]
    critical: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"period": self.period, "actions": list(self.actions), "critical": self.critical}


@dataclass(frozen=True)
class RiskFactor:
    factor: str
    description: str
    mitigation: str

    def to_dict(self) -> dict[str, Any]:
        return {"factor": self.factor, "description": self.description, "mitigation": self.mitigation}


@dataclass(frozen=True)
class Alternative:
    visa: str
    title: str
    reason: str
    advantages: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "visa": self.visa,
            "title": self.title,
            "reason": self.reason,
            "advantages": list(self.advantages),
        }


# ==================== Evaluation Result ====================


@dataclass(frozen=True)
class EvaluationResult:
    """
    Outcome of pre-screening one applicant for one visa code.

    Every evaluator (generic, legacy, adapter) returns this same type so that
    merging is a structural fold rather than ad hoc dictionary surgery.

    Attributes:
        visa_type: Evaluated visa code
        application_type: NEW, EXTENSION or CHANGE
        pass_pre_screening: True when no immediate rejection reason fired
        immediate_rejection_reasons: Blocking reasons, in check order
        remediable_issues: Fixable deficiencies, in check order
        success_probability: Percentage, level and reasoning
        estimated_processing_time: Point estimate, range and factors
        recommended_actions: Time-bucketed action plan
        timeline: Sequential periods derived from the action plan
        risk_factors: Soft risks worth mitigating
        alternatives: Substitute visas, only populated after a rejection
        rule_set_version: Version of the rule tables used
        details: Category-specific breakdown
        compliance: Compliance assessment, when history was supplied
    """

    visa_type: str
    application_type: ApplicationType
    pass_pre_screening: bool
    immediate_rejection_reasons: tuple[RejectionReason, ...]
    remediable_issues: tuple[RemediableIssue, ...]
    success_probability: SuccessProbability
    estimated_processing_time: ProcessingTimeEstimate
    recommended_actions: ActionPlan
    timeline: tuple[TimelineEntry, ...] = ()
    risk_factors: tuple[RiskFactor, ...] = ()
    alternatives: tuple[Alternative, ...] = ()
    rule_set_version: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    compliance: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape returned to callers."""
        data = {
            "visaType": self.visa_type,
            "applicationType": self.application_type.value,
            "passPreScreening": self.pass_pre_screening,
            "immediateRejectionReasons": [r.to_dict() for r in self.immediate_rejection_reasons],
            "remediableIssues": [i.to_dict() for i in self.remediable_issues],
            "successProbability": self.success_probability.to_dict(),
            "estimatedProcessingTime": self.estimated_processing_time.to_dict(),
            "recommendedActions": self.recommended_actions.to_dict(),
            "timeline": [t.to_dict() for t in self.timeline],
            "riskFactors": [r.to_dict() for r in self.risk_factors],
            "alternatives": [a.to_dict() for a in self.alternatives],
            "ruleSetVersion": self.rule_set_version,
            "details": self.details,
        }
        if self.compliance is not None:
            data["compliance"] = self.compliance
        return data


# ==================== Plugin Interface ====================


class VisaPlugin(ABC):
    """
    Capability interface implemented once per visa category.

    Plugins hold configuration only (their rule set), so one instance can
    serve any number of evaluations.
    """

    version = "1.0.0"
    is_specialized = False

    def __init__(self, rule_set: RuleSet):
        self.rule_set = rule_set
        self.visa_type = rule_set.code

    @abstractmethod
    def evaluate(self, context: EvaluationContext) -> EvaluationResult:
        """
        Pre-screen an applicant.

        Args:
            context: Applicant data and resolved options

        Returns:
            EvaluationResult for this plugin's visa code

        Raises:
            ValidationError: If the applicant data cannot be evaluated
        """

    @abstractmethod
    def get_requirements(self) -> dict[str, Any]:
        """Structured description of what the visa requires."""

    def validate_documents(
        self,
        documents: Sequence[DocumentDescriptor],
        application_type: ApplicationType = ApplicationType.NEW,
        nationality: Optional[str] = None,
        current_visa: Optional[str] = None,
        today: Optional[date] = None,
    ) -> dict[str, Any]:
        """Accept any submission; category plugins override this."""
        return {
            "success": True,
            "completeness": 100,
            "missing": [],
            "invalid": [],
            "message": "Basic document validation completed",
            "documents": len(documents),
        }

    def get_special_features(self) -> dict[str, bool]:
        return {
            "hasAdvancedEvaluation": False,
            "hasDocumentValidation": False,
            "hasCustomRequirements": False,
            "hasWorkflowIntegration": False,
        }

    def get_info(self) -> dict[str, Any]:
        return {
            "visaType": self.visa_type,
            "version": self.version,
            "name": f"{self.visa_type} Visa Plugin",
            "description": f"Evaluation plugin for {self.rule_set.name} ({self.visa_type})",
            "ruleSetVersion": self.rule_set.version,
        }

    def health_check(self) -> dict[str, Any]:
        return {
            "status": "HEALTHY",
            "visaType": self.visa_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
