"""Adapter merging a generic rule-table evaluation with a legacy one."""

import logging
from typing import Any, Iterable, Optional, Sequence, TypeVar

from visa_engine.core.enums import ApplicationType
from visa_engine.models.schemas.document import DocumentDescriptor
from visa_engine.services.rule_engine.base import (
    EvaluationContext,
    EvaluationResult,
    SuccessProbability,
    VisaPlugin,
)
from visa_engine.services.rule_engine.scoring import PreScreeningScorer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _union_by(items: Iterable[T], key: str) -> tuple[T, ...]:
    """Union preserving first-seen order; the last entry for a key wins."""
    merged: dict[Any, T] = {}
    for item in items:
        merged[getattr(item, key)] = item
    return tuple(merged.values())


def merge_results(generic: EvaluationResult, legacy: EvaluationResult) -> EvaluationResult:
    """
    Fold two evaluations of the same applicant into one.

    Rejections, issues, risk factors and alternatives are unioned by code
    with the legacy entry winning. The probability is the lower of the two,
    pass is the AND of both, and processing time comes from the
    legacy evaluation. Details are merged with legacy keys winning. The
    action plan is rebuilt from the merged issues.

    Args:
        generic: Rule-table evaluation
        legacy: Category-specific evaluation

    Returns:
        Merged EvaluationResult
    """
    rejections = _union_by(
        generic.immediate_rejection_reasons + legacy.immediate_rejection_reasons, "code"
    )
    issues = _union_by(generic.remediable_issues + legacy.remediable_issues, "code")

    generic_p, legacy_p = generic.success_probability, legacy.success_probability
    lower = generic_p if generic_p.percentage <= legacy_p.percentage else legacy_p
    probability = SuccessProbability(
        percentage=lower.percentage,
        level=lower.level,
        reasoning=f"{generic_p.reasoning} (Legacy: {legacy_p.reasoning})",
    )

    plan = PreScreeningScorer.build_action_plan(issues)

    return EvaluationResult(
        visa_type=legacy.visa_type,
        application_type=legacy.application_type,
        pass_pre_screening=generic.pass_pre_screening and legacy.pass_pre_screening,
        immediate_rejection_reasons=rejections,
        remediable_issues=issues,
        success_probability=probability,
        estimated_processing_time=legacy.estimated_processing_time,
        recommended_actions=plan,
        timeline=PreScreeningScorer.build_timeline(plan),
        risk_factors=_union_by(generic.risk_factors + legacy.risk_factors, "factor"),
        alternatives=_union_by(generic.alternatives + legacy.alternatives, "visa"),
        rule_set_version=legacy.rule_set_version,
        details={**generic.details, **legacy.details},
    )


class EvaluationAdapter(VisaPlugin):
    """
    Runs a generic and a legacy plugin for the same visa and merges them.

    Requirements, document validation and features delegate to the legacy
    plugin, which carries the category-specific knowledge.
    """

    is_specialized = True

    def __init__(self, generic: VisaPlugin, legacy: VisaPlugin):
        super().__init__(legacy.rule_set)
        self.generic = generic
        self.legacy = legacy
        self.version = legacy.version

    def evaluate(self, context: EvaluationContext) -> EvaluationResult:
        generic_result = self.generic.evaluate(context)
        legacy_result = self.legacy.evaluate(context)
        merged = merge_results(generic_result, legacy_result)
        logger.debug(
            f"Merged {self.visa_type} evaluations: generic={generic_result.success_probability.percentage}%, "
            f"legacy={legacy_result.success_probability.percentage}%, "
            f"merged={merged.success_probability.percentage}%"
        )
        return merged

    def get_requirements(self) -> dict[str, Any]:
        return self.legacy.get_requirements()

    def validate_documents(
        self,
        documents: Sequence[DocumentDescriptor],
        application_type: ApplicationType = ApplicationType.NEW,
        nationality: Optional[str] = None,
        current_visa: Optional[str] = None,
        today=None,
    ) -> dict[str, Any]:
        return self.legacy.validate_documents(
            documents, application_type, nationality, current_visa, today
        )

    def get_special_features(self) -> dict[str, bool]:
        return self.legacy.get_special_features()

    def get_info(self) -> dict[str, Any]:
        info = self.legacy.get_info()
        info["adapter"] = {
            "generic": type(self.generic).__name__,
            "legacy": type(self.legacy).__name__,
        }
        return info

    def health_check(self) -> dict[str, Any]:
        generic_health = self.generic.health_check()
        legacy_health = self.legacy.health_check()
        healthy = generic_health["status"] == "HEALTHY" and legacy_health["status"] == "HEALTHY"
        return {
            "status": "HEALTHY" if healthy else "DEGRADED",
            "visaType": self.visa_type,
            "generic": generic_health,
            "legacy": legacy_health,
        }
