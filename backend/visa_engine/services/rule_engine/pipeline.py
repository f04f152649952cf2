"""Pre-screening decision pipeline.

``PreScreeningPipeline.run`` fixes the order of the six stages; subclasses
supply the checks. ``GenericPreScreening`` drives every stage from a RuleSet
so a new visa code needs only a rule table.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from visa_engine.core.enums import ApplicationType, ChangeTag, Difficulty, IssueCategory, Severity
from visa_engine.core.errors import ValidationError
from visa_engine.rules.common import JOB_SEEKING_VISA, language_rank, meets_education
from visa_engine.rules.schema import EligibilityRequirement, RuleSet
from visa_engine.services.rule_engine.base import (
    Alternative,
    EvaluationContext,
    EvaluationResult,
    RejectionReason,
    RemediableIssue,
    RiskFactor,
)
from visa_engine.services.rule_engine.conditions import evaluate_condition
from visa_engine.services.rule_engine.scoring import PreScreeningScorer

logger = logging.getLogger(__name__)


class PreScreeningPipeline(ABC):
    """
    Single-pass pipeline over one applicant record.

    All rejection and issue checks always run so the caller sees every
    blocking reason at once. The pipeline holds no per-evaluation state.
    """

    def __init__(self, rule_set: RuleSet):
        self.rule_set = rule_set

    def run(self, context: EvaluationContext) -> EvaluationResult:
        """
        Pre-screen one applicant.

        Args:
            context: Applicant and resolved application type

        Returns:
            EvaluationResult

        Raises:
            ValidationError: If the application type is not offered
        """
        if context.application_type not in self.rule_set.application_types:
            raise ValidationError(
                f"{self.rule_set.code} does not accept {context.application_type.value} applications",
                details={"applicationType": context.application_type.value},
            )

        rejections = self.check_immediate_rejection(context)
        issues = self.check_remediable_issues(context)
        days, factors = self.estimate_processing_days(context)
        probability = PreScreeningScorer.calculate_success_probability(
            rejections, issues, self.probability_bonuses(context)
        )
        plan = PreScreeningScorer.build_action_plan(issues)

        return EvaluationResult(
            visa_type=self.rule_set.code,
            application_type=context.application_type,
            pass_pre_screening=not rejections,
            immediate_rejection_reasons=tuple(rejections),
            remediable_issues=tuple(issues),
            success_probability=probability,
            estimated_processing_time=PreScreeningScorer.finalize_processing_time(days, factors),
            recommended_actions=plan,
            timeline=PreScreeningScorer.build_timeline(plan),
            risk_factors=tuple(self.identify_risk_factors(context)),
            alternatives=tuple(self._finalize_alternatives(context)) if rejections else (),
            rule_set_version=self.rule_set.version,
            details=self.build_details(context),
        )

    # ==================== Stage Hooks ====================

    @abstractmethod
    def check_immediate_rejection(self, context: EvaluationContext) -> list[RejectionReason]:
        """Hard checks; every match is a CRITICAL rejection reason."""

    @abstractmethod
    def check_remediable_issues(self, context: EvaluationContext) -> list[RemediableIssue]:
        """Independent threshold checks."""

    @abstractmethod
    def estimate_processing_days(self, context: EvaluationContext) -> tuple[int, list[str]]:
        """Unfloored processing days plus the factors that produced them."""

    def probability_bonuses(self, context: EvaluationContext) -> list[int]:
        return []

    def identify_risk_factors(self, context: EvaluationContext) -> list[RiskFactor]:
        return []

    def suggest_alternatives(self, context: EvaluationContext) -> list[Alternative]:
        return []

    def build_details(self, context: EvaluationContext) -> dict[str, Any]:
        return {}

    # ==================== Shared Checks ====================

    def check_visa_change(self, context: EvaluationContext) -> Optional[RejectionReason]:
        """Reject a CHANGE application whose change edge is absent or prohibited."""
        if context.application_type != ApplicationType.CHANGE:
            return None

        current_visa = context.applicant.current_visa
        if self.rule_set.changeability.can_change_from(current_visa):
            return None
        if not current_visa:
            return RejectionReason(
                code="INVALID_VISA_CHANGE",
                message=f"A change to {self.rule_set.code} needs the current visa status",
                solution="Provide your current visa, or leave the country and apply for a new visa",
            )
        return RejectionReason(
            code="INVALID_VISA_CHANGE",
            message=f"Change from {current_visa} to {self.rule_set.code} is not permitted",
            solution="Leave the country and apply for a new visa",
        )

    def conditional_change_risk(self, context: EvaluationContext) -> Optional[RiskFactor]:
        """Risk factor for a CHANGE over an edge that carries a condition."""
        if context.application_type != ApplicationType.CHANGE:
            return None
        edge = self.rule_set.changeability.change_edge(context.applicant.current_visa)
        if edge is None or edge.tag != ChangeTag.CONDITIONAL:
            return None
        documents = f" (documents: {', '.join(edge.documents)})" if edge.documents else ""
        return RiskFactor(
            factor="CONDITIONAL_CHANGE",
            description=f"Change from {edge.from_visa} is conditional: {edge.condition}",
            mitigation=f"Prove the condition is met{documents}",
        )

    def eligibility_requirement(self, context: EvaluationContext) -> Optional[EligibilityRequirement]:
        applicant = context.applicant
        return self.rule_set.eligibility_matrix.requirement_for(
            applicant.position, applicant.institution_tier
        )

    def _finalize_alternatives(self, context: EvaluationContext) -> list[Alternative]:
        """Deduplicate suggestions and append the job-seeking fallback."""
        alternatives: dict[str, Alternative] = {}
        for alternative in self.suggest_alternatives(context):
            if alternative.visa != self.rule_set.code:
                alternatives.setdefault(alternative.visa, alternative)

        if (
            context.applicant.current_visa != JOB_SEEKING_VISA
            and self.rule_set.code != JOB_SEEKING_VISA
        ):
            alternatives.setdefault(
                JOB_SEEKING_VISA,
                Alternative(
                    visa=JOB_SEEKING_VISA,
                    title="Apply via the job-seeking visa",
                    reason="Look for an eligible position while staying in the country",
                    advantages=("Legal stay while job hunting", "Change of status once hired"),
                ),
            )
        return list(alternatives.values())


class GenericPreScreening(PreScreeningPipeline):
    """Pipeline driven entirely by a RuleSet's declarative rules."""

    def check_immediate_rejection(self, context: EvaluationContext) -> list[RejectionReason]:
        applicant = context.applicant
        requirements = self.rule_set.requirements
        reasons: list[RejectionReason] = []

        if (
            requirements.allowed_nationalities
            and applicant.nationality
            and applicant.nationality not in requirements.allowed_nationalities
        ):
            reasons.append(
                RejectionReason(
                    code="NATIONALITY_NOT_ALLOWED",
                    message=f"Nationality {applicant.nationality} is not eligible for {self.rule_set.code}",
                    solution="Consider a visa type without nationality restrictions",
                )
            )

        if applicant.age is not None:
            if requirements.minimum_age is not None and applicant.age < requirements.minimum_age:
                reasons.append(
                    RejectionReason(
                        code="AGE_TOO_YOUNG",
                        message=f"Minimum age is {requirements.minimum_age}",
                        solution="Apply once the minimum age is reached",
                    )
                )
            if requirements.maximum_age is not None and applicant.age > requirements.maximum_age:
                reasons.append(
                    RejectionReason(
                        code="AGE_TOO_OLD",
                        message=f"Maximum age is {requirements.maximum_age}",
                        solution="Consider a visa type without an age limit",
                    )
                )

        requirement = self.eligibility_requirement(context)
        if (
            requirement is not None
            and applicant.education_level is not None
            and not meets_education(applicant.education_level, requirement.minimum_degree)
        ):
            reasons.append(
                RejectionReason(
                    code="INSUFFICIENT_EDUCATION",
                    message=f"Minimum education is {requirement.minimum_degree.value}",
                    solution=f"Obtain a {requirement.minimum_degree.value} degree or higher",
                )
            )

        for rule in self.rule_set.immediate_rejection:
            if evaluate_condition(rule.condition, applicant):
                reasons.append(
                    RejectionReason(code=rule.code, message=rule.message, solution=rule.solution)
                )

        change_rejection = self.check_visa_change(context)
        if change_rejection:
            reasons.append(change_rejection)

        return reasons

    def check_remediable_issues(self, context: EvaluationContext) -> list[RemediableIssue]:
        applicant = context.applicant
        issues: list[RemediableIssue] = []

        requirement = self.eligibility_requirement(context)
        if (
            requirement is not None
            and requirement.minimum_experience > 0
            and applicant.experience_years is not None
            and applicant.experience_years < requirement.minimum_experience
        ):
            issues.append(
                RemediableIssue(
                    code="INSUFFICIENT_EXPERIENCE",
                    severity=Severity.MEDIUM,
                    category=IssueCategory.EXPERIENCE,
                    message=f"At least {requirement.minimum_experience} year(s) of experience required",
                    solution="Gain additional relevant work experience",
                    time_to_resolve="6-12 months",
                    difficulty=Difficulty.HARD,
                )
            )

        if applicant.language_scores is not None:
            for language in self.rule_set.requirements.languages:
                if not language.required:
                    continue
                actual = applicant.language_scores.get(language.language)
                if language_rank(actual) < language_rank(language.level):
                    issues.append(
                        RemediableIssue(
                            code=f"INSUFFICIENT_{language.language.upper()}_SKILL",
                            severity=Severity.MEDIUM,
                            category=IssueCategory.LANGUAGE,
                            message=f"{language.language.capitalize()} proficiency below {language.level}",
                            solution=language.description or f"Reach {language.level} in {language.language}",
                            time_to_resolve="2-3 months",
                            difficulty=Difficulty.MEDIUM,
                        )
                    )

        for rule in self.rule_set.remediable_issues:
            if evaluate_condition(rule.condition, applicant):
                issues.append(
                    RemediableIssue(
                        code=rule.code,
                        severity=rule.severity,
                        category=rule.category,
                        message=rule.message,
                        solution=rule.solution,
                        time_to_resolve=rule.time_to_resolve,
                        difficulty=rule.difficulty,
                    )
                )

        return issues

    def estimate_processing_days(self, context: EvaluationContext) -> tuple[int, list[str]]:
        days = self.rule_set.base_processing_days[context.application_type]
        factors = [f"{context.application_type.value} application base time: {days} days"]

        for adjustment in self.rule_set.processing_adjustments:
            if evaluate_condition(adjustment.condition, context.applicant):
                days += adjustment.days
                factors.append(f"{adjustment.factor} ({adjustment.days:+d} days)")

        return days, factors

    def probability_bonuses(self, context: EvaluationContext) -> list[int]:
        return [
            bonus.points
            for bonus in self.rule_set.probability_bonuses
            if evaluate_condition(bonus.condition, context.applicant)
        ]

    def identify_risk_factors(self, context: EvaluationContext) -> list[RiskFactor]:
        risks = [
            RiskFactor(factor=rule.code, description=rule.description, mitigation=rule.mitigation)
            for rule in self.rule_set.risk_factors
            if evaluate_condition(rule.condition, context.applicant)
        ]
        change_risk = self.conditional_change_risk(context)
        if change_risk:
            risks.append(change_risk)
        return risks

    def suggest_alternatives(self, context: EvaluationContext) -> list[Alternative]:
        return [
            Alternative(
                visa=rule.visa,
                title=rule.title,
                reason=rule.reason,
                advantages=rule.advantages,
            )
            for rule in self.rule_set.alternatives
            if evaluate_condition(rule.condition, context.applicant)
        ]

    def build_details(self, context: EvaluationContext) -> dict[str, Any]:
        requirement = self.eligibility_requirement(context)
        if requirement is None:
            return {}
        return {
            "eligibility": {
                "minimumDegree": requirement.minimum_degree.value,
                "minimumExperience": requirement.minimum_experience,
            }
        }
