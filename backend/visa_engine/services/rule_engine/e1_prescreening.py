"""Category-specific pre-screening for the E-1 (professor) visa."""

from typing import Any, Optional

from visa_engine.core.enums import Difficulty, EducationLevel, IssueCategory, Severity
from visa_engine.rules import e1
from visa_engine.rules.common import (
    DISCLOSURE_NATIONALITIES,
    NATIVE_ENGLISH_COUNTRIES,
    language_rank,
    meets_education,
)
from visa_engine.services.rule_engine.base import (
    Alternative,
    EvaluationContext,
    RejectionReason,
    RemediableIssue,
    RiskFactor,
)
from visa_engine.services.rule_engine.pipeline import PreScreeningPipeline

_BASE_DAY_FACTORS = {
    "NEW": "New application requires a full review",
    "EXTENSION": "Extension applications are processed faster",
    "CHANGE": "Change of status requires a detailed review",
}


class E1PreScreening(PreScreeningPipeline):
    """
    Hand-written E-1 checks over institution, contract and research data.

    Threshold checks only fire when the applicant supplied the field they
    test.
    """

    requirements = e1.ACTIVITY_REQUIREMENTS

    def check_immediate_rejection(self, context: EvaluationContext) -> list[RejectionReason]:
        applicant = context.applicant
        reasons: list[RejectionReason] = []

        # 1. Ineligible institution
        ineligible = e1.INELIGIBLE_INSTITUTIONS.get(applicant.institution_type or "")
        if ineligible:
            reasons.append(
                RejectionReason(
                    code="INELIGIBLE_INSTITUTION",
                    message=f"{ineligible['name']} is not an eligible E-1 institution",
                    solution=f"Move to an eligible institution or apply for {ineligible['alternative_visa']}",
                )
            )

        # 2. Degree below the position minimum
        requirement = self.eligibility_requirement(context)
        if (
            requirement is not None
            and applicant.education_level is not None
            and not meets_education(applicant.education_level, requirement.minimum_degree)
        ):
            reasons.append(
                RejectionReason(
                    code="INSUFFICIENT_EDUCATION",
                    message=(
                        f"Education below the minimum for {applicant.position} "
                        f"(required: {requirement.minimum_degree.value})"
                    ),
                    solution=f"Obtain a {requirement.minimum_degree.value} degree or higher",
                )
            )

        # 3. Criminal record for disclosure nationalities
        if applicant.nationality in DISCLOSURE_NATIONALITIES and applicant.criminal_record is True:
            reasons.append(
                RejectionReason(
                    code="CRIMINAL_RECORD",
                    message="Entry barred due to criminal record",
                    solution="Seek legal advice before reapplying",
                )
            )

        # 4. Change edge absent or prohibited
        change_rejection = self.check_visa_change(context)
        if change_rejection:
            reasons.append(change_rejection)

        # 5. Health
        if applicant.health_status in e1.DISQUALIFYING_HEALTH_STATUSES:
            reasons.append(
                RejectionReason(
                    code="HEALTH_ISSUES",
                    message="Health certificate result is unfit",
                    solution="Complete treatment and repeat the health check",
                )
            )

        return reasons

    def check_remediable_issues(self, context: EvaluationContext) -> list[RemediableIssue]:
        applicant = context.applicant
        req = self.requirements
        issues: list[RemediableIssue] = []

        if applicant.weekly_hours is not None and applicant.weekly_hours < req["min_weekly_hours"]:
            issues.append(
                RemediableIssue(
                    code="INSUFFICIENT_TEACHING_HOURS",
                    severity=Severity.HIGH,
                    category=IssueCategory.CONTRACT,
                    message=(
                        f"Weekly teaching hours too low (current: {applicant.weekly_hours:g}, "
                        f"minimum: {req['min_weekly_hours']})"
                    ),
                    solution=f"Amend the contract to at least {req['min_weekly_hours']} hours per week",
                    time_to_resolve="1-2 weeks",
                    difficulty=Difficulty.EASY,
                )
            )

        if (
            applicant.online_percentage is not None
            and applicant.online_percentage > req["max_online_percentage"]
        ):
            issues.append(
                RemediableIssue(
                    code="EXCESSIVE_ONLINE_TEACHING",
                    severity=Severity.HIGH,
                    category=IssueCategory.CONTRACT,
                    message=(
                        f"Online teaching share too high (current: {applicant.online_percentage:g}%, "
                        f"maximum: {req['max_online_percentage']}%)"
                    ),
                    solution=f"Reduce online teaching to {req['max_online_percentage']}% or less",
                    time_to_resolve="2-3 weeks",
                    difficulty=Difficulty.MEDIUM,
                )
            )

        if (
            applicant.contract_duration is not None
            and applicant.contract_duration < req["min_contract_months"]
        ):
            issues.append(
                RemediableIssue(
                    code="SHORT_CONTRACT_DURATION",
                    severity=Severity.MEDIUM,
                    category=IssueCategory.CONTRACT,
                    message=f"Contract too short (current: {applicant.contract_duration} months)",
                    solution="Extend the contract to at least one year",
                    time_to_resolve="1 week",
                    difficulty=Difficulty.EASY,
                )
            )

        korean = self._korean_level(context)
        if korean is not None and language_rank(korean) < language_rank(req["min_korean_level"]):
            issues.append(
                RemediableIssue(
                    code="LOW_KOREAN_PROFICIENCY",
                    severity=Severity.MEDIUM,
                    category=IssueCategory.LANGUAGE,
                    message="Insufficient proof of Korean proficiency",
                    solution="Obtain TOPIK level 3 or higher",
                    time_to_resolve="2-3 months",
                    difficulty=Difficulty.MEDIUM,
                )
            )

        if applicant.publications is not None and applicant.publications < req["min_publications"]:
            issues.append(
                RemediableIssue(
                    code="INSUFFICIENT_RESEARCH",
                    severity=Severity.LOW,
                    category=IssueCategory.QUALIFICATION,
                    message="Insufficient research record",
                    solution="Add papers, books or conference presentations",
                    time_to_resolve="3-6 months",
                    difficulty=Difficulty.HARD,
                )
            )

        if applicant.recommendation_letters == 0:
            issues.append(
                RemediableIssue(
                    code="NO_RECOMMENDATIONS",
                    severity=Severity.LOW,
                    category=IssueCategory.DOCUMENTATION,
                    message="No recommendation letters",
                    solution="Obtain a recommendation from a university president or dean",
                    time_to_resolve="1-2 weeks",
                    difficulty=Difficulty.EASY,
                )
            )

        return issues

    def estimate_processing_days(self, context: EvaluationContext) -> tuple[int, list[str]]:
        applicant = context.applicant
        days = self.rule_set.base_processing_days[context.application_type]
        factors = [_BASE_DAY_FACTORS[context.application_type.value]]

        if applicant.nationality in DISCLOSURE_NATIONALITIES:
            days += 5
            factors.append("Criminal record certificate verification")

        weight = e1.INSTITUTION_WEIGHTS.get(applicant.institution_type or "")
        if weight is not None and weight < e1.STANDARD_INSTITUTION_WEIGHT:
            days += 7
            factors.append("Additional review for a special institution type")

        if applicant.document_quality == "POOR":
            days += 10
            factors.append("Document supplementation and re-review")
        elif applicant.document_quality == "EXCELLENT":
            days -= 3
            factors.append("Complete documents allow faster processing")

        return days, factors

    def probability_bonuses(self, context: EvaluationContext) -> list[int]:
        applicant = context.applicant
        bonuses = []
        if (applicant.experience_years or 0) > 10:
            bonuses.append(10)
        if (applicant.publications or 0) > 5:
            bonuses.append(15)
        if applicant.institution_prestige == "HIGH":
            bonuses.append(10)
        return bonuses

    def identify_risk_factors(self, context: EvaluationContext) -> list[RiskFactor]:
        applicant = context.applicant
        risks: list[RiskFactor] = []

        if applicant.experience_years is not None and applicant.experience_years < 2:
            risks.append(
                RiskFactor(
                    factor="LIMITED_EXPERIENCE",
                    description="Limited teaching experience",
                    mitigation="Supplement with internships or teaching assistant work",
                )
            )
        if applicant.job_stability == "LOW":
            risks.append(
                RiskFactor(
                    factor="JOB_INSTABILITY",
                    description="Employment stability concerns",
                    mitigation="Provide a long-term contract or a plan for a permanent position",
                )
            )
        if applicant.contract_type == "PART_TIME":
            risks.append(
                RiskFactor(
                    factor="PART_TIME_CONTRACT",
                    description="Part-time contracts face issuance restrictions",
                    mitigation="Secure at least 6 weekly hours and move to a full-time contract",
                )
            )
        if applicant.previous_violations:
            risks.append(
                RiskFactor(
                    factor="PREVIOUS_VIOLATIONS",
                    description="Previous visa violations on record",
                    mitigation="Submit a statement of corrective measures",
                )
            )

        change_risk = self.conditional_change_risk(context)
        if change_risk:
            risks.append(change_risk)
        return risks

    def suggest_alternatives(self, context: EvaluationContext) -> list[Alternative]:
        applicant = context.applicant
        has_bachelor = meets_education(applicant.education_level, EducationLevel.BACHELOR)
        alternatives: list[Alternative] = []

        if applicant.nationality in NATIVE_ENGLISH_COUNTRIES and has_bachelor:
            alternatives.append(
                Alternative(
                    visa="E-2",
                    title="Foreign Language Instructor",
                    reason="Native English nationality may fit E-2 better",
                    advantages=("Simpler requirements", "Faster processing", "High approval rate"),
                )
            )

        if (applicant.experience_years or 0) >= 3 and has_bachelor:
            alternatives.append(
                Alternative(
                    visa="E-7",
                    title="Specific Activities",
                    reason="May qualify as an education-related professional",
                    advantages=("Favorable when the salary threshold is met", "Wide range of activities"),
                )
            )

        ineligible = e1.INELIGIBLE_INSTITUTIONS.get(applicant.institution_type or "")
        if ineligible:
            alternatives.append(
                Alternative(
                    visa=ineligible["alternative_visa"],
                    title=f"Visa matching a {ineligible['name'].lower()}",
                    reason=f"{ineligible['name']} positions fall under {ineligible['alternative_visa']}",
                )
            )

        return alternatives

    def build_details(self, context: EvaluationContext) -> dict[str, Any]:
        applicant = context.applicant
        req = self.requirements
        institution_type = applicant.institution_type
        requirement = self.eligibility_requirement(context)

        return {
            "teachingRequirements": {
                "weeklyHours": {
                    "required": req["min_weekly_hours"],
                    "actual": applicant.weekly_hours,
                    "met": _at_least(applicant.weekly_hours, req["min_weekly_hours"]),
                },
                "onlinePercentage": {
                    "maximum": req["max_online_percentage"],
                    "actual": applicant.online_percentage,
                    "met": None
                    if applicant.online_percentage is None
                    else applicant.online_percentage <= req["max_online_percentage"],
                },
                "contractDuration": {
                    "required": req["min_contract_months"],
                    "actual": applicant.contract_duration,
                    "met": _at_least(applicant.contract_duration, req["min_contract_months"]),
                },
            },
            "institutionEligibility": {
                "type": institution_type,
                "eligible": None if institution_type is None else institution_type in e1.INSTITUTION_WEIGHTS,
                "weight": e1.INSTITUTION_WEIGHTS.get(institution_type or ""),
            },
            "positionRequirements": None
            if requirement is None
            else {
                "position": applicant.position,
                "institutionTier": applicant.institution_tier,
                "minimumDegree": requirement.minimum_degree.value,
                "minimumExperience": requirement.minimum_experience,
            },
        }

    @staticmethod
    def _korean_level(context: EvaluationContext) -> Optional[str]:
        applicant = context.applicant
        if applicant.korean_level:
            return applicant.korean_level
        return (applicant.language_scores or {}).get("korean")


def _at_least(actual: Optional[float], minimum: float) -> Optional[bool]:
    return None if actual is None else actual >= minimum
