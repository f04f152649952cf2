"""Compliance scoring over legal, tax and insurance history."""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Optional

from visa_engine.core.enums import (
    ComplianceArea,
    ComplianceLevel,
    InsuranceStatus,
    PositiveRecordType,
    RiskLevel,
    TaxPaymentStatus,
    ViolationSeverity,
)
from visa_engine.models.schemas.compliance import (
    ComplianceHistory,
    InsuranceRecordInput,
    PositiveRecordInput,
    TaxRecordInput,
    ViolationInput,
)
from visa_engine.services.rule_engine.base import EvaluationResult, RiskFactor, SuccessProbability
from visa_engine.services.rule_engine.scoring import PreScreeningScorer

logger = logging.getLogger(__name__)

BASE_SCORE = 100

VIOLATION_DEDUCTIONS: dict[ViolationSeverity, int] = {
    ViolationSeverity.MINOR: -5,
    ViolationSeverity.MODERATE: -15,
    ViolationSeverity.MAJOR: -30,
    ViolationSeverity.SEVERE: -50,
}
IMMIGRATION_MULTIPLIER = 1.5

POSITIVE_POINTS: dict[PositiveRecordType, int] = {
    PositiveRecordType.TAX_COMPLIANCE: 5,
    PositiveRecordType.VOLUNTEER: 3,
    PositiveRecordType.DONATION: 2,
    PositiveRecordType.AWARD: 10,
    PositiveRecordType.COMMUNITY_SERVICE: 4,
}

NO_TAX_RECORDS_SCORE = -5
NO_INSURANCE_RECORDS_SCORE = -3
RECENT_VIOLATION_WINDOW = timedelta(days=730)

# Trust modifier applied to an evaluation's success probability.
RISK_PROBABILITY_ADJUSTMENTS: dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: -5,
    RiskLevel.HIGH: -10,
    RiskLevel.CRITICAL: -20,
}

_RISK_DESCRIPTIONS: dict[RiskLevel, tuple[str, str]] = {
    RiskLevel.LOW: ("Excellent compliance record", "Positive impact on visa approval"),
    RiskLevel.MEDIUM: ("Good compliance record", "Visa approval possible"),
    RiskLevel.HIGH: ("Compliance needs improvement", "Additional documents or explanation needed"),
    RiskLevel.CRITICAL: ("Serious compliance problems", "Visa approval very difficult"),
}


@dataclass
class ComplianceRecord:
    """
    Compliance history of one applicant.

    Constructed per request, scored once and discarded.
    """

    violations: list[ViolationInput] = field(default_factory=list)
    positive_records: list[PositiveRecordInput] = field(default_factory=list)
    tax_records: list[TaxRecordInput] = field(default_factory=list)
    insurance_records: list[InsuranceRecordInput] = field(default_factory=list)

    @classmethod
    def from_history(cls, history: ComplianceHistory) -> "ComplianceRecord":
        return cls(
            violations=list(history.violations),
            positive_records=list(history.positive_records),
            tax_records=list(history.tax_records),
            insurance_records=list(history.insurance_records),
        )

    def add_violation(self, violation: ViolationInput) -> None:
        self.violations.append(violation)

    def add_positive_record(self, record: PositiveRecordInput) -> None:
        self.positive_records.append(record)

    def add_tax_record(self, record: TaxRecordInput) -> None:
        self.tax_records.append(record)

    def add_insurance_record(self, record: InsuranceRecordInput) -> None:
        self.insurance_records.append(record)


# ==================== Sub-scores ====================


def violation_deduction(violation: ViolationInput) -> float:
    """Negative points for one violation; immigration violations weigh 1.5x."""
    points = VIOLATION_DEDUCTIONS[violation.severity]
    if violation.area == ComplianceArea.IMMIGRATION:
        return points * IMMIGRATION_MULTIPLIER
    return float(points)


def _tax_period_score(record: TaxRecordInput) -> int:
    if record.status == TaxPaymentStatus.UNPAID:
        return -5
    if record.status == TaxPaymentStatus.ON_TIME:
        return 5
    if record.due_date is None or record.paid_date is None:
        # Late without dates: treat as the worst late bucket
        return -2
    delay = (record.paid_date - record.due_date).days
    if delay <= 7:
        return 3
    if delay <= 30:
        return 1
    return -2


def tax_compliance_score(records: list[TaxRecordInput]) -> float:
    """Average per-period tax score; -5 when there are no records."""
    if not records:
        return NO_TAX_RECORDS_SCORE
    return sum(_tax_period_score(r) for r in records) / len(records)


def insurance_compliance_score(records: list[InsuranceRecordInput]) -> int:
    """Score from the fraction of ACTIVE enrollments; -3 when there are none."""
    if not records:
        return NO_INSURANCE_RECORDS_SCORE
    rate = sum(1 for r in records if r.status == InsuranceStatus.ACTIVE) / len(records)
    if rate >= 0.9:
        return 5
    if rate >= 0.7:
        return 3
    if rate >= 0.5:
        return 1
    return -2


def compliance_level(score: float) -> ComplianceLevel:
    if score >= 90:
        return ComplianceLevel.EXCELLENT
    if score >= 80:
        return ComplianceLevel.GOOD
    if score >= 70:
        return ComplianceLevel.FAIR
    if score >= 60:
        return ComplianceLevel.POOR
    return ComplianceLevel.CRITICAL


# ==================== Scoring ====================


def calculate_compliance_score(record: ComplianceRecord) -> dict[str, Any]:
    """
    Convert a compliance history into a 0-100 trust score.

    Args:
        record: Compliance history

    Returns:
        Dict with ``totalScore``, ``breakdown`` and ``level``
    """
    violations = sum(violation_deduction(v) for v in record.violations)
    positives = sum(POSITIVE_POINTS[p.type] for p in record.positive_records)
    tax = tax_compliance_score(record.tax_records)
    insurance = insurance_compliance_score(record.insurance_records)

    raw = BASE_SCORE + violations + positives + tax + insurance
    total = max(0.0, min(100.0, raw))

    return {
        "totalScore": round(total),
        "breakdown": {
            "baseScore": BASE_SCORE,
            "violationDeduction": violations,
            "positiveAddition": positives,
            "taxScore": tax,
            "insuranceScore": insurance,
        },
        "level": compliance_level(total).value,
    }


def analyze_violations(record: ComplianceRecord, as_of: Optional[date] = None) -> dict[str, Any]:
    """Violation counts by area and severity plus those within the last two years."""
    as_of = as_of or date.today()
    cutoff = as_of - RECENT_VIOLATION_WINDOW
    return {
        "totalCount": len(record.violations),
        "byArea": {
            area.value: sum(1 for v in record.violations if v.area == area) for area in ComplianceArea
        },
        "bySeverity": {
            severity.value: sum(1 for v in record.violations if v.severity == severity)
            for severity in ViolationSeverity
        },
        "recentViolations": [
            v.model_dump(mode="json", by_alias=True) for v in record.violations if v.date >= cutoff
        ],
    }


def assess_risk_level(record: ComplianceRecord) -> dict[str, Any]:
    """
    Classify compliance risk.

    Any SEVERE violation is CRITICAL regardless of score.

    Returns:
        Dict with ``level``, ``description`` and ``recommendation``
    """
    if any(v.severity == ViolationSeverity.SEVERE for v in record.violations):
        return {
            "level": RiskLevel.CRITICAL.value,
            "description": "Record includes a severe legal violation",
            "recommendation": "Visa approval expected to be difficult",
        }

    score = calculate_compliance_score(record)["totalScore"]
    if score >= 85:
        level = RiskLevel.LOW
    elif score >= 70:
        level = RiskLevel.MEDIUM
    elif score >= 50:
        level = RiskLevel.HIGH
    else:
        level = RiskLevel.CRITICAL

    description, recommendation = _RISK_DESCRIPTIONS[level]
    return {"level": level.value, "description": description, "recommendation": recommendation}


def assess_compliance(history: ComplianceHistory, as_of: Optional[date] = None) -> dict[str, Any]:
    """
    Full compliance block attached to an evaluation result.

    Returns:
        Dict with score, risk, violation analysis and the probability
        adjustment implied by the risk level
    """
    record = ComplianceRecord.from_history(history)
    score = calculate_compliance_score(record)
    risk = assess_risk_level(record)
    logger.debug(f"Compliance score {score['totalScore']} ({score['level']}), risk {risk['level']}")
    return {
        "score": score,
        "risk": risk,
        "violations": analyze_violations(record, as_of),
        "probabilityAdjustment": RISK_PROBABILITY_ADJUSTMENTS[RiskLevel(risk["level"])],
    }


def apply_compliance_modifier(result: EvaluationResult, assessment: dict[str, Any]) -> EvaluationResult:
    """
    Attach a compliance assessment to an evaluation and adjust its probability.

    A rejected result keeps its zero probability. HIGH and CRITICAL risk add a
    COMPLIANCE_RISK risk factor.

    Args:
        result: Evaluation to modify
        assessment: Output of ``assess_compliance``

    Returns:
        New EvaluationResult; the input is not mutated
    """
    probability = result.success_probability
    adjustment = assessment["probabilityAdjustment"]
    if result.pass_pre_screening and adjustment:
        percentage = max(0, min(100, probability.percentage + adjustment))
        probability = SuccessProbability(
            percentage=percentage,
            level=PreScreeningScorer.success_level(percentage),
            reasoning=f"{probability.reasoning} Compliance risk {assessment['risk']['level']} ({adjustment:+d}).",
        )

    risk_factors = result.risk_factors
    if assessment["risk"]["level"] in (RiskLevel.HIGH.value, RiskLevel.CRITICAL.value):
        risk_factors = (
            *risk_factors,
            RiskFactor(
                factor="COMPLIANCE_RISK",
                description=assessment["risk"]["description"],
                mitigation=assessment["risk"]["recommendation"],
            ),
        )

    return replace(
        result,
        success_probability=probability,
        risk_factors=risk_factors,
        compliance=assessment,
    )
