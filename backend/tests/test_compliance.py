"""Tests for compliance scoring and the probability modifier."""

from datetime import date

import pytest

from visa_engine.core.enums import ProbabilityLevel
from visa_engine.models.schemas.compliance import ComplianceHistory
from visa_engine.rules import get_rule_set
from visa_engine.services.compliance import (
    ComplianceRecord,
    apply_compliance_modifier,
    assess_compliance,
    calculate_compliance_score,
    insurance_compliance_score,
    tax_compliance_score,
)
from visa_engine.services.rule_engine.pipeline import GenericPreScreening


def _history(**fields) -> ComplianceHistory:
    return ComplianceHistory.model_validate(fields)


def _violation(area: str, severity: str, on: str = "2024-01-10") -> dict:
    return {"area": area, "severity": severity, "date": on}


def _tax(status: str, due: str = None, paid: str = None) -> dict:
    return {"year": 2023, "status": status, "dueDate": due, "paidDate": paid}


def _insurance(active: int, inactive: int) -> list[dict]:
    return [{"status": "ACTIVE"}] * active + [{"status": "LAPSED"}] * inactive


# ==================== Scoring ====================


class TestComplianceScore:

    def test_empty_history(self):
        assessment = assess_compliance(_history())

        assert assessment["score"]["totalScore"] == 92
        assert assessment["score"]["level"] == "EXCELLENT"
        assert assessment["risk"]["level"] == "LOW"
        assert assessment["probabilityAdjustment"] == 0

    def test_immigration_violations_weigh_more(self):
        assessment = assess_compliance(_history(violations=[_violation("IMMIGRATION", "MAJOR")]))

        # 100 - 45 - 5 - 3
        assert assessment["score"]["breakdown"]["violationDeduction"] == -45
        assert assessment["score"]["totalScore"] == 47
        assert assessment["score"]["level"] == "CRITICAL"
        assert assessment["risk"]["level"] == "CRITICAL"
        assert assessment["probabilityAdjustment"] == -20

    def test_score_is_clamped(self):
        history = _history(
            positiveRecords=[{"type": "AWARD", "date": "2023-05-01"}, {"type": "VOLUNTEER", "date": "2023-06-01"}],
            taxRecords=[_tax("ON_TIME")],
            insuranceRecords=_insurance(1, 0),
        )

        score = calculate_compliance_score(ComplianceRecord.from_history(history))

        assert score["totalScore"] == 100
        assert score["breakdown"]["positiveAddition"] == 13

    def test_severe_violation_is_critical_regardless_of_score(self):
        history = _history(
            violations=[_violation("CIVIL", "SEVERE")],
            positiveRecords=[{"type": "AWARD", "date": "2023-05-01"}] * 5,
        )

        assessment = assess_compliance(history)

        assert assessment["score"]["totalScore"] == 92
        assert assessment["risk"]["level"] == "CRITICAL"

    @pytest.mark.parametrize(
        "severity,score,risk",
        [("MINOR", 87, "LOW"), ("MODERATE", 77, "MEDIUM"), ("MAJOR", 62, "HIGH")],
    )
    def test_risk_bands(self, severity, score, risk):
        assessment = assess_compliance(_history(violations=[_violation("LABOR", severity)]))

        assert assessment["score"]["totalScore"] == score
        assert assessment["risk"]["level"] == risk

    def test_record_accumulates(self):
        record = ComplianceRecord()
        record.add_violation(_history(violations=[_violation("TAX", "MINOR")]).violations[0])

        assert calculate_compliance_score(record)["totalScore"] == 87


class TestTaxAndInsurance:

    @pytest.mark.parametrize(
        "record,expected",
        [
            (_tax("ON_TIME"), 5),
            (_tax("UNPAID"), -5),
            (_tax("LATE", "2023-05-31", "2023-06-05"), 3),
            (_tax("LATE", "2023-05-31", "2023-06-20"), 1),
            (_tax("LATE", "2023-05-31", "2023-08-01"), -2),
            (_tax("LATE"), -2),
        ],
    )
    def test_tax_period_scores(self, record, expected):
        records = _history(taxRecords=[record]).tax_records
        assert tax_compliance_score(records) == expected

    def test_tax_score_is_averaged(self):
        records = _history(taxRecords=[_tax("ON_TIME"), _tax("UNPAID"), _tax("ON_TIME")]).tax_records
        assert tax_compliance_score(records) == pytest.approx(5 / 3)

    def test_no_tax_records(self):
        assert tax_compliance_score([]) == -5

    @pytest.mark.parametrize(
        "active,inactive,expected",
        [(9, 1, 5), (7, 3, 3), (1, 1, 1), (1, 2, -2), (0, 0, -3)],
    )
    def test_insurance_rates(self, active, inactive, expected):
        records = _history(insuranceRecords=_insurance(active, inactive)).insurance_records
        assert insurance_compliance_score(records) == expected


class TestViolationAnalysis:

    def test_counts_and_recent_window(self):
        history = _history(
            violations=[
                _violation("LABOR", "MINOR", "2023-01-01"),
                _violation("LABOR", "MODERATE", "2020-01-01"),
                _violation("TAX", "MINOR", "2024-05-01"),
            ]
        )

        analysis = assess_compliance(history, as_of=date(2024, 6, 1))["violations"]

        assert analysis["totalCount"] == 3
        assert analysis["byArea"]["LABOR"] == 2
        assert analysis["byArea"]["IMMIGRATION"] == 0
        assert analysis["bySeverity"] == {"MINOR": 2, "MODERATE": 1, "MAJOR": 0, "SEVERE": 0}
        assert [v["date"] for v in analysis["recentViolations"]] == ["2023-01-01", "2024-05-01"]


# ==================== Probability Modifier ====================


class TestComplianceModifier:

    @pytest.fixture
    def passing_result(self, make_context, e2_native_applicant):
        return GenericPreScreening(get_rule_set("E-2")).run(make_context(**e2_native_applicant))

    def test_low_risk_leaves_probability(self, passing_result):
        modified = apply_compliance_modifier(passing_result, assess_compliance(_history()))

        assert modified.success_probability == passing_result.success_probability
        assert modified.compliance["score"]["totalScore"] == 92

    def test_medium_risk(self, passing_result):
        assessment = assess_compliance(_history(violations=[_violation("LABOR", "MODERATE")]))

        modified = apply_compliance_modifier(passing_result, assessment)

        assert modified.success_probability.percentage == 85
        assert modified.success_probability.level == ProbabilityLevel.HIGH
        assert modified.success_probability.reasoning.endswith(" Compliance risk MEDIUM (-5).")
        assert modified.risk_factors == passing_result.risk_factors

    def test_high_risk_adds_risk_factor(self, passing_result):
        assessment = assess_compliance(_history(violations=[_violation("LABOR", "MAJOR")]))

        modified = apply_compliance_modifier(passing_result, assessment)

        assert modified.success_probability.percentage == 80
        assert modified.risk_factors[-1].factor == "COMPLIANCE_RISK"
        # Input is not mutated
        assert passing_result.compliance is None

    def test_severe_violation(self, passing_result):
        assessment = assess_compliance(_history(violations=[_violation("CRIMINAL", "SEVERE")]))

        modified = apply_compliance_modifier(passing_result, assessment)

        assert modified.success_probability.percentage == 70
        assert modified.success_probability.level == ProbabilityLevel.MEDIUM

    def test_rejected_result_keeps_zero(self, make_context):
        rejected = GenericPreScreening(get_rule_set("E-2")).run(make_context(nationality="FR"))
        assessment = assess_compliance(_history(violations=[_violation("LABOR", "MAJOR")]))

        modified = apply_compliance_modifier(rejected, assessment)

        assert modified.pass_pre_screening is False
        assert modified.success_probability.percentage == 0
        assert modified.success_probability.level == ProbabilityLevel.IMPOSSIBLE
