"""Tests for the generic and E-1 pre-screening pipelines."""

import pytest

from visa_engine.core.enums import ApplicationType, ProbabilityLevel, Severity
from visa_engine.rules import get_rule_set
from visa_engine.services.rule_engine.e1_prescreening import E1PreScreening
from visa_engine.services.rule_engine.pipeline import GenericPreScreening


def _codes(items) -> list[str]:
    return [item.code for item in items]


@pytest.fixture
def e1_pipeline():
    return E1PreScreening(get_rule_set("E-1"))


@pytest.fixture
def e2_pipeline():
    return GenericPreScreening(get_rule_set("E-2"))


@pytest.fixture
def e7_pipeline():
    return GenericPreScreening(get_rule_set("E-7"))


# ==================== E-1 Pre-screening ====================


class TestE1Rejections:
    """Every rejection check runs, so all blocking reasons are reported together."""

    @pytest.mark.parametrize(
        "institution_type,alternative",
        [("ACADEMY", "E-2"), ("RESEARCH_INSTITUTE", "E-3"), ("CORPORATE_TRAINING", "E-7")],
    )
    def test_ineligible_institution(self, e1_pipeline, make_context, institution_type, alternative):
        result = e1_pipeline.run(make_context(institution_type=institution_type.lower()))

        assert _codes(result.immediate_rejection_reasons) == ["INELIGIBLE_INSTITUTION"]
        assert result.pass_pre_screening is False
        assert result.success_probability.percentage == 0
        assert result.success_probability.level == ProbabilityLevel.IMPOSSIBLE
        assert alternative in [a.visa for a in result.alternatives]

    def test_insufficient_education_for_position(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(position="Professor", institution_tier="university", education_level="bachelor")
        )
        assert _codes(result.immediate_rejection_reasons) == ["INSUFFICIENT_EDUCATION"]

    def test_criminal_record_only_for_disclosure_nationalities(self, e1_pipeline, make_context):
        us = e1_pipeline.run(make_context(nationality="US", criminal_record=True))
        cn = e1_pipeline.run(make_context(nationality="CN", criminal_record=True))

        assert _codes(us.immediate_rejection_reasons) == ["CRIMINAL_RECORD"]
        assert cn.immediate_rejection_reasons == ()

    def test_unfit_health(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(health_status="unfit"))
        assert _codes(result.immediate_rejection_reasons) == ["HEALTH_ISSUES"]

    def test_prohibited_change(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(ApplicationType.CHANGE, current_visa="b-1"))
        assert _codes(result.immediate_rejection_reasons) == ["INVALID_VISA_CHANGE"]

    def test_change_without_current_visa(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(ApplicationType.CHANGE))

        assert _codes(result.immediate_rejection_reasons) == ["INVALID_VISA_CHANGE"]
        assert "current visa" in result.immediate_rejection_reasons[0].message
        assert result.pass_pre_screening is False

    def test_all_reasons_reported(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(
                ApplicationType.CHANGE,
                institution_type="ACADEMY",
                nationality="US",
                criminal_record=True,
                current_visa="C-3",
                health_status="UNFIT",
            )
        )
        assert _codes(result.immediate_rejection_reasons) == [
            "INELIGIBLE_INSTITUTION",
            "CRIMINAL_RECORD",
            "INVALID_VISA_CHANGE",
            "HEALTH_ISSUES",
        ]


class TestE1Issues:

    def test_contract_issues(self, e1_pipeline, make_context, e1_extension_applicant):
        context = make_context(ApplicationType.EXTENSION, **e1_extension_applicant)

        result = e1_pipeline.run(context)

        assert result.pass_pre_screening is True
        assert _codes(result.remediable_issues) == [
            "INSUFFICIENT_TEACHING_HOURS",
            "EXCESSIVE_ONLINE_TEACHING",
            "SHORT_CONTRACT_DURATION",
        ]
        assert result.success_probability.percentage == 35
        assert result.success_probability.level == ProbabilityLevel.VERY_LOW
        assert result.alternatives == ()

    def test_threshold_checks_need_the_field(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context())
        assert result.remediable_issues == ()
        assert result.success_probability.percentage == 85

    def test_secondary_issues(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(korean_level="topik_2", publications=1, recommendation_letters=0)
        )

        assert _codes(result.remediable_issues) == [
            "LOW_KOREAN_PROFICIENCY",
            "INSUFFICIENT_RESEARCH",
            "NO_RECOMMENDATIONS",
        ]
        assert [i.severity for i in result.remediable_issues] == [Severity.MEDIUM, Severity.LOW, Severity.LOW]
        assert result.success_probability.percentage == 65

    def test_korean_level_from_language_scores(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(language_scores={"korean": "TOPIK_4"}))
        assert "LOW_KOREAN_PROFICIENCY" not in _codes(result.remediable_issues)

    def test_bonuses_are_clamped(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(experience_years=12, publications=8, institution_prestige="high")
        )
        assert result.success_probability.percentage == 100
        assert result.success_probability.level == ProbabilityLevel.HIGH


class TestE1ProcessingTime:

    def test_adjustments_add_up(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(nationality="US", institution_type="CREDIT_BANK", document_quality="poor")
        )

        estimate = result.estimated_processing_time
        assert estimate.estimated_days == 20 + 5 + 7 + 10
        assert (estimate.minimum_days, estimate.maximum_days) == (37, 52)
        assert len(estimate.factors) == 4

    def test_excellent_documents_speed_up(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(ApplicationType.EXTENSION, document_quality="EXCELLENT"))
        assert result.estimated_processing_time.estimated_days == 7


class TestE1RisksAndAlternatives:

    def test_risk_factors(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(
                experience_years=1,
                job_stability="low",
                contract_type="part_time",
                previous_violations=True,
            )
        )
        assert [r.factor for r in result.risk_factors] == [
            "LIMITED_EXPERIENCE",
            "JOB_INSTABILITY",
            "PART_TIME_CONTRACT",
            "PREVIOUS_VIOLATIONS",
        ]

    def test_conditional_change_risk(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(ApplicationType.CHANGE, current_visa="E-2"))

        assert result.pass_pre_screening is True
        assert "CONDITIONAL_CHANGE" in [r.factor for r in result.risk_factors]

    def test_job_seeking_fallback(self, e1_pipeline, make_context):
        result = e1_pipeline.run(make_context(health_status="UNFIT", nationality="CN"))
        assert [a.visa for a in result.alternatives] == ["D-10"]

    def test_no_job_seeking_fallback_for_current_holders(self, e1_pipeline, make_context):
        result = e1_pipeline.run(
            make_context(
                ApplicationType.CHANGE,
                current_visa="D-10",
                health_status="UNFIT",
                nationality="US",
                education_level="master",
                experience_years=5,
            )
        )

        visas = [a.visa for a in result.alternatives]
        assert visas == ["E-2", "E-7"]
        assert "E-1" not in visas

    def test_details(self, e1_pipeline, make_context, e1_extension_applicant):
        result = e1_pipeline.run(make_context(ApplicationType.EXTENSION, **e1_extension_applicant))

        teaching = result.details["teachingRequirements"]
        assert teaching["weeklyHours"] == {"required": 6, "actual": 4, "met": False}
        assert teaching["onlinePercentage"]["met"] is False
        assert result.details["institutionEligibility"]["weight"] == 1.0
        assert result.details["positionRequirements"]["minimumDegree"] == "master"


# ==================== Generic Pre-screening ====================


class TestGenericE2:

    def test_qualified_applicant(self, e2_pipeline, make_context, e2_native_applicant):
        result = e2_pipeline.run(make_context(**e2_native_applicant))

        assert result.pass_pre_screening is True
        assert result.remediable_issues == ()
        assert result.success_probability.percentage == 90
        assert result.estimated_processing_time.estimated_days == 19
        assert result.details == {"eligibility": {"minimumDegree": "bachelor", "minimumExperience": 0}}

    def test_nationality_restriction(self, e2_pipeline, make_context):
        result = e2_pipeline.run(
            make_context(
                nationality="FR",
                education_level="bachelor",
                language_scores={"english": "C1"},
                teaching_certification=False,
                teaching_experience=0.5,
            )
        )

        assert _codes(result.immediate_rejection_reasons) == ["NATIONALITY_NOT_ALLOWED"]
        assert _codes(result.remediable_issues) == [
            "INSUFFICIENT_ENGLISH_SKILL",
            "NO_TEACHING_CERT",
            "INSUFFICIENT_TEACHING_EXPERIENCE",
        ]
        assert result.success_probability.percentage == 0
        assert [a.visa for a in result.alternatives] == ["E-7", "D-10"]

    def test_education_below_wildcard_minimum(self, e2_pipeline, make_context):
        result = e2_pipeline.run(make_context(nationality="CA", education_level="high_school"))
        assert _codes(result.immediate_rejection_reasons) == ["INSUFFICIENT_EDUCATION"]

    def test_criminal_record_rule(self, e2_pipeline, make_context):
        result = e2_pipeline.run(make_context(nationality="GB", criminal_record=True))
        assert _codes(result.immediate_rejection_reasons) == ["CRIMINAL_RECORD"]

    def test_change_without_current_visa(self, e2_pipeline, make_context, e2_native_applicant):
        result = e2_pipeline.run(make_context(ApplicationType.CHANGE, **e2_native_applicant))

        assert _codes(result.immediate_rejection_reasons) == ["INVALID_VISA_CHANGE"]
        assert result.success_probability.percentage == 0

    def test_processing_adjustment(self, e2_pipeline, make_context):
        result = e2_pipeline.run(make_context(ApplicationType.CHANGE, current_visa="D-10", document_quality="POOR"))

        assert result.estimated_processing_time.estimated_days == 31
        assert result.estimated_processing_time.factors[-1] == "Document supplementation and re-review (+7 days)"


class TestGenericE7:

    def test_rejections_issues_and_alternatives(self, e7_pipeline, make_context):
        result = e7_pipeline.run(
            make_context(
                point_score=70,
                salary=20_000_000,
                company_revenue=50_000_000,
                industry="manufacturing",
                education_level="bachelor",
                experience_years=2,
                job_change_count=4,
            )
        )

        assert _codes(result.immediate_rejection_reasons) == ["INSUFFICIENT_POINTS", "LOW_SALARY"]
        assert _codes(result.remediable_issues) == ["NO_KOREAN_CERT", "WEAK_COMPANY"]
        assert [r.factor for r in result.risk_factors] == ["JOB_INSTABILITY"]
        assert [a.visa for a in result.alternatives] == ["D-10", "E-9"]

    def test_experience_below_matrix_minimum(self, e7_pipeline, make_context):
        result = e7_pipeline.run(make_context(experience_years=0, korean_level="TOPIK_3"))

        assert _codes(result.remediable_issues) == ["INSUFFICIENT_EXPERIENCE"]
        assert result.success_probability.percentage == 75

    def test_negative_adjustments(self, e7_pipeline, make_context):
        result = e7_pipeline.run(make_context(point_score=120, job_category="SPECIAL_TALENT"))
        assert result.estimated_processing_time.estimated_days == 14
