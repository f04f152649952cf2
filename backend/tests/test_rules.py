"""Tests for rule tables, conditions and the visa change matrix."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from visa_engine.core.enums import ApplicationType, ChangeTag, EducationLevel
from visa_engine.core.errors import ConfigurationError
from visa_engine.models.schemas.applicant import ApplicantData
from visa_engine.rules import RULE_SETS, get_rule_set, load_rule_set
from visa_engine.rules import e2
from visa_engine.rules.change_paths import (
    VISA_CHANGE_MATRIX,
    check_changeability,
    check_conditions_met,
    suggest_alternative_paths,
)
from visa_engine.rules.common import education_rank, language_rank, meets_education
from visa_engine.rules.schema import Condition
from visa_engine.services.rule_engine.conditions import evaluate_condition


# ==================== Rule Set Loading ====================


class TestRuleSetLoading:
    """Rule tables validate at import and fail loudly when malformed."""

    def test_shipped_rule_sets(self):
        assert set(RULE_SETS) == {"E-1", "E-2", "E-7"}
        for code, rule_set in RULE_SETS.items():
            assert rule_set.code == code
            assert set(rule_set.base_processing_days) == set(ApplicationType)

    def test_unknown_code_raises(self):
        with pytest.raises(ConfigurationError):
            get_rule_set("Z-9")

    def test_malformed_table_raises_configuration_error(self):
        raw = dict(e2.RULE_SET)
        del raw["base_processing_days"]

        with pytest.raises(ConfigurationError) as exc_info:
            load_rule_set(raw)

        assert exc_info.value.details["errors"]

    def test_changeability_target_must_match_code(self):
        raw = {**e2.RULE_SET, "changeability": {**e2.RULE_SET["changeability"], "target": "E-1"}}

        with pytest.raises(ConfigurationError):
            load_rule_set(raw)

    def test_remediable_rule_cannot_be_critical(self):
        issue = {**e2.RULE_SET["remediable_issues"][0], "severity": "CRITICAL"}
        raw = {**e2.RULE_SET, "remediable_issues": [issue]}

        with pytest.raises(ConfigurationError):
            load_rule_set(raw)

    def test_rule_sets_are_frozen(self):
        rule_set = get_rule_set("E-2")
        with pytest.raises(PydanticValidationError):
            rule_set.version = "9.9"


# ==================== Eligibility Matrix ====================


class TestEligibilityMatrix:

    def test_exact_cell(self):
        requirement = get_rule_set("E-1").eligibility_matrix.requirement_for("professor", "university")
        assert requirement.minimum_degree == EducationLevel.MASTER
        assert requirement.minimum_experience == 10

    def test_unknown_position_without_wildcard(self):
        assert get_rule_set("E-1").eligibility_matrix.requirement_for("janitor", "university") is None

    def test_wildcard_matches_anything(self):
        requirement = get_rule_set("E-2").eligibility_matrix.requirement_for("tutor", None)
        assert requirement.minimum_degree == EducationLevel.BACHELOR


# ==================== Document Checklists ====================


class TestDocumentChecklist:

    def test_new_checklist_has_common_and_type_entries(self):
        codes = [e.code for e in get_rule_set("E-1").documents.documents_for(ApplicationType.NEW)]
        assert codes[:2] == ["passport", "application_fee"]
        assert "diploma" in codes
        assert "extension_application_form" not in codes

    def test_disclosure_nationality_adds_federal_record(self):
        documents = get_rule_set("E-1").documents
        us_codes = [e.code for e in documents.documents_for(ApplicationType.NEW, "US")]
        cn_codes = [e.code for e in documents.documents_for(ApplicationType.NEW, "CN")]

        assert "federal_criminal_record" in us_codes
        assert "federal_criminal_record" not in cn_codes

    def test_default_nationality_entries(self):
        codes = [e.code for e in get_rule_set("E-2").documents.documents_for(ApplicationType.NEW, "FR")]
        assert codes.count("CRIMINAL_RECORD") == 1

    def test_change_adds_current_visa_documents(self):
        documents = get_rule_set("E-1").documents
        codes = [e.code for e in documents.documents_for(ApplicationType.CHANGE, current_visa="D-2")]
        assert "graduation_certificate" in codes

        new_codes = [e.code for e in documents.documents_for(ApplicationType.NEW, current_visa="D-2")]
        assert "graduation_certificate" not in new_codes


# ==================== Changeability ====================


class TestChangeabilityGraph:

    def test_allowed_conditional_and_prohibited_edges(self):
        graph = get_rule_set("E-1").changeability
        assert graph.can_change_from("D-10")
        assert graph.can_change_from("D-2")
        assert graph.change_edge("D-2").tag == ChangeTag.CONDITIONAL
        assert not graph.can_change_from("B-1")

    def test_absent_edge_is_not_changeable(self):
        assert not get_rule_set("E-1").changeability.can_change_from("X-9")


class TestVisaChangeMatrix:

    def test_direct_path(self):
        result = check_changeability("D-10", "E-7")
        assert result["possible"] is True
        assert result["difficultyScore"] == 85
        assert result["successRate"] == 85

    def test_prohibited_source(self):
        result = check_changeability("C-3", "E-1")
        assert result["possible"] is False
        assert result["alternatives"] == []

    def test_indirect_path_through_intermediate(self):
        paths = suggest_alternative_paths("D-2", "F-5")
        assert {"path": "D-2 -> F-2 -> F-5", "description": "Change to F-5 via F-2", "totalDifficulty": "MEDIUM"} in paths

    def test_no_route_falls_back_to_reapplying(self):
        paths = suggest_alternative_paths("F-6", "E-9")
        assert paths[0]["totalDifficulty"] == "HARD"
        assert any("D-10" in p["path"] for p in paths)

    def test_conditions_met_scoring(self):
        conditions = VISA_CHANGE_MATRIX["D-10"]["E-7"]
        applicant = ApplicantData(education_level="bachelor", has_job_offer=False, salary=10_000_000)

        result = check_conditions_met(conditions, applicant)

        assert result["allMet"] is False
        assert len(result["met"]) == 1
        assert len(result["unmet"]) == 2
        assert result["score"] == 40

    def test_conditions_all_met(self):
        conditions = VISA_CHANGE_MATRIX["D-10"]["E-1"]
        applicant = ApplicantData(education_level="phd", has_job_offer=True)

        result = check_conditions_met(conditions, applicant)

        assert result == {"allMet": True, "met": result["met"], "unmet": [], "score": 100}


# ==================== Reference Data ====================


class TestReferenceData:

    @pytest.mark.parametrize(
        "actual,minimum,expected",
        [
            ("master", EducationLevel.BACHELOR, True),
            ("PHD", EducationLevel.PHD, True),
            (EducationLevel.ASSOCIATE, EducationLevel.BACHELOR, False),
            ("diploma", EducationLevel.HIGH_SCHOOL, False),
            (None, EducationLevel.HIGH_SCHOOL, False),
        ],
    )
    def test_meets_education(self, actual, minimum, expected):
        assert meets_education(actual, minimum) is expected

    def test_education_rank_unknown(self):
        assert education_rank("kindergarten") == -1

    def test_language_rank(self):
        assert language_rank("topik_4") == 4
        assert language_rank("B2") == language_rank("TOPIK_4")
        assert language_rank("NATIVE") > language_rank("C2")
        assert language_rank(None) == 0


# ==================== Conditions ====================


def _condition(**raw) -> Condition:
    return Condition.model_validate(raw)


class TestConditions:
    """Declarative condition evaluation against applicant data."""

    def test_comparison_operators(self):
        applicant = ApplicantData(weekly_hours=4, nationality="us")

        assert evaluate_condition(_condition(field="weekly_hours", operator="lt", value=6), applicant)
        assert not evaluate_condition(_condition(field="weekly_hours", operator="gte", value=6), applicant)
        assert evaluate_condition(_condition(field="nationality", operator="eq", value="US"), applicant)
        assert evaluate_condition(_condition(field="nationality", operator="in", value=["US", "CA"]), applicant)
        assert not evaluate_condition(_condition(field="nationality", operator="nin", value=["US"]), applicant)

    def test_absent_field_never_matches_a_comparison(self):
        applicant = ApplicantData()

        assert not evaluate_condition(_condition(field="weekly_hours", operator="lt", value=6), applicant)
        assert not evaluate_condition(_condition(field="weekly_hours", operator="ne", value=6), applicant)
        assert evaluate_condition(_condition(field="weekly_hours", operator="missing"), applicant)
        assert not evaluate_condition(_condition(field="weekly_hours", operator="present"), applicant)

    def test_composition(self):
        applicant = ApplicantData(point_score=70)
        band = _condition(
            **{
                "and": [
                    {"field": "point_score", "operator": "gte", "value": 60},
                    {"field": "point_score", "operator": "lt", "value": 80},
                ]
            }
        )
        either = _condition(
            **{
                "or": [
                    {"field": "salary", "operator": "gt", "value": 0},
                    {"field": "point_score", "operator": "eq", "value": 70},
                ]
            }
        )

        assert evaluate_condition(band, applicant)
        assert evaluate_condition(either, applicant)

    def test_enum_values_compare_as_strings(self):
        applicant = ApplicantData(education_level="Master")
        assert evaluate_condition(_condition(field="education_level", operator="eq", value="master"), applicant)

    def test_extra_fields_resolve_from_camel_case(self):
        applicant = ApplicantData.model_validate({"customScore": 7})
        assert evaluate_condition(_condition(field="custom_score", operator="gte", value=5), applicant)

    def test_incomparable_types_are_false(self):
        applicant = ApplicantData(nationality="US")
        assert not evaluate_condition(_condition(field="nationality", operator="gt", value=5), applicant)

    def test_none_condition_holds(self):
        assert evaluate_condition(None, ApplicantData())

    def test_shape_is_validated(self):
        with pytest.raises(PydanticValidationError):
            _condition(field="age", operator="gt", value=1, **{"and": []})
        with pytest.raises(PydanticValidationError):
            _condition(field="nationality", operator="in", value="US")
        with pytest.raises(PydanticValidationError):
            _condition()
