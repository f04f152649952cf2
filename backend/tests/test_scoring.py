"""Tests for the pre-screening scorer."""

import pytest

from visa_engine.core.enums import Difficulty, IssueCategory, ProbabilityLevel, Severity
from visa_engine.services.rule_engine.base import RejectionReason, RemediableIssue
from visa_engine.services.rule_engine.scoring import PreScreeningScorer


def _issue(code: str, severity: Severity = Severity.MEDIUM, time_to_resolve: str = "1-2 weeks") -> RemediableIssue:
    return RemediableIssue(
        code=code,
        severity=severity,
        category=IssueCategory.GENERAL,
        message=f"{code} message",
        solution=f"{code} solution",
        time_to_resolve=time_to_resolve,
        difficulty=Difficulty.EASY,
    )


class TestSuccessProbability:

    def test_no_issues_is_base_score(self):
        probability = PreScreeningScorer.calculate_success_probability([], [])
        assert probability.percentage == 85
        assert probability.level == ProbabilityLevel.HIGH

    def test_rejection_forces_zero(self):
        rejection = RejectionReason(code="X", message="m", solution="s")
        probability = PreScreeningScorer.calculate_success_probability([rejection], [], [50])

        assert probability.percentage == 0
        assert probability.level == ProbabilityLevel.IMPOSSIBLE

    def test_severity_penalties(self):
        issues = [_issue("A", Severity.HIGH), _issue("B", Severity.MEDIUM), _issue("C", Severity.LOW)]
        probability = PreScreeningScorer.calculate_success_probability([], issues)

        assert probability.percentage == 50
        assert probability.level == ProbabilityLevel.LOW
        assert "3 remediable issue(s) found." in probability.reasoning

    def test_clamped_once_after_bonuses(self):
        issues = [_issue(str(i), Severity.HIGH) for i in range(5)]

        probability = PreScreeningScorer.calculate_success_probability([], issues, [20])

        # 85 - 100 + 20, not max(0, 85 - 100) + 20
        assert probability.percentage == 5

    def test_upper_clamp(self):
        probability = PreScreeningScorer.calculate_success_probability([], [], [10, 15, 10])
        assert probability.percentage == 100

    @pytest.mark.parametrize(
        "percentage,level",
        [
            (80, ProbabilityLevel.HIGH),
            (79, ProbabilityLevel.MEDIUM),
            (60, ProbabilityLevel.MEDIUM),
            (59, ProbabilityLevel.LOW),
            (40, ProbabilityLevel.LOW),
            (39, ProbabilityLevel.VERY_LOW),
            (0, ProbabilityLevel.VERY_LOW),
        ],
    )
    def test_level_bands(self, percentage, level):
        assert PreScreeningScorer.success_level(percentage) == level


class TestProcessingTime:

    def test_floor_and_range(self):
        estimate = PreScreeningScorer.finalize_processing_time(2, ["base"])

        assert estimate.estimated_days == 5
        assert estimate.minimum_days == 5
        assert estimate.maximum_days == 15
        assert estimate.factors == ("base",)

    def test_range_around_estimate(self):
        estimate = PreScreeningScorer.finalize_processing_time(30, [])
        assert (estimate.minimum_days, estimate.maximum_days) == (25, 40)


class TestActionPlan:

    def test_bucketing(self):
        issues = [
            _issue("URGENT_HIGH", Severity.HIGH, "1-2 weeks"),
            _issue("URGENT_MEDIUM", Severity.MEDIUM, "1 week"),
            _issue("SHORT", Severity.HIGH, "2-3 weeks"),
            _issue("MEDIUM", Severity.LOW, "2-3 months"),
            _issue("LONG", Severity.LOW, "6-12 months"),
        ]

        plan = PreScreeningScorer.build_action_plan(issues)

        assert [a.issue for a in plan.immediate] == ["URGENT_HIGH"]
        assert [a.issue for a in plan.short_term] == ["URGENT_MEDIUM", "SHORT"]
        assert [a.issue for a in plan.medium_term] == ["MEDIUM"]
        assert [a.issue for a in plan.long_term] == ["LONG"]

    def test_timeline_labels(self):
        issues = [
            _issue("A", Severity.HIGH, "1 week"),
            _issue("B", Severity.LOW, "1-4 weeks"),
            _issue("C", Severity.LOW, "1-3 months"),
            _issue("D", Severity.LOW, "1 year"),
        ]

        timeline = PreScreeningScorer.build_timeline(PreScreeningScorer.build_action_plan(issues))

        assert [t.period for t in timeline] == ["Week 1", "Weeks 2-5", "Months 3-5", "After 3 months"]
        assert [t.critical for t in timeline] == [True, False, False, False]

    def test_timeline_without_urgent_items(self):
        plan = PreScreeningScorer.build_action_plan([_issue("B", Severity.LOW, "2-3 weeks"), _issue("C", Severity.LOW, "2-3 months")])

        timeline = PreScreeningScorer.build_timeline(plan)

        assert [t.period for t in timeline] == ["Weeks 1-4", "Months 2-4"]

    def test_empty_plan_has_empty_timeline(self):
        assert PreScreeningScorer.build_timeline(PreScreeningScorer.build_action_plan([])) == ()
