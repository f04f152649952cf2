"""Scoring, processing-time and action-plan logic shared by every pipeline."""

import math
from typing import Iterable, Sequence

from visa_engine.core.enums import ProbabilityLevel, Severity
from visa_engine.rules.common import (
    TIME_BUCKETS_MEDIUM,
    TIME_BUCKETS_SHORT,
    TIME_BUCKETS_URGENT,
)
from visa_engine.services.rule_engine.base import (
    ActionItem,
    ActionPlan,
    ProcessingTimeEstimate,
    RejectionReason,
    RemediableIssue,
    SuccessProbability,
    TimelineEntry,
)

BASE_SUCCESS_SCORE = 85
SEVERITY_PENALTIES: dict[Severity, int] = {
    Severity.HIGH: 20,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
}

MINIMUM_PROCESSING_DAYS = 5
RANGE_BELOW_DAYS = 5
RANGE_ABOVE_DAYS = 10


class PreScreeningScorer:
    """
    Scoring engine for pre-screening results.

    Provides the success-probability model, processing-time finalization and
    action-plan synthesis. All methods are pure.
    """

    @staticmethod
    def success_level(percentage: int) -> ProbabilityLevel:
        """Map a percentage onto its qualitative band."""
        if percentage >= 80:
            return ProbabilityLevel.HIGH
        if percentage >= 60:
            return ProbabilityLevel.MEDIUM
        if percentage >= 40:
            return ProbabilityLevel.LOW
        return ProbabilityLevel.VERY_LOW

    @staticmethod
    def success_reasoning(percentage: int, issues: Sequence[RemediableIssue]) -> str:
        """Short explanation for a success percentage."""
        if percentage >= 80:
            text = "High success probability. Requirements are largely met."
        elif percentage >= 60:
            text = "Moderate success probability. Some improvements needed."
        elif percentage >= 40:
            text = "Low success probability. Several issues must be resolved."
        else:
            text = "Very low success probability. Significant improvements required."
        if issues:
            text += f" {len(issues)} remediable issue(s) found."
        return text

    @staticmethod
    def calculate_success_probability(
        rejections: Sequence[RejectionReason],
        issues: Sequence[RemediableIssue],
        bonuses: Iterable[int] = (),
    ) -> SuccessProbability:
        """
        Predict the chance of approval.

        Penalties and bonuses are summed first and the total is clamped once
        to [0, 100].

        Args:
            rejections: Immediate rejection reasons
            issues: Remediable issues
            bonuses: Bonus points for strong secondary signals

        Returns:
            SuccessProbability; IMPOSSIBLE at 0% when any rejection exists
        """
        if rejections:
            return SuccessProbability(
                percentage=0,
                level=ProbabilityLevel.IMPOSSIBLE,
                reasoning="Immediate rejection reasons exist",
            )

        score = BASE_SUCCESS_SCORE
        score -= sum(SEVERITY_PENALTIES.get(issue.severity, 0) for issue in issues)
        score += sum(bonuses)
        percentage = max(0, min(100, score))

        return SuccessProbability(
            percentage=percentage,
            level=PreScreeningScorer.success_level(percentage),
            reasoning=PreScreeningScorer.success_reasoning(percentage, issues),
        )

    @staticmethod
    def finalize_processing_time(days: int, factors: Sequence[str]) -> ProcessingTimeEstimate:
        """Apply the processing-time floor and derive the reported range."""
        estimated = max(MINIMUM_PROCESSING_DAYS, days)
        return ProcessingTimeEstimate(
            estimated_days=estimated,
            minimum_days=max(MINIMUM_PROCESSING_DAYS, estimated - RANGE_BELOW_DAYS),
            maximum_days=estimated + RANGE_ABOVE_DAYS,
            factors=tuple(factors),
        )

    @staticmethod
    def build_action_plan(issues: Sequence[RemediableIssue]) -> ActionPlan:
        """
        Bucket remediable issues by resolution time and severity.

        Week-scale items go to ``immediate`` when HIGH severity, otherwise to
        ``short_term``; month-scale items to ``medium_term``; anything longer
        to ``long_term``.
        """
        immediate, short_term, medium_term, long_term = [], [], [], []

        for issue in issues:
            action = ActionItem(
                issue=issue.code,
                title=issue.message,
                solution=issue.solution,
                difficulty=issue.difficulty,
                category=issue.category,
            )
            if issue.time_to_resolve in TIME_BUCKETS_URGENT:
                if issue.severity == Severity.HIGH:
                    immediate.append(action)
                else:
                    short_term.append(action)
            elif issue.time_to_resolve in TIME_BUCKETS_SHORT:
                short_term.append(action)
            elif issue.time_to_resolve in TIME_BUCKETS_MEDIUM:
                medium_term.append(action)
            else:
                long_term.append(action)

        return ActionPlan(
            immediate=tuple(immediate),
            short_term=tuple(short_term),
            medium_term=tuple(medium_term),
            long_term=tuple(long_term),
        )

    @staticmethod
    def build_timeline(plan: ActionPlan) -> tuple[TimelineEntry, ...]:
        """Render the action plan as sequential labelled periods."""
        timeline = []
        week = 0

        if plan.immediate:
            timeline.append(
                TimelineEntry(
                    period="Week 1",
                    actions=tuple(a.title for a in plan.immediate),
                    critical=True,
                )
            )
            week = 1

        if plan.short_term:
            timeline.append(
                TimelineEntry(
                    period=f"Weeks {week + 1}-{week + 4}",
                    actions=tuple(a.title for a in plan.short_term),
                )
            )
            week += 4

        if plan.medium_term:
            month = math.ceil(week / 4)
            timeline.append(
                TimelineEntry(
                    period=f"Months {month + 1}-{month + 3}",
                    actions=tuple(a.title for a in plan.medium_term),
                )
            )

        if plan.long_term:
            timeline.append(
                TimelineEntry(
                    period="After 3 months",
                    actions=tuple(a.title for a in plan.long_term),
                )
            )

        return tuple(timeline)
