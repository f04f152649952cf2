"""Evaluation of declarative rule-table conditions against applicant data."""

import logging
import operator
from typing import Any, Callable, Optional

from visa_engine.core.enums import ConditionOperator
from visa_engine.models.schemas.applicant import ApplicantData
from visa_engine.rules.schema import Condition

logger = logging.getLogger(__name__)

_COMPARATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQ: operator.eq,
    ConditionOperator.NE: operator.ne,
    ConditionOperator.GT: operator.gt,
    ConditionOperator.GTE: operator.ge,
    ConditionOperator.LT: operator.lt,
    ConditionOperator.LTE: operator.le,
    ConditionOperator.IN: lambda actual, expected: actual in expected,
    ConditionOperator.NIN: lambda actual, expected: actual not in expected,
}


def _normalize(value: Any) -> Any:
    # Enum members compare by their string value in rule tables.
    return getattr(value, "value", value)


def evaluate_condition(condition: Optional[Condition], applicant: ApplicantData) -> bool:
    """
    Evaluate a condition tree against an applicant.

    A comparison against a field the applicant did not supply is False;
    use the ``missing`` / ``present`` operators to test for absence.

    Args:
        condition: Condition to evaluate; None always holds
        applicant: Applicant record

    Returns:
        True when the condition holds
    """
    if condition is None:
        return True

    if condition.all_of is not None:
        return all(evaluate_condition(c, applicant) for c in condition.all_of)
    if condition.any_of is not None:
        return any(evaluate_condition(c, applicant) for c in condition.any_of)

    actual = _normalize(applicant.value(condition.field))

    if condition.operator == ConditionOperator.MISSING:
        return actual is None
    if condition.operator == ConditionOperator.PRESENT:
        return actual is not None
    if actual is None:
        return False

    try:
        return bool(_COMPARATORS[condition.operator](actual, condition.value))
    except TypeError:
        logger.warning(
            f"Cannot compare field '{condition.field}' ({actual!r}) "
            f"with {condition.operator.value} {condition.value!r}"
        )
        return False
