"""Versioned rule tables per visa code.

Every table is validated once when this package is imported. Adding a visa
code means adding its table module and listing it in ``_RAW_RULE_SETS``.
"""

import logging

from pydantic import ValidationError as PydanticValidationError

from visa_engine.core.errors import ConfigurationError
from visa_engine.rules import e1, e2, e7
from visa_engine.rules.schema import RuleSet

logger = logging.getLogger(__name__)

_RAW_RULE_SETS: dict[str, dict] = {
    "E-1": e1.RULE_SET,
    "E-2": e2.RULE_SET,
    "E-7": e7.RULE_SET,
}


def load_rule_set(raw: dict) -> RuleSet:
    """
    Validate a raw rule table.

    Args:
        raw: Rule table as authored

    Returns:
        Frozen RuleSet

    Raises:
        ConfigurationError: If the table is malformed
    """
    try:
        return RuleSet.model_validate(raw)
    except PydanticValidationError as e:
        code = raw.get("code", "<unknown>") if isinstance(raw, dict) else "<unknown>"
        raise ConfigurationError(
            f"Malformed rule set for {code}",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def _load_all() -> dict[str, RuleSet]:
    rule_sets = {}
    for code, raw in _RAW_RULE_SETS.items():
        rule_set = load_rule_set(raw)
        if rule_set.code != code:
            raise ConfigurationError(f"Rule set registered as {code} declares {rule_set.code}")
        rule_sets[code] = rule_set
    logger.info(f"Loaded {len(rule_sets)} rule sets: {', '.join(rule_sets)}")
    return rule_sets


RULE_SETS: dict[str, RuleSet] = _load_all()


def get_rule_set(code: str) -> RuleSet:
    """
    Return the rule set for a visa code.

    Raises:
        ConfigurationError: If no rule set is registered for the code
    """
    rule_set = RULE_SETS.get(code)
    if rule_set is None:
        raise ConfigurationError(f"No rule set registered for visa type {code}")
    return rule_set


__all__ = ["RULE_SETS", "RuleSet", "get_rule_set", "load_rule_set"]
