"""Global visa-change matrix and path suggestions.

Per-visa changeability graphs decide whether a CHANGE application is
admissible. This matrix answers the broader question of how an applicant
can get from their current visa to a target one, possibly through an
intermediate visa.
"""

from typing import Any, Optional

from pydantic import Field

from visa_engine.core.enums import EducationLevel
from visa_engine.rules.common import GNI_PER_CAPITA, JOB_SEEKING_VISA, meets_education
from visa_engine.rules.schema import RuleModel

PROHIBITED_VISAS: frozenset[str] = frozenset({"A-1", "A-2", "A-3", "C-1", "C-3", "C-4"})
PROHIBITED_REASON = "Diplomatic, official and short-term visas cannot be changed"

CHANGE_DIFFICULTY: dict[str, int] = {
    "VERY_EASY": 95,
    "EASY": 85,
    "MEDIUM": 70,
    "HARD": 50,
    "VERY_HARD": 30,
}

# Annual salary floors in KRW.
SALARY_STANDARDS: dict[str, int] = {
    "GNI_80": int(GNI_PER_CAPITA * 0.8),
    "GNI_100": GNI_PER_CAPITA,
    "GNI_2X": GNI_PER_CAPITA * 2,
}


class ChangeConditions(RuleModel):
    """Conditions attached to one ``from -> to`` path."""

    requirement: str
    difficulty: str
    success_rate: int = Field(..., ge=0, le=100)
    education: Optional[EducationLevel] = None
    experience: Optional[int] = None
    job_offer: bool = False
    salary: Optional[str] = None
    residence_months: Optional[int] = None
    points: Optional[int] = None


def _path(requirement: str, difficulty: str, success_rate: int, **extra: Any) -> dict:
    return {
        "requirement": requirement,
        "difficulty": difficulty,
        "success_rate": success_rate,
        **extra,
    }


_RAW_MATRIX: dict[str, dict[str, dict]] = {
    "D-2": {
        "E-1": _path("Master's degree or doctoral coursework and a teaching offer", "MEDIUM", 75,
                     education="master", job_offer=True),
        "E-2": _path("Bachelor's degree and native English nationality", "EASY", 85, education="bachelor"),
        "E-3": _path("Research position at a recognized institute", "MEDIUM", 70, education="master"),
        "E-7": _path("Bachelor's degree and a professional job offer", "MEDIUM", 70,
                     education="bachelor", job_offer=True, salary="GNI_80"),
        "D-10": _path("Job seeking after graduation", "EASY", 95),
        "F-2": _path("80 points and two years of residence", "HARD", 45, residence_months=24, points=80),
        "F-6": _path("Marriage to a Korean national", "MEDIUM", 80),
    },
    "D-10": {
        "E-1": _path("Master's degree and a teaching offer", "MEDIUM", 80, education="master", job_offer=True),
        "E-2": _path("Bachelor's degree and native English nationality", "EASY", 90, education="bachelor"),
        "E-3": _path("Research position", "MEDIUM", 75, education="master"),
        "E-4": _path("Technology guidance contract", "MEDIUM", 70),
        "E-5": _path("Licensed professional occupation", "MEDIUM", 70),
        "E-6": _path("Arts or entertainment contract", "MEDIUM", 65),
        "E-7": _path("Bachelor's degree and a professional job offer", "EASY", 85,
                     education="bachelor", job_offer=True, salary="GNI_80"),
        "E-9": _path("Designated non-professional industry", "MEDIUM", 60),
        "F-2": _path("80 points under the point system", "HARD", 50, points=80),
    },
    "E-2": {
        "E-1": _path("Master's degree and three years of teaching", "MEDIUM", 70, education="master", experience=3),
        "E-7": _path("Professional job offer", "MEDIUM", 65, job_offer=True, salary="GNI_80"),
        "F-2": _path("Three years of residence and 80 points", "HARD", 55, residence_months=36, points=80),
        "F-5": _path("Five years of residence and 120 points", "VERY_HARD", 30, residence_months=60, points=120),
    },
    "E-7": {
        "E-7": _path("Extension in the same field", "EASY", 90),
        "F-2": _path("Three years of residence and high income", "MEDIUM", 75,
                     residence_months=36, salary="GNI_2X"),
        "F-5": _path("Five years of residence and high income", "HARD", 60,
                     residence_months=60, salary="GNI_2X"),
        "D-8": _path("KRW 100M investment and a business plan", "HARD", 40),
        "D-9": _path("Technology start-up plan", "HARD", 45),
    },
    "F-2": {
        "F-5": _path("Two years of residence and 120 points", "MEDIUM", 70, residence_months=24, points=120),
        "E-7": _path("Professional job offer", "EASY", 85, job_offer=True, salary="GNI_80"),
        "D-8": _path("KRW 100M investment", "MEDIUM", 65),
    },
    "F-6": {
        "F-5": _path("Two years of marriage and residence", "EASY", 90, residence_months=24),
    },
    "E-9": {
        "F-4": _path("Three years of residence as an ethnic Korean", "MEDIUM", 70, residence_months=36),
        "E-7": _path("Degree and skilled-worker experience", "HARD", 45, education="bachelor", experience=3),
    },
    "H-2": {
        "F-4": _path("Qualifying country of origin", "MEDIUM", 75),
        "E-9": _path("Three years of experience", "MEDIUM", 60, experience=3),
    },
}

VISA_CHANGE_MATRIX: dict[str, dict[str, ChangeConditions]] = {
    source: {target: ChangeConditions.model_validate(raw) for target, raw in targets.items()}
    for source, targets in _RAW_MATRIX.items()
}


def allowed_targets(current_visa: str) -> list[str]:
    """Visas directly reachable from ``current_visa``."""
    return list(VISA_CHANGE_MATRIX.get(current_visa, {}))


def suggest_alternative_paths(current_visa: str, target_visa: str) -> list[dict[str, str]]:
    """
    Suggest indirect routes when no direct change is possible.

    Routes through one intermediate visa come first; otherwise fall back to
    leaving and reapplying, and to a detour through the job-seeking visa.
    """
    alternatives = []
    for intermediate in allowed_targets(current_visa):
        if target_visa in VISA_CHANGE_MATRIX.get(intermediate, {}):
            alternatives.append(
                {
                    "path": f"{current_visa} -> {intermediate} -> {target_visa}",
                    "description": f"Change to {target_visa} via {intermediate}",
                    "totalDifficulty": "MEDIUM",
                }
            )

    if not alternatives:
        alternatives.append(
            {
                "path": f"{current_visa} -> departure -> {target_visa} new application",
                "description": "Leave the country and apply anew",
                "totalDifficulty": "HARD",
            }
        )
        if current_visa != JOB_SEEKING_VISA and target_visa in VISA_CHANGE_MATRIX[JOB_SEEKING_VISA]:
            alternatives.append(
                {
                    "path": f"{current_visa} -> {JOB_SEEKING_VISA} -> {target_visa}",
                    "description": "Change via the job-seeking visa",
                    "totalDifficulty": "MEDIUM",
                }
            )
    return alternatives


def check_changeability(current_visa: str, target_visa: str) -> dict[str, Any]:
    """
    Decide whether ``current_visa`` can be changed directly to ``target_visa``.

    Returns:
        Dict with ``possible`` plus either the path conditions or a reason
        and alternative routes
    """
    if current_visa in PROHIBITED_VISAS or target_visa in PROHIBITED_VISAS:
        return {"possible": False, "reason": PROHIBITED_REASON, "alternatives": []}

    conditions = VISA_CHANGE_MATRIX.get(current_visa, {}).get(target_visa)
    if conditions is None:
        return {
            "possible": False,
            "reason": f"No direct change from {current_visa} to {target_visa}",
            "alternatives": suggest_alternative_paths(current_visa, target_visa),
        }

    return {
        "possible": True,
        "conditions": conditions.model_dump(exclude_none=True),
        "difficultyScore": CHANGE_DIFFICULTY[conditions.difficulty],
        "successRate": conditions.success_rate,
        "requirements": conditions.requirement,
    }


def check_conditions_met(conditions: ChangeConditions, applicant: Any) -> dict[str, Any]:
    """
    Check an applicant against the conditions of one change path.

    Args:
        conditions: Conditions of the path
        applicant: Object exposing ``value(field)`` (ApplicantData)

    Returns:
        Dict with ``allMet``, ``met``, ``unmet`` and a 0-100 ``score``
    """
    met: list[str] = []
    unmet: list[str] = []
    score = 100

    if conditions.education:
        if meets_education(applicant.value("education_level"), conditions.education):
            met.append(f"Education: {conditions.education.value}")
        else:
            unmet.append(f"Education requirement not met: {conditions.education.value} needed")
            score -= 30

    if conditions.experience:
        if (applicant.value("experience_years") or 0) >= conditions.experience:
            met.append(f"Experience: {conditions.experience} years")
        else:
            unmet.append(f"Experience requirement not met: {conditions.experience} years needed")
            score -= 25

    if conditions.job_offer:
        if applicant.value("has_job_offer"):
            met.append("Job offer held")
        else:
            unmet.append("Job offer required")
            score -= 40

    if conditions.salary:
        required_salary = SALARY_STANDARDS[conditions.salary]
        if (applicant.value("salary") or 0) >= required_salary:
            met.append(f"Salary: at least {required_salary:,} KRW")
        else:
            unmet.append(f"Salary requirement not met: {required_salary:,} KRW needed")
            score -= 20

    return {"allMet": not unmet, "met": met, "unmet": unmet, "score": max(0, score)}
