"""Reference data shared by every rule set."""

from typing import Optional

from visa_engine.core.enums import EducationLevel

# Ascending order; index comparison decides "at least" checks.
EDUCATION_ORDER: tuple[EducationLevel, ...] = (
    EducationLevel.HIGH_SCHOOL,
    EducationLevel.ASSOCIATE,
    EducationLevel.BACHELOR,
    EducationLevel.MASTER,
    EducationLevel.PHD,
)

# Nationalities whose criminal record must be disclosed with an apostille.
DISCLOSURE_NATIONALITIES: frozenset[str] = frozenset(
    {
        "US", "CA", "AU", "NZ", "GB", "IE", "ZA", "FR", "DE", "IT",
        "ES", "NL", "BE", "CH", "AT", "SE", "NO", "DK", "FI",
    }
)

NATIVE_ENGLISH_COUNTRIES: frozenset[str] = frozenset(
    {"US", "CA", "GB", "AU", "NZ", "IE", "ZA"}
)

# Proficiency scales mapped onto one comparable ladder.
LANGUAGE_LEVELS: dict[str, int] = {
    "TOPIK_1": 1,
    "TOPIK_2": 2,
    "TOPIK_3": 3,
    "TOPIK_4": 4,
    "TOPIK_5": 5,
    "TOPIK_6": 6,
    "A1": 1,
    "A2": 2,
    "B1": 3,
    "B2": 4,
    "C1": 5,
    "C2": 6,
    "NATIVE": 10,
}

# Gross national income per capita (KRW) used for salary floors.
GNI_PER_CAPITA = 35_000_000

JOB_SEEKING_VISA = "D-10"

TIME_BUCKETS_URGENT: frozenset[str] = frozenset({"1 week", "1-2 weeks"})
TIME_BUCKETS_SHORT: frozenset[str] = frozenset({"2-3 weeks", "1-4 weeks"})
TIME_BUCKETS_MEDIUM: frozenset[str] = frozenset({"1-3 months", "2-3 months"})


def education_rank(level: Optional[str]) -> int:
    """Position of an education level in EDUCATION_ORDER, -1 when unknown."""
    if level is None:
        return -1
    if isinstance(level, EducationLevel):
        return EDUCATION_ORDER.index(level)
    try:
        return EDUCATION_ORDER.index(EducationLevel(str(level).lower()))
    except ValueError:
        return -1


def meets_education(actual: Optional[str], minimum: EducationLevel) -> bool:
    """True when ``actual`` is at least ``minimum``."""
    return education_rank(actual) >= EDUCATION_ORDER.index(minimum)


def language_rank(level: Optional[str]) -> int:
    """Comparable rank of a proficiency label, 0 when unknown."""
    if not level:
        return 0
    return LANGUAGE_LEVELS.get(str(level).upper(), 0)
