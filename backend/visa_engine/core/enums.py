"""Core enums for type safety across the engine."""

from enum import Enum


class ApplicationType(str, Enum):
    """Visa application kinds."""

    NEW = "NEW"
    EXTENSION = "EXTENSION"
    CHANGE = "CHANGE"


class VisaCategory(str, Enum):
    """Top-level visa families."""

    WORK = "WORK"
    EDUCATION = "EDUCATION"
    INVESTMENT = "INVESTMENT"
    RESIDENCE = "RESIDENCE"
    DIPLOMATIC = "DIPLOMATIC"
    TEMPORARY = "TEMPORARY"
    SPECIAL = "SPECIAL"


class Complexity(str, Enum):
    """Relative complexity of a visa category's evaluation."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class EducationLevel(str, Enum):
    """Education levels in ascending order."""

    HIGH_SCHOOL = "high_school"
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    PHD = "phd"


class Severity(str, Enum):
    """Severity of a rejection reason or remediable issue."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class IssueCategory(str, Enum):
    """Grouping for remediable issues."""

    CONTRACT = "CONTRACT"
    LANGUAGE = "LANGUAGE"
    QUALIFICATION = "QUALIFICATION"
    DOCUMENTATION = "DOCUMENTATION"
    EXPERIENCE = "EXPERIENCE"
    EMPLOYER = "EMPLOYER"
    GENERAL = "GENERAL"


class Difficulty(str, Enum):
    """Effort needed to resolve a remediable issue."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class ProbabilityLevel(str, Enum):
    """Qualitative success probability bands."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    VERY_LOW = "VERY_LOW"
    IMPOSSIBLE = "IMPOSSIBLE"


class ChangeTag(str, Enum):
    """Edge tags in a changeability graph."""

    ALLOWED = "allowed"
    CONDITIONAL = "conditional"
    PROHIBITED = "prohibited"


class DocumentRequirement(str, Enum):
    """Whether a checklist entry must be submitted."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    CONDITIONAL = "conditional"


class ConditionOperator(str, Enum):
    """Operators usable in declarative rule conditions."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    MISSING = "missing"
    PRESENT = "present"


class ProcessType(str, Enum):
    """Kinds of tracked multi-step processes."""

    EVALUATION = "evaluation"
    DOCUMENT = "document"
    APPLICATION = "application"
    DEFAULT = "default"


class ProcessStatus(str, Enum):
    """Lifecycle states of a tracked process."""

    STARTED = "started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StepStatus(str, Enum):
    """Lifecycle states of a single process step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessEvent(str, Enum):
    """Events emitted by the progress tracker."""

    PROCESS_STARTED = "processStarted"
    STEP_STARTED = "stepStarted"
    STEP_PROGRESS = "stepProgress"
    STEP_COMPLETED = "stepCompleted"
    PROCESS_COMPLETED = "processCompleted"
    PROCESS_FAILED = "processFailed"


class CacheType(str, Enum):
    """Cache tiers managed by the cache manager."""

    MAIN = "main"
    EVALUATION = "evaluation"
    DOCUMENT = "document"
    SESSION = "session"
    RULES = "rules"


class ComplianceArea(str, Enum):
    """Legal areas a compliance event can belong to."""

    IMMIGRATION = "IMMIGRATION"
    TAX = "TAX"
    LABOR = "LABOR"
    INSURANCE = "INSURANCE"
    CRIMINAL = "CRIMINAL"
    CIVIL = "CIVIL"
    ADMINISTRATIVE = "ADMINISTRATIVE"


class ViolationSeverity(str, Enum):
    """Violation severity tiers."""

    MINOR = "MINOR"
    MODERATE = "MODERATE"
    MAJOR = "MAJOR"
    SEVERE = "SEVERE"


class PositiveRecordType(str, Enum):
    """Kinds of positive compliance records."""

    TAX_COMPLIANCE = "TAX_COMPLIANCE"
    VOLUNTEER = "VOLUNTEER"
    DONATION = "DONATION"
    AWARD = "AWARD"
    COMMUNITY_SERVICE = "COMMUNITY_SERVICE"


class TaxPaymentStatus(str, Enum):
    """Payment state of a tax period."""

    ON_TIME = "ON_TIME"
    LATE = "LATE"
    UNPAID = "UNPAID"


class InsuranceStatus(str, Enum):
    """State of an insurance enrollment."""

    ACTIVE = "ACTIVE"
    LAPSED = "LAPSED"
    CANCELLED = "CANCELLED"


class ComplianceLevel(str, Enum):
    """Qualitative compliance score bands."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    CRITICAL = "CRITICAL"


class RiskLevel(str, Enum):
    """Compliance risk tiers."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class EvaluationStatus(str, Enum):
    """Outcome of a persisted evaluation run."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
