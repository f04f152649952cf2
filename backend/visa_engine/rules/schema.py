"""Structural models for per-visa rule sets.

Rule tables are authored as plain dictionaries and validated into these
frozen models once, at import time. A table that does not validate raises
ConfigurationError before any evaluation can run.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from visa_engine.core.enums import (
    ApplicationType,
    ChangeTag,
    Complexity,
    ConditionOperator,
    Difficulty,
    DocumentRequirement,
    EducationLevel,
    IssueCategory,
    Severity,
    VisaCategory,
)

ANY = "*"
DEFAULT_NATIONALITY = "DEFAULT"


class RuleModel(BaseModel):
    """Base for rule table models: immutable, strict about unknown keys."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


# ==================== Condition Schemas ====================


class Condition(RuleModel):
    """
    Declarative predicate over applicant fields.

    Either a leaf comparison (field, operator, value) or a composition of
    nested conditions via ``and`` / ``or``.
    """

    field: Optional[str] = None
    operator: Optional[ConditionOperator] = None
    value: Any = None
    all_of: Optional[tuple["Condition", ...]] = Field(default=None, alias="and")
    any_of: Optional[tuple["Condition", ...]] = Field(default=None, alias="or")

    @model_validator(mode="after")
    def check_shape(self) -> "Condition":
        """Require exactly one of leaf comparison or composition."""
        is_leaf = self.field is not None and self.operator is not None
        is_composite = self.all_of is not None or self.any_of is not None
        if is_leaf == is_composite:
            raise ValueError(
                "Condition must define either field/operator or and/or"
            )
        if self.operator in (ConditionOperator.IN, ConditionOperator.NIN):
            if not isinstance(self.value, (list, tuple)):
                raise ValueError(f"Operator '{self.operator.value}' needs a list value")
        return self


# ==================== Eligibility Schemas ====================


class EligibilityRequirement(RuleModel):
    """Minimum qualification for one (position, institution tier) cell."""

    minimum_degree: EducationLevel
    minimum_experience: int = Field(default=0, ge=0)


class EligibilityMatrix(RuleModel):
    """(position, institution tier) -> EligibilityRequirement."""

    entries: dict[str, dict[str, EligibilityRequirement]]

    @model_validator(mode="after")
    def check_not_empty(self) -> "EligibilityMatrix":
        if not self.entries or not all(self.entries.values()):
            raise ValueError("Eligibility matrix must have at least one entry per position")
        return self

    def requirement_for(
        self, position: Optional[str], tier: Optional[str]
    ) -> Optional[EligibilityRequirement]:
        """
        Look up the requirement for a position and institution tier.

        Wildcard rows/columns (``*``) match any value.

        Returns:
            The matching requirement, or None when no cell applies
        """
        row = self.entries.get(position) if position else None
        if row is None:
            row = self.entries.get(ANY)
        if row is None:
            return None
        cell = row.get(tier) if tier else None
        if cell is None:
            cell = row.get(ANY)
        return cell


class LanguageRequirement(RuleModel):
    """Language proficiency requirement."""

    language: str
    level: str
    required: bool = False
    description: str = ""


class GeneralRequirements(RuleModel):
    """Category-agnostic limits checked by the generic pipeline."""

    allowed_nationalities: tuple[str, ...] = ()
    minimum_age: Optional[int] = None
    maximum_age: Optional[int] = None
    languages: tuple[LanguageRequirement, ...] = ()


# ==================== Document Checklist Schemas ====================


class ChecklistEntry(RuleModel):
    """One document descriptor in a checklist."""

    code: str
    name: str
    requirement: DocumentRequirement = DocumentRequirement.REQUIRED
    group: str = "basic"
    apostille: bool = False
    validity_months: Optional[int] = Field(default=None, gt=0)
    issuer: Optional[str] = None
    condition: Optional[str] = None


class DocumentChecklist(RuleModel):
    """Documents keyed by application type, nationality and current visa."""

    common: tuple[ChecklistEntry, ...] = ()
    by_application_type: dict[ApplicationType, tuple[ChecklistEntry, ...]]
    by_nationality: dict[str, tuple[ChecklistEntry, ...]] = Field(default_factory=dict)
    by_current_visa: dict[str, tuple[ChecklistEntry, ...]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_application_types(self) -> "DocumentChecklist":
        missing = [t.value for t in ApplicationType if t not in self.by_application_type]
        if missing:
            raise ValueError(f"Document checklist missing application types: {missing}")
        return self

    def documents_for(
        self,
        application_type: ApplicationType,
        nationality: Optional[str] = None,
        current_visa: Optional[str] = None,
    ) -> list[ChecklistEntry]:
        """
        Build the checklist for an application.

        Later sources override earlier ones with the same code, so a
        nationality-specific entry can tighten a common one.

        Args:
            application_type: NEW, EXTENSION or CHANGE
            nationality: ISO country code of the applicant
            current_visa: Current visa, used for CHANGE-specific documents

        Returns:
            Ordered list of checklist entries
        """
        merged: dict[str, ChecklistEntry] = {}
        sources = [self.common, self.by_application_type[application_type]]

        if nationality and nationality in self.by_nationality:
            sources.append(self.by_nationality[nationality])
        elif DEFAULT_NATIONALITY in self.by_nationality:
            sources.append(self.by_nationality[DEFAULT_NATIONALITY])

        if application_type == ApplicationType.CHANGE and current_visa:
            sources.append(self.by_current_visa.get(current_visa, ()))

        for source in sources:
            for entry in source:
                merged[entry.code] = entry
        return list(merged.values())


# ==================== Changeability Schemas ====================


class ChangeEdge(RuleModel):
    """Directed edge ``from_visa -> target`` in a changeability graph."""

    from_visa: str
    tag: ChangeTag
    condition: Optional[str] = None
    documents: tuple[str, ...] = ()

    @model_validator(mode="after")
    def check_condition(self) -> "ChangeEdge":
        if self.tag == ChangeTag.CONDITIONAL and not self.condition:
            raise ValueError(f"Conditional edge from {self.from_visa} needs a condition")
        return self


class ChangeabilityGraph(RuleModel):
    """Incoming change edges for one target visa."""

    target: str
    edges: tuple[ChangeEdge, ...]

    @model_validator(mode="after")
    def check_unique_sources(self) -> "ChangeabilityGraph":
        sources = [edge.from_visa for edge in self.edges]
        duplicates = {s for s in sources if sources.count(s) > 1}
        if duplicates:
            raise ValueError(f"Duplicate change edges from: {sorted(duplicates)}")
        return self

    def change_edge(self, from_visa: Optional[str]) -> Optional[ChangeEdge]:
        """Return the edge from ``from_visa``, or None when absent."""
        for edge in self.edges:
            if edge.from_visa == from_visa:
                return edge
        return None

    def can_change_from(self, from_visa: Optional[str]) -> bool:
        """True when an edge exists and is not prohibited."""
        edge = self.change_edge(from_visa)
        return edge is not None and edge.tag != ChangeTag.PROHIBITED


# ==================== Evaluation Rule Schemas ====================


class RejectionRule(RuleModel):
    """Immediate-rejection rule definition."""

    code: str
    condition: Condition
    message: str
    solution: str = "Consider alternative visa types"


class RemediableRule(RuleModel):
    """Remediable-issue rule definition."""

    code: str
    condition: Condition
    message: str
    solution: str
    severity: Severity = Severity.MEDIUM
    category: IssueCategory = IssueCategory.GENERAL
    time_to_resolve: str = "1-2 weeks"
    difficulty: Difficulty = Difficulty.MEDIUM

    @model_validator(mode="after")
    def check_severity(self) -> "RemediableRule":
        if self.severity == Severity.CRITICAL:
            raise ValueError(f"Remediable rule {self.code} cannot be CRITICAL")
        return self


class RiskRule(RuleModel):
    """Risk-factor rule definition."""

    code: str
    condition: Condition
    description: str
    mitigation: str


class ProcessingAdjustment(RuleModel):
    """Additive processing-time delta applied when a condition holds."""

    condition: Condition
    days: int
    factor: str


class ProbabilityBonus(RuleModel):
    """Bonus points added to the success probability when a condition holds."""

    condition: Condition
    points: int
    reason: str


class AlternativeRule(RuleModel):
    """Alternative visa suggestion offered after an immediate rejection."""

    visa: str
    title: str
    reason: str
    condition: Optional[Condition] = None
    advantages: tuple[str, ...] = ()


# ==================== Rule Set Schema ====================


class RuleSet(RuleModel):
    """Complete, versioned rule tables for one visa code."""

    code: str = Field(..., pattern=r"^[A-Z]-\d+$")
    name: str
    category: VisaCategory
    complexity: Complexity
    version: str
    description: str = ""
    application_types: tuple[ApplicationType, ...] = tuple(ApplicationType)

    eligibility_matrix: EligibilityMatrix
    documents: DocumentChecklist
    changeability: ChangeabilityGraph
    requirements: GeneralRequirements = GeneralRequirements()

    base_processing_days: dict[ApplicationType, int]
    processing_adjustments: tuple[ProcessingAdjustment, ...] = ()
    immediate_rejection: tuple[RejectionRule, ...] = ()
    remediable_issues: tuple[RemediableRule, ...] = ()
    risk_factors: tuple[RiskRule, ...] = ()
    probability_bonuses: tuple[ProbabilityBonus, ...] = ()
    alternatives: tuple[AlternativeRule, ...] = ()
    features: dict[str, bool] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_consistency(self) -> "RuleSet":
        if self.changeability.target != self.code:
            raise ValueError(
                f"Changeability graph targets {self.changeability.target}, expected {self.code}"
            )
        missing = [
            t.value for t in self.application_types if t not in self.base_processing_days
        ]
        if missing:
            raise ValueError(f"Base processing days missing for: {missing}")
        codes = [rule.code for rule in self.remediable_issues]
        if len(codes) != len(set(codes)):
            raise ValueError("Remediable rule codes must be unique")
        return self
