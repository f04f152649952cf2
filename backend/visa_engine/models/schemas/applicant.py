"""Pydantic schemas for applicant input data."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from visa_engine.core.enums import ApplicationType, EducationLevel


class ApplicantData(BaseModel):
    """
    Immutable applicant record fed to every evaluator.

    Accepts camelCase or snake_case keys. Fields not declared here are kept
    as extras so rule-table conditions can still reference them.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    # Category-agnostic
    nationality: Optional[str] = Field(None, min_length=2, max_length=3)
    education_level: Optional[EducationLevel] = None
    experience_years: Optional[float] = Field(None, ge=0)
    application_type: Optional[ApplicationType] = None
    current_visa: Optional[str] = None
    criminal_record: Optional[bool] = None
    health_status: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=130)
    language_scores: Optional[dict[str, str]] = None
    document_quality: Optional[str] = None
    previous_violations: Optional[bool] = None
    false_documentation: Optional[bool] = None
    has_job_offer: Optional[bool] = None
    stay_duration: Optional[float] = Field(None, ge=0)

    # Teaching (E-1)
    position: Optional[str] = None
    institution_type: Optional[str] = None
    institution_tier: Optional[str] = None
    institution_prestige: Optional[str] = None
    institution_accredited: Optional[bool] = None
    weekly_hours: Optional[float] = Field(None, ge=0)
    online_percentage: Optional[float] = Field(None, ge=0, le=100)
    contract_duration: Optional[int] = Field(None, ge=0)
    contract_type: Optional[str] = None
    publications: Optional[int] = Field(None, ge=0)
    korean_level: Optional[str] = None
    recommendation_letters: Optional[int] = Field(None, ge=0)
    job_stability: Optional[str] = None

    # Language instruction (E-2)
    teaching_certification: Optional[bool] = None
    teaching_experience: Optional[float] = Field(None, ge=0)

    # Specific activities (E-7)
    point_score: Optional[int] = Field(None, ge=0)
    salary: Optional[int] = Field(None, ge=0)
    company_revenue: Optional[int] = Field(None, ge=0)
    job_change_count: Optional[int] = Field(None, ge=0)
    job_category: Optional[str] = None
    industry: Optional[str] = None

    @field_validator("nationality", "current_visa", "document_quality", "health_status")
    @classmethod
    def upper(cls, v: Optional[str]) -> Optional[str]:
        """Normalize codes to uppercase."""
        return v.upper() if v else v

    @field_validator("education_level", mode="before")
    @classmethod
    def lower_education(cls, v: Any) -> Any:
        """Accept 'Master', 'PHD' and similar spellings."""
        return v.lower() if isinstance(v, str) else v

    @field_validator("position", "institution_tier", mode="before")
    @classmethod
    def snake_case_keys(cls, v: Any) -> Any:
        """Normalize matrix keys such as 'Associate Professor'."""
        if isinstance(v, str):
            return v.strip().lower().replace(" ", "_").replace("-", "_")
        return v

    @field_validator("institution_type", "institution_prestige", "korean_level", "contract_type", "job_stability", mode="before")
    @classmethod
    def upper_labels(cls, v: Any) -> Any:
        """Normalize enumerated labels to uppercase."""
        return v.strip().upper() if isinstance(v, str) else v

    def value(self, field: str) -> Any:
        """
        Read a declared or extra field by its snake_case name.

        Returns:
            The field value, or None when absent
        """
        if field in type(self).model_fields:
            return getattr(self, field)
        extras = self.model_extra or {}
        if field in extras:
            return extras[field]
        return extras.get(to_camel(field))

    def fingerprint(self) -> dict[str, Any]:
        """Discriminant view of the record used for cache key derivation."""
        return self.model_dump(mode="json", exclude_none=True)
