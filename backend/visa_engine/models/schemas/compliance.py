"""Pydantic schemas for compliance history input."""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from visa_engine.core.enums import (
    ComplianceArea,
    InsuranceStatus,
    PositiveRecordType,
    TaxPaymentStatus,
    ViolationSeverity,
)


class ComplianceSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)


class ViolationInput(ComplianceSchema):
    """A recorded legal violation."""

    area: ComplianceArea
    severity: ViolationSeverity = ViolationSeverity.MINOR
    date: datetime.date
    type: Optional[str] = None
    description: Optional[str] = None
    status: str = "ACTIVE"


class PositiveRecordInput(ComplianceSchema):
    """A positive compliance record such as an award or volunteering."""

    type: PositiveRecordType
    date: datetime.date
    description: Optional[str] = None


class TaxRecordInput(ComplianceSchema):
    """Payment of one tax period."""

    year: int
    status: TaxPaymentStatus
    type: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    due_date: Optional[datetime.date] = None
    paid_date: Optional[datetime.date] = None


class InsuranceRecordInput(ComplianceSchema):
    """One social insurance enrollment."""

    status: InsuranceStatus
    type: Optional[str] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    employer: Optional[str] = None


class ComplianceHistory(ComplianceSchema):
    """Compliance history supplied alongside an evaluation request."""

    violations: list[ViolationInput] = Field(default_factory=list)
    positive_records: list[PositiveRecordInput] = Field(default_factory=list)
    tax_records: list[TaxRecordInput] = Field(default_factory=list)
    insurance_records: list[InsuranceRecordInput] = Field(default_factory=list)
