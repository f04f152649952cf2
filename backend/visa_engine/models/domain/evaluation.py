"""Evaluation history domain model."""

from typing import Any, Optional

from sqlalchemy import Boolean, Enum as SQLEnum, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from visa_engine.core.enums import ApplicationType, EvaluationStatus
from visa_engine.db.base import BaseModel


class EvaluationRecord(BaseModel):
    """Append-only record of one evaluation run."""

    __tablename__ = "evaluation_records"

    visa_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    application_type: Mapped[ApplicationType] = mapped_column(
        SQLEnum(ApplicationType, name="application_type"),
        nullable=False,
    )
    user_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    evaluation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    # Outcome
    status: Mapped[EvaluationStatus] = mapped_column(
        SQLEnum(EvaluationStatus, name="evaluation_status"),
        nullable=False,
        index=True,
    )
    pass_pre_screening: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    success_probability: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rule_set_version: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Payload
    result: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<EvaluationRecord(id={self.id}, visa_type={self.visa_type}, "
            f"status={self.status}, success_probability={self.success_probability})>"
        )
