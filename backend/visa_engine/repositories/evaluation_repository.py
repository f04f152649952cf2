"""Repository for evaluation history records."""

from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from visa_engine.core.enums import ApplicationType, EvaluationStatus
from visa_engine.models.domain.evaluation import EvaluationRecord
from visa_engine.repositories.base import BaseRepository


class EvaluationRepository(BaseRepository[EvaluationRecord]):
    """Append-only access to evaluation history."""

    def __init__(self, db: AsyncSession):
        super().__init__(EvaluationRecord, db)

    async def record_success(
        self,
        visa_type: str,
        application_type: ApplicationType,
        result: dict[str, Any],
        user_id: Optional[str] = None,
        evaluation_id: Optional[str] = None,
    ) -> EvaluationRecord:
        """
        Store a completed evaluation.

        Args:
            visa_type: Evaluated visa code
            application_type: NEW, EXTENSION or CHANGE
            result: Serialized evaluation result
            user_id: Requesting user, when known
            evaluation_id: Caller-supplied evaluation id

        Returns:
            The created record
        """
        return await self.create(
            visa_type=visa_type,
            application_type=application_type,
            user_id=user_id,
            evaluation_id=evaluation_id,
            status=EvaluationStatus.COMPLETED,
            pass_pre_screening=result.get("passPreScreening"),
            success_probability=result.get("successProbability", {}).get("percentage"),
            rule_set_version=result.get("ruleSetVersion"),
            result=result,
        )

    async def record_failure(
        self,
        visa_type: str,
        application_type: ApplicationType,
        error: str,
        user_id: Optional[str] = None,
        evaluation_id: Optional[str] = None,
    ) -> EvaluationRecord:
        return await self.create(
            visa_type=visa_type,
            application_type=application_type,
            user_id=user_id,
            evaluation_id=evaluation_id,
            status=EvaluationStatus.FAILED,
            error=error,
        )

    async def get_user_history(
        self,
        user_id: str,
        visa_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[EvaluationRecord]:
        """Evaluations of one user, newest first."""
        filters: dict[str, Any] = {"user_id": user_id}
        if visa_type:
            filters["visa_type"] = visa_type
        return await self.find_by(
            skip=skip,
            limit=limit,
            order_by=EvaluationRecord.created_at.desc(),
            **filters,
        )
