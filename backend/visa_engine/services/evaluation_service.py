"""Evaluation service orchestrating plugins, caches, compliance and progress."""

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_engine.config import settings
from visa_engine.core.enums import ApplicationType, CacheType, IssueCategory, ProcessType
from visa_engine.core.errors import (
    ConfigurationError,
    DocumentValidationError,
    InternalError,
    ValidationError,
    VisaEngineError,
)
from visa_engine.models.domain.evaluation import EvaluationRecord
from visa_engine.models.schemas.applicant import ApplicantData
from visa_engine.models.schemas.document import DocumentDescriptor
from visa_engine.models.schemas.evaluation import BatchEvaluationItem, EvaluationOptions
from visa_engine.repositories.evaluation_repository import EvaluationRepository
from visa_engine.rules.change_paths import (
    VISA_CHANGE_MATRIX,
    allowed_targets,
    check_changeability,
    check_conditions_met,
)
from visa_engine.services.compliance import apply_compliance_modifier, assess_compliance
from visa_engine.services.rule_engine.base import EvaluationContext
from visa_engine.services.rule_engine.factory import normalize_visa_code

if TYPE_CHECKING:
    from visa_engine.core.context import EngineContext

logger = logging.getLogger(__name__)

APPLICATION_GUIDES: dict[ApplicationType, dict[str, Any]] = {
    ApplicationType.NEW: {
        "title": "New visa application guide",
        "steps": [
            "Check eligibility requirements",
            "Prepare required documents",
            "Fill in the online application form",
            "Submit documents and pay the fee",
            "Wait for the review result",
        ],
        "timeline": "Usually 2-4 weeks",
        "tips": [
            "Prepare every document accurately",
            "Check in advance which documents need notarized translations",
            "Leave enough time for preparation",
        ],
    },
    ApplicationType.EXTENSION: {
        "title": "Visa extension guide",
        "steps": [
            "Check your current visa status",
            "Summarize the reason for the extension",
            "Prepare renewal documents",
            "Apply online",
            "Check the result",
        ],
        "timeline": "Usually 1-2 weeks",
        "tips": [
            "Apply well before your visa expires",
            "Prepare evidence of your activities during your stay",
            "Report any changes in advance",
        ],
    },
    ApplicationType.CHANGE: {
        "title": "Status change guide",
        "steps": [
            "Review whether the change is possible",
            "Check the requirements of the new status",
            "Fill in the change application",
            "Submit documents",
            "Interview (if required)",
            "Receive the decision",
        ],
        "timeline": "Usually 3-6 weeks",
        "tips": [
            "Explain the reason for the change clearly",
            "Confirm you meet the requirements of the new status",
            "Make sure your current stay is lawful",
        ],
    },
}

ADDITIONAL_RESOURCES = [
    "Official immigration office website",
    "Visa FAQ",
    "Expert consultation service",
]


def summarize_stages(data: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Step results for basicQualification through finalDecision.

    Remediable issues are grouped by category onto the step that checks
    them.
    """
    by_category: dict[str, list[str]] = {}
    for issue in data["remediableIssues"]:
        by_category.setdefault(issue["category"], []).append(issue["code"])

    def issues(*categories: IssueCategory) -> list[str]:
        return [code for category in categories for code in by_category.get(category.value, [])]

    compliance = data.get("compliance")
    probability = data["successProbability"]
    return [
        {
            "rejections": [r["code"] for r in data["immediateRejectionReasons"]],
            "issues": issues(IssueCategory.QUALIFICATION),
        },
        {"issues": issues(IssueCategory.DOCUMENTATION)},
        {"issues": issues(IssueCategory.EXPERIENCE)},
        {"issues": issues(IssueCategory.LANGUAGE)},
        {"issues": issues(IssueCategory.CONTRACT, IssueCategory.EMPLOYER)},
        {"issues": issues(IssueCategory.GENERAL)},
        {
            "riskFactors": [r["factor"] for r in data["riskFactors"]],
            "complianceRisk": compliance["risk"]["level"] if compliance else None,
        },
        {"percentage": probability["percentage"], "level": probability["level"]},
        {"passPreScreening": data["passPreScreening"]},
    ]


class VisaEvaluationService:
    """
    Visa evaluation service.

    This service:
    - Resolves visa codes to plugins through the engine's factory
    - Serves repeated evaluations from the evaluation cache
    - Applies the compliance trust modifier when a history is supplied
    - Tracks evaluations with an ``evaluationId`` as progress processes
    - Records evaluation history when a database session is available
    - Converts validation and unexpected failures into failure results
    """

    def __init__(self, context: "EngineContext", db: Optional[AsyncSession] = None):
        """
        Initialize the evaluation service.

        Args:
            context: Shared caches, tracker and plugin factory
            db: Optional async database session for evaluation history
        """
        self.context = context
        self.db = db
        self.history_repo = EvaluationRepository(db) if db is not None else None

    # ==================== Evaluation ====================

    async def evaluate(
        self,
        visa_type: str,
        applicant_data: Union[dict[str, Any], ApplicantData],
        options: Optional[EvaluationOptions] = None,
    ) -> dict[str, Any]:
        """
        Evaluate one applicant for one visa code.

        Args:
            visa_type: Visa code in any common spelling
            applicant_data: Raw applicant fields or a validated record
            options: Application type, evaluation id, user id, cache bypass
                and compliance history

        Returns:
            Serialized EvaluationResult, or ``{success: False, error}`` when
            the applicant data is invalid or the evaluation failed

        Raises:
            ConfigurationError: If the visa code is unsupported or its rule
                set is unusable
        """
        options = options or EvaluationOptions()
        data, application_type = await self._run(visa_type, applicant_data, options)
        await self._record_history(visa_type, application_type, data, options)
        return data

    async def evaluate_batch(self, requests: Sequence[BatchEvaluationItem]) -> dict[str, Any]:
        """
        Evaluate several requests in fixed-size concurrent windows.

        Each window is awaited before the next one starts. An unsupported
        visa code fails its own entry only.

        Args:
            requests: Batch entries, each with its own visa code and options

        Returns:
            Dict with ``batchId``, per-entry ``results`` in request order and
            a ``summary``
        """
        batch_id = str(uuid4())
        window_size = max(1, settings.EVALUATION_BATCH_SIZE)
        results: list[dict[str, Any]] = []

        for start in range(0, len(requests), window_size):
            window = requests[start:start + window_size]
            outcomes = await asyncio.gather(*(self._run_item(item) for item in window))

            # History writes share one session, so they run after the window
            for offset, (item, (data, application_type)) in enumerate(zip(window, outcomes)):
                await self._record_history(item.visa_type, application_type, data, item.options())
                results.append({"index": start + offset, "visaType": item.visa_type, "result": data})

        successful = [r["result"] for r in results if r["result"].get("success") is not False]
        probabilities = [r["successProbability"]["percentage"] for r in successful]
        summary = {
            "total": len(results),
            "successful": len(successful),
            "failed": len(results) - len(successful),
            "passed": sum(1 for r in successful if r["passPreScreening"]),
            "averageProbability": round(sum(probabilities) / len(probabilities), 1) if probabilities else 0,
        }
        logger.info(f"Batch {batch_id} evaluated {summary['total']} request(s), {summary['failed']} failed")
        return {"batchId": batch_id, "results": results, "summary": summary}

    async def _run_item(self, item: BatchEvaluationItem) -> tuple[dict[str, Any], ApplicationType]:
        try:
            return await self._run(item.visa_type, item.applicant_data, item.options())
        except ConfigurationError as e:
            logger.warning(f"Batch entry for {item.visa_type} rejected: {e.message}")
            return self._failure(item.visa_type, e), item.application_type or ApplicationType.NEW

    async def _run(
        self,
        visa_type: str,
        applicant_data: Union[dict[str, Any], ApplicantData],
        options: EvaluationOptions,
    ) -> tuple[dict[str, Any], ApplicationType]:
        plugin = self.context.factory.create(visa_type)
        self.context.stats["evaluations"] += 1
        fallback_type = options.application_type or ApplicationType.NEW
        tracker = self.context.tracker

        process_id = options.evaluation_id
        if process_id is not None:
            try:
                await tracker.start_process(
                    process_id,
                    ProcessType.EVALUATION,
                    metadata={"userId": options.user_id, "visaType": plugin.visa_type},
                )
            except ValueError as e:
                return self._failure(plugin.visa_type, ValidationError(str(e))), fallback_type

        try:
            if isinstance(applicant_data, ApplicantData):
                applicant = applicant_data
            else:
                applicant = ApplicantData.model_validate(applicant_data)
        except PydanticValidationError as e:
            error = ValidationError(
                "Invalid applicant data",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )
            if process_id is not None:
                await tracker.fail_process(process_id, error)
            return self._failure(plugin.visa_type, error), fallback_type

        application_type = options.application_type or applicant.application_type or ApplicationType.NEW
        applicant = applicant.model_copy(update={"application_type": application_type})
        if process_id is not None:
            await tracker.complete_step(process_id, 0, {"validated": True}, advance=False)
            await self._record_step(process_id, 1, {"applicationType": application_type.value})

        fingerprint = applicant.fingerprint()
        if options.compliance_history is not None:
            fingerprint["_compliance"] = options.compliance_history.model_dump(mode="json")
        cache_key = self.context.cache.generate_evaluation_key(
            plugin.visa_type,
            fingerprint,
            application_type.value,
            f"{settings.RULE_SET_VERSION}:{plugin.rule_set.version}",
        )

        if not options.force_evaluation:
            cached = self.context.cache.get_cached_evaluation(cache_key)
            if cached is not None:
                self.context.stats["cacheHits"] += 1
                logger.debug(f"Serving cached evaluation for {plugin.visa_type}")
                if process_id is not None:
                    await tracker.start_step(process_id, 2)
                    await self._complete_tracking(process_id, cached, from_cache=True)
                return cached, application_type

        try:
            if process_id is not None:
                await tracker.start_step(process_id, 2)

            context = EvaluationContext(
                applicant=applicant,
                application_type=application_type,
                options=options.model_dump(mode="json", by_alias=True, exclude={"compliance_history"}),
            )
            result = plugin.evaluate(context)
            if options.compliance_history is not None:
                result = apply_compliance_modifier(result, assess_compliance(options.compliance_history))
        except ConfigurationError as e:
            if process_id is not None:
                await tracker.fail_process(process_id, e)
            raise
        except VisaEngineError as e:
            logger.warning(f"Evaluation of {plugin.visa_type} rejected: {e.message}")
            if process_id is not None:
                await tracker.fail_process(process_id, e)
            return self._failure(plugin.visa_type, e), application_type
        except Exception as e:
            logger.error(f"Error evaluating {plugin.visa_type}: {str(e)}", exc_info=True)
            error = InternalError(f"Evaluation failed for {plugin.visa_type}", details={"reason": str(e)})
            if process_id is not None:
                await tracker.fail_process(process_id, error)
            return self._failure(plugin.visa_type, error), application_type

        data = result.to_dict()
        self.context.cache.cache_evaluation_result(cache_key, data)

        if process_id is not None:
            await self._complete_tracking(process_id, data)

        logger.info(
            f"Evaluated {plugin.visa_type} ({application_type.value}): "
            f"pass={data['passPreScreening']}, probability={data['successProbability']['percentage']}"
        )
        return data, application_type

    async def _record_step(self, process_id: str, index: int, result: Any) -> None:
        await self.context.tracker.start_step(process_id, index)
        await self.context.tracker.complete_step(process_id, index, result, advance=False)

    async def _complete_tracking(self, process_id: str, data: dict[str, Any], from_cache: bool = False) -> None:
        """
        Close the running basicQualification step, walk the remaining steps
        with their stage summaries and complete the process.
        """
        summaries = summarize_stages(data)
        await self.context.tracker.complete_step(process_id, 2, summaries[0], advance=False)
        for index, summary in enumerate(summaries[1:], start=3):
            await self._record_step(process_id, index, summary)

        await self.context.tracker.complete_process(
            process_id,
            {
                "passPreScreening": data["passPreScreening"],
                "successProbability": data["successProbability"]["percentage"],
                "fromCache": from_cache,
                "fullData": copy.deepcopy(data),
            },
        )

    def _failure(self, visa_type: str, error: VisaEngineError) -> dict[str, Any]:
        self.context.record_error(error.code)
        return {"success": False, "visaType": visa_type, "error": error.to_dict()}

    async def _record_history(
        self,
        visa_type: str,
        application_type: ApplicationType,
        data: dict[str, Any],
        options: EvaluationOptions,
    ) -> None:
        """Best-effort write of one evaluation to the history table."""
        if self.history_repo is None or not settings.PERSIST_EVALUATION_HISTORY:
            return

        code = normalize_visa_code(visa_type)
        try:
            async with self.db.begin_nested():
                if data.get("success") is False:
                    await self.history_repo.record_failure(
                        visa_type=code,
                        application_type=application_type,
                        error=data["error"]["message"],
                        user_id=options.user_id,
                        evaluation_id=options.evaluation_id,
                    )
                else:
                    await self.history_repo.record_success(
                        visa_type=code,
                        application_type=application_type,
                        result=data,
                        user_id=options.user_id,
                        evaluation_id=options.evaluation_id,
                    )
        except Exception as e:
            logger.error(f"Failed to record evaluation history for {code}: {str(e)}", exc_info=True)

    async def get_user_history(
        self,
        user_id: str,
        visa_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[EvaluationRecord]:
        """
        Get persisted evaluations of one user, newest first.

        Raises:
            ConfigurationError: If the service has no database session
        """
        if self.history_repo is None:
            raise ConfigurationError("Evaluation history requires a database session")
        code = normalize_visa_code(visa_type) if visa_type else None
        return await self.history_repo.get_user_history(user_id, visa_type=code, skip=skip, limit=limit)

    # ==================== Visa Types ====================

    def get_supported_visa_types(self) -> list[str]:
        return self.context.factory.supported_visa_types()

    def get_visa_type_capabilities(self, visa_type: str) -> dict[str, Any]:
        return {"visaType": normalize_visa_code(visa_type), **self.context.factory.capabilities(visa_type)}

    def get_rule_definitions(self, visa_type: str) -> list[dict[str, Any]]:
        """Declarative rule definitions of a visa code, cached in the rules tier."""
        plugin = self.context.factory.create(visa_type)
        rule_id = f"{plugin.visa_type}@{plugin.rule_set.version}"
        cached = self.context.cache.get_cached_rules(rule_id)
        if cached is not None:
            return cached["rules"]

        rule_set = plugin.rule_set
        rules = [
            *({"kind": "immediateRejection", **r.model_dump(mode="json")} for r in rule_set.immediate_rejection),
            *({"kind": "remediableIssue", **r.model_dump(mode="json")} for r in rule_set.remediable_issues),
            *({"kind": "riskFactor", **r.model_dump(mode="json")} for r in rule_set.risk_factors),
        ]
        self.context.cache.cache_rules(rule_id, rules)
        return rules

    def get_requirements(self, visa_type: str) -> dict[str, Any]:
        """
        Requirements of a visa code plus its declarative rule definitions.

        Raises:
            ConfigurationError: If the visa code is unsupported
        """
        plugin = self.context.factory.create(visa_type)
        key = f"requirements:{plugin.visa_type}@{plugin.rule_set.version}"
        cached = self.context.cache.get(key, CacheType.RULES)
        if cached is not None:
            return cached

        requirements = {**plugin.get_requirements(), "rules": self.get_rule_definitions(plugin.visa_type)}
        self.context.cache.set(key, requirements, cache_type=CacheType.RULES)
        return requirements

    def get_document_checklist(
        self,
        visa_type: str,
        application_type: ApplicationType = ApplicationType.NEW,
        nationality: Optional[str] = None,
        current_visa: Optional[str] = None,
    ) -> dict[str, Any]:
        plugin = self.context.factory.create(visa_type)
        entries = plugin.rule_set.documents.documents_for(
            application_type,
            nationality.upper() if nationality else None,
            normalize_visa_code(current_visa) if current_visa else None,
        )
        return {
            "visaType": plugin.visa_type,
            "applicationType": application_type.value,
            "documents": [entry.model_dump(mode="json", exclude_none=True) for entry in entries],
        }

    def validate_documents(
        self,
        visa_type: str,
        documents: Sequence[dict[str, Any]],
        application_type: ApplicationType = ApplicationType.NEW,
        nationality: Optional[str] = None,
        current_visa: Optional[str] = None,
        applicant_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Validate submitted document descriptors against a visa's checklist.

        Results are cached in the document tier when ``applicant_id`` is given.

        Args:
            visa_type: Visa code
            documents: Raw document descriptors (type, name, size, expiryDate)
            application_type: Checklist to validate against
            nationality: Applicant nationality
            current_visa: Current visa for CHANGE checklists
            applicant_id: Applicant identifier used in the cache key

        Returns:
            Plugin validation result

        Raises:
            ConfigurationError: If the visa code is unsupported
            DocumentValidationError: If a descriptor is malformed
        """
        plugin = self.context.factory.create(visa_type)
        try:
            descriptors = [DocumentDescriptor.model_validate(d) for d in documents]
        except PydanticValidationError as e:
            raise DocumentValidationError(
                "Malformed document descriptors",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

        nationality = nationality.upper() if nationality else None
        current_visa = normalize_visa_code(current_visa) if current_visa else None

        cache_key = None
        if applicant_id:
            cache_key = self.context.cache.generate_document_key(
                plugin.visa_type,
                applicant_id,
                {
                    "documents": list(documents),
                    "applicationType": application_type.value,
                    "nationality": nationality,
                    "currentVisa": current_visa,
                },
            )
            cached = self.context.cache.get_cached_document_validation(cache_key)
            if cached is not None:
                return cached

        result = plugin.validate_documents(descriptors, application_type, nationality, current_visa)
        if cache_key is not None:
            self.context.cache.cache_document_validation(cache_key, result)
        return result

    def get_change_paths(
        self,
        current_visa: str,
        target_visa: str,
        applicant_data: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Direct changeability between two visas plus reachable targets.

        When applicant data is given and a direct path exists, the path's
        conditions are checked against the applicant.

        Raises:
            ValidationError: If the applicant data is invalid
        """
        current = normalize_visa_code(current_visa)
        target = normalize_visa_code(target_visa)
        paths = {
            "currentVisa": current,
            "targetVisa": target,
            **check_changeability(current, target),
            "allowedTargets": allowed_targets(current),
        }

        if applicant_data is not None and paths["possible"]:
            try:
                applicant = ApplicantData.model_validate(applicant_data)
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid applicant data",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                ) from e
            paths["conditionsCheck"] = check_conditions_met(VISA_CHANGE_MATRIX[current][target], applicant)
        return paths

    def get_application_guide(
        self,
        application_type: ApplicationType = ApplicationType.NEW,
        visa_type: Optional[str] = None,
    ) -> dict[str, Any]:
        """Step-by-step guide for an application type, optionally for one visa."""
        guide: dict[str, Any] = {
            "applicationType": application_type.value,
            "guide": APPLICATION_GUIDES[application_type],
            "additionalResources": ADDITIONAL_RESOURCES,
        }
        if visa_type:
            plugin = self.context.factory.create(visa_type)
            guide["visaType"] = plugin.visa_type
            guide["visaName"] = plugin.rule_set.name
            guide["visaInfo"] = plugin.get_info()
        return guide

    # ==================== Status ====================

    def get_service_status(self) -> dict[str, Any]:
        stats = self.context.stats
        return {
            "status": "OPERATIONAL",
            "supportedVisaTypes": self.get_supported_visa_types(),
            "statistics": {**stats, "errorsByCode": dict(stats["errorsByCode"])},
            "factory": self.context.factory.get_cache_stats(),
            "cache": self.context.cache.get_statistics(),
            "progress": self.context.tracker.get_statistics(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def get_system_health(self) -> dict[str, Any]:
        """Health of the cache, the plugins and the progress tracker."""
        components = {
            "cache": self.context.cache.health_check(),
            "plugins": self.context.factory.health_check(),
            "progress": {"status": "HEALTHY", **self.context.tracker.get_statistics()},
        }
        healthy = all(c["status"] == "HEALTHY" for c in components.values())
        return {
            "status": "HEALTHY" if healthy else "DEGRADED",
            "components": components,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
