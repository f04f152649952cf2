"""Step-based progress tracking for long-running multi-stage processes."""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from visa_engine.config import settings
from visa_engine.core.enums import ProcessEvent, ProcessStatus, ProcessType, StepStatus
from visa_engine.services.cache_manager import CacheManager

logger = logging.getLogger(__name__)

PROCESS_STEPS: dict[ProcessType, tuple[str, ...]] = {
    ProcessType.EVALUATION: (
        "preCheck",
        "applicationTypeCheck",
        "basicQualification",
        "documentCompleteness",
        "experienceEvaluation",
        "languageProficiency",
        "financialCapability",
        "specialConditions",
        "riskAssessment",
        "comprehensiveScore",
        "finalDecision",
    ),
    ProcessType.DOCUMENT: (
        "fileUpload",
        "fileValidation",
        "documentParsing",
        "contentValidation",
        "qualityCheck",
        "finalProcessing",
    ),
    ProcessType.APPLICATION: (
        "dataValidation",
        "documentCollection",
        "completenessCheck",
        "preliminaryReview",
        "finalReview",
        "submission",
    ),
    ProcessType.DEFAULT: ("initialization", "processing", "finalization"),
}

# Metadata keys never exposed to observers.
INTERNAL_METADATA_KEYS = frozenset({"internalId", "debugInfo"})

Observer = Callable[[ProcessEvent, dict[str, Any]], Union[None, Awaitable[None]]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _duration_ms(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    if start is None or end is None:
        return None
    return int((end - start).total_seconds() * 1000)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class ProcessStep:
    name: str
    status: StepStatus = StepStatus.PENDING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    progress: int = 0
    result: Any = None
    error: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def close(self, status: StepStatus, when: datetime) -> None:
        self.status = status
        self.start_time = self.start_time or when
        self.end_time = when
        self.duration = _duration_ms(self.start_time, self.end_time)
        if status == StepStatus.COMPLETED:
            self.progress = 100


@dataclass
class ProcessState:
    """
    Mutable record of one tracked process.

    Only the tracker mutates it; observers receive sanitized snapshots.
    """

    id: str
    type: ProcessType
    steps: list[ProcessStep]
    status: ProcessStatus = ProcessStatus.STARTED
    current_step_index: int = 0
    overall_progress: int = 0
    messages: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=_now)
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    final_result: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ProcessStatus.COMPLETED, ProcessStatus.FAILED)

    def snapshot(self) -> dict[str, Any]:
        """Sanitized view: internal metadata removed, large results summarized."""
        return {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "currentStepIndex": self.current_step_index,
            "overallProgress": self.overall_progress,
            "steps": [
                {
                    "name": step.name,
                    "status": step.status.value,
                    "startTime": _iso(step.start_time),
                    "endTime": _iso(step.end_time),
                    "duration": step.duration,
                    "progress": step.progress,
                    "result": _summarize_result(step.result),
                    "error": step.error,
                    "metadata": _sanitize_metadata(step.metadata),
                }
                for step in self.steps
            ],
            "messages": list(self.messages),
            "errors": list(self.errors),
            "metadata": _sanitize_metadata(self.metadata),
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "duration": self.duration,
            "result": _summarize_result(self.final_result),
        }


def _sanitize_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in metadata.items() if k not in INTERNAL_METADATA_KEYS}


def _summarize_result(result: Any) -> Any:
    if isinstance(result, dict) and "fullData" in result:
        summary = {k: v for k, v in result.items() if k != "fullData"}
        summary["fullDataSize"] = len(json.dumps(result["fullData"], default=str))
        return summary
    return result


class ProgressTracker:
    """
    Finite-state machine over an ordered list of named steps.

    Every mutation notifies observers registered for the process (and global
    observers) with a sanitized snapshot, and persists the snapshot to the
    main cache under ``progress:{id}``.
    """

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        step_delay: Optional[float] = None,
        cleanup_interval: Optional[float] = None,
    ):
        self.cache = cache
        self.step_delay = settings.PROGRESS_STEP_DELAY_SECONDS if step_delay is None else step_delay
        self.cleanup_interval = (
            settings.PROGRESS_CLEANUP_INTERVAL_SECONDS if cleanup_interval is None else cleanup_interval
        )
        self.active: dict[str, ProcessState] = {}
        self.completed: dict[str, ProcessState] = {}
        self._observers: dict[str, list[Observer]] = {}
        self._global_observers: list[Observer] = []
        self._tasks: set[asyncio.Task] = set()
        self._cleanup_task: Optional[asyncio.Task] = None

    # ==================== Observers ====================

    def subscribe(self, process_id: str, observer: Observer) -> Callable[[], None]:
        """
        Register an observer for one process.

        Returns:
            Callable that removes the observer
        """
        self._observers.setdefault(process_id, []).append(observer)

        def unsubscribe() -> None:
            observers = self._observers.get(process_id, [])
            if observer in observers:
                observers.remove(observer)

        return unsubscribe

    def subscribe_all(self, observer: Observer) -> Callable[[], None]:
        """Register an observer for every process."""
        self._global_observers.append(observer)
        return lambda: self._global_observers.remove(observer)

    async def _emit(self, event: ProcessEvent, state: ProcessState) -> None:
        snapshot = state.snapshot()
        self._persist(state, snapshot)
        for observer in [*self._observers.get(state.id, []), *self._global_observers]:
            try:
                outcome = observer(event, snapshot)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"Progress observer failed on {event.value} for {state.id}: {str(e)}", exc_info=True)

    def _persist(self, state: ProcessState, snapshot: dict[str, Any]) -> None:
        if self.cache is None:
            return
        ttl = settings.PROGRESS_COMPLETED_TTL if state.is_terminal else settings.PROGRESS_ACTIVE_TTL
        self.cache.set(f"progress:{state.id}", snapshot, ttl)

    # ==================== Lookup ====================

    def _get_active(self, process_id: str) -> ProcessState:
        state = self.active.get(process_id)
        if state is None:
            raise ValueError(f"No active process with id {process_id}")
        return state

    @staticmethod
    def _get_step(state: ProcessState, index: int) -> ProcessStep:
        if not 0 <= index < len(state.steps):
            raise ValueError(f"Step index {index} out of range for process {state.id}")
        return state.steps[index]

    # ==================== Lifecycle ====================

    async def start_process(
        self,
        process_id: str,
        process_type: ProcessType = ProcessType.DEFAULT,
        metadata: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Create a process record and start its first step.

        Args:
            process_id: Caller-supplied opaque id
            process_type: Selects the step list
            metadata: Free-form metadata (``userId`` enables user lookups)

        Returns:
            Snapshot of the new process

        Raises:
            ValueError: If a process with the same id is already active
        """
        if process_id in self.active:
            raise ValueError(f"Process {process_id} is already active")

        state = ProcessState(
            id=process_id,
            type=process_type,
            steps=[ProcessStep(name=name) for name in PROCESS_STEPS[process_type]],
            metadata=dict(metadata or {}),
        )
        self.active[process_id] = state
        self.completed.pop(process_id, None)
        logger.info(f"Started {process_type.value} process {process_id} with {len(state.steps)} steps")

        await self._emit(ProcessEvent.PROCESS_STARTED, state)
        await self.start_step(process_id, 0)
        return state.snapshot()

    async def start_step(self, process_id: str, index: int) -> None:
        """Close the running step (as completed) and open step ``index``."""
        state = self._get_active(process_id)
        step = self._get_step(state, index)
        now = _now()

        current = state.steps[state.current_step_index]
        if state.current_step_index != index and current.status == StepStatus.RUNNING:
            current.close(StepStatus.COMPLETED, now)

        step.status = StepStatus.RUNNING
        step.start_time = now
        state.current_step_index = index
        state.status = ProcessStatus.RUNNING
        await self._emit(ProcessEvent.STEP_STARTED, state)

    async def update_step_progress(
        self,
        process_id: str,
        index: int,
        progress: int,
        metadata: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        """
        Record progress within a step.

        Overall progress becomes ``(completed + progress / 100) / total``,
        counting the other completed steps wherever they sit in the list.
        """
        state = self._get_active(process_id)
        step = self._get_step(state, index)

        step.progress = max(0, min(100, int(progress)))
        if metadata:
            step.metadata.update(metadata)
        if message:
            state.messages.append({"step": step.name, "message": message, "timestamp": _iso(_now())})

        completed = sum(
            1 for i, s in enumerate(state.steps) if i != index and s.status == StepStatus.COMPLETED
        )
        state.overall_progress = round((completed + step.progress / 100) / len(state.steps) * 100)
        await self._emit(ProcessEvent.STEP_PROGRESS, state)

    async def complete_step(
        self,
        process_id: str,
        index: int,
        result: Any = None,
        advance: bool = True,
    ) -> None:
        """
        Close a step and advance.

        The next step starts after ``step_delay`` so this step's completed
        event is always observed first; completing the last step completes
        the process. With ``advance=False`` the caller drives the next
        transition itself.
        """
        state = self._get_active(process_id)
        step = self._get_step(state, index)

        step.result = result
        step.close(StepStatus.COMPLETED, _now())
        completed = sum(1 for s in state.steps if s.status == StepStatus.COMPLETED)
        state.overall_progress = round(completed / len(state.steps) * 100)
        await self._emit(ProcessEvent.STEP_COMPLETED, state)

        if not advance:
            return
        next_index = index + 1
        if next_index < len(state.steps):
            self._schedule(self._advance(process_id, next_index))
        else:
            await self.complete_process(process_id)

    def _schedule(self, coroutine: Awaitable[None]) -> None:
        task = asyncio.create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _advance(self, process_id: str, index: int) -> None:
        await asyncio.sleep(self.step_delay)
        state = self.active.get(process_id)
        # The caller may have completed or failed the process meanwhile
        if state is None or state.steps[index].status != StepStatus.PENDING:
            return
        await self.start_step(process_id, index)

    async def complete_process(self, process_id: str, final_result: Any = None) -> dict[str, Any]:
        """Mark the process completed and move it to the retained set."""
        state = self._get_active(process_id)
        now = _now()
        for step in state.steps:
            if step.status == StepStatus.RUNNING:
                step.close(StepStatus.COMPLETED, now)

        state.status = ProcessStatus.COMPLETED
        state.overall_progress = 100
        state.end_time = now
        state.duration = _duration_ms(state.start_time, now)
        if final_result is not None:
            state.final_result = final_result

        del self.active[process_id]
        self.completed[process_id] = state
        logger.info(f"Process {process_id} completed in {state.duration}ms")

        await self._emit(ProcessEvent.PROCESS_COMPLETED, state)
        return state.snapshot()

    async def fail_process(
        self,
        process_id: str,
        error: Union[str, Exception],
        failed_step_index: Optional[int] = None,
    ) -> dict[str, Any]:
        """Mark the process and the failing step failed; retain the record."""
        state = self._get_active(process_id)
        now = _now()
        message = str(error)
        index = state.current_step_index if failed_step_index is None else failed_step_index
        failed_step = self._get_step(state, index)

        failed_step.error = message
        failed_step.close(StepStatus.FAILED, now)
        for step in state.steps:
            if step.status == StepStatus.RUNNING:
                step.close(StepStatus.FAILED, now)

        state.status = ProcessStatus.FAILED
        state.errors.append({"step": failed_step.name, "error": message, "timestamp": _iso(now)})
        state.end_time = now
        state.duration = _duration_ms(state.start_time, now)

        del self.active[process_id]
        self.completed[process_id] = state
        logger.warning(f"Process {process_id} failed at step {failed_step.name}: {message}")

        await self._emit(ProcessEvent.PROCESS_FAILED, state)
        return state.snapshot()

    async def run_step(
        self,
        process_id: str,
        index: int,
        func: Callable[[], Any],
    ) -> Any:
        """
        Run ``func`` as step ``index`` and complete the step with its result.

        An exception from ``func`` fails the process instead of propagating.

        Returns:
            The function's result, or None when it raised
        """
        try:
            result = func()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Step {index} of process {process_id} raised: {str(e)}", exc_info=True)
            await self.fail_process(process_id, e, index)
            return None
        await self.complete_step(process_id, index, result)
        return result

    # ==================== Queries ====================

    def get_process_status(self, process_id: str) -> Optional[dict[str, Any]]:
        """Snapshot from the active set, the retained set, or the cache."""
        state = self.active.get(process_id) or self.completed.get(process_id)
        if state is not None:
            return state.snapshot()
        if self.cache is not None:
            return self.cache.get(f"progress:{process_id}")
        return None

    def get_user_processes(self, user_id: str) -> list[dict[str, Any]]:
        """Processes whose metadata ``userId`` matches, newest first."""
        states = [
            state
            for state in [*self.active.values(), *self.completed.values()]
            if str(state.metadata.get("userId")) == str(user_id)
        ]
        states.sort(key=lambda s: s.start_time, reverse=True)
        return [state.snapshot() for state in states]

    def get_statistics(self) -> dict[str, Any]:
        retained = list(self.completed.values())
        finished = [s for s in retained if s.status == ProcessStatus.COMPLETED]
        durations = [s.duration for s in finished if s.duration is not None]
        by_type: dict[str, int] = {}
        for state in [*self.active.values(), *retained]:
            by_type[state.type.value] = by_type.get(state.type.value, 0) + 1
        return {
            "active": len(self.active),
            "completed": len(finished),
            "failed": sum(1 for s in retained if s.status == ProcessStatus.FAILED),
            "byType": by_type,
            "averageDuration": round(sum(durations) / len(durations)) if durations else 0,
            "pendingTransitions": len(self._tasks),
        }

    def cleanup(self, retention_days: Optional[int] = None) -> int:
        """Drop retained processes that ended before the retention window."""
        days = settings.PROGRESS_RETENTION_DAYS if retention_days is None else retention_days
        cutoff = _now() - timedelta(days=days)
        expired = [pid for pid, s in self.completed.items() if s.end_time and s.end_time < cutoff]
        for process_id in expired:
            del self.completed[process_id]
            self._observers.pop(process_id, None)
            if self.cache is not None:
                self.cache.delete(f"progress:{process_id}")
        if expired:
            logger.info(f"Cleaned up {len(expired)} retained process(es)")
        return len(expired)

    # ==================== Background Tasks ====================

    async def start(self) -> None:
        """Start the periodic cleanup of retained processes."""
        if self.cleanup_interval > 0 and self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info(f"Progress cleanup scheduled every {self.cleanup_interval}s")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"Progress cleanup failed: {str(e)}", exc_info=True)

    async def close(self) -> None:
        """Cancel the cleanup task and pending step transitions."""
        tasks = list(self._tasks)
        if self._cleanup_task is not None:
            tasks.append(self._cleanup_task)
            self._cleanup_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
