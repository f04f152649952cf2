"""Tests for the step-based progress tracker."""

import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio

from visa_engine.core.enums import ProcessEvent, ProcessType
from visa_engine.services.cache_manager import CacheManager
from visa_engine.services.progress_tracker import PROCESS_STEPS, ProgressTracker


@pytest.fixture
def cache():
    return CacheManager()


@pytest_asyncio.fixture
async def tracker(cache):
    progress = ProgressTracker(cache, step_delay=0)
    yield progress
    await progress.close()


async def _drain() -> None:
    """Let scheduled step transitions run."""
    for _ in range(5):
        await asyncio.sleep(0)


class Recorder:

    def __init__(self):
        self.events = []

    def __call__(self, event, snapshot):
        self.events.append((event, snapshot["status"], snapshot["currentStepIndex"]))


# ==================== Lifecycle ====================


class TestProcessLifecycle:

    async def test_start_runs_first_step(self, tracker):
        snapshot = await tracker.start_process("p1")

        assert snapshot["status"] == "running"
        assert snapshot["type"] == "default"
        assert [s["name"] for s in snapshot["steps"]] == ["initialization", "processing", "finalization"]
        assert snapshot["steps"][0]["status"] == "running"
        assert snapshot["overallProgress"] == 0

    async def test_step_lists(self, tracker):
        snapshot = await tracker.start_process("eval-1", ProcessType.EVALUATION)

        assert len(snapshot["steps"]) == 11
        assert len(PROCESS_STEPS[ProcessType.DOCUMENT]) == 6
        assert len(PROCESS_STEPS[ProcessType.APPLICATION]) == 6

    async def test_duplicate_active_id_rejected(self, tracker):
        await tracker.start_process("p1")

        with pytest.raises(ValueError):
            await tracker.start_process("p1")

    async def test_completing_every_step_completes_process(self, tracker):
        await tracker.start_process("p1")

        for index in range(3):
            await tracker.complete_step("p1", index, {"step": index})

        status = tracker.get_process_status("p1")
        assert status["status"] == "completed"
        assert status["overallProgress"] == 100
        assert all(step["status"] == "completed" for step in status["steps"])
        assert status["duration"] is not None
        assert "p1" not in tracker.active

    async def test_next_step_starts_after_delay(self, tracker):
        await tracker.start_process("p1")
        await tracker.complete_step("p1", 0)

        status = tracker.get_process_status("p1")
        assert status["steps"][1]["status"] == "pending"
        assert status["overallProgress"] == 33

        await _drain()

        status = tracker.get_process_status("p1")
        assert status["currentStepIndex"] == 1
        assert status["steps"][1]["status"] == "running"

    async def test_step_progress(self, tracker):
        await tracker.start_process("p1")
        await tracker.complete_step("p1", 0, advance=False)

        await tracker.update_step_progress("p1", 1, 50, metadata={"parsed": 2}, message="Halfway")

        status = tracker.get_process_status("p1")
        assert status["overallProgress"] == 50
        assert status["steps"][1]["progress"] == 50
        assert status["steps"][1]["metadata"] == {"parsed": 2}
        assert status["messages"][0]["message"] == "Halfway"

    async def test_overall_progress_counts_completed_steps(self, tracker):
        await tracker.start_process("p1")
        await tracker.complete_step("p1", 2, advance=False)

        await tracker.update_step_progress("p1", 0, 50)

        assert tracker.get_process_status("p1")["overallProgress"] == 50

    async def test_complete_step_without_advance(self, tracker):
        await tracker.start_process("p1")

        await tracker.complete_step("p1", 0, {"checked": True}, advance=False)
        await _drain()

        status = tracker.get_process_status("p1")
        assert status["status"] == "running"
        assert [s["status"] for s in status["steps"]] == ["completed", "pending", "pending"]
        assert status["steps"][0]["result"] == {"checked": True}

    async def test_unknown_process_and_step(self, tracker):
        with pytest.raises(ValueError):
            await tracker.update_step_progress("missing", 0, 10)

        await tracker.start_process("p1")
        with pytest.raises(ValueError):
            await tracker.complete_step("p1", 7)

    async def test_run_step_failure_fails_process(self, tracker):
        await tracker.start_process("p1")

        def explode():
            raise RuntimeError("parser crashed")

        assert await tracker.run_step("p1", 0, explode) is None

        status = tracker.get_process_status("p1")
        assert status["status"] == "failed"
        assert status["steps"][0]["status"] == "failed"
        assert status["steps"][0]["error"] == "parser crashed"
        assert status["errors"][0]["step"] == "initialization"

    async def test_run_step_awaits_coroutines(self, tracker):
        await tracker.start_process("p1")

        async def work():
            return 42

        assert await tracker.run_step("p1", 0, work) == 42
        assert tracker.get_process_status("p1")["steps"][0]["result"] == 42

    async def test_final_result_is_summarized(self, tracker):
        await tracker.start_process("p1")

        snapshot = await tracker.complete_process("p1", {"passPreScreening": True, "fullData": {"a": 1}})

        assert snapshot["result"] == {"passPreScreening": True, "fullDataSize": 8}


# ==================== Observers ====================


class TestObservers:

    async def test_event_order(self, tracker):
        recorder = Recorder()
        tracker.subscribe("p1", recorder)

        await tracker.start_process("p1")
        await tracker.run_step("p1", 0, lambda: "ok")
        await _drain()

        assert [event for event, _, _ in recorder.events] == [
            ProcessEvent.PROCESS_STARTED,
            ProcessEvent.STEP_STARTED,
            ProcessEvent.STEP_COMPLETED,
            ProcessEvent.STEP_STARTED,
        ]
        assert recorder.events[-1][2] == 1

    async def test_internal_metadata_is_hidden(self, tracker):
        snapshots = []
        tracker.subscribe_all(lambda event, snapshot: snapshots.append(snapshot))

        await tracker.start_process("p1", metadata={"userId": "u1", "internalId": "x", "debugInfo": {"a": 1}})

        assert snapshots[0]["metadata"] == {"userId": "u1"}

    async def test_failing_observer_does_not_break_tracking(self, tracker):
        def broken(event, snapshot):
            raise RuntimeError("observer bug")

        recorder = Recorder()
        tracker.subscribe("p1", broken)
        tracker.subscribe("p1", recorder)

        await tracker.start_process("p1")

        assert len(recorder.events) == 2

    async def test_async_observer_and_unsubscribe(self, tracker):
        events = []

        async def observer(event, snapshot):
            events.append(event)

        unsubscribe = tracker.subscribe("p1", observer)
        await tracker.start_process("p1")
        unsubscribe()
        await tracker.complete_process("p1")

        assert events == [ProcessEvent.PROCESS_STARTED, ProcessEvent.STEP_STARTED]


# ==================== Queries ====================


class TestQueries:

    async def test_snapshot_persisted_to_cache(self, tracker, cache):
        await tracker.start_process("p1")
        await tracker.complete_process("p1")

        # A fresh tracker sharing the cache still finds the process
        other = ProgressTracker(cache)
        assert other.get_process_status("p1")["status"] == "completed"
        assert other.get_process_status("missing") is None

    async def test_user_processes_newest_first(self, tracker):
        await tracker.start_process("old", metadata={"userId": "u1"})
        await tracker.start_process("new", metadata={"userId": "u1"})
        await tracker.start_process("other", metadata={"userId": "u2"})
        tracker.active["old"].start_time -= timedelta(minutes=5)

        processes = tracker.get_user_processes("u1")

        assert [p["id"] for p in processes] == ["new", "old"]

    async def test_statistics(self, tracker):
        await tracker.start_process("done")
        await tracker.complete_process("done")
        await tracker.start_process("broken", ProcessType.DOCUMENT)
        await tracker.fail_process("broken", "bad file")
        await tracker.start_process("running", ProcessType.EVALUATION)

        stats = tracker.get_statistics()

        assert stats["active"] == 1
        assert stats["completed"] == 1
        assert stats["failed"] == 1
        assert stats["byType"] == {"evaluation": 1, "default": 1, "document": 1}

    async def test_cleanup_respects_retention(self, tracker, cache):
        await tracker.start_process("stale")
        await tracker.complete_process("stale")
        await tracker.start_process("fresh")
        await tracker.complete_process("fresh")
        tracker.completed["stale"].end_time -= timedelta(days=8)

        assert tracker.cleanup(retention_days=7) == 1

        assert tracker.get_process_status("fresh") is not None
        assert "stale" not in tracker.completed
        assert cache.get("progress:stale") is None

    async def test_periodic_cleanup(self, cache):
        tracker = ProgressTracker(cache, step_delay=0, cleanup_interval=0.01)
        await tracker.start_process("stale")
        await tracker.complete_process("stale")
        tracker.completed["stale"].end_time -= timedelta(days=8)

        await tracker.start()
        try:
            await asyncio.sleep(0.05)
            assert "stale" not in tracker.completed
        finally:
            await tracker.close()

    async def test_close_cancels_cleanup(self, cache):
        tracker = ProgressTracker(cache, cleanup_interval=3600)
        await tracker.start()
        task = tracker._cleanup_task

        await tracker.close()

        assert task.cancelled()
        assert tracker._cleanup_task is None

    async def test_cleanup_disabled_without_interval(self, cache):
        tracker = ProgressTracker(cache, cleanup_interval=0)

        await tracker.start()

        assert tracker._cleanup_task is None

    async def test_restart_after_completion(self, tracker):
        await tracker.start_process("p1")
        await tracker.complete_process("p1")

        snapshot = await tracker.start_process("p1")

        assert snapshot["status"] == "running"
        assert "p1" not in tracker.completed
