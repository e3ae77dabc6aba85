"""
Tests for queue hand-off and the worker jobs.
"""
from unittest.mock import AsyncMock, MagicMock

from fastapi import BackgroundTasks

from hitcount.services.job_queue import (
    PROCESS_HIT_JOB,
    WorkerSettings,
    enqueue_hit,
    process_hit_job,
)
from hitcount.services.pipeline import process_hit


class TestEnqueueHit:
    async def test_uses_queue_when_available(self, make_payload):
        queue = MagicMock()
        queue.enqueue_job = AsyncMock()
        tasks = BackgroundTasks()
        payload = make_payload("/queued")

        await enqueue_hit(payload, tasks, queue=queue)

        queue.enqueue_job.assert_awaited_once()
        name, body = queue.enqueue_job.await_args.args
        assert name == PROCESS_HIT_JOB
        assert body["path"] == "/queued"
        assert tasks.tasks == []

    async def test_falls_back_to_background_task(self, make_payload):
        queue = MagicMock()
        queue.enqueue_job = AsyncMock(side_effect=ConnectionError("redis down"))
        tasks = BackgroundTasks()

        await enqueue_hit(make_payload("/a"), tasks, queue=queue)

        assert len(tasks.tasks) == 1
        assert tasks.tasks[0].func is process_hit

    async def test_without_queue(self, make_payload):
        tasks = BackgroundTasks()
        await enqueue_hit(make_payload("/a"), tasks)
        assert len(tasks.tasks) == 1


class TestWorker:
    async def test_job_round_trips_payload(self, make_payload, monkeypatch):
        received = []

        async def fake_process(payload, redis=None):
            received.append(payload)

        monkeypatch.setattr("hitcount.services.job_queue.process_hit", fake_process)
        payload = make_payload("/job")
        await process_hit_job({"redis": None}, payload.model_dump(mode="json"))

        assert received == [payload]

    def test_failed_hits_are_not_retried(self):
        assert WorkerSettings.max_tries == 1
        assert WorkerSettings.job_timeout >= 3600
        assert len(WorkerSettings.cron_jobs) == 1
