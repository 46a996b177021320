"""Tests for the in-memory AI worker pool."""

import asyncio

import pytest

from app.workers.worker_pool import AIWorkerPool


def make_pool():
    pool = AIWorkerPool()
    calls = []

    async def echo(payload):
        calls.append(payload["n"])
        return {"echo": payload["n"]}

    async def boom(payload):
        raise RuntimeError("model unavailable")

    pool.register("echo", echo)
    pool.register("boom", boom)
    return pool, calls


class TestAddJob:
    """Tests for queuing jobs."""

    def test_new_job_is_pending(self):
        pool, _ = make_pool()
        job = pool.add_job("echo", {"n": 1}, priority="high")

        status = pool.get_job_status(job.id)
        assert status["status"] == "pending"
        assert status["priority"] == "high"
        assert status["type"] == "echo"
        assert "payload" not in status

    def test_unknown_type_rejected(self):
        pool, _ = make_pool()
        with pytest.raises(ValueError):
            pool.add_job("transcode", {})

    def test_unknown_priority_rejected(self):
        pool, _ = make_pool()
        with pytest.raises(ValueError):
            pool.add_job("echo", {"n": 1}, priority="urgent")

    def test_duplicate_id_rejected(self):
        pool, _ = make_pool()
        pool.add_job("echo", {"n": 1}, job_id="fixed")
        with pytest.raises(ValueError):
            pool.add_job("echo", {"n": 2}, job_id="fixed")

    def test_unknown_job_has_no_status(self):
        pool, _ = make_pool()
        assert pool.get_job_status("missing") is None


class TestRun:
    """Tests for executing jobs."""

    def test_completed_job_keeps_result_and_drops_payload(self):
        pool, calls = make_pool()
        job = pool.add_job("echo", {"n": 7})

        snapshot = asyncio.run(pool.run(job.id))

        assert calls == [7]
        assert snapshot["status"] == "completed"
        assert snapshot["result"] == {"echo": 7}
        assert snapshot["processingTimeMs"] is not None
        assert job.payload == {}

    def test_failed_job_records_error(self):
        pool, _ = make_pool()
        job = pool.add_job("boom", {})

        snapshot = asyncio.run(pool.run(job.id))

        assert snapshot["status"] == "failed"
        assert snapshot["error"] == "model unavailable"
        assert snapshot["finishedAt"] is not None

    def test_job_runs_only_once(self):
        pool, calls = make_pool()
        job = pool.add_job("echo", {"n": 3})

        asyncio.run(pool.run(job.id))
        asyncio.run(pool.run(job.id))

        assert calls == [3]

    def test_priority_does_not_reorder(self):
        pool, calls = make_pool()
        low = pool.add_job("echo", {"n": 1}, priority="low")
        high = pool.add_job("echo", {"n": 2}, priority="high")

        async def run_in_order():
            for job in (low, high):
                await pool.run(job.id)

        asyncio.run(run_in_order())
        assert calls == [1, 2]

    def test_run_after_clear_returns_none(self):
        pool, _ = make_pool()
        job = pool.add_job("echo", {"n": 1})
        pool.clear()
        assert asyncio.run(pool.run(job.id)) is None


class TestCancelAndStats:
    """Tests for cancellation and queue statistics."""

    def test_cancel_pending_job(self):
        pool, calls = make_pool()
        job = pool.add_job("echo", {"n": 1})

        assert pool.cancel_job(job.id) is True
        asyncio.run(pool.run(job.id))

        assert calls == []
        assert pool.get_job_status(job.id)["status"] == "cancelled"

    def test_cannot_cancel_finished_job(self):
        pool, _ = make_pool()
        job = pool.add_job("echo", {"n": 1})
        asyncio.run(pool.run(job.id))

        assert pool.cancel_job(job.id) is False
        assert pool.cancel_job("missing") is False

    def test_queue_stats(self):
        pool, _ = make_pool()
        done = pool.add_job("echo", {"n": 1})
        pool.add_job("echo", {"n": 2})
        failed = pool.add_job("boom", {})
        asyncio.run(pool.run(done.id))
        asyncio.run(pool.run(failed.id))

        stats = pool.get_queue_stats()

        assert stats["total"] == 3
        assert stats["byStatus"]["pending"] == 1
        assert stats["byStatus"]["completed"] == 1
        assert stats["byStatus"]["failed"] == 1
        assert stats["byType"] == {"echo": 2, "boom": 1}
        assert stats["jobTypes"] == ["boom", "echo"]


class TestBatchAndPause:
    """Tests for batch queuing and pausing execution."""

    def test_add_jobs_records_every_entry(self):
        pool, _ = make_pool()
        jobs = pool.add_jobs([
            {"type": "echo", "payload": {"n": 1}, "priority": "low", "job_id": "batch-1"},
            {"type": "boom", "payload": {}},
        ])

        assert [job.id for job in jobs] == ["batch-1", jobs[1].id]
        assert pool.get_job_status("batch-1")["priority"] == "low"
        assert pool.get_job_status(jobs[1].id)["priority"] == "medium"

    def test_bad_entry_records_nothing(self):
        pool, _ = make_pool()
        with pytest.raises(ValueError):
            pool.add_jobs([
                {"type": "echo", "payload": {"n": 1}, "job_id": "ok"},
                {"type": "transcode", "payload": {}},
            ])

        assert pool.get_job_status("ok") is None
        assert pool.get_queue_stats()["total"] == 0

    def test_duplicate_ids_within_batch_rejected(self):
        pool, _ = make_pool()
        with pytest.raises(ValueError):
            pool.add_jobs([
                {"type": "echo", "payload": {"n": 1}, "job_id": "same"},
                {"type": "echo", "payload": {"n": 2}, "job_id": "same"},
            ])

    def test_paused_runs_are_deferred_until_resume(self):
        pool, calls = make_pool()
        job = pool.add_job("echo", {"n": 5})

        pool.pause()
        snapshot = asyncio.run(pool.run(job.id))

        assert calls == []
        assert snapshot["status"] == "pending"
        assert pool.get_queue_stats()["paused"] is True
        assert pool.get_queue_stats()["deferred"] == 1

        deferred = pool.resume()
        assert deferred == [job.id]
        asyncio.run(pool.run(job.id))

        assert calls == [5]
        assert pool.get_job_status(job.id)["status"] == "completed"
        assert pool.resume() == []


class TestSnapshotIsolation:
    """Reading or running one job never changes another job's state."""

    def test_other_snapshots_unchanged(self):
        pool, _ = make_pool()
        first = pool.add_job("echo", {"n": 1})
        second = pool.add_job("echo", {"n": 2}, priority="low")

        before = pool.get_job_status(second.id)
        pool.get_job_status(first.id)
        asyncio.run(pool.run(first.id))
        after = pool.get_job_status(second.id)

        assert after == before
        assert pool.get_job_status(first.id)["status"] == "completed"

    def test_snapshot_is_a_copy(self):
        pool, _ = make_pool()
        job = pool.add_job("echo", {"n": 1})

        snapshot = pool.get_job_status(job.id)
        snapshot["status"] = "failed"

        assert pool.get_job_status(job.id)["status"] == "pending"
