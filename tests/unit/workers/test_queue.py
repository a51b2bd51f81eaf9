"""Tests unitarios para la cola de trabajos respaldada en Redis."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from backoffice.workers.queue import Job, JobQueue, JobStatus

QUEUE_OPTIONS = {"attempts": 3, "backoff_delay_ms": 2000, "remove_on_complete": 10, "remove_on_fail": 50}


def make_queue(redis_mock=None) -> JobQueue:
    return JobQueue("order-processing", redis_client=redis_mock or AsyncMock(), options=QUEUE_OPTIONS)


def make_job(**overrides) -> Job:
    values = {"id": "1", "queue": "order-processing", "name": "process-new-order", "data": {"order": {"id": 1}}}
    values.update(overrides)
    return Job(**values)


class TestJobSerialization:
    """Tests para la serialización del estado de un job."""

    def test_from_dict_ignores_unknown_keys(self):
        """Debe ignorar claves que no son campos del job."""
        job = Job.from_dict({"id": "5", "queue": "tracking", "name": "detect-delayed-orders", "extra": True})

        assert job.id == "5"
        assert job.status == JobStatus.WAITING.value
        assert job.attempts_made == 0

    def test_to_dict_contains_progress_and_attempts(self):
        """Debe exponer progreso e intentos en el dict."""
        data = make_job(progress=40, attempts_made=1).to_dict()

        assert data["progress"] == 40
        assert data["attempts_made"] == 1
        assert data["max_attempts"] == 3


class TestAdd:
    """Tests para el encolado de jobs."""

    @pytest.mark.asyncio
    async def test_add_assigns_incremental_id_and_pushes_to_wait(self):
        """Debe usar el contador de ids y empujar el job a la lista wait."""
        redis_mock = AsyncMock()
        redis_mock.incr.return_value = 7
        queue = make_queue(redis_mock)

        job = await queue.add("process-new-order", {"order": {"id": 99}})

        assert job.id == "7"
        assert job.max_attempts == 3
        assert job.status == JobStatus.WAITING.value
        redis_mock.lpush.assert_awaited_once_with(queue.wait_key, "7")
        saved_key, saved_value = redis_mock.set.await_args.args
        assert saved_key == queue.job_key("7")
        assert json.loads(saved_value)["data"] == {"order": {"id": 99}}

    @pytest.mark.asyncio
    async def test_add_respects_custom_attempts(self):
        """Debe usar los intentos indicados en lugar del valor por defecto."""
        redis_mock = AsyncMock()
        redis_mock.incr.return_value = 1

        job = await make_queue(redis_mock).add("send-notification", {}, attempts=5)

        assert job.max_attempts == 5

    @pytest.mark.asyncio
    async def test_add_keeps_explicit_zero_attempts(self):
        """attempts=0 explícito no debe reemplazarse por el valor por defecto."""
        redis_mock = AsyncMock()
        redis_mock.incr.return_value = 1
        redis_mock.llen.return_value = 1
        queue = make_queue(redis_mock)

        job = await queue.add("send-notification", {}, attempts=0)

        assert job.max_attempts == 0
        assert await queue.fail(job, "boom") is False
        assert job.status == JobStatus.FAILED.value


class TestRetryBackoff:
    """Tests para reintentos con backoff exponencial."""

    def test_backoff_delay_is_exponential(self):
        """Debe duplicar la demora en cada intento."""
        queue = make_queue()

        assert queue.backoff_delay(1) == 2000
        assert queue.backoff_delay(2) == 4000
        assert queue.backoff_delay(3) == 8000

    @pytest.mark.asyncio
    async def test_first_failure_schedules_retry(self):
        """Debe diferir el job 2000ms tras el primer fallo."""
        redis_mock = AsyncMock()
        queue = make_queue(redis_mock)
        job = make_job()

        with patch("backoffice.workers.queue.now_ms", return_value=1_000_000):
            will_retry = await queue.fail(job, "boom")

        assert will_retry is True
        assert job.attempts_made == 1
        assert job.status == JobStatus.DELAYED.value
        assert job.failed_reason == "boom"
        redis_mock.lrem.assert_awaited_once_with(queue.active_key, 1, "1")
        redis_mock.zadd.assert_awaited_once_with(queue.delayed_key, {"1": 1_002_000})
        redis_mock.lpush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_failure_doubles_delay(self):
        """Debe diferir 4000ms tras el segundo fallo."""
        redis_mock = AsyncMock()
        queue = make_queue(redis_mock)
        job = make_job(attempts_made=1)

        with patch("backoffice.workers.queue.now_ms", return_value=1_000_000):
            will_retry = await queue.fail(job, "boom")

        assert will_retry is True
        redis_mock.zadd.assert_awaited_once_with(queue.delayed_key, {"1": 1_004_000})

    @pytest.mark.asyncio
    async def test_exhausted_attempts_moves_job_to_failed(self):
        """Debe marcar el job como fallido al agotar los intentos."""
        redis_mock = AsyncMock()
        redis_mock.llen.return_value = 1
        queue = make_queue(redis_mock)
        job = make_job(attempts_made=2)

        will_retry = await queue.fail(job, "still broken")

        assert will_retry is False
        assert job.attempts_made == 3
        assert job.status == JobStatus.FAILED.value
        assert job.finished_at is not None
        redis_mock.zadd.assert_not_awaited()
        redis_mock.lpush.assert_awaited_once_with(queue.failed_key, "1")

    @pytest.mark.asyncio
    async def test_failed_history_is_trimmed(self):
        """Debe descartar los ids más antiguos por encima de remove_on_fail."""
        redis_mock = AsyncMock()
        redis_mock.llen.side_effect = [52, 51, 50]
        redis_mock.rpop.side_effect = ["old-1", "old-2"]
        queue = make_queue(redis_mock)

        await queue.fail(make_job(attempts_made=2), "boom")

        assert redis_mock.rpop.await_count == 2
        redis_mock.delete.assert_any_await(queue.job_key("old-1"))
        redis_mock.delete.assert_any_await(queue.job_key("old-2"))


class TestFetchAndProgress:
    """Tests para la toma de jobs y el reporte de progreso."""

    @pytest.mark.asyncio
    async def test_fetch_next_returns_none_when_queue_is_empty(self):
        """Debe retornar None si no hay jobs en wait."""
        redis_mock = AsyncMock()
        redis_mock.zrangebyscore.return_value = []
        redis_mock.blmove.return_value = None

        assert await make_queue(redis_mock).fetch_next(timeout=1) is None

    @pytest.mark.asyncio
    async def test_fetch_next_moves_job_to_active(self):
        """Debe mover el job de wait a active y marcarlo activo."""
        redis_mock = AsyncMock()
        redis_mock.zrangebyscore.return_value = []
        redis_mock.blmove.return_value = "1"
        redis_mock.get.return_value = json.dumps(make_job().to_dict())
        queue = make_queue(redis_mock)

        job = await queue.fetch_next(timeout=1)

        assert job.id == "1"
        assert job.status == JobStatus.ACTIVE.value
        assert job.processed_at is not None
        redis_mock.blmove.assert_awaited_once_with(queue.wait_key, queue.active_key, 1, "RIGHT", "LEFT")

    @pytest.mark.asyncio
    async def test_fetch_next_promotes_due_delayed_jobs(self):
        """Debe devolver a wait los jobs diferidos cuyo tiempo ya llegó."""
        redis_mock = AsyncMock()
        redis_mock.zrangebyscore.return_value = ["3"]
        redis_mock.zrem.return_value = 1
        redis_mock.get.return_value = json.dumps(make_job(id="3", status="delayed").to_dict())
        redis_mock.blmove.return_value = None
        queue = make_queue(redis_mock)

        with patch("backoffice.workers.queue.now_ms", return_value=5000):
            await queue.fetch_next(timeout=1)

        redis_mock.zrangebyscore.assert_awaited_once_with(queue.delayed_key, 0, 5000)
        redis_mock.lpush.assert_awaited_once_with(queue.wait_key, "3")

    @pytest.mark.asyncio
    async def test_update_progress_rejects_out_of_range_values(self):
        """Debe rechazar progreso fuera de 0..100."""
        queue = make_queue()

        with pytest.raises(ValueError):
            await queue.update_progress(make_job(), 120)

    @pytest.mark.asyncio
    async def test_update_progress_persists_value(self):
        """Debe guardar el progreso en el estado del job."""
        redis_mock = AsyncMock()
        queue = make_queue(redis_mock)
        job = make_job()

        await queue.update_progress(job, 60)

        assert job.progress == 60
        redis_mock.set.assert_awaited_once()


class TestRecoverStalled:
    """Tests para la recuperación de jobs activos tras una caída."""

    @pytest.mark.asyncio
    async def test_requeues_active_jobs(self):
        """Debe devolver cada job activo a wait."""
        redis_mock = AsyncMock()
        redis_mock.lrange.return_value = ["4", "5"]
        queue = make_queue(redis_mock)

        recovered = await queue.recover_stalled()

        assert recovered == 2
        redis_mock.rpush.assert_any_await(queue.wait_key, "4")
        redis_mock.rpush.assert_any_await(queue.wait_key, "5")
