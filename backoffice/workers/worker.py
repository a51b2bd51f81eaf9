"""
Consumidor de colas: procesa un job a la vez por cola en una tarea asyncio.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from backoffice.core.config import get_settings
from backoffice.workers.queue import Job, JobQueue

settings = get_settings()
logger = logging.getLogger(__name__)

Processor = Callable[[Job], Awaitable[Any]]


class QueueWorker:
    """
    Worker de una cola.

    Cada job se despacha al processor registrado para su nombre. Un nombre
    desconocido o una excepción del processor se entregan a ``JobQueue.fail``,
    que decide el reintento.
    """

    def __init__(self, queue: JobQueue, processors: Dict[str, Processor], poll_timeout: Optional[float] = None):
        self.queue = queue
        self.processors = processors
        self.poll_timeout = poll_timeout or settings.QUEUE_POLL_TIMEOUT_SECONDS
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.processed = 0
        self.failed = 0

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    async def start(self):
        if self._running:
            logger.warning(f"Worker {self.queue.name} ya está ejecutándose")
            return

        recovered = await self.queue.recover_stalled()
        self._running = True
        self._task = asyncio.create_task(self._run(), name=f"queue_worker_{self.queue.name}")

        logger.info(f"✅ Worker {self.queue.name} iniciado ({recovered} jobs recuperados)")

    async def stop(self):
        if not self._running:
            return

        logger.info(f"🛑 Deteniendo worker {self.queue.name}")
        self._running = False

        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._task = None
        logger.info(f"✅ Worker {self.queue.name} detenido")

    async def _run(self):
        while self._running:
            try:
                job = await self.queue.fetch_next(timeout=self.poll_timeout)
                if job is None:
                    continue

                await self.process_job(job)

            except asyncio.CancelledError:
                logger.info(f"Loop del worker {self.queue.name} cancelado")
                break
            except Exception as e:
                logger.error(f"❌ Error en loop del worker {self.queue.name}: {e}")
                await asyncio.sleep(1)

    async def process_job(self, job: Job) -> bool:
        """
        Ejecuta el processor del job y registra el resultado en la cola.

        Returns:
            bool: True si el job se completó
        """
        processor = self.processors.get(job.name)
        if processor is None:
            logger.error(f"❌ No processor for job {job.name} in queue {self.queue.name}")
            await self.queue.fail(job, f"Unknown job name: {job.name}")
            self.failed += 1
            return False

        try:
            result = await processor(job)
        except Exception as e:
            logger.error(
                f"❌ Job {job.queue}#{job.id} ({job.name}) failed: {e}",
                extra={"job_id": job.id, "queue": job.queue, "job_name": job.name},
            )
            await self.queue.fail(job, str(e))
            self.failed += 1
            return False

        await self.queue.complete(job, result)
        self.processed += 1
        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            "queue": self.queue.name,
            "running": self.is_running,
            "processors": sorted(self.processors),
            "processed": self.processed,
            "failed": self.failed,
        }
