"""
Cola de trabajos respaldada en Redis.

Cada cola guarda sus estructuras bajo ``{QUEUE_PREFIX}:{nombre}``:

- ``wait``: lista de ids pendientes (LPUSH al encolar, se consume por la derecha)
- ``active``: lista de ids en proceso; sobrevive a caídas del worker
- ``delayed``: sorted set de ids a reintentar, con score = timestamp (ms) de ejecución
- ``completed`` / ``failed``: historial recortado según las opciones de retención
- ``job:{id}``: JSON con el estado del job
- ``id``: contador de ids

La entrega es at-least-once: un job activo sólo sale de ``active`` al
completarse o fallar, y ``recover_stalled`` lo devuelve a ``wait`` al arrancar.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import redis.asyncio as redis

from backoffice.core.config import get_settings
from backoffice.core.logging_config import log_job_event
from backoffice.core.redis_client import get_redis_client

settings = get_settings()
logger = logging.getLogger(__name__)

# === NOMBRES DE COLAS Y JOBS ===
ORDER_PROCESSING_QUEUE = "order-processing"
NOTIFICATION_QUEUE = "notification"
TRACKING_QUEUE = "tracking"

QUEUE_NAMES = (ORDER_PROCESSING_QUEUE, NOTIFICATION_QUEUE, TRACKING_QUEUE)

JOB_PROCESS_NEW_ORDER = "process-new-order"
JOB_UPDATE_ORDER_STATUS = "update-order-status"
JOB_SEND_NOTIFICATION = "send-notification"
JOB_DETECT_DELAYED_ORDERS = "detect-delayed-orders"


class JobStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    DELAYED = "delayed"
    COMPLETED = "completed"
    FAILED = "failed"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Job:
    """
    Estado de un trabajo en una cola.

    Attributes:
        id: Identificador dentro de la cola
        queue: Nombre de la cola
        name: Nombre del job (selecciona el processor)
        data: Payload JSON del job
        attempts_made: Intentos fallidos hasta ahora
        max_attempts: Intentos máximos antes de marcarlo como fallido
        progress: Avance reportado por el processor (0-100)
        status: waiting, active, delayed, completed o failed
        result: Resultado devuelto por el processor
        failed_reason: Último error registrado
    """

    id: str
    queue: str
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    attempts_made: int = 0
    max_attempts: int = 3
    progress: int = 0
    status: str = JobStatus.WAITING.value
    result: Any = None
    failed_reason: Optional[str] = None
    created_at: int = field(default_factory=now_ms)
    processed_at: Optional[int] = None
    finished_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        return cls(**known)


class JobQueue:
    """
    Cola de trabajos con reintentos con backoff exponencial y progreso por job.
    """

    def __init__(
        self,
        name: str,
        redis_client: Optional[redis.Redis] = None,
        options: Optional[Dict[str, int]] = None,
    ):
        """
        Args:
            name: Nombre de la cola
            redis_client: Cliente Redis; por defecto el cliente compartido
            options: attempts, backoff_delay_ms, remove_on_complete, remove_on_fail
        """
        self.name = name
        self._redis = redis_client
        self.options = {**settings.queue_options, **(options or {})}

        base = f"{settings.QUEUE_PREFIX}:{name}"
        self.wait_key = f"{base}:wait"
        self.active_key = f"{base}:active"
        self.delayed_key = f"{base}:delayed"
        self.completed_key = f"{base}:completed"
        self.failed_key = f"{base}:failed"
        self.id_key = f"{base}:id"
        self._job_prefix = f"{base}:job:"

    @property
    def redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = get_redis_client()
        return self._redis

    def job_key(self, job_id: str) -> str:
        return f"{self._job_prefix}{job_id}"

    async def _save(self, job: Job) -> None:
        await self.redis.set(self.job_key(job.id), json.dumps(job.to_dict(), default=str))

    async def add(self, name: str, data: Dict[str, Any], attempts: Optional[int] = None) -> Job:
        """
        Encola un nuevo job.

        Args:
            name: Nombre del job
            data: Payload JSON-serializable
            attempts: Intentos máximos (por defecto QUEUE_DEFAULT_ATTEMPTS)

        Returns:
            Job: Job creado en estado waiting
        """
        job_id = str(await self.redis.incr(self.id_key))
        job = Job(
            id=job_id,
            queue=self.name,
            name=name,
            data=data,
            max_attempts=attempts if attempts is not None else self.options["attempts"],
        )

        await self._save(job)
        await self.redis.lpush(self.wait_key, job_id)

        log_job_event("added", self.name, job_id, job_name=name)
        return job

    async def get_job(self, job_id: str) -> Optional[Job]:
        raw = await self.redis.get(self.job_key(job_id))
        if raw is None:
            return None
        return Job.from_dict(json.loads(raw))

    async def promote_delayed(self) -> int:
        """
        Mueve a ``wait`` los jobs diferidos cuyo momento de ejecución ya llegó.

        Returns:
            int: Cantidad de jobs promovidos
        """
        due_ids = await self.redis.zrangebyscore(self.delayed_key, 0, now_ms())
        promoted = 0

        for job_id in due_ids:
            # zrem devuelve 0 si otro consumidor ya lo promovió
            if not await self.redis.zrem(self.delayed_key, job_id):
                continue

            job = await self.get_job(job_id)
            if job is not None:
                job.status = JobStatus.WAITING.value
                await self._save(job)

            await self.redis.lpush(self.wait_key, job_id)
            promoted += 1

        return promoted

    async def fetch_next(self, timeout: float = 2) -> Optional[Job]:
        """
        Toma el próximo job, bloqueando hasta ``timeout`` segundos.

        Returns:
            Optional[Job]: Job activo, None si no hubo trabajo
        """
        await self.promote_delayed()

        job_id = await self.redis.blmove(self.wait_key, self.active_key, timeout, "RIGHT", "LEFT")
        if job_id is None:
            return None

        job = await self.get_job(job_id)
        if job is None:
            logger.warning(f"⚠️ Job {self.name}#{job_id} sin datos, descartando")
            await self.redis.lrem(self.active_key, 1, job_id)
            return None

        job.status = JobStatus.ACTIVE.value
        job.processed_at = now_ms()
        await self._save(job)
        return job

    async def update_progress(self, job: Job, value: int) -> None:
        """
        Reporta el avance del job.

        Args:
            job: Job activo
            value: Avance entre 0 y 100

        Raises:
            ValueError: Si el valor está fuera de rango
        """
        if not 0 <= value <= 100:
            raise ValueError(f"Progress must be between 0 and 100, got {value}")

        job.progress = value
        await self._save(job)
        logger.debug(f"🔄 Job {self.name}#{job.id} progress {value}%")

    async def complete(self, job: Job, result: Any = None) -> None:
        """Marca el job como completado y recorta el historial."""
        await self.redis.lrem(self.active_key, 1, job.id)

        job.status = JobStatus.COMPLETED.value
        job.result = result
        job.finished_at = now_ms()
        await self._save(job)

        await self.redis.lpush(self.completed_key, job.id)
        await self._trim(self.completed_key, self.options["remove_on_complete"])

        log_job_event("completed", self.name, job.id, job_name=job.name)

    def backoff_delay(self, attempts_made: int) -> int:
        """Demora exponencial en ms: backoff_delay_ms × 2^(attempts_made−1)."""
        return self.options["backoff_delay_ms"] * (2 ** (attempts_made - 1))

    async def fail(self, job: Job, error: str) -> bool:
        """
        Registra un intento fallido.

        Mientras ``attempts_made < max_attempts`` el job se reprograma en
        ``delayed`` con backoff exponencial; si no, pasa a ``failed``.

        Args:
            job: Job activo
            error: Motivo del fallo

        Returns:
            bool: True si el job será reintentado
        """
        await self.redis.lrem(self.active_key, 1, job.id)

        job.attempts_made += 1
        job.failed_reason = error

        if job.attempts_made < job.max_attempts:
            delay = self.backoff_delay(job.attempts_made)
            job.status = JobStatus.DELAYED.value
            await self._save(job)
            await self.redis.zadd(self.delayed_key, {job.id: now_ms() + delay})

            log_job_event(
                "retry",
                self.name,
                job.id,
                job_name=job.name,
                attempts_made=job.attempts_made,
                delay_ms=delay,
                error=error,
            )
            return True

        job.status = JobStatus.FAILED.value
        job.finished_at = now_ms()
        await self._save(job)

        await self.redis.lpush(self.failed_key, job.id)
        await self._trim(self.failed_key, self.options["remove_on_fail"])

        log_job_event("failed", self.name, job.id, job_name=job.name, attempts_made=job.attempts_made, error=error)
        return False

    async def _trim(self, list_key: str, keep: int) -> None:
        """Mantiene sólo los ``keep`` ids más recientes y borra los datos de los descartados."""
        while await self.redis.llen(list_key) > keep:
            old_id = await self.redis.rpop(list_key)
            if old_id is None:
                break
            await self.redis.delete(self.job_key(old_id))

    async def get_counts(self) -> Dict[str, int]:
        return {
            "waiting": await self.redis.llen(self.wait_key),
            "active": await self.redis.llen(self.active_key),
            "delayed": await self.redis.zcard(self.delayed_key),
            "completed": await self.redis.llen(self.completed_key),
            "failed": await self.redis.llen(self.failed_key),
        }

    async def recover_stalled(self) -> int:
        """
        Devuelve a ``wait`` los jobs que quedaron activos tras una caída.

        Se reinsertan por la derecha para que sean los próximos en procesarse.

        Returns:
            int: Cantidad de jobs recuperados
        """
        stalled_ids = await self.redis.lrange(self.active_key, 0, -1)

        for job_id in stalled_ids:
            await self.redis.lrem(self.active_key, 1, job_id)
            await self.redis.rpush(self.wait_key, job_id)

        if stalled_ids:
            logger.warning(f"⚠️ {len(stalled_ids)} jobs recuperados en la cola {self.name}")

        return len(stalled_ids)


_queues: Dict[str, JobQueue] = {}


def get_queue(name: str) -> JobQueue:
    """
    Obtiene la instancia compartida de una cola.

    Raises:
        KeyError: Si la cola no existe
    """
    if name not in QUEUE_NAMES:
        raise KeyError(f"Unknown queue: {name}")

    if name not in _queues:
        _queues[name] = JobQueue(name)

    return _queues[name]


def get_all_queues() -> Dict[str, JobQueue]:
    return {name: get_queue(name) for name in QUEUE_NAMES}
