"""
In-process background job queue with recurring schedules and retries.

Jobs run as asyncio tasks. Live jobs are kept in memory; every state change
is mirrored to Redis through JobStateManager when one is provided, and that
mirror is the only record of finished or cancelled jobs.
"""

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from feedapp.core.events import JobStateManager


logger = logging.getLogger(__name__)

_UNIT_SECONDS = {
    'second': 1,
    'minute': 60,
    'hour': 3600,
    'day': 86400,
    'week': 604800,
}

_SCHEDULE_PATTERN = re.compile(
    r'^\s*every\s+(\d+\s+)?(second|minute|hour|day|week)s?\s*$',
    re.IGNORECASE
)

LIVE_STATUSES = ('waiting', 'running')


def parse_schedule(text: str) -> timedelta:
    """
    Parse a recurrence such as ``every 24 hours`` or ``every day``.

    Raises:
        ValueError: If the text is not a supported recurrence.
    """
    match = _SCHEDULE_PATTERN.match(text or '')
    if not match:
        raise ValueError(f"Unsupported schedule: {text!r}")
    count = int(match.group(1)) if match.group(1) else 1
    if count <= 0:
        raise ValueError(f"Schedule interval must be positive: {text!r}")
    return timedelta(seconds=count * _UNIT_SECONDS[match.group(2).lower()])


@dataclass
class RetryPolicy:
    """How often and how long to wait before re-running a failed job."""
    retries: int = 0
    wait: float = 0.0  # seconds
    backoff: Literal['fixed', 'exponential'] = 'fixed'

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt number ``attempt`` (1-based)."""
        if self.backoff == 'exponential':
            return self.wait * (2 ** (attempt - 1))
        return self.wait

    def to_dict(self) -> Dict[str, Any]:
        return {'retries': self.retries, 'wait': self.wait, 'backoff': self.backoff}


@dataclass
class Job:
    """A scheduled unit of work handed to a worker."""
    id: str
    type: str
    data: Dict[str, Any]
    run_at: datetime
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    schedule: Optional[str] = None
    status: str = 'waiting'  # waiting, running, completed, failed, cancelled
    attempts: int = 0
    message: Optional[str] = None
    repeat: bool = False

    def done(self, message: Optional[str] = None, repeat_id: bool = False) -> None:
        """Mark the run successful. ``repeat_id`` re-arms a recurring job."""
        self.status = 'completed'
        self.message = message
        self.repeat = repeat_id

    def fail(self, message: str) -> None:
        """Mark the run failed; the retry policy decides what happens next."""
        self.status = 'failed'
        self.message = message

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    def matches(self, type: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Same type and ``data`` contains every given key/value."""
        if self.type != type:
            return False
        return all(self.data.get(k) == v for k, v in (data or {}).items())

    def to_summary(self) -> Dict[str, Any]:
        return {
            'job_id': self.id,
            'type': self.type,
            'status': self.status,
            'data': dict(self.data),
            'attempts': self.attempts,
            'schedule': self.schedule,
            'run_at': self.run_at.isoformat(),
            'message': self.message,
        }


WorkerFn = Callable[[Job], Awaitable[None]]


@dataclass
class _Worker:
    type: str
    work_timeout: float  # seconds
    fn: WorkerFn


class BackgroundJobs:
    """
    Job queue exposing ``add_worker``, ``schedule_job`` and ``cancel_jobs``.

    Nothing runs until ``start()`` is called; until then jobs only accumulate,
    and ``execute()`` can drive a single run directly.
    """

    def __init__(
        self,
        state_manager: Optional[JobStateManager] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.state_manager = state_manager
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self._workers: Dict[str, _Worker] = {}
        self._jobs: Dict[str, Job] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._started = False

    async def add_worker(self, type: str, work_timeout: float, worker: WorkerFn) -> None:
        """
        Register the worker for a job type.

        Args:
            type: Job type
            work_timeout: Maximum duration of one run, in seconds
            worker: Coroutine function receiving the Job
        """
        self._workers[type] = _Worker(type=type, work_timeout=work_timeout, fn=worker)
        logger.info(f"Registered worker for {type} (timeout {work_timeout}s)")
        if self._started:
            for job in self.jobs(type):
                self._spawn(job)

    async def schedule_job(
        self,
        type: str,
        data: Optional[Dict[str, Any]] = None,
        retry: Optional[RetryPolicy] = None,
        schedule: Optional[str] = None
    ) -> Job:
        """
        Add a job. Without ``schedule`` it runs once, as soon as possible; with
        one it runs now and then at every interval while it completes with
        ``repeat_id``.

        Raises:
            ValueError: If the schedule cannot be parsed.
        """
        if schedule:
            parse_schedule(schedule)

        job = Job(
            id=str(uuid.uuid4()),
            type=type,
            data=dict(data or {}),
            run_at=self._now(),
            retry=retry or RetryPolicy(),
            schedule=schedule,
        )
        self._jobs[job.id] = job
        logger.debug(f"Scheduled job {job.id} ({type}) data={job.data} schedule={schedule}")
        await self._record(job)
        if self._started:
            self._spawn(job)
        return job

    async def cancel_jobs(self, type: str, data: Optional[Dict[str, Any]] = None) -> int:
        """
        Cancel live jobs of ``type`` whose data contains ``data``.

        Returns:
            Number of jobs cancelled
        """
        cancelled = 0
        for job in self.jobs(type, data):
            job.status = 'cancelled'
            task = self._tasks.pop(job.id, None)
            if task is not None and task is not asyncio.current_task():
                task.cancel()
            await self._record(job)
            self._forget(job)
            cancelled += 1
        if cancelled:
            logger.debug(f"Cancelled {cancelled} {type} job(s) matching {data}")
        return cancelled

    def jobs(self, type: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> List[Job]:
        """Live jobs, oldest first."""
        return [
            job for job in self._jobs.values()
            if type is None or job.matches(type, data)
        ]

    def get_job(self, job_id: str) -> Optional[Job]:
        """A live job by id; finished jobs are only in the state mirror."""
        return self._jobs.get(job_id)

    def _forget(self, job: Job) -> None:
        if not job.is_live:
            self._jobs.pop(job.id, None)

    async def execute(self, job: Job) -> Job:
        """
        Run one attempt of a job and apply its retry/repeat policy.

        Worker exceptions and timeouts are turned into ``job.fail``.
        """
        worker = self._workers.get(job.type)
        if worker is None:
            raise LookupError(f"No worker registered for job type {job.type}")

        job.status = 'running'
        job.attempts += 1
        await self._record(job)

        try:
            await asyncio.wait_for(worker.fn(job), timeout=worker.work_timeout)
        except asyncio.TimeoutError:
            job.fail(f"Timed out after {worker.work_timeout}s")
        except Exception as e:
            logger.error(f"Job {job.id} ({job.type}) raised: {e}", exc_info=True)
            job.fail(str(e))

        if job.status == 'cancelled':
            return job
        if job.status == 'running':
            # Worker returned without signalling
            job.done()

        self._after_run(job)
        await self._record(job)
        self._forget(job)
        return job

    def _after_run(self, job: Job) -> None:
        now = self._now()
        if job.status == 'failed':
            if job.attempts <= job.retry.retries:
                delay = job.retry.delay_for(job.attempts)
                job.status = 'waiting'
                job.run_at = now + timedelta(seconds=delay)
                logger.warning(
                    f"Job {job.id} ({job.type}) failed (attempt {job.attempts}), "
                    f"retrying in {delay:.0f}s: {job.message}"
                )
            else:
                logger.error(
                    f"Job {job.id} ({job.type}) failed after {job.attempts} attempt(s): {job.message}"
                )
        elif job.status == 'completed' and job.repeat and job.schedule:
            job.status = 'waiting'
            job.attempts = 0
            job.repeat = False
            job.run_at = now + parse_schedule(job.schedule)
            logger.debug(f"Job {job.id} ({job.type}) re-armed for {job.run_at.isoformat()}")

    async def start(self) -> None:
        """Start running jobs, including those scheduled before start."""
        self._started = True
        for job in self.jobs():
            self._spawn(job)

    async def stop(self) -> None:
        """Stop all running tasks. Job state is left as is."""
        self._started = False
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, job: Job) -> None:
        if job.id in self._tasks or job.type not in self._workers:
            return
        self._tasks[job.id] = asyncio.create_task(self._run(job))

    async def _run(self, job: Job) -> None:
        try:
            while job.status == 'waiting':
                delay = (job.run_at - self._now()).total_seconds()
                if delay > 0:
                    await asyncio.sleep(delay)
                if job.status != 'waiting':
                    break
                await self.execute(job)
        finally:
            if self._tasks.get(job.id) is asyncio.current_task():
                del self._tasks[job.id]

    async def _record(self, job: Job) -> None:
        if self.state_manager is None:
            return
        state = job.to_summary()
        state['retry'] = job.retry.to_dict()
        try:
            await self.state_manager.record(job.id, state)
        except Exception as e:
            logger.warning(f"Could not record state of job {job.id}: {e}")
