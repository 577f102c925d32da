"""
Durable step execution

A workflow is a sequence of named steps. ``StepRunner.run`` executes one
step with its own retry and timeout policy and checkpoints the result, so
re-invoking the same workflow instance after a crash returns stored
results for completed steps instead of executing them again.

Step functions must therefore be safe to re-run (a crash can land between
the side effect and the checkpoint write) and must return JSON-serialisable
data.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edgecms.exceptions import NonRetryableError, StepFailedError, StepTimeoutError
from edgecms.models.workflow import WorkflowStep

logger = logging.getLogger(__name__)

BACKOFF_STRATEGIES = ("constant", "linear", "exponential")


@dataclass(frozen=True)
class RetryPolicy:
    """How often a failing step is retried and how long to wait in between.

    ``limit`` counts retries, so a step runs at most ``limit + 1`` times.
    """

    limit: int
    delay: float
    backoff: str = "exponential"

    def __post_init__(self):
        if self.backoff not in BACKOFF_STRATEGIES:
            raise ValueError(f"Unknown backoff strategy: {self.backoff}")
        if self.limit < 0 or self.delay < 0:
            raise ValueError("Retry limit and delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the ``attempt``-th failed attempt (1-based)."""
        if self.backoff == "exponential":
            return self.delay * (2 ** (attempt - 1))
        if self.backoff == "linear":
            return self.delay * attempt
        return self.delay


@dataclass(frozen=True)
class StepPolicy:
    retries: RetryPolicy
    timeout: float  # seconds per attempt


def policy(limit: int, delay: float, backoff: str, timeout: float) -> StepPolicy:
    return StepPolicy(retries=RetryPolicy(limit=limit, delay=delay, backoff=backoff), timeout=timeout)


# ── Checkpoints ───────────────────────────────────────────────────────────────


class CheckpointStore(Protocol):
    async def load(self, instance_id: str) -> dict[str, Any]: ...

    async def save(self, instance_id: str, name: str, result: Any, attempts: int) -> Any:
        """Record ``result`` unless ``name`` is already checkpointed; return the stored result."""
        ...


class InMemoryCheckpointStore:
    """Checkpoints held in a dict; durable only for the life of the process."""

    def __init__(self):
        self._steps: dict[str, dict[str, Any]] = {}

    async def load(self, instance_id: str) -> dict[str, Any]:
        return dict(self._steps.get(instance_id, {}))

    async def save(self, instance_id: str, name: str, result: Any, attempts: int) -> Any:
        return self._steps.setdefault(instance_id, {}).setdefault(name, result)


class DatabaseCheckpointStore:
    """Checkpoints stored as ``workflow_steps`` rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def load(self, instance_id: str) -> dict[str, Any]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(WorkflowStep).where(WorkflowStep.instance_id == instance_id).order_by(WorkflowStep.id)
            )
            return {row.name: json.loads(row.result) for row in result.scalars().all()}

    async def save(self, instance_id: str, name: str, result: Any, attempts: int) -> Any:
        async with self.session_factory() as db:
            db.add(WorkflowStep(instance_id=instance_id, name=name, result=json.dumps(result), attempts=attempts))
            try:
                await db.commit()
            except IntegrityError:
                # Already checkpointed by a concurrent invocation; its result wins
                await db.rollback()
                stored = await db.execute(
                    select(WorkflowStep.result).where(
                        WorkflowStep.instance_id == instance_id, WorkflowStep.name == name
                    )
                )
                return json.loads(stored.scalar_one())
            return result


# ── Runner ────────────────────────────────────────────────────────────────────


StepFunction = Callable[[], Awaitable[Any]]


class StepRunner:
    """Runs the steps of one workflow instance."""

    def __init__(
        self,
        instance_id: str,
        checkpoints: CheckpointStore | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        label: str = "Workflow",
    ):
        self.instance_id = instance_id
        self.checkpoints = checkpoints or InMemoryCheckpointStore()
        self.label = label
        self._sleep = sleep
        self._completed: dict[str, Any] | None = None

    async def load(self) -> dict[str, Any]:
        self._completed = await self.checkpoints.load(self.instance_id)
        return dict(self._completed)

    @property
    def completed_steps(self) -> list[str]:
        return list(self._completed or {})

    async def run(self, name: str, step_policy: StepPolicy, fn: StepFunction) -> Any:
        """Execute ``fn`` as the step ``name``, or replay its checkpoint.

        Raises:
            NonRetryableError: immediately, if ``fn`` raises one.
            StepFailedError: once the retry budget is exhausted.
        """
        if self._completed is None:
            await self.load()
        if name in self._completed:
            logger.info(f"[{self.label}] Step '{name}' already completed, replaying checkpoint")
            return self._completed[name]

        max_attempts = step_policy.retries.limit + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await asyncio.wait_for(fn(), timeout=step_policy.timeout)
                # Normalise through JSON so a replayed result matches a fresh one
                result = json.loads(json.dumps(result))
                result = await self.checkpoints.save(self.instance_id, name, result, attempt)
            except NonRetryableError as e:
                logger.error(f"[{self.label}] Step '{name}' failed permanently: {e}")
                raise
            except asyncio.TimeoutError:
                error: Exception = StepTimeoutError(name, step_policy.timeout)
            except Exception as e:
                error = e
            else:
                self._completed[name] = result
                if attempt > 1:
                    logger.info(f"[{self.label}] Step '{name}' succeeded on attempt {attempt}")
                return result

            if attempt >= max_attempts:
                logger.error(f"[{self.label}] Step '{name}' exhausted {attempt} attempt(s): {error}")
                raise StepFailedError(name, attempt, error) from error

            delay = step_policy.retries.delay_for(attempt)
            logger.warning(
                f"[{self.label}] Step '{name}' attempt {attempt}/{max_attempts} failed: {error!r}; retrying in {delay}s"
            )
            await self._sleep(delay)
