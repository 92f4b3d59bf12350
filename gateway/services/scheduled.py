"""Scheduled trigger hand-off that outlives the acknowledging call."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
import json
import logging
from typing import Awaitable, Protocol

import httpx

from gateway.constants import HARNESS_CRON_PATH
from gateway.errors import ProviderError
from gateway.services.harness_dispatcher import HarnessStub


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledTrigger:
    cron: str
    scheduled_time: datetime


class JobHandler(Protocol):
    async def handle(self, trigger: ScheduledTrigger) -> None:
        """Run the job for one trigger."""


class ExecutionContext:
    """Keeps background hand-offs alive until they finish.

    Tasks registered with ``wait_until`` are referenced until completion and
    awaited by ``drain`` when the application shuts down.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def wait_until(self, awaitable: Awaitable[None]) -> asyncio.Task[None]:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def drain(self) -> None:
        if len(self._pending) == 0:
            return
        logger.info("execution_context_draining pending=%s", len(self._pending))
        await asyncio.gather(*tuple(self._pending), return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("background_task_cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "background_task_failed error_type=%s",
                type(exc).__name__,
                exc_info=exc,
            )


class HarnessJobHandler:
    """Delivers triggers to the harness actor's cron endpoint."""

    def __init__(self, stub: HarnessStub) -> None:
        self._stub = stub

    async def handle(self, trigger: ScheduledTrigger) -> None:
        payload = json.dumps(
            {"cron": trigger.cron, "scheduled_time": trigger.scheduled_time.isoformat()}
        ).encode("utf-8")
        response = await self._stub.fetch(
            "POST",
            HARNESS_CRON_PATH,
            "",
            [("Content-Type", "application/json")],
            payload,
        )
        try:
            body = await response.aread()
        except httpx.HTTPError as exc:
            raise ProviderError(f"Harness cron response failed: {exc}") from exc
        finally:
            await response.aclose()
        if response.status_code >= 400:
            raise ProviderError(
                f"Harness cron request failed ({response.status_code}): "
                f"{body.decode('utf-8', errors='replace')}",
                status_code=response.status_code,
            )
        logger.info(
            "harness_cron_delivered cron=%s status=%s",
            trigger.cron,
            response.status_code,
        )


def route_scheduled(
    trigger: ScheduledTrigger,
    job_handler: JobHandler,
    context: ExecutionContext,
) -> None:
    """Acknowledge ``trigger`` immediately; the job runs in the background."""
    logger.info(
        "cron_triggered cron=%s scheduled_time=%s",
        trigger.cron,
        trigger.scheduled_time.isoformat(),
    )
    context.wait_until(job_handler.handle(trigger))
