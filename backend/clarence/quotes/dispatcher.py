"""
Hand submitted quote requests to background processing.

InlineDispatcher runs processing as an asyncio task in the API process;
CeleryDispatcher enqueues it on the worker.  Either way the submitter
never waits on carriers, and processing failures stay on the
dispatcher's side.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Awaitable, Callable

from clarence.core.errors import StructuralProcessingError
from clarence.core.logging import get_logger

logger = get_logger(__name__)

ProcessHandler = Callable[[uuid.UUID], Awaitable[Any]]


class InlineDispatcher:
    """One asyncio task per submitted request, tracked until it finishes."""

    def __init__(self, handler: ProcessHandler) -> None:
        self._handler = handler
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, quote_request_id: uuid.UUID) -> asyncio.Task:
        task = asyncio.create_task(
            self._run(quote_request_id),
            name=f"process-quote-request-{quote_request_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Quote processing scheduled", quote_request_id=str(quote_request_id))
        return task

    async def _run(self, quote_request_id: uuid.UUID) -> None:
        try:
            await self._handler(quote_request_id)
        except StructuralProcessingError as exc:
            logger.error(
                "Quote processing reverted to draft",
                quote_request_id=exc.quote_request_id,
                error=exc.message,
            )
        except Exception:
            logger.exception(
                "Quote processing task failed",
                quote_request_id=str(quote_request_id),
            )

    async def drain(self) -> None:
        """Wait for every scheduled task, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()


class CeleryDispatcher:
    """Enqueue processing on the Celery worker."""

    def dispatch(self, quote_request_id: uuid.UUID) -> Any:
        from clarence.tasks.quote_tasks import process_quote_request

        result = process_quote_request.delay(str(quote_request_id))
        logger.info(
            "Quote processing enqueued",
            quote_request_id=str(quote_request_id),
            task_id=result.id,
        )
        return result

    async def drain(self) -> None:
        return None

    async def shutdown(self) -> None:
        return None
