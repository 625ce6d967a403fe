"""
Celery tasks — background quote processing.

Each task runs the orchestrator inside `asyncio.run` with its own
container (fresh engine and HTTP client), so nothing is shared with the
event loop of a previous task.
"""

import asyncio
import uuid

import structlog

from clarence.core.config import settings
from clarence.core.constants import DispatchMode
from clarence.core.errors import StructuralProcessingError
from clarence.tasks import celery_app

logger = structlog.get_logger("tasks.quotes")


async def _process(quote_request_id: str) -> dict:
    from clarence.container import build_container

    container = build_container(settings, dispatch_mode=DispatchMode.CELERY)
    try:
        summary = await container.quotes.process(uuid.UUID(quote_request_id))
    finally:
        await container.aclose()

    if summary is None:
        return {"quote_request_id": quote_request_id, "skipped": True}
    return {
        "quote_request_id": quote_request_id,
        "skipped": False,
        "carriers": summary.carriers,
        "attempted": summary.attempted,
        "quoted": summary.quoted,
        "duration_ms": summary.duration_ms,
    }


@celery_app.task(bind=True, name="clarence.tasks.quote_tasks.process_quote_request")
def process_quote_request(self, quote_request_id: str):
    """
    submitted → processing → quotes_ready for one request.

    Not retried: a structural failure has already put the request back
    in draft for the customer to resubmit.
    """
    task_log = logger.bind(task_id=self.request.id, quote_request_id=quote_request_id)
    task_log.info("Quote processing task started")

    try:
        result = asyncio.run(_process(quote_request_id))
    except StructuralProcessingError as exc:
        task_log.error("Quote processing reverted to draft", error=exc.message)
        raise

    task_log.info(
        "Quote processing task finished",
        skipped=result["skipped"],
        quoted=result.get("quoted"),
        duration_ms=result.get("duration_ms"),
    )
    return result
