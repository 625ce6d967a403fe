"""
Celery tasks — periodic carrier health probes (driven by beat).
"""

import asyncio

import structlog

from clarence.core.config import settings
from clarence.core.constants import DispatchMode
from clarence.tasks import celery_app

logger = structlog.get_logger("tasks.health")


async def _probe_all() -> list[dict]:
    from clarence.container import build_container

    container = build_container(settings, dispatch_mode=DispatchMode.CELERY)
    try:
        results = await container.health.probe_all()
    finally:
        await container.aclose()

    return [
        {
            "carrier_code": r.carrier_code,
            "status": r.status.value,
            "response_time_ms": r.response_time_ms,
            "timed_out": r.timed_out,
        }
        for r in results
    ]


@celery_app.task(bind=True, name="clarence.tasks.health_tasks.probe_carriers")
def probe_carriers(self):
    """Probe every active carrier and record operational / down."""
    results = asyncio.run(_probe_all())
    logger.info(
        "Carrier health sweep task finished",
        task_id=self.request.id,
        probed=len(results),
        down=[r["carrier_code"] for r in results if r["status"] != "operational"],
    )
    return results
