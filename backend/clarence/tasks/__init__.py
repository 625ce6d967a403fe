"""
Celery application factory.
"""

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from clarence.core.config import settings
from clarence.core.logging import setup_logging

celery_app = Celery("clarence")
celery_app.config_from_object("celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks([
    "clarence.tasks.quote_tasks",
    "clarence.tasks.health_tasks",
])


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs):
    """Route worker logs through structlog instead of Celery's own handlers."""
    development = settings.APP_ENV == "development"
    setup_logging("DEBUG" if development else "INFO", json_logs=not development)
