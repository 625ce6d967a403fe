"""
Celery configuration for quote processing and carrier health probes.

Loaded by `celery_app.config_from_object("celeryconfig")` in clarence/tasks/__init__.py.
All broker/result-backend URLs come from environment variables,
defaulting to localhost for local dev.
"""

import os

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

# ═══════════════════════════════════════════════════════════
#  Serialization: JSON only
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone
# ═══════════════════════════════════════════════════════════

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

# Acknowledge tasks after they complete
task_acks_late = True
task_reject_on_worker_lost = True

worker_prefetch_multiplier = 1

# Fan-out is bounded by the per-call carrier timeouts (10s quote, 5s health)
task_soft_time_limit = 120
task_time_limit = 150

# ═══════════════════════════════════════════════════════════
#  Result Expiry
# ═══════════════════════════════════════════════════════════

result_expires = 86400

# ═══════════════════════════════════════════════════════════
#  Worker Settings
# ═══════════════════════════════════════════════════════════

worker_max_tasks_per_child = 200

worker_send_task_events = False
task_send_sent_event = False

# ═══════════════════════════════════════════════════════════
#  Task Routes
# ═══════════════════════════════════════════════════════════
#   celery -A clarence.tasks worker -Q quotes     (carrier fan-out)
#   celery -A clarence.tasks worker -Q default    (health probes)

task_routes = {
    "clarence.tasks.quote_tasks.*": {"queue": "quotes"},
    "clarence.tasks.health_tasks.*": {"queue": "default"},
}

task_default_queue = "default"

# ═══════════════════════════════════════════════════════════
#  Beat Schedule (periodic tasks)
# ═══════════════════════════════════════════════════════════

beat_schedule = {
    "probe-carrier-health": {
        "task": "clarence.tasks.health_tasks.probe_carriers",
        "schedule": float(os.getenv("CARRIER_HEALTH_INTERVAL_SECONDS", "300")),
    },
}
