from celery import Celery

from reward_ledger.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "reward_ledger",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "reward_ledger.workers.tasks.referral_codes",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    enable_utc=True,
)
