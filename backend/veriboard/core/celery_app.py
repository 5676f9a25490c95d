"""
Celery application for background maintenance
"""
from celery import Celery
from veriboard.core.config import settings

celery_app = Celery(
    "veriboard",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "veriboard.tasks.maintenance_tasks",
    ],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    task_acks_late=True,
    result_expires=3600,  # 1 hour
    beat_schedule={
        "purge-expired-otp-codes": {
            "task": "veriboard.tasks.maintenance_tasks.purge_expired_codes_task",
            "schedule": settings.OTP_PURGE_INTERVAL_MINUTES * 60,
        },
    },
)
