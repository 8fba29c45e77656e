from celery import Celery
from asgiref.sync import async_to_sync
import logging

from dynamic_pricing.config import Config
from dynamic_pricing.db.main import Session
from dynamic_pricing.scheduling.service import ScheduleService

logger = logging.getLogger(__name__)

# Explicit Celery config: use Redis for broker + backend
c_app = Celery(
    "dynamic_pricing",
    broker=Config.REDIS_URL,
    backend=Config.REDIS_URL
)

c_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    beat_schedule={
        "check-scheduled-rules": {
            "task": "dynamic_pricing.celery_tasks.check_scheduled_rules",
            "schedule": float(Config.STATUS_CHECK_INTERVAL_SECONDS),
        },
        "daily-cleanup": {
            "task": "dynamic_pricing.celery_tasks.daily_cleanup",
            "schedule": float(Config.CLEANUP_INTERVAL_SECONDS),
        },
    },
)


async def _check_scheduled_rules() -> dict:
    async with Session() as session:
        result = await ScheduleService(session).check_scheduled_rules()
    return result.model_dump()


async def _daily_cleanup() -> dict:
    async with Session() as session:
        result = await ScheduleService(session).daily_cleanup()
    return result.model_dump()


@c_app.task(bind=True)
def check_scheduled_rules(self):
    result = async_to_sync(_check_scheduled_rules)()
    logger.info(f"Scheduled rule check finished: {result}")
    return result


@c_app.task(bind=True)
def daily_cleanup(self):
    result = async_to_sync(_daily_cleanup)()
    logger.info(f"Daily cleanup finished: {result}")
    return result
