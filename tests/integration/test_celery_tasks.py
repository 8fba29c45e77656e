"""
Integration tests for the periodic rule maintenance tasks.
"""

from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from dynamic_pricing import celery_tasks
from dynamic_pricing.config import Config
from dynamic_pricing.db.models import utc_now


@pytest.fixture
def task_session(engine, monkeypatch):
    """Point the task helpers at the test database."""
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(celery_tasks, "Session", factory)
    return factory


class TestBeatSchedule:
    """Tests for the periodic task wiring."""

    def test_tasks_scheduled(self):
        schedule = celery_tasks.c_app.conf.beat_schedule

        assert schedule["check-scheduled-rules"]["task"] == "dynamic_pricing.celery_tasks.check_scheduled_rules"
        assert schedule["check-scheduled-rules"]["schedule"] == Config.STATUS_CHECK_INTERVAL_SECONDS
        assert schedule["daily-cleanup"]["task"] == "dynamic_pricing.celery_tasks.daily_cleanup"
        assert schedule["daily-cleanup"]["schedule"] == Config.CLEANUP_INTERVAL_SECONDS

    def test_tasks_registered(self):
        assert "dynamic_pricing.celery_tasks.check_scheduled_rules" in celery_tasks.c_app.tasks
        assert "dynamic_pricing.celery_tasks.daily_cleanup" in celery_tasks.c_app.tasks


class TestTaskBodies:
    """Tests for the async work behind each task."""

    async def test_check_scheduled_rules(self, session, make_rule, task_session):
        rule = await make_rule(status="scheduled", schedule_from=utc_now() - timedelta(minutes=10))

        result = await celery_tasks._check_scheduled_rules()

        assert result == {"activated": 1, "expired": 0}
        await session.refresh(rule)
        assert rule.status == "active"

    async def test_daily_cleanup(self, session, make_rule, task_session):
        await make_rule(status="active", schedule_to=utc_now() - timedelta(hours=1))

        result = await celery_tasks._daily_cleanup()

        assert result["expired"] == 1
        assert result["orphans_removed"]["gift_products"] == 0
