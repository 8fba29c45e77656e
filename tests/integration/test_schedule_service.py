"""
Integration tests for scheduled status transitions and cleanup.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from dynamic_pricing.db.models import GiftProduct, QuantityRange, RuleExclusion, RuleItem, utc_now
from dynamic_pricing.errors import RuleNotFound
from dynamic_pricing.scheduling.service import ScheduleService


class TestStatusCheck:
    """Tests for activating and expiring rules."""

    async def test_transitions(self, session, make_rule, now):
        starting = await make_rule(name="Starting", status="scheduled", schedule_from=now - timedelta(hours=1), schedule_to=now + timedelta(days=1))
        waiting = await make_rule(name="Waiting", status="scheduled", schedule_from=now + timedelta(hours=1))
        ending = await make_rule(name="Ending", status="active", schedule_to=now - timedelta(minutes=5))
        missed = await make_rule(name="Missed", status="scheduled", schedule_from=now - timedelta(days=2), schedule_to=now - timedelta(days=1))
        paused = await make_rule(name="Paused", status="inactive", schedule_to=now - timedelta(days=1))

        result = await ScheduleService(session).check_scheduled_rules(now)

        assert result.activated == 1
        assert result.expired == 1
        for rule in (starting, waiting, ending, missed, paused):
            await session.refresh(rule)
        assert starting.status == "active"
        assert waiting.status == "scheduled"
        assert ending.status == "expired"
        assert missed.status == "scheduled"
        assert paused.status == "inactive"
        assert starting.updated_at == now

    async def test_second_run_changes_nothing(self, session, make_rule, now):
        await make_rule(status="scheduled", schedule_from=now - timedelta(hours=1))
        await make_rule(status="active", schedule_to=now - timedelta(hours=1))
        service = ScheduleService(session)

        first = await service.check_scheduled_rules(now)
        second = await service.check_scheduled_rules(now)

        assert (first.activated, first.expired) == (1, 1)
        assert (second.activated, second.expired) == (0, 0)

    async def test_rule_activated_and_later_expired(self, session, make_rule, now):
        rule = await make_rule(status="scheduled", schedule_from=now, schedule_to=now + timedelta(hours=2))
        service = ScheduleService(session)

        await service.check_scheduled_rules(now)
        await service.check_scheduled_rules(now + timedelta(hours=3))

        await session.refresh(rule)
        assert rule.status == "expired"

    async def test_deactivate_expired_rules(self, session, make_rule, now):
        rule = await make_rule(status="active", schedule_to=now - timedelta(seconds=1))
        await make_rule(status="active", schedule_to=now + timedelta(days=1))

        assert await ScheduleService(session).deactivate_expired_rules(now) == 1
        await session.refresh(rule)
        assert rule.status == "expired"


class TestCleanup:
    """Tests for the orphan sweep and daily cleanup."""

    async def test_removes_rows_of_deleted_rules(self, session, make_rule):
        rule = await make_rule(
            quantity_ranges=[{"min_quantity": 1, "discount_value": 5}],
            items=[("product", 1)],
        )
        session.add(QuantityRange(rule_id=rule.id + 100, min_quantity=1, discount_value=3))
        session.add(RuleItem(rule_id=rule.id + 100, item_type="product", item_id=2))
        session.add(GiftProduct(rule_id=rule.id + 100, product_id=9))
        await session.commit()

        removed = await ScheduleService(session).cleanup_orphaned_data()

        assert removed == {
            "quantity_ranges": 1,
            "rule_items": 1,
            "rule_exclusions": 0,
            "gift_products": 1,
        }
        ranges = (await session.exec(select(QuantityRange))).all()
        assert [r.rule_id for r in ranges] == [rule.id]
        items = (await session.exec(select(RuleItem))).all()
        assert [i.rule_id for i in items] == [rule.id]

    async def test_no_rules_empties_child_tables(self, session):
        session.add(QuantityRange(rule_id=5, min_quantity=1))
        session.add(RuleExclusion(rule_id=5, exclusion_type="category", exclusion_id=1))
        await session.commit()

        removed = await ScheduleService(session).cleanup_orphaned_data()

        assert removed["quantity_ranges"] == 1
        assert removed["rule_exclusions"] == 1
        assert (await session.exec(select(QuantityRange))).all() == []

    async def test_nothing_to_remove(self, session, make_rule):
        await make_rule(exclusions=[("product", 3)])

        removed = await ScheduleService(session).cleanup_orphaned_data()

        assert sum(removed.values()) == 0

    async def test_daily_cleanup(self, session, make_rule, now):
        await make_rule(status="active", schedule_to=now - timedelta(days=1))
        session.add(RuleItem(rule_id=999, item_type="tag", item_id=4))
        await session.commit()

        result = await ScheduleService(session).daily_cleanup(now)

        assert result.expired == 1
        assert result.orphans_removed["rule_items"] == 1


class TestScheduleQueries:
    """Tests for upcoming, expiring and timing lookups."""

    async def test_upcoming_in_start_order(self, session, make_rule, now):
        in_three = await make_rule(name="In three", status="scheduled", schedule_from=now + timedelta(days=3))
        in_one = await make_rule(name="In one", status="scheduled", schedule_from=now + timedelta(days=1))
        in_two = await make_rule(name="In two", status="scheduled", schedule_from=now + timedelta(days=2))
        await make_rule(name="Started", schedule_from=now - timedelta(days=1))
        await make_rule(name="Unscheduled")
        service = ScheduleService(session)

        upcoming = await service.get_upcoming_rules(now)
        assert [r.id for r in upcoming] == [in_one.id, in_two.id, in_three.id]

        limited = await service.get_upcoming_rules(now, limit=2)
        assert [r.id for r in limited] == [in_one.id, in_two.id]

    async def test_expiring_within_days(self, session, make_rule, now):
        in_two = await make_rule(name="Two days", schedule_to=now + timedelta(days=2))
        in_one = await make_rule(name="One day", schedule_to=now + timedelta(days=1))
        await make_rule(name="Far off", schedule_to=now + timedelta(days=10))
        await make_rule(name="Not live", status="scheduled", schedule_to=now + timedelta(days=1))
        await make_rule(name="Already ended", schedule_to=now - timedelta(days=1))

        expiring = await ScheduleService(session).get_expiring_rules(now, days=7)

        assert [r.id for r in expiring] == [in_one.id, in_two.id]

    async def test_rule_timing(self, session, make_rule, now):
        rule = await make_rule(status="scheduled", schedule_from=now + timedelta(hours=1), schedule_to=now + timedelta(hours=3))

        timing = await ScheduleService(session).get_rule_timing(rule.id, now)

        assert timing.rule_id == rule.id
        assert timing.status == "scheduled"
        assert timing.lifecycle_state == "scheduled"
        assert timing.is_scheduled_active is False
        assert timing.seconds_until_start == 3600
        assert timing.seconds_until_end == 3 * 3600

    async def test_rule_timing_unknown_rule(self, session, now):
        with pytest.raises(RuleNotFound) as exc_info:
            await ScheduleService(session).get_rule_timing(404, now)

        assert exc_info.value.rule_id == 404


class TestDefaultClock:
    """Tests for transitions run without an explicit time."""

    async def test_no_early_activation_ahead_of_utc(self, session, make_rule, local_timezone):
        local_timezone("Asia/Tokyo")
        pending = await make_rule(status="scheduled", schedule_from=utc_now() + timedelta(hours=1))
        service = ScheduleService(session)

        with_aware_now = await service.check_scheduled_rules(datetime.now(timezone.utc))
        with_default_now = await service.check_scheduled_rules()

        assert with_aware_now.activated == 0
        assert with_default_now.activated == 0
        await session.refresh(pending)
        assert pending.status == "scheduled"

    async def test_activation_on_time_ahead_of_utc(self, session, make_rule, local_timezone):
        local_timezone("Asia/Tokyo")
        await make_rule(status="scheduled", schedule_from=utc_now() - timedelta(minutes=1))

        result = await ScheduleService(session).check_scheduled_rules()

        assert result.activated == 1

    async def test_expiry_on_time_behind_utc(self, session, make_rule, local_timezone):
        local_timezone("America/Los_Angeles")
        ended = await make_rule(status="active", schedule_to=utc_now() - timedelta(minutes=5))

        assert await ScheduleService(session).deactivate_expired_rules() == 1
        await session.refresh(ended)
        assert ended.status == "expired"
