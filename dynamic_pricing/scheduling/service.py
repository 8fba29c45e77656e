import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from dynamic_pricing.config import Config
from dynamic_pricing.db import redis
from dynamic_pricing.db.models import PricingRule, RuleStatus, RULE_CHILD_TABLES
from dynamic_pricing.errors import RuleNotFound
from .schedule import (
    as_naive_utc,
    is_scheduled_active,
    next_status,
    time_until_end,
    time_until_start,
    utc_now,
)
from .schemas import CleanupResult, RuleTiming, TransitionResult


class ScheduleService:
    """
    Moves rules through scheduled -> active -> expired.

    Every write is a single predicate-based UPDATE or DELETE, so running
    a task twice, or two workers at once, leaves the same end state.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.logger = logging.getLogger(__name__)

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            self.logger.error(f"Failed to {action}: {str(e)}")
            raise

    async def _activate_started_rules(self, now: datetime) -> int:
        stmt = (
            update(PricingRule)
            .where(
                PricingRule.status == RuleStatus.scheduled.value,
                PricingRule.schedule_from.is_not(None),
                PricingRule.schedule_from <= now,
                (PricingRule.schedule_to.is_(None)) | (PricingRule.schedule_to >= now),
            )
            .values(status=RuleStatus.active.value, updated_at=now)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def _expire_ended_rules(self, now: datetime) -> int:
        stmt = (
            update(PricingRule)
            .where(
                PricingRule.status == RuleStatus.active.value,
                PricingRule.schedule_to.is_not(None),
                PricingRule.schedule_to < now,
            )
            .values(status=RuleStatus.expired.value, updated_at=now)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def check_scheduled_rules(self, now: Optional[datetime] = None) -> TransitionResult:
        """Activate rules whose window opened and expire rules whose window closed."""
        now = as_naive_utc(now) or utc_now()

        activated = await self._activate_started_rules(now)
        expired = await self._expire_ended_rules(now)
        await self._commit("update scheduled rule statuses")

        if activated or expired:
            self.logger.info(f"Schedule check at {now}: {activated} rules activated, {expired} rules expired")
            await self._invalidate_rule_cache()

        return TransitionResult(activated=activated, expired=expired)

    async def deactivate_expired_rules(self, now: Optional[datetime] = None) -> int:
        now = as_naive_utc(now) or utc_now()

        expired = await self._expire_ended_rules(now)
        await self._commit("expire ended rules")
        if expired:
            self.logger.info(f"Expired {expired} rules at {now}")
        return expired

    async def cleanup_orphaned_data(self) -> Dict[str, int]:
        """
        Delete child rows whose rule no longer exists.

        With no rules left at all every child table is emptied.
        """
        result = await self.session.exec(select(PricingRule.id).limit(1))
        has_rules = result.first() is not None

        removed = {}
        for model in RULE_CHILD_TABLES:
            stmt = delete(model)
            if has_rules:
                stmt = stmt.where(model.rule_id.not_in(select(PricingRule.id)))
            outcome = await self.session.execute(stmt.execution_options(synchronize_session=False))
            removed[model.__tablename__] = outcome.rowcount or 0

        await self._commit("clean up orphaned rule data")

        total = sum(removed.values())
        if total:
            self.logger.info(f"Removed {total} orphaned rows: {removed}")
        return removed

    async def daily_cleanup(self, now: Optional[datetime] = None) -> CleanupResult:
        expired = await self.deactivate_expired_rules(now)
        orphans_removed = await self.cleanup_orphaned_data()
        await self._invalidate_rule_cache()
        return CleanupResult(expired=expired, orphans_removed=orphans_removed)

    async def get_upcoming_rules(self, now: Optional[datetime] = None, limit: int = Config.UPCOMING_RULES_LIMIT) -> List[PricingRule]:
        now = as_naive_utc(now) or utc_now()
        statement = (
            select(PricingRule)
            .where(PricingRule.schedule_from.is_not(None), PricingRule.schedule_from > now)
            .order_by(PricingRule.schedule_from.asc())
            .limit(limit)
        )
        result = await self.session.exec(statement)
        return result.all()

    async def get_expiring_rules(self, now: Optional[datetime] = None, days: int = Config.EXPIRING_LOOKAHEAD_DAYS) -> List[PricingRule]:
        now = as_naive_utc(now) or utc_now()
        future = now + timedelta(days=days)
        statement = (
            select(PricingRule)
            .where(
                PricingRule.status == RuleStatus.active.value,
                PricingRule.schedule_to.is_not(None),
                PricingRule.schedule_to.between(now, future),
            )
            .order_by(PricingRule.schedule_to.asc())
        )
        result = await self.session.exec(statement)
        return result.all()

    async def get_rule_timing(self, rule_id: int, now: Optional[datetime] = None) -> RuleTiming:
        now = as_naive_utc(now) or utc_now()
        result = await self.session.exec(select(PricingRule).where(PricingRule.id == rule_id))
        rule = result.first()
        if not rule:
            raise RuleNotFound(rule_id)

        return RuleTiming(
            rule_id=rule.id,
            status=rule.status,
            lifecycle_state=next_status(rule, now),
            is_scheduled_active=is_scheduled_active(rule, now),
            seconds_until_start=time_until_start(rule, now),
            seconds_until_end=time_until_end(rule, now),
        )

    async def _invalidate_rule_cache(self) -> None:
        if Config.CACHE_ENABLED:
            await redis.delete_cache_pattern(f"{redis.RULES_CACHE_PREFIX}*")
