import json
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from dynamic_pricing.config import Config
from dynamic_pricing.db import redis
from dynamic_pricing.db.models import (
    PricingRule,
    QuantityRange as QuantityRangeRow,
    RuleExclusion as RuleExclusionRow,
    RuleItem as RuleItemRow,
    RuleStatus,
)
from dynamic_pricing.scheduling.schedule import as_naive_utc, is_scheduled_active, utc_now
from .schemas import QuantityRange, Rule, RuleCondition, RuleExclusion, RuleItem

logger = logging.getLogger(__name__)


def _parse_conditions(raw: Optional[str]) -> List[RuleCondition]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.error(f"Ignoring malformed conditions: {raw!r}")
        return []
    if not isinstance(data, list):
        return []

    conditions = []
    for item in data:
        if not isinstance(item, dict):
            continue
        conditions.append(
            RuleCondition(
                type=item.get("type"),
                operator=item.get("operator") or "equals",
                value=str(item.get("value", "")),
            )
        )
    return conditions


class RuleStore:
    """Reads price rules and their child rows out of the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_rules(self, rule_type: str = "price_rule", now: Optional[datetime] = None) -> List[Rule]:
        """
        Active rules of `rule_type` in priority order, with their tiers,
        targeting items and exclusions loaded.

        Rules outside their schedule window or past their usage limit are
        dropped against `now` on every call, cached lists included.
        """
        now = as_naive_utc(now) or utc_now()
        cache_key = f"{redis.RULES_CACHE_PREFIX}active:{rule_type}"

        rules = None
        if Config.CACHE_ENABLED:
            cached = await redis.get_cache(cache_key)
            if cached is not None:
                rules = [Rule.model_validate(item) for item in cached]

        if rules is None:
            rules = await self._load_active_rules(rule_type)
            if Config.CACHE_ENABLED:
                await redis.set_cache(cache_key, [rule.model_dump(mode="json") for rule in rules])

        return [
            rule for rule in rules
            if is_scheduled_active(rule, now) and not rule.has_exceeded_usage_limit()
        ]

    async def _load_active_rules(self, rule_type: str) -> List[Rule]:
        statement = (
            select(PricingRule)
            .where(PricingRule.status == RuleStatus.active.value, PricingRule.rule_type == rule_type)
            .order_by(PricingRule.priority.asc(), PricingRule.id.asc())
        )
        result = await self.session.exec(statement)
        rows = result.all()
        return await self.build_rules(rows)

    async def build_rules(self, rows: Sequence[PricingRule]) -> List[Rule]:
        if not rows:
            return []

        rule_ids = [row.id for row in rows]
        ranges = await self._children(
            select(QuantityRangeRow)
            .where(QuantityRangeRow.rule_id.in_(rule_ids))
            .order_by(QuantityRangeRow.min_quantity.asc(), QuantityRangeRow.id.asc())
        )
        items = await self._children(select(RuleItemRow).where(RuleItemRow.rule_id.in_(rule_ids)))
        exclusions = await self._children(select(RuleExclusionRow).where(RuleExclusionRow.rule_id.in_(rule_ids)))

        rules = []
        for row in rows:
            rules.append(
                Rule(
                    id=row.id,
                    name=row.name,
                    rule_type=row.rule_type,
                    status=row.status,
                    priority=row.priority,
                    discount_type=row.discount_type,
                    discount_value=float(row.discount_value or 0),
                    exclusive=bool(row.exclusive),
                    schedule_from=row.schedule_from,
                    schedule_to=row.schedule_to,
                    apply_to=row.apply_to,
                    quantity_ranges=[QuantityRange.model_validate(r) for r in ranges[row.id]],
                    items=[RuleItem.model_validate(i) for i in items[row.id]],
                    exclusions=[RuleExclusion.model_validate(e) for e in exclusions[row.id]],
                    conditions=_parse_conditions(row.conditions),
                    usage_limit=row.usage_limit,
                    usage_count=row.usage_count or 0,
                )
            )
        return rules

    async def _children(self, statement) -> Dict[int, list]:
        result = await self.session.exec(statement)
        grouped = defaultdict(list)
        for child in result.all():
            grouped[child.rule_id].append(child)
        return grouped
