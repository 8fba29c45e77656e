import logging
from typing import List

from sqlmodel.ext.asyncio.session import AsyncSession

from dynamic_pricing.config import Config
from .conditions import ConditionEvaluator
from .resolver import DiscountResolver
from .schemas import (
    DiscountDecision,
    DiscountDescriptor,
    PricingContext,
    ProductRef,
    QuantityPriceRow,
)
from .store import RuleStore

logger = logging.getLogger(__name__)


class PricingService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.store = RuleStore(session)

    async def _resolver(self, context: PricingContext) -> DiscountResolver:
        rules = await self.store.get_active_rules("price_rule", context.now)
        logger.debug(f"Resolving against {len(rules)} active price rules")
        return DiscountResolver(
            rules,
            conditions_met=ConditionEvaluator(context),
            apply_to_sale_products=Config.APPLY_TO_SALE_PRODUCTS,
        )

    async def best_discount(self, product: ProductRef, quantity: int, context: PricingContext) -> DiscountDecision:
        resolver = await self._resolver(context)
        return resolver.best_discount_for_product(product, quantity)

    async def all_discounts(self, product: ProductRef, context: PricingContext) -> List[DiscountDescriptor]:
        resolver = await self._resolver(context)
        return resolver.all_discounts_for_product(product)

    async def price_for_quantity(self, product: ProductRef, quantity: int, context: PricingContext) -> float:
        resolver = await self._resolver(context)
        return resolver.price_for_quantity(product, quantity)

    async def quantity_price_table(self, product: ProductRef, context: PricingContext) -> List[QuantityPriceRow]:
        resolver = await self._resolver(context)
        return resolver.quantity_price_table(product)
