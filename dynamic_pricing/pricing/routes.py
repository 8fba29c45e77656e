from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List

from dynamic_pricing.db.main import get_session

from .schemas import (
    CartSummaryRequest,
    DiscountDecision,
    DiscountDescriptor,
    DiscountSummary,
    PriceResponse,
    ProductPricingRequest,
    QuantityPriceRow,
)
from .resolver import cart_discount_summary
from .service import PricingService

pricing_router = APIRouter()


@pricing_router.post("/best-discount", response_model=DiscountDecision)
async def best_discount(data: ProductPricingRequest, session: AsyncSession = Depends(get_session)):
    service = PricingService(session)
    return await service.best_discount(data.product, data.quantity, data.context)


@pricing_router.post("/discounts", response_model=List[DiscountDescriptor])
async def all_discounts(data: ProductPricingRequest, session: AsyncSession = Depends(get_session)):
    service = PricingService(session)
    return await service.all_discounts(data.product, data.context)


@pricing_router.post("/price-for-quantity", response_model=PriceResponse)
async def price_for_quantity(data: ProductPricingRequest, session: AsyncSession = Depends(get_session)):
    service = PricingService(session)
    price = await service.price_for_quantity(data.product, data.quantity, data.context)
    return PriceResponse(price=price)


@pricing_router.post("/quantity-table", response_model=List[QuantityPriceRow])
async def quantity_table(data: ProductPricingRequest, session: AsyncSession = Depends(get_session)):
    service = PricingService(session)
    return await service.quantity_price_table(data.product, data.context)


@pricing_router.post("/cart-summary", response_model=DiscountSummary)
async def cart_summary(data: CartSummaryRequest):
    return cart_discount_summary(data.cart)
