from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List

from dynamic_pricing.config import Config
from dynamic_pricing.db.main import get_session

from .schemas import CleanupResult, RuleTiming, ScheduledRuleResponse, TransitionResult
from .service import ScheduleService

schedule_router = APIRouter()


@schedule_router.get("/upcoming", response_model=List[ScheduledRuleResponse])
async def upcoming_rules(
    limit: int = Query(Config.UPCOMING_RULES_LIMIT, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    service = ScheduleService(session)
    return await service.get_upcoming_rules(limit=limit)


@schedule_router.get("/expiring", response_model=List[ScheduledRuleResponse])
async def expiring_rules(
    days: int = Query(Config.EXPIRING_LOOKAHEAD_DAYS, ge=0, le=365),
    session: AsyncSession = Depends(get_session),
):
    service = ScheduleService(session)
    return await service.get_expiring_rules(days=days)


@schedule_router.get("/rules/{rule_id}", response_model=RuleTiming)
async def rule_timing(rule_id: int, session: AsyncSession = Depends(get_session)):
    service = ScheduleService(session)
    return await service.get_rule_timing(rule_id)


@schedule_router.post("/check", response_model=TransitionResult)
async def check_scheduled_rules(session: AsyncSession = Depends(get_session)):
    service = ScheduleService(session)
    return await service.check_scheduled_rules()


@schedule_router.post("/cleanup", response_model=CleanupResult)
async def daily_cleanup(session: AsyncSession = Depends(get_session)):
    service = ScheduleService(session)
    return await service.daily_cleanup()
