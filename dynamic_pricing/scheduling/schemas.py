from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel


class ScheduledRuleResponse(BaseModel):
    id: int
    name: str
    rule_type: str
    status: str
    priority: int
    schedule_from: Optional[datetime] = None
    schedule_to: Optional[datetime] = None

    class Config:
        from_attributes = True


class RuleTiming(BaseModel):
    rule_id: int
    status: str
    lifecycle_state: str
    is_scheduled_active: bool
    seconds_until_start: Optional[float] = None
    seconds_until_end: Optional[float] = None


class TransitionResult(BaseModel):
    activated: int = 0
    expired: int = 0


class CleanupResult(BaseModel):
    expired: int = 0
    orphans_removed: Dict[str, int] = {}
