from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import Column, String, Integer, Boolean, Numeric, DateTime, Text
from enum import Enum


def utc_now() -> datetime:
    # every stored timestamp and schedule window is naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RuleStatus(str, Enum):
    scheduled = "scheduled"
    active = "active"
    expired = "expired"
    inactive = "inactive"


"""
___________________________________________________

1.  Pricing Rule Table
___________________________________________________

"""
class PricingRule(SQLModel, table=True):
    __tablename__ = "pricing_rules"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    rule_type: str = Field(default="price_rule", sa_column=Column(String(50), nullable=False, index=True, default="price_rule"))
    status: str = Field(default=RuleStatus.active.value, sa_column=Column(String(20), nullable=False, index=True, default=RuleStatus.active.value))
    priority: int = Field(default=10, sa_column=Column(Integer, nullable=False, default=10))
    discount_type: str = Field(sa_column=Column(String(50), nullable=False))  # "percentage", "fixed" or "fixed_price"
    discount_value: float = Field(default=0, sa_column=Column(Numeric(19, 4), nullable=False, default=0))
    apply_to: str = Field(default="all_products", sa_column=Column(String(50), nullable=False, default="all_products"))
    conditions: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))  # JSON list
    schedule_from: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True, index=True))
    schedule_to: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True, index=True))
    usage_limit: Optional[int] = None
    usage_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    exclusive: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, default=utc_now))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, default=utc_now))

    def __repr__(self):
        return f"<PricingRule {self.id} {self.name} ({self.status})>"


"""
___________________________________________________

2.  Rule child tables

    Child rows reference their rule by a plain rule_id column,
    the daily orphan sweep keeps them consistent.
___________________________________________________

"""
class QuantityRange(SQLModel, table=True):
    __tablename__ = "quantity_ranges"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    min_quantity: int = Field(default=1, sa_column=Column(Integer, nullable=False, default=1))
    max_quantity: Optional[int] = None
    discount_type: str = Field(default="percentage", sa_column=Column(String(50), nullable=False, default="percentage"))
    discount_value: float = Field(default=0, sa_column=Column(Numeric(19, 4), nullable=False, default=0))


class RuleItem(SQLModel, table=True):
    __tablename__ = "rule_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    item_type: str = Field(sa_column=Column(String(50), nullable=False))  # "product", "category" or "tag"
    item_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))


class RuleExclusion(SQLModel, table=True):
    __tablename__ = "rule_exclusions"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    exclusion_type: str = Field(sa_column=Column(String(50), nullable=False))  # "product" or "category"
    exclusion_id: int = Field(sa_column=Column(Integer, nullable=False))


class GiftProduct(SQLModel, table=True):
    __tablename__ = "gift_products"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    product_id: int = Field(sa_column=Column(Integer, nullable=False))
    quantity: int = Field(default=1, sa_column=Column(Integer, nullable=False, default=1))
    discount_type: str = Field(default="percentage", sa_column=Column(String(50), nullable=False, default="percentage"))
    discount_value: float = Field(default=100, sa_column=Column(Numeric(19, 4), nullable=False, default=100))


# tables swept by the orphan cleanup, in deletion order
RULE_CHILD_TABLES = (QuantityRange, RuleItem, RuleExclusion, GiftProduct)
