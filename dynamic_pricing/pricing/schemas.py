from datetime import datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field

from dynamic_pricing.db.models import RuleStatus, utc_now


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"
    fixed_price = "fixed_price"


class ApplyTo(str, Enum):
    all_products = "all_products"
    specific_products = "specific_products"
    categories = "categories"
    tags = "tags"


"""
Rule and its parts
"""
class QuantityRange(BaseModel):
    min_quantity: int = 1
    max_quantity: Optional[int] = None  # None means no upper bound
    discount_type: str = DiscountType.percentage.value
    discount_value: float = 0

    class Config:
        from_attributes = True


class RuleItem(BaseModel):
    item_type: str  # "product", "category" or "tag"
    item_id: int

    class Config:
        from_attributes = True


class RuleExclusion(BaseModel):
    exclusion_type: str  # "product" or "category"
    exclusion_id: int

    class Config:
        from_attributes = True


class RuleCondition(BaseModel):
    type: Optional[str] = None
    operator: str = "equals"
    value: str = ""


class Rule(BaseModel):
    id: int
    name: str = ""
    rule_type: str = "price_rule"
    status: str = RuleStatus.active.value
    priority: int = 10
    discount_type: str = DiscountType.percentage.value
    discount_value: float = 0
    exclusive: bool = False
    schedule_from: Optional[datetime] = None
    schedule_to: Optional[datetime] = None
    apply_to: str = ApplyTo.all_products.value
    quantity_ranges: List[QuantityRange] = []
    items: List[RuleItem] = []
    exclusions: List[RuleExclusion] = []
    conditions: List[RuleCondition] = []
    usage_limit: Optional[int] = None
    usage_count: int = 0

    @property
    def is_exclusive(self) -> bool:
        return bool(self.exclusive)

    def has_exceeded_usage_limit(self) -> bool:
        if not self.usage_limit:
            return False
        return self.usage_count >= self.usage_limit


"""
Inputs handed to the resolver
"""
class ProductRef(BaseModel):
    id: int
    price: float = Field(ge=0)
    parent_id: Optional[int] = None
    category_ids: List[int] = []
    tag_ids: List[int] = []
    on_sale: bool = False


class CartLine(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=0)
    price: float  # current unit price
    original_price: Optional[float] = None  # unit price before a discount was applied
    is_gift: bool = False
    rule_id: Optional[int] = None
    category_ids: List[int] = []


class CartFee(BaseModel):
    name: str = ""
    amount: float


class CartSnapshot(BaseModel):
    items: List[CartLine] = []
    fees: List[CartFee] = []
    applied_coupons: List[str] = []

    @property
    def subtotal(self) -> float:
        return sum(item.price * item.quantity for item in self.items)

    @property
    def contents_count(self) -> int:
        return sum(item.quantity for item in self.items)


class CustomerContext(BaseModel):
    user_id: int
    email: Optional[str] = None
    roles: List[str] = []
    total_spent: float = 0
    order_count: int = 0


class PricingContext(BaseModel):
    now: datetime = Field(default_factory=utc_now)
    cart: Optional[CartSnapshot] = None
    customer: Optional[CustomerContext] = None  # None for anonymous shoppers


"""
Results
"""
class DiscountDecision(BaseModel):
    type: str = ""
    value: float = 0
    amount: float = 0
    final_price: float
    rule_id: int = 0
    rule_name: str = ""


class DiscountDescriptor(BaseModel):
    rule_id: int
    rule_name: str
    discount_type: str
    discount_value: float
    quantity_ranges: List[QuantityRange]
    exclusive: bool


class QuantityPriceRow(BaseModel):
    min_qty: int
    max_qty: Optional[int]
    discount_type: str
    discount_value: float
    original_price: float
    discounted_price: float
    savings: float
    savings_percent: int


class DiscountSummary(BaseModel):
    product_discounts: float = 0
    cart_discounts: float = 0
    gift_savings: float = 0
    total_savings: float = 0
    rules_applied: List[int] = []


"""
Request bodies
"""
class ProductPricingRequest(BaseModel):
    product: ProductRef
    quantity: int = 1
    context: PricingContext = Field(default_factory=PricingContext)


class CartSummaryRequest(BaseModel):
    cart: Optional[CartSnapshot] = None


class PriceResponse(BaseModel):
    price: float
