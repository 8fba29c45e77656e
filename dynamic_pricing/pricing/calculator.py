from decimal import Decimal, ROUND_HALF_UP

from .schemas import DiscountType


def calculate_discount(price: float, discount_type: str, discount_value: float) -> float:
    """
    Return the discount amount a discount shape takes off `price`.

    - percentage: `discount_value` percent of the price
    - fixed: `discount_value` as given, callers clamp the final price
    - fixed_price: the item sells at `discount_value`; a target above the price gives 0
    - anything else: no discount
    """
    price = float(price or 0)
    value = float(discount_value or 0)

    if discount_type == DiscountType.percentage:
        return price * (value / 100)
    if discount_type == DiscountType.fixed:
        return value
    if discount_type == DiscountType.fixed_price:
        return max(0.0, price - value)
    return 0.0


def discounted_price(price: float, discount_amount: float) -> float:
    return max(0.0, float(price) - float(discount_amount))


def savings_percent(original_price: float, discount_amount: float) -> int:
    # Whole percent, half rounds up
    if not original_price or original_price <= 0:
        return 0
    ratio = Decimal(str(discount_amount)) / Decimal(str(original_price)) * 100
    return int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
