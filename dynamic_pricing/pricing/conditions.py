import logging
from typing import Any

from dynamic_pricing.scheduling.schedule import as_naive_utc
from .schemas import PricingContext, Rule, RuleCondition

logger = logging.getLogger(__name__)


def compare_values(left: Any, right: Any, operator: str) -> bool:
    if operator == "equals":
        return left == right
    if operator == "not_equals":
        return left != right
    if operator == "greater":
        return left > right
    if operator == "less":
        return left < right
    if operator == "greater_equal":
        return left >= right
    if operator == "less_equal":
        return left <= right
    return True


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


class ConditionEvaluator:
    """
    Extra eligibility checks attached to a rule.

    Every check reads the explicit `PricingContext` it was built with,
    so the same rule list gives the same answer for the same context.
    """

    def __init__(self, context: PricingContext | None = None):
        self.context = context or PricingContext()
        # calendar checks run on UTC wall time, like stored schedule windows
        self.now = as_naive_utc(self.context.now)

    def __call__(self, rule: Rule) -> bool:
        return self.check_rule_conditions(rule)

    def check_rule_conditions(self, rule: Rule) -> bool:
        for condition in rule.conditions:
            if not self.check_condition(condition):
                logger.debug(f"Rule {rule.id} condition {condition.type} not met")
                return False
        return True

    def check_condition(self, condition: RuleCondition) -> bool:
        if not condition.type:
            return True

        check = getattr(self, f"_check_{condition.type}", None)
        if check is None:
            # unknown condition types do not block a rule
            return True
        return check(condition.value, condition.operator)

    # customer conditions
    def _check_user_role(self, value: str, operator: str) -> bool:
        customer = self.context.customer
        if customer is None:
            return operator == "not_equals"
        has_role = value in customer.roles
        return not has_role if operator == "not_equals" else has_role

    def _check_user_logged_in(self, value: str, operator: str) -> bool:
        logged_in = self.context.customer is not None
        expected = value == "yes"
        return logged_in != expected if operator == "not_equals" else logged_in == expected

    def _check_specific_user(self, value: str, operator: str) -> bool:
        customer = self.context.customer
        if customer is None:
            return operator == "not_equals"
        if value.isdigit():
            matches = customer.user_id == int(value)
        else:
            matches = customer.email == value
        return not matches if operator == "not_equals" else matches

    def _check_total_spent(self, value: str, operator: str) -> bool:
        customer = self.context.customer
        if customer is None:
            return operator in ("less", "less_equal")
        return compare_values(customer.total_spent, _to_float(value), operator)

    def _check_order_count(self, value: str, operator: str) -> bool:
        customer = self.context.customer
        if customer is None:
            return operator in ("less", "less_equal") or (operator == "equals" and _to_int(value) == 0)
        return compare_values(customer.order_count, _to_int(value), operator)

    # cart conditions
    def _check_cart_total(self, value: str, operator: str) -> bool:
        cart = self.context.cart
        if cart is None:
            return False
        return compare_values(cart.subtotal, _to_float(value), operator)

    def _check_cart_items(self, value: str, operator: str) -> bool:
        cart = self.context.cart
        if cart is None:
            return False
        return compare_values(len(cart.items), _to_int(value), operator)

    def _check_cart_quantity(self, value: str, operator: str) -> bool:
        cart = self.context.cart
        if cart is None:
            return False
        return compare_values(cart.contents_count, _to_int(value), operator)

    def _check_product_in_cart(self, value: str, operator: str) -> bool:
        cart = self.context.cart
        if cart is None:
            return operator == "not_equals"
        in_cart = _to_int(value) in {item.product_id for item in cart.items}
        return not in_cart if operator == "not_equals" else in_cart

    def _check_category_in_cart(self, value: str, operator: str) -> bool:
        cart = self.context.cart
        if cart is None:
            return operator == "not_equals"
        category_id = _to_int(value)
        found = any(category_id in item.category_ids for item in cart.items)
        return not found if operator == "not_equals" else found

    def _check_coupon_applied(self, value: str, operator: str) -> bool:
        cart = self.context.cart
        if cart is None:
            return operator == "not_equals"
        applied = value.lower() in {code.lower() for code in cart.applied_coupons}
        return not applied if operator == "not_equals" else applied

    # calendar conditions
    def _check_weekday(self, value: str, operator: str) -> bool:
        # 1 (Monday) to 7 (Sunday)
        return compare_values(self.now.isoweekday(), _to_int(value), operator)

    def _check_time_range(self, value: str, operator: str) -> bool:
        parts = value.split("-")
        if len(parts) != 2:
            return True

        current = self.now.strftime("%H:%M")
        start, end = parts[0].strip(), parts[1].strip()
        in_range = start <= current <= end
        return not in_range if operator == "not_equals" else in_range
