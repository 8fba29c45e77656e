import logging
from typing import Callable, Iterable, List, Optional

from dynamic_pricing.db.models import RuleStatus
from .calculator import calculate_discount, discounted_price, savings_percent
from .schemas import (
    CartSnapshot,
    DiscountDecision,
    DiscountDescriptor,
    DiscountSummary,
    ProductRef,
    QuantityPriceRow,
    Rule,
)
from .targeting import applies_to_product

logger = logging.getLogger(__name__)

ConditionCheck = Callable[[Rule], bool]


def _always(rule: Rule) -> bool:
    return True


def normalize_quantity(quantity) -> int:
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity >= 1 else 1


def effective_discount(rule: Rule, quantity: int) -> tuple[str, float]:
    """
    Discount type and value a rule gives at `quantity`.

    The first tier containing the quantity overrides the rule's own
    discount; without a matching tier the rule's own discount applies.
    """
    for tier in rule.quantity_ranges:
        upper = tier.max_quantity if tier.max_quantity else None
        if quantity >= tier.min_quantity and (upper is None or quantity <= upper):
            return tier.discount_type, tier.discount_value
    return rule.discount_type, rule.discount_value


class DiscountResolver:
    """Picks discounts for products out of an ordered list of price rules.

    `rules` must already be in priority order; nothing here re-sorts them.
    `conditions_met` is the extra eligibility predicate, usually a
    `ConditionEvaluator` bound to the shopper's context.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        conditions_met: Optional[ConditionCheck] = None,
        apply_to_sale_products: bool = False,
    ):
        self.rules = list(rules)
        self.conditions_met = conditions_met or _always
        self.apply_to_sale_products = apply_to_sale_products

    def is_eligible(self, rule: Rule, product: ProductRef) -> bool:
        if rule.status != RuleStatus.active:
            return False
        if not applies_to_product(rule, product, self.apply_to_sale_products):
            return False
        if not self.conditions_met(rule):
            logger.debug(f"Rule {rule.id} conditions not met for product {product.id}")
            return False
        return True

    def eligible_rules(self, product: ProductRef) -> List[Rule]:
        return [rule for rule in self.rules if self.is_eligible(rule, product)]

    def best_discount_for_product(self, product: ProductRef, quantity: int = 1) -> DiscountDecision:
        quantity = normalize_quantity(quantity)
        original_price = float(product.price)
        best = DiscountDecision(final_price=original_price)

        for rule in self.rules:
            if not self.is_eligible(rule, product):
                continue

            discount_type, discount_value = effective_discount(rule, quantity)
            amount = calculate_discount(original_price, discount_type, discount_value)

            if amount > best.amount:
                best = DiscountDecision(
                    type=discount_type,
                    value=discount_value,
                    amount=amount,
                    final_price=discounted_price(original_price, amount),
                    rule_id=rule.id,
                    rule_name=rule.name,
                )
                logger.debug(f"Rule {rule.id} leads for product {product.id}: discount {amount:.2f} (qty {quantity})")

                if rule.is_exclusive:
                    logger.debug(f"Rule {rule.id} is exclusive, skipping remaining rules")
                    break

        return best

    def all_discounts_for_product(self, product: ProductRef) -> List[DiscountDescriptor]:
        return [
            DiscountDescriptor(
                rule_id=rule.id,
                rule_name=rule.name,
                discount_type=rule.discount_type,
                discount_value=rule.discount_value,
                quantity_ranges=rule.quantity_ranges,
                exclusive=rule.is_exclusive,
            )
            for rule in self.eligible_rules(product)
        ]

    def price_for_quantity(self, product: ProductRef, quantity: int) -> float:
        return self.best_discount_for_product(product, quantity).final_price

    def quantity_price_table(self, product: ProductRef) -> List[QuantityPriceRow]:
        # Only the first eligible rule with tiers is shown
        original_price = float(product.price)

        for rule in self.rules:
            if not rule.quantity_ranges or not self.is_eligible(rule, product):
                continue

            rows = []
            for tier in rule.quantity_ranges:
                amount = calculate_discount(original_price, tier.discount_type, tier.discount_value)
                rows.append(
                    QuantityPriceRow(
                        min_qty=tier.min_quantity,
                        max_qty=tier.max_quantity,
                        discount_type=tier.discount_type,
                        discount_value=tier.discount_value,
                        original_price=original_price,
                        discounted_price=discounted_price(original_price, amount),
                        savings=amount,
                        savings_percent=savings_percent(original_price, amount),
                    )
                )
            return rows

        return []

    def cart_discount_summary(self, cart: Optional[CartSnapshot]) -> DiscountSummary:
        return cart_discount_summary(cart)


def cart_discount_summary(cart: Optional[CartSnapshot]) -> DiscountSummary:
    """
    Savings already present in a cart.

    Product savings are floored at zero per line, gift savings are not.
    Only negative fees count as cart discounts.
    """
    summary = DiscountSummary()
    if cart is None:
        return summary

    rules_applied: List[int] = []

    for item in cart.items:
        if item.original_price is not None:
            line_savings = (item.original_price - item.price) * item.quantity
            summary.product_discounts += max(0, line_savings)

        if item.is_gift:
            original = item.original_price if item.original_price is not None else 0
            summary.gift_savings += (original - item.price) * item.quantity

        if item.rule_id and item.rule_id not in rules_applied:
            rules_applied.append(item.rule_id)

    for fee in cart.fees:
        if fee.amount < 0:
            summary.cart_discounts += abs(fee.amount)

    summary.total_savings = summary.product_discounts + summary.cart_discounts + summary.gift_savings
    summary.rules_applied = rules_applied
    return summary
