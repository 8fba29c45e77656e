import logging

from .schemas import ApplyTo, ProductRef, Rule

logger = logging.getLogger(__name__)


def is_product_excluded(rule: Rule, product: ProductRef) -> bool:
    product_ids = {product.id}
    if product.parent_id:
        product_ids.add(product.parent_id)
    categories = set(product.category_ids)

    for exclusion in rule.exclusions:
        if exclusion.exclusion_type == "product" and exclusion.exclusion_id in product_ids:
            return True
        if exclusion.exclusion_type == "category" and exclusion.exclusion_id in categories:
            return True
    return False


def _item_ids(rule: Rule, item_type: str) -> set[int]:
    return {item.item_id for item in rule.items if item.item_type == item_type}


def applies_to_product(rule: Rule, product: ProductRef, apply_to_sale_products: bool = False) -> bool:
    """
    Check whether `rule` targets `product`.

    Exclusions win over every apply-to mode. Variations match through
    their parent id for product targeting and exclusions.
    """
    if is_product_excluded(rule, product):
        logger.debug(f"Rule {rule.id} excludes product {product.id}")
        return False

    if not apply_to_sale_products and product.on_sale:
        return False

    if rule.apply_to == ApplyTo.all_products:
        return True

    if rule.apply_to == ApplyTo.specific_products:
        product_ids = _item_ids(rule, "product")
        if product.id in product_ids:
            return True
        return bool(product.parent_id) and product.parent_id in product_ids

    if rule.apply_to == ApplyTo.categories:
        return bool(_item_ids(rule, "category") & set(product.category_ids))

    if rule.apply_to == ApplyTo.tags:
        return bool(_item_ids(rule, "tag") & set(product.tag_ids))

    return False
