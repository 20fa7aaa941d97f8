"""
Discount validation and amount calculation.

Best practices demonstrated:
- Decimal arithmetic for money, rounded to cents once at the end
- Pure calculation separated from database lookups
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Q
from django.utils import timezone

from .models import Discount, DiscountUsage

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')


def _money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def applicable_product_ids(discount):
    """Products the discount is restricted to (empty set means all)."""
    product_ids = set(discount.product_links.values_list('product_id', flat=True))
    for link in discount.collection_links.select_related('collection'):
        product_ids.update(link.collection.product_ids())
    return product_ids


def calculate_discount_amount(discount, total, items=None, shipping_cost=ZERO, product_ids=None):
    """
    Amount a validated discount takes off a cart.

    ``total`` includes shipping. Free shipping discounts the shipping
    cost; order discounts apply to the subtotal; product discounts apply
    to the applicable items, or the whole subtotal when none match.
    The result never exceeds its base.
    """
    total = Decimal(total)
    shipping_cost = Decimal(shipping_cost)
    items = items or []

    if discount.type == Discount.Type.FREE_SHIPPING:
        return _money(shipping_cost)

    subtotal = max(total - shipping_cost, ZERO)
    base = subtotal

    if discount.type == Discount.Type.AMOUNT_OFF_PRODUCTS and items:
        if product_ids is None:
            product_ids = applicable_product_ids(discount)
        applicable = sum(
            (Decimal(item['price']) * int(item['quantity'])
             for item in items if item['id'] in product_ids),
            ZERO
        )
        if applicable > 0 and product_ids:
            base = applicable

    if discount.value_type == Discount.ValueType.PERCENTAGE:
        return _money(min(base, base * discount.discount_value / Decimal('100')))
    if discount.value_type == Discount.ValueType.FIXED_AMOUNT:
        return _money(min(base, discount.discount_value))
    return _money(ZERO)


def find_redeemable_discount(code, now=None):
    """Active, non-deleted discount whose window contains ``now``."""
    now = now or timezone.now()
    return (
        Discount.objects.active()
        .filter(code=code, is_active=True, start_date__lte=now)
        .filter(Q(end_date__isnull=True) | Q(end_date__gt=now))
        .first()
    )


def validate_discount(code, total=None, items=None, shipping_cost=ZERO, customer_phone=None, now=None):
    """
    Check whether ``code`` can be applied to a cart.

    Returns ``{'valid': True, 'discount': Discount, 'discount_amount': Decimal}``
    or ``{'valid': False, 'error': str}`` (plus the violated limit where useful).
    """
    items = items or []
    discount = find_redeemable_discount(code, now)
    if discount is None:
        return {'valid': False, 'error': 'Invalid discount code'}

    if discount.min_purchase_amount and total is not None and Decimal(total) < discount.min_purchase_amount:
        return {
            'valid': False,
            'error': f'Minimum purchase amount of {discount.min_purchase_amount} not met',
            'min_purchase_amount': discount.min_purchase_amount,
        }

    if discount.min_quantity:
        quantity = sum(int(item['quantity']) for item in items)
        if quantity < discount.min_quantity:
            return {
                'valid': False,
                'error': f'Minimum quantity of {discount.min_quantity} items not met',
                'min_quantity': discount.min_quantity,
            }

    if discount.max_uses and discount.usages.count() >= discount.max_uses:
        return {'valid': False, 'error': 'Discount code has reached its usage limit'}

    if discount.limit_one_per_customer and customer_phone:
        used = DiscountUsage.objects.filter(
            discount=discount,
            order__customer_phone=customer_phone,
        ).exists()
        if used:
            return {'valid': False, 'error': 'This discount code can only be used once per customer'}

    product_ids = None
    if discount.type == Discount.Type.AMOUNT_OFF_PRODUCTS:
        product_ids = applicable_product_ids(discount)
        if product_ids and items and not any(item['id'] in product_ids for item in items):
            return {'valid': False, 'error': 'Discount code is not applicable to the items in your cart'}

    amount = calculate_discount_amount(
        discount,
        total if total is not None else ZERO,
        items,
        shipping_cost,
        product_ids,
    )
    return {'valid': True, 'discount': discount, 'discount_amount': amount}


def combinability(discount):
    """Which other discount kinds this one may be stacked with."""
    return {
        'with_product_discounts': (
            discount.type == Discount.Type.FREE_SHIPPING
            or discount.combine_with_product_discounts
        ),
        'with_order_discounts': (
            discount.type == Discount.Type.AMOUNT_OFF_PRODUCTS
            or discount.combine_with_order_discounts
        ),
        'with_shipping_discounts': (
            discount.type in (Discount.Type.AMOUNT_OFF_ORDER, Discount.Type.AMOUNT_OFF_PRODUCTS)
            or discount.combine_with_shipping_discounts
        ),
    }


def record_usage(discount, order, amount, customer=None):
    usage = DiscountUsage.objects.create(
        discount=discount,
        order=order,
        customer=customer,
        amount_discounted=amount,
    )
    logger.info(f"Discount {discount.code} used on order {order.pk}: {amount}")
    return usage
