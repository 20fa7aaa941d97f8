"""
Stock bookkeeping for product variants.

Best practices demonstrated:
- Every stock change leaves a StockMovement audit row
- Variant rows are locked before an adjustment reads them
- Stock is clamped at zero instead of going negative
"""

import logging

from django.db import transaction

from .models import Product, ProductVariant, StockMovement

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5


def record_movement(variant, movement_type, previous_stock, quantity, **fields):
    """Write the audit row for a change the caller already applied."""
    return StockMovement.objects.create(
        variant=variant,
        type=movement_type,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=variant.stock,
        **fields
    )


def move_stock(variant, delta, movement_type, order_id=None, reason='', notes='', user=None):
    """
    Apply ``delta`` to a variant the caller holds locked and log it.

    The recorded quantity is the requested delta even when the clamp
    at zero absorbs part of it.
    """
    previous_stock = variant.stock
    variant.stock = max(previous_stock + delta, 0)
    ProductVariant.objects.filter(pk=variant.pk).update(stock=variant.stock)
    return record_movement(
        variant, movement_type, previous_stock, delta,
        order_id=order_id, reason=reason, notes=notes, created_by=user,
    )


@transaction.atomic
def adjust_stock(variant, delta, reason, notes='', user=None):
    """
    Manual adjustment: received goods, count corrections, write-offs.

    Returns the movement; ``movement.previous_stock`` and
    ``movement.new_stock`` describe the change.
    """
    variant = ProductVariant.objects.select_for_update().get(pk=variant.pk)
    movement = move_stock(
        variant, delta, StockMovement.Type.ADJUSTED,
        reason=reason, notes=notes, user=user,
    )
    logger.info(
        f"Stock of {variant.sku} adjusted by {delta:+d} ({reason}): "
        f"{movement.previous_stock} -> {movement.new_stock}"
    )
    if delta < 0 and variant.stock <= LOW_STOCK_THRESHOLD:
        logger.warning(f"Variant {variant.sku} is low on stock: {variant.stock} left")
    return movement


def low_stock_variants(threshold=LOW_STOCK_THRESHOLD):
    """Variants of live, active products at or below ``threshold``."""
    live_products = Product.objects.active().filter(is_active=True)
    return (
        ProductVariant.objects
        .select_related('product')
        .filter(product__in=live_products, stock__lte=threshold)
        .order_by('stock', 'sku')
    )
