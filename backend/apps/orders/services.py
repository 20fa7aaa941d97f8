"""
Order business logic.

Best practices demonstrated:
- Stock rows locked with select_for_update while reserved or returned
- Demand aggregated per variant before checking availability
- Customer projections recomputed after every order change
"""

import logging
from collections import OrderedDict

from django.db import transaction
from rest_framework import serializers

from apps.core.exceptions import ConflictError, InsufficientStockError, InvalidStateError
from apps.core.models import generate_id
from apps.customers.services import get_or_create_customer_for_order, recalculate_customer_stats
from apps.discounts.services import record_usage, validate_discount
from apps.products.models import ProductVariant, StockMovement
from apps.products.services import move_stock
from .models import Order, OrderItem, OrderStatusHistory, Shipment

logger = logging.getLogger(__name__)

CONTACT_MAP = {
    'name': 'customer_name',
    'phone': 'customer_phone',
    'email': 'customer_email',
    'address': 'shipping_address',
    'city': 'city',
    'zone': 'zone',
    'area': 'area',
}


def variant_demand(lines):
    """Sum requested quantities per variant; lines without a variant are ignored."""
    demand = OrderedDict()
    for variant_id, quantity in lines:
        if variant_id is None:
            continue
        demand[variant_id] = demand.get(variant_id, 0) + quantity
    return demand


def _lock_variants(variant_ids):
    return {
        variant.pk: variant
        for variant in ProductVariant.objects.select_for_update().filter(pk__in=variant_ids).order_by('pk')
    }


def _ensure_available(demand, variants):
    for variant_id, requested in demand.items():
        variant = variants.get(variant_id)
        available = variant.stock if variant else 0
        if requested > available:
            sku = variant.sku if variant else variant_id
            raise InsufficientStockError(
                f"Insufficient stock for variant {sku}. Available: {available}, Requested: {requested}",
                details=[{'variant_id': variant_id, 'available': available, 'requested': requested}],
            )


def check_stock(lines):
    """
    Raise InsufficientStockError naming the first variant whose stock
    cannot cover the summed demand. Locks the variant rows.
    """
    demand = variant_demand(lines)
    _ensure_available(demand, _lock_variants(demand.keys()))
    return demand


def reserve_stock(lines, order_id=None):
    """Check then decrement stock for ``(variant_id, quantity)`` pairs."""
    demand = variant_demand(lines)
    variants = _lock_variants(demand.keys())
    _ensure_available(demand, variants)
    for variant_id, quantity in demand.items():
        move_stock(variants[variant_id], -quantity, StockMovement.Type.RESERVED, order_id=order_id)


def release_stock(lines, order_id=None):
    """Give ``(variant_id, quantity)`` pairs back to stock."""
    demand = variant_demand(lines)
    variants = _lock_variants(demand.keys())
    for variant_id, quantity in demand.items():
        variant = variants.get(variant_id)
        if variant is not None:
            move_stock(variant, quantity, StockMovement.Type.RELEASED, order_id=order_id)


def _item_lines(items):
    """``(variant_id, quantity)`` pairs from validated payload items."""
    return [
        (item['variant'].pk if item.get('variant') else None, item['quantity'])
        for item in items
    ]


def _order_lines(order):
    return list(order.items.values_list('variant_id', 'quantity'))


def _contact(data):
    return {field: data.get(source) for field, source in CONTACT_MAP.items()}


def _create_items(order, items):
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=item['product'],
            variant=item.get('variant'),
            product_name=item['product'].name,
            variant_sku=item['variant'].sku if item.get('variant') else None,
            quantity=item['quantity'],
            price=item['price'],
        )
        for item in items
    ])


def _resolve_discount(code, items, shipping_charge, customer_phone):
    """Validate ``code`` against the order's lines and return the discount and amount."""
    cart = [
        {'id': item['product'].pk, 'price': item['price'], 'quantity': item['quantity']}
        for item in items
    ]
    subtotal = Order.compute_total(cart, 0, 0)
    result = validate_discount(
        code,
        total=subtotal + shipping_charge,
        items=cart,
        shipping_cost=shipping_charge,
        customer_phone=customer_phone,
    )
    if not result['valid']:
        raise serializers.ValidationError({'discount_code': result['error']})
    return result['discount'], result['discount_amount']


@transaction.atomic
def create_order(data):
    """
    Create an order from a validated payload.

    Stock is checked for every line first; nothing is written when any
    variant falls short.
    """
    items = data.pop('items')
    code = data.pop('discount_code', None) or None

    order_id = generate_id(Order.id_prefix)
    reserve_stock(_item_lines(items), order_id=order_id)

    customer = get_or_create_customer_for_order(_contact(data))

    discount = None
    if code:
        discount, data['discount_amount'] = _resolve_discount(
            code, items, data.get('shipping_charge', 0), data['customer_phone']
        )

    order = Order(id=order_id, customer=customer, discount_code=code, **data)
    order.total_amount = Order.compute_total(items, order.shipping_charge, order.discount_amount)
    order.save(force_insert=True)
    _create_items(order, items)

    OrderStatusHistory.objects.create(order=order, status=order.status, notes='Order created')

    if discount is not None:
        record_usage(discount, order, order.discount_amount, customer)

    recalculate_customer_stats(customer.pk)
    logger.info(f"Order {order.pk} created for {order.customer_phone}: {order.total_amount}")
    return order


@transaction.atomic
def update_order(order, data):
    """
    Replace an order's details and items.

    Old items return their stock before the new items are checked.
    """
    items = data.pop('items')
    data.pop('discount_code', None)
    previous_customer_id = order.customer_id
    previous_phone = order.customer_phone

    release_stock(_order_lines(order), order_id=order.pk)
    reserve_stock(_item_lines(items), order_id=order.pk)

    for attr, value in data.items():
        setattr(order, attr, value)

    if order.customer_id is None or order.customer_phone != previous_phone:
        order.customer = get_or_create_customer_for_order(_contact(data))

    order.total_amount = Order.compute_total(items, order.shipping_charge, order.discount_amount)
    order.save()

    order.items.all().delete()
    _create_items(order, items)

    recalculate_customer_stats(previous_customer_id, order.customer_id)
    logger.info(f"Order {order.pk} updated")
    return order


def soft_delete_order(order):
    """Move the order to the trash and give its stock back."""
    release_stock(_order_lines(order), order_id=order.pk)
    order.delete()
    recalculate_customer_stats(order.customer_id)


def check_restorable(order):
    try:
        check_stock(_order_lines(order))
    except InsufficientStockError as e:
        raise ConflictError(f"Cannot restore order: {e.detail}", details=e.details)


def restore_order(order):
    """Take the order's stock again and bring it back from the trash."""
    try:
        reserve_stock(_order_lines(order), order_id=order.pk)
    except InsufficientStockError as e:
        raise ConflictError(f"Cannot restore order: {e.detail}", details=e.details)
    order.restore()
    recalculate_customer_stats(order.customer_id)


def permanently_delete_order(order):
    customer_id = order.customer_id
    order.hard_delete()
    recalculate_customer_stats(customer_id)


@transaction.atomic
def change_status(order, status, notes=''):
    order.status = status
    order.save(update_fields=['status', 'updated_at'])
    OrderStatusHistory.objects.create(order=order, status=status, notes=notes)
    logger.info(f"Order {order.pk} status changed to {status}")
    return order


@transaction.atomic
def ship_order(order, carrier, tracking_number):
    """Record a shipment and mark the order shipped and fulfilled."""
    if order.status in Order.VOID_STATUSES:
        raise InvalidStateError(f'Cannot ship an order with status {order.status}')
    if order.fulfillment_status == Order.FulfillmentStatus.COMPLETE:
        raise InvalidStateError('Order has already been fulfilled')

    shipment = Shipment.objects.create(order=order, carrier=carrier, tracking_number=tracking_number)

    order.status = Order.Status.SHIPPED
    order.fulfillment_status = Order.FulfillmentStatus.COMPLETE
    order.save(update_fields=['status', 'fulfillment_status', 'updated_at'])
    OrderStatusHistory.objects.create(
        order=order,
        status=order.status,
        notes=f'Shipped with {carrier} ({tracking_number})'
    )
    logger.info(f"Order {order.pk} shipped with {carrier}")
    return shipment
