"""
Customer business logic shared by the customer and order endpoints.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Max, Sum

from .models import Customer, CustomerHistory

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('name', 'email', 'phone', 'address', 'city', 'zone', 'area')


def record_history(customer, change_type):
    """Append a snapshot of the customer's current contact details."""
    return CustomerHistory.objects.create(
        customer=customer,
        change_type=change_type,
        **{field: getattr(customer, field) for field in CONTACT_FIELDS}
    )


def calculate_customer_stats(customer_id):
    """Aggregate the customer's non-deleted orders."""
    from apps.orders.models import Order

    stats = Order.objects.active().filter(customer_id=customer_id).aggregate(
        total_orders=Count('id'),
        total_spent=Sum('total_amount'),
        last_order_at=Max('created_at'),
    )
    return {
        'total_orders': stats['total_orders'] or 0,
        'total_spent': stats['total_spent'] or Decimal('0.00'),
        'last_order_at': stats['last_order_at'],
    }


def recalculate_customer_stats(*customer_ids):
    """
    Recompute the stored order projections of the given customers.

    Writes with ``update()`` so the customer's own ``updated_at`` only
    moves when its contact details change.
    """
    for customer_id in {pk for pk in customer_ids if pk}:
        stats = calculate_customer_stats(customer_id)
        Customer.objects.filter(pk=customer_id).update(**stats)


def get_or_create_customer_for_order(contact):
    """
    Find the live customer with ``contact['phone']`` or create one.

    Existing customers get their contact details refreshed from the
    order and an ``updated`` history row, even when nothing changed.
    """
    customer = Customer.objects.active().filter(phone=contact['phone']).first()

    if customer is None:
        customer = Customer.objects.create(**contact)
        record_history(customer, CustomerHistory.ChangeType.CREATED)
        logger.info(f"Customer {customer.pk} created from order for {customer.phone}")
        return customer

    changed = False
    for field, value in contact.items():
        if value not in (None, '') and getattr(customer, field) != value:
            setattr(customer, field, value)
            changed = True
    if changed:
        customer.save()
    record_history(customer, CustomerHistory.ChangeType.UPDATED)
    return customer


@transaction.atomic
def sync_customers_from_orders():
    """
    Create customers for orders that have none, grouped by phone,
    link the orders and recompute every customer's projections.
    """
    from apps.orders.models import Order

    orphaned = Order.objects.active().filter(customer__isnull=True).order_by('-created_at')

    latest_by_phone = {}
    for order in orphaned:
        latest_by_phone.setdefault(order.customer_phone, order)

    new_customers = 0
    linked_orders = 0
    for phone, order in latest_by_phone.items():
        customer = Customer.objects.active().filter(phone=phone).first()
        if customer is None:
            customer = Customer.objects.create(**order.contact_details())
            record_history(customer, CustomerHistory.ChangeType.CREATED)
            new_customers += 1
        linked_orders += Order.objects.filter(
            customer__isnull=True, customer_phone=phone
        ).update(customer=customer)

    customer_ids = list(Customer.objects.active().values_list('pk', flat=True))
    recalculate_customer_stats(*customer_ids)

    logger.info(
        f"Customer sync: {new_customers} created, {linked_orders} orders linked, "
        f"{len(customer_ids)} recalculated"
    )
    return {
        'new_customers': new_customers,
        'linked_orders': linked_orders,
        'updated_customers': len(customer_ids),
    }
