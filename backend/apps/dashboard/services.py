"""
Dashboard aggregations.

Best practices demonstrated:
- Aggregates computed in the database with conditional counts
- Short-lived cache in front of every aggregation
- Revenue excludes cancelled and returned orders
"""

import logging
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.customers.models import Customer
from apps.orders.models import Order
from apps.products.models import Category, Product, ProductVariant
from apps.products.services import LOW_STOCK_THRESHOLD

logger = logging.getLogger(__name__)

STATUS_BUCKETS = {
    'delivered': (Order.Status.DELIVERED,),
    'processing': (Order.Status.PENDING, Order.Status.PROCESSING, Order.Status.CONFIRMED),
    'shipping': (Order.Status.SHIPPED,),
    'cancelled': Order.VOID_STATUSES,
}


def cached(key, builder):
    """Return ``cache[key]``, building and storing it on a miss."""
    data = cache.get(key)
    if data is None:
        data = builder()
        cache.set(key, data, settings.DASHBOARD_CACHE_TIMEOUT)
    return data


def growth(current, last):
    """Whole-number percentage change; 0 when there is nothing to compare with."""
    if not last:
        return 0
    change = (Decimal(current) - Decimal(last)) / Decimal(last) * 100
    return int(change.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def month_bounds(now=None):
    """Start of the current month and of the previous one."""
    now = timezone.localtime(now or timezone.now())
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month = (this_month - timedelta(days=1)).replace(day=1)
    return this_month, last_month


def revenue_orders():
    return Order.objects.active().exclude(status__in=Order.VOID_STATUSES)


def _build_dashboard_stats():
    this_month, last_month = month_bounds()

    current = revenue_orders().filter(created_at__gte=this_month).aggregate(
        orders=Count('id'),
        revenue=Sum('total_amount'),
    )
    previous = revenue_orders().filter(
        created_at__gte=last_month, created_at__lt=this_month
    ).aggregate(
        orders=Count('id'),
        revenue=Sum('total_amount'),
    )
    order_status = Order.objects.active().filter(created_at__gte=this_month).aggregate(**{
        bucket: Count('id', filter=Q(status__in=statuses))
        for bucket, statuses in STATUS_BUCKETS.items()
    })

    current_revenue = current['revenue'] or Decimal('0')
    previous_revenue = previous['revenue'] or Decimal('0')

    return {
        'total_products': Product.objects.active().filter(is_active=True).count(),
        'total_customers': Customer.objects.active().count(),
        'total_revenue': revenue_orders().aggregate(total=Sum('total_amount'))['total'] or Decimal('0'),
        'current_month': {
            'orders': current['orders'],
            'revenue': current_revenue,
            'order_growth': growth(current['orders'], previous['orders']),
            'revenue_growth': growth(current_revenue, previous_revenue),
            'order_status': order_status,
        },
        'last_month': {
            'orders': previous['orders'],
            'revenue': previous_revenue,
        },
    }


def get_dashboard_stats():
    return cached('dashboard:stats', _build_dashboard_stats)


def get_recent_orders(limit=5):
    return list(
        Order.objects.active()
        .order_by('-created_at', '-pk')
        .values('id', 'customer_name', 'total_amount', 'status', 'created_at')[:limit]
    )


def _build_product_stats():
    products = Product.objects.active()
    variants = ProductVariant.objects.filter(product__deleted_at__isnull=True)
    return {
        'total_products': products.count(),
        'active_products': products.filter(is_active=True).count(),
        'inactive_products': products.filter(is_active=False).count(),
        'products_with_images': products.filter(images__is_primary=True).distinct().count(),
        'out_of_stock_variants': variants.filter(stock=0).count(),
        'low_stock_variants': variants.filter(stock__gt=0, stock__lte=LOW_STOCK_THRESHOLD).count(),
        'categories_count': Category.objects.active().count(),
    }


def get_product_stats():
    return cached('dashboard:products', _build_product_stats)


def _build_category_stats():
    categories = Category.objects.active().annotate(
        product_count=Count('products', filter=Q(products__deleted_at__isnull=True))
    ).order_by('-product_count', 'name')
    return {
        'total_categories': categories.count(),
        'categories_with_images': categories.filter(image_url__isnull=False).exclude(image_url='').count(),
        'total_products': Product.objects.active().count(),
        'categories': [
            {'id': category.pk, 'name': category.name, 'product_count': category.product_count}
            for category in categories
        ],
    }


def get_category_stats():
    return cached('dashboard:categories', _build_category_stats)


def get_daily_activity(days=30):
    """
    One row per day for the last ``days`` days (today included) with
    orders, revenue and new customers. Days without activity are zero.
    """
    today = timezone.localdate()
    start_day = today - timedelta(days=days - 1)
    start = timezone.make_aware(datetime.combine(start_day, time.min))

    def build():
        order_rows = (
            revenue_orders().filter(created_at__gte=start)
            .annotate(day=TruncDate('created_at'))
            .values('day')
            .annotate(orders=Count('id'), revenue=Sum('total_amount'))
        )
        customer_rows = (
            Customer.objects.active().filter(created_at__gte=start)
            .annotate(day=TruncDate('created_at'))
            .values('day')
            .annotate(new_customers=Count('id'))
        )
        orders_by_day = {row['day']: row for row in order_rows}
        customers_by_day = {row['day']: row['new_customers'] for row in customer_rows}

        activity = []
        day = start_day
        while day <= today:
            row = orders_by_day.get(day, {})
            activity.append({
                'date': day.isoformat(),
                'orders': row.get('orders', 0),
                'revenue': row.get('revenue') or Decimal('0'),
                'new_customers': customers_by_day.get(day, 0),
            })
            day += timedelta(days=1)
        return activity

    return cached(f'dashboard:activity:{today.isoformat()}:{days}', build)
