"""
Tests for dashboard app.

Best practices demonstrated:
- Pin row timestamps instead of relying on the clock
- Verify cached aggregates are served until the cache expires
"""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest import mock

import pytest
from django.utils import timezone

from apps.customers.models import Customer
from apps.orders.models import Order
from apps.products.models import ProductVariant
from .services import growth, month_bounds


def make_order(status=Order.Status.PENDING, total='100.00', created_at=None):
    order = Order.objects.create(
        customer_name='Jane Doe',
        customer_phone='01712345678',
        shipping_address='12 Lake Road, Dhanmondi',
        total_amount=Decimal(total),
        status=status,
    )
    if created_at is not None:
        Order.objects.filter(pk=order.pk).update(created_at=created_at)
    return order


class TestHelpers:

    def test_growth(self):
        assert growth(15, 10) == 50
        assert growth(Decimal('5'), Decimal('10')) == -50
        assert growth(1, 3) == -67
        assert growth(7, 0) == 0

    def test_month_bounds(self):
        now = timezone.make_aware(datetime(2024, 3, 15, 12, 30))

        this_month, last_month = month_bounds(now)

        assert (this_month.month, this_month.day, this_month.hour) == (3, 1, 0)
        assert (last_month.year, last_month.month, last_month.day) == (2024, 2, 1)


@pytest.mark.django_db
class TestDashboardAPI:

    def test_stats(self, staff_client, product):
        _, last_month = month_bounds()
        make_order(total='100.00')
        make_order(status=Order.Status.DELIVERED, total='50.00')
        make_order(status=Order.Status.CANCELLED, total='999.00')
        make_order(total='75.00', created_at=last_month + timedelta(days=1))
        make_order(total='30.00').delete()
        Customer.objects.create(name='Jane Doe', phone='01712345678')

        response = staff_client.get('/api/v1/dashboard/stats/')

        assert response.status_code == 200
        data = response.data
        assert data['total_products'] == 1
        assert data['total_customers'] == 1
        assert data['total_revenue'] == Decimal('225.00')
        assert data['current_month']['orders'] == 2
        assert data['current_month']['revenue'] == Decimal('150.00')
        assert data['current_month']['order_growth'] == 100
        assert data['current_month']['revenue_growth'] == 100
        assert data['current_month']['order_status'] == {
            'delivered': 1, 'processing': 1, 'shipping': 0, 'cancelled': 1,
        }
        assert data['last_month'] == {'orders': 1, 'revenue': Decimal('75.00')}

    def test_stats_are_cached(self, staff_client):
        first = staff_client.get('/api/v1/dashboard/stats/')
        make_order()

        second = staff_client.get('/api/v1/dashboard/stats/')

        assert second.data == first.data

    def test_recent_orders(self, staff_client):
        make_order(created_at=timezone.now() - timedelta(hours=2))
        newer = make_order()

        response = staff_client.get('/api/v1/dashboard/recent-orders/?limit=1')

        assert [row['id'] for row in response.data['orders']] == [newer.pk]

    def test_recent_orders_limit_is_bounded(self, staff_client):
        response = staff_client.get('/api/v1/dashboard/recent-orders/?limit=500')
        assert response.status_code == 400

    def test_product_stats(self, staff_client, product, variant):
        ProductVariant.objects.create(product=product, sku='MOUSE-WHT', price=Decimal('25.00'), stock=0)
        ProductVariant.objects.create(product=product, sku='MOUSE-RED', price=Decimal('25.00'), stock=40)

        data = staff_client.get('/api/v1/dashboard/products/').data

        assert data['total_products'] == 1
        assert data['active_products'] == 1
        assert data['out_of_stock_variants'] == 1
        assert data['low_stock_variants'] == 1
        assert data['categories_count'] == 1

    def test_category_stats(self, staff_client, product):
        data = staff_client.get('/api/v1/dashboard/categories/').data

        assert data['total_categories'] == 1
        assert data['categories'][0]['product_count'] == 1

    def test_activity_fills_empty_days(self, staff_client):
        make_order(total='40.00')
        make_order(status=Order.Status.RETURNED, total='10.00')

        data = staff_client.get('/api/v1/dashboard/activity/?days=7').data['activity']

        assert len(data) == 7
        assert data[-1]['date'] == timezone.localdate().isoformat()
        assert data[-1]['orders'] == 1
        assert data[-1]['revenue'] == Decimal('40.00')
        assert all(row['orders'] == 0 for row in data[:-1])

    def test_activity_cache_follows_the_date(self, staff_client):
        today = timezone.localdate()
        staff_client.get('/api/v1/dashboard/activity/?days=7')
        tomorrow = today + timedelta(days=1)

        with mock.patch('apps.dashboard.services.timezone.localdate', return_value=tomorrow):
            data = staff_client.get('/api/v1/dashboard/activity/?days=7').data['activity']

        assert data[-1]['date'] == tomorrow.isoformat()
        assert data[0]['date'] == (today - timedelta(days=5)).isoformat()

    def test_requires_staff(self, api_client):
        assert api_client.get('/api/v1/dashboard/stats/').status_code in (401, 403)
