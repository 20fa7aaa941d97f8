"""
Tests for orders app.

Best practices demonstrated:
- Use pytest fixtures
- Verify stock side effects, not just status codes
- Test edge cases (shortages, restore after stock ran out)
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.customers.models import Customer
from apps.discounts.models import Discount, DiscountUsage
from apps.products.models import ProductVariant, StockMovement
from .models import Order, OrderStatusHistory, Shipment
from .services import variant_demand


def create_order(client, payload):
    response = client.post('/api/v1/orders/', payload, format='json')
    assert response.status_code == 201, response.data
    return Order.objects.get(pk=response.data['id'])


def stock_of(variant):
    return ProductVariant.objects.get(pk=variant.pk).stock


class TestOrderTotals:

    def test_compute_total(self):
        lines = [
            {'price': Decimal('25.00'), 'quantity': 2},
            {'price': '10.50', 'quantity': 1},
        ]
        assert Order.compute_total(lines, Decimal('5.00'), Decimal('3.00')) == Decimal('62.50')

    def test_variant_demand_sums_per_variant(self):
        demand = variant_demand([(1, 3), (2, 1), (1, 3), (None, 9)])
        assert dict(demand) == {1: 6, 2: 1}


@pytest.mark.django_db
class TestCreateOrder:

    def test_create_reserves_stock_and_links_customer(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=3))

        assert order.pk.startswith('ord_')
        assert order.total_amount == Decimal('80.00')
        assert stock_of(variant) == 2

        customer = Customer.objects.get(phone='01712345678')
        assert order.customer_id == customer.pk
        assert customer.total_orders == 1
        assert customer.total_spent == Decimal('80.00')
        assert list(order.status_history.values_list('notes', flat=True)) == ['Order created']

    def test_existing_customer_is_reused(self, staff_client, order_payload):
        existing = Customer.objects.create(name='Jane Doe', phone='01712345678')

        order = create_order(staff_client, order_payload())

        assert order.customer_id == existing.pk
        assert Customer.objects.count() == 1

    def test_repeat_order_writes_customer_history(self, staff_client, order_payload):
        create_order(staff_client, order_payload())
        create_order(staff_client, order_payload())

        customer = Customer.objects.get(phone='01712345678')
        history = customer.history.order_by('created_at', 'id').values_list('change_type', flat=True)
        assert list(history) == ['created', 'updated']

    def test_insufficient_stock_changes_nothing(self, staff_client, order_payload, product, variant):
        payload = order_payload()
        payload['items'] = [
            {'product_id': product.pk, 'variant_id': variant.pk, 'quantity': 3, 'price': '25.00'},
            {'product_id': product.pk, 'variant_id': variant.pk, 'quantity': 3, 'price': '25.00'},
        ]

        response = staff_client.post('/api/v1/orders/', payload, format='json')

        assert response.status_code == 400
        assert response.data['error'] == (
            'Insufficient stock for variant MOUSE-BLK. Available: 5, Requested: 6'
        )
        assert response.data['details'] == [{'variant_id': variant.pk, 'available': 5, 'requested': 6}]
        assert stock_of(variant) == 5
        assert not Order.objects.exists()
        assert not Customer.objects.exists()

    def test_variant_must_belong_to_product(self, staff_client, order_payload, category, variant):
        from apps.products.models import Product

        other = Product.objects.create(name='USB Hub', slug='usb-hub', price=Decimal('15.00'), category=category)
        payload = order_payload()
        payload['items'][0]['product_id'] = other.pk

        response = staff_client.post('/api/v1/orders/', payload, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'items.0.variant_id'

    def test_empty_items_rejected(self, staff_client, order_payload):
        response = staff_client.post('/api/v1/orders/', order_payload(items=[]), format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'items'

    def test_discount_code_applied_and_recorded(self, staff_client, order_payload):
        discount = Discount.objects.create(
            code='SAVE10',
            type=Discount.Type.AMOUNT_OFF_ORDER,
            value_type=Discount.ValueType.PERCENTAGE,
            discount_value=Decimal('10'),
            start_date=timezone.now() - timedelta(days=1),
        )

        order = create_order(staff_client, order_payload(discount_code='SAVE10'))

        assert order.discount_amount == Decimal('2.50')
        assert order.total_amount == Decimal('27.50')
        usage = DiscountUsage.objects.get(discount=discount)
        assert usage.order_id == order.pk
        assert usage.amount_discounted == Decimal('2.50')

    def test_invalid_discount_code(self, staff_client, order_payload, variant):
        response = staff_client.post('/api/v1/orders/', order_payload(discount_code='NOPE'), format='json')

        assert response.status_code == 400
        assert response.data['details'] == [{'field': 'discount_code', 'message': 'Invalid discount code'}]
        assert stock_of(variant) == 5


@pytest.mark.django_db
class TestOrderAPI:

    def test_list_and_filter(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())
        Order.objects.filter(pk=order.pk).update(status=Order.Status.CONFIRMED)

        confirmed = staff_client.get('/api/v1/orders/?status=confirmed')
        pending = staff_client.get('/api/v1/orders/?status=pending')

        assert [row['id'] for row in confirmed.data['orders']] == [order.pk]
        assert confirmed.data['orders'][0]['item_count'] == 1
        assert pending.data['orders'] == []

    def test_search_by_phone(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())

        response = staff_client.get('/api/v1/orders/?search=0171234')

        assert [row['id'] for row in response.data['orders']] == [order.pk]

    def test_retrieve_includes_items_and_history(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())

        response = staff_client.get(f'/api/v1/orders/{order.pk}/')

        assert response.status_code == 200
        assert response.data['items'][0]['variant_sku'] == 'MOUSE-BLK'
        assert response.data['items'][0]['total'] == '25.00'
        assert len(response.data['status_history']) == 1

    def test_update_rebalances_stock(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=1))

        response = staff_client.put(f'/api/v1/orders/{order.pk}/', order_payload(quantity=4), format='json')

        assert response.status_code == 200
        assert stock_of(variant) == 1
        order.refresh_from_db()
        assert order.total_amount == Decimal('105.00')
        assert order.items.get().quantity == 4

    def test_update_beyond_stock_is_rejected(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=2))

        response = staff_client.put(f'/api/v1/orders/{order.pk}/', order_payload(quantity=6), format='json')

        assert response.status_code == 400
        assert stock_of(variant) == 3
        assert order.items.get().quantity == 2

    def test_status_action(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())

        response = staff_client.put(
            f'/api/v1/orders/{order.pk}/status/', {'status': 'confirmed', 'notes': 'Called customer'}, format='json'
        )

        assert response.status_code == 200
        assert response.data == {'success': True, 'status': 'confirmed'}
        assert OrderStatusHistory.objects.filter(order=order, status='confirmed', notes='Called customer').exists()

    def test_status_action_rejects_unknown_status(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())

        response = staff_client.put(f'/api/v1/orders/{order.pk}/status/', {'status': 'lost'}, format='json')

        assert response.status_code == 400


@pytest.mark.django_db
class TestShipping:

    def test_ship_marks_order_fulfilled(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())

        response = staff_client.post(
            f'/api/v1/orders/{order.pk}/ship/', {'carrier': 'Pathao', 'tracking_number': 'PT-1001'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['status'] == 'shipped'
        assert response.data['fulfillment_status'] == 'complete'
        assert response.data['shipment']['tracking_number'] == 'PT-1001'
        assert Shipment.objects.filter(order=order).count() == 1

    def test_cannot_ship_twice(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())
        body = {'carrier': 'Pathao', 'tracking_number': 'PT-1001'}
        staff_client.post(f'/api/v1/orders/{order.pk}/ship/', body, format='json')

        response = staff_client.post(f'/api/v1/orders/{order.pk}/ship/', body, format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'Order has already been fulfilled'}

    def test_cannot_ship_cancelled_order(self, staff_client, order_payload):
        order = create_order(staff_client, order_payload())
        Order.objects.filter(pk=order.pk).update(status=Order.Status.CANCELLED)

        response = staff_client.post(
            f'/api/v1/orders/{order.pk}/ship/', {'carrier': 'Pathao', 'tracking_number': 'PT-1'}, format='json'
        )

        assert response.status_code == 400
        assert not Shipment.objects.exists()


@pytest.mark.django_db
class TestOrderLifecycle:

    def test_soft_delete_returns_stock(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=3))

        response = staff_client.delete(f'/api/v1/orders/{order.pk}/')

        assert response.status_code == 204
        assert stock_of(variant) == 5
        assert Customer.objects.get(phone='01712345678').total_orders == 0

    def test_stock_moves_are_logged_against_the_order(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=3))
        staff_client.delete(f'/api/v1/orders/{order.pk}/')

        movements = StockMovement.objects.filter(order_id=order.pk).order_by('id')
        assert [(m.type, m.quantity, m.previous_stock, m.new_stock) for m in movements] == [
            ('reserved', -3, 5, 2),
            ('released', 3, 2, 5),
        ]

    def test_restore_takes_stock_again(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=3))
        staff_client.delete(f'/api/v1/orders/{order.pk}/')

        response = staff_client.post(f'/api/v1/orders/{order.pk}/restore/')

        assert response.status_code == 204
        assert stock_of(variant) == 2
        assert not Order.objects.get(pk=order.pk).is_deleted

    def test_restore_conflicts_when_stock_ran_out(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload(quantity=3))
        staff_client.delete(f'/api/v1/orders/{order.pk}/')
        ProductVariant.objects.filter(pk=variant.pk).update(stock=1)

        response = staff_client.post(f'/api/v1/orders/{order.pk}/restore/')

        assert response.status_code == 409
        assert 'Insufficient stock for variant MOUSE-BLK' in response.data['error']
        assert stock_of(variant) == 1
        assert Order.objects.get(pk=order.pk).is_deleted

    def test_bulk_restore_checks_combined_demand(self, staff_client, order_payload, variant):
        first = create_order(staff_client, order_payload(quantity=2))
        second = create_order(staff_client, order_payload(quantity=2))
        staff_client.post('/api/v1/orders/bulk-delete/', {'ids': [first.pk, second.pk]}, format='json')
        ProductVariant.objects.filter(pk=variant.pk).update(stock=3)

        response = staff_client.post(
            '/api/v1/orders/bulk-restore/', {'ids': [first.pk, second.pk]}, format='json'
        )

        assert response.status_code == 409
        assert stock_of(variant) == 3
        assert Order.objects.trashed().count() == 2

    def test_permanent_delete(self, staff_client, order_payload, variant):
        order = create_order(staff_client, order_payload())
        staff_client.delete(f'/api/v1/orders/{order.pk}/')

        response = staff_client.delete(f'/api/v1/orders/{order.pk}/permanent/')

        assert response.status_code == 204
        assert not Order.objects.filter(pk=order.pk).exists()
        assert stock_of(variant) == 5
