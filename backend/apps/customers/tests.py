"""
Tests for customers app.

Best practices demonstrated:
- Use pytest fixtures
- Verify the audit trail alongside the API response
- Test projections against the orders they are derived from
"""

from decimal import Decimal

import pytest

from apps.orders.models import Order
from .models import Customer, CustomerHistory
from .services import calculate_customer_stats, sync_customers_from_orders


@pytest.fixture
def customer(db):
    return Customer.objects.create(name='Jane Doe', phone='01712345678', email='jane@example.com')


def make_order(customer=None, phone='01712345678', total='50.00', status=Order.Status.PENDING):
    return Order.objects.create(
        customer=customer,
        customer_name='Jane Doe',
        customer_phone=phone,
        shipping_address='12 Lake Road, Dhanmondi',
        total_amount=Decimal(total),
        status=status,
    )


@pytest.mark.django_db
class TestCustomerAPI:

    def test_create_records_history(self, staff_client):
        response = staff_client.post('/api/v1/customers/', {
            'name': 'John Smith',
            'phone': '01812345678',
            'address': '7 Hill Street',
        }, format='json')

        assert response.status_code == 201
        customer = Customer.objects.get(pk=response.data['id'])
        assert customer.pk.startswith('cust_')
        assert list(customer.history.values_list('change_type', flat=True)) == ['created']

    def test_duplicate_phone_is_conflict(self, staff_client, customer):
        response = staff_client.post('/api/v1/customers/', {
            'name': 'Someone Else',
            'phone': '01712345678',
        }, format='json')

        assert response.status_code == 409
        assert response.data == {'error': 'Phone number is already used by another customer'}

    def test_short_phone_is_invalid(self, staff_client):
        response = staff_client.post('/api/v1/customers/', {'name': 'John Smith', 'phone': '0171'}, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'phone'

    def test_update_records_history(self, staff_client, customer):
        response = staff_client.put(f'/api/v1/customers/{customer.pk}/', {
            'name': 'Jane Roe',
            'phone': '01712345678',
        }, format='json')

        assert response.status_code == 200
        snapshot = customer.history.get()
        assert snapshot.change_type == CustomerHistory.ChangeType.UPDATED
        assert snapshot.name == 'Jane Roe'

    def test_projections_are_read_only(self, staff_client, customer):
        staff_client.put(f'/api/v1/customers/{customer.pk}/', {
            'name': 'Jane Doe',
            'phone': '01712345678',
            'total_orders': 99,
        }, format='json')

        customer.refresh_from_db()
        assert customer.total_orders == 0

    def test_soft_delete_blocked_by_active_orders(self, staff_client, customer):
        make_order(customer)
        make_order(customer, status=Order.Status.DELIVERED)

        response = staff_client.delete(f'/api/v1/customers/{customer.pk}/')

        assert response.status_code == 409
        assert response.data['details'] == [{'total_orders': 2, 'active_orders': 1}]
        assert not Customer.objects.get(pk=customer.pk).is_deleted

    def test_soft_delete_with_finished_orders(self, staff_client, customer):
        make_order(customer, status=Order.Status.CANCELLED)

        response = staff_client.delete(f'/api/v1/customers/{customer.pk}/')

        assert response.status_code == 204
        assert Customer.objects.get(pk=customer.pk).is_deleted
        assert customer.history.filter(change_type='deleted').exists()

    def test_permanent_delete_blocked_by_any_order(self, staff_client, customer):
        make_order(customer, status=Order.Status.DELIVERED)
        customer.delete()

        response = staff_client.delete(f'/api/v1/customers/{customer.pk}/permanent/')

        assert response.status_code == 409

    def test_history_endpoint(self, staff_client, customer):
        CustomerHistory.objects.create(customer=customer, change_type='created', name='Jane', phone='01712345678')

        response = staff_client.get(f'/api/v1/customers/{customer.pk}/history/')

        assert response.status_code == 200
        assert [row['change_type'] for row in response.data['history']] == ['created']

    def test_recalculate_endpoint(self, staff_client, customer):
        make_order(customer, total='20.00')
        make_order(customer, total='30.00')

        response = staff_client.post(f'/api/v1/customers/{customer.pk}/recalculate/')

        assert response.status_code == 200
        assert response.data['total_orders'] == 2
        assert Decimal(response.data['total_spent']) == Decimal('50.00')

    def test_sort_by_total_spent(self, staff_client, customer):
        Customer.objects.create(name='Big Spender', phone='01999999999', total_spent=Decimal('900.00'))

        response = staff_client.get('/api/v1/customers/?sort=total_spent&order=desc')

        assert [row['name'] for row in response.data['customers']] == ['Big Spender', 'Jane Doe']


@pytest.mark.django_db
class TestCustomerServices:

    def test_stats_ignore_trashed_orders(self, customer):
        make_order(customer, total='20.00')
        make_order(customer, total='30.00').delete()

        stats = calculate_customer_stats(customer.pk)

        assert stats['total_orders'] == 1
        assert stats['total_spent'] == Decimal('20.00')

    def test_stats_for_customer_without_orders(self, customer):
        stats = calculate_customer_stats(customer.pk)
        assert stats == {'total_orders': 0, 'total_spent': Decimal('0.00'), 'last_order_at': None}

    def test_sync_links_orphaned_orders(self, customer):
        make_order(phone='01712345678', total='10.00')
        make_order(phone='01612345678', total='15.00')
        make_order(phone='01612345678', total='5.00')

        result = sync_customers_from_orders()

        assert result == {'new_customers': 1, 'linked_orders': 3, 'updated_customers': 2}
        assert not Order.objects.filter(customer__isnull=True).exists()
        created = Customer.objects.get(phone='01612345678')
        assert created.total_orders == 2
        assert created.total_spent == Decimal('20.00')

    def test_sync_endpoint(self, staff_client):
        make_order(phone='01612345678')

        response = staff_client.post('/api/v1/customers/sync/')

        assert response.status_code == 200
        assert response.data['details']['new_customers'] == 1
