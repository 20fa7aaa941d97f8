"""
Tests for discounts app.

Best practices demonstrated:
- Use pytest fixtures
- Pure calculation tested without the API
- End-to-end lifecycle through the endpoints
"""

import json
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.orders.models import Order
from apps.products.models import Collection
from .models import Discount, DiscountProduct, DiscountUsage
from .services import calculate_discount_amount, combinability, validate_discount


def make_discount(**overrides):
    fields = {
        'code': 'SAVE10',
        'type': Discount.Type.AMOUNT_OFF_ORDER,
        'value_type': Discount.ValueType.PERCENTAGE,
        'discount_value': Decimal('10'),
        'start_date': timezone.now() - timedelta(days=1),
    }
    fields.update(overrides)
    return Discount.objects.create(**fields)


def make_order(phone='01712345678'):
    return Order.objects.create(
        customer_name='Jane Doe',
        customer_phone=phone,
        shipping_address='12 Lake Road, Dhanmondi',
        total_amount=Decimal('100.00'),
    )


class TestCalculateDiscountAmount:
    """Amounts computed from an unsaved discount."""

    def test_percentage_off_order_excludes_shipping(self):
        discount = Discount(type='amount_off_order', value_type='percentage', discount_value=Decimal('10'))
        assert calculate_discount_amount(discount, Decimal('110'), shipping_cost=Decimal('10')) == Decimal('10.00')

    def test_fixed_amount_capped_at_subtotal(self):
        discount = Discount(type='amount_off_order', value_type='fixed_amount', discount_value=Decimal('500'))
        assert calculate_discount_amount(discount, Decimal('80')) == Decimal('80.00')

    def test_free_shipping_takes_shipping_cost(self):
        discount = Discount(type='free_shipping', value_type='free', discount_value=Decimal('1'))
        assert calculate_discount_amount(discount, Decimal('60'), shipping_cost=Decimal('7.50')) == Decimal('7.50')

    def test_product_discount_uses_applicable_items(self):
        discount = Discount(type='amount_off_products', value_type='percentage', discount_value=Decimal('50'))
        items = [
            {'id': 'prod_a', 'price': '20.00', 'quantity': 2},
            {'id': 'prod_b', 'price': '100.00', 'quantity': 1},
        ]

        amount = calculate_discount_amount(discount, Decimal('140'), items, product_ids={'prod_a'})

        assert amount == Decimal('20.00')

    def test_rounds_half_up_to_cents(self):
        discount = Discount(type='amount_off_order', value_type='percentage', discount_value=Decimal('15'))
        assert calculate_discount_amount(discount, Decimal('0.30')) == Decimal('0.05')


@pytest.mark.django_db
class TestValidateDiscount:

    def test_unknown_code(self):
        assert validate_discount('NOPE') == {'valid': False, 'error': 'Invalid discount code'}

    def test_outside_window_is_invalid(self):
        make_discount(start_date=timezone.now() + timedelta(days=1))
        make_discount(
            code='OLD',
            start_date=timezone.now() - timedelta(days=10),
            end_date=timezone.now() - timedelta(days=1),
        )

        assert not validate_discount('SAVE10')['valid']
        assert not validate_discount('OLD')['valid']

    def test_inactive_or_trashed_is_invalid(self):
        make_discount(is_active=False)
        make_discount(code='GONE').delete()

        assert not validate_discount('SAVE10')['valid']
        assert not validate_discount('GONE')['valid']

    def test_minimum_purchase(self):
        make_discount(min_purchase_amount=Decimal('50'))

        result = validate_discount('SAVE10', total=Decimal('40'))

        assert result['valid'] is False
        assert result['min_purchase_amount'] == Decimal('50')

    def test_minimum_quantity(self):
        make_discount(min_quantity=3)

        result = validate_discount('SAVE10', total=Decimal('40'), items=[{'id': 'p', 'price': '20', 'quantity': 2}])

        assert result['valid'] is False
        assert result['min_quantity'] == 3

    def test_usage_limit(self):
        discount = make_discount(max_uses=1)
        DiscountUsage.objects.create(discount=discount, order=make_order(), amount_discounted=Decimal('1.00'))

        assert validate_discount('SAVE10', total=Decimal('40'))['error'] == 'Discount code has reached its usage limit'

    def test_once_per_customer(self):
        discount = make_discount(limit_one_per_customer=True)
        DiscountUsage.objects.create(discount=discount, order=make_order(), amount_discounted=Decimal('1.00'))

        assert not validate_discount('SAVE10', total=Decimal('40'), customer_phone='01712345678')['valid']
        assert validate_discount('SAVE10', total=Decimal('40'), customer_phone='01812345678')['valid']

    def test_product_discount_not_applicable(self, product):
        discount = make_discount(type=Discount.Type.AMOUNT_OFF_PRODUCTS)
        DiscountProduct.objects.create(discount=discount, product=product)

        result = validate_discount('SAVE10', total=Decimal('40'), items=[{'id': 'prod_other', 'price': '40', 'quantity': 1}])

        assert result == {'valid': False, 'error': 'Discount code is not applicable to the items in your cart'}

    def test_collection_members_are_applicable(self, product):
        collection = Collection.objects.create(name='Mice', slug='mice')
        collection.products.add(product)
        discount = make_discount(type=Discount.Type.AMOUNT_OFF_PRODUCTS, value_type='fixed_amount', discount_value=Decimal('5'))
        discount.collection_links.create(collection=collection)

        result = validate_discount('SAVE10', total=Decimal('25'), items=[{'id': product.pk, 'price': '25', 'quantity': 1}])

        assert result['valid'] is True
        assert result['discount_amount'] == Decimal('5.00')

    def test_combinability_by_type(self):
        free_shipping = Discount(type='free_shipping')
        assert combinability(free_shipping) == {
            'with_product_discounts': True,
            'with_order_discounts': False,
            'with_shipping_discounts': False,
        }


@pytest.mark.django_db
class TestDiscountAPI:

    def payload(self, **overrides):
        payload = {
            'code': 'SAVE10',
            'type': 'amount_off_order',
            'value_type': 'percentage',
            'discount_value': '10.00',
            'start_date': '2024-01-01T00:00:00Z',
        }
        payload.update(overrides)
        return payload

    def test_lifecycle_with_filters(self, staff_client):
        response = staff_client.post('/api/v1/discounts/', self.payload(), format='json')
        assert response.status_code == 201
        pk = response.data['id']

        listed = staff_client.get('/api/v1/discounts/?type=amount_off_order')
        assert [row['id'] for row in listed.data['discounts']] == [pk]
        original_value = listed.data['discounts'][0]['discount_value']

        assert staff_client.delete(f'/api/v1/discounts/{pk}/').status_code == 204
        assert staff_client.get('/api/v1/discounts/').data['discounts'] == []
        trashed = staff_client.get('/api/v1/discounts/?trashed=true')
        assert [row['id'] for row in trashed.data['discounts']] == [pk]

        assert staff_client.post(f'/api/v1/discounts/{pk}/restore/').status_code == 204
        restored = staff_client.get('/api/v1/discounts/?type=amount_off_order')
        assert [row['id'] for row in restored.data['discounts']] == [pk]
        assert restored.data['discounts'][0]['discount_value'] == original_value

    def test_percentage_over_100_is_rejected(self, staff_client):
        response = staff_client.post('/api/v1/discounts/', self.payload(discount_value='150'), format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'discount_value'

    def test_free_value_type_only_for_free_shipping(self, staff_client):
        response = staff_client.post('/api/v1/discounts/', self.payload(value_type='free'), format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'value_type'

    def test_end_date_must_follow_start(self, staff_client):
        response = staff_client.post(
            '/api/v1/discounts/', self.payload(end_date='2023-12-31T00:00:00Z'), format='json'
        )

        assert response.status_code == 400

    def test_epoch_milliseconds_accepted(self, staff_client):
        response = staff_client.post('/api/v1/discounts/', self.payload(start_date=1704067200000), format='json')

        assert response.status_code == 201
        discount = Discount.objects.get(pk=response.data['id'])
        assert discount.start_date.year == 2024

    def test_duplicate_code_is_conflict(self, staff_client):
        make_discount()

        response = staff_client.post('/api/v1/discounts/', self.payload(), format='json')

        assert response.status_code == 409
        assert response.data == {'error': 'Discount code already exists'}

    def test_product_associations(self, staff_client, product):
        response = staff_client.post('/api/v1/discounts/', self.payload(
            type='amount_off_products', applies_to_products=[product.pk]
        ), format='json')
        assert response.status_code == 201

        detail = staff_client.get(f"/api/v1/discounts/{response.data['id']}/")

        assert detail.data['related_products'] == {
            'buy': [], 'get': [{'id': product.pk, 'name': 'Wireless Mouse'}]
        }

    def test_unknown_product_association(self, staff_client):
        response = staff_client.post('/api/v1/discounts/', self.payload(
            type='amount_off_products', applies_to_products=['prod_missing']
        ), format='json')

        assert response.status_code == 400

    def test_list_includes_usage_aggregates(self, staff_client):
        discount = make_discount()
        DiscountUsage.objects.create(discount=discount, order=make_order(), amount_discounted=Decimal('4.00'))
        DiscountUsage.objects.create(discount=discount, order=make_order(), amount_discounted=Decimal('6.00'))

        row = staff_client.get('/api/v1/discounts/').data['discounts'][0]

        assert row['usage_count'] == 2
        assert Decimal(row['total_discount_amount']) == Decimal('10.00')

    def test_permanent_delete_blocked_by_usage(self, staff_client):
        discount = make_discount()
        DiscountUsage.objects.create(discount=discount, order=make_order(), amount_discounted=Decimal('1.00'))
        discount.delete()

        response = staff_client.delete(f'/api/v1/discounts/{discount.pk}/permanent/')

        assert response.status_code == 409

    def test_validate_endpoint_is_public(self, api_client):
        make_discount()
        items = json.dumps([{'id': 'prod_a', 'price': '30.00', 'quantity': 2}])

        response = api_client.get('/api/v1/discounts/validate/', {
            'code': 'SAVE10', 'total': '65.00', 'shipping_cost': '5.00', 'items': items,
        })

        assert response.status_code == 200
        assert response.data['valid'] is True
        assert response.data['discount']['code'] == 'SAVE10'
        assert response.data['discount_amount'] == Decimal('6.00')

    def test_validate_endpoint_invalid_code(self, api_client):
        response = api_client.get('/api/v1/discounts/validate/', {'code': 'NOPE'})

        assert response.status_code == 200
        assert response.data == {'valid': False, 'error': 'Invalid discount code'}

    def test_record_usage(self, staff_client):
        discount = make_discount()
        order = make_order()

        response = staff_client.post('/api/v1/discounts/usage/', {
            'discount_id': discount.pk, 'order_id': order.pk, 'amount_discounted': '3.50',
        }, format='json')

        assert response.status_code == 201
        assert response.data['success'] is True
        assert DiscountUsage.objects.get(pk=response.data['id']).amount_discounted == Decimal('3.50')
