"""
Shared pytest fixtures.

Best practices demonstrated:
- One authenticated staff client reused by every app's tests
- Small builders for the catalog rows most tests need
- Cache cleared between tests so cached aggregates never leak
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Anonymous API client."""
    return APIClient()


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        username='admin',
        password='testpass123',
        is_staff=True,
    )


@pytest.fixture
def staff_client(staff_user):
    """API client signed in as a staff user."""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def category(db):
    from apps.products.models import Category

    return Category.objects.create(name='Electronics', slug='electronics', description='Gadgets')


@pytest.fixture
def product(db, category):
    from apps.products.models import Product

    return Product.objects.create(
        name='Wireless Mouse',
        slug='wireless-mouse',
        description='Ergonomic wireless mouse',
        price=Decimal('25.00'),
        category=category,
    )


@pytest.fixture
def variant(db, product):
    from apps.products.models import ProductVariant

    return ProductVariant.objects.create(
        product=product,
        sku='MOUSE-BLK',
        price=Decimal('25.00'),
        stock=5,
        color='black',
    )


@pytest.fixture
def order_payload(product, variant):
    """Valid order body for one line of the fixture variant."""
    def build(quantity=1, **overrides):
        payload = {
            'customer_name': 'Jane Doe',
            'customer_phone': '01712345678',
            'customer_email': 'jane@example.com',
            'shipping_address': '12 Lake Road, Dhanmondi',
            'city': 'Dhaka',
            'shipping_charge': '5.00',
            'items': [
                {'product_id': product.pk, 'variant_id': variant.pk, 'quantity': quantity, 'price': '25.00'},
            ],
        }
        payload.update(overrides)
        return payload
    return build
