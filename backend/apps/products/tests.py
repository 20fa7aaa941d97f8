"""
Tests for products app.

Best practices demonstrated:
- Use pytest fixtures
- Test models, views, and serializers
- Test edge cases
"""

from decimal import Decimal

import pytest

from apps.orders.models import Order, OrderItem
from .models import Category, Collection, Product, ProductImage, ProductVariant, StockMovement
from .services import move_stock


def product_payload(category, **overrides):
    payload = {
        'name': 'Mechanical Keyboard',
        'slug': 'mechanical-keyboard',
        'description': 'Hot swappable keyboard',
        'price': '80.00',
        'category': category.pk,
        'variants': [
            {'sku': 'KB-RED', 'price': '80.00', 'stock': 4, 'color': 'red'},
            {'sku': 'KB-BLU', 'price': '85.00', 'stock': 2, 'color': 'blue'},
        ],
        'images': [
            {'url': 'https://cdn.example.com/kb-front.jpg', 'alt_text': 'Front'},
            {'url': 'https://cdn.example.com/kb-side.jpg'},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestProductModel:
    """Test Product model."""

    def test_product_creation(self, product):
        """Test product is created correctly."""
        assert product.name == 'Wireless Mouse'
        assert product.price == Decimal('25.00')
        assert product.pk.startswith('prod_')
        assert str(product) == 'Wireless Mouse'

    def test_total_stock_sums_variants(self, product, variant):
        ProductVariant.objects.create(product=product, sku='MOUSE-WHT', price=Decimal('25.00'), stock=3)
        assert product.total_stock == 8

    def test_sale_price_percentage(self, product):
        product.discount_type = Product.DiscountType.PERCENTAGE
        product.discount_percentage = Decimal('10')
        assert product.sale_price == Decimal('22.50')

    def test_sale_price_flat_never_negative(self, product):
        product.discount_type = Product.DiscountType.FLAT
        product.discount_amount = Decimal('40.00')
        assert product.sale_price == Decimal('0.00')


@pytest.mark.django_db
class TestProductAPI:
    """Test Product API endpoints."""

    def test_create_with_variants_and_images(self, staff_client, category):
        response = staff_client.post('/api/v1/products/', product_payload(category), format='json')

        assert response.status_code == 201
        product = Product.objects.get(pk=response.data['id'])
        assert sorted(product.variants.values_list('sku', flat=True)) == ['KB-BLU', 'KB-RED']
        images = list(product.images.all())
        assert [image.is_primary for image in images] == [True, False]
        assert product.total_stock == 6

    def test_duplicate_slug_is_conflict(self, staff_client, category, product):
        response = staff_client.post(
            '/api/v1/products/', product_payload(category, slug='wireless-mouse'), format='json'
        )

        assert response.status_code == 409
        assert response.data == {'error': 'Slug already exists'}

    def test_slug_of_trashed_product_can_be_reused(self, staff_client, category, product):
        product.delete()

        response = staff_client.post(
            '/api/v1/products/', product_payload(category, slug='wireless-mouse'), format='json'
        )

        assert response.status_code == 201

    def test_duplicate_sku_in_payload(self, staff_client, category):
        payload = product_payload(category, variants=[
            {'sku': 'KB-RED', 'price': '80.00', 'stock': 1},
            {'sku': 'KB-RED', 'price': '80.00', 'stock': 1},
        ])

        response = staff_client.post('/api/v1/products/', payload, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'variants'

    def test_sku_owned_by_another_product_is_conflict(self, staff_client, category, variant):
        payload = product_payload(category, variants=[{'sku': 'MOUSE-BLK', 'price': '10.00', 'stock': 1}])

        response = staff_client.post('/api/v1/products/', payload, format='json')

        assert response.status_code == 409
        assert 'MOUSE-BLK' in response.data['error']

    def test_percentage_discount_requires_value(self, staff_client, category):
        payload = product_payload(category, discount_type='percentage')

        response = staff_client.post('/api/v1/products/', payload, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'discount_percentage'

    def test_list_rows(self, staff_client, product, variant):
        ProductImage.objects.create(product=product, url='https://cdn.example.com/m.jpg', is_primary=True)

        response = staff_client.get('/api/v1/products/')

        assert response.status_code == 200
        row = response.data['products'][0]
        assert row['category_name'] == 'Electronics'
        assert row['primary_image'] == 'https://cdn.example.com/m.jpg'
        assert row['variant_count'] == 1
        assert row['total_stock'] == 5

    def test_search_matches_variant_sku(self, staff_client, product, variant):
        response = staff_client.get('/api/v1/products/?search=MOUSE-BLK')
        assert [row['id'] for row in response.data['products']] == [product.pk]

    def test_filter_by_status(self, staff_client, product, category):
        Product.objects.create(
            name='Old Cable', slug='old-cable', price=Decimal('3.00'), category=category, is_active=False
        )

        response = staff_client.get('/api/v1/products/?status=inactive')

        assert [row['name'] for row in response.data['products']] == ['Old Cable']

    def test_retrieve_includes_sale_price(self, staff_client, product):
        product.discount_type = Product.DiscountType.FLAT
        product.discount_amount = Decimal('5.00')
        product.save()

        response = staff_client.get(f'/api/v1/products/{product.pk}/')

        assert response.status_code == 200
        assert Decimal(response.data['sale_price']) == Decimal('20.00')

    def test_update_syncs_variants(self, staff_client, category, product, variant):
        payload = product_payload(
            category,
            name='Wireless Mouse',
            slug='wireless-mouse',
            variants=[
                {'id': variant.pk, 'sku': 'MOUSE-BLK', 'price': '25.00', 'stock': 9},
                {'sku': 'MOUSE-WHT', 'price': '26.00', 'stock': 1},
            ],
        )

        response = staff_client.put(f'/api/v1/products/{product.pk}/', payload, format='json')

        assert response.status_code == 200
        assert response.data == {'success': True}
        variant.refresh_from_db()
        assert variant.stock == 9
        assert sorted(product.variants.values_list('sku', flat=True)) == ['MOUSE-BLK', 'MOUSE-WHT']
        movement = variant.movements.get()
        assert (movement.type, movement.reason, movement.quantity) == ('adjusted', 'correction', 4)
        assert ProductVariant.objects.get(sku='MOUSE-WHT').movements.get().reason == 'received'

    def test_update_can_swap_skus_between_variants(self, staff_client, category, product, variant):
        other = ProductVariant.objects.create(product=product, sku='MOUSE-WHT', price=Decimal('26.00'), stock=1)
        payload = product_payload(
            category,
            name='Wireless Mouse',
            slug='wireless-mouse',
            variants=[
                {'id': variant.pk, 'sku': 'MOUSE-WHT', 'price': '25.00', 'stock': 5},
                {'id': other.pk, 'sku': 'MOUSE-BLK', 'price': '26.00', 'stock': 1},
            ],
        )

        response = staff_client.put(f'/api/v1/products/{product.pk}/', payload, format='json')

        assert response.status_code == 200
        assert ProductVariant.objects.get(pk=variant.pk).sku == 'MOUSE-WHT'
        assert ProductVariant.objects.get(pk=other.pk).sku == 'MOUSE-BLK'

    def test_sold_variant_cannot_be_removed(self, staff_client, category, product, variant):
        order = Order.objects.create(
            customer_name='Jane Doe', customer_phone='01712345678',
            shipping_address='12 Lake Road', total_amount=Decimal('25.00'),
        )
        OrderItem.objects.create(
            order=order, product=product, variant=variant,
            product_name=product.name, variant_sku=variant.sku,
            quantity=1, price=Decimal('25.00'),
        )
        payload = product_payload(
            category, slug='wireless-mouse',
            variants=[{'sku': 'MOUSE-WHT', 'price': '26.00', 'stock': 1}],
        )

        response = staff_client.put(f'/api/v1/products/{product.pk}/', payload, format='json')

        assert response.status_code == 409
        assert ProductVariant.objects.filter(pk=variant.pk).exists()

    def test_permanent_delete_blocked_by_orders(self, staff_client, product, variant):
        order = Order.objects.create(
            customer_name='Jane Doe', customer_phone='01712345678',
            shipping_address='12 Lake Road', total_amount=Decimal('25.00'),
        )
        OrderItem.objects.create(
            order=order, product=product, variant=variant,
            product_name=product.name, variant_sku=variant.sku,
            quantity=1, price=Decimal('25.00'),
        )
        product.delete()

        response = staff_client.delete(f'/api/v1/products/{product.pk}/permanent/')

        assert response.status_code == 409
        assert response.data == {
            'error': 'Cannot delete product. It is part of one or more existing orders.'
        }

    def test_permanent_delete_removes_children(self, staff_client, product, variant):
        product.delete()

        response = staff_client.delete(f'/api/v1/products/{product.pk}/permanent/')

        assert response.status_code == 204
        assert not ProductVariant.objects.filter(pk=variant.pk).exists()


@pytest.mark.django_db
class TestCategoryAPI:

    def test_list_counts_live_products(self, staff_client, category, product):
        Product.objects.create(name='Trashed', slug='trashed', price=Decimal('1.00'), category=category).delete()

        response = staff_client.get('/api/v1/categories/')

        assert response.data['categories'][0]['product_count'] == 1

    def test_delete_with_products_is_conflict(self, staff_client, category, product):
        response = staff_client.delete(f'/api/v1/categories/{category.pk}/')

        assert response.status_code == 409
        assert "it has 1 associated product(s)" in response.data['error']
        assert response.data['details'] == [
            {'id': product.pk, 'name': 'Wireless Mouse', 'is_deleted': False}
        ]

    def test_trashed_products_still_block(self, staff_client, category, product):
        product.delete()
        category.delete()

        response = staff_client.delete(f'/api/v1/categories/{category.pk}/permanent/')

        assert response.status_code == 409
        assert response.data['details'][0]['is_deleted'] is True


@pytest.mark.django_db
class TestCollectionAPI:

    def test_create_with_members(self, staff_client, category, product):
        response = staff_client.post('/api/v1/collections/', {
            'name': 'Desk setup',
            'slug': 'desk-setup',
            'categories': [category.pk],
            'products': [product.pk],
        }, format='json')

        assert response.status_code == 201
        collection = Collection.objects.get(pk=response.data['id'])
        assert collection.product_ids() == {product.pk}

    def test_retrieve(self, staff_client):
        collection = Collection.objects.create(name='Summer sale', slug='summer-sale')

        response = staff_client.get(f'/api/v1/collections/{collection.pk}/')

        assert response.status_code == 200
        assert response.data['slug'] == 'summer-sale'
        assert Category.objects.count() == 0


@pytest.mark.django_db
class TestInventoryAPI:

    def test_adjust_receives_stock(self, staff_client, staff_user, variant):
        response = staff_client.post(f'/api/v1/variants/{variant.pk}/adjust/', {
            'delta': 10, 'reason': 'received', 'notes': 'Supplier delivery',
        }, format='json')

        assert response.status_code == 200
        assert response.data == {
            'success': True, 'variant_id': variant.pk,
            'previous_stock': 5, 'new_stock': 15, 'delta': 10,
        }
        movement = variant.movements.get()
        assert movement.type == StockMovement.Type.ADJUSTED
        assert movement.notes == 'Supplier delivery'
        assert movement.created_by == staff_user

    def test_adjust_never_goes_below_zero(self, staff_client, variant):
        response = staff_client.post(f'/api/v1/variants/{variant.pk}/adjust/', {
            'delta': -8, 'reason': 'damage',
        }, format='json')

        assert response.data['new_stock'] == 0
        assert ProductVariant.objects.get(pk=variant.pk).stock == 0
        assert variant.movements.get().quantity == -8

    def test_zero_delta_is_rejected(self, staff_client, variant):
        response = staff_client.post(f'/api/v1/variants/{variant.pk}/adjust/', {
            'delta': 0, 'reason': 'correction',
        }, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'delta'
        assert not StockMovement.objects.exists()

    def test_unknown_reason_is_rejected(self, staff_client, variant):
        response = staff_client.post(f'/api/v1/variants/{variant.pk}/adjust/', {
            'delta': 1, 'reason': 'found-it',
        }, format='json')

        assert response.status_code == 400
        assert response.data['details'][0]['field'] == 'reason'

    def test_missing_variant(self, staff_client):
        response = staff_client.post('/api/v1/variants/999999/adjust/', {
            'delta': 1, 'reason': 'received',
        }, format='json')

        assert response.status_code == 404
        assert response.data == {'error': 'Variant not found'}

    def test_movements_newest_first(self, variant, staff_client):
        move_stock(variant, 3, StockMovement.Type.ADJUSTED, reason='received')
        move_stock(variant, -2, StockMovement.Type.RESERVED, order_id='ord_1')

        response = staff_client.get(f'/api/v1/variants/{variant.pk}/movements/')

        rows = response.data['movements']
        assert [row['quantity'] for row in rows] == [-2, 3]
        assert (rows[0]['previous_stock'], rows[0]['new_stock']) == (8, 6)
        assert rows[0]['order_id'] == 'ord_1'

    def test_low_stock(self, staff_client, product, variant):
        ProductVariant.objects.create(product=product, sku='MOUSE-WHT', price=Decimal('25.00'), stock=40)

        response = staff_client.get('/api/v1/variants/low-stock/')
        assert response.data['threshold'] == 5
        assert [row['sku'] for row in response.data['variants']] == ['MOUSE-BLK']

        response = staff_client.get('/api/v1/variants/low-stock/?threshold=2')
        assert response.data['variants'] == []

    def test_requires_staff(self, api_client, variant):
        response = api_client.post(f'/api/v1/variants/{variant.pk}/adjust/', {
            'delta': 1, 'reason': 'received',
        }, format='json')

        assert response.status_code in (401, 403)
