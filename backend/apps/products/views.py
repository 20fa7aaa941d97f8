"""
Catalog views demonstrating best practices:
- Query optimization per action
- Different serializers for list, detail and write
- Dependency checks before destructive operations
- Search index refresh after mutations
"""

import logging

from django.db.models import Count, Q
from django.http import Http404
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from apps.core.exceptions import ConflictError
from apps.core.mixins import SoftDeleteViewSetMixin
from .filters import ProductFilter
from .models import Category, Collection, Product, ProductVariant
from .serializers import (
    CategoryListSerializer,
    CategorySerializer,
    CollectionSerializer,
    LowStockQuerySerializer,
    LowStockVariantSerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductWriteSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
)
from .services import LOW_STOCK_THRESHOLD, adjust_stock, low_stock_variants

logger = logging.getLogger(__name__)


class CategoryViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    """
    Product categories.

    A category cannot be trashed or deleted while any product, live or
    trashed, still points at it.
    """
    queryset = Category.objects.all()
    list_key = 'categories'
    search_fields = ['name', 'description']
    sort_fields = {
        'name': 'name',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }
    reindex = True

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action in ('list', 'retrieve'):
            queryset = queryset.annotate(
                product_count=Count(
                    'products',
                    filter=Q(products__deleted_at__isnull=True, products__is_active=True)
                )
            )
        return queryset

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return CategoryListSerializer
        return CategorySerializer

    def check_soft_delete(self, instance):
        products = Product.objects.filter(category=instance).order_by('name')
        count = products.count()
        if not count:
            return

        logger.warning(f"Category {instance.pk} still has {count} products")
        raise ConflictError(
            f"Cannot delete category '{instance.name}': it has {count} associated product(s). "
            f"Reassign these products to another category or delete them first.",
            details=[
                {'id': product.pk, 'name': product.name, 'is_deleted': product.is_deleted}
                for product in products[:5]
            ],
        )

    check_permanent_delete = check_soft_delete


class CollectionViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    """Curated product collections used by discounts and the storefront."""
    queryset = Collection.objects.prefetch_related('categories', 'products')
    serializer_class = CollectionSerializer
    list_key = 'collections'
    search_fields = ['name']
    sort_fields = {
        'name': 'name',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }

    def check_permanent_delete(self, instance):
        if instance.discount_links.exists():
            raise ConflictError('Cannot delete collection. It is linked to one or more discounts.')


class ProductViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    """
    Products with variants and images.

    Features:
    - Search by name or variant SKU
    - Filter by category, active status and creation date
    - Permanent delete refused while orders or discounts reference it
    """
    queryset = Product.objects.select_related('category')
    list_key = 'products'
    filterset_class = ProductFilter
    search_fields = ['name', 'variants__sku']
    sort_fields = {
        'name': 'name',
        'price': 'price',
        'category': 'category__name',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }
    reindex = True

    def get_queryset(self):
        """
        Best practice: Only prefetch what the current action renders.
        """
        queryset = super().get_queryset()
        if self.action in ('list', 'retrieve'):
            queryset = queryset.prefetch_related('variants', 'images')
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        if self.action == 'retrieve':
            return ProductDetailSerializer
        return ProductWriteSerializer

    def check_permanent_delete(self, instance):
        from apps.discounts.models import DiscountProduct
        from apps.orders.models import OrderItem

        if OrderItem.objects.filter(product=instance).exists():
            raise ConflictError('Cannot delete product. It is part of one or more existing orders.')
        if DiscountProduct.objects.filter(product=instance).exists():
            raise ConflictError('Cannot delete product. It is linked to one or more discounts.')


class ProductVariantViewSet(viewsets.GenericViewSet):
    """
    Inventory operations on single variants.

    Endpoints:
    - POST /api/v1/variants/<id>/adjust/     {delta, reason, notes?}
    - GET  /api/v1/variants/<id>/movements/
    - GET  /api/v1/variants/low-stock/?threshold=5
    """
    queryset = ProductVariant.objects.select_related('product')

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound('Variant not found')

    @action(detail=True, methods=['post'])
    def adjust(self, request, pk=None):
        variant = self.get_object()
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        movement = adjust_stock(variant, user=request.user, **serializer.validated_data)
        return Response({
            'success': True,
            'variant_id': variant.pk,
            'previous_stock': movement.previous_stock,
            'new_stock': movement.new_stock,
            'delta': movement.quantity,
        })

    @action(detail=True, methods=['get'])
    def movements(self, request, pk=None):
        variant = self.get_object()
        movements = variant.movements.select_related('created_by')
        return Response({'movements': StockMovementSerializer(movements, many=True).data})

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        query = LowStockQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        threshold = query.validated_data.get('threshold', LOW_STOCK_THRESHOLD)

        variants = low_stock_variants(threshold)
        return Response({
            'threshold': threshold,
            'variants': LowStockVariantSerializer(variants, many=True).data,
        })
