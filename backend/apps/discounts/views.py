"""
Discount views.

Features:
- List enriched with associations and usage aggregates
- Public code validation for checkout
- Usage recording
"""

import logging
from decimal import Decimal

from django.db.models import Count, DecimalField, Prefetch, Sum, Value
from django.db.models.functions import Coalesce
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.core.exceptions import ConflictError
from apps.core.mixins import SoftDeleteViewSetMixin
from .filters import DiscountFilter
from .models import Discount, DiscountCollection, DiscountProduct
from .serializers import (
    DiscountListSerializer,
    DiscountSerializer,
    DiscountUsageSerializer,
    DiscountValidationSerializer,
)
from .services import combinability, validate_discount

logger = logging.getLogger(__name__)


class DiscountViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    queryset = Discount.objects.all()
    list_key = 'discounts'
    filterset_class = DiscountFilter
    search_fields = ['code']
    sort_fields = {
        'code': 'code',
        'type': 'type',
        'value': 'discount_value',
        'start_date': 'start_date',
        'end_date': 'end_date',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action in ('list', 'retrieve'):
            queryset = queryset.annotate(
                usage_count=Count('usages'),
                total_discount_amount=Coalesce(
                    Sum('usages__amount_discounted'),
                    Value(Decimal('0')),
                    output_field=DecimalField(max_digits=15, decimal_places=2),
                ),
            ).prefetch_related(
                Prefetch('product_links', queryset=DiscountProduct.objects.select_related('product')),
                Prefetch('collection_links', queryset=DiscountCollection.objects.select_related('collection')),
            )
        return queryset

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return DiscountListSerializer
        return DiscountSerializer

    def check_permanent_delete(self, instance):
        if instance.usages.exists():
            raise ConflictError('Cannot delete discount. It has been used on one or more orders.')

    @action(detail=False, methods=['get'], url_path='validate', permission_classes=[AllowAny])
    def validate_code(self, request):
        """
        Check a code against a cart.

        Endpoint: /api/v1/discounts/validate/?code=&total=&shipping_cost=&items=
        Response: {valid, discount, discount_amount} or {valid: false, error}
        """
        serializer = DiscountValidationSerializer(data=request.query_params.dict())
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        result = validate_discount(
            params['code'],
            total=params.get('total'),
            items=params.get('items'),
            shipping_cost=params['shipping_cost'],
            customer_phone=params.get('customer_phone'),
        )
        if not result['valid']:
            return Response(result)

        discount = result['discount']
        return Response({
            'valid': True,
            'discount': {
                'id': discount.pk,
                'code': discount.code,
                'type': discount.type,
                'value_type': discount.value_type,
                'discount_value': discount.discount_value,
                'combines': combinability(discount),
            },
            'discount_amount': result['discount_amount'],
        })

    @action(detail=False, methods=['post'])
    def usage(self, request):
        """
        Record that a discount was redeemed on an order.

        Endpoint: /api/v1/discounts/usage/
        """
        serializer = DiscountUsageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        usage = serializer.save()
        logger.info(f"Recorded usage of discount {usage.discount_id} on order {usage.order_id}")
        return Response({'success': True, 'id': usage.pk}, status=status.HTTP_201_CREATED)
