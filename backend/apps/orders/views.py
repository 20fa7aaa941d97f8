"""Order views."""

import logging

from django.db.models import Count
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.mixins import SoftDeleteViewSetMixin
from . import services
from .filters import OrderFilter
from .models import Order
from .serializers import (
    OrderDetailSerializer,
    OrderListSerializer,
    OrderStatusSerializer,
    OrderWriteSerializer,
    ShipmentSerializer,
    ShipOrderSerializer,
)

logger = logging.getLogger(__name__)


class OrderViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    """
    Order ViewSet with best practices.

    Features:
    - Stock returned on soft delete and taken again on restore
    - Custom actions for status changes and shipping
    """
    queryset = Order.objects.all()
    list_key = 'orders'
    filterset_class = OrderFilter
    search_fields = ['customer_name', 'customer_phone', 'id']
    sort_fields = {
        'customer_name': 'customer_name',
        'total_amount': 'total_amount',
        'status': 'status',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list':
            return queryset.annotate(item_count=Count('items'))
        if self.action == 'retrieve':
            return queryset.prefetch_related('items', 'status_history', 'shipments')
        return queryset

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return OrderListSerializer
        if self.action == 'retrieve':
            return OrderDetailSerializer
        return OrderWriteSerializer

    def perform_soft_delete(self, instance):
        services.soft_delete_order(instance)

    def check_restore(self, instance):
        super().check_restore(instance)
        services.check_restorable(instance)

    def perform_restore(self, instance):
        services.restore_order(instance)

    def perform_permanent_delete(self, instance):
        services.permanently_delete_order(instance)

    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        """
        Change the order status only.

        Endpoint: /api/v1/orders/{id}/status/
        """
        order = self.get_object()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.change_status(order, serializer.validated_data['status'], serializer.validated_data['notes'])
        return Response({'success': True, 'status': order.status})

    @action(detail=True, methods=['post'])
    def ship(self, request, pk=None):
        """
        Ship the order.

        Endpoint: /api/v1/orders/{id}/ship/
        """
        order = self.get_object()
        serializer = ShipOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        shipment = services.ship_order(order, **serializer.validated_data)
        return Response({
            'success': True,
            'status': order.status,
            'fulfillment_status': order.fulfillment_status,
            'shipment': ShipmentSerializer(shipment).data,
        })
