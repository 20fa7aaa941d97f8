"""
Customer views.

Features:
- Soft delete refused while the customer has orders in flight
- History snapshots per customer
- Sync from orders and on-demand projection recomputation
"""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import ConflictError
from apps.core.mixins import SoftDeleteViewSetMixin
from .models import Customer, CustomerHistory
from .serializers import CustomerHistorySerializer, CustomerSerializer
from .services import record_history, recalculate_customer_stats, sync_customers_from_orders

logger = logging.getLogger(__name__)


class CustomerViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    list_key = 'customers'
    search_fields = ['name', 'phone', 'email']
    sort_fields = {
        'name': 'name',
        'total_orders': 'total_orders',
        'total_spent': 'total_spent',
        'last_order_at': 'last_order_at',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }
    lifecycle_actions = SoftDeleteViewSetMixin.lifecycle_actions + ('history', 'recalculate')

    def check_soft_delete(self, instance):
        from apps.orders.models import Order

        orders = Order.objects.active().filter(customer=instance)
        total_orders = orders.count()
        active_orders = orders.exclude(status__in=Order.TERMINAL_STATUSES).count()
        if active_orders:
            logger.warning(f"Customer {instance.pk} has {active_orders} active orders")
            raise ConflictError(
                'Cannot delete customer with active orders. '
                'Deliver, cancel or return them first.',
                details=[{'total_orders': total_orders, 'active_orders': active_orders}],
            )

    def perform_soft_delete(self, instance):
        instance.delete()
        record_history(instance, CustomerHistory.ChangeType.DELETED)

    def check_permanent_delete(self, instance):
        from apps.orders.models import Order

        if Order.objects.filter(customer=instance).exists():
            raise ConflictError('Cannot delete customer. One or more orders still reference this customer.')

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """
        Contact detail snapshots, newest first.

        Endpoint: /api/v1/customers/{id}/history/
        """
        customer = self.get_object()
        serializer = CustomerHistorySerializer(customer.history.all(), many=True)
        return Response({'history': serializer.data})

    @action(detail=True, methods=['post'])
    def recalculate(self, request, pk=None):
        """
        Endpoint: /api/v1/customers/{id}/recalculate/
        """
        customer = self.get_object()
        recalculate_customer_stats(customer.pk)
        customer.refresh_from_db()
        return Response(CustomerSerializer(customer).data)

    @action(detail=False, methods=['post'])
    def sync(self, request):
        """
        Create customers for orders that have none.

        Endpoint: /api/v1/customers/sync/
        """
        details = sync_customers_from_orders()
        return Response(
            {'message': 'Sync completed successfully', 'details': details},
            status=status.HTTP_200_OK
        )
