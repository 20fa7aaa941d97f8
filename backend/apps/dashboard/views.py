"""
Dashboard views.

Endpoints:
- GET /api/v1/dashboard/stats/
- GET /api/v1/dashboard/recent-orders/?limit=5
- GET /api/v1/dashboard/products/
- GET /api/v1/dashboard/categories/
- GET /api/v1/dashboard/activity/?days=30
"""

from rest_framework import serializers, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import services


class RecentOrdersQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=50, default=5)


class ActivityQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=30)


class DashboardViewSet(viewsets.ViewSet):
    """Read-only aggregates for the admin home page."""

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(services.get_dashboard_stats())

    @action(detail=False, methods=['get'], url_path='recent-orders')
    def recent_orders(self, request):
        query = RecentOrdersQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response({'orders': services.get_recent_orders(query.validated_data['limit'])})

    @action(detail=False, methods=['get'])
    def products(self, request):
        return Response(services.get_product_stats())

    @action(detail=False, methods=['get'])
    def categories(self, request):
        return Response(services.get_category_stats())

    @action(detail=False, methods=['get'])
    def activity(self, request):
        query = ActivityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response({'activity': services.get_daily_activity(query.validated_data['days'])})
