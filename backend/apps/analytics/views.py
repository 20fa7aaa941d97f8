"""Analytics script views."""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import AnalyticsScript
from .serializers import AnalyticsScriptSerializer

logger = logging.getLogger(__name__)


class AnalyticsScriptViewSet(viewsets.ModelViewSet):
    """
    Analytics scripts: small fixed set, listed without pagination
    and deleted permanently.
    """
    queryset = AnalyticsScript.objects.all()
    serializer_class = AnalyticsScriptSerializer
    pagination_class = None
    filter_backends = []
    http_method_names = ['get', 'post', 'put', 'delete', 'head', 'options']

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        script = serializer.save()
        logger.info(f"Analytics script {script.pk} created")
        return Response({'id': script.pk, 'script': serializer.data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        response = super().update(request, *args, **kwargs)
        return Response({'success': True, 'script': response.data})

    def perform_destroy(self, instance):
        logger.info(f"Analytics script {instance.pk} deleted")
        instance.delete()

    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        """
        Flip ``is_active``.

        Endpoint: /api/v1/analytics/{id}/toggle/
        """
        script = self.get_object()
        script.is_active = not script.is_active
        script.save(update_fields=['is_active', 'updated_at'])
        return Response({'success': True, 'is_active': script.is_active})
