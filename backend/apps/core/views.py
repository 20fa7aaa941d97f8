"""
Core views providing health checks, the API root and search.
"""

import logging

from django.http import JsonResponse
from django.core.cache import cache
from django.db import connection
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from .search import search_documents
from .serializers import SearchQuerySerializer
from .tasks import rebuild_search_index

logger = logging.getLogger(__name__)

API_RESOURCES = (
    'orders', 'products', 'categories', 'collections', 'discounts',
    'customers', 'pages', 'media', 'media-folders', 'analytics', 'dashboard',
    'search',
)


def health_check(request):
    """
    Health check endpoint for monitoring.

    Checks database and cache connectivity. Returns 200 when both
    answer, 503 otherwise.
    """
    health_status = {
        'status': 'healthy',
        'checks': {}
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        health_status['checks']['database'] = 'ok'
    except Exception as e:
        health_status['checks']['database'] = 'error'
        health_status['status'] = 'unhealthy'
        health_status['checks']['database_error'] = str(e)

    try:
        cache.set('health_check', 'ok', 10)
        if cache.get('health_check') == 'ok':
            health_status['checks']['cache'] = 'ok'
        else:
            health_status['checks']['cache'] = 'error'
            health_status['status'] = 'unhealthy'
    except Exception as e:
        health_status['checks']['cache'] = 'error'
        health_status['status'] = 'unhealthy'
        health_status['checks']['cache_error'] = str(e)

    status_code = 200 if health_status['status'] == 'healthy' else 503

    return JsonResponse(health_status, status=status_code)


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """
    API root listing the admin resources of v1.
    """
    return Response({
        'v1': {
            name: request.build_absolute_uri(f'/api/v1/{name}/')
            for name in API_RESOURCES
        },
        'health': request.build_absolute_uri('/health/'),
    })


class SearchViewSet(viewsets.ViewSet):
    """
    Storefront search over the indexed catalog and pages.

    Endpoints:
    - GET  /api/v1/search/?q=&limit=&search_pages=&search_categories=  (public)
    - POST /api/v1/search/reindex/                                      (staff)
    """

    def get_permissions(self):
        if self.action == 'list':
            return [AllowAny()]
        return [IsAdminUser()]

    def list(self, request):
        query = SearchQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        params = query.validated_data

        results = search_documents(
            params['q'],
            limit=params['limit'],
            search_pages=params['search_pages'],
            search_categories=params['search_categories'],
        )
        return Response({**results, 'query': params['q'].strip()})

    @action(detail=False, methods=['post'])
    def reindex(self, request):
        """Queue a full rebuild of the search index."""
        result = rebuild_search_index.delay()
        logger.info(f"Search index rebuild queued by {request.user}: {result.id}")
        return Response(
            {'success': True, 'task_id': result.id, 'message': 'Search index rebuild queued'},
            status=status.HTTP_202_ACCEPTED,
        )
