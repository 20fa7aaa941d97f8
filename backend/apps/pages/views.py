"""Content page views."""

from rest_framework import viewsets

from apps.core.mixins import SoftDeleteViewSetMixin
from .filters import PageFilter
from .models import Page
from .serializers import PageSerializer


class PageViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    queryset = Page.objects.all()
    serializer_class = PageSerializer
    list_key = 'pages'
    filterset_class = PageFilter
    search_fields = ['title', 'slug']
    sort_fields = {
        'title': 'title',
        'sort_order': 'sort_order',
        'created_at': 'created_at',
        'updated_at': 'updated_at',
    }
    reindex = True
