"""
Offset pagination for admin lists.

Response shape::

    {"<list_key>": [...], "pagination": {"total", "page", "limit", "total_pages"}}

Pages past the end return an empty list rather than a 404, and
malformed ``page``/``limit`` values fall back to the defaults.
"""

import math

from django.conf import settings
from rest_framework.pagination import BasePagination
from rest_framework.response import Response


def _positive_int(value, default, maximum=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number


class AdminPagination(BasePagination):
    page_query_param = 'page'
    limit_query_param = 'limit'

    def get_default_limit(self):
        return getattr(settings, 'ADMIN_PAGE_SIZE', 10)

    def get_max_limit(self):
        return getattr(settings, 'ADMIN_MAX_PAGE_SIZE', 100)

    def paginate_queryset(self, queryset, request, view=None):
        self.limit = _positive_int(
            request.query_params.get(self.limit_query_param),
            self.get_default_limit(),
            self.get_max_limit(),
        )
        self.page = _positive_int(request.query_params.get(self.page_query_param), 1)
        self.total = queryset.count()
        self.list_key = getattr(view, 'list_key', 'results')

        offset = (self.page - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def get_pagination_data(self):
        return {
            'total': self.total,
            'page': self.page,
            'limit': self.limit,
            'total_pages': math.ceil(self.total / self.limit),
        }

    def get_paginated_response(self, data):
        return Response({
            self.list_key: data,
            'pagination': self.get_pagination_data(),
        })

