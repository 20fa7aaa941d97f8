"""
Shared list filters.

Best practices demonstrated:
- Whitelisted sorting (never pass user input to order_by directly)
- Reusable FilterSet base for created_at date ranges
"""

from datetime import datetime, time

import django_filters
from django.utils import timezone
from rest_framework.filters import BaseFilterBackend

END_OF_DAY = time(23, 59, 59, 999999)


class SortFilter(BaseFilterBackend):
    """
    Order by ``?sort=<field>&order=asc|desc``.

    The view declares ``sort_fields``, a mapping of public sort names to
    ORM lookups. Anything not in the whitelist falls back to
    ``default_sort`` (most recently updated first). The primary key is
    always appended so offset pages are stable.
    """
    sort_param = 'sort'
    order_param = 'order'
    default_sort = '-updated_at'

    def get_ordering(self, request, view):
        sort_fields = getattr(view, 'sort_fields', {})
        sort = request.query_params.get(self.sort_param)
        direction = request.query_params.get(self.order_param, 'desc').lower()

        if sort not in sort_fields or direction not in ('asc', 'desc'):
            return [getattr(view, 'default_sort', self.default_sort), '-pk']

        lookup = sort_fields[sort]
        if direction == 'desc':
            return [f'-{lookup}', '-pk']
        return [lookup, 'pk']

    def filter_queryset(self, request, queryset, view):
        return queryset.order_by(*self.get_ordering(request, view))


class DateRangeFilterSet(django_filters.FilterSet):
    """
    Adds ``start_date`` / ``end_date`` filters on ``created_at``.

    The end date is inclusive through the last microsecond of that day.
    """
    start_date = django_filters.DateFilter(method='filter_start_date')
    end_date = django_filters.DateFilter(method='filter_end_date')

    date_field = 'created_at'

    def filter_start_date(self, queryset, name, value):
        start = timezone.make_aware(datetime.combine(value, time.min))
        return queryset.filter(**{f'{self.date_field}__gte': start})

    def filter_end_date(self, queryset, name, value):
        end = timezone.make_aware(datetime.combine(value, END_OF_DAY))
        return queryset.filter(**{f'{self.date_field}__lte': end})


class ActiveStatusFilter(django_filters.ChoiceFilter):
    """``?status=active|inactive`` mapped onto an ``is_active`` column."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('choices', (('active', 'Active'), ('inactive', 'Inactive')))
        kwargs.setdefault('method', self.filter_status)
        super().__init__(*args, **kwargs)

    @staticmethod
    def filter_status(queryset, name, value):
        return queryset.filter(is_active=(value == 'active'))
