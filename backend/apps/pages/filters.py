"""Page list filters."""

import django_filters

from apps.core.filters import DateRangeFilterSet
from .models import Page


class PageFilter(DateRangeFilterSet):
    status = django_filters.ChoiceFilter(
        choices=(('published', 'Published'), ('draft', 'Draft')),
        method='filter_status'
    )

    class Meta:
        model = Page
        fields = []

    def filter_status(self, queryset, name, value):
        return queryset.filter(is_published=(value == 'published'))
