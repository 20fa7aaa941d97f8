"""Catalog list filters."""

import django_filters

from apps.core.filters import ActiveStatusFilter, DateRangeFilterSet
from .models import Product


class ProductFilter(DateRangeFilterSet):
    category = django_filters.CharFilter(field_name='category_id')
    status = ActiveStatusFilter()

    class Meta:
        model = Product
        fields = []
