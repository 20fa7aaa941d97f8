"""Discount list filters."""

import django_filters

from apps.core.filters import ActiveStatusFilter, DateRangeFilterSet
from .models import Discount


class DiscountFilter(DateRangeFilterSet):
    type = django_filters.ChoiceFilter(choices=Discount.Type.choices)
    status = ActiveStatusFilter()

    class Meta:
        model = Discount
        fields = []
