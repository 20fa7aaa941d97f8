"""Order list filters."""

import django_filters

from apps.core.filters import DateRangeFilterSet
from .models import Order


class OrderFilter(DateRangeFilterSet):
    status = django_filters.ChoiceFilter(choices=Order.Status.choices)

    class Meta:
        model = Order
        fields = []
