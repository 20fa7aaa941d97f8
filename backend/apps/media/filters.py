"""Media list filters."""

import django_filters

from apps.core.filters import DateRangeFilterSet
from .models import MediaFile

ROOT_FOLDER = 'root'


class MediaFileFilter(DateRangeFilterSet):
    """
    ``folder`` takes a folder id or ``root`` for unfiled media;
    ``type`` matches the mime prefix (``image``, ``video``...).
    """
    folder = django_filters.CharFilter(method='filter_folder')
    type = django_filters.CharFilter(method='filter_type')

    class Meta:
        model = MediaFile
        fields = []

    def filter_folder(self, queryset, name, value):
        if value == ROOT_FOLDER:
            return queryset.filter(folder__isnull=True)
        if not value.isdigit():
            return queryset.none()
        return queryset.filter(folder_id=value)

    def filter_type(self, queryset, name, value):
        return queryset.filter(mime_type__istartswith=f'{value.rstrip("/")}/')
