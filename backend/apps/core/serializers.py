"""Shared serializer fields and validators."""

from rest_framework import serializers

from .exceptions import ConflictError

SLUG_PATTERN = r'^[a-z0-9]+(?:-[a-z0-9]+)*$'


class SlugField(serializers.RegexField):
    """Lowercase, hyphen separated slug between 3 and 100 characters."""

    def __init__(self, **kwargs):
        kwargs.setdefault('min_length', 3)
        kwargs.setdefault('max_length', 100)
        kwargs.setdefault('error_messages', {
            'invalid': 'Slug must contain only lowercase letters, numbers, and single hyphens.',
        })
        super().__init__(SLUG_PATTERN, **kwargs)


def ensure_unique_active(model, field, value, instance=None, message=None):
    """
    Raise ConflictError when another non-deleted row already holds
    ``value`` in ``field``. The row being updated is excluded.
    """
    if value in (None, ''):
        return value

    queryset = model.objects.active().filter(**{field: value})
    if instance is not None:
        queryset = queryset.exclude(pk=instance.pk)

    if queryset.exists():
        label = field.replace('_', ' ').capitalize()
        raise ConflictError(message or f'{label} already exists')
    return value


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(
        child=serializers.CharField(max_length=32),
        allow_empty=False,
    )
    permanent = serializers.BooleanField(default=False)


class BulkRestoreSerializer(serializers.Serializer):
    ids = serializers.ListField(
        child=serializers.CharField(max_length=32),
        allow_empty=False,
    )


class SearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, default='', max_length=200)
    limit = serializers.IntegerField(min_value=1, max_value=50, default=10)
    search_pages = serializers.BooleanField(default=True)
    search_categories = serializers.BooleanField(default=True)
