"""Page serializers."""

from rest_framework import serializers

from apps.core.serializers import SlugField, ensure_unique_active
from .models import Page


class PageSerializer(serializers.ModelSerializer):
    title = serializers.CharField(min_length=3, max_length=100)
    slug = SlugField()

    class Meta:
        model = Page
        fields = [
            'id', 'title', 'slug', 'content', 'meta_title', 'meta_description',
            'is_published', 'published_at', 'sort_order',
            'hide_header', 'hide_footer', 'hide_title',
            'created_at', 'updated_at', 'deleted_at',
        ]
        read_only_fields = ['id', 'published_at', 'created_at', 'updated_at', 'deleted_at']

    def validate_slug(self, value):
        return ensure_unique_active(Page, 'slug', value, self.instance)
