"""Core admin configuration."""

from django.contrib import admin
from .models import SearchDocument


@admin.register(SearchDocument)
class SearchDocumentAdmin(admin.ModelAdmin):
    """Read-mostly view of the storefront search index."""
    list_display = ['title', 'model_label', 'object_id', 'updated_at']
    list_filter = ['model_label']
    search_fields = ['title', 'slug', 'content']
    readonly_fields = ['created_at', 'updated_at']
