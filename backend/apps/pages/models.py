"""
Content page models.

Best practices demonstrated:
- Publication state with a timestamp set on first publish
- Slugs unique among non-deleted rows
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.core.models import BaseModel


class Page(BaseModel):
    """Storefront content page (about, terms, FAQ...)."""
    id_prefix = 'page'
    unique_active_fields = ('slug',)

    title = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    content = models.TextField(blank=True)
    meta_title = models.CharField(max_length=255, blank=True, null=True)
    meta_description = models.TextField(blank=True, null=True)

    is_published = models.BooleanField(default=False, db_index=True)
    published_at = models.DateTimeField(blank=True, null=True)
    sort_order = models.IntegerField(default=0)

    # Layout switches
    hide_header = models.BooleanField(default=False)
    hide_footer = models.BooleanField(default=False)
    hide_title = models.BooleanField(default=False)

    class Meta:
        db_table = 'pages'
        ordering = ['sort_order', 'title']
        constraints = [
            models.UniqueConstraint(
                fields=['slug'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_page_slug',
            ),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if self.is_published and self.published_at is None:
            self.published_at = timezone.now()
        elif not self.is_published:
            self.published_at = None
        super().save(*args, **kwargs)

    def search_document(self):
        """Drafts are not searchable."""
        if not self.is_published:
            return None
        return {
            'title': self.title,
            'slug': self.slug,
            'content': self.meta_description or self.content[:1000],
            'url': f'/pages/{self.slug}',
        }
