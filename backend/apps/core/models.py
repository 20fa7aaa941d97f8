"""
Core models providing base classes for all apps.

Best practices demonstrated:
- Abstract base models for common fields
- Soft delete with a single deleted_at marker
- Explicit active()/trashed() querysets instead of hidden filtering
- Opaque prefixed string identifiers
"""

import uuid

from django.db import models
from django.utils import timezone


def generate_id(prefix):
    """Return a new opaque identifier such as ``prod_3f9c...``."""
    return f"{prefix}_{uuid.uuid4().hex[:20]}"


class TimeStampedModel(models.Model):
    """
    Abstract base class that provides self-updating
    'created_at' and 'updated_at' fields.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class SoftDeleteQuerySet(models.QuerySet):
    """Queryset that knows about the trash."""

    def active(self):
        return self.filter(deleted_at__isnull=True)

    def trashed(self):
        return self.filter(deleted_at__isnull=False)

    def soft_delete(self):
        """Move every row in the queryset to the trash."""
        return self.update(deleted_at=timezone.now())

    def restore(self):
        return self.update(deleted_at=None)


class SoftDeleteModel(models.Model):
    """
    Abstract base class that provides soft delete functionality.

    Rows are marked with ``deleted_at`` instead of being removed.
    Soft delete and restore write only that column, so every other
    field (``updated_at`` included) is left exactly as it was.
    """
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False):
        """Override delete to move the row to the trash."""
        self.deleted_at = timezone.now()
        type(self).objects.filter(pk=self.pk).update(deleted_at=self.deleted_at)

    def hard_delete(self):
        """Actually delete the record from database."""
        return super().delete()

    def restore(self):
        """Restore a soft-deleted record."""
        self.deleted_at = None
        type(self).objects.filter(pk=self.pk).update(deleted_at=None)


class BaseModel(TimeStampedModel, SoftDeleteModel):
    """
    Combination of TimeStamped and SoftDelete models with a
    prefixed string primary key.

    Subclasses set ``id_prefix`` and may list ``unique_active_fields``:
    columns whose values must be unique among non-deleted rows.
    """
    id = models.CharField(primary_key=True, max_length=32, editable=False)

    id_prefix = 'obj'
    unique_active_fields = ()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        if not self.id:
            self.id = generate_id(self.id_prefix)
        super().save(*args, **kwargs)


class SearchDocument(TimeStampedModel):
    """
    Flattened, searchable copy of a storefront entity.

    Rebuilt by ``apps.core.tasks.reindex_search`` after catalog and
    page mutations; never edited by request handlers.
    """
    model_label = models.CharField(max_length=100)
    object_id = models.CharField(max_length=32)
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, blank=True)
    content = models.TextField(blank=True)
    url = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = 'search_documents'
        constraints = [
            models.UniqueConstraint(
                fields=['model_label', 'object_id'],
                name='unique_search_document',
            ),
        ]
        indexes = [
            models.Index(fields=['model_label', 'title']),
        ]

    def __str__(self):
        return f"{self.model_label}:{self.object_id}"
